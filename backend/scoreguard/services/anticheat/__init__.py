"""Anti-cheat services: signature checks, heuristics and risk tracking.

Everything here is plain Python with no Flask imports, so the checks can be
driven directly from tests or from another transport. State shared across
requests lives in a single RiskStore passed in at construction.
"""

from .admin import AntiCheatAdmin
from .errors import AntiCheatError, HardGateFailure, InvalidSubmission, PermissionDenied, SessionUnavailable
from .orchestrator import AntiCheatOrchestrator
from .policy import AntiCheatPolicy, GameRule
from .signature import generate_signature, verify_signature
from .store import RiskStore
from .types import CheckResult, Incident, ScoreSubmission, Verdict

__all__ = [
    'AntiCheatAdmin',
    'AntiCheatError',
    'AntiCheatOrchestrator',
    'AntiCheatPolicy',
    'CheckResult',
    'GameRule',
    'HardGateFailure',
    'Incident',
    'InvalidSubmission',
    'PermissionDenied',
    'RiskStore',
    'ScoreSubmission',
    'SessionUnavailable',
    'Verdict',
    'generate_signature',
    'verify_signature',
]
