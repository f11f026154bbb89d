class AntiCheatError(Exception):
    pass


class HardGateFailure(AntiCheatError):
    """A check that rejects a submission outright (signature, bounds, timestamp)."""

    def __init__(self, reason: str, flag: str):
        super().__init__(reason)
        self.reason = reason
        self.flag = flag


class InvalidSubmission(AntiCheatError):
    """Payload could not be turned into a ScoreSubmission."""


class SessionUnavailable(AntiCheatError):
    """The session store could not answer in time."""


class PermissionDenied(AntiCheatError):
    pass
