"""Game domain services: best scores, play sessions and maintenance sweeps.

This package holds the database-backed collaborators of the anti-cheat core
and is imported by HTTP routes, keeping transport concerns separated from
score bookkeeping.
"""
