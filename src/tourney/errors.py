"""
Exceptions raised by the tournament engine.
"""


class TournamentError(Exception):
    """Base class for every error the engine raises on purpose.

    Hosts catch this to report a rejected command without crashing.
    """


class ConfigurationError(TournamentError):
    """Tournament configuration cannot be used to generate matches."""


class GenerationError(TournamentError):
    """A generator was asked for a bracket shape it does not support."""


class ResolutionError(TournamentError):
    """A bracket's dependency graph is malformed (unknown match or cycle)."""


class ScoreError(TournamentError):
    """Set scores are malformed or do not decide the match."""


class StateError(TournamentError):
    """A command is not valid in the tournament's current state."""
