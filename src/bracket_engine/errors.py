"""
Exceptions raised by the bracket layout engine.

Data-shape problems (stale edges, empty brackets, odd round counts) are never
raised; they are reported as warnings. Only configuration problems and
missing tournaments surface as exceptions.
"""


class BracketEngineError(Exception):
    """Base class for all bracket engine errors."""


class LayoutConfigError(BracketEngineError, ValueError):
    """Raised when a layout configuration cannot be merged or validated."""


class TournamentNotFoundError(BracketEngineError, LookupError):
    """Raised when a stored tournament cannot be located."""
