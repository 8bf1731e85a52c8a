"""Exceptions raised by the bracket and group-stage engine."""


class TournamentError(Exception):
    """Base exception for all engine errors."""

    pass


# ========== Generation ==========


class GenerationError(TournamentError):
    """Base exception for group-stage and bracket generation."""

    pass


class NoTeamsError(GenerationError):
    """Raised when generation is invoked without any team."""

    pass


class UnassignedTeamsError(GenerationError):
    """Raised when group partitioning left teams without a group."""

    def __init__(self, teams):
        self.teams = list(teams)
        super().__init__(f"{len(self.teams)} team(s) could not be assigned to a group")


class GroupLimitError(GenerationError):
    """Raised when the roster needs more groups than there are group labels."""

    pass


class InvalidSettingsError(GenerationError):
    """Raised when the tournament settings cannot drive a generation."""

    pass


class InvalidFormatError(TournamentError):
    """Raised when the requested stage does not match the tournament format."""

    pass


# ========== Result entry ==========


class ResultError(TournamentError):
    """Base exception for score and series entry."""

    pass


class AlreadyDecidedError(ResultError):
    """Raised when a result is submitted to a completed or walkover match."""

    pass


class MatchNotPlayableError(ResultError):
    """Raised when a match is waiting for a team or was cancelled/postponed."""

    pass


class InvalidScoreError(ResultError):
    """Raised for negative or non-integer scores, or a draw in a bracket match."""

    pass


class SeriesMatchError(ResultError):
    """Raised when a single final score is sent to a best-of series match."""

    pass


class InvalidStatusError(ResultError):
    """Raised for an unknown match status or a status change that is not allowed."""

    pass


class InvalidMatchDetailsError(ResultError):
    """Raised for a malformed match date, time, location or description."""

    pass


# ========== Bracket progression ==========


class BracketError(TournamentError):
    """Base exception for bracket linkage errors."""

    pass


class SlotConflictError(BracketError):
    """Raised when progression would put a team in an occupied or mirrored slot."""

    pass


class MatchNotFoundError(BracketError):
    """Raised when a bracket id does not resolve to a match."""

    pass
