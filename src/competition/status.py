"""
Tournament lifecycle helpers.
"""
from datetime import datetime
from typing import Optional

from competition.errors import InvalidFormatError

COMING_SOON = 'coming soon'
REGISTRATION_OPEN = 'registration open'
PLAYER_ADJUSTMENT = 'player adjustment'
PREPARATION = 'preparation'
IN_PROGRESS = 'in progress'
COMPLETED = 'completed'


def calculate_tournament_status(tournament, now: Optional[datetime] = None) -> Optional[str]:
    """Return the lifecycle status implied by the tournament's date window.

    Returns None when any of the dates is missing.
    """
    dates = (tournament.registration_start, tournament.registration_team_end,
             tournament.registration_player_end, tournament.start_date, tournament.end_date)
    if any(d is None for d in dates):
        return None
    reg_start, reg_team_end, reg_player_end, start, end = dates
    now = now or datetime.now()

    if now < reg_start:
        return COMING_SOON
    if now < reg_team_end:
        return REGISTRATION_OPEN
    if now < reg_player_end and now < start:
        return PLAYER_ADJUSTMENT
    if now < start:
        return PREPARATION
    if now < end:
        return IN_PROGRESS
    return COMPLETED


def ensure_format(tournament, expected: str):
    """Raise InvalidFormatError unless the tournament uses ``expected``."""
    if tournament.format != expected:
        raise InvalidFormatError(
            f"Tournament {tournament.id} uses format '{tournament.format}', not '{expected}'"
        )
