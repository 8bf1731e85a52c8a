"""
Result entry: best-of-N series resolution, single score updates and
advancing winners to the next bracket match.
"""
import logging
import random
from datetime import datetime
from typing import Dict, List, Optional

from competition.errors import (
    AlreadyDecidedError,
    InvalidMatchDetailsError,
    InvalidSettingsError,
    InvalidScoreError,
    InvalidStatusError,
    MatchNotFoundError,
    MatchNotPlayableError,
    SeriesMatchError,
    SlotConflictError,
)
from competition.models import (
    CANCELLED,
    COMPLETED,
    GROUP_ROUND,
    IN_PROGRESS,
    PENDING,
    POSTPONED,
    SCHEDULED,
    WALKOVER,
    Match,
    SeriesGame,
    parse_date,
)

logger = logging.getLogger(__name__)


def _validate_score(value):
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidScoreError(f"Scores must be non-negative integers, got {value!r}")


def ensure_playable(match: Match):
    """Raise unless a result can be entered for the match."""
    if match.status in (COMPLETED, WALKOVER):
        raise AlreadyDecidedError(f"Match {match.id} is already {match.status}")
    if match.status in (PENDING, CANCELLED, POSTPONED):
        raise MatchNotPlayableError(f"Match {match.id} is {match.status}")
    if match.team1 is None or match.team2 is None:
        raise MatchNotPlayableError(f"Match {match.id} is still waiting for a team")


def game_winner(match: Match, score_team1: int, score_team2: int):
    """Higher scoring team of a single game, None on a tie."""
    if score_team1 > score_team2:
        return match.team1
    if score_team2 > score_team1:
        return match.team2
    return None


def format_series_score(wins_team1: int, wins_team2: int, total_team1: int, total_team2: int) -> str:
    return f"{wins_team1}-{wins_team2} | {total_team1}-{total_team2}"


def resolve_series(games: List[SeriesGame], best_of: int, team1, team2,
                   rng: Optional[random.Random] = None) -> Dict:
    """
    Tally a series and decide it if possible.

    A team needs best_of // 2 + 1 game wins. Once best_of games are played
    without that, the higher aggregate score wins and an exact aggregate tie
    is drawn at random.
    """
    wins_team1 = sum(1 for g in games if g.winner is not None and g.winner == team1)
    wins_team2 = sum(1 for g in games if g.winner is not None and g.winner == team2)
    total_team1 = sum(g.score_team1 for g in games)
    total_team2 = sum(g.score_team2 for g in games)
    required_wins = best_of // 2 + 1

    winner = None
    if wins_team1 >= required_wins:
        winner = team1
    elif wins_team2 >= required_wins:
        winner = team2
    elif len(games) >= best_of:
        if total_team1 > total_team2:
            winner = team1
        elif total_team2 > total_team1:
            winner = team2
        else:
            winner = (rng or random).choice([team1, team2])

    return {
        'wins_team1': wins_team1,
        'wins_team2': wins_team2,
        'total_team1': total_team1,
        'total_team2': total_team2,
        'required_wins': required_wins,
        'winner': winner,
    }


def find_match(matches: List[Match], bracket_id: str) -> Match:
    for match in matches:
        if match.bracket_id == bracket_id:
            return match
    raise MatchNotFoundError(f"No match with bracket id {bracket_id}")


def feeders_of(matches: List[Match], bracket_id: str) -> List[Match]:
    """Matches whose winner advances into bracket_id."""
    return [m for m in matches if m.next_match_bracket_id == bracket_id]


def _choose_slot(target: Match, team) -> str:
    """Slot the team goes into: team1 when empty, else team2."""
    if target.team1 is None:
        if target.team2 == team:
            raise SlotConflictError(f"Team {team} already holds team2 of {target.bracket_id}")
        return 'team1'
    if target.team1 == team:
        raise SlotConflictError(f"Team {team} already holds team1 of {target.bracket_id}")
    if target.team2 is not None:
        raise SlotConflictError(
            f"Both slots of {target.bracket_id} are filled ({target.team1}, {target.team2})"
        )
    return 'team2'


def check_next_slot(matches: List[Match], next_bracket_id: str, team) -> Match:
    """Validate an advancement without applying it."""
    target = find_match(matches, next_bracket_id)
    _choose_slot(target, team)
    return target


def update_next_match(matches: List[Match], next_bracket_id: str, team) -> Match:
    """
    Put a winner into the next bracket match.

    The team takes team1 if it is empty, otherwise team2. With both slots
    filled a pending match becomes scheduled. A match fed by a single earlier
    match (odd-sized round before it) can never get an opponent, so it turns
    into a walkover for that team as soon as the team arrives, which can be
    during result entry and not only at generation. The team then advances
    again.
    """
    target = find_match(matches, next_bracket_id)
    slot = _choose_slot(target, team)
    setattr(target, slot, team)

    if target.team1 is not None and target.team2 is not None:
        if target.status == PENDING:
            target.status = SCHEDULED
    elif len(feeders_of(matches, target.bracket_id)) == 1:
        target.status = WALKOVER
        target.winner = team
        logger.debug("%s is a walkover for %s", target.bracket_id, team)
        if target.next_match_bracket_id:
            update_next_match(matches, target.next_match_bracket_id, team)
    return target


def add_series_game_result(match: Match, score_team1: int, score_team2: int, tournament,
                           matches: List[Match] = (), rng: Optional[random.Random] = None,
                           now: Optional[datetime] = None) -> Match:
    """
    Record one game of a best-of-N series.

    Aggregate scores and the series score are refreshed after every game.
    The match completes when a team reaches the required wins or all games
    are played; the winner then advances to next_match_bracket_id, looked up
    in matches. Nothing is modified when the result is rejected.
    """
    _validate_score(score_team1)
    _validate_score(score_team2)
    ensure_playable(match)

    best_of = tournament.best_of_matches
    if best_of is None:
        best_of = 1
    if isinstance(best_of, bool) or not isinstance(best_of, int) or best_of < 1:
        raise InvalidSettingsError(f"best_of_matches must be a positive integer, got {best_of!r}")

    game = SeriesGame(score_team1, score_team2, date=now or datetime.now(),
                      winner=game_winner(match, score_team1, score_team2))
    outcome = resolve_series(match.series_matches + [game], best_of, match.team1, match.team2, rng=rng)
    winner = outcome['winner']

    if winner is not None and match.next_match_bracket_id:
        check_next_slot(matches, match.next_match_bracket_id, winner)

    match.series_matches.append(game)
    match.score_team1 = outcome['total_team1']
    match.score_team2 = outcome['total_team2']
    match.series_score = format_series_score(outcome['wins_team1'], outcome['wins_team2'],
                                             outcome['total_team1'], outcome['total_team2'])

    if winner is None:
        match.status = IN_PROGRESS
        return match

    match.series_winner = winner
    match.winner = winner
    match.status = COMPLETED
    if match.next_match_bracket_id:
        update_next_match(matches, match.next_match_bracket_id, winner)
    return match


def update_match_score(match: Match, score_team1: int, score_team2: int,
                       matches: List[Match] = ()) -> Match:
    """
    Record the final score of a match in one go.

    Group matches may end in a draw (winner None). Bracket matches need a
    winner, which advances to the next match.
    """
    _validate_score(score_team1)
    _validate_score(score_team2)
    ensure_playable(match)
    if match.is_best_of_series or match.series_matches:
        raise SeriesMatchError(f"Match {match.id} is a best-of series; enter its games one at a time")

    winner = game_winner(match, score_team1, score_team2)
    if winner is None and match.round != GROUP_ROUND:
        raise InvalidScoreError(f"Bracket match {match.bracket_id} cannot end in a draw")

    if winner is not None and match.next_match_bracket_id:
        check_next_slot(matches, match.next_match_bracket_id, winner)

    match.score_team1 = score_team1
    match.score_team2 = score_team2
    match.winner = winner
    match.status = COMPLETED
    if winner is not None and match.next_match_bracket_id:
        update_next_match(matches, match.next_match_bracket_id, winner)
    return match


EDITABLE_STATUSES = (SCHEDULED, POSTPONED, CANCELLED)


def update_match_details(match: Match, date=None, time=None, location=None,
                         description=None, status=None) -> Match:
    """
    Change the scheduling details of a match.

    Only the given fields are touched. A status change is limited to
    scheduled, postponed and cancelled, and only for a match that is in one
    of those states already.
    """
    if status is not None:
        if status not in EDITABLE_STATUSES:
            raise InvalidStatusError(f"Status can only be set to one of {', '.join(EDITABLE_STATUSES)}")
        if match.status in (COMPLETED, WALKOVER):
            raise AlreadyDecidedError(f"Match {match.id} is already {match.status}")
        if match.status not in EDITABLE_STATUSES:
            raise InvalidStatusError(f"Match {match.id} is {match.status}; its status cannot be changed")

    if date is not None:
        try:
            date = parse_date(date)
        except (TypeError, ValueError):
            raise InvalidMatchDetailsError(f"Invalid match date {date!r}")

    for name, value in (('time', time), ('location', location), ('description', description)):
        if value is not None and not isinstance(value, str):
            raise InvalidMatchDetailsError(f"Match {name} must be text, got {value!r}")

    if date is not None:
        match.date = date
    if time is not None:
        match.time = time
    if location is not None:
        match.location = location
    if description is not None:
        match.description = description
    if status is not None and status != match.status:
        logger.debug("Match %s: %s -> %s", match.id, match.status, status)
        match.status = status
    return match
