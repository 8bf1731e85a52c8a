"""
Single elimination bracket generation.
"""
import logging
import math
import random
from itertools import count
from typing import Dict, List, Optional

from competition.errors import NoTeamsError
from competition.models import COMPLETED, GROUP_ROUND, PENDING, SCHEDULED, WALKOVER, Match
from competition.series import update_next_match

logger = logging.getLogger(__name__)

QUALIFYING_ROUND = 'qualifying-round'

# Opening round label by number of teams entering the bracket.
FIRST_ROUND_NAMES = {
    2: 'final',
    4: 'semi-finals',
    8: 'quarter-finals',
    16: 'round-of-16',
    32: 'round-of-32',
}

# Later round label by number of rounds still to come after it.
STAGE_NAMES = {
    0: 'final',
    1: 'semi-finals',
    2: 'quarter-finals',
    3: 'round-of-16',
    4: 'round-of-32',
}


def get_round_name(num_teams: int) -> str:
    """Get the name of the opening round for a bracket of num_teams."""
    return FIRST_ROUND_NAMES.get(num_teams, QUALIFYING_ROUND)


def get_stage_name(rounds_remaining: int) -> str:
    """Get the name of a later round from the number of rounds after it."""
    return STAGE_NAMES.get(rounds_remaining, QUALIFYING_ROUND)


def calculate_total_rounds(num_teams: int) -> int:
    """Rounds needed to get down to one team: ceil(log2(n))."""
    if num_teams <= 1:
        return 0
    return math.ceil(math.log2(num_teams))


def _bracket_number(match: Match) -> int:
    return int(match.bracket_id[1:])


def generate_elimination_bracket(tournament, teams: List, rng: Optional[random.Random] = None) -> List[Match]:
    """
    Generate every match of a single elimination bracket.

    Teams are shuffled and paired two at a time. An odd team out gets a
    walkover. Later rounds are created as pending matches and every match
    links to match floor(i/2) of the next round through next_match_bracket_id.
    Bracket ids M1, M2, ... follow generation order.

    Walkover winners are advanced before returning, so the returned list is
    the bracket exactly as it should be persisted.
    """
    if not teams:
        raise NoTeamsError(f"Tournament {tournament.id} has no teams for a bracket")

    shuffled = [getattr(team, 'id', team) for team in teams]
    (rng or random).shuffle(shuffled)

    is_series = (tournament.best_of_matches or 1) > 1
    bracket_ids = count(1)

    def new_match(round_name, status, team1=None, team2=None):
        return Match(
            tournament=tournament.id,
            round=round_name,
            status=status,
            bracket_id=f"M{next(bracket_ids)}",
            team1=team1,
            team2=team2,
            is_best_of_series=is_series,
        )

    first_round_name = get_round_name(len(shuffled))
    first_round = []
    for i in range(0, len(shuffled), 2):
        if i + 1 < len(shuffled):
            match = new_match(first_round_name, SCHEDULED, shuffled[i], shuffled[i + 1])
        else:
            match = new_match(first_round_name, WALKOVER, shuffled[i])
            match.winner = shuffled[i]
        first_round.append(match)

    total_rounds = calculate_total_rounds(len(shuffled))
    rounds = [first_round]
    for round_number in range(2, total_rounds + 1):
        round_name = get_stage_name(total_rounds - round_number)
        previous = rounds[-1]
        next_round = [new_match(round_name, PENDING) for _ in range(math.ceil(len(previous) / 2))]
        for index, match in enumerate(previous):
            match.next_match_bracket_id = next_round[index // 2].bracket_id
        rounds.append(next_round)

    matches = [match for round_matches in rounds for match in round_matches]

    for match in first_round:
        if match.status == WALKOVER and match.next_match_bracket_id:
            update_next_match(matches, match.next_match_bracket_id, match.winner)

    logger.debug("Generated %d bracket matches over %d rounds for %d teams",
                 len(matches), total_rounds, len(shuffled))
    return matches


def generate_playoff_bracket(tournament, advancing_teams: List, rng: Optional[random.Random] = None) -> List[Match]:
    """Bracket for the teams advancing out of the group stage."""
    return generate_elimination_bracket(tournament, advancing_teams, rng=rng)


def get_bracket_rounds(matches: List[Match]) -> Dict[str, List[Match]]:
    """Bracket matches grouped by round, rounds and matches in bracket order."""
    bracket_matches = [m for m in matches if m.round != GROUP_ROUND and m.bracket_id]
    rounds = {}
    for match in sorted(bracket_matches, key=_bracket_number):
        rounds.setdefault(match.round, []).append(match)
    return rounds


def get_champion(matches: List[Match]):
    """Winner of the final once it is decided, otherwise None."""
    finals = [m for m in matches
              if m.round != GROUP_ROUND and m.bracket_id and not m.next_match_bracket_id]
    if not finals:
        return None
    final = max(finals, key=_bracket_number)
    if final.status in (COMPLETED, WALKOVER):
        return final.winner
    return None


def get_bracket_display(matches: List[Match]) -> Dict:
    """
    Get bracket data formatted for display.
    """
    rounds = get_bracket_rounds(matches)
    teams = set()
    for round_matches in rounds.values():
        for match in round_matches:
            teams.update(t for t in match.teams if t is not None)
    byes = sum(1 for round_matches in rounds.values() for m in round_matches if m.status == WALKOVER)

    return {
        'rounds': {name: [m.to_dict() for m in round_matches] for name, round_matches in rounds.items()},
        'total_rounds': len(rounds),
        'total_teams': len(teams),
        'byes': byes,
        'champion': get_champion(matches),
    }
