"""
Group stage generation: partitioning teams into groups, round-robin fixtures
and matchday assignment.
"""
import logging
import math
import random
from collections import OrderedDict
from itertools import combinations
from typing import Dict, List, Optional, Tuple

from competition.errors import (
    GroupLimitError,
    InvalidSettingsError,
    NoTeamsError,
    UnassignedTeamsError,
)
from competition.models import GROUP_ROUND, SCHEDULED, Match

logger = logging.getLogger(__name__)

GROUP_LABELS = ['A', 'B', 'C', 'D', 'E', 'F', 'G', 'H']


def _team_id(team):
    return getattr(team, 'id', team)


def generate_groups(tournament, teams: List, rng: Optional[random.Random] = None) -> Tuple[Dict[str, List], List]:
    """
    Shuffle the roster and deal it round-robin into groups.

    Returns (groups, unassigned) where groups maps each label to its teams
    in dealing order. Every team is always placed, so unassigned is empty.
    """
    if not teams:
        raise NoTeamsError(f"Tournament {tournament.id} has no registered teams")

    teams_per_group = tournament.teams_per_group
    if not teams_per_group or teams_per_group < 2:
        raise InvalidSettingsError(f"teams_per_group must be at least 2, got {teams_per_group}")

    num_groups = math.ceil(len(teams) / teams_per_group)
    if num_groups > len(GROUP_LABELS):
        raise GroupLimitError(
            f"{len(teams)} teams with {teams_per_group} per group need {num_groups} groups; "
            f"at most {len(GROUP_LABELS)} are supported"
        )

    shuffled = list(teams)
    (rng or random).shuffle(shuffled)

    labels = GROUP_LABELS[:num_groups]
    groups = OrderedDict((label, []) for label in labels)
    for i, team in enumerate(shuffled):
        groups[labels[i % num_groups]].append(team)

    logger.debug("Dealt %d teams into %d groups", len(teams), num_groups)
    return groups, []


def ensure_all_assigned(unassigned: List):
    """Treat a non-empty unassigned list as a hard error."""
    if unassigned:
        raise UnassignedTeamsError(unassigned)


def generate_group_stage_matches(tournament, groups: Dict[str, List]) -> List[Match]:
    """
    Build the round-robin fixtures of every group and assign their matchdays.

    One fixture per unordered pair in stored order; with more than one match
    per team in group, every pair gets a second, reversed leg after all first
    legs of the group.
    """
    matches = []
    for group_name, teams in groups.items():
        team_ids = [_team_id(t) for t in teams]
        pairs = list(combinations(team_ids, 2))
        legs = [pairs]
        if tournament.legs > 1:
            legs.append([(away, home) for home, away in pairs])

        for leg in legs:
            for team1, team2 in leg:
                matches.append(Match(
                    tournament=tournament.id,
                    round=GROUP_ROUND,
                    group=group_name,
                    team1=team1,
                    team2=team2,
                    status=SCHEDULED,
                ))

    assign_matchdays(matches, legs=tournament.legs)
    return matches


def required_matchdays(teams_in_group: int, legs: int = 1) -> int:
    """Matchdays a group needs for a full round robin: (n - 1) per leg."""
    return max(teams_in_group - 1, 0) * legs


def assign_matchdays(matches: List[Match], legs: int = 1) -> Dict[str, int]:
    """
    Greedy first-fit matchday assignment, group by group.

    Each fixture, in generation order, goes to the lowest matchday on which
    neither of its teams already plays. Scanning continues past the required
    count when needed (odd-sized groups always do), so every fixture gets a
    matchday. Returns the number of matchdays used per group.
    """
    busy: Dict[str, Dict[str, set]] = {}
    group_teams: Dict[str, set] = {}
    used: Dict[str, int] = {}

    for match in matches:
        group_teams.setdefault(match.group, set()).update((match.team1, match.team2))

    for match in matches:
        group_busy = busy.setdefault(match.group, {})
        days1 = group_busy.setdefault(match.team1, set())
        days2 = group_busy.setdefault(match.team2, set())

        matchday = 1
        while matchday in days1 or matchday in days2:
            matchday += 1

        match.matchday = matchday
        days1.add(matchday)
        days2.add(matchday)
        used[match.group] = max(used.get(match.group, 0), matchday)

    for group_name, count in used.items():
        required = required_matchdays(len(group_teams[group_name]), legs)
        if count > required:
            logger.debug("Group %s needs %d matchdays (%d required)", group_name, count, required)
    return used


def group_matches_by_matchday(matches: List[Match]) -> Dict[int, List[Match]]:
    """Group-round matches keyed by matchday, in ascending matchday order."""
    by_matchday = {}
    group_matches = [m for m in matches if m.round == GROUP_ROUND and m.matchday is not None]
    for match in sorted(group_matches, key=lambda m: m.matchday):
        by_matchday.setdefault(match.matchday, []).append(match)
    return by_matchday


def matches_for_matchday(matches: List[Match], matchday: int) -> List[Match]:
    return [m for m in matches if m.round == GROUP_ROUND and m.matchday == matchday]
