from datetime import datetime, timezone
import uuid

from competition.errors import InvalidStatusError

GROUP_STAGE = 'group-stage'
ELIMINATION = 'elimination'

GROUP_ROUND = 'group'

SCHEDULED = 'scheduled'
PENDING = 'pending'
IN_PROGRESS = 'in-progress'
COMPLETED = 'completed'
POSTPONED = 'postponed'
CANCELLED = 'cancelled'
WALKOVER = 'walkover'

MATCH_STATUSES = (SCHEDULED, PENDING, IN_PROGRESS, COMPLETED, POSTPONED, CANCELLED, WALKOVER)

DEFAULT_POINTS = {'win': 3, 'draw': 1, 'loss': 0}


def parse_date(value):
    """Parse an ISO date into a naive datetime; aware values are converted to UTC."""
    if value is None:
        return None
    if not isinstance(value, datetime):
        text = str(value)
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        value = datetime.fromisoformat(text)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _format_date(value):
    return value.isoformat() if value is not None else None


class Team:
    def __init__(self, id, name=None, tournament=None):
        self.id = id
        self.name = name if name is not None else id
        self.tournament = tournament

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'tournament': self.tournament}

    @classmethod
    def from_dict(cls, data):
        return cls(id=data['id'], name=data.get('name'), tournament=data.get('tournament'))

    def __repr__(self):
        return f"Team(id={self.id}, name={self.name})"


class Tournament:
    """Tournament settings read by the generators and the series resolver.

    ``points`` holds the scoring rule set (``custom_rules.points`` when
    persisted); a missing key falls back to 3/1/0.
    """

    def __init__(self, id, name=None, format=GROUP_STAGE, teams_per_group=4,
                 teams_advancing_per_group=2, matches_per_team_in_group=1,
                 best_of_matches=1, points=None, registration_start=None,
                 registration_team_end=None, registration_player_end=None,
                 start_date=None, end_date=None):
        self.id = id
        self.name = name or id
        self.format = format
        self.teams_per_group = teams_per_group
        self.teams_advancing_per_group = teams_advancing_per_group
        self.matches_per_team_in_group = matches_per_team_in_group
        self.best_of_matches = best_of_matches
        self.points = dict(DEFAULT_POINTS)
        for key, value in (points or {}).items():
            if value is not None:
                self.points[key] = value
        self.registration_start = parse_date(registration_start)
        self.registration_team_end = parse_date(registration_team_end)
        self.registration_player_end = parse_date(registration_player_end)
        self.start_date = parse_date(start_date)
        self.end_date = parse_date(end_date)

    @property
    def legs(self):
        """Round-robin legs per pair: 1, or 2 for any larger setting."""
        return 2 if (self.matches_per_team_in_group or 1) > 1 else 1

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'format': self.format,
            'groups_stage_settings': {
                'teams_per_group': self.teams_per_group,
                'teams_advancing_per_group': self.teams_advancing_per_group,
                'matches_per_team_in_group': self.matches_per_team_in_group,
            },
            'best_of_matches': self.best_of_matches,
            'custom_rules': {'points': dict(self.points)},
            'registration_start': _format_date(self.registration_start),
            'registration_team_end': _format_date(self.registration_team_end),
            'registration_player_end': _format_date(self.registration_player_end),
            'start_date': _format_date(self.start_date),
            'end_date': _format_date(self.end_date),
        }

    @classmethod
    def from_dict(cls, data):
        settings = data.get('groups_stage_settings') or {}
        rules = data.get('custom_rules') or {}
        return cls(
            id=data['id'],
            name=data.get('name'),
            format=data.get('format', GROUP_STAGE),
            teams_per_group=settings.get('teams_per_group', 4),
            teams_advancing_per_group=settings.get('teams_advancing_per_group', 2),
            matches_per_team_in_group=settings.get('matches_per_team_in_group', 1),
            best_of_matches=data.get('best_of_matches', 1),
            points=rules.get('points'),
            registration_start=data.get('registration_start'),
            registration_team_end=data.get('registration_team_end'),
            registration_player_end=data.get('registration_player_end'),
            start_date=data.get('start_date'),
            end_date=data.get('end_date'),
        )

    def __repr__(self):
        return f"Tournament(id={self.id}, format={self.format}, best_of_matches={self.best_of_matches})"


class SeriesGame:
    def __init__(self, score_team1, score_team2, date=None, winner=None):
        self.score_team1 = score_team1
        self.score_team2 = score_team2
        self.date = parse_date(date)
        self.winner = winner

    def to_dict(self):
        return {
            'score_team1': self.score_team1,
            'score_team2': self.score_team2,
            'date': _format_date(self.date),
            'winner': self.winner,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(data['score_team1'], data['score_team2'], data.get('date'), data.get('winner'))

    def __repr__(self):
        return f"SeriesGame({self.score_team1}-{self.score_team2}, winner={self.winner})"


class Match:
    def __init__(self, tournament, round, team1=None, team2=None, group=None,
                 matchday=None, bracket_id=None, next_match_bracket_id=None,
                 status=SCHEDULED, score_team1=None, score_team2=None,
                 winner=None, is_best_of_series=False, series_matches=None,
                 series_score=None, series_winner=None, date=None, time=None,
                 location=None, description=None, id=None):
        if status not in MATCH_STATUSES:
            raise InvalidStatusError(f"Unknown match status {status!r}")
        self.id = id or uuid.uuid4().hex[:12]
        self.tournament = tournament
        self.round = round
        self.group = group
        self.matchday = matchday
        self.bracket_id = bracket_id
        self.next_match_bracket_id = next_match_bracket_id
        self.team1 = team1
        self.team2 = team2
        self.status = status
        self.score_team1 = score_team1
        self.score_team2 = score_team2
        self.winner = winner
        self.is_best_of_series = is_best_of_series
        self.series_matches = list(series_matches or [])
        self.series_score = series_score
        self.series_winner = series_winner
        # Scheduling details, free-form apart from the date
        self.date = parse_date(date)
        self.time = time
        self.location = location
        self.description = description

    @property
    def teams(self):
        return (self.team1, self.team2)

    def to_dict(self):
        return {
            'id': self.id,
            'tournament': self.tournament,
            'group': self.group,
            'round': self.round,
            'matchday': self.matchday,
            'bracket_id': self.bracket_id,
            'next_match_bracket_id': self.next_match_bracket_id,
            'team1': self.team1,
            'team2': self.team2,
            'score_team1': self.score_team1,
            'score_team2': self.score_team2,
            'winner': self.winner,
            'status': self.status,
            'is_best_of_series': self.is_best_of_series,
            'series_matches': [game.to_dict() for game in self.series_matches],
            'series_score': self.series_score,
            'series_winner': self.series_winner,
            'date': _format_date(self.date),
            'time': self.time,
            'location': self.location,
            'description': self.description,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data.get('id'),
            tournament=data.get('tournament'),
            round=data['round'],
            team1=data.get('team1'),
            team2=data.get('team2'),
            group=data.get('group'),
            matchday=data.get('matchday'),
            bracket_id=data.get('bracket_id'),
            next_match_bracket_id=data.get('next_match_bracket_id'),
            status=data.get('status', SCHEDULED),
            score_team1=data.get('score_team1'),
            score_team2=data.get('score_team2'),
            winner=data.get('winner'),
            is_best_of_series=data.get('is_best_of_series', False),
            series_matches=[SeriesGame.from_dict(g) for g in data.get('series_matches') or []],
            series_score=data.get('series_score'),
            series_winner=data.get('series_winner'),
            date=data.get('date'),
            time=data.get('time'),
            location=data.get('location'),
            description=data.get('description'),
        )

    def __repr__(self):
        label = self.bracket_id or f"{self.group}/{self.matchday}"
        return f"Match({label}, {self.round}, {self.team1} vs {self.team2}, status={self.status})"
