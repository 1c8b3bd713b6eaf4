from datetime import datetime
import enum
import os

import pytz

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.orm import validates

db = SQLAlchemy()

LOCAL_TZ = pytz.timezone(os.environ.get('SQUAD_TIMEZONE', 'UTC'))

POINTS_WIN = 3
POINTS_DRAW = 1


def current_time():
    return datetime.now(LOCAL_TZ)


class TournamentFormat(enum.Enum):
    ROUND_ROBIN = 'round_robin'
    MINI_GROUP_WITH_FINAL = 'mini_group_with_final'
    SINGLE_LEAGUE = 'single_league'
    DOUBLE_LEAGUE = 'double_league'
    GROUPS_WITH_FINAL = 'groups_with_final'
    SINGLE_ELIMINATION = 'single_elimination'
    GROUPS_THEN_ELIMINATION = 'groups_then_elimination'
    ELIMINATION_WITH_REPECHAGE = 'elimination_with_repechage'
    LARGE_LEAGUE = 'large_league'
    MULTIPLE_GROUPS = 'multiple_groups'
    PHASED_ELIMINATION = 'phased_elimination'

    @property
    def label(self) -> str:
        return FORMAT_LABELS[self]


class TournamentType(enum.Enum):
    SINGLE_LEG = 'single_leg'
    DOUBLE_LEG = 'double_leg'
    ELIMINATION = 'elimination'
    GROUPS_THEN_ELIMINATION = 'groups_then_elimination'

    @property
    def is_elimination_style(self) -> bool:
        return self in (TournamentType.ELIMINATION, TournamentType.GROUPS_THEN_ELIMINATION)


FORMAT_LABELS = {
    TournamentFormat.ROUND_ROBIN: 'Round-robin',
    TournamentFormat.MINI_GROUP_WITH_FINAL: 'Mini group with final',
    TournamentFormat.SINGLE_LEAGUE: 'Single league',
    TournamentFormat.DOUBLE_LEAGUE: 'Double league',
    TournamentFormat.GROUPS_WITH_FINAL: 'Groups with final',
    TournamentFormat.SINGLE_ELIMINATION: 'Single elimination',
    TournamentFormat.GROUPS_THEN_ELIMINATION: 'Groups then elimination',
    TournamentFormat.ELIMINATION_WITH_REPECHAGE: 'Elimination with repechage',
    TournamentFormat.LARGE_LEAGUE: 'Large league',
    TournamentFormat.MULTIPLE_GROUPS: 'Multiple groups',
    TournamentFormat.PHASED_ELIMINATION: 'Phased elimination',
}


class Team(db.Model):
    __tablename__ = 'team'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=current_time)

    players = db.relationship('Player', backref='team', lazy=True, cascade='all, delete-orphan')
    tournament_teams = db.relationship('TournamentTeam', back_populates='team', lazy=True)

    def __repr__(self):  # pragma: no cover - debug helper
        return f"<Team {self.id} {self.name}>"

    @validates('name')
    def validate_name(self, key, value):
        if not value or not value.strip():
            raise ValueError('Team name is required')
        return value.strip()

    def get_tournaments(self):
        return [tt.tournament for tt in self.tournament_teams]

    def to_dict(self) -> dict:
        return {'id': self.id, 'name': self.name, 'is_active': self.is_active}


class Player(db.Model):
    __tablename__ = 'player'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    number = db.Column(db.Integer)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=current_time)

    def update_player(self, **kwargs):
        for field, value in kwargs.items():
            if hasattr(self, field) and value is not None:
                if isinstance(value, str) and value.strip() == '':
                    continue
                setattr(self, field, value)

    def to_dict(self) -> dict:
        return {'id': self.id, 'name': self.name, 'number': self.number, 'team_id': self.team_id}


class Tournament(db.Model):
    __tablename__ = 'tournament'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    team_count = db.Column(db.Integer, nullable=False)
    format = db.Column(db.Enum(TournamentFormat), nullable=False)
    type = db.Column(db.Enum(TournamentType), nullable=False)
    fixed_team_id = db.Column(db.Integer, db.ForeignKey('team.id'))
    status = db.Column(db.String(20), default='upcoming')  # upcoming, active, completed
    created_at = db.Column(db.DateTime, default=current_time)

    matches = db.relationship(
        'Match', backref='tournament', lazy=True, cascade='all, delete-orphan', order_by='Match.sequence'
    )
    tournament_teams = db.relationship(
        'TournamentTeam', backref='tournament', lazy=True, cascade='all, delete-orphan'
    )
    standings_records = db.relationship(
        'StandingsRecord', backref='tournament', lazy=True, cascade='all, delete-orphan'
    )
    fixed_team = db.relationship('Team', foreign_keys=[fixed_team_id])

    def __repr__(self):  # pragma: no cover - debug helper
        return f"<Tournament {self.id} {self.name}>"

    @validates('name')
    def validate_name(self, key, value):
        if not value or not value.strip():
            raise ValueError('Tournament name is required')
        return value.strip()

    @validates('team_count')
    def validate_team_count(self, key, value):
        if value is None or value < 2:
            raise ValueError('A tournament needs at least two teams')
        return value

    def get_teams(self):
        return [tt.team for tt in self.tournament_teams]

    @property
    def has_fixture(self) -> bool:
        return bool(self.matches)

    def add_team(self, team, session=None, auto_commit=False):
        """Enroll a team, refusing duplicates."""
        session = session or db.session
        existing = session.query(TournamentTeam).filter_by(tournament_id=self.id, team_id=team.id).first()
        if existing:
            raise ValueError('Team already associated with tournament')

        assoc = TournamentTeam(tournament=self, team=team)
        session.add(assoc)
        if auto_commit:
            session.commit()
        return assoc

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'team_count': self.team_count,
            'format': self.format.value,
            'format_label': self.format.label,
            'type': self.type.value,
            'fixed_team_id': self.fixed_team_id,
            'status': self.status,
            'enrolled': len(self.tournament_teams),
        }


class TournamentTeam(db.Model):
    """Enrollment of a team in a tournament."""

    __tablename__ = 'tournament_team'

    id = db.Column(db.Integer, primary_key=True)
    tournament_id = db.Column(db.Integer, db.ForeignKey('tournament.id'), nullable=False)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False)
    enrolled_at = db.Column(db.DateTime, default=current_time)

    __table_args__ = (db.UniqueConstraint('tournament_id', 'team_id', name='unique_tournament_team'),)

    team = db.relationship('Team', back_populates='tournament_teams')


class Match(db.Model):
    __tablename__ = 'match'

    id = db.Column(db.Integer, primary_key=True)
    tournament_id = db.Column(db.Integer, db.ForeignKey('tournament.id'), nullable=False)
    home_team_id = db.Column(db.Integer, db.ForeignKey('team.id'))
    away_team_id = db.Column(db.Integer, db.ForeignKey('team.id'))
    phase = db.Column(db.String(50))
    round_number = db.Column(db.Integer)
    sequence = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(20), default='scheduled')  # scheduled, played
    home_score = db.Column(db.Integer)
    away_score = db.Column(db.Integer)
    home_placeholder = db.Column(db.String(100))
    away_placeholder = db.Column(db.String(100))
    created_at = db.Column(db.DateTime, default=current_time)

    home_team = db.relationship('Team', foreign_keys=[home_team_id])
    away_team = db.relationship('Team', foreign_keys=[away_team_id])

    def __repr__(self):  # pragma: no cover - debug helper
        return f"<Match {self.id} {self.versus_display} status={self.status}>"

    @property
    def is_played(self) -> bool:
        return self.status == 'played'

    @property
    def is_knockout(self) -> bool:
        """Knockout matches carry a round number or close the tournament as its final."""
        return self.round_number is not None or (self.phase or '').lower() == 'final'

    @property
    def has_participants(self) -> bool:
        return self.home_team_id is not None and self.away_team_id is not None

    @property
    def versus_display(self):
        return f"{self._display_name(1)} vs {self._display_name(2)}"

    @property
    def score_display(self) -> str:
        if not self.is_played:
            return "Match not played"
        return f"{self._display_name(1)} {self.home_score} - {self.away_score} {self._display_name(2)}"

    @property
    def winner_id(self):
        if not self.is_played or self.home_score == self.away_score:
            return None
        return self.home_team_id if self.home_score > self.away_score else self.away_team_id

    @property
    def loser_id(self):
        winner = self.winner_id
        if winner is None:
            return None
        return self.away_team_id if winner == self.home_team_id else self.home_team_id

    def involves(self, team_id) -> bool:
        return team_id in (self.home_team_id, self.away_team_id)

    def _display_name(self, slot: int) -> str:
        team = self.home_team if slot == 1 else self.away_team
        placeholder = self.home_placeholder if slot == 1 else self.away_placeholder
        if team:
            return team.name
        if placeholder:
            return placeholder
        return 'TBD'

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'tournament_id': self.tournament_id,
            'home_team_id': self.home_team_id,
            'away_team_id': self.away_team_id,
            'versus': self.versus_display,
            'phase': self.phase,
            'round_number': self.round_number,
            'status': self.status,
            'home_score': self.home_score,
            'away_score': self.away_score,
        }


class StandingsRecord(db.Model):
    """Cumulative per-team record inside one tournament."""

    __tablename__ = 'standings_record'

    id = db.Column(db.Integer, primary_key=True)
    tournament_id = db.Column(db.Integer, db.ForeignKey('tournament.id'), nullable=False)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False)
    played = db.Column(db.Integer, default=0, nullable=False)
    won = db.Column(db.Integer, default=0, nullable=False)
    drawn = db.Column(db.Integer, default=0, nullable=False)
    lost = db.Column(db.Integer, default=0, nullable=False)
    goals_for = db.Column(db.Integer, default=0, nullable=False)
    goals_against = db.Column(db.Integer, default=0, nullable=False)
    points = db.Column(db.Integer, default=0, nullable=False)
    status = db.Column(db.String(20), default='active', nullable=False)  # active, eliminated
    updated_at = db.Column(db.DateTime, default=current_time, onupdate=current_time)

    __table_args__ = (db.UniqueConstraint('tournament_id', 'team_id', name='unique_standings_record'),)

    team = db.relationship('Team')

    def __init__(self, **kwargs):
        for field in ('played', 'won', 'drawn', 'lost', 'goals_for', 'goals_against', 'points'):
            kwargs.setdefault(field, 0)
        kwargs.setdefault('status', 'active')
        super().__init__(**kwargs)

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    def apply(self, scored: int, conceded: int) -> None:
        self.played += 1
        self.goals_for += scored
        self.goals_against += conceded
        if scored > conceded:
            self.won += 1
            self.points += POINTS_WIN
        elif scored == conceded:
            self.drawn += 1
            self.points += POINTS_DRAW
        else:
            self.lost += 1

    def to_dict(self) -> dict:
        return {
            'team_id': self.team_id,
            'played': self.played,
            'won': self.won,
            'drawn': self.drawn,
            'lost': self.lost,
            'goals_for': self.goals_for,
            'goals_against': self.goals_against,
            'goal_difference': self.goal_difference,
            'points': self.points,
            'status': self.status,
        }


class PlayerTournamentStats(db.Model):
    __tablename__ = 'player_tournament_stats'

    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    tournament_id = db.Column(db.Integer, db.ForeignKey('tournament.id'), nullable=False)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False)
    goals = db.Column(db.Integer, default=0, nullable=False)
    assists = db.Column(db.Integer, default=0, nullable=False)
    yellow_cards = db.Column(db.Integer, default=0, nullable=False)
    red_cards = db.Column(db.Integer, default=0, nullable=False)
    minutes_played = db.Column(db.Integer, default=0, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('player_id', 'tournament_id', 'team_id', name='unique_player_tournament_stats'),
    )

    player = db.relationship('Player')
    team = db.relationship('Team')

    def to_dict(self) -> dict:
        return {
            'player_id': self.player_id,
            'player': self.player.name if self.player else None,
            'team_id': self.team_id,
            'team': self.team.name if self.team else None,
            'goals': self.goals,
            'assists': self.assists,
            'yellow_cards': self.yellow_cards,
            'red_cards': self.red_cards,
            'minutes_played': self.minutes_played,
        }


class HistorySnapshot(db.Model):
    """Append-only copy of a team's final tournament record."""

    __tablename__ = 'history_snapshot'

    id = db.Column(db.Integer, primary_key=True)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False)
    tournament_id = db.Column(db.Integer, db.ForeignKey('tournament.id'), nullable=False)
    archived_at = db.Column(db.DateTime, default=current_time, nullable=False)
    final_position = db.Column(db.Integer, nullable=False)
    played = db.Column(db.Integer, nullable=False)
    won = db.Column(db.Integer, nullable=False)
    drawn = db.Column(db.Integer, nullable=False)
    lost = db.Column(db.Integer, nullable=False)
    goals_for = db.Column(db.Integer, nullable=False)
    goals_against = db.Column(db.Integer, nullable=False)
    points = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False)
    top_scorer = db.Column(db.String(100))
    top_scorer_goals = db.Column(db.Integer, default=0)

    team = db.relationship('Team')
    tournament = db.relationship('Tournament')

    def to_dict(self) -> dict:
        return {
            'team_id': self.team_id,
            'tournament_id': self.tournament_id,
            'tournament': self.tournament.name if self.tournament else None,
            'archived_at': self.archived_at.isoformat() if self.archived_at else None,
            'final_position': self.final_position,
            'played': self.played,
            'won': self.won,
            'drawn': self.drawn,
            'lost': self.lost,
            'goals_for': self.goals_for,
            'goals_against': self.goals_against,
            'goal_difference': self.goals_for - self.goals_against,
            'points': self.points,
            'status': self.status,
            'top_scorer': self.top_scorer,
            'top_scorer_goals': self.top_scorer_goals,
        }
