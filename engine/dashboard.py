"""Tournament overview for the whole field or for one team."""

from dataclasses import dataclass, field
from typing import Optional

from models import Match, PlayerTournamentStats, StandingsRecord, Team, Tournament
from engine.directory import TeamDirectory
from engine.errors import NotFound
from engine.scorers import PlayerStatsLedger
from engine.standings import StandingRow, StandingsEngine
from engine.store import get_or_raise

UPCOMING_LIMIT = 3
RECENT_LIMIT = 5
SCORERS_LIMIT = 5


@dataclass
class TournamentDashboard:
    tournament: Tournament
    team: Optional[Team]
    position: Optional[int]
    record: Optional[StandingsRecord]
    upcoming_matches: list[Match] = field(default_factory=list)
    recent_results: list[Match] = field(default_factory=list)
    top_scorers: list[PlayerTournamentStats] = field(default_factory=list)
    standings: list[StandingRow] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'tournament': self.tournament.to_dict(),
            'team': self.team.to_dict() if self.team else None,
            'position': self.position,
            'record': self.record.to_dict() if self.record else None,
            'upcoming_matches': [m.to_dict() for m in self.upcoming_matches],
            'recent_results': [m.to_dict() for m in self.recent_results],
            'top_scorers': [line.to_dict() for line in self.top_scorers],
            'standings': [row.to_dict() for row in self.standings],
        }


class DashboardBuilder:
    def __init__(self, session, standings: Optional[StandingsEngine] = None,
                 directory: Optional[TeamDirectory] = None, ledger: Optional[PlayerStatsLedger] = None):
        self.session = session
        self.standings = standings or StandingsEngine(session)
        self.directory = directory or TeamDirectory(session)
        self.ledger = ledger or PlayerStatsLedger(session, directory=self.directory)

    def build(self, tournament_id, team_id=None) -> TournamentDashboard:
        """Summarise a tournament; with ``team_id`` the view narrows to that team."""
        tournament = get_or_raise(self.session, Tournament, tournament_id)
        team = None
        if team_id is not None:
            team = get_or_raise(self.session, Team, team_id)
            if not self.directory.is_enrolled(tournament.id, team.id):
                raise NotFound(f'{team.name} is not enrolled in {tournament.name}')

        matches = list(tournament.matches)
        if team is not None:
            matches = [m for m in matches if m.involves(team.id)]

        upcoming = [m for m in matches if not m.is_played]
        upcoming.sort(key=lambda match: match.sequence)
        recent = [m for m in matches if m.is_played]
        recent.sort(key=lambda match: match.sequence, reverse=True)

        table = self.standings.standings(tournament.id)
        position = record = None
        if team is not None:
            for row in table:
                if row.team.id == team.id:
                    position, record = row.position, row.record
                    break

        return TournamentDashboard(
            tournament=tournament,
            team=team,
            position=position,
            record=record,
            upcoming_matches=upcoming[:UPCOMING_LIMIT],
            recent_results=recent[:RECENT_LIMIT],
            top_scorers=self.ledger.top_scorers(
                tournament.id, team_id=team.id if team else None, limit=SCORERS_LIMIT
            ),
            standings=table if team is None else [],
        )
