import logging

from models import Team, Tournament, TournamentTeam
from engine.errors import NotFound
from engine.store import get_or_raise

logger = logging.getLogger(__name__)

UNKNOWN_TEAM_NAME = 'Unknown team'


class TeamDirectory:
    """Resolves team names and the teams enrolled in a tournament."""

    def __init__(self, session):
        self.session = session

    def team_name(self, team_id) -> str:
        team = self.session.get(Team, team_id) if team_id is not None else None
        return team.name if team else UNKNOWN_TEAM_NAME

    def enrolled_teams(self, tournament_id) -> list[Team]:
        return (
            self.session.query(Team)
            .join(TournamentTeam, TournamentTeam.team_id == Team.id)
            .filter(TournamentTeam.tournament_id == tournament_id)
            .order_by(Team.name.asc())
            .all()
        )

    def is_enrolled(self, tournament_id, team_id) -> bool:
        return (
            self.session.query(TournamentTeam)
            .filter_by(tournament_id=tournament_id, team_id=team_id)
            .first()
            is not None
        )

    def enroll(self, tournament_id, team_id) -> TournamentTeam:
        tournament = get_or_raise(self.session, Tournament, tournament_id)
        team = get_or_raise(self.session, Team, team_id)
        assoc = tournament.add_team(team, session=self.session, auto_commit=True)
        logger.info('Enrolled %s in tournament %s', team.name, tournament.name)
        return assoc

    def withdraw(self, tournament_id, team_id) -> None:
        assoc = (
            self.session.query(TournamentTeam)
            .filter_by(tournament_id=tournament_id, team_id=team_id)
            .first()
        )
        if not assoc:
            raise NotFound(f'Team {team_id} is not enrolled in tournament {tournament_id}')
        self.session.delete(assoc)
        self.session.commit()
