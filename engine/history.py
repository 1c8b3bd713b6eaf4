import logging
from typing import Optional

from models import HistorySnapshot, StandingsRecord, Team, Tournament, current_time
from engine.directory import TeamDirectory
from engine.scorers import PlayerStatsLedger
from engine.standings import StandingsEngine
from engine.store import batch, get_or_raise

logger = logging.getLogger(__name__)


class HistoryArchiver:
    """Copies final tournament records into the long-lived team history."""

    def __init__(self, session, standings: Optional[StandingsEngine] = None,
                 directory: Optional[TeamDirectory] = None, ledger: Optional[PlayerStatsLedger] = None):
        self.session = session
        self.standings = standings or StandingsEngine(session)
        self.directory = directory or TeamDirectory(session)
        self.ledger = ledger or PlayerStatsLedger(session, directory=self.directory)

    def finalize(self, tournament_id) -> list[HistorySnapshot]:
        """Append one snapshot per enrolled team.

        Calling it again appends another full set; earlier snapshots are
        never replaced.
        """
        tournament = get_or_raise(self.session, Tournament, tournament_id)
        enrolled = self.directory.enrolled_teams(tournament.id)
        enrolled_ids = {team.id for team in enrolled}

        ordered = [
            (team, record)
            for team, record in self.standings.ranking(tournament.id)
            if team.id in enrolled_ids
        ]
        ranked_ids = {team.id for team, _ in ordered}
        # Teams without a single result follow the ranked teams, by name.
        ordered.extend((team, None) for team in enrolled if team.id not in ranked_ids)

        archived_at = current_time()
        snapshots = []
        with batch(self.session, f'history of {tournament.name!r}'):
            for position, (team, record) in enumerate(ordered, start=1):
                record = record or StandingsRecord(tournament_id=tournament.id, team_id=team.id)
                scorer, scorer_goals = self.ledger.top_scorer(tournament.id, team.id)
                snapshot = HistorySnapshot(
                    team_id=team.id,
                    tournament_id=tournament.id,
                    archived_at=archived_at,
                    final_position=position,
                    played=record.played,
                    won=record.won,
                    drawn=record.drawn,
                    lost=record.lost,
                    goals_for=record.goals_for,
                    goals_against=record.goals_against,
                    points=record.points,
                    status=record.status,
                    top_scorer=scorer,
                    top_scorer_goals=scorer_goals,
                )
                self.session.add(snapshot)
                snapshots.append(snapshot)
            tournament.status = 'completed'

        logger.info('Finalized %s: %s history rows saved', tournament.name, len(snapshots))
        return snapshots

    def team_history(self, team_id) -> list[HistorySnapshot]:
        get_or_raise(self.session, Team, team_id)
        return (
            self.session.query(HistorySnapshot)
            .filter_by(team_id=team_id)
            .order_by(HistorySnapshot.archived_at.desc(), HistorySnapshot.id.desc())
            .all()
        )
