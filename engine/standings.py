"""Cumulative standings and ranking."""

from dataclasses import dataclass

from models import StandingsRecord, Team, Tournament
from engine.store import get_or_raise


@dataclass
class StandingRow:
    position: int
    team: Team
    record: StandingsRecord

    def to_dict(self) -> dict:
        row = {'position': self.position, 'team': self.team.name}
        row.update(self.record.to_dict())
        return row


def ranking_key(record: StandingsRecord, team_name: str):
    return (-record.points, -record.goal_difference, -record.goals_for, team_name)


class StandingsEngine:
    def __init__(self, session):
        self.session = session

    def record_for(self, tournament_id, team_id, create: bool = True):
        record = (
            self.session.query(StandingsRecord)
            .filter_by(tournament_id=tournament_id, team_id=team_id)
            .first()
        )
        if record is None and create:
            record = StandingsRecord(tournament_id=tournament_id, team_id=team_id)
            self.session.add(record)
        return record

    def record_result(self, tournament_id, team_a, team_b, score_a: int, score_b: int):
        """Apply one result to both sides.

        Records are created on first use. Nothing is committed here; the
        caller owns the batch so both sides land together.
        """
        record_a = self.record_for(tournament_id, team_a)
        record_b = self.record_for(tournament_id, team_b)
        record_a.apply(score_a, score_b)
        record_b.apply(score_b, score_a)
        self.session.flush()
        return record_a, record_b

    def ranking(self, tournament_id, team_ids=None) -> list[tuple[Team, StandingsRecord]]:
        """Teams with a record ordered by points, goal difference, goals for, then name.

        Recomputed from the stored records on every call.
        """
        query = (
            self.session.query(StandingsRecord, Team)
            .join(Team, StandingsRecord.team_id == Team.id)
            .filter(StandingsRecord.tournament_id == tournament_id)
        )
        if team_ids is not None:
            query = query.filter(StandingsRecord.team_id.in_(list(team_ids)))
        rows = query.all()
        rows.sort(key=lambda pair: ranking_key(pair[0], pair[1].name))
        return [(team, record) for record, team in rows]

    def standings(self, tournament_id) -> list[StandingRow]:
        get_or_raise(self.session, Tournament, tournament_id)
        return [
            StandingRow(position=index, team=team, record=record)
            for index, (team, record) in enumerate(self.ranking(tournament_id), start=1)
        ]

    def position_of(self, tournament_id, team_id):
        for row in self.standings(tournament_id):
            if row.team.id == team_id:
                return row.position
        return None

    def team_statuses(self, tournament_id, enrolled_teams) -> list[dict]:
        """Active/eliminated state of every enrolled team; teams without results are active."""
        records = {
            record.team_id: record
            for record in self.session.query(StandingsRecord).filter_by(tournament_id=tournament_id)
        }
        return [
            {
                'team_id': team.id,
                'team': team.name,
                'status': records[team.id].status if team.id in records else 'active',
            }
            for team in enrolled_teams
        ]
