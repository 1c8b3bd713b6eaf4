"""Per-tournament player statistics and scorer tables."""

import logging
from typing import Optional

from models import Player, PlayerTournamentStats, Tournament
from engine.directory import TeamDirectory
from engine.errors import InvalidResult, NotFound
from engine.store import batch, get_or_raise

logger = logging.getLogger(__name__)

STAT_FIELDS = ('goals', 'assists', 'yellow_cards', 'red_cards', 'minutes_played')


def _checked_values(stats: dict) -> dict:
    unknown = set(stats) - set(STAT_FIELDS)
    if unknown:
        raise InvalidResult(f"Unknown statistics: {', '.join(sorted(unknown))}")
    values = {}
    for field, value in stats.items():
        if value is None:
            continue
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise InvalidResult(f'{field} must be a non-negative whole number')
        values[field] = value
    return values


class PlayerStatsLedger:
    def __init__(self, session, directory: Optional[TeamDirectory] = None):
        self.session = session
        self.directory = directory or TeamDirectory(session)

    def _enrolled_player(self, tournament_id, player_id) -> Player:
        get_or_raise(self.session, Tournament, tournament_id)
        player = get_or_raise(self.session, Player, player_id)
        if not self.directory.is_enrolled(tournament_id, player.team_id):
            raise NotFound(f'{player.name} plays for a team not enrolled in this tournament')
        return player

    def _line_for(self, tournament_id, player: Player) -> Optional[PlayerTournamentStats]:
        return (
            self.session.query(PlayerTournamentStats)
            .filter_by(player_id=player.id, tournament_id=tournament_id, team_id=player.team_id)
            .first()
        )

    def _existing_line(self, tournament_id, player_id):
        player = self._enrolled_player(tournament_id, player_id)
        line = self._line_for(tournament_id, player)
        if line is None:
            raise NotFound(f'{player.name} has no statistics in tournament {tournament_id}')
        return player, line

    def record(self, tournament_id, player_id, **stats) -> PlayerTournamentStats:
        """Add one match worth of statistics to the player's tournament totals."""
        player = self._enrolled_player(tournament_id, player_id)
        increments = _checked_values(stats)

        with batch(self.session, f'statistics of {player.name}'):
            line = self._line_for(tournament_id, player)
            if line is None:
                line = PlayerTournamentStats(
                    player_id=player.id,
                    tournament_id=tournament_id,
                    team_id=player.team_id,
                    **{field: 0 for field in STAT_FIELDS},
                )
                self.session.add(line)
            for field, value in increments.items():
                setattr(line, field, getattr(line, field) + value)
        logger.debug('Statistics for %s in tournament %s: %s', player.name, tournament_id, increments)
        return line

    def update(self, tournament_id, player_id, **stats) -> PlayerTournamentStats:
        """Overwrite recorded totals with corrected values.

        Only the fields passed are changed. The player must already have a
        statistics line in the tournament.
        """
        values = _checked_values(stats)
        player, line = self._existing_line(tournament_id, player_id)
        with batch(self.session, f'correction of statistics of {player.name}'):
            for field, value in values.items():
                setattr(line, field, value)
        logger.info('Corrected statistics for %s in tournament %s: %s', player.name, tournament_id, values)
        return line

    def remove(self, tournament_id, player_id):
        player, line = self._existing_line(tournament_id, player_id)
        with batch(self.session, f'removal of statistics of {player.name}'):
            self.session.delete(line)
        logger.info('Removed statistics for %s in tournament %s', player.name, tournament_id)

    def top_scorers(self, tournament_id, team_id=None, limit: int = 10) -> list[PlayerTournamentStats]:
        query = self.session.query(PlayerTournamentStats).filter_by(tournament_id=tournament_id)
        if team_id is not None:
            query = query.filter_by(team_id=team_id)
        return (
            query.order_by(
                PlayerTournamentStats.goals.desc(),
                PlayerTournamentStats.assists.desc(),
                PlayerTournamentStats.id.asc(),
            )
            .limit(limit)
            .all()
        )

    def top_scorer(self, tournament_id, team_id):
        """Best scorer of a team as (name, goals), or (None, 0) without statistics."""
        best = self.top_scorers(tournament_id, team_id=team_id, limit=1)
        if not best:
            return None, 0
        return best[0].player.name, best[0].goals
