import logging
from typing import Optional

from models import Match
from engine.bracket import BracketProgressor
from engine.errors import InvalidResult, NotFound
from engine.standings import StandingsEngine
from engine.store import batch, get_or_raise

logger = logging.getLogger(__name__)


def _score_as_int(value, side: str) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise InvalidResult(f'{side} score must be a whole number')
    try:
        score = int(value)
    except (TypeError, ValueError):
        raise InvalidResult(f'{side} score must be a whole number') from None
    if score < 0:
        raise InvalidResult(f'{side} score cannot be negative')
    return score


class ResultIngestor:
    """Applies a reported score to a match, then to standings and the bracket."""

    def __init__(self, session, standings: Optional[StandingsEngine] = None,
                 bracket: Optional[BracketProgressor] = None):
        self.session = session
        self.standings = standings or StandingsEngine(session)
        self.bracket = bracket or BracketProgressor(session, standings=self.standings)

    def submit_result(self, match_id, score_home, score_away, tournament_id=None) -> Match:
        match = get_or_raise(self.session, Match, match_id)
        if tournament_id is not None and match.tournament_id != tournament_id:
            raise NotFound(f'Match {match_id} does not belong to tournament {tournament_id}')
        if not match.has_participants:
            raise InvalidResult('Both participants must be known before a result is entered')

        score_home = _score_as_int(score_home, 'Home')
        score_away = _score_as_int(score_away, 'Away')

        progresses_bracket = match.tournament.type.is_elimination_style and match.is_knockout
        if progresses_bracket and score_home == score_away:
            raise InvalidResult('A knockout match cannot end level; submit the deciding score')

        previous_loser_id = match.loser_id if match.is_played else None
        if match.is_played:
            # Earlier standings deltas stay applied; the new score is added on top.
            logger.warning(
                'Match %s re-submitted (%s-%s -> %s-%s); previous standings are not retracted',
                match.id, match.home_score, match.away_score, score_home, score_away,
            )

        with batch(self.session, f'result of match {match.id}'):
            match.home_score = score_home
            match.away_score = score_away
            match.status = 'played'
            self.standings.record_result(
                match.tournament_id, match.home_team_id, match.away_team_id, score_home, score_away
            )
            if progresses_bracket:
                self.bracket.advance(match, previous_loser_id=previous_loser_id)

        logger.info('Result recorded: %s', match.score_display)
        return match
