"""Elimination progression for knockout matches."""

import enum
import logging
from typing import Optional

from models import Match, Tournament
from engine.directory import TeamDirectory
from engine.errors import InvalidResult, NotFound, TournamentError
from engine.standings import StandingsEngine
from engine.store import batch, get_or_raise

logger = logging.getLogger(__name__)


class RoundState(enum.Enum):
    OPEN = 'open'
    COMPLETE = 'complete'
    NEXT_ROUND_GENERATED = 'next_round_generated'
    FINISHED = 'finished'


class BracketProgressor:
    """Marks knockout losers eliminated.

    Next rounds and reserved finals are never filled in here; the operator
    triggers ``FixtureGenerator.expand_next_round`` or :meth:`assign_final`.
    """

    def __init__(self, session, standings: Optional[StandingsEngine] = None,
                 directory: Optional[TeamDirectory] = None):
        self.session = session
        self.standings = standings or StandingsEngine(session)
        self.directory = directory or TeamDirectory(session)

    def advance(self, match: Match, previous_loser_id=None):
        """Eliminate the loser of a played knockout match. Returns (winner_id, loser_id).

        When a corrected score flips the winner, ``previous_loser_id`` is put
        back in the competition.
        """
        if match.home_score == match.away_score:
            raise InvalidResult('A knockout match cannot end level; submit the deciding score')

        winner_id, loser_id = match.winner_id, match.loser_id
        if previous_loser_id is not None and previous_loser_id != loser_id:
            self.standings.record_for(match.tournament_id, previous_loser_id).status = 'active'
            logger.warning(
                'Corrected result reinstates %s', self.directory.team_name(previous_loser_id)
            )
        loser = self.standings.record_for(match.tournament_id, loser_id)
        loser.status = 'eliminated'

        logger.info(
            '%s advances, %s is eliminated',
            self.directory.team_name(winner_id), self.directory.team_name(loser_id),
        )
        return winner_id, loser_id

    def round_state(self, tournament_id, round_number: Optional[int] = None) -> RoundState:
        tournament = get_or_raise(self.session, Tournament, tournament_id)
        knockout = [m for m in tournament.matches if m.is_knockout]
        if not knockout:
            raise TournamentError(f'{tournament.name} has no knockout matches yet')

        rounds = sorted({m.round_number for m in knockout if m.round_number is not None})
        if round_number is None:
            round_number = rounds[-1] if rounds else None

        if round_number is None:
            current = [m for m in knockout if m.round_number is None]
        else:
            current = [m for m in knockout if m.round_number == round_number]
            if not current:
                raise NotFound(f'Round {round_number} does not exist')
            if rounds and round_number < rounds[-1]:
                return RoundState.NEXT_ROUND_GENERATED

        if not all(m.is_played for m in current):
            return RoundState.OPEN
        if len(current) == 1:
            return RoundState.FINISHED
        return RoundState.COMPLETE

    def assign_final(self, match_id, home_team_id, away_team_id, tournament_id=None) -> Match:
        """Fill a reserved final once the group qualifiers are known."""
        match = get_or_raise(self.session, Match, match_id)
        if tournament_id is not None and match.tournament_id != tournament_id:
            raise NotFound(f'Match {match_id} does not belong to tournament {tournament_id}')
        if match.is_played:
            raise InvalidResult('The final has already been played')
        if (match.phase or '').lower() != 'final' or match.round_number is not None:
            raise TournamentError('Only a reserved final can be assigned by hand')
        if home_team_id == away_team_id:
            raise InvalidResult('A team cannot play against itself')
        for team_id in (home_team_id, away_team_id):
            if not self.directory.is_enrolled(match.tournament_id, team_id):
                raise NotFound(f'Team {team_id} is not enrolled in this tournament')

        with batch(self.session, f'final participants of match {match.id}'):
            match.home_team_id = home_team_id
            match.away_team_id = away_team_id
            match.home_placeholder = None
            match.away_placeholder = None
        return match

    def group_qualifiers(self, tournament_id, per_group: int = 2) -> dict[str, list[int]]:
        """Top ``per_group`` team ids of each group, by the standings ranking."""
        tournament = get_or_raise(self.session, Tournament, tournament_id)
        members: dict[str, set] = {}
        for match in tournament.matches:
            if match.is_knockout or not (match.phase or '').startswith('Group'):
                continue
            members.setdefault(match.phase, set()).update({match.home_team_id, match.away_team_id})

        if not members:
            raise TournamentError(f'{tournament.name} has no group stage')

        qualifiers = {}
        for label in sorted(members):
            ranked = self.standings.ranking(tournament_id, team_ids=members[label])
            qualifiers[label] = [team.id for team, _ in ranked[:per_group]]
        return qualifiers
