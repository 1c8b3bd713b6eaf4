"""Fixture generation for every tournament format."""

from dataclasses import dataclass
import logging
from typing import Optional

from models import Match, Tournament, TournamentFormat, TournamentType
from engine.directory import TeamDirectory
from engine.errors import (
    DestructiveRegeneration,
    RoundIncomplete,
    TournamentError,
    UnsupportedTeamCount,
)
from engine.store import batch, get_or_raise

logger = logging.getLogger(__name__)

F = TournamentFormat

LEAGUE_LEGS = {
    F.ROUND_ROBIN: 1,
    F.SINGLE_LEAGUE: 1,
    F.LARGE_LEAGUE: 1,
    F.DOUBLE_LEAGUE: 2,
}
GROUP_FORMATS = frozenset({F.MINI_GROUP_WITH_FINAL, F.GROUPS_WITH_FINAL, F.GROUPS_THEN_ELIMINATION, F.MULTIPLE_GROUPS})
FINAL_PLACEHOLDER_FORMATS = frozenset({F.MINI_GROUP_WITH_FINAL, F.GROUPS_WITH_FINAL})
ELIMINATION_FORMATS = frozenset({F.SINGLE_ELIMINATION, F.ELIMINATION_WITH_REPECHAGE, F.PHASED_ELIMINATION})

MIN_ELIMINATION_TEAMS = 4
MIN_GROUP_SIZE = 2
LEAGUE_PHASE = 'League'
FINAL_PHASE = 'Final'

ROUND_NAMES = {
    1: 'Final',
    2: 'Semifinal',
    4: 'Quarterfinal',
    8: 'Round of 16',
    16: 'Round of 32',
    32: 'Round of 64',
}


@dataclass(frozen=True)
class PlannedMatch:
    home_team_id: Optional[int]
    away_team_id: Optional[int]
    phase: str
    round_number: Optional[int] = None
    home_placeholder: Optional[str] = None
    away_placeholder: Optional[str] = None


def stage_name_for_round(matches_in_round: int, round_number: int) -> str:
    return ROUND_NAMES.get(matches_in_round, f'Round {round_number}')


def group_count(team_count: int) -> int:
    if team_count <= 8:
        return 2
    if team_count <= 12:
        return 3
    return 4


def group_label(index: int) -> str:
    return f"Group {chr(ord('A') + index)}"


def partition_groups(team_ids: list[int]) -> list[list[int]]:
    """Split teams into near-equal groups; the last group absorbs the remainder."""
    groups = group_count(len(team_ids))
    size = len(team_ids) // groups
    if size < MIN_GROUP_SIZE:
        raise UnsupportedTeamCount(
            f'{len(team_ids)} teams cannot fill {groups} groups of at least {MIN_GROUP_SIZE}'
        )
    partition = []
    for index in range(groups):
        end = len(team_ids) if index == groups - 1 else (index + 1) * size
        partition.append(team_ids[index * size:end])
    return partition


def round_robin(team_ids: list[int], legs: int = 1, phase: str = LEAGUE_PHASE) -> list[PlannedMatch]:
    """Every pair once per leg; the second leg swaps home and away."""
    planned = []
    for leg in range(legs):
        leg_phase = phase if legs == 1 else f"{phase} - {'First' if leg == 0 else 'Second'} leg"
        for i in range(len(team_ids)):
            for j in range(i + 1, len(team_ids)):
                home, away = (team_ids[i], team_ids[j]) if leg == 0 else (team_ids[j], team_ids[i])
                planned.append(PlannedMatch(home, away, leg_phase))
    return planned


def pair_sequentially(team_ids: list[int], round_number: int) -> list[PlannedMatch]:
    """Pair 1v2, 3v4, ... into one knockout round. Byes are never invented."""
    if len(team_ids) < 2 or len(team_ids) % 2:
        raise UnsupportedTeamCount(
            f'A knockout round needs an even number of teams, got {len(team_ids)}'
        )
    phase = stage_name_for_round(len(team_ids) // 2, round_number)
    return [
        PlannedMatch(team_ids[i], team_ids[i + 1], phase, round_number=round_number)
        for i in range(0, len(team_ids), 2)
    ]


def fold_pairs(seeds: list[int], round_number: int) -> list[PlannedMatch]:
    """Pair the first seed with the last, the second with the second-to-last, and so on."""
    if len(seeds) < 2 or len(seeds) % 2:
        raise UnsupportedTeamCount(f'Cannot seed a knockout round with {len(seeds)} qualifiers')
    half = len(seeds) // 2
    phase = stage_name_for_round(half, round_number)
    return [
        PlannedMatch(seeds[i], seeds[-(i + 1)], phase, round_number=round_number)
        for i in range(half)
    ]


def plan_fixture(tournament_format: TournamentFormat, team_ids: list[int]) -> list[PlannedMatch]:
    if len(team_ids) < 2:
        raise UnsupportedTeamCount('At least two enrolled teams are needed for a fixture')

    if tournament_format in LEAGUE_LEGS:
        return round_robin(team_ids, legs=LEAGUE_LEGS[tournament_format])

    if tournament_format in GROUP_FORMATS:
        planned = []
        groups = partition_groups(team_ids)
        for index, members in enumerate(groups):
            planned.extend(round_robin(members, phase=group_label(index)))
        if tournament_format in FINAL_PLACEHOLDER_FORMATS:
            if len(groups) == 2:
                placeholders = (f'Winner {group_label(0)}', f'Winner {group_label(1)}')
            else:
                placeholders = ('Finalist 1', 'Finalist 2')
            planned.append(PlannedMatch(None, None, FINAL_PHASE, None, *placeholders))
        return planned

    if tournament_format in ELIMINATION_FORMATS:
        if len(team_ids) < MIN_ELIMINATION_TEAMS or len(team_ids) % 2:
            raise UnsupportedTeamCount(
                f'Elimination needs an even number of at least {MIN_ELIMINATION_TEAMS} teams, '
                f'got {len(team_ids)}'
            )
        return pair_sequentially(team_ids, round_number=1)

    raise ValueError(f'No fixture rule for format {tournament_format!r}')


class FixtureGenerator:
    def __init__(self, session, directory: Optional[TeamDirectory] = None, bracket=None):
        self.session = session
        self.directory = directory or TeamDirectory(session)
        self.bracket = bracket

    def generate(self, tournament_id, confirm_replace: bool = False) -> list[Match]:
        tournament = get_or_raise(self.session, Tournament, tournament_id)
        if tournament.has_fixture and not confirm_replace:
            raise DestructiveRegeneration(
                f'Tournament {tournament.name!r} already has a fixture; confirm to replace it'
            )

        team_ids = [team.id for team in self.directory.enrolled_teams(tournament.id)]
        if len(team_ids) != tournament.team_count:
            logger.info(
                'Tournament %s expects %s teams but %s are enrolled',
                tournament.name, tournament.team_count, len(team_ids),
            )
        planned = plan_fixture(tournament.format, team_ids)

        with batch(self.session, f'fixture of {tournament.name!r}'):
            if tournament.has_fixture:
                logger.warning('Replacing fixture of %s; previous results are discarded', tournament.name)
                tournament.matches.clear()
                tournament.standings_records.clear()
                self.session.flush()
            self._append(tournament, planned, start=1)
            tournament.status = 'active'

        logger.info('Generated %s matches for %s', len(planned), tournament.name)
        return list(tournament.matches)

    def list_fixture(self, tournament_id) -> list[Match]:
        get_or_raise(self.session, Tournament, tournament_id)
        return (
            self.session.query(Match)
            .filter_by(tournament_id=tournament_id)
            .order_by(Match.sequence.asc(), Match.id.asc())
            .all()
        )

    def expand_next_round(self, tournament_id) -> list[Match]:
        """Create the next knockout round once the current one is fully played."""
        tournament = get_or_raise(self.session, Tournament, tournament_id)
        if not tournament.type.is_elimination_style:
            raise TournamentError(f'{tournament.format.label} has no knockout rounds')
        if not tournament.has_fixture:
            raise TournamentError('Generate the fixture first')

        knockout = [m for m in tournament.matches if m.round_number is not None]
        if knockout:
            planned = self._plan_following_round(knockout)
        elif tournament.type is TournamentType.GROUPS_THEN_ELIMINATION:
            planned = self._plan_from_groups(tournament)
        else:
            raise TournamentError('No knockout round to expand')

        next_sequence = max(m.sequence for m in tournament.matches) + 1
        with batch(self.session, f'next round of {tournament.name!r}'):
            created = self._append(tournament, planned, start=next_sequence)

        logger.info('Added %s (%s matches) to %s', planned[0].phase, len(planned), tournament.name)
        return created

    def _plan_following_round(self, knockout: list[Match]) -> list[PlannedMatch]:
        last_round = max(m.round_number for m in knockout)
        current = sorted((m for m in knockout if m.round_number == last_round), key=lambda m: m.sequence)
        if not all(m.is_played for m in current):
            raise RoundIncomplete(f'Round {last_round} still has unplayed matches')
        if len(current) == 1:
            raise TournamentError('The final has been played; the bracket is complete')
        return pair_sequentially([m.winner_id for m in current], round_number=last_round + 1)

    def _plan_from_groups(self, tournament: Tournament) -> list[PlannedMatch]:
        if any(m.phase == FINAL_PHASE for m in tournament.matches):
            raise TournamentError('This format reserves a final; assign its participants instead')
        if not all(m.is_played for m in tournament.matches):
            raise RoundIncomplete('The group stage still has unplayed matches')
        if self.bracket is None:
            raise TournamentError('Group qualifiers need a bracket progressor')

        qualifiers = self.bracket.group_qualifiers(tournament.id)
        per_group = min(len(group) for group in qualifiers.values())
        seeds = [group[place] for place in range(per_group) for group in qualifiers.values()]
        return fold_pairs(seeds, round_number=1)

    def _append(self, tournament: Tournament, planned: list[PlannedMatch], start: int) -> list[Match]:
        created = []
        for offset, entry in enumerate(planned):
            match = Match(
                home_team_id=entry.home_team_id,
                away_team_id=entry.away_team_id,
                phase=entry.phase,
                round_number=entry.round_number,
                sequence=start + offset,
                status='scheduled',
                home_score=None,
                away_score=None,
                home_placeholder=entry.home_placeholder,
                away_placeholder=entry.away_placeholder,
            )
            tournament.matches.append(match)
            created.append(match)
        self.session.flush()
        return created
