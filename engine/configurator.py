"""Format selection by team count and tournament creation."""

from dataclasses import dataclass
import logging
from typing import Optional, Union

from models import Team, Tournament, TournamentFormat, TournamentType, HistorySnapshot, PlayerTournamentStats
from engine.errors import DestructiveRegeneration, InvalidFormatForTeamCount
from engine.store import batch, get_or_raise

logger = logging.getLogger(__name__)

F = TournamentFormat

# (lowest team count, highest team count or None, formats in menu order)
FORMAT_BANDS = (
    (4, 6, (F.ROUND_ROBIN, F.MINI_GROUP_WITH_FINAL)),
    (7, 12, (F.SINGLE_LEAGUE, F.DOUBLE_LEAGUE, F.GROUPS_WITH_FINAL, F.SINGLE_ELIMINATION)),
    (13, 20, (F.GROUPS_THEN_ELIMINATION, F.ELIMINATION_WITH_REPECHAGE, F.LARGE_LEAGUE)),
    (21, None, (F.MULTIPLE_GROUPS, F.PHASED_ELIMINATION)),
)

# Counts below the first band have no menu; they get a plain round-robin.
DEFAULT_FORMAT = F.ROUND_ROBIN

FORMAT_TYPES = {
    F.ROUND_ROBIN: TournamentType.DOUBLE_LEG,
    F.MINI_GROUP_WITH_FINAL: TournamentType.GROUPS_THEN_ELIMINATION,
    F.SINGLE_LEAGUE: TournamentType.SINGLE_LEG,
    F.DOUBLE_LEAGUE: TournamentType.DOUBLE_LEG,
    F.GROUPS_WITH_FINAL: TournamentType.GROUPS_THEN_ELIMINATION,
    F.SINGLE_ELIMINATION: TournamentType.ELIMINATION,
    F.GROUPS_THEN_ELIMINATION: TournamentType.GROUPS_THEN_ELIMINATION,
    F.ELIMINATION_WITH_REPECHAGE: TournamentType.ELIMINATION,
    F.LARGE_LEAGUE: TournamentType.DOUBLE_LEG,
    F.MULTIPLE_GROUPS: TournamentType.GROUPS_THEN_ELIMINATION,
    F.PHASED_ELIMINATION: TournamentType.ELIMINATION,
}

FormatChoice = Union[TournamentFormat, str, int, None]


@dataclass
class TournamentConfig:
    name: str
    team_count: int
    format_choice: FormatChoice = None
    fixed_team_id: Optional[int] = None


def allowed_formats(team_count: int) -> tuple[TournamentFormat, ...]:
    """Formats offered for ``team_count``; empty below the first band."""
    for low, high, formats in FORMAT_BANDS:
        if team_count >= low and (high is None or team_count <= high):
            return formats
    return ()


def type_for_format(tournament_format: TournamentFormat) -> TournamentType:
    return FORMAT_TYPES[tournament_format]


def _coerce_choice(choice: FormatChoice, formats: tuple[TournamentFormat, ...]) -> TournamentFormat:
    """Turn a menu option (1-based), format value or enum into a band member."""
    if choice is None:
        raise InvalidFormatForTeamCount('No format chosen')

    if isinstance(choice, TournamentFormat):
        selected = choice
    elif isinstance(choice, int) or (isinstance(choice, str) and choice.strip().isdigit()):
        option = int(choice)
        if option < 1 or option > len(formats):
            raise InvalidFormatForTeamCount(f'Option {option} is not on the menu')
        selected = formats[option - 1]
    else:
        try:
            selected = TournamentFormat(str(choice).strip().lower())
        except ValueError:
            raise InvalidFormatForTeamCount(f'Unknown format {choice!r}') from None

    if selected not in formats:
        raise InvalidFormatForTeamCount(f'{selected.label} is not available for this team count')
    return selected


def resolve_format(team_count: int, choice: FormatChoice = None) -> tuple[TournamentFormat, TournamentType]:
    """Pick the format for ``team_count``, falling back to the band's first format."""
    formats = allowed_formats(team_count)
    if not formats:
        logger.warning('No format band for %s teams; using %s', team_count, DEFAULT_FORMAT.label)
        return DEFAULT_FORMAT, type_for_format(DEFAULT_FORMAT)

    try:
        selected = _coerce_choice(choice, formats)
    except InvalidFormatForTeamCount as exc:
        selected = formats[0]
        logger.warning('%s; falling back to %s', exc, selected.label)

    return selected, type_for_format(selected)


class TournamentConfigurator:
    def __init__(self, session):
        self.session = session

    def create(self, config: TournamentConfig) -> Tournament:
        fixed_team = None
        if config.fixed_team_id is not None:
            fixed_team = get_or_raise(self.session, Team, config.fixed_team_id)

        tournament_format, tournament_type = resolve_format(config.team_count, config.format_choice)

        with batch(self.session, f'tournament {config.name!r}'):
            tournament = Tournament(
                name=config.name,
                team_count=config.team_count,
                format=tournament_format,
                type=tournament_type,
                fixed_team_id=fixed_team.id if fixed_team else None,
            )
            self.session.add(tournament)
            self.session.flush()
            if fixed_team:
                tournament.add_team(fixed_team, session=self.session)

        logger.info(
            'Created tournament %s (%s teams, %s / %s)',
            tournament.name, tournament.team_count, tournament_format.label, tournament_type.value,
        )
        return tournament

    def change_format(self, tournament_id, choice: FormatChoice, team_count: Optional[int] = None) -> Tournament:
        """Re-run the band lookup; refused once a fixture exists."""
        tournament = get_or_raise(self.session, Tournament, tournament_id)
        if tournament.has_fixture:
            raise DestructiveRegeneration(
                'Tournament already has a fixture; regenerate it after changing the format'
            )

        with batch(self.session, f'format of {tournament.name!r}'):
            if team_count is not None:
                tournament.team_count = team_count
            tournament.format, tournament.type = resolve_format(tournament.team_count, choice)
        return tournament

    def change_fixed_team(self, tournament_id, team_id: Optional[int]) -> Tournament:
        """Point the tournament at another fixed team, or clear it with ``None``.

        A fixed team that is not yet enrolled gets enrolled, which is refused
        once a fixture exists.
        """
        tournament = get_or_raise(self.session, Tournament, tournament_id)
        team = get_or_raise(self.session, Team, team_id) if team_id is not None else None
        enrolled = team is not None and any(tt.team_id == team.id for tt in tournament.tournament_teams)
        if team is not None and not enrolled and tournament.has_fixture:
            raise DestructiveRegeneration(
                f'{team.name} is not in the fixture; regenerate it after changing the fixed team'
            )

        with batch(self.session, f'fixed team of {tournament.name!r}'):
            tournament.fixed_team_id = team.id if team else None
            if team is not None and not enrolled:
                tournament.add_team(team, session=self.session)
        logger.info('Fixed team of %s is now %s', tournament.name, team.name if team else 'none')
        return tournament

    def rename(self, tournament_id, name: str) -> Tournament:
        tournament = get_or_raise(self.session, Tournament, tournament_id)
        with batch(self.session, f'name of tournament {tournament_id}'):
            tournament.name = name
        return tournament

    def delete(self, tournament_id) -> None:
        tournament = get_or_raise(self.session, Tournament, tournament_id)
        with batch(self.session, f'deletion of {tournament.name!r}'):
            for model in (HistorySnapshot, PlayerTournamentStats):
                for row in self.session.query(model).filter_by(tournament_id=tournament.id).all():
                    self.session.delete(row)
            self.session.delete(tournament)
        logger.info('Deleted tournament %s', tournament_id)

    def list_all(self) -> list[Tournament]:
        return self.session.query(Tournament).order_by(Tournament.id.asc()).all()
