"""Single entry point wiring the engine components around one session."""

from engine.bracket import BracketProgressor
from engine.configurator import TournamentConfig, TournamentConfigurator
from engine.dashboard import DashboardBuilder
from engine.directory import TeamDirectory
from engine.fixtures import FixtureGenerator
from engine.history import HistoryArchiver
from engine.results import ResultIngestor
from engine.scorers import PlayerStatsLedger
from engine.standings import StandingsEngine


class TournamentService:
    """Operations an organiser runs against a tournament.

    Every component shares the injected session, so a request sees one
    consistent view of the store.
    """

    def __init__(self, session):
        self.session = session
        self.directory = TeamDirectory(session)
        self.standings_engine = StandingsEngine(session)
        self.bracket = BracketProgressor(session, standings=self.standings_engine, directory=self.directory)
        self.configurator = TournamentConfigurator(session)
        self.fixtures = FixtureGenerator(session, directory=self.directory, bracket=self.bracket)
        self.results = ResultIngestor(session, standings=self.standings_engine, bracket=self.bracket)
        self.ledger = PlayerStatsLedger(session, directory=self.directory)
        self.archiver = HistoryArchiver(
            session, standings=self.standings_engine, directory=self.directory, ledger=self.ledger
        )
        self.dashboards = DashboardBuilder(
            session, standings=self.standings_engine, directory=self.directory, ledger=self.ledger
        )

    def create_tournament(self, config: TournamentConfig) -> int:
        return self.configurator.create(config).id

    def generate_fixture(self, tournament_id, confirm_replace: bool = False):
        return self.fixtures.generate(tournament_id, confirm_replace=confirm_replace)

    def list_fixture(self, tournament_id):
        return self.fixtures.list_fixture(tournament_id)

    def submit_result(self, match_id, score_home, score_away, tournament_id=None):
        return self.results.submit_result(match_id, score_home, score_away, tournament_id=tournament_id)

    def standings(self, tournament_id):
        return self.standings_engine.standings(tournament_id)

    def finalize_tournament(self, tournament_id):
        return self.archiver.finalize(tournament_id)

    def expand_next_round(self, tournament_id):
        return self.fixtures.expand_next_round(tournament_id)

    def team_statuses(self, tournament_id):
        return self.standings_engine.team_statuses(
            tournament_id, self.directory.enrolled_teams(tournament_id)
        )
