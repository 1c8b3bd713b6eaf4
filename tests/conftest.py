import pytest

from app import create_app
from engine import TournamentConfig, TournamentService
from models import db, Player, Team


@pytest.fixture
def flask_app():
    """Create test application with in-memory SQLite database"""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SECRET_KEY': 'test-secret-key',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(flask_app):
    """Test client"""
    return flask_app.test_client()


@pytest.fixture
def db_session(flask_app):
    """Database session for test fixtures"""
    return db.session


@pytest.fixture
def service(db_session):
    return TournamentService(db_session)


@pytest.fixture
def make_teams(db_session):
    """Create ``count`` teams named Team 01, Team 02, ... and return their ids"""

    def factory(count, prefix='Team'):
        teams = [Team(name=f'{prefix} {index:02d}') for index in range(1, count + 1)]
        db_session.add_all(teams)
        db_session.commit()
        return [team.id for team in teams]

    return factory


@pytest.fixture
def make_tournament(service, make_teams):
    """Create a tournament with ``count`` enrolled teams; returns (tournament_id, team_ids)"""

    def factory(count, format_choice=None, name='Test Cup', team_ids=None):
        team_ids = team_ids or make_teams(count)
        tournament_id = service.create_tournament(
            TournamentConfig(name=name, team_count=count, format_choice=format_choice)
        )
        for team_id in team_ids:
            service.directory.enroll(tournament_id, team_id)
        return tournament_id, team_ids

    return factory


@pytest.fixture
def player(db_session, make_teams):
    """Create a test player on a fresh team"""
    team_id = make_teams(1, prefix='Scorers')[0]
    player = Player(name='Test Player', number=9, team_id=team_id)
    db_session.add(player)
    db_session.commit()
    return player
