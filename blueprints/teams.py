from flask import Blueprint, jsonify, request

from models import Player, Team, db
from engine.history import HistoryArchiver
from engine.store import batch, get_or_raise

teams_bp = Blueprint('teams', __name__)


def _payload() -> dict:
    return request.get_json(silent=True) or {}


@teams_bp.route('/teams', methods=['GET'])
def list_teams():
    teams = Team.query.filter_by(is_active=True).order_by(Team.name.asc()).all()
    return jsonify([team.to_dict() for team in teams])


@teams_bp.route('/teams', methods=['POST'])
def create_team():
    name = (_payload().get('name') or '').strip()
    if name and Team.query.filter_by(name=name).first():
        raise ValueError(f'A team named {name!r} already exists')

    with batch(db.session, f'team {name!r}'):
        team = Team(name=name)
        db.session.add(team)
    return jsonify(team.to_dict()), 201


@teams_bp.route('/teams/<int:team_id>', methods=['GET'])
def team_detail(team_id):
    team = get_or_raise(db.session, Team, team_id)
    detail = team.to_dict()
    detail['players'] = [p.to_dict() for p in team.players if p.is_active]
    detail['tournaments'] = [t.to_dict() for t in team.get_tournaments()]
    return jsonify(detail)


@teams_bp.route('/teams/<int:team_id>/players', methods=['POST'])
def add_player(team_id):
    team = get_or_raise(db.session, Team, team_id)
    payload = _payload()
    name = (payload.get('name') or '').strip()
    if not name:
        raise ValueError('Player name is required')

    with batch(db.session, f'player {name!r}'):
        player = Player(name=name, number=payload.get('number'), team_id=team.id)
        db.session.add(player)
    return jsonify(player.to_dict()), 201


@teams_bp.route('/players/<int:player_id>', methods=['PATCH'])
def update_player(player_id):
    player = get_or_raise(db.session, Player, player_id)
    payload = _payload()
    with batch(db.session, f'player {player_id}'):
        player.update_player(
            name=payload.get('name'),
            number=payload.get('number'),
            is_active=payload.get('is_active'),
        )
    return jsonify(player.to_dict())


@teams_bp.route('/teams/<int:team_id>/history', methods=['GET'])
def team_history(team_id):
    snapshots = HistoryArchiver(db.session).team_history(team_id)
    return jsonify([snapshot.to_dict() for snapshot in snapshots])
