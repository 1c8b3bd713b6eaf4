"""JSON routes for organising tournaments: setup, fixtures, results and archives."""

from flask import Blueprint, jsonify, request

from models import Tournament, db
from engine.bracket import RoundState
from engine.configurator import TournamentConfig, allowed_formats, type_for_format
from engine.service import TournamentService
from engine.store import get_or_raise

tournaments_bp = Blueprint('tournaments', __name__, url_prefix='/tournaments')


def _service() -> TournamentService:
    return TournamentService(db.session)


def _payload() -> dict:
    return request.get_json(silent=True) or {}


def _int_field(payload: dict, key: str, required: bool = True):
    value = payload.get(key)
    if value is None:
        if required:
            raise ValueError(f'{key} is required')
        return None
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError(f'{key} must be a whole number')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f'{key} must be a whole number') from None


@tournaments_bp.route('', methods=['GET'])
def list_tournaments():
    tournaments = _service().configurator.list_all()
    return jsonify([t.to_dict() for t in tournaments])


@tournaments_bp.route('', methods=['POST'])
def create_tournament():
    payload = _payload()
    config = TournamentConfig(
        name=payload.get('name') or '',
        team_count=_int_field(payload, 'team_count'),
        format_choice=payload.get('format'),
        fixed_team_id=_int_field(payload, 'fixed_team_id', required=False),
    )
    service = _service()
    tournament_id = service.create_tournament(config)
    tournament = get_or_raise(db.session, Tournament, tournament_id)
    return jsonify(tournament.to_dict()), 201


@tournaments_bp.route('/formats', methods=['GET'])
def format_menu():
    team_count = request.args.get('team_count', type=int)
    if team_count is None:
        raise ValueError('team_count is required')
    return jsonify([
        {
            'option': index,
            'format': fmt.value,
            'label': fmt.label,
            'type': type_for_format(fmt).value,
        }
        for index, fmt in enumerate(allowed_formats(team_count), start=1)
    ])


@tournaments_bp.route('/<int:tournament_id>', methods=['GET'])
def tournament_detail(tournament_id):
    tournament = get_or_raise(db.session, Tournament, tournament_id)
    detail = tournament.to_dict()
    detail['teams'] = [team.to_dict() for team in tournament.get_teams()]
    return jsonify(detail)


@tournaments_bp.route('/<int:tournament_id>', methods=['PATCH'])
def rename_tournament(tournament_id):
    tournament = _service().configurator.rename(tournament_id, _payload().get('name') or '')
    return jsonify(tournament.to_dict())


@tournaments_bp.route('/<int:tournament_id>', methods=['DELETE'])
def delete_tournament(tournament_id):
    _service().configurator.delete(tournament_id)
    return '', 204


@tournaments_bp.route('/<int:tournament_id>/format', methods=['PUT'])
def change_format(tournament_id):
    payload = _payload()
    tournament = _service().configurator.change_format(
        tournament_id,
        payload.get('format'),
        team_count=_int_field(payload, 'team_count', required=False),
    )
    return jsonify(tournament.to_dict())


@tournaments_bp.route('/<int:tournament_id>/fixed-team', methods=['PUT'])
def change_fixed_team(tournament_id):
    team_id = _int_field(_payload(), 'team_id', required=False)
    tournament = _service().configurator.change_fixed_team(tournament_id, team_id)
    return jsonify(tournament.to_dict())


@tournaments_bp.route('/<int:tournament_id>/teams', methods=['GET'])
def team_statuses(tournament_id):
    get_or_raise(db.session, Tournament, tournament_id)
    return jsonify(_service().team_statuses(tournament_id))


@tournaments_bp.route('/<int:tournament_id>/teams', methods=['POST'])
def enroll_team(tournament_id):
    team_id = _int_field(_payload(), 'team_id')
    _service().directory.enroll(tournament_id, team_id)
    return jsonify({'tournament_id': tournament_id, 'team_id': team_id}), 201


@tournaments_bp.route('/<int:tournament_id>/teams/<int:team_id>', methods=['DELETE'])
def withdraw_team(tournament_id, team_id):
    _service().directory.withdraw(tournament_id, team_id)
    return '', 204


@tournaments_bp.route('/<int:tournament_id>/fixture', methods=['GET'])
def list_fixture(tournament_id):
    return jsonify([m.to_dict() for m in _service().list_fixture(tournament_id)])


@tournaments_bp.route('/<int:tournament_id>/fixture', methods=['POST'])
def generate_fixture(tournament_id):
    # Only a JSON true confirms replacement.
    confirm = _payload().get('confirm_replace') is True
    matches = _service().generate_fixture(tournament_id, confirm_replace=confirm)
    return jsonify([m.to_dict() for m in matches]), 201


@tournaments_bp.route('/<int:tournament_id>/rounds', methods=['POST'])
def expand_next_round(tournament_id):
    matches = _service().expand_next_round(tournament_id)
    return jsonify([m.to_dict() for m in matches]), 201


@tournaments_bp.route('/<int:tournament_id>/rounds/state', methods=['GET'])
def round_state(tournament_id):
    round_number = request.args.get('round', type=int)
    state: RoundState = _service().bracket.round_state(tournament_id, round_number)
    return jsonify({'round': round_number, 'state': state.value})


@tournaments_bp.route('/<int:tournament_id>/matches/<int:match_id>/participants', methods=['PUT'])
def assign_final(tournament_id, match_id):
    payload = _payload()
    match = _service().bracket.assign_final(
        match_id,
        _int_field(payload, 'home_team_id'),
        _int_field(payload, 'away_team_id'),
        tournament_id=tournament_id,
    )
    return jsonify(match.to_dict())


@tournaments_bp.route('/<int:tournament_id>/matches/<int:match_id>/result', methods=['POST'])
def submit_result(tournament_id, match_id):
    payload = _payload()
    if 'home_score' not in payload or 'away_score' not in payload:
        raise ValueError('home_score and away_score are required')
    match = _service().submit_result(
        match_id, payload['home_score'], payload['away_score'], tournament_id=tournament_id
    )
    return jsonify(match.to_dict())


@tournaments_bp.route('/<int:tournament_id>/standings', methods=['GET'])
def standings(tournament_id):
    return jsonify([row.to_dict() for row in _service().standings(tournament_id)])


@tournaments_bp.route('/<int:tournament_id>/players/<int:player_id>/stats', methods=['POST'])
def record_player_stats(tournament_id, player_id):
    line = _service().ledger.record(tournament_id, player_id, **_payload())
    return jsonify(line.to_dict())


@tournaments_bp.route('/<int:tournament_id>/players/<int:player_id>/stats', methods=['PUT'])
def correct_player_stats(tournament_id, player_id):
    line = _service().ledger.update(tournament_id, player_id, **_payload())
    return jsonify(line.to_dict())


@tournaments_bp.route('/<int:tournament_id>/players/<int:player_id>/stats', methods=['DELETE'])
def remove_player_stats(tournament_id, player_id):
    _service().ledger.remove(tournament_id, player_id)
    return '', 204


@tournaments_bp.route('/<int:tournament_id>/scorers', methods=['GET'])
def top_scorers(tournament_id):
    get_or_raise(db.session, Tournament, tournament_id)
    lines = _service().ledger.top_scorers(
        tournament_id,
        team_id=request.args.get('team_id', type=int),
        limit=request.args.get('limit', default=10, type=int),
    )
    return jsonify([line.to_dict() for line in lines])


@tournaments_bp.route('/<int:tournament_id>/dashboard', methods=['GET'])
def dashboard(tournament_id):
    view = _service().dashboards.build(tournament_id, team_id=request.args.get('team_id', type=int))
    return jsonify(view.to_dict())


@tournaments_bp.route('/<int:tournament_id>/finalize', methods=['POST'])
def finalize(tournament_id):
    snapshots = _service().finalize_tournament(tournament_id)
    return jsonify([snapshot.to_dict() for snapshot in snapshots]), 201
