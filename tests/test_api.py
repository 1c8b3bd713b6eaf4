"""End-to-end checks of the JSON routes."""

from models import Tournament, db


def _create_teams(client, *names):
    ids = []
    for name in names:
        response = client.post('/teams', json={'name': name})
        assert response.status_code == 201
        ids.append(response.get_json()['id'])
    return ids


def _create_tournament(client, team_ids, **payload):
    payload.setdefault('name', 'API Cup')
    payload.setdefault('team_count', len(team_ids))
    response = client.post('/tournaments', json=payload)
    assert response.status_code == 201
    tournament_id = response.get_json()['id']
    for team_id in team_ids:
        assert client.post(f'/tournaments/{tournament_id}/teams', json={'team_id': team_id}).status_code == 201
    return tournament_id


class TestTeamRoutes:
    def test_create_and_list_teams(self, client):
        _create_teams(client, 'Wolves', 'Eagles')

        response = client.get('/teams')
        assert [team['name'] for team in response.get_json()] == ['Eagles', 'Wolves']

    def test_duplicate_and_blank_names(self, client):
        _create_teams(client, 'Wolves')

        assert client.post('/teams', json={'name': 'Wolves'}).status_code == 400
        response = client.post('/teams', json={'name': '  '})
        assert response.status_code == 400
        assert 'error' in response.get_json()

    def test_players(self, client):
        team_id = _create_teams(client, 'Wolves')[0]

        response = client.post(f'/teams/{team_id}/players', json={'name': 'Ana', 'number': 10})
        assert response.status_code == 201
        player_id = response.get_json()['id']

        client.patch(f'/players/{player_id}', json={'number': 7, 'name': ''})
        detail = client.get(f'/teams/{team_id}').get_json()
        assert detail['players'] == [{'id': player_id, 'name': 'Ana', 'number': 7, 'team_id': team_id}]

    def test_unknown_team_is_404(self, client):
        response = client.get('/teams/77')
        assert response.status_code == 404
        assert response.get_json() == {'error': 'Team 77 not found'}


class TestTournamentRoutes:
    def test_format_menu(self, client):
        response = client.get('/tournaments/formats?team_count=8')
        menu = response.get_json()
        assert [entry['option'] for entry in menu] == [1, 2, 3, 4]
        assert menu[3]['format'] == 'single_elimination'
        assert menu[3]['type'] == 'elimination'

    def test_create_with_fallback_format(self, client):
        response = client.post('/tournaments', json={'name': 'Tiny Cup', 'team_count': 5, 'format': 9})
        body = response.get_json()
        assert response.status_code == 201
        assert body['format'] == 'round_robin'
        assert body['status'] == 'upcoming'

    def test_missing_team_count(self, client):
        assert client.post('/tournaments', json={'name': 'No Count'}).status_code == 400

    def test_full_league_flow(self, client):
        team_ids = _create_teams(client, 'Alpha', 'Bravo', 'Charlie', 'Delta')
        tournament_id = _create_tournament(client, team_ids)

        response = client.post(f'/tournaments/{tournament_id}/fixture')
        assert response.status_code == 201
        fixture = response.get_json()
        assert len(fixture) == 6

        assert client.post(f'/tournaments/{tournament_id}/fixture').status_code == 409

        for match in fixture:
            result = client.post(
                f"/tournaments/{tournament_id}/matches/{match['id']}/result",
                json={'home_score': 1, 'away_score': 0},
            )
            assert result.status_code == 200

        table = client.get(f'/tournaments/{tournament_id}/standings').get_json()
        assert [row['team'] for row in table] == ['Alpha', 'Bravo', 'Charlie', 'Delta']
        assert [row['points'] for row in table] == [9, 6, 3, 0]

        finalized = client.post(f'/tournaments/{tournament_id}/finalize')
        assert finalized.status_code == 201
        assert len(finalized.get_json()) == 4

        history = client.get(f'/teams/{team_ids[0]}/history').get_json()
        assert history[0]['final_position'] == 1
        assert history[0]['tournament'] == 'API Cup'

    def test_result_validation(self, client):
        team_ids = _create_teams(client, 'Alpha', 'Bravo')
        tournament_id = _create_tournament(client, team_ids)
        match_id = client.post(f'/tournaments/{tournament_id}/fixture').get_json()[0]['id']

        url = f'/tournaments/{tournament_id}/matches/{match_id}/result'
        assert client.post(url, json={'home_score': 1}).status_code == 400
        assert client.post(url, json={'home_score': -2, 'away_score': 0}).status_code == 400
        assert client.post(f'/tournaments/{tournament_id}/matches/999/result',
                           json={'home_score': 1, 'away_score': 0}).status_code == 404

    def test_elimination_flow(self, client):
        team_ids = _create_teams(client, *[f'Club {index}' for index in range(1, 9)])
        tournament_id = _create_tournament(client, team_ids, format='single_elimination')

        fixture = client.post(f'/tournaments/{tournament_id}/fixture').get_json()
        tied = client.post(
            f"/tournaments/{tournament_id}/matches/{fixture[0]['id']}/result",
            json={'home_score': 2, 'away_score': 2},
        )
        assert tied.status_code == 400

        assert client.post(f'/tournaments/{tournament_id}/rounds').status_code == 409
        for match in fixture:
            client.post(
                f"/tournaments/{tournament_id}/matches/{match['id']}/result",
                json={'home_score': 3, 'away_score': 1},
            )
        state = client.get(f'/tournaments/{tournament_id}/rounds/state').get_json()
        assert state['state'] == 'complete'

        semifinals = client.post(f'/tournaments/{tournament_id}/rounds').get_json()
        assert [m['phase'] for m in semifinals] == ['Semifinal', 'Semifinal']

        statuses = client.get(f'/tournaments/{tournament_id}/teams').get_json()
        assert sum(1 for row in statuses if row['status'] == 'eliminated') == 4

    def test_rename_change_format_and_delete(self, client):
        team_ids = _create_teams(client, 'Alpha', 'Bravo', 'Charlie', 'Delta')
        tournament_id = _create_tournament(client, team_ids)

        renamed = client.patch(f'/tournaments/{tournament_id}', json={'name': 'Renamed Cup'})
        assert renamed.get_json()['name'] == 'Renamed Cup'

        changed = client.put(f'/tournaments/{tournament_id}/format', json={'format': 2})
        assert changed.get_json()['format'] == 'mini_group_with_final'

        assert client.delete(f'/tournaments/{tournament_id}/teams/{team_ids[0]}').status_code == 204
        assert client.get(f'/tournaments/{tournament_id}').get_json()['enrolled'] == 3

        assert client.delete(f'/tournaments/{tournament_id}').status_code == 204
        assert db.session.get(Tournament, tournament_id) is None
        assert client.get('/tournaments').get_json() == []

    def test_duplicate_enrollment(self, client):
        team_ids = _create_teams(client, 'Alpha', 'Bravo')
        tournament_id = _create_tournament(client, team_ids)

        response = client.post(f'/tournaments/{tournament_id}/teams', json={'team_id': team_ids[0]})
        assert response.status_code == 400

    def test_stats_scorers_and_dashboard(self, client):
        team_ids = _create_teams(client, 'Alpha', 'Bravo')
        tournament_id = _create_tournament(client, team_ids)
        player_id = client.post(f'/teams/{team_ids[0]}/players', json={'name': 'Ana'}).get_json()['id']

        recorded = client.post(
            f'/tournaments/{tournament_id}/players/{player_id}/stats', json={'goals': 2, 'assists': 1}
        )
        assert recorded.get_json()['goals'] == 2

        scorers = client.get(f'/tournaments/{tournament_id}/scorers').get_json()
        assert [(line['player'], line['goals']) for line in scorers] == [('Ana', 2)]

        dashboard = client.get(f'/tournaments/{tournament_id}/dashboard?team_id={team_ids[0]}').get_json()
        assert dashboard['team']['name'] == 'Alpha'
        assert dashboard['top_scorers'][0]['player'] == 'Ana'

    def test_regeneration_needs_a_real_true(self, client):
        team_ids = _create_teams(client, 'Alpha', 'Bravo', 'Charlie', 'Delta')
        tournament_id = _create_tournament(client, team_ids)
        match_id = client.post(f'/tournaments/{tournament_id}/fixture').get_json()[0]['id']
        client.post(
            f'/tournaments/{tournament_id}/matches/{match_id}/result', json={'home_score': 2, 'away_score': 1}
        )

        for confirm in ('false', 'yes', 1):
            response = client.post(f'/tournaments/{tournament_id}/fixture', json={'confirm_replace': confirm})
            assert response.status_code == 409
        fixture = client.get(f'/tournaments/{tournament_id}/fixture').get_json()
        assert any(match['id'] == match_id and match['home_score'] == 2 for match in fixture)

        replaced = client.post(f'/tournaments/{tournament_id}/fixture', json={'confirm_replace': True})
        assert replaced.status_code == 201

    def test_fractional_score_is_rejected(self, client):
        team_ids = _create_teams(client, 'Alpha', 'Bravo')
        tournament_id = _create_tournament(client, team_ids)
        match_id = client.post(f'/tournaments/{tournament_id}/fixture').get_json()[0]['id']

        response = client.post(
            f'/tournaments/{tournament_id}/matches/{match_id}/result', json={'home_score': 2.5, 'away_score': 0}
        )
        assert response.status_code == 400
        assert client.get(f'/tournaments/{tournament_id}/fixture').get_json()[0]['status'] != 'played'

    def test_correct_and_remove_player_stats(self, client):
        team_ids = _create_teams(client, 'Alpha', 'Bravo')
        tournament_id = _create_tournament(client, team_ids)
        player_id = client.post(f'/teams/{team_ids[0]}/players', json={'name': 'Ana'}).get_json()['id']
        url = f'/tournaments/{tournament_id}/players/{player_id}/stats'

        assert client.put(url, json={'goals': 1}).status_code == 404
        client.post(url, json={'goals': 3, 'assists': 1})

        corrected = client.put(url, json={'goals': 2})
        assert (corrected.get_json()['goals'], corrected.get_json()['assists']) == (2, 1)

        assert client.delete(url).status_code == 204
        assert client.get(f'/tournaments/{tournament_id}/scorers').get_json() == []
        assert client.delete(url).status_code == 404

    def test_change_fixed_team(self, client):
        team_ids = _create_teams(client, 'Alpha', 'Bravo', 'Hosts')
        tournament_id = _create_tournament(client, team_ids[:2])
        url = f'/tournaments/{tournament_id}/fixed-team'

        changed = client.put(url, json={'team_id': team_ids[2]})
        assert changed.status_code == 200
        assert (changed.get_json()['fixed_team_id'], changed.get_json()['enrolled']) == (team_ids[2], 3)

        assert client.put(url, json={'team_id': 404}).status_code == 404
        assert client.put(url, json={}).get_json()['fixed_team_id'] is None

def test_index(client):
    assert client.get('/').get_json()['status'] == 'ok'
