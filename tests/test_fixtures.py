import pytest

from engine import DestructiveRegeneration, RoundIncomplete, TournamentError, UnsupportedTeamCount
from engine.fixtures import fold_pairs, partition_groups, plan_fixture, round_robin, stage_name_for_round
from models import Match, StandingsRecord, Tournament, TournamentFormat, TournamentType


class TestPlanning:
    @pytest.mark.parametrize('count', [2, 3, 6, 9, 14])
    def test_round_robin_lengths(self, count):
        team_ids = list(range(1, count + 1))
        assert len(round_robin(team_ids)) == count * (count - 1) // 2
        assert len(round_robin(team_ids, legs=2)) == count * (count - 1)

    def test_second_leg_swaps_home_and_away(self):
        planned = round_robin([1, 2], legs=2)
        assert [(m.home_team_id, m.away_team_id) for m in planned] == [(1, 2), (2, 1)]
        assert planned[1].phase == 'League - Second leg'

    def test_groups_partition_with_remainder(self):
        assert [len(group) for group in partition_groups(list(range(1, 11)))] == [3, 3, 4]
        assert [len(group) for group in partition_groups(list(range(1, 14)))] == [3, 3, 3, 4]

    def test_groups_with_final_reserves_placeholder(self):
        planned = plan_fixture(TournamentFormat.GROUPS_WITH_FINAL, list(range(1, 9)))

        assert len(planned) == 6 + 6 + 1
        final = planned[-1]
        assert final.phase == 'Final'
        assert final.home_team_id is None and final.away_team_id is None
        assert (final.home_placeholder, final.away_placeholder) == ('Winner Group A', 'Winner Group B')

    def test_single_elimination_first_round(self):
        planned = plan_fixture(TournamentFormat.SINGLE_ELIMINATION, list(range(1, 9)))

        assert [(m.home_team_id, m.away_team_id) for m in planned] == [(1, 2), (3, 4), (5, 6), (7, 8)]
        assert {m.phase for m in planned} == {'Quarterfinal'}
        assert {m.round_number for m in planned} == {1}

    def test_odd_elimination_rejected(self):
        with pytest.raises(UnsupportedTeamCount):
            plan_fixture(TournamentFormat.SINGLE_ELIMINATION, [1, 2, 3, 4, 5])

    def test_too_few_teams_rejected(self):
        with pytest.raises(UnsupportedTeamCount):
            plan_fixture(TournamentFormat.ROUND_ROBIN, [1])

    def test_stage_names(self):
        assert stage_name_for_round(1, 3) == 'Final'
        assert stage_name_for_round(2, 2) == 'Semifinal'
        assert stage_name_for_round(3, 1) == 'Round 1'

    def test_fold_pairs(self):
        planned = fold_pairs([1, 2, 3, 4], round_number=1)
        assert [(m.home_team_id, m.away_team_id) for m in planned] == [(1, 4), (2, 3)]


class TestFixtureGenerator:
    def test_generate_schedules_every_match(self, service, make_tournament):
        tournament_id, team_ids = make_tournament(6)

        matches = service.generate_fixture(tournament_id)

        assert len(matches) == 15
        assert all(m.status == 'scheduled' and m.home_score is None for m in matches)
        assert [m.sequence for m in matches] == list(range(1, 16))
        assert service.session.get(Tournament, tournament_id).status == 'active'

    def test_double_league_length(self, service, make_tournament):
        tournament_id, _ = make_tournament(8, format_choice=TournamentFormat.DOUBLE_LEAGUE)
        assert len(service.generate_fixture(tournament_id)) == 56

    def test_regeneration_without_confirmation_is_refused(self, service, make_tournament):
        tournament_id, _ = make_tournament(4)
        original = [m.id for m in service.generate_fixture(tournament_id)]
        service.submit_result(original[0], 2, 0)

        with pytest.raises(DestructiveRegeneration):
            service.generate_fixture(tournament_id)

        assert [m.id for m in service.list_fixture(tournament_id)] == original
        assert service.list_fixture(tournament_id)[0].is_played

    def test_confirmed_regeneration_replaces_everything(self, service, make_tournament):
        tournament_id, _ = make_tournament(4)
        first = service.generate_fixture(tournament_id)
        service.submit_result(first[0].id, 2, 0)

        fresh = service.generate_fixture(tournament_id, confirm_replace=True)

        assert len(fresh) == 6
        assert all(m.status == 'scheduled' for m in fresh)
        assert Match.query.filter_by(tournament_id=tournament_id).count() == 6
        assert StandingsRecord.query.filter_by(tournament_id=tournament_id).count() == 0

    def test_odd_elimination_tournament_is_rejected(self, service, make_tournament, db_session):
        tournament_id, _ = make_tournament(5)
        tournament = db_session.get(Tournament, tournament_id)
        tournament.format = TournamentFormat.SINGLE_ELIMINATION
        tournament.type = TournamentType.ELIMINATION
        db_session.commit()

        with pytest.raises(UnsupportedTeamCount):
            service.generate_fixture(tournament_id)
        assert service.list_fixture(tournament_id) == []

    def test_expand_elimination_rounds(self, service, make_tournament):
        tournament_id, team_ids = make_tournament(8, format_choice=TournamentFormat.SINGLE_ELIMINATION)
        quarterfinals = service.generate_fixture(tournament_id)

        with pytest.raises(RoundIncomplete):
            service.expand_next_round(tournament_id)

        for match in quarterfinals:
            service.submit_result(match.id, 2, 1)
        semifinals = service.expand_next_round(tournament_id)

        assert [m.phase for m in semifinals] == ['Semifinal', 'Semifinal']
        assert [(m.home_team_id, m.away_team_id) for m in semifinals] == [
            (team_ids[0], team_ids[2]),
            (team_ids[4], team_ids[6]),
        ]

        for match in semifinals:
            service.submit_result(match.id, 0, 1)
        final = service.expand_next_round(tournament_id)
        assert len(final) == 1
        assert final[0].phase == 'Final'
        assert final[0].round_number == 3

        service.submit_result(final[0].id, 4, 2)
        with pytest.raises(TournamentError):
            service.expand_next_round(tournament_id)

    def test_groups_then_elimination_seeds_knockout(self, service, make_tournament):
        tournament_id, team_ids = make_tournament(13, format_choice=TournamentFormat.GROUPS_THEN_ELIMINATION)
        group_matches = service.generate_fixture(tournament_id)
        assert len(group_matches) == 3 + 3 + 3 + 6

        # Lower team id always wins, so each group's first two members qualify.
        for match in group_matches:
            home_wins = match.home_team_id < match.away_team_id
            service.submit_result(match.id, 1 if home_wins else 0, 0 if home_wins else 1)

        knockout = service.expand_next_round(tournament_id)

        a1, a2 = team_ids[0], team_ids[1]
        b1, b2 = team_ids[3], team_ids[4]
        c1, c2 = team_ids[6], team_ids[7]
        d1, d2 = team_ids[9], team_ids[10]
        assert [(m.home_team_id, m.away_team_id) for m in knockout] == [(a1, d2), (b1, c2), (c1, b2), (d1, a2)]
        assert {m.phase for m in knockout} == {'Quarterfinal'}
        assert {m.round_number for m in knockout} == {1}

    def test_league_has_no_knockout_rounds(self, service, make_tournament):
        tournament_id, _ = make_tournament(4)
        service.generate_fixture(tournament_id)

        with pytest.raises(TournamentError):
            service.expand_next_round(tournament_id)
