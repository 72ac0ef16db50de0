"""
Unit tests for round-robin generation (circle method).
"""
import pytest
import sys
import os
from collections import Counter

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tourney.models import BYE, SCHEDULED
from tourney.roundrobin import generate_round_robin_matches, round_robin_pairings


class TestRoundRobinPairings:
    """Tests for the per-round pairing table."""

    def test_four_teams_circle_method(self):
        """First team stays fixed, the rest rotate clockwise."""
        rounds = round_robin_pairings(['A', 'B', 'C', 'D'])
        assert rounds == [
            [('A', 'D'), ('B', 'C')],
            [('A', 'C'), ('D', 'B')],
            [('A', 'B'), ('C', 'D')],
        ]

    def test_odd_roster_drops_bye_pairings(self):
        """Five teams: five rounds of two matches, each team sits out once."""
        rounds = round_robin_pairings(['A', 'B', 'C', 'D', 'E'])
        assert len(rounds) == 5
        assert all(len(pairs) == 2 for pairs in rounds)
        sitting_out = []
        for pairs in rounds:
            playing = {team for pair in pairs for team in pair}
            assert BYE not in playing
            sitting_out.extend(set('ABCDE') - playing)
        assert sorted(sitting_out) == ['A', 'B', 'C', 'D', 'E']

    def test_fewer_than_two_teams(self):
        """No pairings without an opponent."""
        assert round_robin_pairings([]) == []
        assert round_robin_pairings(['A']) == []


class TestGenerateRoundRobinMatches:
    """Tests for match generation."""

    @pytest.mark.parametrize('n', range(2, 13))
    def test_every_pair_exactly_once(self, n):
        """n*(n-1)/2 matches, no self matches, no duplicate pairs, n-1 matches per team."""
        team_ids = [f"t{i}" for i in range(1, n + 1)]
        matches = generate_round_robin_matches('rr', team_ids, number_of_courts=2)
        assert len(matches) == n * (n - 1) // 2
        pairs = [frozenset((m.team_a_id, m.team_b_id)) for m in matches]
        assert all(len(pair) == 2 for pair in pairs)
        assert len(set(pairs)) == len(pairs)
        appearances = Counter(team for m in matches for team in (m.team_a_id, m.team_b_id))
        assert all(appearances[t] == n - 1 for t in team_ids)

    def test_four_teams_three_rounds_of_two(self):
        """Scenario: 4 teams -> 6 matches, 3 rounds, 2 matches per round."""
        matches = generate_round_robin_matches('rr', ['a', 'b', 'c', 'd'], number_of_courts=2)
        assert len(matches) == 6
        per_round = Counter(m.round for m in matches)
        assert per_round == {1: 2, 2: 2, 3: 2}

    def test_match_numbers_and_ids(self):
        """Numbers increase across rounds and ids derive from the tournament id."""
        matches = generate_round_robin_matches('rr', ['a', 'b', 'c', 'd'], number_of_courts=2)
        assert [m.match_number for m in matches] == [1, 2, 3, 4, 5, 6]
        assert matches[0].id == 'rr-m1'
        assert all(m.status == SCHEDULED for m in matches)

    def test_start_number_offsets_numbering(self):
        """A later block of matches continues the numbering."""
        matches = generate_round_robin_matches('rr', ['a', 'b'], number_of_courts=1, start_number=7)
        assert matches[0].id == 'rr-m7'

    def test_courts_restart_each_round_and_cap(self):
        """Court counter restarts per round; matches beyond the court count get none."""
        matches = generate_round_robin_matches('rr', ['a', 'b', 'c', 'd'], number_of_courts=1)
        for round_number in (1, 2, 3):
            courts = [m.court for m in matches if m.round == round_number]
            assert courts == [1, None]

    def test_group_id_is_stamped(self):
        """Matches generated for a group carry its id."""
        matches = generate_round_robin_matches('g', ['a', 'b', 'c'], 2, group_id='group-a')
        assert {m.group_id for m in matches} == {'group-a'}
