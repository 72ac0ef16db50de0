"""
Unit tests for group-fed knockout templates and knockout placements.
"""
import pytest
import sys
import os
from collections import Counter
from dataclasses import replace

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from conftest import play_bracket

from tourney.bracket import best_of_rank, group_source
from tourney.errors import GenerationError
from tourney.knockout import (
    FINAL, INTERMEDIATE, PRE_QUARTERFINAL, QUARTERFINAL, SEMIFINAL, THIRD_PLACE,
    compute_knockout_placements,
    format_place,
    generate_knockout_matches,
    tier_bands,
)
from tourney.models import COMPLETED, SCHEDULED
from tourney.resolver import populate_sources, resolve_bracket


def _group_lookup(source):
    return f"{'abcdefgh'[source.group_index]}{source.rank}"


def _better_rank(team_a, team_b):
    """Lower group rank wins, then the earlier group."""
    return min(team_a, team_b, key=lambda t: (int(t[1:]), t[0]))


class TestTemplates:
    """Tests for the match structure per group count."""

    @pytest.mark.parametrize('groups,teams_per_group,third,expected', [
        (2, 4, True, 4), (2, 4, False, 3), (3, 4, True, 4), (4, 4, True, 12),
        (4, 5, True, 16), (5, 4, True, 8), (6, 3, True, 8), (7, 4, True, 8), (8, 4, False, 7),
    ])
    def test_match_counts(self, groups, teams_per_group, third, expected):
        """Each template has a fixed size."""
        assert len(generate_knockout_matches('ko', groups, teams_per_group, third)) == expected

    def test_two_groups_cross_over(self):
        """1A v 2B and 1B v 2A, then third place before the final."""
        matches = generate_knockout_matches('ko', 2, 4)
        assert (matches[0].source_a, matches[0].source_b) == (group_source(0, 1), group_source(1, 2))
        assert (matches[1].source_a, matches[1].source_b) == (group_source(1, 1), group_source(0, 2))
        assert [m.knockout_round for m in matches] == [SEMIFINAL, SEMIFINAL, THIRD_PLACE, FINAL]
        assert matches[2].round == matches[3].round == 2
        assert matches[3].playoff_for_place == 1
        assert matches[2].playoff_for_place == 3

    def test_three_groups_best_runner_up(self):
        """The best runner-up meets group A's winner."""
        matches = generate_knockout_matches('ko', 3, 4)
        assert matches[0].source_b == best_of_rank(2, 1)
        assert (matches[1].source_a, matches[1].source_b) == (group_source(1, 1), group_source(2, 1))

    def test_four_groups_intermediate_round(self):
        """Ranks 2 and 3 cross over: A-D, B-C, C-B, D-A."""
        matches = generate_knockout_matches('ko', 4, 4)
        intermediate = [m for m in matches if m.knockout_round == INTERMEDIATE]
        assert [(m.source_a.group_index, m.source_b.group_index) for m in intermediate] == [
            (0, 3), (1, 2), (2, 1), (3, 0),
        ]
        assert all((m.source_a.rank, m.source_b.rank) == (2, 3) for m in intermediate)
        assert Counter(m.knockout_round for m in matches) == {
            INTERMEDIATE: 4, QUARTERFINAL: 4, SEMIFINAL: 2, THIRD_PLACE: 1, FINAL: 1,
        }

    def test_four_groups_of_five_pre_quarterfinal(self):
        """Groups of five add a round of runners-up against the intermediate winners."""
        matches = generate_knockout_matches('ko', 4, 5)
        intermediate = [m for m in matches if m.knockout_round == INTERMEDIATE]
        assert all((m.source_a.rank, m.source_b.rank) == (3, 4) for m in intermediate)
        pre = [m for m in matches if m.knockout_round == PRE_QUARTERFINAL]
        assert len(pre) == 4
        assert all(m.source_a.rank == 2 and m.round == 2 for m in pre)
        assert max(m.round for m in matches) == 5

    def test_group_winner_avoids_own_group(self):
        """A winner never meets the intermediate match containing its own group."""
        matches = populate_sources(generate_knockout_matches('ko', 4, 4), _group_lookup)
        matches = play_bracket(matches, _better_rank)
        for match in (m for m in matches if m.knockout_round == QUARTERFINAL):
            assert match.team_a_id[0] != match.team_b_id[0]

    def test_many_groups_fill_with_best_runners_up(self):
        """Six groups: six winners plus the two best runners-up, 1v8 4v5 2v7 3v6."""
        matches = generate_knockout_matches('ko', 6, 4)
        quarterfinals = matches[:4]
        assert quarterfinals[0].source_a == group_source(0, 1)
        assert quarterfinals[0].source_b == best_of_rank(2, 2)
        assert quarterfinals[1].source_a == group_source(3, 1)
        assert quarterfinals[1].source_b == group_source(4, 1)
        assert quarterfinals[2].source_b == best_of_rank(2, 1)

    @pytest.mark.parametrize('groups,teams_per_group', [(1, 4), (9, 4), (2, 6)])
    def test_unsupported_shapes(self, groups, teams_per_group):
        """Group counts outside 2-8 and unusual group sizes are rejected."""
        with pytest.raises(GenerationError):
            generate_knockout_matches('ko', groups, teams_per_group)


class TestKnockoutPlacements:
    """Tests for deriving final places from a finished bracket."""

    def test_two_group_bracket(self):
        """Final, third place, then the group-phase eliminations share a band."""
        matches = populate_sources(generate_knockout_matches('ko', 2, 4), _group_lookup)
        matches = play_bracket(matches, _better_rank)
        placements = compute_knockout_placements(matches, ['a3', 'b3', 'a4', 'b4'])
        assert placements['a1'] == (1, 1)
        assert placements['b1'] == (2, 2)
        assert placements['a2'] == (3, 3)
        assert placements['b2'] == (4, 4)
        assert all(placements[t] == (5, 8) for t in ('a3', 'b3', 'a4', 'b4'))

    def test_semifinal_losers_share_without_third_place(self):
        """Without a third-place match both semifinal losers are 3.-4."""
        matches = populate_sources(generate_knockout_matches('ko', 2, 4, False), _group_lookup)
        placements = compute_knockout_placements(play_bracket(matches, _better_rank))
        assert placements['a2'] == placements['b2'] == (3, 4)

    def test_quarterfinal_losers_band(self):
        """Eight-team bracket: quarterfinal losers share 5.-8."""
        matches = populate_sources(generate_knockout_matches('ko', 8, 4), _group_lookup)
        placements = compute_knockout_placements(play_bracket(matches, _better_rank))
        assert sorted(placements.values()).count((5, 8)) == 4
        assert placements['a1'] == (1, 1)

    def test_third_place_before_final(self):
        """A third-place result decided before the final still awards 3 and 4."""
        matches = populate_sources(generate_knockout_matches('ko', 2, 4), _group_lookup)
        matches = play_bracket(matches, _better_rank)
        matches = [replace(m, winner_id=None, status=SCHEDULED, scores=())
                   if m.knockout_round == FINAL else m for m in matches]
        placements = compute_knockout_placements(matches)
        assert placements == {'a2': (3, 3), 'b2': (4, 4)}

    def test_semifinal_losers_before_final_without_third_place(self):
        """Semifinal losers are 3.-4. even while the final is open."""
        matches = populate_sources(generate_knockout_matches('ko', 2, 4, False), _group_lookup)
        matches = play_bracket(matches, _better_rank)
        matches = [replace(m, winner_id=None, status=SCHEDULED, scores=())
                   if m.knockout_round == FINAL else m for m in matches]
        placements = compute_knockout_placements(matches)
        assert placements == {'a2': (3, 4), 'b2': (3, 4)}

    def test_bands_follow_template(self):
        """Four groups of five: each earlier tier takes the next band of four."""
        bands = tier_bands(generate_knockout_matches('ko', 4, 5))
        assert bands[QUARTERFINAL] == (5, 8)
        assert bands[PRE_QUARTERFINAL] == (9, 12)
        assert bands[INTERMEDIATE] == (13, 16)
        assert bands[None] == (17, 17)

    def test_early_intermediate_loser_band(self):
        """An intermediate loser is placed 9.-12. before any later tier is played."""
        matches = populate_sources(generate_knockout_matches('ko', 4, 4), _group_lookup)
        matches = resolve_bracket(matches)
        first = next(m for m in matches if m.knockout_round == INTERMEDIATE)
        done = replace(first, winner_id=first.team_a_id, status=COMPLETED, scores=((21, 15),))
        matches = [done if m.id == first.id else m for m in matches]
        placements = compute_knockout_placements(matches, ['a4', 'b4', 'c4', 'd4'])
        assert placements[first.team_b_id] == (9, 12)
        assert placements['a4'] == (13, 16)

    def test_format_place(self):
        """Shared bands read as a range."""
        assert format_place((1, 1)) == '1.'
        assert format_place((5, 8)) == '5.-8.'
