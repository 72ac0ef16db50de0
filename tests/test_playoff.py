"""
Unit tests for the playoff (finals) phase.
"""
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from conftest import play_bracket

from tourney.bracket import standing_source
from tourney.models import StandingEntry
from tourney.playoff import (
    compute_playoff_placements,
    generate_playoff_matches,
    placeholder_entrants,
    ranked_team_ids,
)
from tourney.resolver import populate_sources


def _standings(count):
    return [StandingEntry(team_id=f"t{i}") for i in range(1, count + 1)]


class TestGeneratePlayoff:
    """Tests for playoff pairings."""

    def test_neighbours_play_for_places(self):
        """1v2 for first, 3v4 for third."""
        matches = generate_playoff_matches('po', ['t1', 't2', 't3', 't4'], number_of_courts=1)
        assert [(m.team_a_id, m.team_b_id, m.playoff_for_place) for m in matches] == [
            ('t1', 't2', 1), ('t3', 't4', 3),
        ]
        assert all(m.round == 1 for m in matches)

    def test_odd_last_team_has_no_match(self):
        """Five entrants: two matches, the fifth keeps its rank."""
        matches = generate_playoff_matches('po', ['t1', 't2', 't3', 't4', 't5'], number_of_courts=2)
        assert len(matches) == 2
        assert [m.court for m in matches] == [1, 2]

    def test_placeholder_entrants(self):
        """Standings ranks stand in for teams not yet known."""
        entrants = placeholder_entrants(3)
        assert entrants == [standing_source(1), standing_source(2), standing_source(3)]
        matches = generate_playoff_matches('po', entrants, number_of_courts=1)
        assert matches[0].placeholder_a == '1st place'
        assert matches[0].team_a_id is None

    def test_placeholders_filled_from_standings(self):
        """Sources resolve against the parent's standings."""
        matches = generate_playoff_matches('po', placeholder_entrants(4), number_of_courts=2)
        standings = _standings(4)
        filled = populate_sources(matches, lambda s: standings[s.rank - 1].team_id)
        assert (filled[1].team_a_id, filled[1].team_b_id) == ('t3', 't4')


class TestPlayoffPlacements:
    """Tests for places awarded by the playoff."""

    def test_winner_takes_the_place(self):
        """An upset in the first-place match swaps 1 and 2."""
        matches = generate_playoff_matches('po', ranked_team_ids(_standings(5)), number_of_courts=2)
        played = play_bracket(matches, lambda a, b: b if a == 't1' else a)
        placements = compute_playoff_placements(played, _standings(5))
        assert placements == {'t2': 1, 't1': 2, 't3': 3, 't4': 4, 't5': 5}

    def test_unplayed_matches_award_nothing(self):
        """Only completed matches count."""
        matches = generate_playoff_matches('po', ['t1', 't2'], number_of_courts=1)
        assert compute_playoff_placements(matches, _standings(2)) == {}
