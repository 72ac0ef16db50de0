"""
Scheduling estimates: match durations, time slots, start times and overrun checks.

All clock arithmetic is in minutes since midnight, formatted back to HH:MM.
"""
import math
from typing import Dict, List, Optional, Sequence

from tourney.models import (
    GROUP_BASED_SYSTEMS, PLACEMENT_TREE, PLAYOFF, ROUND_ROBIN, SHORT_MAIN_KNOCKOUT, SWISS, KNOCKOUT,
    Match, SchedulingSettings, Tournament,
)


def parse_time_to_minutes(time_str: str) -> int:
    """'09:30' -> 570."""
    hours, minutes = time_str.strip().split(':')
    return int(hours) * 60 + int(minutes)


def format_minutes_to_time(total_minutes: int) -> str:
    """570 -> '09:30'; wraps past midnight."""
    total_minutes = int(total_minutes) % (24 * 60)
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def set_duration(points: int, settings: SchedulingSettings) -> int:
    if points == 21:
        return settings.minutes_per_21_point_set
    return settings.minutes_per_15_point_set


def calculate_match_duration(sets_per_match: int, points_per_set: int,
                             settings: SchedulingSettings,
                             points_per_third_set: Optional[int] = None) -> int:
    """
    Minutes one match occupies a court.

    1 set -> one set; 2 sets -> two sets; best of three -> two full sets plus a third
    set, always counted.
    """
    per_set = set_duration(points_per_set, settings)
    if sets_per_match == 1:
        return per_set
    if sets_per_match == 2:
        return per_set * 2
    third = set_duration(points_per_third_set or 15, settings)
    return per_set * 2 + third


def calculate_time_slots(match_count: int, number_of_courts: int) -> int:
    if match_count <= 0:
        return 0
    return math.ceil(match_count / max(1, number_of_courts))


def calculate_total_minutes(match_count: int, number_of_courts: int,
                            match_duration: int, minutes_between_matches: int) -> int:
    """Slots times (match + break), without a trailing break after the last slot."""
    slots = calculate_time_slots(match_count, number_of_courts)
    if slots == 0:
        return 0
    return slots * (match_duration + minutes_between_matches) - minutes_between_matches


def tournament_match_duration(tournament: Tournament) -> int:
    return calculate_match_duration(
        tournament.sets_per_match, tournament.points_per_set,
        tournament.scheduling, tournament.points_per_third_set,
    )


def estimate_match_count(tournament: Tournament) -> int:
    """Matches a tournament will play, usable before it is started."""
    if tournament.matches:
        return sum(1 for m in tournament.matches if not m.is_bye)
    n = len(tournament.present_teams)
    if tournament.system == ROUND_ROBIN:
        return n * (n - 1) // 2
    if tournament.system == SWISS:
        return (n // 2) * (tournament.number_of_rounds or 0)
    if tournament.system in GROUP_BASED_SYSTEMS and tournament.groups:
        return sum(len(g.team_ids) * (len(g.team_ids) - 1) // 2 for g in tournament.groups)
    if tournament.system in (PLACEMENT_TREE,):
        return max(0, n - 1)
    if tournament.system == PLAYOFF:
        return n // 2
    return 0


def estimate_tournament_duration(tournament: Tournament, match_count: Optional[int] = None) -> Dict:
    """
    Duration estimate for one phase.

    Returns:
        dict with match_count, match_duration, time_slots, total_minutes, start_time,
        end_time.
    """
    settings = tournament.scheduling
    if match_count is None:
        match_count = estimate_match_count(tournament)
    duration = tournament_match_duration(tournament)
    total = calculate_total_minutes(match_count, tournament.number_of_courts,
                                    duration, settings.minutes_between_matches)
    start = parse_time_to_minutes(settings.start_time)
    return {
        'match_count': match_count,
        'match_duration': duration,
        'time_slots': calculate_time_slots(match_count, tournament.number_of_courts),
        'total_minutes': total,
        'start_time': settings.start_time,
        'end_time': format_minutes_to_time(start + total),
    }


def _timed(match: Match, slot: int, court: int, start: int, duration: int) -> Dict:
    return {
        'match_id': match.id,
        'slot': slot,
        'court': court,
        'start_time': format_minutes_to_time(start),
        'end_time': format_minutes_to_time(start + duration),
        'start_minutes': start,
    }


def assign_start_times(matches: Sequence[Match], number_of_courts: int, start_time: str,
                       match_duration: int, minutes_between_matches: int) -> List[Dict]:
    """
    Start time and court per match from its position in (round, match number) order.

    Slot = position // courts; court = position % courts + 1.
    """
    courts = max(1, number_of_courts)
    start = parse_time_to_minutes(start_time)
    step = match_duration + minutes_between_matches
    ordered = sorted((m for m in matches if not m.is_bye), key=lambda m: (m.round, m.match_number))
    return [
        _timed(match, index // courts, index % courts + 1, start + (index // courts) * step, match_duration)
        for index, match in enumerate(ordered)
    ]


def assign_round_start_times(matches: Sequence[Match], number_of_courts: int, start_time: str,
                             match_duration: int, minutes_between_matches: int) -> List[Dict]:
    """
    Knockout-style timing: a round only starts once the previous round's slots are over.
    """
    courts = max(1, number_of_courts)
    start = parse_time_to_minutes(start_time)
    step = match_duration + minutes_between_matches
    by_round: Dict[int, List[Match]] = {}
    for match in matches:
        if not match.is_bye:
            by_round.setdefault(match.round, []).append(match)

    timed = []
    slot_offset = 0
    for round_number in sorted(by_round):
        ordered = sorted(by_round[round_number], key=lambda m: m.match_number)
        for index, match in enumerate(ordered):
            slot = slot_offset + index // courts
            timed.append(_timed(match, slot, index % courts + 1, start + slot * step, match_duration))
        slot_offset += calculate_time_slots(len(ordered), courts)
    return timed


def schedule_tournament(tournament: Tournament, start_time: Optional[str] = None) -> List[Dict]:
    """Start times for a tournament's matches, by round for bracket systems."""
    settings = tournament.scheduling
    duration = tournament_match_duration(tournament)
    assign = assign_round_start_times if tournament.system in (
        KNOCKOUT, PLACEMENT_TREE, SHORT_MAIN_KNOCKOUT, SWISS) else assign_start_times
    return assign(tournament.matches, tournament.number_of_courts,
                  start_time or settings.start_time, duration, settings.minutes_between_matches)


def check_time_overrun(estimated_end: str, planned_end: str) -> Dict:
    """Compare an estimated end time with the planned one."""
    estimated = parse_time_to_minutes(estimated_end)
    planned = parse_time_to_minutes(planned_end)
    overrun = max(0, estimated - planned)
    return {
        'exceeds': overrun > 0,
        'estimated_end': estimated_end,
        'planned_end': planned_end,
        'overrun_minutes': overrun,
    }


def estimate_phase_offsets(phases: Sequence[Tournament]) -> List[Dict]:
    """
    Start and end of consecutive phases; each phase starts after the previous one's
    end plus the first phase's inter-phase break.
    """
    if not phases:
        return []
    first = phases[0].scheduling
    current = parse_time_to_minutes(first.start_time)
    result = []
    for i, phase in enumerate(phases):
        if i > 0:
            current += first.minutes_between_phases
        estimate = estimate_tournament_duration(phase)
        result.append({
            'tournament_id': phase.id,
            'start_time': format_minutes_to_time(current),
            'end_time': format_minutes_to_time(current + estimate['total_minutes']),
            'total_minutes': estimate['total_minutes'],
        })
        current += estimate['total_minutes']
    return result
