"""
Tournament settings: defaults plus optional YAML overrides.
"""
import copy
import os
from typing import Dict, Optional

import yaml

from tourney.models import GroupPhaseConfig, KnockoutSettings, SchedulingSettings


def get_default_settings() -> Dict:
    """Return default settings."""
    return {
        'name': 'Tournament',
        'system': 'round-robin',
        'number_of_courts': 2,
        'sets_per_match': 1,
        'points_per_set': 21,
        'points_per_third_set': 15,
        'tiebreaker_order': 'head-to-head-first',
        'number_of_rounds': None,
        'group_phase': {
            'teams_per_group': 4,
            'seeding': 'snake',
            'allow_short_groups': True,
        },
        'knockout': {
            'enabled': True,
            'sets_per_match': 1,
            'points_per_set': 21,
            'points_per_third_set': 15,
            'play_third_place_match': True,
            'use_referees': False,
        },
        'scheduling': {
            'start_time': '09:00',
            'end_time': '17:00',
            'minutes_per_21_point_set': 20,
            'minutes_per_15_point_set': 12,
            'minutes_between_matches': 5,
            'minutes_between_phases': 0,
        },
    }


def merge_settings(defaults: Dict, overrides: Optional[Dict]) -> Dict:
    """Overlay ``overrides`` on ``defaults``; nested sections are merged key by key."""
    merged = copy.deepcopy(defaults)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_settings(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_settings(path: Optional[str] = None) -> Dict:
    """Load settings from a YAML file, merging with defaults."""
    defaults = get_default_settings()
    if not path or not os.path.exists(path):
        return defaults
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)
    if not data:
        return defaults
    return merge_settings(defaults, data)


def scheduling_from_settings(settings: Dict) -> SchedulingSettings:
    return SchedulingSettings(**settings.get('scheduling', {}))


def knockout_from_settings(settings: Dict) -> Optional[KnockoutSettings]:
    section = dict(settings.get('knockout') or {})
    if not section.pop('enabled', True):
        return None
    return KnockoutSettings(**section)


def group_phase_from_settings(settings: Dict) -> GroupPhaseConfig:
    section = settings.get('group_phase', {})
    return GroupPhaseConfig(
        number_of_groups=section.get('number_of_groups', 0),
        teams_per_group=section.get('teams_per_group', 4),
        seeding=section.get('seeding', 'snake'),
        allow_short_groups=section.get('allow_short_groups', True),
    )
