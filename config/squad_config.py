#!/usr/bin/env python3
"""
World Cup Squad Configuration
=============================

This module provides the configuration for the squad data pipeline: source
locators, tournament constants used by the roster invariants, the column and
alias lookups used during normalization and the CSS selectors used to scrape
the squad page.
"""

import os
import json
from datetime import date, datetime
from typing import Dict, List, Any, Optional


VALID_UNMATCHED_POLICIES = ('ignore', 'warn', 'fail')


class SquadConfig:
    """
    Squad pipeline configuration.

    Every value can be overridden through the ``config_dict`` passed to the
    constructor; anything missing falls back to ``create_default_config()``.
    """

    def __init__(self, config_dict: Dict[str, Any] = None):
        """Initialize the configuration."""
        defaults = create_default_config()
        if config_dict is None:
            config_dict = {}

        # Basic settings
        self.verbose = config_dict.get('verbose', defaults['verbose'])
        self.produce_csv = config_dict.get('produce_csv', defaults['produce_csv'])
        self.produce_plots = config_dict.get('produce_plots', defaults['produce_plots'])
        self.output_dir = config_dict.get('output_dir', defaults['output_dir'])

        # Source locators
        self.pdf_source = config_dict.get('pdf_source', defaults['pdf_source'])
        self.web_source = config_dict.get('web_source', defaults['web_source'])

        # Request settings
        self.request_timeout = config_dict.get('request_timeout', defaults['request_timeout'])
        self.headers = dict(config_dict.get('headers', defaults['headers']))

        # Tournament constants
        self.tournament_start = _as_date(config_dict.get('tournament_start', defaults['tournament_start']))
        self.expected_teams = int(config_dict.get('expected_teams', defaults['expected_teams']))
        self.squad_size = int(config_dict.get('squad_size', defaults['squad_size']))
        self.goalkeepers_per_team = int(
            config_dict.get('goalkeepers_per_team', defaults['goalkeepers_per_team'])
        )
        self.positions: List[str] = list(config_dict.get('positions', defaults['positions']))

        # PDF normalization lookups
        self.pdf_column_map: Dict[str, str] = dict(config_dict.get('pdf_column_map', defaults['pdf_column_map']))
        self.team_aliases: Dict[str, str] = dict(config_dict.get('team_aliases', defaults['team_aliases']))
        self.birth_date_formats: List[str] = list(
            config_dict.get('birth_date_formats', defaults['birth_date_formats'])
        )

        # Web scraping
        self.web_selectors: Dict[str, str] = dict(defaults['web_selectors'])
        self.web_selectors.update(config_dict.get('web_selectors', {}))
        self.group_heading_pattern = config_dict.get('group_heading_pattern', defaults['group_heading_pattern'])
        self.role_markers: List[str] = list(config_dict.get('role_markers', defaults['role_markers']))

        # Reconciliation
        self.unmatched_policy = config_dict.get('unmatched_policy', defaults['unmatched_policy'])
        if self.unmatched_policy not in VALID_UNMATCHED_POLICIES:
            raise ValueError(
                f"Unknown unmatched_policy '{self.unmatched_policy}', "
                f"expected one of {', '.join(VALID_UNMATCHED_POLICIES)}"
            )
        self.alignment_cross_check = config_dict.get('alignment_cross_check', defaults['alignment_cross_check'])
        self.alignment_threshold = float(config_dict.get('alignment_threshold', defaults['alignment_threshold']))

        # Presentation
        self.elite_leagues: List[str] = list(config_dict.get('elite_leagues', defaults['elite_leagues']))
        self.age_cohort_bins: List[float] = list(config_dict.get('age_cohort_bins', defaults['age_cohort_bins']))
        self.top_n = int(config_dict.get('top_n', defaults['top_n']))

    @property
    def expected_players(self) -> int:
        """Total number of players across all squads."""
        return self.expected_teams * self.squad_size

    @classmethod
    def from_file(cls, path: str, overrides: Optional[Dict[str, Any]] = None) -> 'SquadConfig':
        """
        Build a configuration from a JSON file of overrides.

        Args:
            path: Path to a JSON object whose keys override the defaults
            overrides: Extra values applied on top of the file (e.g. CLI flags)

        Returns:
            SquadConfig instance
        """
        with open(path, 'r', encoding='utf-8') as f:
            file_values = json.load(f)
        if not isinstance(file_values, dict):
            raise ValueError(f"Config file {path} must contain a JSON object")

        merged = create_default_config()
        merged.update(file_values)
        if overrides:
            merged.update(overrides)
        return cls(merged)

    def get_output_path(self, *parts: str) -> str:
        """Join ``parts`` under the configured output directory."""
        return os.path.join(self.output_dir, *parts)

    def create_output_directories(self) -> None:
        """Create the output directory tree used by the report step."""
        for directory in (self.output_dir, self.get_output_path('tables'), self.get_output_path('plots')):
            os.makedirs(directory, exist_ok=True)


def _as_date(value: Any) -> date:
    """Accept a ``date``, ``datetime`` or ISO string for the reference date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value), '%Y-%m-%d').date()


def create_default_config() -> Dict[str, Any]:
    """Create default configuration dictionary."""
    return {
        'verbose': False,
        'produce_csv': True,
        'produce_plots': True,
        'output_dir': os.path.join(os.getcwd(), "output"),

        # The squad-list PDF has no stable public URL; pass --pdf or set pdf_source
        'pdf_source': None,
        'web_source': "https://en.wikipedia.org/wiki/2018_FIFA_World_Cup_squads",
        'request_timeout': 30,
        'headers': {
            "User-Agent": "WC-Squad-Data-Pipeline/1.0 (Educational/Research Purpose)",
        },

        'tournament_start': '2018-06-14',
        'expected_teams': 32,
        'squad_size': 23,
        'goalkeepers_per_team': 3,
        'positions': ['GK', 'DF', 'MF', 'FW'],

        # Source header -> canonical field
        'pdf_column_map': {
            'Team': 'team',
            '#': 'shirt_number',
            'Pos.': 'position',
            'FIFA Popular Name': 'display_name',
            'Birth Date': 'birth_date',
            'Shirt Name': 'shirt_label',
            'Club': 'club',
            'Height': 'height',
            'Weight': 'weight',
        },
        # PDF spelling -> web spelling
        'team_aliases': {
            'Korea Republic': 'South Korea',
            'IR Iran': 'Iran',
        },
        'birth_date_formats': ['%d.%m.%Y', '%d/%m/%Y', '%d-%m-%Y', '%Y-%m-%d'],

        'web_selectors': {
            'headings': 'h3',
            'shirt_numbers': 'table.plainrowheaders td:nth-child(1)',
            'player_names': 'table.plainrowheaders th a',
            'caps': 'table.plainrowheaders td:nth-child(5)',
        },
        'group_heading_pattern': r'^Group\b',
        'role_markers': ['captain'],

        'unmatched_policy': 'ignore',
        'alignment_cross_check': True,
        'alignment_threshold': 60,

        'elite_leagues': ['ENG', 'ESP', 'GER', 'ITA', 'FRA'],
        'age_cohort_bins': [18, 22, 26, 30, 34, 45],
        'top_n': 15,
    }
