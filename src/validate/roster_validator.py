#!/usr/bin/env python3
"""
Roster Validator for the World Cup Squad Data Pipeline
======================================================

Read-only structural checks over the normalized player table. The checks are
a pure function returning every violated invariant; ``RosterValidator.validate`` turns
the first violation into a ``ValidationError`` for callers that abort.

Invariants, in order:
- team_count: exactly ``expected_teams`` distinct teams
- squad_size: every team has exactly ``squad_size`` players
- goalkeepers_per_team: every team has exactly ``goalkeepers_per_team`` GKs
- position_values: every position is one of the configured codes
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

import pandas as pd

from src.utils.exceptions import ValidationError


@dataclass
class InvariantViolation:
    """A single failed roster invariant."""
    invariant: str
    observed: Any
    expected: Any
    team: Optional[str] = None

    def to_error(self) -> ValidationError:
        return ValidationError(self.invariant, self.observed, self.expected, self.team)

    def describe(self) -> str:
        return str(self.to_error())


def check_roster(roster: pd.DataFrame, expected_teams: int, squad_size: int,
                 goalkeepers_per_team: int, positions: List[str]) -> List[InvariantViolation]:
    """
    Check the roster invariants without raising.

    Args:
        roster: Normalized player table (needs ``team`` and ``position``)
        expected_teams: Required number of distinct teams
        squad_size: Required players per team
        goalkeepers_per_team: Required GK count per team
        positions: Allowed position codes; the first is the goalkeeper code

    Returns:
        Violations in invariant order (empty when the roster is valid)
    """
    violations: List[InvariantViolation] = []

    team_count = int(roster['team'].nunique())
    if team_count != expected_teams:
        violations.append(InvariantViolation('team_count', team_count, expected_teams))

    sizes = roster.groupby('team', sort=False).size()
    for team, size in sizes.items():
        if size != squad_size:
            violations.append(InvariantViolation('squad_size', int(size), squad_size, team))

    goalkeeper_code = positions[0]
    goalkeepers = (
        roster[roster['position'] == goalkeeper_code]
        .groupby('team', sort=False).size()
        .reindex(sizes.index, fill_value=0)
    )
    for team, count in goalkeepers.items():
        if count != goalkeepers_per_team:
            violations.append(InvariantViolation('goalkeepers_per_team', int(count), goalkeepers_per_team, team))

    invalid = roster.loc[~roster['position'].isin(positions), 'position']
    if not invalid.empty:
        codes = sorted(str(code) for code in invalid.unique())
        violations.append(
            InvariantViolation('position_values', f"{len(invalid)} rows with {codes}", positions)
        )

    return violations


class RosterValidator:
    """
    Validates the normalized roster against the tournament's squad rules.
    """

    def __init__(self, config):
        """Initialize the roster validator."""
        self.config = config
        self.logger = logging.getLogger('RosterValidator')

    def check(self, roster: pd.DataFrame) -> List[InvariantViolation]:
        """Return every violated invariant for ``roster``."""
        return check_roster(
            roster,
            expected_teams=self.config.expected_teams,
            squad_size=self.config.squad_size,
            goalkeepers_per_team=self.config.goalkeepers_per_team,
            positions=self.config.positions,
        )

    def validate(self, roster: pd.DataFrame) -> pd.DataFrame:
        """
        Abort on the first violated invariant.

        Args:
            roster: Normalized player table

        Returns:
            The same table, unchanged, when every invariant holds

        Raises:
            ValidationError: Naming the first failed invariant and its observed value
        """
        violations = self.check(roster)
        if violations:
            for violation in violations:
                self.logger.error(violation.describe())
            raise violations[0].to_error()

        self.logger.info(
            f"Roster valid: {self.config.expected_teams} teams x {self.config.squad_size} players, "
            f"{self.config.goalkeepers_per_team} goalkeepers each"
        )
        return roster
