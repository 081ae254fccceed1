#!/usr/bin/env python3
"""
Squad-List Normalizer
=====================

Turns the raw squad tables extracted from the PDF into one tidy player table:

1. concatenate the per-squad tables
2. rename source headers to canonical field names
3. map PDF team spellings onto the spellings used by the web source
4. split the composite "Club (LEAGUE)" field into ``club`` and ``league``
5. parse birth dates
6. compute the age in fractional years at the tournament start
"""

import logging
import re
from datetime import date, datetime
from typing import Dict, List, Any, Optional, Sequence, Tuple

import pandas as pd

from src.utils.exceptions import DateParseError, SourceFormatError
from src.utils.text import clean_cell, normalize_whitespace

# Mean Gregorian year length
DAYS_PER_YEAR = 365.2425

REQUIRED_FIELDS = ['team', 'shirt_number', 'position', 'display_name', 'birth_date', 'shirt_label', 'club']
OPTIONAL_FIELDS = ['height', 'weight']

# Greedy prefix so the match is the last bracketed token, e.g. "Nacional (Montevideo) (URU)"
_LAST_BRACKET_RE = re.compile(r'^(?P<club>.*)[\(\[](?P<league>[^\(\)\[\]]*)[\)\]]\s*$')
_TRAILING_CODE_RE = re.compile(r'^(?P<club>.+?)\s+(?P<league>[A-Z]{3})$')


def split_club(composite: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Split a composite club field into club name and league code.

    Grammar: ``club-name [separator] "(" league-code ")"`` where the league
    code is the content of the last parenthesised (or bracketed) token. When
    no delimiters are present, a trailing three-letter upper-case token is
    taken as the code; otherwise the league is ``None``.

    Examples:
        >>> split_club("Club América (MEX)")
        ('Club América', 'MEX')
        >>> split_club("Nacional (Montevideo) (URU)")
        ('Nacional (Montevideo)', 'URU')

    Args:
        composite: Raw club cell

    Returns:
        Tuple of (club, league)
    """
    if composite is None:
        return None, None
    text = normalize_whitespace(str(composite))
    if not text:
        return None, None

    match = _LAST_BRACKET_RE.match(text)
    if match:
        club = normalize_whitespace(match.group('club')).rstrip(' -,')
        league = normalize_whitespace(match.group('league')) or None
        return club or None, league

    match = _TRAILING_CODE_RE.match(text)
    if match:
        return match.group('club').rstrip(' -,'), match.group('league')

    return text, None


def join_club(club: Optional[str], league: Optional[str]) -> Optional[str]:
    """Reassemble the composite club field produced by ``split_club``."""
    if league is None:
        return club
    if club is None:
        return f"({league})"
    return f"{club} ({league})"


def parse_birth_date(value: Any, formats: Sequence[str] = ('%d.%m.%Y', '%Y-%m-%d')) -> date:
    """
    Parse a day-month-year birth date.

    Dates and timestamps are returned as plain dates so that parsing an
    already-parsed value is a no-op. Keep ``%Y-%m-%d`` among the formats so
    ``str()`` of a parsed date reads back to the same date.

    Args:
        value: Text cell, ``date`` or ``datetime``
        formats: strptime formats tried in order

    Returns:
        Calendar date

    Raises:
        DateParseError: None of the formats match
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise DateParseError(value, formats)

    text = normalize_whitespace(value)
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise DateParseError(value, formats)


def compute_age(birth_date: date, reference_date: date) -> float:
    """Elapsed days from ``birth_date`` to ``reference_date`` in mean years."""
    return (reference_date - birth_date).days / DAYS_PER_YEAR


class SquadListNormalizer:
    """
    Normalizes raw squad-list tables into the canonical player table.
    """

    def __init__(self, config):
        """Initialize the normalizer."""
        self.config = config
        self.logger = logging.getLogger('SquadListNormalizer')

    def normalize(self, tables: List[pd.DataFrame]) -> pd.DataFrame:
        """
        Run every normalization step in order.

        Args:
            tables: Raw squad tables from ``PDFSquadCollector``

        Returns:
            Player table with canonical columns plus ``league`` and ``age``
        """
        roster = self.concatenate_tables(tables)
        roster = self.rename_columns(roster)
        roster = self.clean_cells(roster)
        roster = self.apply_team_aliases(roster, self.config.team_aliases)
        roster = self.convert_numbers(roster)
        roster = self.split_club_field(roster)
        roster = self.parse_birth_dates(roster)
        roster = self.add_age(roster)

        columns = REQUIRED_FIELDS[:6] + ['club', 'league'] + OPTIONAL_FIELDS + ['age']
        roster = roster[columns]
        self.logger.info(f"Normalized {len(roster)} players across {roster['team'].nunique()} teams")
        return roster

    def concatenate_tables(self, tables: List[pd.DataFrame]) -> pd.DataFrame:
        """
        Stack the per-squad tables, keeping row order.

        Raises:
            SourceFormatError: The row count is not ``squad_size`` rows per table
        """
        if not tables:
            raise SourceFormatError("No squad tables to normalize")

        roster = pd.concat(tables, ignore_index=True)
        expected_rows = self.config.squad_size * len(tables)
        if len(roster) != expected_rows:
            short = [i for i, t in enumerate(tables) if len(t) != self.config.squad_size]
            raise SourceFormatError(
                f"Concatenated {len(roster)} rows from {len(tables)} tables, expected {expected_rows} "
                f"({self.config.squad_size} per table); tables with other sizes: {short}"
            )
        return roster

    def rename_columns(self, roster: pd.DataFrame) -> pd.DataFrame:
        """Rename source headers to canonical names and drop unmapped columns."""
        roster = roster.rename(columns=self.config.pdf_column_map)

        missing = [field for field in REQUIRED_FIELDS if field not in roster.columns]
        if missing:
            raise SourceFormatError(
                f"Squad tables are missing required columns: {', '.join(missing)} "
                f"(found: {', '.join(map(str, roster.columns))})"
            )

        for field in OPTIONAL_FIELDS:
            if field not in roster.columns:
                self.logger.debug(f"Column '{field}' not present in this source revision")
                roster[field] = float('nan')

        return roster[REQUIRED_FIELDS + OPTIONAL_FIELDS].copy()

    def clean_cells(self, roster: pd.DataFrame) -> pd.DataFrame:
        """Collapse the line breaks and padding pdfplumber leaves in text cells."""
        roster = roster.copy()
        for column in roster.columns:
            roster[column] = roster[column].map(clean_cell)
        roster['position'] = roster['position'].map(lambda v: v.upper() if isinstance(v, str) else v)
        return roster

    @staticmethod
    def apply_team_aliases(roster: pd.DataFrame, aliases: Dict[str, str]) -> pd.DataFrame:
        """
        Replace PDF team spellings with their canonical spelling.

        Args:
            roster: Player table with a ``team`` column
            aliases: Mapping of source spelling to canonical spelling

        Returns:
            Copy of the table with corrected team names
        """
        roster = roster.copy()
        roster['team'] = roster['team'].map(lambda team: aliases.get(team, team))
        return roster

    def convert_numbers(self, roster: pd.DataFrame) -> pd.DataFrame:
        """
        Convert shirt numbers to integers and height/weight to numbers.

        Raises:
            SourceFormatError: A shirt number is not an integer in
                ``1..squad_size`` or repeats within a team
        """
        roster = roster.copy()
        numbers = pd.to_numeric(roster['shirt_number'], errors='coerce')
        bad = roster.loc[numbers.isna() | (numbers % 1 != 0), 'shirt_number'].tolist()
        if bad:
            raise SourceFormatError(f"Non-numeric shirt numbers in squad tables: {bad[:5]}")
        roster['shirt_number'] = numbers.astype(int)

        squad_size = self.config.squad_size
        out_of_range = roster[~roster['shirt_number'].between(1, squad_size)]
        if not out_of_range.empty:
            keys = list(out_of_range[['team', 'shirt_number']].itertuples(index=False, name=None))
            raise SourceFormatError(f"Shirt numbers outside 1-{squad_size}: {keys[:5]}")

        repeated = roster[roster.duplicated(subset=['team', 'shirt_number'], keep=False)]
        if not repeated.empty:
            keys = sorted(set(repeated[['team', 'shirt_number']].itertuples(index=False, name=None)))
            raise SourceFormatError(f"Shirt numbers repeated within a team: {keys[:5]}")

        for field in OPTIONAL_FIELDS:
            roster[field] = pd.to_numeric(roster[field], errors='coerce').astype(float)
        return roster

    def split_club_field(self, roster: pd.DataFrame) -> pd.DataFrame:
        """Split ``club`` into ``club`` and ``league``."""
        roster = roster.copy()
        parts = roster['club'].map(split_club)
        roster['club'] = parts.map(lambda p: p[0])
        roster['league'] = parts.map(lambda p: p[1])

        missing_league = int(roster['league'].isna().sum())
        if missing_league:
            self.logger.warning(f"{missing_league} clubs have no league code")
        return roster

    def parse_birth_dates(self, roster: pd.DataFrame) -> pd.DataFrame:
        """Parse ``birth_date``; any unparseable value aborts the run."""
        roster = roster.copy()
        formats = self.config.birth_date_formats
        parsed = roster['birth_date'].map(lambda value: parse_birth_date(value, formats))
        roster['birth_date'] = pd.to_datetime(parsed)
        return roster

    def add_age(self, roster: pd.DataFrame) -> pd.DataFrame:
        """Add the fractional-year age at the tournament start."""
        roster = roster.copy()
        reference = self.config.tournament_start
        roster['age'] = roster['birth_date'].map(lambda born: compute_age(born.date(), reference)).astype(float)
        return roster
