#!/usr/bin/env python3
"""
Squad Web Page Collector
========================

Scrapes the squad page (one heading and one table per squad) into a flat
table of team, shirt number, player name and caps.

The page is queried four times with independent CSS selectors: squad
headings, shirt-number cells, linked player names and caps cells. The four
sequences are then zipped by position.

Precondition (not verified here): all four sequences list the players in the
same document order, squad by squad, ``squad_size`` players per squad. Nothing
ties position *i* of one sequence to position *i* of another except that
order. The reconciler runs a name cross-check against the PDF to flag rows
where the assumption looks broken.
"""

import logging
import re
from typing import Callable, List

import pandas as pd
import requests
from bs4 import BeautifulSoup
from pydantic import ValidationError as PydanticValidationError

from src.model.squads import WebRecord
from src.utils.exceptions import SourceFormatError
from src.utils.text import clean_heading, normalize_whitespace

_LEADING_INT_RE = re.compile(r'^\d+')


class WebSquadCollector:
    """
    Collects squad listings from an HTML page with BeautifulSoup selectors.
    """

    def __init__(self, config, fetcher: Callable[[str], str] = None):
        """Initialize the web collector."""
        self.config = config
        self.logger = logging.getLogger('WebSquadCollector')
        self.fetcher = fetcher

        # Headers for requests
        self.headers = dict(config.headers)
        self.selectors = config.web_selectors
        self.group_pattern = re.compile(config.group_heading_pattern, re.IGNORECASE)

    def fetch_page(self, url: str) -> str:
        """
        Fetch and return the squad page HTML.

        Args:
            url: Page URL

        Returns:
            HTML content as string
        """
        if self.fetcher is not None:
            html_content = self.fetcher(url)
        else:
            self.logger.debug(f"Fetching squad page: {url}")
            try:
                with requests.Session() as session:
                    response = session.get(url, headers=self.headers, timeout=self.config.request_timeout)
                    response.raise_for_status()
            except requests.exceptions.RequestException as e:
                self.logger.error(f"Request error fetching squad page {url}: {e}")
                raise
            html_content = response.text

        if not html_content or not html_content.strip():
            raise SourceFormatError(f"Empty response for {url}")
        return html_content

    def collect(self, url: str) -> pd.DataFrame:
        """Fetch the page and return the web player table."""
        html_content = self.fetch_page(url)
        players = self.parse_squads(html_content)
        self.logger.info(f"Scraped {len(players)} players for {players['team'].nunique()} teams from {url}")
        return players

    def parse_squads(self, html_content: str) -> pd.DataFrame:
        """
        Extract the four parallel sequences and assemble them.

        Args:
            html_content: Squad page HTML

        Returns:
            DataFrame with columns team, shirt_number, display_name, caps
        """
        soup = BeautifulSoup(html_content, 'html.parser')
        teams = self.extract_team_names(soup)
        shirt_numbers = self.extract_shirt_numbers(soup)
        names = self.extract_player_names(soup)
        caps = self.extract_caps(soup)
        return self.assemble_records(teams, shirt_numbers, names, caps)

    def extract_team_names(self, soup: BeautifulSoup) -> List[str]:
        """Squad headings in document order, without "Group X" sub-headers."""
        headings = [clean_heading(node.get_text(' ')) for node in soup.select(self.selectors['headings'])]
        teams = [text for text in headings if text and not self.group_pattern.search(text)]
        self.logger.debug(f"Found {len(teams)} candidate squad headings")

        expected = self.config.expected_teams
        if len(teams) < expected:
            raise SourceFormatError(f"Found {len(teams)} squad headings, expected at least {expected}")
        return teams[:expected]

    def extract_shirt_numbers(self, soup: BeautifulSoup) -> List[int]:
        """Shirt-number column across all squad tables."""
        cells = [node.get_text(' ', strip=True) for node in soup.select(self.selectors['shirt_numbers'])]
        self._check_length('shirt_numbers', len(cells))
        return [self._parse_int(text, 'shirt number') for text in cells]

    def extract_player_names(self, soup: BeautifulSoup) -> List[str]:
        """Linked player names, without role markers such as "captain"."""
        markers = {marker.lower() for marker in self.config.role_markers}
        names = [normalize_whitespace(node.get_text(' ')) for node in soup.select(self.selectors['player_names'])]
        names = [name for name in names if name and name.lower() not in markers]

        expected = self.config.expected_players
        if len(names) < expected:
            raise SourceFormatError(f"Found {len(names)} player names, expected {expected}")
        return names[:expected]

    def extract_caps(self, soup: BeautifulSoup) -> List[int]:
        """Caps column across all squad tables."""
        cells = [node.get_text(' ', strip=True) for node in soup.select(self.selectors['caps'])]
        self._check_length('caps', len(cells))
        return [self._parse_int(text, 'caps') for text in cells]

    def assemble_records(self, teams: List[str], shirt_numbers: List[int],
                         names: List[str], caps: List[int]) -> pd.DataFrame:
        """
        Zip the four sequences into web records.

        Each team name is repeated ``squad_size`` times; the result is only
        correct if every sequence follows the same document order.

        Raises:
            SourceFormatError: Any sequence has the wrong length
        """
        expected = self.config.expected_players
        team_column = [team for team in teams for _ in range(self.config.squad_size)]
        lengths = {
            'teams': len(team_column),
            'shirt_numbers': len(shirt_numbers),
            'player_names': len(names),
            'caps': len(caps),
        }
        wrong = {name: length for name, length in lengths.items() if length != expected}
        if wrong:
            raise SourceFormatError(f"Sequence lengths {wrong} do not match {expected} players")

        records = []
        for team, number, name, cap in zip(team_column, shirt_numbers, names, caps):
            try:
                records.append(WebRecord(team=team, shirt_number=number, display_name=name, caps=cap))
            except PydanticValidationError as e:
                raise SourceFormatError(f"Invalid web record for {team} #{number}: {e}") from e

        return pd.DataFrame([record.model_dump() for record in records],
                            columns=['team', 'shirt_number', 'display_name', 'caps'])

    def _check_length(self, sequence: str, length: int) -> None:
        expected = self.config.expected_players
        if length != expected:
            raise SourceFormatError(f"Selector for {sequence} matched {length} cells, expected {expected}")

    @staticmethod
    def _parse_int(text: str, field: str) -> int:
        # Cells may carry footnote markers, e.g. "45[a]"
        match = _LEADING_INT_RE.match(text)
        if not match:
            raise SourceFormatError(f"Non-numeric {field} cell: {text!r}")
        return int(match.group())
