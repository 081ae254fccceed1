"""Shared test fixtures: a synthetic 32-team tournament in PDF-table and HTML form."""

import pytest

from config.squad_config import SquadConfig, create_default_config
from src.collect.pdf_collector import PDFSquadCollector
from src.collect.web_collector import WebSquadCollector
from src.parse.pdf_normalizer import SquadListNormalizer


PDF_HEADER = ['Team', '#', 'Pos.', 'FIFA Popular Name', 'Birth Date', 'Shirt Name', 'Club', 'Height', 'Weight']

# Web spelling; the PDF uses "IR Iran" and "Korea Republic"
TEAMS = [
    'Russia', 'Saudi Arabia', 'Egypt', 'Uruguay',
    'Portugal', 'Spain', 'Morocco', 'Iran',
    'France', 'Australia', 'Peru', 'Denmark',
    'Argentina', 'Iceland', 'Croatia', 'Nigeria',
    'Brazil', 'Switzerland', 'Costa Rica', 'Serbia',
    'Germany', 'Mexico', 'Sweden', 'South Korea',
    'Belgium', 'Panama', 'Tunisia', 'England',
    'Poland', 'Senegal', 'Colombia', 'Japan',
]
PDF_SPELLING = {'Iran': 'IR Iran', 'South Korea': 'Korea Republic'}
GROUPS = 'ABCDEFGH'
LEAGUES = ['ENG', 'ESP', 'GER', 'ITA', 'FRA', 'MEX', 'URU']
GOALKEEPER_NUMBERS = (1, 12, 23)


def position_for(number: int) -> str:
    if number in GOALKEEPER_NUMBERS:
        return 'GK'
    if number <= 8:
        return 'DF'
    if number <= 16:
        return 'MF'
    return 'FW'


def caps_for(team_index: int, number: int) -> int:
    return number * 3 + team_index


def build_raw_tables(teams=TEAMS):
    """One raw pdfplumber-style table (header row first) per team."""
    tables = []
    for team_index, team in enumerate(teams):
        pdf_team = PDF_SPELLING.get(team, team)
        rows = [list(PDF_HEADER)]
        for number in range(1, 24):
            rows.append([
                pdf_team,
                str(number),
                position_for(number),
                f"{team.upper()} PLAYER {number}",
                f"{number:02d}.{team_index % 12 + 1:02d}.{1985 + number % 12}",
                f"PLAYER {number}",
                f"Club {number % 7} ({LEAGUES[number % len(LEAGUES)]})",
                str(170 + number),
                str(65 + number),
            ])
        tables.append(rows)
    return tables


def build_squad_html(teams=TEAMS, skip_caps_cell=None):
    """
    Squad page in the shape of the 2018 squads article.

    ``skip_caps_cell`` is a ``(team, number)`` pair whose row stops after the
    date of birth, so it has no caps cell.
    """
    parts = ['<html><body><h1>2018 FIFA World Cup squads</h1>']
    for team_index, team in enumerate(teams):
        if team_index % 4 == 0:
            parts.append(f'<h2>Group {GROUPS[team_index // 4]}<span class="mw-editsection">[edit]</span></h2>')
        parts.append(f'<h3>{team}<span class="mw-editsection">[edit]</span></h3>')
        parts.append('<table class="sortable wikitable plainrowheaders"><tr>'
                     '<th>No.</th><th>Pos.</th><th>Player</th><th>Date of birth (age)</th>'
                     '<th>Caps</th><th>Goals</th><th>Club</th></tr>')
        for number in range(1, 24):
            captain = ' (<a href="/wiki/Captain_(association_football)">captain</a>)' if number == 10 else ''
            trailing = (
                '' if skip_caps_cell == (team, number)
                else f'<td>{caps_for(team_index, number)}</td><td>0</td>'
                     f'<td><a href="/wiki/Club">Club {number % 7}</a></td>'
            )
            parts.append(
                f'<tr><td>{number}</td><td>{position_for(number)}</td>'
                f'<th scope="row"><a href="/wiki/P{team_index}_{number}">{team} Player {number}</a>{captain}</th>'
                f'<td>1 January 1990 (aged 28)</td>{trailing}</tr>'
            )
        parts.append('</table>')
    parts.append('</body></html>')
    return '\n'.join(parts)


@pytest.fixture
def config(tmp_path):
    """Default configuration writing under a temporary directory."""
    config_dict = create_default_config()
    config_dict.update({'output_dir': str(tmp_path / 'output'), 'produce_plots': False})
    return SquadConfig(config_dict)


@pytest.fixture
def raw_tables():
    return build_raw_tables()


@pytest.fixture
def pdf_frames(config, raw_tables):
    """Raw tables as returned by the PDF collector."""
    return PDFSquadCollector(config).tables_from_raw(raw_tables)


@pytest.fixture
def players(config, pdf_frames):
    """Normalized player table."""
    return SquadListNormalizer(config).normalize(pdf_frames)


@pytest.fixture
def squad_html():
    return build_squad_html()


@pytest.fixture
def web_players(config, squad_html):
    """Scraped web player table."""
    return WebSquadCollector(config).parse_squads(squad_html)
