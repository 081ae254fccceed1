"""Tests for squad-list normalization."""

from datetime import date, datetime

import pandas as pd
import pytest

from conftest import build_raw_tables
from src.collect.pdf_collector import PDFSquadCollector
from src.parse.pdf_normalizer import (
    DAYS_PER_YEAR,
    SquadListNormalizer,
    compute_age,
    join_club,
    parse_birth_date,
    split_club,
)
from src.utils.exceptions import DateParseError, SourceFormatError


class TestSplitClub:
    """Composite club field grammar."""

    def test_simple(self):
        assert split_club("Club América (MEX)") == ("Club América", "MEX")

    def test_parentheses_inside_club_name(self):
        assert split_club("Nacional (Montevideo) (URU)") == ("Nacional (Montevideo)", "URU")

    def test_extra_whitespace_and_line_breaks(self):
        assert split_club("Real Madrid  CF\n(ESP)") == ("Real Madrid CF", "ESP")

    def test_square_brackets(self):
        assert split_club("Celtic FC [SCO]") == ("Celtic FC", "SCO")

    def test_trailing_code_without_brackets(self):
        assert split_club("Besiktas JK TUR") == ("Besiktas JK", "TUR")

    def test_no_league_code(self):
        assert split_club("Free agent") == ("Free agent", None)

    def test_missing(self):
        assert split_club(None) == (None, None)
        assert split_club("   ") == (None, None)

    @pytest.mark.parametrize("composite", [
        "Club América (MEX)",
        "Nacional (Montevideo) (URU)",
        "Paris Saint-Germain (FRA)",
    ])
    def test_join_restores_composite(self, composite):
        assert join_club(*split_club(composite)) == composite


class TestParseBirthDate:
    """Day-month-year parsing."""

    def test_dotted(self):
        assert parse_birth_date("15.06.1987") == date(1987, 6, 15)

    def test_alternative_format(self):
        formats = ['%d.%m.%Y', '%d/%m/%Y']
        assert parse_birth_date("15/06/1987", formats) == date(1987, 6, 15)

    def test_already_parsed_is_unchanged(self):
        parsed = parse_birth_date("15.06.1987")
        assert parse_birth_date(parsed) == parsed
        assert parse_birth_date(datetime(1987, 6, 15, 0, 0)) == parsed

    def test_string_form_of_parsed_date_reads_back(self, config):
        parsed = parse_birth_date("15.06.1987", config.birth_date_formats)
        assert str(parsed) == "1987-06-15"
        assert parse_birth_date(str(parsed), config.birth_date_formats) == parsed
        assert parse_birth_date(str(parsed)) == parsed

    def test_invalid_day(self):
        with pytest.raises(DateParseError) as excinfo:
            parse_birth_date("31.02.1990")
        assert excinfo.value.value == "31.02.1990"

    def test_non_text(self):
        with pytest.raises(DateParseError):
            parse_birth_date(None)


class TestComputeAge:

    def test_one_mean_year(self):
        born = date(2000, 1, 1)
        assert compute_age(born, born) == 0.0
        assert compute_age(born, date(2001, 1, 1)) == pytest.approx(366 / DAYS_PER_YEAR)

    def test_older_player_has_larger_age(self):
        start = date(2018, 6, 14)
        assert compute_age(date(1985, 3, 1), start) > compute_age(date(1995, 3, 1), start)


class TestSquadListNormalizer:
    """End-to-end normalization of the synthetic tables."""

    def test_shape_and_columns(self, players):
        assert len(players) == 736
        assert list(players.columns) == [
            'team', 'shirt_number', 'position', 'display_name', 'birth_date', 'shirt_label',
            'club', 'league', 'height', 'weight', 'age',
        ]

    def test_team_aliases_applied(self, players):
        teams = set(players['team'])
        assert {'Iran', 'South Korea'} <= teams
        assert not {'IR Iran', 'Korea Republic'} & teams

    def test_types(self, players):
        assert pd.api.types.is_integer_dtype(players['shirt_number'])
        assert pd.api.types.is_datetime64_any_dtype(players['birth_date'])
        assert players['height'].dtype == float
        assert players['age'].dtype == float

    def test_club_split(self, players):
        row = players[(players['team'] == 'Brazil') & (players['shirt_number'] == 8)].iloc[0]
        assert row['club'] == 'Club 1'
        assert row['league'] == 'ESP'

    def test_age_at_tournament_start(self, config, players):
        row = players[(players['team'] == 'Russia') & (players['shirt_number'] == 5)].iloc[0]
        expected = (config.tournament_start - date(1990, 1, 5)).days / DAYS_PER_YEAR
        assert row['age'] == pytest.approx(expected)

    def test_row_count_mismatch(self, config):
        tables = build_raw_tables()
        tables[3].pop()
        frames = PDFSquadCollector(config).tables_from_raw(tables)
        with pytest.raises(SourceFormatError, match='expected 736'):
            SquadListNormalizer(config).normalize(frames)

    def test_unparseable_birth_date(self, config):
        tables = build_raw_tables()
        tables[0][4][4] = '31.02.1990'
        frames = PDFSquadCollector(config).tables_from_raw(tables)
        with pytest.raises(DateParseError):
            SquadListNormalizer(config).normalize(frames)

    def test_missing_required_column(self, config, pdf_frames):
        frames = [frame.drop(columns=['Club']) for frame in pdf_frames]
        with pytest.raises(SourceFormatError, match='club'):
            SquadListNormalizer(config).normalize(frames)

    def test_missing_optional_columns(self, config, pdf_frames):
        frames = [frame.drop(columns=['Height', 'Weight']) for frame in pdf_frames]
        players = SquadListNormalizer(config).normalize(frames)
        assert players['height'].isna().all()
        assert players['weight'].isna().all()

    def test_non_numeric_shirt_number(self, config):
        tables = build_raw_tables()
        tables[2][1][1] = 'x'
        frames = PDFSquadCollector(config).tables_from_raw(tables)
        with pytest.raises(SourceFormatError, match='shirt numbers'):
            SquadListNormalizer(config).normalize(frames)

    def test_shirt_number_out_of_range(self, config):
        tables = build_raw_tables()
        tables[0][1][1] = '99'
        frames = PDFSquadCollector(config).tables_from_raw(tables)
        with pytest.raises(SourceFormatError, match='outside 1-23'):
            SquadListNormalizer(config).normalize(frames)

    def test_shirt_number_repeated_within_team(self, config):
        tables = build_raw_tables()
        tables[0][2][1] = '1'
        frames = PDFSquadCollector(config).tables_from_raw(tables)
        with pytest.raises(SourceFormatError, match='repeated') as excinfo:
            SquadListNormalizer(config).normalize(frames)
        assert 'Russia' in str(excinfo.value)

    def test_same_shirt_number_in_different_teams(self, players):
        assert (players['shirt_number'] == 10).sum() == 32

    def test_apply_team_aliases_leaves_other_teams(self):
        roster = pd.DataFrame({'team': ['IR Iran', 'Spain']})
        result = SquadListNormalizer.apply_team_aliases(roster, {'IR Iran': 'Iran'})
        assert result['team'].tolist() == ['Iran', 'Spain']
        assert roster['team'].tolist() == ['IR Iran', 'Spain']
