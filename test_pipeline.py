"""End-to-end runs of the step-based pipeline with injected sources."""

import json
import logging

import pytest

from config.squad_config import SquadConfig, create_default_config
from conftest import TEAMS, build_raw_tables, build_squad_html, caps_for
from main import SquadDataSystem
from src.collect.pdf_collector import PDFSquadCollector
from src.collect.web_collector import WebSquadCollector
from src.utils.exceptions import SourceFormatError, ValidationError


def _system(tmp_path, raw_tables=None, html=None, **overrides):
    pdf_path = tmp_path / 'squads.pdf'
    pdf_path.write_bytes(b'%PDF-1.4')

    config_dict = create_default_config()
    config_dict.update({'output_dir': str(tmp_path / 'output'), 'pdf_source': str(pdf_path)})
    config_dict.update(overrides)
    config = SquadConfig(config_dict)

    tables = raw_tables if raw_tables is not None else build_raw_tables()
    page = html if html is not None else build_squad_html()
    return SquadDataSystem(
        config,
        pdf_collector=PDFSquadCollector(config, extractor=lambda content: tables),
        web_collector=WebSquadCollector(config, fetcher=lambda url: page),
        setup_logging=False,
    )


class TestFullRun:

    def test_well_formed_sources(self, tmp_path):
        system = _system(tmp_path, produce_plots=False)
        results = system.run()

        assert list(results) == SquadDataSystem.PROCESSING_STEPS
        assert len(system.merged) == 736
        assert system.merged['caps'].notna().all()
        assert system.reconciliation_report.suspect_alignments == []

    def test_alias_teams_are_matched(self, tmp_path):
        system = _system(tmp_path, produce_plots=False)
        system.run()

        merged = system.merged
        for team in ('Iran', 'South Korea'):
            squad = merged[merged['team'] == team].sort_values('shirt_number')
            assert len(squad) == 23
            assert squad['caps'].tolist() == [caps_for(TEAMS.index(team), n) for n in range(1, 24)]

    def test_invalid_roster_aborts_before_web(self, tmp_path):
        tables = build_raw_tables()
        tables[10][12][2] = 'DF'  # Peru #12 is a goalkeeper
        system = _system(tmp_path, raw_tables=tables)

        with pytest.raises(ValidationError) as excinfo:
            system.run()

        assert excinfo.value.invariant == 'goalkeepers_per_team'
        assert excinfo.value.team == 'Peru'
        assert 'step_04_collect_web' not in system.completed_steps
        assert not (tmp_path / 'output' / 'squads.csv').exists()

    def test_short_caps_column_aborts(self, tmp_path):
        system = _system(tmp_path, html=build_squad_html(skip_caps_cell=('Japan', 23)))
        with pytest.raises(SourceFormatError):
            system.run()
        assert system.merged is None

    def test_report_outputs(self, tmp_path):
        system = _system(tmp_path, produce_plots=True)
        results = system.run()

        output = tmp_path / 'output'
        assert (output / 'squads.csv').exists()
        for name in ('teams', 'leagues', 'clubs', 'positions', 'age_cohorts'):
            assert (output / 'tables' / f'{name}.csv').exists()
        assert len(list((output / 'plots').glob('*.png'))) == 5
        assert len(results['step_06_report']['files']) == 12

        with open(output / 'squads.json', encoding='utf-8') as f:
            exported = json.load(f)
        assert len(exported['players']) == 736
        first = exported['players'][0]
        assert first['team'] == 'Russia'
        assert first['position'] == 'GK'
        assert first['birth_date'] == '1986-01-01'


class TestStepExecution:

    def test_missing_dependency(self, tmp_path):
        system = _system(tmp_path)
        with pytest.raises(ValueError, match='missing dependencies'):
            system.execute_step('step_05_reconcile')

    def test_unknown_step(self, tmp_path):
        with pytest.raises(ValueError):
            _system(tmp_path).run(['step_99_publish'])

    def test_web_step_runs_alone(self, tmp_path):
        system = _system(tmp_path)
        results = system.run(['step_04_collect_web'])
        assert results == {'step_04_collect_web': {'source': system.config.web_source, 'players': 736}}

    def test_pdf_source_required(self, tmp_path):
        system = _system(tmp_path, pdf_source=None)
        with pytest.raises(ValueError, match='--pdf'):
            system.execute_step('step_01_collect_pdf')

    def test_second_system_replaces_log_handlers(self, tmp_path):
        root = logging.getLogger()
        level = root.level
        before = list(root.handlers)
        config = SquadConfig({'output_dir': str(tmp_path / 'output')})
        try:
            SquadDataSystem(config)
            SquadDataSystem(config)
            added = [handler for handler in root.handlers if handler not in before]
            assert len(added) == 2
        finally:
            for handler in SquadDataSystem._root_handlers:
                root.removeHandler(handler)
                handler.close()
            SquadDataSystem._root_handlers = []
            root.setLevel(level)
