#!/usr/bin/env python3
"""
World Cup Squad Data Pipeline - Step-Based Processing
=====================================================

Builds one tidy table of World Cup squad players from two sources: the
official squad-list PDF and a squad web page, then produces summary tables
and descriptive plots.

Processing Steps:
- step_01_collect_pdf: Extract the raw squad tables from the PDF
- step_02_normalize: Build the canonical player table
- step_03_validate: Check the squad invariants (aborts on failure)
- step_04_collect_web: Scrape team, shirt number, name and caps
- step_05_reconcile: Left-join the PDF roster with the web table
- step_06_report: Derived columns, summary tables, plots and exports

Any error aborts the whole run; there is no partial output.
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Dict, Any, Optional

from config.squad_config import SquadConfig, create_default_config, VALID_UNMATCHED_POLICIES
from src.collect.pdf_collector import PDFSquadCollector
from src.collect.web_collector import WebSquadCollector
from src.curate.reconciler import SquadReconciler
from src.curate.squad_summaries import add_derived_columns, build_all_summaries
from src.parse.pdf_normalizer import SquadListNormalizer
from src.report.visualizer import SquadVisualizer
from src.utils.exceptions import SquadDataError
from src.utils.storage import CSVStorageManager
from src.validate.roster_validator import RosterValidator


class SquadDataSystem:
    """
    World Cup squad data pipeline with step-based processing.

    Each step keeps its output table on the instance so later steps (and
    callers) can read it; nothing is persisted between runs.
    """

    # Define processing steps
    PROCESSING_STEPS = [
        'step_01_collect_pdf',
        'step_02_normalize',
        'step_03_validate',
        'step_04_collect_web',
        'step_05_reconcile',
        'step_06_report',
    ]

    # Define step dependencies
    STEP_DEPENDENCIES = {
        'step_01_collect_pdf': [],
        'step_02_normalize': ['step_01_collect_pdf'],
        'step_03_validate': ['step_02_normalize'],
        'step_04_collect_web': [],  # Independent of the PDF branch
        'step_05_reconcile': ['step_03_validate', 'step_04_collect_web'],
        'step_06_report': ['step_05_reconcile'],
    }

    # Handlers installed on the root logger by the most recent instance
    _root_handlers: List[logging.Handler] = []

    def __init__(self, config: Optional[SquadConfig] = None,
                 pdf_collector: Optional[PDFSquadCollector] = None,
                 web_collector: Optional[WebSquadCollector] = None,
                 setup_logging: bool = True):
        """
        Initialize the squad data system.

        Args:
            config: Pipeline configuration, or None for defaults
            pdf_collector: Collector override (e.g. with an injected extractor)
            web_collector: Collector override (e.g. with an injected fetcher)
            setup_logging: Attach console and file handlers to the system logger
        """
        self.config = config or SquadConfig(create_default_config())
        self.logger = self._setup_logging() if setup_logging else logging.getLogger('SquadDataSystem')

        # Initialize components
        self.pdf_collector = pdf_collector or PDFSquadCollector(self.config)
        self.web_collector = web_collector or WebSquadCollector(self.config)
        self.normalizer = SquadListNormalizer(self.config)
        self.validator = RosterValidator(self.config)
        self.reconciler = SquadReconciler(self.config)
        self.storage_manager = CSVStorageManager(self.config)

        # Track completed steps for dependency management
        self.completed_steps = set()
        self.step_results: Dict[str, Any] = {}

        # Tables produced by the steps
        self.raw_tables = None
        self.players = None
        self.web_players = None
        self.merged = None
        self.reconciliation_report = None
        self.summaries: Dict[str, Any] = {}

    def _setup_logging(self) -> logging.Logger:
        """Set up console and file logging for the run."""
        logger = logging.getLogger('SquadDataSystem')
        logger.setLevel(logging.DEBUG if self.config.verbose else logging.INFO)

        log_dir = Path(self.config.output_dir) / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        # Create handlers
        console_handler = logging.StreamHandler(sys.stdout)
        file_handler = logging.FileHandler(log_dir / f'squads_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log')

        # Create formatters and add it to handlers
        log_format = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(log_format)
        file_handler.setFormatter(log_format)

        # Component loggers are named after their classes; route them all through the root.
        # Handlers from an earlier instance are replaced, not stacked.
        root_logger = logging.getLogger()
        root_logger.setLevel(logger.level)
        for handler in SquadDataSystem._root_handlers:
            root_logger.removeHandler(handler)
            handler.close()
        SquadDataSystem._root_handlers = [console_handler, file_handler]
        for handler in SquadDataSystem._root_handlers:
            root_logger.addHandler(handler)

        return logger

    def run(self, steps: Optional[List[str]] = None) -> Dict[str, Any]:
        """
        Execute the given steps (all steps by default) in pipeline order.

        Args:
            steps: Step names; dependencies must be included or already completed

        Returns:
            Dictionary of step name to step result
        """
        steps = steps or self.PROCESSING_STEPS
        ordered = [step for step in self.PROCESSING_STEPS if step in steps]
        unknown = sorted(set(steps) - set(self.PROCESSING_STEPS))
        if unknown:
            raise ValueError(f"Unknown steps: {unknown}")

        self.logger.info(f"Starting squad pipeline: {', '.join(ordered)}")
        for step in ordered:
            try:
                self.execute_step(step)
            except Exception as e:
                self.logger.error(f"Error in {step}: {e}")
                raise

        self.logger.info("Squad pipeline completed successfully")
        return self.step_results

    def execute_step(self, step_name: str) -> Dict[str, Any]:
        """
        Execute a specific processing step.

        Args:
            step_name: Name of the step to execute

        Returns:
            Dictionary containing step results
        """
        if step_name not in self.STEP_DEPENDENCIES:
            raise ValueError(f"Unknown step: {step_name}")

        # Check dependencies
        if not self._check_step_dependencies(step_name):
            missing_deps = [dep for dep in self.STEP_DEPENDENCIES[step_name] if dep not in self.completed_steps]
            raise ValueError(f"Step {step_name} missing dependencies: {missing_deps}")

        self.logger.info(f"Executing {step_name}")

        step_method = getattr(self, step_name)
        result = step_method()

        # Mark step as completed and store results
        self.completed_steps.add(step_name)
        self.step_results[step_name] = result

        self.logger.info(f"Completed {step_name}")
        return result

    def _check_step_dependencies(self, step_name: str) -> bool:
        """True when every dependency of ``step_name`` has completed."""
        required_deps = self.STEP_DEPENDENCIES.get(step_name, [])
        return all(dep in self.completed_steps for dep in required_deps)

    def step_01_collect_pdf(self) -> Dict[str, Any]:
        """Step 1: Extract the raw squad tables from the squad-list PDF."""
        if not self.config.pdf_source:
            raise ValueError("No squad-list PDF configured; pass --pdf or set pdf_source")

        self.raw_tables = self.pdf_collector.load_tables(self.config.pdf_source)
        return {
            'source': self.config.pdf_source,
            'tables': len(self.raw_tables),
            'rows': sum(len(table) for table in self.raw_tables),
        }

    def step_02_normalize(self) -> Dict[str, Any]:
        """Step 2: Normalize the raw tables into the player table."""
        self.players = self.normalizer.normalize(self.raw_tables)
        return {
            'players': len(self.players),
            'teams': int(self.players['team'].nunique()),
        }

    def step_03_validate(self) -> Dict[str, Any]:
        """Step 3: Abort unless every squad invariant holds."""
        self.validator.validate(self.players)
        return {'valid': True}

    def step_04_collect_web(self) -> Dict[str, Any]:
        """Step 4: Scrape the squad page."""
        self.web_players = self.web_collector.collect(self.config.web_source)
        return {
            'source': self.config.web_source,
            'players': len(self.web_players),
        }

    def step_05_reconcile(self) -> Dict[str, Any]:
        """Step 5: Join the validated roster with the web table."""
        self.merged, self.reconciliation_report = self.reconciler.reconcile(self.players, self.web_players)
        report = self.reconciliation_report
        return {
            'players': report.total_players,
            'matched': report.matched_players,
            'unmatched': len(report.unmatched_players),
            'suspect_alignments': len(report.suspect_alignments),
        }

    def step_06_report(self) -> Dict[str, Any]:
        """Step 6: Derived columns, summary tables, plots and exports."""
        self.merged = add_derived_columns(self.merged, self.config.elite_leagues, self.config.age_cohort_bins)
        self.summaries = build_all_summaries(self.merged, self.config.elite_leagues, self.config.top_n)

        result: Dict[str, Any] = {'summaries': sorted(self.summaries), 'files': []}
        if self.config.produce_csv:
            written = self.storage_manager.save_players(self.merged)
            result['files'].extend(str(path) for path in written.values())
            result['files'].extend(str(path) for path in self.storage_manager.save_summaries(self.summaries))

        if self.config.produce_plots:
            visualizer = SquadVisualizer(self.config.get_output_path('plots'), top_n=self.config.top_n)
            result['files'].extend(str(path) for path in visualizer.create_all_plots(self.merged, self.summaries))

        return result


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='World Cup Squad Data Pipeline - merge the squad-list PDF with the squad web page'
    )

    parser.add_argument(
        '--pdf',
        help='Squad-list PDF URL or path'
    )

    parser.add_argument(
        '--web',
        help='Squad web page URL (default: the configured Wikipedia page)'
    )

    parser.add_argument(
        '--config',
        help='JSON file with configuration overrides'
    )

    parser.add_argument(
        '--output-dir',
        help='Directory for exports, plots and logs (default: ./output)'
    )

    parser.add_argument(
        '--steps',
        nargs='+',
        choices=SquadDataSystem.PROCESSING_STEPS,
        help='Run only these steps (dependencies must be included)'
    )

    parser.add_argument(
        '--unmatched-policy',
        choices=VALID_UNMATCHED_POLICIES,
        help='What to do with PDF players that have no web match'
    )

    parser.add_argument(
        '--no-plots',
        action='store_true',
        help='Skip plot generation'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    args = parser.parse_args()

    # Build configuration
    overrides: Dict[str, Any] = {'verbose': args.verbose}
    if args.pdf:
        overrides['pdf_source'] = args.pdf
    if args.web:
        overrides['web_source'] = args.web
    if args.output_dir:
        overrides['output_dir'] = args.output_dir
    if args.unmatched_policy:
        overrides['unmatched_policy'] = args.unmatched_policy
    if args.no_plots:
        overrides['produce_plots'] = False

    if args.config:
        config = SquadConfig.from_file(args.config, overrides)
    else:
        config_dict = create_default_config()
        config_dict.update(overrides)
        config = SquadConfig(config_dict)

    # Initialize system
    system = SquadDataSystem(config)

    try:
        results = system.run(args.steps)
    except KeyboardInterrupt:
        system.logger.info("Operation cancelled by user")
        sys.exit(1)
    except SquadDataError as e:
        system.logger.error(f"Run aborted: {e}")
        sys.exit(1)

    print("\nSquad pipeline results:")
    for step, result in results.items():
        print(f"  {step}: {result}")


if __name__ == '__main__':
    main()
