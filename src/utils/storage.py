#!/usr/bin/env python3
"""
CSV Storage Manager for the World Cup Squad Data Pipeline
=========================================================

Writes the merged player table and the summary tables produced by a run.
Nothing is read back: every run rebuilds its tables from the sources.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List

import pandas as pd

from src.model.squads import MergedRecord, records_from_frame, records_to_rows


class CSVStorageManager:
    """
    Exports run artefacts under the configured output directory:

    - ``squads.csv`` / ``squads.json``: one row per player
    - ``tables/<name>.csv``: one file per summary table
    """

    def __init__(self, config):
        """Initialize the CSV storage manager."""
        self.config = config
        self.logger = logging.getLogger('CSVStorage')
        self.output_path = Path(config.output_dir)

    def save_players(self, players: pd.DataFrame) -> Dict[str, Path]:
        """
        Save the merged player table to CSV and JSON.

        JSON rows go through ``MergedRecord`` so the file matches the record schema.

        Args:
            players: Merged player table

        Returns:
            Mapping of format to written path
        """
        self.output_path.mkdir(parents=True, exist_ok=True)

        csv_path = self.output_path / "squads.csv"
        export_df = players.copy()
        export_df['birth_date'] = export_df['birth_date'].dt.strftime('%Y-%m-%d')
        export_df.to_csv(csv_path, index=False)

        json_path = self.output_path / "squads.json"
        rows = records_to_rows(records_from_frame(players, MergedRecord))
        with open(json_path, 'w', encoding='utf-8') as f:
            json.dump({'generated_at': datetime.now().isoformat(), 'players': rows}, f, indent=2, ensure_ascii=False)

        self.logger.info(f"Saved {len(players)} players to {csv_path} and {json_path}")
        return {'csv': csv_path, 'json': json_path}

    def save_summaries(self, summaries: Dict[str, pd.DataFrame]) -> List[Path]:
        """Save each summary table as ``tables/<name>.csv``."""
        tables_dir = self.output_path / "tables"
        tables_dir.mkdir(parents=True, exist_ok=True)

        paths = []
        for name, table in summaries.items():
            path = tables_dir / f"{name}.csv"
            table.to_csv(path, index=False, float_format='%.2f')
            paths.append(path)

        self.logger.info(f"Saved {len(paths)} summary tables to {tables_dir}")
        return paths
