#!/usr/bin/env python3
"""
Squad Visualizer
================

Descriptive plots of the merged squad table, written as PNG files.
"""

import logging
from pathlib import Path
from typing import Dict, List

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

DPI = 150
POSITION_ORDER = ['GK', 'DF', 'MF', 'FW']


class SquadVisualizer:
    """Create visualizations from the merged squad table."""

    def __init__(self, output_dir: str, top_n: int = 15):
        self.output_dir = Path(output_dir)
        self.top_n = top_n
        self.logger = logging.getLogger('SquadVisualizer')
        sns.set_theme(style="whitegrid")
        sns.set_palette("husl")

    def _save(self, fig, name: str) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / f"{name}.png"
        fig.tight_layout()
        fig.savefig(path, dpi=DPI, bbox_inches="tight")
        plt.close(fig)
        self.logger.debug(f"Saved plot {path}")
        return path

    def plot_age_distribution(self, players: pd.DataFrame) -> Path:
        """Histogram of ages at the tournament start, stacked by position."""
        fig, ax = plt.subplots(figsize=(10, 6))
        sns.histplot(data=players, x='age', hue='position', hue_order=POSITION_ORDER,
                     multiple='stack', binwidth=1, ax=ax)
        ax.axvline(players['age'].mean(), color='black', linestyle='--',
                   label=f"Mean: {players['age'].mean():.1f}")
        ax.set_title("Player Age at Tournament Start", fontsize=16, fontweight='bold')
        ax.set_xlabel("Age (years)", fontsize=12)
        ax.set_ylabel("Players", fontsize=12)
        return self._save(fig, "age_distribution")

    def plot_caps_vs_age(self, players: pd.DataFrame) -> Path:
        """Scatter of caps against age; unmatched players (no caps) are left out."""
        data = players.dropna(subset=['caps']).astype({'caps': float})
        fig, ax = plt.subplots(figsize=(10, 6))
        sns.scatterplot(data=data, x='age', y='caps', hue='position', hue_order=POSITION_ORDER,
                        alpha=0.7, ax=ax)
        ax.set_title("International Caps vs Age", fontsize=16, fontweight='bold')
        ax.set_xlabel("Age (years)", fontsize=12)
        ax.set_ylabel("Caps", fontsize=12)
        return self._save(fig, "caps_vs_age")

    def plot_players_by_league(self, league_table: pd.DataFrame) -> Path:
        """Bar chart of the leagues supplying the most players."""
        data = league_table.head(self.top_n)
        colors = ['darkorange' if elite else 'steelblue' for elite in data['elite']]
        fig, ax = plt.subplots(figsize=(12, 6))
        ax.bar(data['league'], data['players'], color=colors, edgecolor='black')
        ax.set_title(f"Players by Club League (top {len(data)})", fontsize=16, fontweight='bold')
        ax.set_xlabel("League", fontsize=12)
        ax.set_ylabel("Players", fontsize=12)
        ax.tick_params(axis='x', rotation=45)
        ax.grid(axis='y', alpha=0.3)
        return self._save(fig, "players_by_league")

    def plot_team_ages(self, team_table: pd.DataFrame) -> Path:
        """Horizontal bars of mean squad age, youngest at the bottom."""
        data = team_table.sort_values('mean_age', ascending=True)
        fig, ax = plt.subplots(figsize=(10, 10))
        ax.barh(data['team'], data['mean_age'], color='lightcoral', edgecolor='black')
        ax.set_xlim(left=max(0.0, data['mean_age'].min() - 2))
        ax.set_title("Mean Squad Age", fontsize=16, fontweight='bold')
        ax.set_xlabel("Age (years)", fontsize=12)
        return self._save(fig, "team_mean_age")

    def plot_elite_share(self, team_table: pd.DataFrame) -> Path:
        """Share of each squad playing in an elite league."""
        data = team_table.sort_values('elite_share', ascending=True)
        fig, ax = plt.subplots(figsize=(10, 10))
        ax.barh(data['team'], data['elite_share'] * 100, color='seagreen', edgecolor='black')
        ax.set_xlim(0, 100)
        ax.set_title("Squad Share in Elite Leagues", fontsize=16, fontweight='bold')
        ax.set_xlabel("Players in elite leagues (%)", fontsize=12)
        return self._save(fig, "team_elite_share")

    def create_all_plots(self, players: pd.DataFrame, summaries: Dict[str, pd.DataFrame]) -> List[Path]:
        """Create every plot and return the written paths."""
        paths = [
            self.plot_age_distribution(players),
            self.plot_caps_vs_age(players),
            self.plot_players_by_league(summaries['leagues']),
            self.plot_team_ages(summaries['teams']),
            self.plot_elite_share(summaries['teams']),
        ]
        self.logger.info(f"Created {len(paths)} plots in {self.output_dir}")
        return paths
