#!/usr/bin/env python3
"""
Squad summary tables built from the merged player table.
"""

import logging
from typing import Dict, List

import pandas as pd

logger = logging.getLogger(__name__)


def add_derived_columns(merged: pd.DataFrame, elite_leagues: List[str],
                        age_cohort_bins: List[float]) -> pd.DataFrame:
    """
    Add the elite-league indicator and the age cohort.

    Args:
        merged: Reconciled player table
        elite_leagues: League codes counted as elite
        age_cohort_bins: Cohort edges, e.g. ``[18, 22, 26]`` -> ``18-22``, ``22-26``

    Returns:
        Copy of ``merged`` with ``elite_league`` and ``age_cohort`` columns
    """
    players = merged.copy()
    players['elite_league'] = players['league'].isin(elite_leagues)

    labels = [f"{int(lo)}-{int(hi)}" for lo, hi in zip(age_cohort_bins[:-1], age_cohort_bins[1:])]
    players['age_cohort'] = pd.cut(players['age'], bins=age_cohort_bins, labels=labels, right=False)

    outside = int(players['age_cohort'].isna().sum())
    if outside:
        logger.warning(f"{outside} players fall outside the age cohorts {age_cohort_bins}")
    return players


def team_summary(players: pd.DataFrame) -> pd.DataFrame:
    """Per-team squad profile, oldest squad first."""
    summary = players.groupby('team').agg(
        players=('shirt_number', 'size'),
        mean_age=('age', 'mean'),
        mean_caps=('caps', 'mean'),
        median_caps=('caps', 'median'),
        total_caps=('caps', 'sum'),
        elite_share=('elite_league', 'mean'),
        mean_height=('height', 'mean'),
    )
    return summary.sort_values('mean_age', ascending=False).reset_index()


def league_summary(players: pd.DataFrame, elite_leagues: List[str]) -> pd.DataFrame:
    """Players per league code."""
    summary = (
        players.dropna(subset=['league'])
        .groupby('league')
        .agg(players=('shirt_number', 'size'), teams=('team', 'nunique'))
        .sort_values('players', ascending=False)
        .reset_index()
    )
    summary['elite'] = summary['league'].isin(elite_leagues)
    return summary


def club_summary(players: pd.DataFrame, top_n: int = 15) -> pd.DataFrame:
    """Clubs supplying the most players."""
    summary = (
        players.dropna(subset=['club'])
        .groupby(['club', 'league'], dropna=False)
        .agg(players=('shirt_number', 'size'), teams=('team', 'nunique'))
        .sort_values(['players', 'teams'], ascending=False)
        .reset_index()
    )
    return summary.head(top_n)


def position_summary(players: pd.DataFrame) -> pd.DataFrame:
    summary = players.groupby('position').agg(
        players=('shirt_number', 'size'),
        mean_age=('age', 'mean'),
        mean_caps=('caps', 'mean'),
        mean_height=('height', 'mean'),
        mean_weight=('weight', 'mean'),
    )
    return summary.reset_index()


def age_cohort_summary(players: pd.DataFrame) -> pd.DataFrame:
    summary = players.groupby('age_cohort', observed=False).agg(
        players=('shirt_number', 'size'),
        mean_caps=('caps', 'mean'),
    )
    return summary.reset_index()


def build_all_summaries(players: pd.DataFrame, elite_leagues: List[str],
                        top_n: int = 15) -> Dict[str, pd.DataFrame]:
    """
    Build every summary table.

    Args:
        players: Merged table with derived columns
        elite_leagues: League codes counted as elite
        top_n: Number of clubs to keep in the club table

    Returns:
        Mapping of table name to DataFrame
    """
    summaries = {
        'teams': team_summary(players),
        'leagues': league_summary(players, elite_leagues),
        'clubs': club_summary(players, top_n),
        'positions': position_summary(players),
        'age_cohorts': age_cohort_summary(players),
    }
    logger.info(f"Built {len(summaries)} summary tables")
    return summaries
