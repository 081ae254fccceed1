#!/usr/bin/env python3
"""
Squad Reconciliation
====================

Joins the validated PDF roster with the scraped web table on the natural key
``(team, shirt_number)``.

- Left join: every PDF player is kept; web fields are null when no web row
  shares the key. Web rows without a PDF partner are dropped.
- The web source's player name replaces the PDF name in the output.
- What happens to unmatched PDF players is a policy: ``ignore`` keeps them
  silently, ``warn`` logs their keys, ``fail`` raises ``ValidationError``.
- A name cross-check compares the PDF name and jersey label with the web name
  for every matched row and reports rows that look misaligned. It never fails
  the run.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Any, Tuple

import pandas as pd
from rapidfuzz import fuzz

from src.utils.exceptions import ValidationError
from src.utils.text import fold_name

JOIN_KEY = ['team', 'shirt_number']
WEB_FIELDS = ['display_name', 'caps']

MERGED_COLUMNS = [
    'team', 'shirt_number', 'position', 'display_name', 'birth_date', 'shirt_label',
    'club', 'league', 'height', 'weight', 'age', 'caps',
]


@dataclass
class ReconciliationReport:
    """Outcome of joining the PDF roster with the web table."""
    total_players: int
    matched_players: int
    unmatched_players: List[Tuple[str, int]] = field(default_factory=list)
    dropped_web_rows: int = 0
    duplicate_web_keys: List[Tuple[str, int]] = field(default_factory=list)
    suspect_alignments: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def match_percentage(self) -> float:
        if self.total_players == 0:
            return 0.0
        return 100.0 * self.matched_players / self.total_players


def name_similarity(pdf_name: Any, shirt_label: Any, web_name: Any) -> float:
    """
    Best token-set similarity (0-100) between the web name and either PDF name field.

    PDF names are often abbreviated ("M. SALAH") while the web lists full
    names ("Mohamed Salah"), so tokens are compared as sets after accent folding.
    """
    if not isinstance(web_name, str) or not web_name:
        return 0.0
    target = fold_name(web_name)
    scores = [
        fuzz.token_set_ratio(fold_name(candidate), target)
        for candidate in (pdf_name, shirt_label)
        if isinstance(candidate, str) and candidate
    ]
    return max(scores, default=0.0)


class SquadReconciler:
    """
    Merges the PDF roster with the web squad table.
    """

    def __init__(self, config):
        """Initialize the reconciler."""
        self.config = config
        self.logger = logging.getLogger('SquadReconciler')

    def reconcile(self, players: pd.DataFrame, web: pd.DataFrame) -> Tuple[pd.DataFrame, ReconciliationReport]:
        """
        Left-join ``players`` with ``web`` on ``(team, shirt_number)``.

        Args:
            players: Validated PDF roster
            web: Web squad table

        Returns:
            Tuple of (merged table with one row per PDF player, report)

        Raises:
            ValidationError: Unmatched players under the ``fail`` policy
        """
        web = web[JOIN_KEY + WEB_FIELDS].rename(columns={'display_name': 'web_name'})

        duplicated = web.duplicated(subset=JOIN_KEY, keep='first')
        duplicate_keys = [tuple(key) for key in web.loc[duplicated, JOIN_KEY].itertuples(index=False)]
        if duplicate_keys:
            self.logger.warning(f"Dropping {len(duplicate_keys)} duplicate web keys: {duplicate_keys[:5]}")
            web = web[~duplicated]

        joined = players.merge(web, on=JOIN_KEY, how='left', validate='many_to_one', indicator=True)
        matched_mask = joined['_merge'] == 'both'

        unmatched = [
            (team, int(number))
            for team, number in joined.loc[~matched_mask, JOIN_KEY].itertuples(index=False)
        ]
        matched_keys = joined.loc[matched_mask, JOIN_KEY].drop_duplicates()
        dropped_web_rows = len(web) - len(matched_keys)

        suspects: List[Dict[str, Any]] = []
        if self.config.alignment_cross_check:
            suspects = self.cross_check_alignment(joined[matched_mask])

        report = ReconciliationReport(
            total_players=len(joined),
            matched_players=int(matched_mask.sum()),
            unmatched_players=unmatched,
            dropped_web_rows=dropped_web_rows,
            duplicate_web_keys=duplicate_keys,
            suspect_alignments=suspects,
        )
        self._apply_unmatched_policy(report)

        merged = joined.drop(columns=['display_name', '_merge']).rename(columns={'web_name': 'display_name'})
        merged['caps'] = merged['caps'].astype('Int64')
        merged = merged[MERGED_COLUMNS]

        self.logger.info(
            f"Reconciled {report.matched_players}/{report.total_players} players "
            f"({report.match_percentage:.1f}%), {report.dropped_web_rows} web rows without a PDF match"
        )
        return merged, report

    def cross_check_alignment(self, matched: pd.DataFrame) -> List[Dict[str, Any]]:
        """
        Flag matched rows whose PDF and web names disagree.

        A low score usually means the web sequences drifted out of step, so the
        caps attached to that row belong to someone else.

        Args:
            matched: Joined rows that found a web partner

        Returns:
            One dict per suspect row (team, shirt_number, pdf_name, web_name, score)
        """
        threshold = self.config.alignment_threshold
        suspects = []
        for row in matched.itertuples(index=False):
            score = name_similarity(row.display_name, row.shirt_label, row.web_name)
            if score < threshold:
                suspects.append({
                    'team': row.team,
                    'shirt_number': int(row.shirt_number),
                    'pdf_name': row.display_name,
                    'web_name': row.web_name,
                    'score': round(float(score), 1),
                })

        if suspects:
            self.logger.warning(
                f"{len(suspects)} matched rows have name similarity below {threshold:.0f}; "
                f"web alignment may be off. First: {suspects[:3]}"
            )
        else:
            self.logger.debug(f"Name cross-check passed for {len(matched)} rows")
        return suspects

    def _apply_unmatched_policy(self, report: ReconciliationReport) -> None:
        if not report.unmatched_players:
            return

        policy = self.config.unmatched_policy
        if policy == 'fail':
            raise ValidationError('unmatched_players', len(report.unmatched_players), 0)
        if policy == 'warn':
            self.logger.warning(
                f"{len(report.unmatched_players)} players have no web match: "
                f"{report.unmatched_players[:10]}"
            )
        else:
            self.logger.debug(f"{len(report.unmatched_players)} players have no web match")
