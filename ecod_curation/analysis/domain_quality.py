#!/usr/bin/env python3
"""
Domain quality rollups

Works on the small per-(judge, decile, band) count table rather than on
individual domains, so the whole domain table never leaves the database.
"""
from typing import Dict, Any, Iterable, List, Optional

import pandas as pd

CONFIDENCE_BANDS = ['Very High (>90)', 'High (70-90)', 'Medium (50-70)', 'Low (<50)', 'Unmeasured']
HIGH_CONFIDENCE_BANDS = ('Very High (>90)', 'High (70-90)')

DECILE_LABELS = [f"{i / 10:.1f}-{(i + 1) / 10:.1f}" for i in range(10)]
QUINTILE_LABELS = [f"{i / 5:.1f}-{(i + 1) / 5:.1f}" for i in range(5)]

UNJUDGED = 'unjudged'

BIN_COLUMNS = ['judge', 'decile', 'band', 'count']


def bins_frame(bins: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    """Count table with missing judges named 'unjudged'"""
    frame = pd.DataFrame(list(bins), columns=BIN_COLUMNS)
    frame['judge'] = frame['judge'].fillna(UNJUDGED)
    frame['count'] = frame['count'].astype(int)
    return frame


def _fraction(count: int, total: int) -> Optional[float]:
    return round(count / total, 4) if total else None


def judge_distribution(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    """Domains per judge, largest first"""
    total = int(frame['count'].sum())
    counts = frame.groupby('judge')['count'].sum().sort_values(ascending=False, kind='stable')
    return [{'judge': judge, 'count': int(count), 'fraction': _fraction(int(count), total)}
            for judge, count in counts.items()]


def confidence_distribution(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    """Domains per confidence band, in band order, skipping empty bands"""
    total = int(frame['count'].sum())
    counts = frame.groupby('band')['count'].sum()
    return [{'band': band, 'count': int(counts[band]), 'fraction': _fraction(int(counts[band]), total)}
            for band in CONFIDENCE_BANDS if band in counts.index and counts[band]]


def dpam_histogram(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    """Domains per DPAM probability decile, all ten deciles included"""
    measured = frame.dropna(subset=['decile'])
    counts = measured.groupby(measured['decile'].astype(int))['count'].sum()
    return [{'range': label, 'count': int(counts.get(i, 0))}
            for i, label in enumerate(DECILE_LABELS)]


def dpam_by_judge(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    """Domains per DPAM probability quintile, one column per judge"""
    measured = frame.dropna(subset=['decile']).copy()
    if measured.empty:
        return [{'range': label} for label in QUINTILE_LABELS]

    measured['quintile'] = measured['decile'].astype(int) // 2
    table = measured.pivot_table(index='quintile', columns='judge', values='count',
                                 aggfunc='sum', fill_value=0)
    table = table.reindex(range(len(QUINTILE_LABELS)), fill_value=0)

    rows = []
    for quintile, label in enumerate(QUINTILE_LABELS):
        row: Dict[str, Any] = {'range': label}
        row.update({judge: int(table.at[quintile, judge]) for judge in table.columns})
        rows.append(row)
    return rows


def overall_quality(frame: pd.DataFrame, judge_summary: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Totals and means across all judges

    Means are weighted by the number of domains with a measured score in
    each judge group; unmeasured scores do not pull them towards zero.
    """
    total = int(frame['count'].sum())
    high = int(frame.loc[frame['band'].isin(HIGH_CONFIDENCE_BANDS), 'count'].sum())
    measured = int(frame.loc[frame['band'] != 'Unmeasured', 'count'].sum())

    return {
        'total_domains': total,
        'avg_dpam_prob': _weighted_mean(judge_summary, 'avg_dpam_prob', 'dpam_measured'),
        'avg_hh_prob': _weighted_mean(judge_summary, 'avg_hh_prob', 'hh_measured'),
        'high_confidence_fraction': _fraction(high, measured),
    }


def _weighted_mean(rows: List[Dict[str, Any]], value_key: str, weight_key: str) -> Optional[float]:
    pairs = [(float(row[value_key]), int(row[weight_key] or 0))
             for row in rows if row.get(value_key) is not None]
    weight = sum(w for _, w in pairs)
    if not weight:
        return None
    return round(sum(v * w for v, w in pairs) / weight, 4)
