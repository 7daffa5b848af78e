#!/usr/bin/env python3
"""
Cluster composition statistics
"""
from collections import Counter
from typing import Dict, Any, Iterable, List, Mapping, Optional

# Ordered cluster-size buckets: (label, inclusive lower bound, inclusive upper bound)
SIZE_RANGES = [
    ('Singletons', 1, 1),
    ('2-5', 2, 5),
    ('6-10', 6, 10),
    ('11-20', 11, 20),
    ('21-50', 21, 50),
    ('51-100', 51, 100),
    ('100+', 101, None),
]


def compute_tgroup_homogeneity(tgroup_counts: Mapping[Optional[str], int]) -> Optional[float]:
    """Fraction of cluster members that belong to the dominant t-group

    Members without a t-group count towards the total but can never be the
    dominant group.

    Args:
        tgroup_counts: Member count per t-group (None for unassigned)

    Returns:
        Homogeneity in [0, 1], or None when the cluster has no members or no
        member has a t-group
    """
    total = sum(count for count in tgroup_counts.values() if count)
    assigned = [count for tgroup, count in tgroup_counts.items() if tgroup is not None and count]
    if total <= 0 or not assigned:
        return None
    return max(assigned) / total


def tgroup_counts_from_rows(rows: Iterable[Dict[str, Any]]) -> Dict[Optional[str], int]:
    """Collapse ``(t_group, count)`` query rows into a mapping"""
    counts: Counter = Counter()
    for row in rows:
        counts[row.get('t_group')] += int(row.get('count') or 0)
    return dict(counts)


def size_range_label(size: int) -> str:
    """Bucket label for a cluster size"""
    if size < 1:
        raise ValueError(f"Cluster size must be positive, got {size}")
    for label, lower, upper in SIZE_RANGES:
        if size >= lower and (upper is None or size <= upper):
            return label
    return SIZE_RANGES[-1][0]


def size_distribution(sizes: Iterable[int]) -> List[Dict[str, Any]]:
    """Count clusters per size bucket, in bucket order, skipping empty buckets"""
    counts = Counter(size_range_label(size) for size in sizes if size and size > 0)
    return [{'range': label, 'count': counts[label]}
            for label, _, _ in SIZE_RANGES if counts[label]]


def percentage_distribution(counts: Mapping[str, int], order: Iterable[str]) -> List[Dict[str, Any]]:
    """Counts and percentages (one decimal) for every label in order

    Labels missing from counts are reported with zero. Percentages are
    None when nothing was counted.
    """
    labels = list(order)
    total = sum(int(counts.get(label) or 0) for label in labels)
    rows = []
    for label in labels:
        count = int(counts.get(label) or 0)
        rows.append({
            'label': label,
            'count': count,
            'percentage': round(count * 100 / total, 1) if total else None,
        })
    return rows
