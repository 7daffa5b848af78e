#!/usr/bin/env python3
"""
Curation priority categories for clusters
"""
from typing import Dict, Any, Iterable, List, Optional

from ecod_curation.exceptions import ValidationError
from ecod_curation.models.dashboard import PriorityCategory, PriorityCluster, PriorityClusters

DIVERSE_STRUCTURE_CONSISTENCY = 0.8
DIVERSE_TAXONOMIC_DIVERSITY = 0.7


def categorize_cluster(row: Dict[str, Any]) -> PriorityCategory:
    """Priority category of a cluster row

    Args:
        row: Cluster row with ``has_analysis``, ``requires_new_classification``,
            ``structure_consistency``, ``taxonomic_diversity`` and
            ``analysis_notes``

    Returns:
        PriorityCategory
    """
    if not row.get('has_analysis'):
        return PriorityCategory.UNCLASSIFIED
    if row.get('requires_new_classification'):
        return PriorityCategory.RECLASSIFICATION

    sc = row.get('structure_consistency')
    td = row.get('taxonomic_diversity')
    if ((sc is not None and float(sc) >= DIVERSE_STRUCTURE_CONSISTENCY)
            or (td is not None and float(td) >= DIVERSE_TAXONOMIC_DIVERSITY)):
        return PriorityCategory.DIVERSE

    if 'flagged' in (row.get('analysis_notes') or ''):
        return PriorityCategory.FLAGGED
    return PriorityCategory.UNCLASSIFIED


def prioritize(rows: Iterable[Dict[str, Any]], limit: int = 10,
               category: Optional[str] = None,
               exclude_singletons: bool = True) -> PriorityClusters:
    """Build the curation priority list

    Args:
        rows: Cluster rows (see categorize_cluster, plus id, cluster_number,
            cluster_set_id, size and representative fields)
        limit: Maximum number of clusters returned
        category: Only return this category ('all' or None for every category)
        exclude_singletons: Skip clusters with a single member

    Returns:
        Clusters ordered by category priority then cluster number
        (descending), and per-category totals over the filtered rows
    """
    try:
        wanted = None if category in (None, 'all') else PriorityCategory(category)
    except ValueError as e:
        raise ValidationError(f"Invalid priority category: {category!r}",
                              {"allowed": [c.value for c in PriorityCategory] + ['all']}) from e

    totals = {c.value: 0 for c in PriorityCategory}
    selected: List[PriorityCluster] = []
    for row in rows:
        size = int(row.get('size') or 0)
        if exclude_singletons and size <= 1:
            continue
        cat = categorize_cluster(row)
        if wanted is not None and cat is not wanted:
            continue
        totals[cat.value] += 1
        selected.append(PriorityCluster(
            id=row['id'],
            cluster_number=row['cluster_number'],
            cluster_set_id=row['cluster_set_id'],
            size=size,
            category=cat,
            cluster_set_name=row.get('cluster_set_name'),
            representative_domain=row.get('representative_domain'),
            taxonomic_diversity=_float_or_none(row.get('taxonomic_diversity')),
            structure_consistency=_float_or_none(row.get('structure_consistency')),
            t_group=row.get('t_group'),
            t_group_name=row.get('t_group_name'),
            requires_new_classification=row.get('requires_new_classification')
        ))

    totals['all'] = len(selected)
    selected.sort(key=lambda c: (c.category.rank, -c.cluster_number))
    return PriorityClusters(clusters=selected[:max(limit, 0)], totals=totals)


def _float_or_none(value: Any) -> Optional[float]:
    return None if value is None else float(value)
