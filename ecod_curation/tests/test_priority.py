#!/usr/bin/env python3
"""
Tests for curation priority categories
"""

import pytest

from ecod_curation.analysis.priority import categorize_cluster, prioritize
from ecod_curation.exceptions import ValidationError
from ecod_curation.models.dashboard import PriorityCategory


def cluster_row(id, number, size=5, has_analysis=True, flagged=False,
                sc=None, td=None, notes=None):
    return {
        'id': id, 'cluster_number': number, 'cluster_set_id': 1, 'size': size,
        'cluster_set_name': 'ECOD-70', 'has_analysis': has_analysis,
        'requires_new_classification': flagged, 'structure_consistency': sc,
        'taxonomic_diversity': td, 'analysis_notes': notes,
        'representative_domain': f"e{id}A1", 't_group': '2.30.30', 't_group_name': 'SH3',
    }


class TestCategorize:

    def test_no_analysis(self):
        assert categorize_cluster(cluster_row(1, 1, has_analysis=False)) is PriorityCategory.UNCLASSIFIED

    def test_reclassification_wins(self):
        row = cluster_row(1, 1, flagged=True, sc=0.9, notes='flagged by curator')
        assert categorize_cluster(row) is PriorityCategory.RECLASSIFICATION

    @pytest.mark.parametrize("sc,td", [(0.8, None), (None, 0.7), (0.95, 0.1)])
    def test_diverse(self, sc, td):
        assert categorize_cluster(cluster_row(1, 1, sc=sc, td=td)) is PriorityCategory.DIVERSE

    def test_flagged_note(self):
        row = cluster_row(1, 1, sc=0.5, td=0.2, notes='Member flagged for review')
        assert categorize_cluster(row) is PriorityCategory.FLAGGED

    def test_analysed_but_unremarkable(self):
        assert categorize_cluster(cluster_row(1, 1, sc=0.5, td=0.2)) is PriorityCategory.UNCLASSIFIED


class TestPrioritize:

    @pytest.fixture
    def rows(self):
        return [
            cluster_row(1, 10, sc=0.9),
            cluster_row(2, 11, flagged=True),
            cluster_row(3, 12, has_analysis=False),
            cluster_row(4, 13, sc=0.5, notes='flagged'),
            cluster_row(5, 14, flagged=True),
            cluster_row(6, 15, size=1, flagged=True),
        ]

    def test_order_and_totals(self, rows):
        result = prioritize(rows, limit=10)
        assert [c.id for c in result.clusters] == [5, 2, 4, 3, 1]
        assert result.totals == {'reclassification': 2, 'flagged': 1, 'unclassified': 1,
                                 'diverse': 1, 'all': 5}

    def test_include_singletons(self, rows):
        result = prioritize(rows, exclude_singletons=False)
        assert result.clusters[0].id == 6
        assert result.totals['reclassification'] == 3

    def test_limit(self, rows):
        result = prioritize(rows, limit=2)
        assert [c.id for c in result.clusters] == [5, 2]
        assert result.totals['all'] == 5

    def test_category_filter(self, rows):
        result = prioritize(rows, category='diverse')
        assert [c.id for c in result.clusters] == [1]
        assert result.totals['all'] == 1

    def test_invalid_category(self, rows):
        with pytest.raises(ValidationError):
            prioritize(rows, category='urgent')

    def test_to_dict(self, rows):
        data = prioritize(rows, limit=1).to_dict()
        cluster = data['clusters'][0]
        assert cluster['name'] == 'Cluster-5'
        assert cluster['category'] == 'reclassification'
        assert cluster['representative_domain'] == 'e5A1'
