#!/usr/bin/env python3
"""
Tests for the cluster and dashboard services
"""

import pytest
from decimal import Decimal
from unittest.mock import Mock

from ecod_curation.exceptions import AlignmentError, NotFoundError, ValidationError
from ecod_curation.models.cluster import Cluster, ClusterAnalysis, ClusterMember, ClusterSet
from ecod_curation.models.dashboard import RecentCluster
from ecod_curation.models.msa import MSARecord
from ecod_curation.models.pagination import Page
from ecod_curation.models.protein import ProteinRecord
from ecod_curation.models.validation import ClassificationStatus
from ecod_curation.services import ClusterService, DashboardService


@pytest.fixture
def service(context):
    service = ClusterService(context)
    service.cluster_sets = Mock()
    service.clusters = Mock()
    service.analyses = Mock()
    return service


class TestClusterService:

    def test_missing_cluster_set(self, service):
        service.cluster_sets.get_by_id.return_value = None
        with pytest.raises(NotFoundError) as exc_info:
            service.get_cluster_set(3)
        assert exc_info.value.message == "Cluster set not found"

    def test_cluster_set_detail(self, service):
        service.cluster_sets.get_by_id.return_value = ClusterSet(id=3, name='ECOD-90')
        service.cluster_sets.get_size_distribution.return_value = [{'range': '2-5', 'count': 4}]
        service.cluster_sets.get_tgroup_distribution.return_value = []

        data = service.get_cluster_set(3).to_dict()
        assert data['name'] == 'ECOD-90'
        assert data['size_distribution'] == [{'range': '2-5', 'count': 4}]

    def test_missing_cluster(self, service):
        service.clusters.get_by_id.return_value = None
        with pytest.raises(NotFoundError):
            service.get_cluster(5)

    def test_cluster_detail(self, service, analysis_row, member_rows):
        service.clusters.get_by_id.return_value = Cluster(id=101, cluster_number=7, cluster_set_id=1)
        service.cluster_sets.get_basic.return_value = ClusterSet(id=1, name='ECOD-70')
        service.clusters.get_members.return_value = [ClusterMember.from_db_row(r) for r in member_rows]
        service.analyses.get_analysis.return_value = ClusterAnalysis.from_db_row(analysis_row)
        service.clusters.get_taxonomy_distribution.return_value = {
            'distinct_families': 2, 'distinct_phyla': 1, 'superkingdoms': ['Eukaryota']}
        service.clusters.get_tgroup_distribution.return_value = [
            {'t_group': '2.30.30', 'count': 2, 'name': 'SH3'}]
        service.clusters.get_phylum_stats.return_value = []
        service.clusters.get_species_distribution.return_value = []
        service.clusters.count_members.return_value = 3

        data = service.get_cluster(101).to_dict()
        assert data['size'] == 3
        assert data['representative']['domain']['domain_id'] == 'e1abcA1'
        assert data['taxonomy_distribution']['taxonomic_diversity'] == 0.72
        assert data['analysis']['created_at'] == '2024-03-01T12:00:00'

    def test_members_of_missing_cluster(self, service):
        service.clusters.exists.return_value = False
        with pytest.raises(NotFoundError):
            service.get_members(5)

    def test_members_page(self, service):
        service.clusters.exists.return_value = True
        service.clusters.get_members.return_value = []
        service.clusters.count_members.return_value = 45

        page = service.get_members(5, service.page_request(2, 20))
        assert page.total == 45
        assert page.total_pages == 3

    def test_missing_msa(self, service):
        service.analyses.get_latest_msa.return_value = None
        with pytest.raises(NotFoundError) as exc_info:
            service.get_msa(5)
        assert exc_info.value.message == "MSA not found for this cluster"

    def test_msa(self, service, alignment_fasta):
        service.analyses.get_latest_msa.return_value = MSARecord(
            id=1, cluster_id=5, alignment_data=alignment_fasta,
            conserved_positions='0', gap_positions='3')

        data = service.get_msa(5)
        assert data['stored_conserved_positions'] == [0]
        assert data['summary']['conserved_positions'] == [0]
        assert data['summary']['gap_positions'] == [3]
        assert data['sequences'][0]['id'] == 'seq1'

    def test_unparseable_msa(self, service):
        service.analyses.get_latest_msa.return_value = MSARecord(
            id=1, cluster_id=5, alignment_data='')
        with pytest.raises(AlignmentError):
            service.get_msa(5)


class TestValidation:

    @pytest.fixture
    def homogeneous(self, service):
        service.analyses.get_tgroup_counts.return_value = [
            {'t_group': '2.30.30', 'count': 5}, {'t_group': '2.30.29', 'count': 1}]
        return service

    def test_missing_analysis(self, service):
        service.analyses.get_analysis.return_value = None
        with pytest.raises(NotFoundError) as exc_info:
            service.get_validation(101)
        assert exc_info.value.message == "Validation data not found for this cluster"

    def test_valid_cluster(self, homogeneous, analysis_row):
        homogeneous.analyses.get_analysis.return_value = ClusterAnalysis.from_db_row(analysis_row)

        report = homogeneous.get_validation(101)
        data = report.to_dict()
        assert report.assessment.status is ClassificationStatus.VALID
        assert data['taxonomic_validation']['tgroup_homogeneity'] == pytest.approx(5 / 6)
        assert data['structural_validation']['experimental_support'] == 0.75
        assert data['classification_assessment']['status'] == 'Valid'

    def test_flag_overrides_metrics(self, homogeneous, analysis_row):
        analysis_row.update(requires_new_classification=True, analysis_notes='Possible new fold')
        homogeneous.analyses.get_analysis.return_value = ClusterAnalysis.from_db_row(analysis_row)

        assessment = homogeneous.get_validation(101).assessment
        assert assessment.status is ClassificationStatus.NEEDS_REVIEW
        assert assessment.notes.startswith("This cluster has been flagged")
        assert assessment.notes.endswith("Analysis notes: Possible new fold")

    def test_unmeasured_homogeneity(self, service, analysis_row):
        service.analyses.get_analysis.return_value = ClusterAnalysis.from_db_row(analysis_row)
        service.analyses.get_tgroup_counts.return_value = [{'t_group': None, 'count': 3}]

        report = service.get_validation(101)
        assert report.to_dict()['taxonomic_validation']['tgroup_homogeneity'] is None
        assert report.assessment.status is ClassificationStatus.VALID
        assert "Not measured: t-group homogeneity" in report.assessment.notes

    def test_out_of_range_metric(self, homogeneous, analysis_row):
        analysis_row['structure_consistency'] = 1.4
        homogeneous.analyses.get_analysis.return_value = ClusterAnalysis.from_db_row(analysis_row)
        with pytest.raises(ValidationError):
            homogeneous.get_validation(101)

    def test_clamped_metric(self, context, analysis_row):
        context.update_config('validation', 'out_of_range', 'clamp')
        service = ClusterService(context)
        service.analyses = Mock()
        service.analyses.get_analysis.return_value = ClusterAnalysis.from_db_row(
            dict(analysis_row, structure_consistency=1.4))
        service.analyses.get_tgroup_counts.return_value = [{'t_group': '2.30.30', 'count': 2}]

        report = service.get_validation(101)
        assert report.to_dict()['structural_validation']['structure_consistency'] == 1.0

    def test_cache(self, context, analysis_row):
        service = ClusterService(context, use_cache=True)
        service.analyses = Mock()
        service.analyses.get_analysis.return_value = ClusterAnalysis.from_db_row(analysis_row)
        service.analyses.get_tgroup_counts.return_value = []

        first = service.get_validation(101)
        assert service.get_validation(101) is first
        assert service.analyses.get_analysis.call_count == 1

        service.clear_cache()
        service.get_validation(101)
        assert service.analyses.get_analysis.call_count == 2

    def test_no_cache_by_default(self, homogeneous, analysis_row):
        homogeneous.analyses.get_analysis.return_value = ClusterAnalysis.from_db_row(analysis_row)
        homogeneous.get_validation(101)
        homogeneous.get_validation(101)
        assert homogeneous.analyses.get_analysis.call_count == 2


class TestDashboardService:

    @pytest.fixture
    def dashboard(self, context):
        service = DashboardService(context)
        service.clusters = Mock()
        service.analyses = Mock()
        service.activity = Mock()
        service.dashboard = Mock()
        service.proteins = Mock()
        return service

    def test_priority(self, dashboard):
        dashboard.clusters.get_priority_rows.return_value = [
            {'id': 1, 'cluster_number': 3, 'cluster_set_id': 1, 'size': 4,
             'has_analysis': True, 'requires_new_classification': True},
        ]
        result = dashboard.get_priority_clusters(limit=5, exclude_singletons=False)
        dashboard.clusters.get_priority_rows.assert_called_once_with(False)
        assert result.totals['reclassification'] == 1

    def test_structure_quality(self, dashboard):
        dashboard.analyses.get_quality_metrics.return_value = [
            {'cluster_id': 1, 'cluster_number': 1, 'cluster_set_id': 1, 'cluster_set': 'ECOD-70',
             'cluster_size': 4, 'structure_consistency': 0.8, 'experimental_support_ratio': 0.5,
             'taxonomic_diversity': 0.3, 'tgroup_homogeneity': 1.0, 'plddt': Decimal('85.50'),
             'source': 'pdb'},
            {'cluster_id': 2, 'cluster_number': 2, 'cluster_set_id': 1, 'cluster_set': 'ECOD-70',
             'cluster_size': 2, 'structure_consistency': 0.6, 'experimental_support_ratio': None,
             'taxonomic_diversity': 0.5, 'tgroup_homogeneity': 0.5, 'plddt': None,
             'source': None},
        ]
        dashboard.analyses.get_cluster_set_averages.return_value = []

        result = dashboard.get_structure_quality(cluster_set_id=1)
        frame = result['quality_metrics']
        assert list(frame['cluster_id']) == [1, 2]
        assert result['overall']['structure_consistency'] == pytest.approx(0.7)
        assert result['overall']['experimental_support_ratio'] == pytest.approx(0.5)
        assert result['overall']['plddt'] == pytest.approx(85.5)
        dashboard.analyses.get_quality_metrics.assert_called_once_with(1)

    def test_empty_structure_quality(self, dashboard):
        dashboard.analyses.get_quality_metrics.return_value = []
        dashboard.analyses.get_cluster_set_averages.return_value = []

        result = dashboard.get_structure_quality()
        assert result['quality_metrics'].empty
        assert result['overall']['plddt'] is None

    def test_activity(self, dashboard):
        dashboard.activity.list.return_value = Page(items=[], total=0, page=1, page_size=20)
        dashboard.activity.summarize.return_value = {'actions': [], 'recent_users': []}

        data = dashboard.get_activity()
        assert data['logs'] == []
        assert data['summary'] == {'actions': [], 'recent_users': []}

    def test_classification_overview(self, dashboard):
        dashboard.dashboard.get_status_counts.return_value = {
            'Validated': 3, 'Needs Review': 1, 'Unanalysed': 1,
        }
        dashboard.dashboard.get_tgroup_consistency.return_value = []
        dashboard.dashboard.get_cluster_set_comparison.return_value = []

        overview = dashboard.get_classification_overview(tgroup_limit=5, min_clusters=2)
        data = overview.to_dict()

        assert [row['status'] for row in data['status_distribution']] == [
            'Validated', 'Acceptable', 'Uncertain', 'Needs Review', 'Unanalysed']
        assert data['status_distribution'][0] == {'status': 'Validated', 'count': 3,
                                                  'percentage': 60.0}
        assert data['total_clusters'] == 5
        dashboard.dashboard.get_status_counts.assert_called_once_with(0.8, 0.6)
        dashboard.dashboard.get_tgroup_consistency.assert_called_once_with(5, 2)
        dashboard.dashboard.get_cluster_set_comparison.assert_called_once_with(0.8, 0.6)

    def test_classification_uses_configured_thresholds(self, dashboard):
        dashboard.context.update_config('validation', 'thresholds', {
            'structure_consistency': {'upper': 0.9, 'lower': 0.5}})
        dashboard.dashboard.get_status_counts.return_value = {}

        overview = dashboard.get_classification_overview()
        dashboard.dashboard.get_status_counts.assert_called_once_with(0.9, 0.5)
        assert overview.total_clusters == 0

    def test_recent_clusters(self, dashboard):
        recent = [RecentCluster(id=9, cluster_number=42, size=3)]
        dashboard.dashboard.get_recent_clusters.return_value = recent
        assert dashboard.get_recent_clusters(2) == recent
        dashboard.dashboard.get_recent_clusters.assert_called_once_with(2)

    def test_domain_quality(self, dashboard):
        dashboard.dashboard.get_domain_quality_bins.return_value = [
            {'judge': 'good_domain', 'decile': 9, 'band': 'Very High (>90)', 'count': 3},
            {'judge': 'partial_domain', 'decile': 2, 'band': 'Low (<50)', 'count': 1},
        ]
        dashboard.dashboard.get_judge_summary.return_value = [
            {'judge': 'good_domain', 'dpam_measured': 3, 'avg_dpam_prob': 0.95,
             'hh_measured': 3, 'avg_hh_prob': 0.9},
        ]
        dashboard.dashboard.get_dpam_plddt_correlation.return_value = {'correlation': 0.7,
                                                                       'pairs': 4}

        data = dashboard.get_domain_quality().to_dict()

        assert data['overall']['total_domains'] == 4
        assert data['overall']['high_confidence_fraction'] == 0.75
        assert data['overall']['dpam_plddt_correlation'] == 0.7
        assert data['overall']['dpam_plddt_pairs'] == 4
        assert data['judge_distribution'][0]['judge'] == 'good_domain'
        assert data['dpam_histogram'][9]['count'] == 3

    def test_protein_domains(self, dashboard):
        dashboard.proteins.get_protein.return_value = ProteinRecord(unp_acc='P12345')
        dashboard.proteins.get_domains.return_value = []
        dashboard.proteins.get_structure.return_value = None

        data = dashboard.get_protein_domains(' P12345 ').to_dict()

        assert data['protein']['unp_acc'] == 'P12345'
        assert data['count'] == 0
        dashboard.proteins.get_domains.assert_called_once_with('P12345')

    def test_unknown_protein(self, dashboard):
        dashboard.proteins.get_protein.return_value = None
        dashboard.proteins.get_domains.return_value = []

        with pytest.raises(NotFoundError) as exc_info:
            dashboard.get_protein_domains('P99999')
        assert exc_info.value.details == {'identifier': 'P99999'}
