# ecod_curation/services/dashboard_service.py
#!/usr/bin/env python3
"""
Dashboard service
Overview counts, classification status, curation priorities, activity,
structure and domain quality, protein lookup and search
"""
import logging
from typing import Dict, Any, List, Optional, Tuple

import pandas as pd

from ecod_curation.analysis import domain_quality
from ecod_curation.analysis.distributions import percentage_distribution
from ecod_curation.analysis.priority import prioritize
from ecod_curation.core.context import ApplicationContext
from ecod_curation.db.repositories import (
    ActivityFilters, ActivityRepository, AnalysisRepository, ClusterRepository,
    DashboardRepository, DomainSearch, ProteinRepository, SearchRepository
)
from ecod_curation.exceptions import NotFoundError
from ecod_curation.models.cluster import to_json_value
from ecod_curation.models.dashboard import (
    ClassificationOverview, CurationStatus, DashboardSummary, DomainQualityStats,
    PriorityClusters, RecentCluster
)
from ecod_curation.models.pagination import PageRequest
from ecod_curation.models.protein import ProteinDomains
from ecod_curation.models.search import SearchResults
from ecod_curation.validation.scorer import ValidationThresholds

QUALITY_COLUMNS = ['cluster_id', 'cluster_number', 'cluster_set_id', 'cluster_set',
                   'cluster_size', 'structure_consistency', 'experimental_support_ratio',
                   'taxonomic_diversity', 'tgroup_homogeneity', 'plddt', 'source']


class DashboardService:
    """Service behind the curation dashboard"""

    def __init__(self, context: ApplicationContext):
        self.context = context
        self.logger = logging.getLogger("ecod_curation.services.dashboard")

        db = context.db
        self.dashboard = DashboardRepository(db)
        self.clusters = ClusterRepository(db)
        self.analyses = AnalysisRepository(db)
        self.activity = ActivityRepository(db)
        self.search_repository = SearchRepository(db)
        self.proteins = ProteinRepository(db)
        self.pagination = context.config.get_section('pagination')

    def page_request(self, page: Optional[int] = None,
                     page_size: Optional[int] = None) -> PageRequest:
        return PageRequest.from_config(page, page_size, self.pagination)

    def get_summary(self) -> DashboardSummary:
        return self.dashboard.get_summary()

    def get_taxonomy_overview(self) -> Dict[str, Any]:
        return {
            'kingdoms': self.dashboard.get_kingdom_stats(),
            'top_tgroups': self.dashboard.get_top_tgroups(),
        }

    def get_priority_clusters(self, limit: int = 10, category: Optional[str] = None,
                              exclude_singletons: bool = True) -> PriorityClusters:
        """Clusters most in need of curation

        Raises:
            ValidationError: For an unknown category
        """
        rows = self.clusters.get_priority_rows(exclude_singletons)
        result = prioritize(rows, limit=limit, category=category,
                            exclude_singletons=exclude_singletons)
        self.logger.debug(f"Priority totals: {result.totals}")
        return result

    def get_activity(self, filters: Optional[ActivityFilters] = None,
                     page: Optional[PageRequest] = None) -> Dict[str, Any]:
        """Activity feed page plus per-action and per-user summaries"""
        entries = self.activity.list(filters, page or self.page_request())
        data = entries.to_dict(key='logs')
        data['summary'] = self.activity.summarize(filters)
        return data

    def get_structure_quality(self, cluster_set_id: Optional[int] = None) -> Dict[str, Any]:
        """Per-cluster quality rows, per-set averages and overall means

        Returns:
            Dictionary with ``quality_metrics`` (a DataFrame),
            ``cluster_set_averages`` (rows) and ``overall`` (column means,
            skipping unmeasured values)
        """
        rows = [{key: to_json_value(value) for key, value in row.items()}
                for row in self.analyses.get_quality_metrics(cluster_set_id)]
        frame = pd.DataFrame(rows, columns=QUALITY_COLUMNS)
        numeric = ['cluster_size', 'structure_consistency', 'experimental_support_ratio',
                   'taxonomic_diversity', 'tgroup_homogeneity', 'plddt']
        frame[numeric] = frame[numeric].apply(pd.to_numeric, errors='coerce')

        overall = {}
        for column in numeric:
            mean = frame[column].mean()
            overall[column] = None if pd.isna(mean) else round(float(mean), 4)

        return {
            'quality_metrics': frame,
            'cluster_set_averages': self.analyses.get_cluster_set_averages(),
            'overall': overall,
        }

    def search(self, text: str = '', t_group: Optional[str] = None,
               tax_id: Optional[int] = None,
               page: Optional[PageRequest] = None) -> SearchResults:
        return self.search_repository.search(DomainSearch(text=text, t_group=t_group, tax_id=tax_id),
                                             page or self.page_request())

    def get_classification_overview(self, tgroup_limit: int = 10,
                                    min_clusters: int = 5) -> ClassificationOverview:
        """Curation status of all clusters, t-group consistency and per-set comparison

        Status bands reuse the structure consistency thresholds of the
        validation scorer: its upper tier bound marks Validated and its lower
        bound marks Acceptable.
        """
        validated, acceptable = self._consistency_bounds()
        counts = self.dashboard.get_status_counts(validated, acceptable)
        distribution = [
            {'status': row['label'], 'count': row['count'], 'percentage': row['percentage']}
            for row in percentage_distribution(counts, [status.value for status in CurationStatus])
        ]
        return ClassificationOverview(
            status_distribution=distribution,
            tgroup_consistency=self.dashboard.get_tgroup_consistency(tgroup_limit, min_clusters),
            cluster_set_comparison=self.dashboard.get_cluster_set_comparison(validated, acceptable)
        )

    def _consistency_bounds(self) -> Tuple[float, float]:
        overrides = self.context.config.get_section('validation').get('thresholds')
        scale = ValidationThresholds.from_config(overrides).scale('structure_consistency')
        return scale.upper, scale.lower

    def get_recent_clusters(self, limit: int = 4) -> List[RecentCluster]:
        return self.dashboard.get_recent_clusters(limit)

    def get_domain_quality(self) -> DomainQualityStats:
        """Distributions of DPAM probability, judge and secondary structure"""
        frame = domain_quality.bins_frame(self.dashboard.get_domain_quality_bins())
        judge_summary = self.dashboard.get_judge_summary()

        overall = domain_quality.overall_quality(frame, judge_summary)
        overall.update({f"dpam_plddt_{key}": value for key, value
                        in self.dashboard.get_dpam_plddt_correlation().items()})

        return DomainQualityStats(
            overall=overall,
            judge_distribution=domain_quality.judge_distribution(frame),
            confidence_distribution=domain_quality.confidence_distribution(frame),
            dpam_histogram=domain_quality.dpam_histogram(frame),
            dpam_by_judge=domain_quality.dpam_by_judge(frame),
            judge_summary=judge_summary
        )

    def get_protein_domains(self, identifier: str) -> ProteinDomains:
        """A protein, its preferred structure and its domains

        Args:
            identifier: UniProt accession or structure source id

        Raises:
            NotFoundError: If neither a protein nor any domain matches
        """
        identifier = (identifier or '').strip()
        protein = self.proteins.get_protein(identifier)
        domains = self.proteins.get_domains(identifier)
        if protein is None and not domains:
            raise NotFoundError("Protein not found", {"identifier": identifier})

        return ProteinDomains(
            identifier=identifier,
            protein=protein,
            structure=self.proteins.get_structure(identifier),
            domains=domains
        )
