# ecod_curation/services/cluster_service.py
#!/usr/bin/env python3
"""
Cluster service
Combines repository data into cluster set, cluster, alignment and
validation views.
"""
import logging
import threading
from dataclasses import replace
from typing import Dict, Any, List, Optional

from ecod_curation.analysis.distributions import compute_tgroup_homogeneity, tgroup_counts_from_rows
from ecod_curation.analysis.msa import (
    compute_alignment_summary, parse_alignment, parse_positions
)
from ecod_curation.core.context import ApplicationContext
from ecod_curation.db.repositories import (
    AnalysisRepository, ClusterFilters, ClusterRepository, ClusterSetRepository
)
from ecod_curation.exceptions import NotFoundError
from ecod_curation.models.cluster import ClusterDetail, ClusterMember, ClusterSet, ClusterSetDetail, ClusterSummary
from ecod_curation.models.pagination import Page, PageRequest
from ecod_curation.models.validation import ClassificationStatus, ClusterValidationInput, ValidationReport
from ecod_curation.validation.scorer import ValidationScorer


class ClusterService:
    """Read-side service for cluster sets and clusters"""

    def __init__(self, context: ApplicationContext, use_cache: bool = False):
        """Initialize service

        Args:
            context: Application context
            use_cache: Keep validation reports per cluster id for the service lifetime
        """
        self.context = context
        self.logger = logging.getLogger("ecod_curation.services.cluster")

        db = context.db
        self.cluster_sets = ClusterSetRepository(db)
        self.clusters = ClusterRepository(db)
        self.analyses = AnalysisRepository(db)

        validation_config = context.config.get_section('validation')
        self.out_of_range = validation_config.get('out_of_range', 'reject')
        self.scorer = ValidationScorer.from_config(validation_config)
        self.pagination = context.config.get_section('pagination')
        self.msa_config = context.config.get_section('msa')

        self.use_cache = use_cache
        self._cache: Dict[int, ValidationReport] = {}
        self._cache_lock = threading.Lock()

    def page_request(self, page: Optional[int] = None,
                     page_size: Optional[int] = None) -> PageRequest:
        return PageRequest.from_config(page, page_size, self.pagination)

    # Cluster sets

    def list_cluster_sets(self) -> List[ClusterSet]:
        return self.cluster_sets.list_all()

    def get_cluster_set(self, cluster_set_id: int) -> ClusterSetDetail:
        """Get a cluster set with its size and t-group distributions

        Raises:
            NotFoundError: If the cluster set does not exist
        """
        cluster_set = self.cluster_sets.get_by_id(cluster_set_id)
        if cluster_set is None:
            raise NotFoundError("Cluster set not found", {"cluster_set_id": cluster_set_id})

        return ClusterSetDetail(
            cluster_set=cluster_set,
            size_distribution=self.cluster_sets.get_size_distribution(cluster_set_id),
            tgroup_distribution=self.cluster_sets.get_tgroup_distribution(cluster_set_id)
        )

    # Clusters

    def list_clusters(self, filters: Optional[ClusterFilters] = None,
                      page: Optional[PageRequest] = None) -> Page[ClusterSummary]:
        return self.clusters.list(filters, page or self.page_request())

    def get_cluster(self, cluster_id: int) -> ClusterDetail:
        """Get everything known about one cluster

        Raises:
            NotFoundError: If the cluster does not exist
        """
        cluster = self.clusters.get_by_id(cluster_id)
        if cluster is None:
            raise NotFoundError("Cluster not found", {"cluster_id": cluster_id})

        return ClusterDetail(
            cluster=cluster,
            cluster_set=self.cluster_sets.get_basic(cluster.cluster_set_id),
            members=self.clusters.get_members(cluster_id),
            analysis=self.analyses.get_analysis(cluster_id),
            taxonomy_distribution=self.clusters.get_taxonomy_distribution(cluster_id),
            tgroup_distribution=self.clusters.get_tgroup_distribution(cluster_id),
            taxonomy_stats=self.clusters.get_phylum_stats(cluster_id),
            species_distribution=self.clusters.get_species_distribution(cluster_id),
            size=self.clusters.count_members(cluster_id)
        )

    def get_members(self, cluster_id: int,
                    page: Optional[PageRequest] = None) -> Page[ClusterMember]:
        """Get a page of cluster members

        Raises:
            NotFoundError: If the cluster does not exist
        """
        if not self.clusters.exists(cluster_id):
            raise NotFoundError("Cluster not found", {"cluster_id": cluster_id})

        page = page or self.page_request()
        members = self.clusters.get_members(cluster_id, page)
        return Page(items=members, total=self.clusters.count_members(cluster_id),
                    page=page.page, page_size=page.page_size)

    def get_msa(self, cluster_id: int) -> Dict[str, Any]:
        """Most recent alignment of a cluster with recomputed statistics

        Returns:
            Dictionary with the stored record, its stored position lists, the
            parsed sequences and a freshly computed summary

        Raises:
            NotFoundError: If the cluster has no alignment
            AlignmentError: If the stored alignment cannot be parsed
        """
        record = self.analyses.get_latest_msa(cluster_id)
        if record is None:
            raise NotFoundError("MSA not found for this cluster", {"cluster_id": cluster_id})

        sequences = parse_alignment(record.alignment_data)
        summary = compute_alignment_summary(
            sequences,
            conservation_threshold=self.msa_config.get('conservation_threshold', 1.0),
            gap_threshold=self.msa_config.get('gap_threshold', 0.5)
        )

        return {
            'msa': record.to_dict(),
            'stored_conserved_positions': parse_positions(record.conserved_positions),
            'stored_gap_positions': parse_positions(record.gap_positions),
            'sequences': [{'id': s.identifier, 'header': s.header, 'sequence': s.sequence}
                          for s in sequences],
            'summary': summary.to_dict(),
        }

    # Validation

    def get_validation(self, cluster_id: int) -> ValidationReport:
        """Validation report for a cluster

        Clusters flagged for a new classification always report Needs Review,
        whatever the metrics say.

        Raises:
            NotFoundError: If the cluster has no analysis
            ValidationError: If a stored metric is malformed
        """
        if self.use_cache:
            with self._cache_lock:
                cached = self._cache.get(cluster_id)
            if cached is not None:
                return cached

        analysis = self.analyses.get_analysis(cluster_id)
        if analysis is None:
            raise NotFoundError("Validation data not found for this cluster",
                                {"cluster_id": cluster_id})

        counts = tgroup_counts_from_rows(self.analyses.get_tgroup_counts(cluster_id))
        metrics = ClusterValidationInput.from_values(
            structure_consistency=analysis.structure_consistency,
            experimental_support=analysis.experimental_support_ratio,
            taxonomic_diversity=analysis.taxonomic_diversity,
            tgroup_homogeneity=compute_tgroup_homogeneity(counts),
            out_of_range=self.out_of_range
        )
        assessment = self.scorer.assess(metrics)

        if analysis.requires_new_classification:
            notes = ("This cluster has been flagged as potentially requiring a new "
                     "classification. It may represent a novel fold or family.")
            if analysis.analysis_notes:
                notes += f" Analysis notes: {analysis.analysis_notes}"
            assessment = replace(assessment, status=ClassificationStatus.NEEDS_REVIEW, notes=notes)

        report = ValidationReport(
            cluster_id=cluster_id,
            metrics=metrics,
            assessment=assessment,
            requires_new_classification=analysis.requires_new_classification,
            analysis_notes=analysis.analysis_notes
        )
        self.logger.debug(f"Cluster {cluster_id} assessed as {assessment.status.value}")

        if self.use_cache:
            with self._cache_lock:
                self._cache[cluster_id] = report
        return report

    def clear_cache(self) -> None:
        with self._cache_lock:
            self._cache.clear()
