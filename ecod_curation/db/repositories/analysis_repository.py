# ecod_curation/db/repositories/analysis_repository.py
#!/usr/bin/env python3
"""
Analysis repository
Handles cluster analysis metrics, stored alignments and structure quality
"""
import logging
from typing import List, Dict, Any, Optional

from ecod_curation.db.manager import DBManager
from ecod_curation.models.cluster import ClusterAnalysis
from ecod_curation.models.msa import MSARecord

# Per-cluster t-group homogeneity: dominant assigned t-group over all members.
# Members without a t-group count in the total but never dominate.
_HOMOGENEITY_CTE = """
        tgroup_counts AS (
            SELECT dcm.cluster_id, d.t_group, COUNT(*) as count
            FROM {schema}.domain_cluster_members dcm
            JOIN {schema}.domain d ON dcm.domain_id = d.id
            GROUP BY dcm.cluster_id, d.t_group
        ),
        cluster_homogeneity AS (
            SELECT
                cluster_id,
                (MAX(count) FILTER (WHERE t_group IS NOT NULL))::float
                    / NULLIF(SUM(count), 0) as tgroup_homogeneity
            FROM tgroup_counts
            GROUP BY cluster_id
        )
"""


class AnalysisRepository:
    """Repository for cluster analysis data"""

    def __init__(self, db_manager: DBManager):
        """Initialize repository

        Args:
            db_manager: Database manager instance
        """
        self.db = db_manager
        self.logger = logging.getLogger("ecod_curation.db.analysis_repository")

    def get_analysis(self, cluster_id: int) -> Optional[ClusterAnalysis]:
        """Get the analysis row of a cluster

        Args:
            cluster_id: Cluster ID

        Returns:
            ClusterAnalysis if the cluster has been analysed, None otherwise
        """
        query = self.db.sql("""
        SELECT id, cluster_id, taxonomic_diversity, structure_consistency,
               experimental_support_ratio, requires_new_classification,
               analysis_notes, created_at
        FROM {schema}.cluster_analysis
        WHERE cluster_id = %s
        ORDER BY id DESC
        LIMIT 1
        """)
        rows = self.db.execute_dict_query(query, (cluster_id,))
        if not rows:
            return None
        return ClusterAnalysis.from_db_row(rows[0])

    def get_tgroup_counts(self, cluster_id: int) -> List[Dict[str, Any]]:
        """Member count per t-group for one cluster (t_group NULL for unassigned)"""
        query = self.db.sql("""
        SELECT d.t_group, COUNT(*) as count
        FROM {schema}.domain_cluster_members dcm
        JOIN {schema}.domain d ON dcm.domain_id = d.id
        WHERE dcm.cluster_id = %s
        GROUP BY d.t_group
        ORDER BY count DESC
        """)
        return self.db.execute_dict_query(query, (cluster_id,))

    def get_latest_msa(self, cluster_id: int) -> Optional[MSARecord]:
        """Most recent stored alignment for a cluster"""
        query = self.db.sql("""
        SELECT id, cluster_id, batch_id, alignment_data, alignment_length,
               num_sequences, avg_identity, avg_coverage,
               conserved_positions, gap_positions, created_at
        FROM {schema}.domain_msa
        WHERE cluster_id = %s
        ORDER BY created_at DESC
        LIMIT 1
        """)
        rows = self.db.execute_dict_query(query, (cluster_id,))
        if not rows:
            return None
        return MSARecord.from_db_row(rows[0])

    def get_quality_metrics(self, cluster_set_id: Optional[int] = None,
                            limit: int = 1000) -> List[Dict[str, Any]]:
        """Per-cluster quality rows for analysed clusters

        Rows carry cluster size, structure consistency, experimental
        support, t-group homogeneity, mean pLDDT of member structures and the
        structure sources.
        """
        params: List[Any] = []
        set_filter = ""
        if cluster_set_id is not None:
            set_filter = "AND dc.cluster_set_id = %s"
            params.append(cluster_set_id)
        params.append(limit)

        query = self.db.sql("""
        WITH""" + _HOMOGENEITY_CTE + """,
        cluster_plddt AS (
            SELECT
                dcm.cluster_id,
                AVG(ds.mean_plddt) as plddt,
                STRING_AGG(DISTINCT ds.source, ',') as source
            FROM {schema}.domain_cluster_members dcm
            JOIN {schema}.domain_structure ds ON dcm.domain_id = ds.domain_id
            GROUP BY dcm.cluster_id
        )
        SELECT
            dc.id as cluster_id,
            dc.cluster_number,
            dc.cluster_set_id,
            dcs.name as cluster_set,
            (SELECT COUNT(*) FROM {schema}.domain_cluster_members WHERE cluster_id = dc.id) as cluster_size,
            ca.structure_consistency,
            ca.experimental_support_ratio,
            ca.taxonomic_diversity,
            ch.tgroup_homogeneity,
            ROUND(cp.plddt::numeric, 2) as plddt,
            cp.source
        FROM {schema}.domain_clusters dc
        JOIN {schema}.domain_cluster_sets dcs ON dc.cluster_set_id = dcs.id
        JOIN {schema}.cluster_analysis ca ON dc.id = ca.cluster_id
        LEFT JOIN cluster_homogeneity ch ON dc.id = ch.cluster_id
        LEFT JOIN cluster_plddt cp ON dc.id = cp.cluster_id
        WHERE ca.structure_consistency IS NOT NULL
        """ + set_filter + """
        ORDER BY dc.cluster_set_id, dc.cluster_number
        LIMIT %s
        """)
        return self.db.execute_dict_query(query, tuple(params))

    def get_cluster_set_averages(self) -> List[Dict[str, Any]]:
        """Average quality metrics per cluster set

        Averages skip clusters where a metric was not measured.
        """
        query = self.db.sql("""
        WITH""" + _HOMOGENEITY_CTE + """,
        domain_plddt AS (
            SELECT dc.cluster_set_id, AVG(dpd.average_plddt) as avg_plddt
            FROM {schema}.domain_clusters dc
            JOIN {schema}.domain_cluster_members dcm ON dc.id = dcm.cluster_id
            JOIN {schema}.domain_plddt_detail dpd ON dcm.domain_id = dpd.domain_id
            GROUP BY dc.cluster_set_id
        )
        SELECT
            dcs.id as cluster_set_id,
            dcs.name,
            ROUND(AVG(ca.structure_consistency)::numeric, 2) as avg_structure_consistency,
            ROUND(AVG(ca.experimental_support_ratio)::numeric, 2) as avg_experimental_support,
            ROUND(MAX(dp.avg_plddt)::numeric, 2) as avg_plddt,
            ROUND(AVG(ch.tgroup_homogeneity)::numeric, 2) as avg_tgroup_homogeneity
        FROM {schema}.domain_cluster_sets dcs
        JOIN {schema}.domain_clusters dc ON dc.cluster_set_id = dcs.id
        LEFT JOIN {schema}.cluster_analysis ca ON dc.id = ca.cluster_id
        LEFT JOIN cluster_homogeneity ch ON dc.id = ch.cluster_id
        LEFT JOIN domain_plddt dp ON dp.cluster_set_id = dcs.id
        GROUP BY dcs.id, dcs.name
        ORDER BY dcs.name
        """)
        return self.db.execute_dict_query(query)
