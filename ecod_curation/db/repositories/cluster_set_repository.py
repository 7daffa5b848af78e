# ecod_curation/db/repositories/cluster_set_repository.py
#!/usr/bin/env python3
"""
Cluster set repository
Handles database operations for cluster sets and their statistics
"""
import logging
from typing import List, Dict, Any, Optional

from ecod_curation.db.manager import DBManager
from ecod_curation.models.cluster import ClusterSet
from ecod_curation.analysis.distributions import size_distribution

# Aggregate columns shared by the list and detail queries
_STATS_COLUMNS = """
        (SELECT COUNT(*) FROM {schema}.domain_clusters WHERE cluster_set_id = dcs.id) as clusters_count,
        (
          SELECT COUNT(*)
          FROM {schema}.domain_clusters dc
          JOIN {schema}.domain_cluster_members dcm ON dc.id = dcm.cluster_id
          WHERE dc.cluster_set_id = dcs.id
        ) as domains_count,
        COALESCE(
          (
            SELECT AVG(ca.taxonomic_diversity)
            FROM {schema}.domain_clusters dc
            JOIN {schema}.cluster_analysis ca ON dc.id = ca.cluster_id
            WHERE dc.cluster_set_id = dcs.id
          ),
          0.5
        ) as taxonomic_coverage,
        (
          SELECT COUNT(*)
          FROM {schema}.domain_clusters dc
          JOIN {schema}.cluster_analysis ca ON dc.id = ca.cluster_id
          WHERE dc.cluster_set_id = dcs.id AND ca.requires_new_classification = true
        ) as flagged_clusters
"""


class ClusterSetRepository:
    """Repository for cluster set data"""

    def __init__(self, db_manager: DBManager):
        """Initialize repository

        Args:
            db_manager: Database manager instance
        """
        self.db = db_manager
        self.logger = logging.getLogger("ecod_curation.db.cluster_set_repository")

    def list_all(self) -> List[ClusterSet]:
        """Get all cluster sets with summary statistics, highest identity first"""
        query = self.db.sql("""
        SELECT
            dcs.id, dcs.name, dcs.method, dcs.sequence_identity,
            dcs.description, dcs.created_at,
        """ + _STATS_COLUMNS + """
        FROM {schema}.domain_cluster_sets dcs
        ORDER BY dcs.sequence_identity DESC
        """)
        rows = self.db.execute_dict_query(query)
        return [ClusterSet.from_db_row(row) for row in rows]

    def get_by_id(self, cluster_set_id: int) -> Optional[ClusterSet]:
        """Get one cluster set with its clustering parameters and statistics"""
        query = self.db.sql("""
        SELECT
            dcs.id, dcs.name, dcs.method, dcs.sequence_identity,
            dcs.band_width, dcs.word_length, dcs.min_length,
            dcs.description, dcs.created_at,
        """ + _STATS_COLUMNS + """,
            (
              SELECT MAX(dc.cluster_number)
              FROM {schema}.domain_clusters dc
              WHERE dc.cluster_set_id = dcs.id
            ) as max_cluster_number,
            (
              SELECT ROUND(AVG(member_count), 2)
              FROM (
                SELECT COUNT(*) as member_count
                FROM {schema}.domain_clusters dc
                JOIN {schema}.domain_cluster_members dcm ON dc.id = dcm.cluster_id
                WHERE dc.cluster_set_id = dcs.id
                GROUP BY dc.id
              ) as cluster_sizes
            ) as avg_cluster_size
        FROM {schema}.domain_cluster_sets dcs
        WHERE dcs.id = %s
        """)
        rows = self.db.execute_dict_query(query, (cluster_set_id,))
        if not rows:
            return None
        return ClusterSet.from_db_row(rows[0])

    def get_basic(self, cluster_set_id: int) -> Optional[ClusterSet]:
        """Get a cluster set without aggregate statistics"""
        query = self.db.sql("""
        SELECT id, name, method, sequence_identity, description, created_at
        FROM {schema}.domain_cluster_sets
        WHERE id = %s
        """)
        rows = self.db.execute_dict_query(query, (cluster_set_id,))
        return ClusterSet.from_db_row(rows[0]) if rows else None

    def get_size_distribution(self, cluster_set_id: int) -> List[Dict[str, Any]]:
        """Number of clusters per size bucket"""
        query = self.db.sql("""
        SELECT COUNT(*) as size
        FROM {schema}.domain_clusters dc
        JOIN {schema}.domain_cluster_members dcm ON dc.id = dcm.cluster_id
        WHERE dc.cluster_set_id = %s
        GROUP BY dc.id
        """)
        rows = self.db.execute_dict_query(query, (cluster_set_id,))
        return size_distribution(int(row['size']) for row in rows)

    def get_tgroup_distribution(self, cluster_set_id: int, limit: int = 10) -> List[Dict[str, Any]]:
        """Most common t-groups in a cluster set by domain count"""
        query = self.db.sql("""
        SELECT
            d.t_group,
            COALESCE(tn.name, d.t_group) as name,
            COUNT(DISTINCT dc.id) as cluster_count,
            COUNT(*) as domain_count
        FROM {schema}.domain_clusters dc
        JOIN {schema}.domain_cluster_members dcm ON dc.id = dcm.cluster_id
        JOIN {schema}.domain d ON dcm.domain_id = d.id
        LEFT JOIN {schema}.tgroup_names tn ON tn.tgroup_id = d.t_group
        WHERE dc.cluster_set_id = %s
        GROUP BY d.t_group, COALESCE(tn.name, d.t_group)
        ORDER BY domain_count DESC
        LIMIT %s
        """)
        return self.db.execute_dict_query(query, (cluster_set_id, limit))
