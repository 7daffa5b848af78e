# ecod_curation/db/repositories/cluster_repository.py
#!/usr/bin/env python3
"""
Cluster repository
Handles database operations for clusters, their members and composition
"""
import logging
from dataclasses import dataclass
from typing import List, Dict, Any, Optional, Tuple

from ecod_curation.db.manager import DBManager
from ecod_curation.models.cluster import Cluster, ClusterMember, ClusterSummary
from ecod_curation.models.pagination import Page, PageRequest


@dataclass
class ClusterFilters:
    """Optional filters for the cluster list"""
    cluster_set_id: Optional[int] = None
    t_group: Optional[str] = None
    tax_id: Optional[int] = None

    def where_clause(self) -> Tuple[str, List[Any]]:
        """SQL conditions (each prefixed with AND) and their parameters"""
        clauses = []
        params: List[Any] = []

        if self.cluster_set_id is not None:
            clauses.append("AND dc.cluster_set_id = %s")
            params.append(self.cluster_set_id)

        if self.t_group:
            clauses.append("""AND EXISTS (
                SELECT 1 FROM {schema}.domain_cluster_members dcm
                JOIN {schema}.domain d ON dcm.domain_id = d.id
                WHERE dcm.cluster_id = dc.id AND d.t_group = %s
            )""")
            params.append(self.t_group)

        if self.tax_id is not None:
            clauses.append("""AND EXISTS (
                SELECT 1 FROM {schema}.domain_cluster_members dcm
                JOIN {schema}.domain d ON dcm.domain_id = d.id
                JOIN {schema}.protein_taxonomy pt ON d.unp_acc = pt.unp_acc
                WHERE dcm.cluster_id = dc.id AND pt.tax_id = %s
            )""")
            params.append(self.tax_id)

        return "\n".join(clauses), params


class ClusterRepository:
    """Repository for cluster data"""

    def __init__(self, db_manager: DBManager):
        """Initialize repository

        Args:
            db_manager: Database manager instance
        """
        self.db = db_manager
        self.logger = logging.getLogger("ecod_curation.db.cluster_repository")

    def list(self, filters: Optional[ClusterFilters] = None,
             page: Optional[PageRequest] = None) -> Page[ClusterSummary]:
        """List clusters, newest cluster number first

        Analysis metrics are left as NULL when a cluster has no analysis row.

        Args:
            filters: Optional cluster set / t-group / taxon filters
            page: Page to return

        Returns:
            Page of ClusterSummary
        """
        filters = filters or ClusterFilters()
        page = page or PageRequest()
        where, params = filters.where_clause()

        query = self.db.sql("""
        SELECT
            dc.id,
            dc.cluster_number,
            dc.cluster_set_id,
            dcs.name as cluster_set_name,
            dcs.sequence_identity,
            (SELECT COUNT(*) FROM {schema}.domain_cluster_members WHERE cluster_id = dc.id) as size,
            ca.taxonomic_diversity,
            ca.structure_consistency,
            COALESCE(ca.requires_new_classification, false) as requires_new_classification
        FROM {schema}.domain_clusters dc
        JOIN {schema}.domain_cluster_sets dcs ON dc.cluster_set_id = dcs.id
        LEFT JOIN {schema}.cluster_analysis ca ON dc.id = ca.cluster_id
        WHERE 1=1
        """ + where + """
        ORDER BY dc.cluster_number DESC
        LIMIT %s OFFSET %s
        """)
        rows = self.db.execute_dict_query(query, tuple(params) + (page.limit, page.offset))

        count_query = self.db.sql("""
        SELECT COUNT(*)
        FROM {schema}.domain_clusters dc
        WHERE 1=1
        """ + where)
        total = int(self.db.execute_scalar(count_query, tuple(params), default=0))

        return Page(items=[ClusterSummary.from_db_row(row) for row in rows],
                    total=total, page=page.page, page_size=page.page_size)

    def get_by_id(self, cluster_id: int) -> Optional[Cluster]:
        """Get cluster by ID

        Args:
            cluster_id: Cluster ID

        Returns:
            Cluster if found, None otherwise
        """
        query = self.db.sql("""
        SELECT dc.id, dc.cluster_number, dc.cluster_set_id, dc.created_at
        FROM {schema}.domain_clusters dc
        WHERE dc.id = %s
        """)
        rows = self.db.execute_dict_query(query, (cluster_id,))
        if not rows:
            return None
        return Cluster.from_db_row(rows[0])

    def exists(self, cluster_id: int) -> bool:
        query = self.db.sql("SELECT id FROM {schema}.domain_clusters WHERE id = %s")
        return bool(self.db.execute_query(query, (cluster_id,)))

    def get_members(self, cluster_id: int,
                    page: Optional[PageRequest] = None) -> List[ClusterMember]:
        """Get members of a cluster, representative first then by identity

        Args:
            cluster_id: Cluster ID
            page: Page to return (all members when omitted)

        Returns:
            List of ClusterMember with species and t-group names
        """
        query = """
        SELECT
            dcm.id,
            dcm.cluster_id,
            dcm.domain_id,
            dcm.sequence_identity,
            dcm.alignment_coverage,
            dcm.is_representative,
            d.unp_acc,
            d.domain_id as domain_identifier,
            d.range,
            d.t_group,
            t.scientific_name as species,
            tn.name as t_group_name
        FROM {schema}.domain_cluster_members dcm
        JOIN {schema}.domain d ON dcm.domain_id = d.id
        LEFT JOIN {schema}.protein_taxonomy pt ON d.unp_acc = pt.unp_acc
        LEFT JOIN {schema}.taxonomy t ON pt.tax_id = t.tax_id
        LEFT JOIN {schema}.tgroup_names tn ON tn.tgroup_id = d.t_group
        WHERE dcm.cluster_id = %s
        ORDER BY dcm.is_representative DESC, dcm.sequence_identity DESC NULLS LAST, dcm.id
        """
        params: Tuple = (cluster_id,)
        if page is not None:
            query += "LIMIT %s OFFSET %s"
            params += (page.limit, page.offset)

        rows = self.db.execute_dict_query(self.db.sql(query), params)
        return [ClusterMember.from_db_row(row) for row in rows]

    def count_members(self, cluster_id: int) -> int:
        query = self.db.sql("""
        SELECT COUNT(*)
        FROM {schema}.domain_cluster_members
        WHERE cluster_id = %s
        """)
        return int(self.db.execute_scalar(query, (cluster_id,), default=0))

    def get_taxonomy_distribution(self, cluster_id: int) -> Dict[str, Any]:
        """Distinct families, phyla and superkingdoms among cluster members"""
        query = self.db.sql("""
        WITH taxonomy_data AS (
            SELECT
                pt.tax_id,
                {schema}.get_ancestor_name(pt.tax_id, 'family') as family,
                {schema}.get_ancestor_name(pt.tax_id, 'phylum') as phylum,
                {schema}.get_ancestor_name(pt.tax_id, 'superkingdom') as superkingdom
            FROM {schema}.domain_cluster_members dcm
            JOIN {schema}.domain d ON dcm.domain_id = d.id
            JOIN {schema}.protein_taxonomy pt ON d.unp_acc = pt.unp_acc
            WHERE dcm.cluster_id = %s
        )
        SELECT
            COUNT(DISTINCT family) as distinct_families,
            COUNT(DISTINCT phylum) as distinct_phyla,
            ARRAY_REMOVE(ARRAY_AGG(DISTINCT superkingdom), NULL) as superkingdoms
        FROM taxonomy_data
        """)
        rows = self.db.execute_dict_query(query, (cluster_id,))
        if not rows:
            return {'distinct_families': 0, 'distinct_phyla': 0, 'superkingdoms': []}
        row = rows[0]
        return {
            'distinct_families': int(row.get('distinct_families') or 0),
            'distinct_phyla': int(row.get('distinct_phyla') or 0),
            'superkingdoms': list(row.get('superkingdoms') or []),
        }

    def get_tgroup_distribution(self, cluster_id: int) -> List[Dict[str, Any]]:
        """Member count per t-group (with names), largest first"""
        query = self.db.sql("""
        SELECT
            d.t_group,
            COUNT(*) as count,
            tn.name as name
        FROM {schema}.domain_cluster_members dcm
        JOIN {schema}.domain d ON dcm.domain_id = d.id
        LEFT JOIN {schema}.tgroup_names tn ON tn.tgroup_id = d.t_group
        WHERE dcm.cluster_id = %s
        GROUP BY d.t_group, tn.name
        ORDER BY count DESC
        """)
        return self.db.execute_dict_query(query, (cluster_id,))

    def get_phylum_stats(self, cluster_id: int) -> List[Dict[str, Any]]:
        """Member count per phylum, largest first"""
        query = self.db.sql("""
        SELECT
            {schema}.get_ancestor_name(pt.tax_id, 'phylum') as phylum,
            COUNT(*) as count
        FROM {schema}.domain_cluster_members dcm
        JOIN {schema}.domain d ON dcm.domain_id = d.id
        JOIN {schema}.protein_taxonomy pt ON d.unp_acc = pt.unp_acc
        WHERE dcm.cluster_id = %s
        GROUP BY phylum
        ORDER BY count DESC
        """)
        return self.db.execute_dict_query(query, (cluster_id,))

    def get_species_distribution(self, cluster_id: int, limit: int = 10) -> List[Dict[str, Any]]:
        """Most common species among cluster members"""
        query = self.db.sql("""
        SELECT
            t.scientific_name as species,
            COUNT(*) as count
        FROM {schema}.domain_cluster_members dcm
        JOIN {schema}.domain d ON dcm.domain_id = d.id
        JOIN {schema}.protein_taxonomy pt ON d.unp_acc = pt.unp_acc
        JOIN {schema}.taxonomy t ON pt.tax_id = t.tax_id
        WHERE dcm.cluster_id = %s
        GROUP BY species
        ORDER BY count DESC
        LIMIT %s
        """)
        return self.db.execute_dict_query(query, (cluster_id, limit))

    def get_priority_rows(self, exclude_singletons: bool = True) -> List[Dict[str, Any]]:
        """Cluster rows used to build the curation priority list

        Each row carries its size, analysis metrics (``has_analysis`` tells
        whether an analysis row exists) and representative domain.
        """
        query = """
        WITH cluster_size AS (
            SELECT cluster_id, COUNT(*) as size
            FROM {schema}.domain_cluster_members
            GROUP BY cluster_id
        )
        SELECT
            dc.id,
            dc.cluster_number,
            dc.cluster_set_id,
            dcs.name as cluster_set_name,
            cs.size,
            ca.id IS NOT NULL as has_analysis,
            ca.taxonomic_diversity,
            ca.structure_consistency,
            ca.requires_new_classification,
            ca.analysis_notes,
            rep.domain_id as representative_domain,
            rep.t_group,
            tn.name as t_group_name
        FROM {schema}.domain_clusters dc
        JOIN {schema}.domain_cluster_sets dcs ON dc.cluster_set_id = dcs.id
        JOIN cluster_size cs ON dc.id = cs.cluster_id
        LEFT JOIN {schema}.cluster_analysis ca ON dc.id = ca.cluster_id
        LEFT JOIN (
            SELECT DISTINCT ON (dcm.cluster_id) dcm.cluster_id, d.domain_id, d.t_group
            FROM {schema}.domain_cluster_members dcm
            JOIN {schema}.domain d ON dcm.domain_id = d.id
            WHERE dcm.is_representative = true
            ORDER BY dcm.cluster_id, dcm.id
        ) AS rep ON dc.id = rep.cluster_id
        LEFT JOIN {schema}.tgroup_names tn ON tn.tgroup_id = rep.t_group
        """
        if exclude_singletons:
            query += "WHERE cs.size > 1\n"

        return self.db.execute_dict_query(self.db.sql(query))
