# ecod_curation/db/repositories/dashboard_repository.py
#!/usr/bin/env python3
"""
Dashboard repository
Aggregate counts for the curation overview
"""
import logging
from typing import List, Dict, Any

from ecod_curation.db.manager import DBManager
from ecod_curation.models.cluster import to_json_value
from ecod_curation.models.dashboard import DashboardSummary, RecentCluster

_LATEST_ANALYSIS = """
        WITH latest_analysis AS (
            SELECT DISTINCT ON (cluster_id) *
            FROM {schema}.cluster_analysis
            ORDER BY cluster_id, id DESC
        )
"""


class DashboardRepository:
    """Repository for dashboard aggregates"""

    def __init__(self, db_manager: DBManager):
        """Initialize repository

        Args:
            db_manager: Database manager instance
        """
        self.db = db_manager
        self.logger = logging.getLogger("ecod_curation.db.dashboard_repository")

    def get_summary(self) -> DashboardSummary:
        """Total clusters, total domains and clusters flagged for review"""
        query = self.db.sql("""
        SELECT
            (SELECT COUNT(*) FROM {schema}.domain_clusters) as total_clusters,
            (SELECT COUNT(*) FROM {schema}.domain) as total_domains,
            (SELECT COUNT(*) FROM {schema}.cluster_analysis
             WHERE requires_new_classification = true) as needs_review
        """)
        rows = self.db.execute_dict_query(query)
        row = rows[0] if rows else {}
        return DashboardSummary(
            total_clusters=int(row.get('total_clusters') or 0),
            total_domains=int(row.get('total_domains') or 0),
            needs_review=int(row.get('needs_review') or 0)
        )

    def get_kingdom_stats(self) -> List[Dict[str, Any]]:
        """Clustered domains and clusters per superkingdom"""
        query = self.db.sql("""
        SELECT
            superkingdom as kingdom,
            COUNT(DISTINCT domain_id) as domains,
            COUNT(DISTINCT cluster_id) as clusters
        FROM (
            SELECT
                dcm.domain_id,
                dcm.cluster_id,
                {schema}.get_ancestor_name(pt.tax_id, 'superkingdom') as superkingdom
            FROM {schema}.domain_cluster_members dcm
            JOIN {schema}.domain d ON dcm.domain_id = d.id
            JOIN {schema}.protein_taxonomy pt ON d.unp_acc = pt.unp_acc
        ) as taxonomy_data
        WHERE superkingdom IS NOT NULL
        GROUP BY superkingdom
        ORDER BY domains DESC
        """)
        return [{'kingdom': row['kingdom'], 'domains': int(row['domains']),
                 'clusters': int(row['clusters'])}
                for row in self.db.execute_dict_query(query)]

    def get_top_tgroups(self, limit: int = 6) -> List[Dict[str, Any]]:
        """T-groups spread over the most clusters"""
        query = self.db.sql("""
        SELECT
            COALESCE(tn.name, d.t_group) as tgroup,
            COUNT(DISTINCT dcm.cluster_id) as count
        FROM {schema}.domain_cluster_members dcm
        JOIN {schema}.domain d ON dcm.domain_id = d.id
        LEFT JOIN {schema}.tgroup_names tn ON tn.tgroup_id = d.t_group
        GROUP BY COALESCE(tn.name, d.t_group)
        ORDER BY count DESC
        LIMIT %s
        """)
        return [{'tgroup': row['tgroup'], 'count': int(row['count'])}
                for row in self.db.execute_dict_query(query, (limit,))]

    def get_status_counts(self, validated: float = 0.8, acceptable: float = 0.6) -> Dict[str, int]:
        """Clusters per curation status, judged on the latest analysis

        Flagged clusters are Needs Review whatever their consistency.
        Clusters without a measured structure consistency are Unanalysed.

        Args:
            validated: Lowest structure consistency counted as Validated
            acceptable: Lowest structure consistency counted as Acceptable

        Returns:
            Mapping of status label to cluster count
        """
        query = self.db.sql(_LATEST_ANALYSIS + """
        SELECT
            CASE
                WHEN la.requires_new_classification THEN 'Needs Review'
                WHEN la.structure_consistency IS NULL THEN 'Unanalysed'
                WHEN la.structure_consistency >= %s THEN 'Validated'
                WHEN la.structure_consistency >= %s THEN 'Acceptable'
                ELSE 'Uncertain'
            END as status,
            COUNT(*) as count
        FROM {schema}.domain_clusters dc
        LEFT JOIN latest_analysis la ON dc.id = la.cluster_id
        GROUP BY 1
        """)
        rows = self.db.execute_dict_query(query, (validated, acceptable))
        return {row['status']: int(row['count']) for row in rows}

    def get_tgroup_consistency(self, limit: int = 10, min_clusters: int = 5) -> List[Dict[str, Any]]:
        """T-groups whose members stay together in the same clusters

        Consistency of a t-group is the mean, over clusters containing it,
        of the fraction of the cluster's members in that t-group.

        Args:
            limit: Number of t-groups to return
            min_clusters: Only t-groups present in more than this many clusters

        Returns:
            Rows with t_group, name, clusters, domains and consistency (percent)
        """
        query = self.db.sql("""
        WITH cluster_sizes AS (
            SELECT cluster_id, COUNT(*) as total
            FROM {schema}.domain_cluster_members
            GROUP BY cluster_id
        ),
        cluster_tgroup_counts AS (
            SELECT dcm.cluster_id, d.t_group, COUNT(*) as count
            FROM {schema}.domain_cluster_members dcm
            JOIN {schema}.domain d ON dcm.domain_id = d.id
            WHERE d.t_group IS NOT NULL
            GROUP BY dcm.cluster_id, d.t_group
        )
        SELECT
            ctc.t_group,
            COALESCE(tn.name, ctc.t_group) as name,
            COUNT(*) as clusters,
            SUM(ctc.count) as domains,
            AVG(ctc.count::float / cs.total) as consistency
        FROM cluster_tgroup_counts ctc
        JOIN cluster_sizes cs ON cs.cluster_id = ctc.cluster_id
        LEFT JOIN {schema}.tgroup_names tn ON tn.tgroup_id = ctc.t_group
        GROUP BY ctc.t_group, COALESCE(tn.name, ctc.t_group)
        HAVING COUNT(*) > %s
        ORDER BY consistency DESC, ctc.t_group
        LIMIT %s
        """)
        return [{'t_group': row['t_group'], 'name': row['name'],
                 'clusters': int(row['clusters']), 'domains': int(row['domains']),
                 'consistency': round(float(row['consistency']) * 100, 1)}
                for row in self.db.execute_dict_query(query, (min_clusters, limit))]

    def get_cluster_set_comparison(self, validated: float = 0.8,
                                   acceptable: float = 0.6) -> List[Dict[str, Any]]:
        """Validated, flagged, conflicting and unanalysed clusters per cluster set

        A conflict is an unflagged cluster whose structure consistency is
        below the acceptable threshold.
        """
        query = self.db.sql(_LATEST_ANALYSIS + """
        SELECT
            dcs.id as cluster_set_id,
            dcs.name,
            COUNT(*) as clusters,
            COUNT(*) FILTER (WHERE la.structure_consistency >= %s
                             AND NOT COALESCE(la.requires_new_classification, false)) as validated,
            COUNT(*) FILTER (WHERE la.requires_new_classification) as needs_review,
            COUNT(*) FILTER (WHERE la.structure_consistency < %s
                             AND NOT COALESCE(la.requires_new_classification, false)) as conflicts,
            COUNT(*) FILTER (WHERE la.cluster_id IS NULL
                             OR (la.structure_consistency IS NULL
                                 AND NOT COALESCE(la.requires_new_classification, false))) as unanalysed
        FROM {schema}.domain_clusters dc
        JOIN {schema}.domain_cluster_sets dcs ON dc.cluster_set_id = dcs.id
        LEFT JOIN latest_analysis la ON dc.id = la.cluster_id
        GROUP BY dcs.id, dcs.name
        ORDER BY dcs.name
        """)
        counts = ('clusters', 'validated', 'needs_review', 'conflicts', 'unanalysed')
        return [{'cluster_set_id': row['cluster_set_id'], 'name': row['name'],
                 **{key: int(row[key] or 0) for key in counts}}
                for row in self.db.execute_dict_query(query, (validated, acceptable))]

    def get_recent_clusters(self, limit: int = 4) -> List[RecentCluster]:
        """Most recently created clusters with their representative domain"""
        query = self.db.sql(_LATEST_ANALYSIS + """
        SELECT
            dc.id,
            dc.cluster_number,
            dc.created_at,
            dcs.name as cluster_set_name,
            (SELECT COUNT(*) FROM {schema}.domain_cluster_members m
             WHERE m.cluster_id = dc.id) as size,
            la.taxonomic_diversity,
            d.domain_id as representative_domain
        FROM {schema}.domain_clusters dc
        LEFT JOIN {schema}.domain_cluster_sets dcs ON dc.cluster_set_id = dcs.id
        LEFT JOIN latest_analysis la ON dc.id = la.cluster_id
        LEFT JOIN {schema}.domain_cluster_members dcm
            ON dc.id = dcm.cluster_id AND dcm.is_representative = true
        LEFT JOIN {schema}.domain d ON dcm.domain_id = d.id
        ORDER BY dc.created_at DESC NULLS LAST, dc.id DESC
        LIMIT %s
        """)
        return [RecentCluster.from_db_row(row)
                for row in self.db.execute_dict_query(query, (limit,))]

    def get_domain_quality_bins(self) -> List[Dict[str, Any]]:
        """Domain counts per judge, DPAM probability decile and confidence band

        Deciles run 0-9 (0.9-1.0 inclusive is decile 9). Domains without a
        DPAM probability have no decile and the band 'Unmeasured'.
        """
        query = self.db.sql("""
        SELECT
            judge,
            CASE WHEN dpam_prob IS NULL THEN NULL
                 ELSE LEAST(FLOOR(dpam_prob * 10), 9)::int END as decile,
            CASE
                WHEN dpam_prob IS NULL THEN 'Unmeasured'
                WHEN dpam_prob > 0.9 THEN 'Very High (>90)'
                WHEN dpam_prob > 0.7 THEN 'High (70-90)'
                WHEN dpam_prob > 0.5 THEN 'Medium (50-70)'
                ELSE 'Low (<50)'
            END as band,
            COUNT(*) as count
        FROM {schema}.domain
        GROUP BY 1, 2, 3
        """)
        return [{'judge': row['judge'], 'decile': row['decile'], 'band': row['band'],
                 'count': int(row['count'])}
                for row in self.db.execute_dict_query(query)]

    def get_judge_summary(self) -> List[Dict[str, Any]]:
        """Per-judge counts, score means and DPAM percentiles (as percentages)"""
        query = self.db.sql("""
        SELECT
            judge,
            COUNT(*) as domains,
            COUNT(dpam_prob) as dpam_measured,
            AVG(dpam_prob) as avg_dpam_prob,
            COUNT(hh_prob) as hh_measured,
            AVG(hh_prob) as avg_hh_prob,
            AVG(hcount) as avg_helices,
            AVG(scount) as avg_strands,
            MIN(dpam_prob * 100) as min,
            PERCENTILE_CONT(0.25) WITHIN GROUP (ORDER BY dpam_prob * 100) as q1,
            PERCENTILE_CONT(0.5) WITHIN GROUP (ORDER BY dpam_prob * 100) as median,
            PERCENTILE_CONT(0.75) WITHIN GROUP (ORDER BY dpam_prob * 100) as q3,
            MAX(dpam_prob * 100) as max
        FROM {schema}.domain
        GROUP BY judge
        ORDER BY domains DESC
        """)
        return [{key: to_json_value(value) for key, value in row.items()}
                for row in self.db.execute_dict_query(query)]

    def get_dpam_plddt_correlation(self) -> Dict[str, Any]:
        """Pearson correlation of domain DPAM probability with protein pLDDT"""
        query = self.db.sql("""
        SELECT CORR(d.dpam_prob, p.plddt_avg) as correlation, COUNT(*) as pairs
        FROM {schema}.domain d
        JOIN {schema}.protein_plddt p ON d.unp_acc = p.unp_acc
        WHERE d.dpam_prob IS NOT NULL AND p.plddt_avg IS NOT NULL
        """)
        rows = self.db.execute_dict_query(query)
        row = rows[0] if rows else {}
        correlation = row.get('correlation')
        return {'correlation': None if correlation is None else round(float(correlation), 4),
                'pairs': int(row.get('pairs') or 0)}
