# ecod_curation/db/repositories/reclassification_repository.py
#!/usr/bin/env python3
"""
Reclassification repository
Lists clusters flagged for a new classification and records curator decisions
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional, Tuple

from ecod_curation.analysis.reclassification import (
    DEFAULT_CONFIDENCE_HIGH, DEFAULT_CONFIDENCE_MEDIUM,
    confidence_bucket, confidence_condition, extract_proposed_tgroup
)
from ecod_curation.db.manager import DBManager
from ecod_curation.db.repositories.activity_repository import INSERT_ACTIVITY, activity_params
from ecod_curation.exceptions import NotFoundError, ReclassificationError, ValidationError
from ecod_curation.models.activity import ActivityEntry
from ecod_curation.models.pagination import Page, PageRequest
from ecod_curation.models.reclassification import (
    ReclassificationCandidate, ReclassificationDecision, ReclassificationOutcome,
    ReclassificationStatus, ReclassificationSummary
)

STATUS_FILTERS = ('pending', 'approved', 'rejected', 'all')

# Latest decision per cluster
_LATEST_STATUS_CTE = """
        WITH latest_status AS (
            SELECT DISTINCT ON (cluster_id) cluster_id, status, user_id, created_at
            FROM {schema}.reclassification_status
            ORDER BY cluster_id, created_at DESC, id DESC
        )
"""


@dataclass
class ReclassificationFilters:
    """Optional filters for the candidate list"""
    status: str = 'pending'
    confidence: Optional[str] = None
    cluster_set_id: Optional[int] = None

    def validate(self) -> None:
        if self.status not in STATUS_FILTERS:
            raise ValidationError(f"Invalid status filter: {self.status!r}",
                                  {"allowed": list(STATUS_FILTERS)})


class ReclassificationRepository:
    """Repository for reclassification candidates and decisions"""

    def __init__(self, db_manager: DBManager,
                 confidence_high: float = DEFAULT_CONFIDENCE_HIGH,
                 confidence_medium: float = DEFAULT_CONFIDENCE_MEDIUM):
        """Initialize repository

        Args:
            db_manager: Database manager instance
            confidence_high: Structure consistency above which confidence is high
            confidence_medium: Structure consistency above which confidence is medium
        """
        self.db = db_manager
        self.confidence_high = confidence_high
        self.confidence_medium = confidence_medium
        self.logger = logging.getLogger("ecod_curation.db.reclassification_repository")

    def _where_clause(self, filters: ReclassificationFilters) -> Tuple[str, List[Any]]:
        conditions = ["(ca.requires_new_classification = true OR ls.status IS NOT NULL)"]
        params: List[Any] = []

        if filters.status == 'pending':
            conditions.append("ca.requires_new_classification = true AND ls.status IS NULL")
        elif filters.status in ('approved', 'rejected'):
            conditions.append("ls.status = %s")
            params.append(filters.status)

        if filters.confidence:
            condition, values = confidence_condition(filters.confidence, "ca.structure_consistency",
                                                     self.confidence_high, self.confidence_medium)
            conditions.append(condition)
            params.extend(values)

        if filters.cluster_set_id is not None:
            conditions.append("dc.cluster_set_id = %s")
            params.append(filters.cluster_set_id)

        return "WHERE " + " AND ".join(conditions), params

    def list_candidates(self, filters: Optional[ReclassificationFilters] = None,
                        page: Optional[PageRequest] = None) -> Page[ReclassificationCandidate]:
        """List reclassification candidates, most structurally consistent first

        Args:
            filters: Status, confidence and cluster set filters
            page: Page to return

        Returns:
            Page of ReclassificationCandidate

        Raises:
            ValidationError: For unknown status or confidence filters
        """
        filters = filters or ReclassificationFilters()
        filters.validate()
        page = page or PageRequest()
        where, params = self._where_clause(filters)

        joins = """
        FROM {schema}.domain_clusters dc
        JOIN {schema}.domain_cluster_sets dcs ON dc.cluster_set_id = dcs.id
        JOIN {schema}.cluster_analysis ca ON dc.id = ca.cluster_id
        LEFT JOIN latest_status ls ON ls.cluster_id = dc.id
        """
        query = self.db.sql(_LATEST_STATUS_CTE + """
        SELECT
            dc.id as cluster_id,
            dc.cluster_number,
            dcs.name as cluster_set_name,
            rep.t_group as current_t_group,
            tn.name as current_t_group_name,
            rep.domain_id as representative_domain,
            ca.taxonomic_diversity,
            ca.structure_consistency,
            ca.analysis_notes,
            ca.created_at,
            COALESCE(ls.status, 'pending') as status,
            ls.user_id as reviewed_by,
            ls.created_at as reviewed_at
        """ + joins + """
        LEFT JOIN LATERAL (
            SELECT d.domain_id, d.t_group
            FROM {schema}.domain_cluster_members dcm
            JOIN {schema}.domain d ON dcm.domain_id = d.id
            WHERE dcm.cluster_id = dc.id AND dcm.is_representative = true
            ORDER BY dcm.id
            LIMIT 1
        ) rep ON true
        LEFT JOIN {schema}.tgroup_names tn ON tn.tgroup_id = rep.t_group
        """ + where + """
        ORDER BY ca.structure_consistency DESC NULLS LAST, dc.id
        LIMIT %s OFFSET %s
        """)
        rows = self.db.execute_dict_query(query, tuple(params) + (page.limit, page.offset))

        count_query = self.db.sql(_LATEST_STATUS_CTE + "SELECT COUNT(*)" + joins + where)
        total = int(self.db.execute_scalar(count_query, tuple(params), default=0))

        candidates = [self._candidate_from_row(row) for row in rows]
        self._fill_proposed_names(candidates)
        return Page(items=candidates, total=total, page=page.page, page_size=page.page_size)

    def _candidate_from_row(self, row: Dict[str, Any]) -> ReclassificationCandidate:
        sc = row.get('structure_consistency')
        return ReclassificationCandidate(
            cluster_id=row['cluster_id'],
            cluster_number=row['cluster_number'],
            cluster_set_name=row.get('cluster_set_name', ''),
            current_t_group=row.get('current_t_group'),
            current_t_group_name=row.get('current_t_group_name'),
            representative_domain=row.get('representative_domain'),
            proposed_t_group=extract_proposed_tgroup(row.get('analysis_notes')),
            confidence=confidence_bucket(sc, self.confidence_high, self.confidence_medium),
            status=ReclassificationStatus(row.get('status') or 'pending'),
            reviewed_by=row.get('reviewed_by'),
            reviewed_at=row.get('reviewed_at'),
            created_at=row.get('created_at'),
            taxonomic_diversity=None if row.get('taxonomic_diversity') is None
            else float(row['taxonomic_diversity']),
            structure_consistency=None if sc is None else float(sc),
            analysis_notes=row.get('analysis_notes')
        )

    def _fill_proposed_names(self, candidates: List[ReclassificationCandidate]) -> None:
        proposed = sorted({c.proposed_t_group for c in candidates if c.proposed_t_group})
        if not proposed:
            return
        names = self.get_tgroup_names(proposed)
        for candidate in candidates:
            if candidate.proposed_t_group:
                candidate.proposed_t_group_name = names.get(candidate.proposed_t_group)

    def get_tgroup_names(self, tgroup_ids: List[str]) -> Dict[str, str]:
        """Names of the given t-groups (missing ids are omitted)"""
        if not tgroup_ids:
            return {}
        query = self.db.sql("""
        SELECT tgroup_id, name
        FROM {schema}.tgroup_names
        WHERE tgroup_id = ANY(%s)
        """)
        rows = self.db.execute_dict_query(query, (list(tgroup_ids),))
        return {row['tgroup_id']: row['name'] for row in rows}

    def get_summary(self) -> ReclassificationSummary:
        """Flagged clusters by confidence bucket and by current t-group"""
        confidence_query = self.db.sql("""
        SELECT
            CASE
                WHEN ca.structure_consistency IS NULL THEN 'unknown'
                WHEN ca.structure_consistency > %s THEN 'high'
                WHEN ca.structure_consistency > %s THEN 'medium'
                ELSE 'low'
            END as confidence,
            COUNT(*) as count
        FROM {schema}.domain_clusters dc
        JOIN {schema}.cluster_analysis ca ON dc.id = ca.cluster_id
        WHERE ca.requires_new_classification = true
        GROUP BY confidence
        """)
        confidence_rows = self.db.execute_dict_query(
            confidence_query, (self.confidence_high, self.confidence_medium))

        by_confidence = {level: 0 for level in ('high', 'medium', 'low', 'unknown')}
        for row in confidence_rows:
            by_confidence[row['confidence']] = int(row['count'])

        tgroup_query = self.db.sql("""
        SELECT
            d.t_group,
            COALESCE(tn.name, d.t_group) as name,
            COUNT(*) as count
        FROM {schema}.domain_clusters dc
        JOIN {schema}.cluster_analysis ca ON dc.id = ca.cluster_id
        JOIN {schema}.domain_cluster_members dcm ON dc.id = dcm.cluster_id AND dcm.is_representative = true
        JOIN {schema}.domain d ON dcm.domain_id = d.id
        LEFT JOIN {schema}.tgroup_names tn ON tn.tgroup_id = d.t_group
        WHERE ca.requires_new_classification = true
        GROUP BY d.t_group, COALESCE(tn.name, d.t_group)
        ORDER BY count DESC
        LIMIT 10
        """)
        by_tgroup = [
            {'t_group': row['t_group'], 'name': row['name'], 'count': int(row['count'])}
            for row in self.db.execute_dict_query(tgroup_query)
        ]
        return ReclassificationSummary(by_confidence=by_confidence, by_tgroup=by_tgroup)

    def apply_decision(self, decision: ReclassificationDecision) -> ReclassificationOutcome:
        """Apply a curator decision in a single transaction

        Args:
            decision: Validated decision

        Returns:
            ReclassificationOutcome

        Raises:
            NotFoundError: If the cluster does not exist
            ReclassificationError: If the cluster is not flagged for reclassification
            DatabaseError: If the transaction fails
        """
        decision.validate()

        def _apply(cursor) -> ReclassificationOutcome:
            cursor.execute(self.db.sql("SELECT id FROM {schema}.domain_clusters WHERE id = %s"),
                           (decision.cluster_id,))
            if cursor.fetchone() is None:
                raise NotFoundError("Cluster not found", {"cluster_id": decision.cluster_id})

            cursor.execute(self.db.sql("""
            SELECT id, requires_new_classification
            FROM {schema}.cluster_analysis
            WHERE cluster_id = %s
            FOR UPDATE
            """), (decision.cluster_id,))
            analysis = cursor.fetchone()
            if analysis is None or not analysis['requires_new_classification']:
                raise ReclassificationError("This cluster does not require reclassification",
                                            {"cluster_id": decision.cluster_id})

            updated_domain_id = None
            previous_t_group = None
            if decision.status is ReclassificationStatus.APPROVED and decision.new_t_group:
                cursor.execute(self.db.sql("""
                SELECT d.id, d.t_group
                FROM {schema}.domain_cluster_members dcm
                JOIN {schema}.domain d ON dcm.domain_id = d.id
                WHERE dcm.cluster_id = %s AND dcm.is_representative = true
                ORDER BY dcm.id
                LIMIT 1
                FOR UPDATE OF d
                """), (decision.cluster_id,))
                representative = cursor.fetchone()
                if representative is not None:
                    updated_domain_id = representative['id']
                    previous_t_group = representative['t_group']
                    cursor.execute(self.db.sql("""
                    UPDATE {schema}.domain
                    SET t_group = %s, updated_at = CURRENT_TIMESTAMP
                    WHERE id = %s
                    """), (decision.new_t_group, updated_domain_id))
                else:
                    self.logger.warning(f"Cluster {decision.cluster_id} has no representative; "
                                        f"t-group not updated")

            cursor.execute(self.db.sql("""
            UPDATE {schema}.cluster_analysis
            SET requires_new_classification = %s,
                analysis_notes = COALESCE(%s, analysis_notes)
            WHERE cluster_id = %s
            """), (decision.keeps_flag, decision.notes, decision.cluster_id))

            cursor.execute(self.db.sql("""
            INSERT INTO {schema}.reclassification_status
                (cluster_id, status, user_id, notes, previous_t_group, new_t_group)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING created_at
            """), (decision.cluster_id, decision.status.value, decision.user_id,
                   decision.notes, previous_t_group, decision.new_t_group))
            status_row = cursor.fetchone()
            timestamp = (status_row or {}).get('created_at') or datetime.now(timezone.utc)

            entry = ActivityEntry(
                entity_type='cluster',
                entity_id=str(decision.cluster_id),
                action=f"reclassification_{decision.status.value}",
                user_id=decision.user_id,
                details={'previous_t_group': previous_t_group,
                         'new_t_group': decision.new_t_group,
                         'notes': decision.notes}
            )
            cursor.execute(self.db.sql(INSERT_ACTIVITY), activity_params(entry))

            return ReclassificationOutcome(
                cluster_id=decision.cluster_id,
                status=decision.status,
                user_id=decision.user_id,
                timestamp=timestamp,
                updated_domain_id=updated_domain_id,
                previous_t_group=previous_t_group
            )

        outcome = self.db.execute_transaction(_apply)
        self.logger.info(f"Cluster {decision.cluster_id} reclassification {decision.status.value} "
                         f"by {decision.user_id}")
        return outcome
