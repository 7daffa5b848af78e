# ecod_curation/services/reclassification_service.py
#!/usr/bin/env python3
"""
Reclassification service
Lists flagged clusters and applies curator decisions
"""
import logging
from typing import Any, Optional

from ecod_curation.core.context import ApplicationContext
from ecod_curation.db.repositories import ReclassificationFilters, ReclassificationRepository
from ecod_curation.models.pagination import Page, PageRequest
from ecod_curation.models.reclassification import (
    ReclassificationCandidate, ReclassificationDecision, ReclassificationOutcome,
    ReclassificationSummary
)


class ReclassificationService:
    """Service for the reclassification workflow"""

    def __init__(self, context: ApplicationContext):
        self.context = context
        self.logger = logging.getLogger("ecod_curation.services.reclassification")

        config = context.config.get_section('reclassification')
        self.repository = ReclassificationRepository(
            context.db,
            confidence_high=config.get('confidence_high', 0.7),
            confidence_medium=config.get('confidence_medium', 0.4)
        )
        self.pagination = context.config.get_section('pagination')

    def page_request(self, page: Optional[int] = None,
                     page_size: Optional[int] = None) -> PageRequest:
        return PageRequest.from_config(page, page_size, self.pagination)

    def list_candidates(self, filters: Optional[ReclassificationFilters] = None,
                        page: Optional[PageRequest] = None) -> Page[ReclassificationCandidate]:
        page = page or self.page_request()
        return self.repository.list_candidates(filters, page)

    def get_summary(self) -> ReclassificationSummary:
        return self.repository.get_summary()

    def decide(self, cluster_id: Any, status: Any, user_id: Any,
               notes: Optional[str] = None,
               new_t_group: Optional[str] = None) -> ReclassificationOutcome:
        """Record a curator decision on a flagged cluster

        Args:
            cluster_id: Cluster ID
            status: 'approved' or 'rejected'
            user_id: Curator
            notes: Replacement analysis notes
            new_t_group: T-group for the representative domain (approvals only)

        Returns:
            ReclassificationOutcome

        Raises:
            ValidationError: For malformed input
            NotFoundError: If the cluster does not exist
            ReclassificationError: If the cluster is not flagged
        """
        decision = ReclassificationDecision.create(cluster_id, status, user_id,
                                                   notes=notes, new_t_group=new_t_group)
        self.logger.info(f"Applying {decision.status.value} decision to cluster "
                         f"{decision.cluster_id}")
        return self.repository.apply_decision(decision)
