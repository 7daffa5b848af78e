#!/usr/bin/env python3
"""
Reclassification workflow models
"""
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any

from ecod_curation.exceptions import ValidationError
from ecod_curation.models.cluster import to_json_value

# ECOD t-group identifiers are dotted triples such as 2.30.30
TGROUP_ID_PATTERN = re.compile(r"^\d+\.\d+\.\d+$")


class ReclassificationStatus(Enum):
    """Curation state of a reclassification candidate"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @classmethod
    def decisions(cls) -> List['ReclassificationStatus']:
        """Statuses a curator may set"""
        return [cls.APPROVED, cls.REJECTED]


class ConfidenceLevel(Enum):
    """Confidence bucket derived from structure consistency"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNKNOWN = "unknown"


@dataclass
class ReclassificationCandidate:
    """A cluster flagged as possibly needing a new classification"""
    cluster_id: int
    cluster_number: int
    cluster_set_name: str
    current_t_group: Optional[str]
    representative_domain: Optional[str]
    proposed_t_group: Optional[str] = None
    current_t_group_name: Optional[str] = None
    proposed_t_group_name: Optional[str] = None
    confidence: ConfidenceLevel = ConfidenceLevel.UNKNOWN
    status: ReclassificationStatus = ReclassificationStatus.PENDING
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    taxonomic_diversity: Optional[float] = None
    structure_consistency: Optional[float] = None
    analysis_notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {key: to_json_value(value) for key, value in self.__dict__.items()}
        data['confidence'] = self.confidence.value
        data['status'] = self.status.value
        data['proposed_t_group'] = self.proposed_t_group or 'unknown'
        return data


@dataclass
class ReclassificationSummary:
    """Counts of flagged clusters by confidence and by current t-group"""
    by_confidence: Dict[str, int] = field(default_factory=dict)
    by_tgroup: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'by_confidence': dict(self.by_confidence),
            'by_tgroup': [dict(row) for row in self.by_tgroup],
        }


@dataclass
class ReclassificationDecision:
    """A curator's decision on a reclassification candidate"""
    cluster_id: int
    status: ReclassificationStatus
    user_id: str
    notes: Optional[str] = None
    new_t_group: Optional[str] = None

    @classmethod
    def create(cls, cluster_id: Any, status: Any, user_id: Any,
               notes: Optional[str] = None,
               new_t_group: Optional[str] = None) -> 'ReclassificationDecision':
        """Build and validate a decision from loosely typed input

        Raises:
            ValidationError: If a required field is missing or the status is
                not a decision status
        """
        missing = [name for name, value in (('cluster_id', cluster_id),
                                            ('status', status),
                                            ('user_id', user_id)) if not value]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        try:
            cluster_id = int(cluster_id)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid cluster id: {cluster_id!r}") from e

        if not isinstance(status, ReclassificationStatus):
            try:
                status = ReclassificationStatus(str(status).lower())
            except ValueError as e:
                raise ValidationError(
                    f"Invalid status value {status!r}. Must be either \"approved\" or \"rejected\""
                ) from e

        decision = cls(cluster_id=cluster_id, status=status, user_id=str(user_id),
                       notes=notes or None, new_t_group=new_t_group or None)
        decision.validate()
        return decision

    def validate(self) -> bool:
        """Validate decision

        Returns:
            True if valid

        Raises:
            ValidationError: If validation fails
        """
        if self.status not in ReclassificationStatus.decisions():
            raise ValidationError(
                f"Invalid status value {self.status.value!r}. Must be either \"approved\" or \"rejected\""
            )
        if self.new_t_group and self.status is not ReclassificationStatus.APPROVED:
            raise ValidationError("A new t-group can only be given with an approval")
        if self.new_t_group and not TGROUP_ID_PATTERN.match(self.new_t_group):
            raise ValidationError(f"Invalid t-group identifier: {self.new_t_group!r}")
        return True

    @property
    def keeps_flag(self) -> bool:
        """Whether the cluster stays flagged for new classification"""
        return self.status is not ReclassificationStatus.APPROVED


@dataclass
class ReclassificationOutcome:
    """Result of applying a decision"""
    cluster_id: int
    status: ReclassificationStatus
    user_id: str
    timestamp: datetime
    updated_domain_id: Optional[int] = None
    previous_t_group: Optional[str] = None

    @property
    def message(self) -> str:
        return f"Reclassification {self.status.value}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'message': self.message,
            'cluster_id': self.cluster_id,
            'status': self.status.value,
            'user_id': self.user_id,
            'timestamp': self.timestamp.isoformat(),
            'updated_domain_id': self.updated_domain_id,
            'previous_t_group': self.previous_t_group,
        }
