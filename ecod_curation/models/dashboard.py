#!/usr/bin/env python3
"""
Dashboard models
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any


class PriorityCategory(Enum):
    """Curation queue a cluster falls into, in priority order"""
    RECLASSIFICATION = "reclassification"
    FLAGGED = "flagged"
    UNCLASSIFIED = "unclassified"
    DIVERSE = "diverse"

    @property
    def rank(self) -> int:
        return list(PriorityCategory).index(self) + 1


@dataclass
class DashboardSummary:
    """Counts for the summary cards"""
    total_clusters: int
    total_domains: int
    needs_review: int

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


@dataclass
class PriorityCluster:
    """A cluster in the curation priority list"""
    id: int
    cluster_number: int
    cluster_set_id: int
    size: int
    category: PriorityCategory
    cluster_set_name: Optional[str] = None
    representative_domain: Optional[str] = None
    taxonomic_diversity: Optional[float] = None
    structure_consistency: Optional[float] = None
    t_group: Optional[str] = None
    t_group_name: Optional[str] = None
    requires_new_classification: Optional[bool] = None

    @property
    def name(self) -> str:
        return f"Cluster-{self.id}"

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.__dict__)
        data['category'] = self.category.value
        data['name'] = self.name
        data['representative_domain'] = self.representative_domain or 'Unknown'
        return data


@dataclass
class PriorityClusters:
    """Priority list plus per-category totals"""
    clusters: List[PriorityCluster] = field(default_factory=list)
    totals: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'clusters': [cluster.to_dict() for cluster in self.clusters],
            'totals': dict(self.totals),
        }


class CurationStatus(Enum):
    """Coarse curation state of a cluster, from its stored analysis"""
    VALIDATED = "Validated"
    ACCEPTABLE = "Acceptable"
    UNCERTAIN = "Uncertain"
    NEEDS_REVIEW = "Needs Review"
    UNANALYSED = "Unanalysed"


@dataclass
class ClassificationOverview:
    """Status distribution, t-group consistency and per-set comparison"""
    status_distribution: List[Dict[str, Any]] = field(default_factory=list)
    tgroup_consistency: List[Dict[str, Any]] = field(default_factory=list)
    cluster_set_comparison: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def total_clusters(self) -> int:
        return sum(row['count'] for row in self.status_distribution)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status_distribution': [dict(row) for row in self.status_distribution],
            'tgroup_consistency': [dict(row) for row in self.tgroup_consistency],
            'cluster_set_comparison': [dict(row) for row in self.cluster_set_comparison],
            'total_clusters': self.total_clusters,
        }


@dataclass
class RecentCluster:
    """A recently created cluster"""
    id: int
    cluster_number: int
    size: int
    created_at: Optional[datetime] = None
    cluster_set_name: Optional[str] = None
    taxonomic_diversity: Optional[float] = None
    representative_domain: Optional[str] = None

    @property
    def name(self) -> str:
        return f"Cluster-{self.cluster_number}"

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> 'RecentCluster':
        diversity = row.get('taxonomic_diversity')
        return cls(
            id=row['id'],
            cluster_number=row['cluster_number'],
            size=int(row.get('size') or 0),
            created_at=row.get('created_at'),
            cluster_set_name=row.get('cluster_set_name'),
            taxonomic_diversity=None if diversity is None else float(diversity),
            representative_domain=row.get('representative_domain')
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.__dict__)
        data['name'] = self.name
        data['created_at'] = self.created_at.isoformat() if self.created_at else None
        return data


@dataclass
class DomainQualityStats:
    """Distributions of domain prediction quality across the whole domain table"""
    overall: Dict[str, Any] = field(default_factory=dict)
    judge_distribution: List[Dict[str, Any]] = field(default_factory=list)
    confidence_distribution: List[Dict[str, Any]] = field(default_factory=list)
    dpam_histogram: List[Dict[str, Any]] = field(default_factory=list)
    dpam_by_judge: List[Dict[str, Any]] = field(default_factory=list)
    judge_summary: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'overall': dict(self.overall),
            'judge_distribution': self.judge_distribution,
            'confidence_distribution': self.confidence_distribution,
            'dpam_histogram': self.dpam_histogram,
            'dpam_by_judge': self.dpam_by_judge,
            'judge_summary': self.judge_summary,
        }
