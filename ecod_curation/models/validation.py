#!/usr/bin/env python3
"""
Cluster validation models
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional

from ecod_curation.models.metrics import (
    Metric, UNKNOWN, metric_from_value, metric_to_value
)


class ClassificationStatus(Enum):
    """Outcome of a cluster classification assessment"""
    VALID = "Valid"
    INVALID = "Invalid"
    NEEDS_REVIEW = "Needs Review"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ClusterValidationInput:
    """Cluster-level structural and taxonomic metrics"""
    structure_consistency: Metric = UNKNOWN
    experimental_support: Metric = UNKNOWN
    taxonomic_diversity: Metric = UNKNOWN
    tgroup_homogeneity: Metric = UNKNOWN

    METRIC_NAMES = ('structure_consistency', 'experimental_support',
                    'taxonomic_diversity', 'tgroup_homogeneity')

    @classmethod
    def from_values(cls,
                    structure_consistency: Optional[float] = None,
                    experimental_support: Optional[float] = None,
                    taxonomic_diversity: Optional[float] = None,
                    tgroup_homogeneity: Optional[float] = None,
                    out_of_range: str = "reject") -> 'ClusterValidationInput':
        """Build from raw nullable numbers

        Raises:
            ValidationError: If a value is malformed (see metric_from_value)
        """
        raw = {
            'structure_consistency': structure_consistency,
            'experimental_support': experimental_support,
            'taxonomic_diversity': taxonomic_diversity,
            'tgroup_homogeneity': tgroup_homogeneity,
        }
        return cls(**{name: metric_from_value(value, name, out_of_range)
                      for name, value in raw.items()})

    @classmethod
    def from_db_row(cls, row: Dict[str, Any], tgroup_homogeneity: Optional[float] = None,
                    out_of_range: str = "reject") -> 'ClusterValidationInput':
        """Create from a cluster_analysis row plus computed t-group homogeneity"""
        return cls.from_values(
            structure_consistency=row.get('structure_consistency'),
            experimental_support=row.get('experimental_support_ratio'),
            taxonomic_diversity=row.get('taxonomic_diversity'),
            tgroup_homogeneity=tgroup_homogeneity,
            out_of_range=out_of_range
        )

    def metrics(self) -> Dict[str, Metric]:
        return {name: getattr(self, name) for name in self.METRIC_NAMES}

    @property
    def known_count(self) -> int:
        return sum(1 for metric in self.metrics().values() if metric.is_known)

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {name: metric_to_value(metric) for name, metric in self.metrics().items()}


@dataclass(frozen=True)
class ClassificationAssessment:
    """Status plus human-readable rationale for a cluster"""
    status: ClassificationStatus
    notes: str
    tiers: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'notes': self.notes,
            'tiers': dict(self.tiers),
        }


@dataclass
class ValidationReport:
    """Validation data for one cluster as shown on the validation tab"""
    cluster_id: int
    metrics: ClusterValidationInput
    assessment: ClassificationAssessment
    requires_new_classification: bool = False
    analysis_notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        values = self.metrics.to_dict()
        return {
            'cluster_id': self.cluster_id,
            'structural_validation': {
                'structure_consistency': values['structure_consistency'],
                'experimental_support': values['experimental_support'],
            },
            'taxonomic_validation': {
                'taxonomic_diversity': values['taxonomic_diversity'],
                'tgroup_homogeneity': values['tgroup_homogeneity'],
            },
            'classification_assessment': self.assessment.to_dict(),
            'requires_new_classification': self.requires_new_classification,
        }
