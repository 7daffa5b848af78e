#!/usr/bin/env python3
"""
Cluster validation scorer

Maps the four cluster-level metrics (structure consistency, experimental
support, taxonomic diversity, t-group homogeneity) to a classification
status and an explanatory note.

Every metric is bucketed into three tiers. The composite status only looks
at structure consistency and t-group homogeneity:

- Valid when every known composite signal is in its top tier
- Invalid when every known composite signal is in its bottom tier
- Needs Review otherwise

Unknown metrics are left out of the decision. With no known composite
signal the status is Needs Review. The composite rule is a curation
placeholder and is expected to be tuned through the ``validation.thresholds``
configuration section.
"""
import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Any, List, Optional, Tuple

from ecod_curation.exceptions import ConfigurationError
from ecod_curation.models.metrics import Known, Metric
from ecod_curation.models.validation import (
    ClassificationAssessment, ClassificationStatus, ClusterValidationInput
)

logger = logging.getLogger("ecod_curation.validation.scorer")

COMPOSITE_METRICS = ('structure_consistency', 'tgroup_homogeneity')

UNKNOWN_TIER = "unknown"


@dataclass(frozen=True)
class TierScale:
    """Three-tier bucketing of a metric in [0, 1]"""
    label: str
    upper: float
    lower: float
    names: Tuple[str, str, str]

    def __post_init__(self):
        if not 0.0 <= self.lower <= self.upper <= 1.0:
            raise ConfigurationError(
                f"Invalid tier thresholds for {self.label}: lower={self.lower}, upper={self.upper}"
            )

    def tier(self, metric: Metric) -> str:
        """Tier name for a metric ('unknown' when missing)"""
        if not isinstance(metric, Known):
            return UNKNOWN_TIER
        if metric.value >= self.upper:
            return self.names[0]
        if metric.value >= self.lower:
            return self.names[1]
        return self.names[2]

    def is_top(self, metric: Known) -> bool:
        return metric.value >= self.upper

    def is_bottom(self, metric: Known) -> bool:
        return metric.value < self.lower


def _default_scales() -> Dict[str, TierScale]:
    return {
        'structure_consistency': TierScale("structure consistency", 0.8, 0.6,
                                           ("excellent", "good", "moderate")),
        'experimental_support': TierScale("experimental support", 0.7, 0.4,
                                          ("strong", "moderate", "limited")),
        'taxonomic_diversity': TierScale("taxonomic diversity", 0.7, 0.4,
                                         ("high", "medium", "low")),
        'tgroup_homogeneity': TierScale("t-group homogeneity", 0.8, 0.6,
                                        ("high", "medium", "low")),
    }


@dataclass(frozen=True)
class ValidationThresholds:
    """Tier table used by the scorer"""
    scales: Dict[str, TierScale] = field(default_factory=_default_scales)

    @classmethod
    def from_config(cls, overrides: Optional[Dict[str, Any]]) -> 'ValidationThresholds':
        """Apply ``validation.thresholds`` overrides to the default table

        Overrides look like ``{'structure_consistency': {'upper': 0.85, 'lower': 0.6}}``.

        Raises:
            ConfigurationError: For unknown metrics or inconsistent thresholds
        """
        scales = _default_scales()
        for name, values in (overrides or {}).items():
            if name not in scales:
                raise ConfigurationError(f"Unknown validation metric in thresholds: {name}")
            if not isinstance(values, dict):
                raise ConfigurationError(f"Thresholds for {name} must be a mapping")
            try:
                scales[name] = replace(
                    scales[name],
                    upper=float(values.get('upper', scales[name].upper)),
                    lower=float(values.get('lower', scales[name].lower))
                )
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid thresholds for {name}: {values}") from e
        return cls(scales=scales)

    def scale(self, name: str) -> TierScale:
        return self.scales[name]


class ValidationScorer:
    """Derives a ClassificationAssessment from cluster metrics

    Stateless apart from its threshold table, so one instance can be shared
    freely across clusters and threads.
    """

    def __init__(self, thresholds: Optional[ValidationThresholds] = None):
        self.thresholds = thresholds or ValidationThresholds()

    @classmethod
    def from_config(cls, validation_config: Optional[Dict[str, Any]]) -> 'ValidationScorer':
        """Create from the ``validation`` configuration section"""
        overrides = (validation_config or {}).get('thresholds')
        return cls(ValidationThresholds.from_config(overrides))

    def tiers(self, metrics: ClusterValidationInput) -> Dict[str, str]:
        """Tier name for each metric"""
        return {name: self.thresholds.scale(name).tier(metric)
                for name, metric in metrics.metrics().items()}

    def status(self, metrics: ClusterValidationInput) -> ClassificationStatus:
        """Composite status for a set of metrics"""
        known = self._known_composite(metrics)
        if not known:
            return ClassificationStatus.NEEDS_REVIEW

        if all(self.thresholds.scale(name).is_top(metric) for name, metric in known):
            return ClassificationStatus.VALID
        if all(self.thresholds.scale(name).is_bottom(metric) for name, metric in known):
            return ClassificationStatus.INVALID
        return ClassificationStatus.NEEDS_REVIEW

    def assess(self, metrics: ClusterValidationInput) -> ClassificationAssessment:
        """Assess a cluster

        Args:
            metrics: Cluster metrics (unknown values allowed)

        Returns:
            Status, notes and per-metric tiers
        """
        tiers = self.tiers(metrics)

        if metrics.known_count == 0:
            return ClassificationAssessment(
                status=ClassificationStatus.NEEDS_REVIEW,
                notes=("Insufficient data: no structural or taxonomic metrics are "
                       "available for this cluster, so it requires manual review."),
                tiers=tiers
            )

        status = self.status(metrics)
        notes = self._notes(status, metrics, tiers)
        logger.debug(f"Assessed cluster metrics {metrics.to_dict()} as {status.value}")
        return ClassificationAssessment(status=status, notes=notes, tiers=tiers)

    def _known_composite(self, metrics: ClusterValidationInput) -> List[Tuple[str, Known]]:
        return [(name, getattr(metrics, name)) for name in COMPOSITE_METRICS
                if isinstance(getattr(metrics, name), Known)]

    def _notes(self, status: ClassificationStatus, metrics: ClusterValidationInput,
               tiers: Dict[str, str]) -> str:
        sc = metrics.structure_consistency
        th = metrics.tgroup_homogeneity
        td = metrics.taxonomic_diversity
        sc_scale = self.thresholds.scale('structure_consistency')
        th_scale = self.thresholds.scale('tgroup_homogeneity')

        parts = []
        if status is ClassificationStatus.VALID:
            parts.append("This cluster appears to represent a valid evolutionary grouping "
                         "based on both sequence and structural analysis.")
            if isinstance(th, Known):
                parts.append(f"The domains show consistent fold assignment with "
                             f"{round(th.value * 100)}% belonging to the same T-group.")
            if tiers['taxonomic_diversity'] == self.thresholds.scale('taxonomic_diversity').names[0]:
                parts.append("The high taxonomic diversity suggests this domain is evolutionarily "
                             "conserved across multiple phyla, which further supports its classification.")
        elif status is ClassificationStatus.INVALID:
            parts.append("This cluster shows inconsistencies that may indicate problems "
                         "with the classification.")
            if isinstance(sc, Known) and sc_scale.is_bottom(sc):
                parts.append("The structures within this cluster show significant variability, "
                             "suggesting potential misclassification.")
            if isinstance(th, Known) and th_scale.is_bottom(th):
                parts.append("The cluster contains domains from multiple T-groups, "
                             "which may indicate incorrect grouping.")
        else:
            parts.append("This cluster requires manual review to determine the appropriate "
                         "classification.")
            if not self._known_composite(metrics):
                parts.append("Neither structure consistency nor t-group homogeneity is "
                             "available, so no automated decision can be made.")
            else:
                parts.append("The structural and taxonomic signals are mixed or intermediate.")

        missing = [self.thresholds.scale(name).label for name in COMPOSITE_METRICS
                   if not getattr(metrics, name).is_known]
        if missing and self._known_composite(metrics):
            parts.append(f"Not measured: {', '.join(missing)}; the status is based on the "
                         f"remaining signal only.")

        if isinstance(td, Known) and status is not ClassificationStatus.VALID:
            parts.append(f"Taxonomic diversity is {tiers['taxonomic_diversity']}.")

        parts.append(self._metric_summary(metrics, tiers))
        return " ".join(parts)

    def _metric_summary(self, metrics: ClusterValidationInput, tiers: Dict[str, str]) -> str:
        items = []
        for name, metric in metrics.metrics().items():
            label = self.thresholds.scale(name).label
            if isinstance(metric, Known):
                items.append(f"{label} {tiers[name]} ({metric.value:.2f})")
            else:
                items.append(f"{label} not available")
        summary = "; ".join(items)
        return f"Metrics: {summary[0].upper()}{summary[1:]}."


_DEFAULT_SCORER = ValidationScorer()


def assess_cluster(metrics: ClusterValidationInput,
                   thresholds: Optional[ValidationThresholds] = None) -> ClassificationAssessment:
    """Assess a cluster with the default (or given) thresholds"""
    scorer = _DEFAULT_SCORER if thresholds is None else ValidationScorer(thresholds)
    return scorer.assess(metrics)
