#!/usr/bin/env python3
"""
Reclassification heuristics

Recover a proposed t-group from free-text analysis notes and bucket
candidates by confidence.
"""
import re
from typing import Optional, Tuple, List, Any

from ecod_curation.exceptions import ValidationError
from ecod_curation.models.reclassification import ConfidenceLevel

# "... suggest(s/ed) ... 2.30.30 ..." -> 2.30.30
_PROPOSED_TGROUP = re.compile(r'suggest[^0-9]*([0-9]+\.[0-9]+\.[0-9]+)')

DEFAULT_CONFIDENCE_HIGH = 0.7
DEFAULT_CONFIDENCE_MEDIUM = 0.4


def extract_proposed_tgroup(notes: Optional[str]) -> Optional[str]:
    """Proposed t-group mentioned in analysis notes

    Args:
        notes: Free-text analysis notes

    Returns:
        The first dotted t-group identifier following the word "suggest",
        or None
    """
    if not notes:
        return None
    match = _PROPOSED_TGROUP.search(notes)
    return match.group(1) if match else None


def confidence_bucket(structure_consistency: Optional[float],
                      high: float = DEFAULT_CONFIDENCE_HIGH,
                      medium: float = DEFAULT_CONFIDENCE_MEDIUM) -> ConfidenceLevel:
    """Confidence level of a reclassification candidate

    Args:
        structure_consistency: Cluster structure consistency (None if not measured)
        high: Values strictly above this are high confidence
        medium: Values strictly above this are medium confidence

    Returns:
        ConfidenceLevel
    """
    if structure_consistency is None:
        return ConfidenceLevel.UNKNOWN
    value = float(structure_consistency)
    if value > high:
        return ConfidenceLevel.HIGH
    if value > medium:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def confidence_condition(level: Any, column: str = "ca.structure_consistency",
                         high: float = DEFAULT_CONFIDENCE_HIGH,
                         medium: float = DEFAULT_CONFIDENCE_MEDIUM) -> Tuple[str, List[float]]:
    """SQL condition selecting rows in a confidence bucket

    Uses the same boundaries as confidence_bucket so listing filters and
    displayed buckets agree.

    Raises:
        ValidationError: For an unknown confidence level
    """
    try:
        level = level if isinstance(level, ConfidenceLevel) else ConfidenceLevel(str(level).lower())
    except ValueError as e:
        raise ValidationError(f"Invalid confidence level: {level!r}",
                              {"allowed": [c.value for c in ConfidenceLevel]}) from e

    if level is ConfidenceLevel.HIGH:
        return f"{column} > %s", [high]
    if level is ConfidenceLevel.MEDIUM:
        return f"{column} > %s AND {column} <= %s", [medium, high]
    if level is ConfidenceLevel.LOW:
        return f"{column} <= %s", [medium]
    return f"{column} IS NULL", []
