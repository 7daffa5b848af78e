"""
Cluster validation scoring
"""
from .scorer import (
    ValidationScorer, ValidationThresholds, TierScale, assess_cluster
)

__all__ = ['ValidationScorer', 'ValidationThresholds', 'TierScale', 'assess_cluster']
