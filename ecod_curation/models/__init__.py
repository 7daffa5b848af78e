"""
Data models for the ECOD curation toolkit
"""
from .metrics import Known, Unknown, UNKNOWN, Metric, metric_from_value
from .validation import (
    ClassificationStatus, ClusterValidationInput, ClassificationAssessment, ValidationReport
)
from .pagination import PageRequest, Page

__all__ = [
    'Known', 'Unknown', 'UNKNOWN', 'Metric', 'metric_from_value',
    'ClassificationStatus', 'ClusterValidationInput', 'ClassificationAssessment',
    'ValidationReport', 'PageRequest', 'Page',
]
