#!/usr/bin/env python3
"""
ECOD domain cluster curation toolkit

Browse sequence-clustered ECOD domains, score clusters for classification
validity and record reclassification decisions.
"""

__version__ = '0.1.0'
__author__ = 'ECOD Team'
__license__ = 'MIT'

from .core.context import ApplicationContext
from .exceptions import ECODError
from .error_handlers import handle_exceptions
from .models.validation import ClassificationStatus, ClusterValidationInput
from .validation.scorer import ValidationScorer, assess_cluster

__all__ = ['ApplicationContext', 'ECODError', 'handle_exceptions',
           'ClassificationStatus', 'ClusterValidationInput', 'ValidationScorer',
           'assess_cluster']
