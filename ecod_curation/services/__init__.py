"""
Services combining repositories into curation views
"""
from .cluster_service import ClusterService
from .reclassification_service import ReclassificationService
from .dashboard_service import DashboardService

__all__ = ['ClusterService', 'ReclassificationService', 'DashboardService']
