"""
Repositories issuing parameterized queries against the clustering schema
"""
from .cluster_set_repository import ClusterSetRepository
from .cluster_repository import ClusterRepository, ClusterFilters
from .analysis_repository import AnalysisRepository
from .reclassification_repository import ReclassificationRepository, ReclassificationFilters
from .activity_repository import ActivityRepository, ActivityFilters
from .dashboard_repository import DashboardRepository
from .search_repository import SearchRepository, DomainSearch
from .protein_repository import ProteinRepository

__all__ = [
    'ClusterSetRepository', 'ClusterRepository', 'ClusterFilters', 'AnalysisRepository',
    'ReclassificationRepository', 'ReclassificationFilters', 'ActivityRepository',
    'ActivityFilters', 'DashboardRepository', 'SearchRepository', 'DomainSearch',
    'ProteinRepository',
]
