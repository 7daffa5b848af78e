#!/usr/bin/env python3
"""
Cluster models for the curation toolkit
Defines data models for cluster sets, clusters, members and analyses
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Dict, Any


def to_json_value(value: Any) -> Any:
    """Convert database values to JSON-friendly values"""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


@dataclass
class ClusterSet:
    """Cluster set model (one clustering run)"""
    id: int
    name: str
    method: Optional[str] = None
    sequence_identity: Optional[float] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    band_width: Optional[int] = None
    word_length: Optional[int] = None
    min_length: Optional[int] = None
    clusters_count: int = 0
    domains_count: int = 0
    taxonomic_coverage: Optional[float] = None
    flagged_clusters: int = 0
    max_cluster_number: Optional[int] = None
    avg_cluster_size: Optional[float] = None

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> 'ClusterSet':
        """Create instance from database row

        Args:
            row: Database row as dictionary

        Returns:
            ClusterSet instance
        """
        return cls(
            id=row['id'],
            name=row.get('name', ''),
            method=row.get('method'),
            sequence_identity=_optional_float(row.get('sequence_identity')),
            description=row.get('description'),
            created_at=row.get('created_at'),
            band_width=row.get('band_width'),
            word_length=row.get('word_length'),
            min_length=row.get('min_length'),
            clusters_count=int(row.get('clusters_count') or 0),
            domains_count=int(row.get('domains_count') or 0),
            taxonomic_coverage=_optional_float(row.get('taxonomic_coverage')),
            flagged_clusters=int(row.get('flagged_clusters') or 0),
            max_cluster_number=row.get('max_cluster_number'),
            avg_cluster_size=_optional_float(row.get('avg_cluster_size'))
        )

    def to_dict(self) -> Dict[str, Any]:
        return {key: to_json_value(value) for key, value in self.__dict__.items()}


@dataclass
class ClusterSetDetail:
    """Cluster set with its size and t-group distributions"""
    cluster_set: ClusterSet
    size_distribution: List[Dict[str, Any]] = field(default_factory=list)
    tgroup_distribution: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = self.cluster_set.to_dict()
        data['size_distribution'] = self.size_distribution
        data['tgroup_distribution'] = [
            {k: to_json_value(v) for k, v in row.items()} for row in self.tgroup_distribution
        ]
        return data


@dataclass
class ClusterSummary:
    """Row of the cluster list"""
    id: int
    cluster_number: int
    cluster_set_id: int
    cluster_set_name: Optional[str] = None
    sequence_identity: Optional[float] = None
    size: int = 0
    taxonomic_diversity: Optional[float] = None
    structure_consistency: Optional[float] = None
    requires_new_classification: bool = False

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> 'ClusterSummary':
        return cls(
            id=row['id'],
            cluster_number=row['cluster_number'],
            cluster_set_id=row['cluster_set_id'],
            cluster_set_name=row.get('cluster_set_name'),
            sequence_identity=_optional_float(row.get('sequence_identity')),
            size=int(row.get('size') or 0),
            taxonomic_diversity=_optional_float(row.get('taxonomic_diversity')),
            structure_consistency=_optional_float(row.get('structure_consistency')),
            requires_new_classification=bool(row.get('requires_new_classification'))
        )

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


@dataclass
class Domain:
    """Domain model as referenced by cluster members"""
    id: int
    domain_id: str
    unp_acc: Optional[str] = None
    range: Optional[str] = None
    t_group: Optional[str] = None
    t_group_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


@dataclass
class ClusterMember:
    """Membership of a domain in a cluster"""
    id: int
    cluster_id: int
    domain: Domain
    sequence_identity: Optional[float] = None
    alignment_coverage: Optional[float] = None
    is_representative: bool = False
    species: Optional[str] = None

    @property
    def domain_id(self) -> int:
        return self.domain.id

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> 'ClusterMember':
        """Create from a member row joined with its domain

        The joined query aliases the domain's string identifier as
        ``domain_identifier`` since ``domain_id`` is the member's foreign key.
        """
        domain = Domain(
            id=row['domain_id'],
            domain_id=row.get('domain_identifier', ''),
            unp_acc=row.get('unp_acc'),
            range=row.get('range'),
            t_group=row.get('t_group'),
            t_group_name=row.get('t_group_name')
        )
        return cls(
            id=row['id'],
            cluster_id=row['cluster_id'],
            domain=domain,
            sequence_identity=_optional_float(row.get('sequence_identity')),
            alignment_coverage=_optional_float(row.get('alignment_coverage')),
            is_representative=bool(row.get('is_representative')),
            species=row.get('species')
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'cluster_id': self.cluster_id,
            'domain_id': self.domain_id,
            'sequence_identity': self.sequence_identity,
            'alignment_coverage': self.alignment_coverage,
            'is_representative': self.is_representative,
            'domain': self.domain.to_dict(),
            'species': self.species,
        }

    def to_flat_dict(self) -> Dict[str, Any]:
        """Flattened representation for tabular export"""
        return {
            'member_id': self.id,
            'cluster_id': self.cluster_id,
            'domain_id': self.domain.domain_id,
            'unp_acc': self.domain.unp_acc,
            'range': self.domain.range,
            't_group': self.domain.t_group,
            't_group_name': self.domain.t_group_name,
            'sequence_identity': self.sequence_identity,
            'alignment_coverage': self.alignment_coverage,
            'is_representative': self.is_representative,
            'species': self.species,
        }


@dataclass
class ClusterAnalysis:
    """Stored analysis metrics for a cluster"""
    cluster_id: int
    id: Optional[int] = None
    taxonomic_diversity: Optional[float] = None
    structure_consistency: Optional[float] = None
    experimental_support_ratio: Optional[float] = None
    requires_new_classification: bool = False
    analysis_notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> 'ClusterAnalysis':
        return cls(
            id=row.get('id'),
            cluster_id=row['cluster_id'],
            taxonomic_diversity=_optional_float(row.get('taxonomic_diversity')),
            structure_consistency=_optional_float(row.get('structure_consistency')),
            experimental_support_ratio=_optional_float(row.get('experimental_support_ratio')),
            requires_new_classification=bool(row.get('requires_new_classification')),
            analysis_notes=row.get('analysis_notes'),
            created_at=row.get('created_at')
        )

    def to_dict(self) -> Dict[str, Any]:
        return {key: to_json_value(value) for key, value in self.__dict__.items()}


@dataclass
class Cluster:
    """Cluster model"""
    id: int
    cluster_number: int
    cluster_set_id: int
    created_at: Optional[datetime] = None

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> 'Cluster':
        return cls(
            id=row['id'],
            cluster_number=row['cluster_number'],
            cluster_set_id=row['cluster_set_id'],
            created_at=row.get('created_at')
        )

    def to_dict(self) -> Dict[str, Any]:
        return {key: to_json_value(value) for key, value in self.__dict__.items()}


@dataclass
class ClusterDetail:
    """Everything the cluster page shows about one cluster"""
    cluster: Cluster
    cluster_set: Optional[ClusterSet]
    members: List[ClusterMember] = field(default_factory=list)
    analysis: Optional[ClusterAnalysis] = None
    taxonomy_distribution: Dict[str, Any] = field(default_factory=dict)
    tgroup_distribution: List[Dict[str, Any]] = field(default_factory=list)
    taxonomy_stats: List[Dict[str, Any]] = field(default_factory=list)
    species_distribution: List[Dict[str, Any]] = field(default_factory=list)
    size: int = 0

    @property
    def representative(self) -> Optional[ClusterMember]:
        return next((m for m in self.members if m.is_representative), None)

    def to_dict(self) -> Dict[str, Any]:
        representative = self.representative

        def rows(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
            return [{k: to_json_value(v) for k, v in row.items()} for row in items]

        taxonomy = {k: to_json_value(v) for k, v in self.taxonomy_distribution.items()}
        taxonomy['taxonomic_diversity'] = self.analysis.taxonomic_diversity if self.analysis else None

        return {
            'cluster': self.cluster.to_dict(),
            'cluster_set': self.cluster_set.to_dict() if self.cluster_set else None,
            'members': [member.to_dict() for member in self.members],
            'representative': representative.to_dict() if representative else None,
            'analysis': self.analysis.to_dict() if self.analysis else None,
            'taxonomy_distribution': taxonomy,
            'tgroup_distribution': rows(self.tgroup_distribution),
            'taxonomy_stats': rows(self.taxonomy_stats),
            'species_distribution': rows(self.species_distribution),
            'size': self.size,
        }
