#!/usr/bin/env python3
"""
Protein models
A protein's record, its current structure and the domains parsed from it
"""
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from ecod_curation.models.cluster import to_json_value
from ecod_curation.models.search import DomainHit


@dataclass
class ProteinRecord:
    """UniProt entry with its source id and taxonomy"""
    unp_acc: str
    source_id: Optional[str] = None
    sequence_length: Optional[int] = None
    species: Optional[str] = None
    tax_id: Optional[int] = None

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> 'ProteinRecord':
        """Create instance from database row

        Args:
            row: Database row as dictionary

        Returns:
            ProteinRecord instance
        """
        return cls(
            unp_acc=row['unp_acc'],
            source_id=row.get('source_id'),
            sequence_length=row.get('sequence_length'),
            species=row.get('species'),
            tax_id=row.get('tax_id')
        )

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


@dataclass
class ProteinStructure:
    """Preferred structure model of a protein"""
    id: int
    source: Optional[str] = None
    file_type: Optional[str] = None
    resolution: Optional[float] = None
    confidence_score: Optional[float] = None

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> 'ProteinStructure':
        return cls(
            id=row['id'],
            source=row.get('source'),
            file_type=row.get('file_type'),
            resolution=to_json_value(row.get('resolution')),
            confidence_score=to_json_value(row.get('confidence_score'))
        )

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


@dataclass
class ProteinDomain(DomainHit):
    """Domain of a protein with its prediction scores"""
    superkingdom: Optional[str] = None
    dpam_prob: Optional[float] = None
    hh_prob: Optional[float] = None
    judge: Optional[str] = None
    hcount: Optional[int] = None
    scount: Optional[int] = None

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> 'ProteinDomain':
        hit = DomainHit.from_db_row(row)
        return cls(
            superkingdom=row.get('superkingdom'),
            dpam_prob=to_json_value(row.get('dpam_prob')),
            hh_prob=to_json_value(row.get('hh_prob')),
            judge=row.get('judge'),
            hcount=row.get('hcount'),
            scount=row.get('scount'),
            **hit.__dict__
        )


@dataclass
class ProteinDomains:
    """Everything the protein page shows"""
    identifier: str
    protein: Optional[ProteinRecord] = None
    structure: Optional[ProteinStructure] = None
    domains: List[ProteinDomain] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'identifier': self.identifier,
            'protein': self.protein.to_dict() if self.protein else None,
            'structure': self.structure.to_dict() if self.structure else None,
            'domains': [domain.to_dict() for domain in self.domains],
            'count': len(self.domains),
        }
