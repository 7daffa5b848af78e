#!/usr/bin/env python3
"""
Domain search models
"""
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from ecod_curation.models.pagination import Page


@dataclass
class DomainHit:
    """A domain matching a search"""
    id: int
    domain_id: str
    unp_acc: Optional[str] = None
    range: Optional[str] = None
    t_group: Optional[str] = None
    t_group_name: Optional[str] = None
    species: Optional[str] = None
    tax_id: Optional[int] = None
    phylum: Optional[str] = None
    has_structure: bool = False
    primary_cluster_id: Optional[int] = None

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> 'DomainHit':
        return cls(
            id=row['id'],
            domain_id=row.get('domain_id', ''),
            unp_acc=row.get('unp_acc'),
            range=row.get('range'),
            t_group=row.get('t_group'),
            t_group_name=row.get('t_group_name'),
            species=row.get('species'),
            tax_id=row.get('tax_id'),
            phylum=row.get('phylum'),
            has_structure=bool(row.get('has_structure')),
            primary_cluster_id=row.get('primary_cluster_id')
        )

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


@dataclass
class SearchResults:
    """A page of domain hits with t-group and superkingdom facets"""
    hits: Page[DomainHit]
    tgroup_facets: List[Dict[str, Any]] = field(default_factory=list)
    taxonomy_facets: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = self.hits.to_dict(key='domains')
        data['facets'] = {
            't_groups': [dict(row) for row in self.tgroup_facets],
            'taxonomy': [dict(row) for row in self.taxonomy_facets],
        }
        return data
