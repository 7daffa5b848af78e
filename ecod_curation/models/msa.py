#!/usr/bin/env python3
"""
Multiple sequence alignment models
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict, Any

from ecod_curation.models.cluster import to_json_value


@dataclass
class MSARecord:
    """Stored alignment for a cluster (domain_msa row)"""
    id: int
    cluster_id: int
    alignment_data: str
    batch_id: Optional[int] = None
    alignment_length: Optional[int] = None
    num_sequences: Optional[int] = None
    avg_identity: Optional[float] = None
    avg_coverage: Optional[float] = None
    conserved_positions: Optional[str] = None
    gap_positions: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> 'MSARecord':
        return cls(
            id=row['id'],
            cluster_id=row['cluster_id'],
            alignment_data=row.get('alignment_data') or '',
            batch_id=row.get('batch_id'),
            alignment_length=row.get('alignment_length'),
            num_sequences=row.get('num_sequences'),
            avg_identity=None if row.get('avg_identity') is None else float(row['avg_identity']),
            avg_coverage=None if row.get('avg_coverage') is None else float(row['avg_coverage']),
            conserved_positions=row.get('conserved_positions'),
            gap_positions=row.get('gap_positions'),
            created_at=row.get('created_at')
        )

    def to_dict(self) -> Dict[str, Any]:
        return {key: to_json_value(value) for key, value in self.__dict__.items()}


@dataclass
class AlignedSequence:
    """One row of an alignment"""
    header: str
    sequence: str

    @property
    def identifier(self) -> str:
        return self.header.split()[0] if self.header else ''


@dataclass
class AlignmentSummary:
    """Statistics recomputed from an alignment"""
    alignment_length: int
    num_sequences: int
    avg_identity: Optional[float]
    conserved_positions: List[int] = field(default_factory=list)
    gap_positions: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'alignment_length': self.alignment_length,
            'num_sequences': self.num_sequences,
            'avg_identity': self.avg_identity,
            'conserved_positions': list(self.conserved_positions),
            'gap_positions': list(self.gap_positions),
        }
