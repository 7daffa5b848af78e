#!/usr/bin/env python3
"""
Activity log model
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any

from ecod_curation.models.cluster import to_json_value


@dataclass
class ActivityEntry:
    """A curation action recorded in the activity log"""
    entity_type: str
    entity_id: str
    action: str
    user_id: str
    details: Dict[str, Any] = field(default_factory=dict)
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> 'ActivityEntry':
        return cls(
            id=row.get('id'),
            entity_type=row.get('entity_type', ''),
            entity_id=str(row.get('entity_id', '')),
            action=row.get('action', ''),
            user_id=row.get('user_id', ''),
            details=row.get('details') or {},
            created_at=row.get('created_at')
        )

    def to_dict(self) -> Dict[str, Any]:
        return {key: to_json_value(value) for key, value in self.__dict__.items()}
