# ecod_curation/db/repositories/activity_repository.py
#!/usr/bin/env python3
"""
Activity log repository
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Dict, Any, Optional, Tuple

from psycopg2.extras import Json

from ecod_curation.db.manager import DBManager
from ecod_curation.models.activity import ActivityEntry
from ecod_curation.models.pagination import Page, PageRequest

INSERT_ACTIVITY = """
INSERT INTO {schema}.activity_log (entity_type, entity_id, action, user_id, details)
VALUES (%s, %s, %s, %s, %s)
RETURNING id, created_at
"""


@dataclass
class ActivityFilters:
    """Optional filters for the activity feed"""
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    action: Optional[str] = None
    user_id: Optional[str] = None
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None

    def where_clause(self) -> Tuple[str, List[Any]]:
        conditions = []
        params: List[Any] = []
        for column in ('entity_type', 'entity_id', 'action', 'user_id'):
            value = getattr(self, column)
            if value:
                conditions.append(f"{column} = %s")
                params.append(str(value))
        if self.from_date:
            conditions.append("created_at >= %s")
            params.append(self.from_date)
        if self.to_date:
            conditions.append("created_at <= %s")
            params.append(self.to_date)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        return where, params


def activity_params(entry: ActivityEntry) -> Tuple:
    """Parameters for INSERT_ACTIVITY"""
    return (entry.entity_type, str(entry.entity_id), entry.action, entry.user_id,
            Json(entry.details or {}))


class ActivityRepository:
    """Repository for curation activity"""

    def __init__(self, db_manager: DBManager):
        """Initialize repository

        Args:
            db_manager: Database manager instance
        """
        self.db = db_manager
        self.logger = logging.getLogger("ecod_curation.db.activity_repository")

    def list(self, filters: Optional[ActivityFilters] = None,
             page: Optional[PageRequest] = None) -> Page[ActivityEntry]:
        """List activity entries, newest first"""
        filters = filters or ActivityFilters()
        page = page or PageRequest()
        where, params = filters.where_clause()

        query = self.db.sql("""
        SELECT id, entity_type, entity_id, action, user_id, details, created_at
        FROM {schema}.activity_log
        """ + where + """
        ORDER BY created_at DESC, id DESC
        LIMIT %s OFFSET %s
        """)
        rows = self.db.execute_dict_query(query, tuple(params) + (page.limit, page.offset))

        count_query = self.db.sql("SELECT COUNT(*) FROM {schema}.activity_log " + where)
        total = int(self.db.execute_scalar(count_query, tuple(params), default=0))

        return Page(items=[ActivityEntry.from_db_row(row) for row in rows],
                    total=total, page=page.page, page_size=page.page_size)

    def summarize(self, filters: Optional[ActivityFilters] = None) -> Dict[str, Any]:
        """Counts per action and the five most recently active users"""
        where, params = (filters or ActivityFilters()).where_clause()

        actions_query = self.db.sql("""
        SELECT action, COUNT(*) as count
        FROM {schema}.activity_log
        """ + where + """
        GROUP BY action
        ORDER BY count DESC
        """)
        users_query = self.db.sql("""
        SELECT user_id, COUNT(*) as activity_count, MAX(created_at) as last_active
        FROM {schema}.activity_log
        """ + where + """
        GROUP BY user_id
        ORDER BY last_active DESC
        LIMIT 5
        """)
        return {
            'actions': self.db.execute_dict_query(actions_query, tuple(params)),
            'recent_users': self.db.execute_dict_query(users_query, tuple(params)),
        }

    def record(self, entry: ActivityEntry) -> ActivityEntry:
        """Insert an activity entry

        Args:
            entry: Entry to record

        Returns:
            The entry with its id and timestamp filled in
        """
        rows = self.db.execute_dict_query(self.db.sql(INSERT_ACTIVITY), activity_params(entry))
        if rows:
            entry.id = rows[0]['id']
            entry.created_at = rows[0]['created_at']
        self.logger.debug(f"Recorded {entry.action} on {entry.entity_type} {entry.entity_id}")
        return entry
