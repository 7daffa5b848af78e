# ecod_curation/db/repositories/search_repository.py
#!/usr/bin/env python3
"""
Domain search repository
"""
import logging
from dataclasses import dataclass
from typing import List, Dict, Any, Optional, Tuple

from ecod_curation.db.manager import DBManager
from ecod_curation.models.pagination import Page, PageRequest
from ecod_curation.models.search import DomainHit, SearchResults

_DOMAIN_JOINS = """
        FROM {schema}.domain d
        LEFT JOIN {schema}.protein_taxonomy pt ON d.unp_acc = pt.unp_acc
        LEFT JOIN {schema}.taxonomy t ON pt.tax_id = t.tax_id
        LEFT JOIN {schema}.tgroup_names tn ON tn.tgroup_id = d.t_group
"""


@dataclass
class DomainSearch:
    """Free-text domain search with optional exact filters"""
    text: str = ''
    t_group: Optional[str] = None
    tax_id: Optional[int] = None

    def where_clause(self) -> Tuple[str, List[Any]]:
        conditions = []
        params: List[Any] = []

        text = (self.text or '').strip()
        if text:
            pattern = f"%{text}%"
            conditions.append("""(
                d.domain_id ILIKE %s OR
                d.unp_acc ILIKE %s OR
                d.t_group ILIKE %s OR
                tn.name ILIKE %s OR
                t.scientific_name ILIKE %s
            )""")
            params.extend([pattern] * 5)

        if self.t_group and self.t_group.strip():
            conditions.append("d.t_group = %s")
            params.append(self.t_group.strip())

        if self.tax_id is not None:
            conditions.append("pt.tax_id = %s")
            params.append(self.tax_id)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        return where, params


class SearchRepository:
    """Repository for domain search"""

    def __init__(self, db_manager: DBManager):
        """Initialize repository

        Args:
            db_manager: Database manager instance
        """
        self.db = db_manager
        self.logger = logging.getLogger("ecod_curation.db.search_repository")

    def search(self, search: DomainSearch, page: Optional[PageRequest] = None) -> SearchResults:
        """Search domains by id, accession, t-group, t-group name or species

        Args:
            search: Search text and filters
            page: Page to return

        Returns:
            SearchResults with the page of hits and facets over all matches
        """
        page = page or PageRequest()
        where, params = search.where_clause()

        query = self.db.sql("""
        SELECT
            d.id,
            d.unp_acc,
            d.domain_id,
            d.range,
            d.t_group,
            tn.name as t_group_name,
            t.scientific_name as species,
            t.tax_id,
            {schema}.get_ancestor_name(t.tax_id, 'phylum') as phylum,
            EXISTS (
                SELECT 1 FROM {schema}.domain_structure ds WHERE ds.domain_id = d.id
            ) as has_structure,
            (
                SELECT dcm.cluster_id
                FROM {schema}.domain_cluster_members dcm
                JOIN {schema}.domain_clusters dc ON dcm.cluster_id = dc.id
                WHERE dcm.domain_id = d.id
                ORDER BY dc.cluster_set_id
                LIMIT 1
            ) as primary_cluster_id
        """ + _DOMAIN_JOINS + where + """
        ORDER BY d.domain_id
        LIMIT %s OFFSET %s
        """)
        rows = self.db.execute_dict_query(query, tuple(params) + (page.limit, page.offset))

        count_query = self.db.sql("SELECT COUNT(*)" + _DOMAIN_JOINS + where)
        total = int(self.db.execute_scalar(count_query, tuple(params), default=0))

        tgroup_query = self.db.sql("""
        SELECT d.t_group, COALESCE(tn.name, d.t_group) as name, COUNT(*) as count
        """ + _DOMAIN_JOINS + where + """
        GROUP BY d.t_group, COALESCE(tn.name, d.t_group)
        ORDER BY count DESC
        LIMIT 10
        """)
        taxonomy_query = self.db.sql("""
        SELECT {schema}.get_ancestor_name(t.tax_id, 'superkingdom') as superkingdom, COUNT(*) as count
        """ + _DOMAIN_JOINS + where + """
        GROUP BY superkingdom
        ORDER BY count DESC
        """)

        hits = Page(items=[DomainHit.from_db_row(row) for row in rows],
                    total=total, page=page.page, page_size=page.page_size)
        self.logger.debug(f"Search {search.text!r} matched {total} domains")
        return SearchResults(
            hits=hits,
            tgroup_facets=self.db.execute_dict_query(tgroup_query, tuple(params)),
            taxonomy_facets=self.db.execute_dict_query(taxonomy_query, tuple(params))
        )
