# ecod_curation/db/repositories/protein_repository.py
#!/usr/bin/env python3
"""
Protein repository
Looks proteins up by UniProt accession or structure source id
"""
import logging
from typing import List, Optional

from ecod_curation.db.manager import DBManager
from ecod_curation.models.protein import ProteinDomain, ProteinRecord, ProteinStructure


class ProteinRepository:
    """Repository for proteins and their domains"""

    def __init__(self, db_manager: DBManager):
        """Initialize repository

        Args:
            db_manager: Database manager instance
        """
        self.db = db_manager
        self.logger = logging.getLogger("ecod_curation.db.protein_repository")

    def get_protein(self, identifier: str) -> Optional[ProteinRecord]:
        """Get a protein by UniProt accession or source id (e.g. an AlphaFold id)"""
        query = self.db.sql("""
        SELECT
            ps.unp_acc,
            ps.source_id,
            ps.sequence_length,
            t.scientific_name as species,
            t.tax_id
        FROM {schema}.protein_sequence ps
        LEFT JOIN {schema}.protein_taxonomy pt ON ps.unp_acc = pt.unp_acc
        LEFT JOIN {schema}.taxonomy t ON pt.tax_id = t.tax_id
        WHERE ps.unp_acc = %s OR ps.source_id = %s
        LIMIT 1
        """)
        rows = self.db.execute_dict_query(query, (identifier, identifier))
        if not rows:
            return None
        return ProteinRecord.from_db_row(rows[0])

    def get_structure(self, identifier: str) -> Optional[ProteinStructure]:
        """Current structure with the best confidence, if any"""
        query = self.db.sql("""
        SELECT id, source, file_type, resolution, confidence_score
        FROM {schema}.protein_structure
        WHERE unp_acc = %s OR source_id = %s
        ORDER BY is_current DESC, confidence_score DESC NULLS LAST
        LIMIT 1
        """)
        rows = self.db.execute_dict_query(query, (identifier, identifier))
        if not rows:
            return None
        return ProteinStructure.from_db_row(rows[0])

    def get_domains(self, identifier: str) -> List[ProteinDomain]:
        """Domains of a protein in sequence order

        Each domain carries its species and lineage, whether a domain
        structure exists and its primary cluster. Representative
        memberships win when choosing the primary cluster. Domains with a
        discontinuous range sort first.
        """
        query = self.db.sql("""
        SELECT
            d.id,
            d.unp_acc,
            d.domain_id,
            d.range,
            d.t_group,
            tn.name as t_group_name,
            d.dpam_prob,
            d.hh_prob,
            d.judge,
            d.hcount,
            d.scount,
            tax.tax_id,
            tax.species,
            tax.phylum,
            tax.superkingdom,
            EXISTS (
                SELECT 1 FROM {schema}.domain_structure ds WHERE ds.domain_id = d.id
            ) as has_structure,
            (
                SELECT dcm.cluster_id
                FROM {schema}.domain_cluster_members dcm
                WHERE dcm.domain_id = d.id
                ORDER BY dcm.is_representative DESC
                LIMIT 1
            ) as primary_cluster_id
        FROM {schema}.domain d
        LEFT JOIN {schema}.tgroup_names tn ON tn.tgroup_id = d.t_group
        LEFT JOIN LATERAL (
            SELECT
                t.tax_id,
                t.scientific_name as species,
                {schema}.get_ancestor_name(t.tax_id, 'phylum') as phylum,
                {schema}.get_ancestor_name(t.tax_id, 'superkingdom') as superkingdom
            FROM {schema}.protein_taxonomy pt
            JOIN {schema}.taxonomy t ON pt.tax_id = t.tax_id
            WHERE pt.unp_acc = d.unp_acc
            LIMIT 1
        ) tax ON true
        WHERE d.unp_acc = %s
           OR d.unp_acc IN (SELECT unp_acc FROM {schema}.protein_sequence WHERE source_id = %s)
        ORDER BY
            CASE
                WHEN d.range ~ '^[0-9]+-[0-9]+$' THEN CAST(split_part(d.range, '-', 1) AS integer)
                ELSE 0
            END,
            d.domain_id
        """)
        rows = self.db.execute_dict_query(query, (identifier, identifier))
        self.logger.debug(f"Protein {identifier} has {len(rows)} domains")
        return [ProteinDomain.from_db_row(row) for row in rows]
