#!/usr/bin/env python3
"""
Shared fixtures for the curation toolkit tests

The database layer is mocked throughout; no live PostgreSQL is needed.
"""

import pytest
import yaml
from datetime import datetime
from unittest.mock import Mock

from ecod_curation.config import ConfigManager
from ecod_curation.core.context import ApplicationContext
from ecod_curation.db.manager import DBManager


TEST_DB_CONFIG = {
    'host': 'localhost',
    'port': 5432,
    'database': 'ecod_test',
    'user': 'test_user',
    'password': 'test_pass',
    'schema': 'swissprot',
}


@pytest.fixture
def db_config():
    """Database configuration dictionary"""
    return dict(TEST_DB_CONFIG)


@pytest.fixture
def mock_db():
    """Mock DBManager that formats schema templates like the real one"""
    db = Mock(spec=DBManager)
    db.schema = 'swissprot'
    db.sql.side_effect = lambda query: query.format(schema='swissprot')
    db.execute_dict_query.return_value = []
    db.execute_query.return_value = []
    db.execute_scalar.return_value = 0
    return db


@pytest.fixture
def config_manager():
    """Configuration with built-in defaults and no environment overrides"""
    return ConfigManager(environ={})


@pytest.fixture
def context(config_manager, mock_db):
    """Application context wired to the mock database"""
    return ApplicationContext(config_manager=config_manager, db_manager=mock_db)


@pytest.fixture
def config_file(tmp_path):
    """Write a YAML configuration file and return its path"""
    def _write(data, name="config.yml"):
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data))
        return str(path)
    return _write


@pytest.fixture
def analysis_row():
    """cluster_analysis row for a well-supported cluster"""
    return {
        'id': 7,
        'cluster_id': 101,
        'taxonomic_diversity': 0.72,
        'structure_consistency': 0.85,
        'experimental_support_ratio': 0.75,
        'requires_new_classification': False,
        'analysis_notes': None,
        'created_at': datetime(2024, 3, 1, 12, 0, 0),
    }


@pytest.fixture
def member_rows():
    """Joined member rows for a three-member cluster"""
    return [
        {'id': 1, 'cluster_id': 101, 'domain_id': 11, 'domain_identifier': 'e1abcA1',
         'unp_acc': 'P12345', 'range': '1-120', 't_group': '2.30.30', 't_group_name': 'SH3',
         'sequence_identity': 1.0, 'alignment_coverage': 1.0, 'is_representative': True,
         'species': 'Homo sapiens'},
        {'id': 2, 'cluster_id': 101, 'domain_id': 12, 'domain_identifier': 'e2defB1',
         'unp_acc': 'Q67890', 'range': '5-118', 't_group': '2.30.30', 't_group_name': 'SH3',
         'sequence_identity': 0.82, 'alignment_coverage': 0.95, 'is_representative': False,
         'species': 'Mus musculus'},
        {'id': 3, 'cluster_id': 101, 'domain_id': 13, 'domain_identifier': 'e3ghiC2',
         'unp_acc': 'O11111', 'range': '10-130', 't_group': '2.30.29', 't_group_name': None,
         'sequence_identity': 0.64, 'alignment_coverage': 0.88, 'is_representative': False,
         'species': None},
    ]


@pytest.fixture
def alignment_fasta():
    """Small FASTA alignment: column 0 conserved, column 3 mostly gaps"""
    return (
        ">seq1 first\n"
        "MKV-LA\n"
        ">seq2 second\n"
        "MKI-LA\n"
        ">seq3 third\n"
        "MRV-IA\n"
        ">seq4 fourth\n"
        "MKVALG\n"
    )
