#!/usr/bin/env python3
"""
Tests for JSON and CSV export
"""

import json
import pytest
import pandas as pd
from datetime import datetime
from decimal import Decimal

from ecod_curation.exceptions import ExportError
from ecod_curation.models.cluster import Cluster, ClusterDetail, ClusterMember, ClusterSet
from ecod_curation.utils.export import (
    cluster_export_filename, export_cluster_json, export_csv, json_default, records_to_frame
)


@pytest.fixture
def detail(member_rows):
    return ClusterDetail(
        cluster=Cluster(id=101, cluster_number=7, cluster_set_id=1,
                        created_at=datetime(2024, 2, 1)),
        cluster_set=ClusterSet(id=1, name='ECOD-70'),
        members=[ClusterMember.from_db_row(row) for row in member_rows],
        size=3
    )


def test_json_default():
    assert json_default(datetime(2024, 1, 2, 3, 4)) == '2024-01-02T03:04:00'
    assert json_default(Decimal('0.5')) == 0.5
    with pytest.raises(TypeError):
        json_default(object())


def test_export_cluster_json(detail, tmp_path):
    output_dir = tmp_path / "exports"
    path = export_cluster_json(detail, str(output_dir))

    assert path.endswith(cluster_export_filename(7))
    assert path.endswith("cluster-7-export.json")
    data = json.loads((output_dir / "cluster-7-export.json").read_text())
    assert data['cluster']['cluster_number'] == 7
    assert data['representative']['domain']['domain_id'] == 'e1abcA1'
    assert len(data['members']) == 3


def test_export_cluster_json_unwritable(detail, tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    with pytest.raises(ExportError):
        export_cluster_json(detail, str(blocker))


def test_export_cluster_json_unserializable_leaves_no_file(detail, tmp_path):
    detail.species_distribution = [{'species': 'Homo sapiens', 'count': object()}]
    with pytest.raises(ExportError):
        export_cluster_json(detail, str(tmp_path))
    assert not (tmp_path / "cluster-7-export.json").exists()


def test_records_to_frame(detail):
    frame = records_to_frame(detail.members, ['domain_id', 't_group', 'missing'])
    assert list(frame.columns) == ['domain_id', 't_group', 'missing']
    assert list(frame['domain_id']) == ['e1abcA1', 'e2defB1', 'e3ghiC2']
    assert frame['missing'].isna().all()


def test_records_to_frame_from_dicts():
    frame = records_to_frame([{'a': 1, 'b': 2}])
    assert frame.to_dict('records') == [{'a': 1, 'b': 2}]


def test_export_csv(detail, tmp_path):
    path = tmp_path / "out" / "members.csv"
    export_csv(detail.members, str(path), ['domain_id', 'unp_acc', 'is_representative'])

    frame = pd.read_csv(path)
    assert list(frame.columns) == ['domain_id', 'unp_acc', 'is_representative']
    assert list(frame['unp_acc']) == ['P12345', 'Q67890', 'O11111']


def test_export_csv_dataframe(tmp_path):
    path = tmp_path / "quality.csv"
    export_csv(pd.DataFrame({'cluster_id': [1, 2]}), str(path))
    assert pd.read_csv(path)['cluster_id'].tolist() == [1, 2]
