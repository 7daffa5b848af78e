#!/usr/bin/env python3
"""
Tests for the command-line interface
"""

import json
import os
import pytest
from datetime import datetime
from unittest.mock import patch

from ecod_curation.cli import COMMAND_GROUPS, get_command_groups, get_commands, load_group
from ecod_curation.cli.main import build_parser, main
from ecod_curation.exceptions import NotFoundError
from ecod_curation.models.dashboard import ClassificationOverview, DomainQualityStats, RecentCluster
from ecod_curation.models.pagination import Page
from ecod_curation.models.protein import ProteinDomain, ProteinDomains, ProteinRecord
from ecod_curation.models.reclassification import ReclassificationOutcome, ReclassificationStatus


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for key in list(os.environ):
        if key.startswith('ECOD_'):
            monkeypatch.delenv(key)


@pytest.fixture(autouse=True)
def quiet_logging():
    with patch('ecod_curation.cli.main.LoggingManager.configure') as configure:
        yield configure


def run(capsys, *argv):
    code = main(list(argv))
    captured = capsys.readouterr()
    return code, captured.out, captured.err


class TestCommandGroups:

    def test_every_group_loads(self):
        for group in COMMAND_GROUPS:
            module = load_group(group)
            assert hasattr(module, 'setup_parser')
            assert hasattr(module, 'run_command')
            assert get_commands(group) == module.COMMANDS

    def test_unknown_group(self):
        with pytest.raises(ValueError):
            load_group('pipeline')

    def test_group_listing(self):
        assert set(get_command_groups()) == {'assess', 'clustersets', 'clusters', 'reclass',
                                             'dashboard', 'search', 'proteins', 'db'}

    def test_parser(self):
        args = build_parser().parse_args(['-vv', 'clusters', 'msa', '5', '--width', '40'])
        assert args.verbose == 2
        assert args.group == 'clusters'
        assert args.command == 'msa'
        assert args.width == 40

    def test_group_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestAssess:

    def test_valid(self, capsys):
        code, out, _ = run(capsys, '--json', 'assess', '--structure-consistency', '0.85',
                           '--tgroup-homogeneity', '0.83', '--taxonomic-diversity', '0.72')
        data = json.loads(out)
        assert code == 0
        assert data['assessment']['status'] == 'Valid'
        assert data['metrics']['experimental_support'] is None

    def test_text_output(self, capsys):
        code, out, _ = run(capsys, 'assess', '--structure-consistency', '0.45',
                           '--tgroup-homogeneity', '0.5')
        assert code == 0
        assert out.startswith("Status: Invalid")

    def test_no_metrics(self, capsys):
        code, out, _ = run(capsys, 'assess')
        assert code == 0
        assert "Status: Needs Review" in out
        assert "Insufficient data" in out

    def test_out_of_range_rejected(self, capsys):
        code, _, err = run(capsys, 'assess', '--structure-consistency', '1.5')
        assert code == 4
        assert "Invalid input" in err

    def test_out_of_range_clamped(self, capsys):
        code, out, _ = run(capsys, '--json', 'assess', '--structure-consistency', '1.5',
                           '--out-of-range', 'clamp')
        assert code == 0
        assert json.loads(out)['metrics']['structure_consistency'] == 1.0

    def test_thresholds_from_config(self, capsys, config_file):
        path = config_file({'validation': {'thresholds': {
            'structure_consistency': {'upper': 0.9}}}})
        code, out, _ = run(capsys, '--config', path, '--json', 'assess',
                           '--structure-consistency', '0.85', '--tgroup-homogeneity', '0.9')
        assert code == 0
        assert json.loads(out)['assessment']['status'] == 'Needs Review'

    def test_numeric_password_in_environment(self, capsys, monkeypatch):
        monkeypatch.setenv('ECOD_DATABASE__PASSWORD', '12345')
        code, out, _ = run(capsys, 'assess', '--structure-consistency', '0.85')
        assert code == 0
        assert out.startswith("Status: Valid")

    def test_missing_config(self, capsys, tmp_path):
        code, _, err = run(capsys, '--config', str(tmp_path / "nope.yml"), 'assess')
        assert code == 9
        assert "Configuration error" in err

    def test_invalid_config(self, capsys, config_file):
        path = config_file({'validation': {'out_of_range': 'wrap'}})
        code, _, err = run(capsys, '--config', path, 'assess')
        assert code == 9
        assert "Invalid configuration" in err


class TestServiceCommands:

    def test_cluster_not_found(self, capsys):
        with patch('ecod_curation.cli.clusters.ClusterService') as service_class:
            service_class.return_value.get_cluster.side_effect = NotFoundError("Cluster not found")
            code, _, err = run(capsys, 'clusters', 'show', '99')
        assert code == 3
        assert "Cluster not found" in err

    def test_cluster_list_json(self, capsys):
        with patch('ecod_curation.cli.clusters.ClusterService') as service_class:
            service = service_class.return_value
            service.list_clusters.return_value = Page(items=[], total=0, page=1, page_size=20)
            code, out, _ = run(capsys, '--json', 'clusters', 'list', '--t-group', '2.30.30')

        assert code == 0
        assert json.loads(out)['clusters'] == []
        filters = service.list_clusters.call_args[0][0]
        assert filters.t_group == '2.30.30'

    def test_approve(self, capsys):
        outcome = ReclassificationOutcome(cluster_id=5, status=ReclassificationStatus.APPROVED,
                                          user_id='curator', timestamp=datetime(2024, 5, 1),
                                          updated_domain_id=77, previous_t_group='2.30.29')
        with patch('ecod_curation.cli.reclass.ReclassificationService') as service_class:
            service = service_class.return_value
            service.decide.return_value = outcome
            code, out, _ = run(capsys, 'reclass', 'approve', '5', '--user', 'curator',
                               '--new-t-group', '2.30.30')

        assert code == 0
        assert "Reclassification approved for cluster 5 by curator" in out
        service.decide.assert_called_once_with(cluster_id=5, status='approved', user_id='curator',
                                               notes=None, new_t_group='2.30.30')

    def test_reject_requires_user(self, capsys):
        with pytest.raises(SystemExit):
            main(['reclass', 'reject', '5'])

    def test_db_test_failure(self, capsys):
        with patch('ecod_curation.db.manager.DBManager.test_connection', return_value=False):
            code, out, _ = run(capsys, 'db', 'test')
        assert code == 1
        assert "Connection: FAILED" in out


class TestDashboardCommands:

    @pytest.fixture
    def service(self):
        with patch('ecod_curation.cli.dashboard.DashboardService') as service_class:
            yield service_class.return_value

    def test_classification(self, capsys, service):
        service.get_classification_overview.return_value = ClassificationOverview(
            status_distribution=[{'status': 'Validated', 'count': 3, 'percentage': 75.0},
                                 {'status': 'Needs Review', 'count': 1, 'percentage': 25.0}],
            cluster_set_comparison=[{'cluster_set_id': 1, 'name': 'ECOD-70', 'clusters': 4,
                                     'validated': 3, 'needs_review': 1, 'conflicts': 0,
                                     'unanalysed': 0}]
        )
        code, out, _ = run(capsys, 'dashboard', 'classification', '--tgroup-limit', '3')

        assert code == 0
        assert "Clusters: 4" in out
        assert "Needs Review" in out
        assert "ECOD-70" in out
        service.get_classification_overview.assert_called_once_with(3, 5)

    def test_recent_json(self, capsys, service):
        service.get_recent_clusters.return_value = [
            RecentCluster(id=9, cluster_number=42, size=3, created_at=datetime(2024, 5, 1))
        ]
        code, out, _ = run(capsys, '--json', 'dashboard', 'recent', '--limit', '1')

        assert code == 0
        assert json.loads(out)[0]['name'] == 'Cluster-42'
        service.get_recent_clusters.assert_called_once_with(1)

    def test_quality_stats(self, capsys, service):
        service.get_domain_quality.return_value = DomainQualityStats(
            overall={'total_domains': 4, 'avg_dpam_prob': 0.8, 'avg_hh_prob': None,
                     'high_confidence_fraction': 0.75, 'dpam_plddt_correlation': None,
                     'dpam_plddt_pairs': 0},
            judge_distribution=[{'judge': 'good_domain', 'count': 4, 'fraction': 1.0}]
        )
        code, out, _ = run(capsys, 'dashboard', 'quality-stats')

        assert code == 0
        assert "good_domain" in out
        assert "Mean DPAM probability:     0.80" in out


class TestProteinCommands:

    def test_domains(self, capsys):
        result = ProteinDomains(
            identifier='P12345',
            protein=ProteinRecord(unp_acc='P12345', species='Homo sapiens'),
            domains=[ProteinDomain(id=11, domain_id='e1abcA1', range='1-120',
                                   t_group='2.30.30', judge='good_domain')]
        )
        with patch('ecod_curation.cli.proteins.DashboardService') as service_class:
            service_class.return_value.get_protein_domains.return_value = result
            code, out, _ = run(capsys, 'proteins', 'domains', 'P12345')

        assert code == 0
        assert "Homo sapiens" in out
        assert "e1abcA1" in out

    def test_unknown_protein(self, capsys):
        with patch('ecod_curation.cli.proteins.DashboardService') as service_class:
            service_class.return_value.get_protein_domains.side_effect = NotFoundError(
                "Protein not found", {"identifier": "P99999"})
            code, _, err = run(capsys, 'proteins', 'domains', 'P99999')

        assert code == 3
        assert "Not found: Protein not found (identifier=P99999)" in err
