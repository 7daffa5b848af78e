#!/usr/bin/env python3
"""
Tests for configuration loading, overrides and validation
"""

import json
import pytest

from ecod_curation.config import ConfigManager, ConfigSchema, DEFAULT_CONFIG
from ecod_curation.core.context import ApplicationContext
from ecod_curation.db.manager import DBManager
from ecod_curation.exceptions import ConfigurationError


class TestConfigManager:
    """Test configuration sources and precedence"""

    def test_defaults(self):
        manager = ConfigManager(environ={})
        assert manager.get('database.schema') == 'swissprot'
        assert manager.get('validation.out_of_range') == 'reject'
        assert manager.get('pagination.default_page_size') == 20
        assert manager.validation_errors == []

    def test_defaults_not_mutated(self):
        manager = ConfigManager(environ={})
        manager.config['database']['host'] = 'elsewhere'
        assert DEFAULT_CONFIG['database']['host'] != 'elsewhere'

    def test_yaml_file_overrides_defaults(self, config_file):
        path = config_file({'database': {'host': 'db.example.org'},
                            'validation': {'out_of_range': 'clamp'}})
        manager = ConfigManager(path, environ={})
        assert manager.get('database.host') == 'db.example.org'
        assert manager.get('database.schema') == 'swissprot'
        assert manager.get('validation.out_of_range') == 'clamp'

    def test_json_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({'msa': {'gap_threshold': 0.25}}))
        manager = ConfigManager(str(path), environ={})
        assert manager.get('msa.gap_threshold') == 0.25

    def test_local_file_overrides_main(self, config_file):
        path = config_file({'database': {'host': 'main'}})
        config_file({'database': {'host': 'local'}}, name="config.local.yml")
        manager = ConfigManager(path, environ={})
        assert manager.get('database.host') == 'local'

    def test_environment_overrides_file(self, config_file):
        path = config_file({'database': {'host': 'main', 'port': 5432}})
        manager = ConfigManager(path, environ={
            'ECOD_DATABASE__HOST': 'from-env',
            'ECOD_DATABASE__PORT': '6543',
            'ECOD_VALIDATION__OUT_OF_RANGE': 'clamp',
            'UNRELATED': 'ignored',
        })
        assert manager.get('database.host') == 'from-env'
        assert manager.get('database.port') == 6543
        assert manager.get('validation.out_of_range') == 'clamp'

    def test_environment_value_conversion(self):
        manager = ConfigManager(environ={'ECOD_MSA__GAP_THRESHOLD': '0.4',
                                         'ECOD_EXPORT__ENABLED': 'yes'})
        assert manager.get('msa.gap_threshold') == 0.4
        assert manager.get('export.enabled') is True

    def test_numeric_string_kept_for_string_fields(self):
        manager = ConfigManager(environ={'ECOD_DATABASE__PASSWORD': '12345',
                                         'ECOD_DATABASE__PORT': '5433'})
        assert manager.get('database.password') == '12345'
        assert manager.get('database.port') == 5433
        assert manager.validation_errors == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            ConfigManager(str(tmp_path / "missing.yml"), environ={})

    def test_unparseable_file(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("database: [unclosed")
        with pytest.raises(ConfigurationError):
            ConfigManager(str(path), environ={})

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- one\n- two\n")
        with pytest.raises(ConfigurationError):
            ConfigManager(str(path), environ={})

    def test_invalid_values_recorded(self, config_file):
        path = config_file({'validation': {'out_of_range': 'wrap'},
                            'pagination': {'max_page_size': 'lots'}})
        manager = ConfigManager(path, environ={})
        assert len(manager.validation_errors) == 2
        with pytest.raises(ConfigurationError) as exc_info:
            manager.require_valid()
        assert len(exc_info.value.details['errors']) == 2

    def test_get_missing_key(self):
        manager = ConfigManager(environ={})
        assert manager.get('database.nothing', 'fallback') == 'fallback'
        assert manager.get('database.host.deeper') is None
        assert manager.get_section('nothing') == {}

    def test_get_db_config_is_copy(self):
        manager = ConfigManager(environ={})
        db_config = manager.get_db_config()
        db_config['host'] = 'changed'
        assert manager.get('database.host') != 'changed'


class TestConfigSchema:
    """Test schema validation rules"""

    def test_missing_required_section(self):
        errors = ConfigSchema.validate({})
        assert "Missing required configuration section: database" in errors

    def test_missing_required_field(self):
        errors = ConfigSchema.validate({'database': {'host': 'h', 'port': 1, 'database': 'd'}})
        assert errors == ["Missing required configuration field: database.user"]

    def test_bool_is_not_a_number(self):
        config = {'database': {'host': 'h', 'port': True, 'database': 'd', 'user': 'u'}}
        errors = ConfigSchema.validate(config)
        assert len(errors) == 1
        assert "database.port" in errors[0]

    def test_int_accepted_for_float_field(self):
        config = dict(DEFAULT_CONFIG, msa={'gap_threshold': 1})
        assert ConfigSchema.validate(config) == []

    def test_section_must_be_mapping(self):
        config = dict(DEFAULT_CONFIG, export='./out')
        assert ConfigSchema.validate(config) == ["Configuration section export must be a mapping"]


class TestApplicationContext:
    """Test the application context"""

    def test_lazy_db_manager(self, config_manager):
        context = ApplicationContext(config_manager=config_manager)
        assert context._db_manager is None
        db = context.db
        assert isinstance(db, DBManager)
        assert context.db is db
        assert db.schema == 'swissprot'

    def test_update_config(self, config_manager, mock_db):
        context = ApplicationContext(config_manager=config_manager, db_manager=mock_db)
        context.update_config('export', 'output_dir', '/tmp/out')
        assert context.config.get('export.output_dir') == '/tmp/out'
        assert context.db is mock_db
