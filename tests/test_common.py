"""
Tests for shared utilities: settings, file loading and database URLs.
"""

import logging

import pandas as pd
import pytest
import yaml

from infrastructure.database.connection import get_database_url
from infrastructure.utilities.common import (
    DataProcessor,
    database_url_from,
    format_number,
    load_settings,
    load_yaml_config,
    save_yaml_config,
    setup_logging,
    solitary_estimates_from,
)


class TestSettings:
    def test_yaml_round_trip_keeps_korean(self, tmp_path):
        path = tmp_path / 'out' / 'summary.yaml'

        save_yaml_config({'region': '창원시', 'rate': 50}, path)

        assert '창원시' in path.read_text(encoding='utf-8')
        assert load_yaml_config(path) == {'region': '창원시', 'rate': 50}

    def test_empty_yaml_is_empty_dict(self, tmp_path):
        path = tmp_path / 'empty.yaml'
        path.write_text('', encoding='utf-8')
        assert load_yaml_config(path) == {}

    def test_explicit_missing_config_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / 'missing.yaml')

    def test_default_config_lists_every_region(self):
        estimates = solitary_estimates_from(load_settings())
        assert len(estimates) == 18

    def test_solitary_estimates_absent(self):
        assert solitary_estimates_from({}) == {}
        assert solitary_estimates_from({'care_burden': None}) == {}


class TestDataProcessor:
    def test_csv_keeps_codes_as_text(self, tmp_path):
        path = tmp_path / 'sheet.csv'
        path.write_text('기관코드,전담사회복지사_남\n0012,3\n', encoding='utf-8')

        df = DataProcessor().load_data(path)

        assert df.iloc[0]['기관코드'] == '0012'

    def test_load_logs_grouped_row_count(self, tmp_path, caplog):
        path = tmp_path / 'sheet.csv'
        rows = '\n'.join(f'A{i:04d},1' for i in range(1200))
        path.write_text(f'기관코드,전담사회복지사_남\n{rows}\n', encoding='utf-8')

        with caplog.at_level(logging.INFO, logger='DataProcessor'):
            DataProcessor().load_data(path)

        assert 'Loaded 1,200 rows' in caplog.text

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / 'sheet.txt'
        path.write_text('x', encoding='utf-8')

        with pytest.raises(ValueError):
            DataProcessor().load_data(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            DataProcessor().load_data(tmp_path / 'missing.csv')

    def test_load_records_from_yaml_roster(self, tmp_path):
        path = tmp_path / 'roster.yaml'
        path.write_text(
            yaml.dump({'institutions': [{'code': 'A001', 'region': '창원'}]}, allow_unicode=True),
            encoding='utf-8',
        )

        assert DataProcessor().load_records(path) == [{'code': 'A001', 'region': '창원'}]

    def test_save_json(self, tmp_path):
        path = tmp_path / 'rows.json'

        DataProcessor().save_data(pd.DataFrame([{'region': '진주시'}]), path)

        assert '진주시' in path.read_text(encoding='utf-8')


class TestHelpers:
    def test_format_number(self):
        assert format_number(21000) == '21,000'
        assert format_number(float('nan')) == 'N/A'

    def test_setup_logging_level(self):
        root = setup_logging('debug')
        assert root.level == logging.DEBUG
        root.setLevel(logging.WARNING)


class TestDatabaseUrl:
    def test_database_url_wins(self, monkeypatch):
        monkeypatch.setenv('DATABASE_URL', 'sqlite:///survey.db')
        assert get_database_url() == 'sqlite:///survey.db'

    def test_built_from_components(self, monkeypatch):
        monkeypatch.delenv('DATABASE_URL', raising=False)
        monkeypatch.setenv('POSTGRES_HOST', 'db')
        monkeypatch.setenv('POSTGRES_PORT', '5433')
        monkeypatch.setenv('POSTGRES_DB', 'survey')
        monkeypatch.setenv('POSTGRES_USER', 'admin')
        monkeypatch.setenv('POSTGRES_PASSWORD', 'secret')

        assert get_database_url() == 'postgresql://admin:secret@db:5433/survey'

    def test_config_url_used_without_env(self, monkeypatch):
        monkeypatch.delenv('DATABASE_URL', raising=False)
        monkeypatch.setenv('POSTGRES_HOST', 'db')
        settings = {'database': {'url': 'sqlite:///configured.db'}}

        assert get_database_url(settings) == 'sqlite:///configured.db'

    def test_env_beats_config_url(self, monkeypatch):
        monkeypatch.setenv('DATABASE_URL', 'sqlite:///env.db')
        settings = {'database': {'url': 'sqlite:///configured.db'}}

        assert get_database_url(settings) == 'sqlite:///env.db'

    def test_blank_config_url_falls_through(self, monkeypatch):
        monkeypatch.delenv('DATABASE_URL', raising=False)
        for key in ('POSTGRES_HOST', 'POSTGRES_PORT', 'POSTGRES_DB', 'POSTGRES_PASSWORD'):
            monkeypatch.delenv(key, raising=False)
        monkeypatch.setenv('POSTGRES_USER', 'survey')

        url = get_database_url({'database': {'url': '  '}})

        assert url == 'postgresql://survey@localhost:5432/eldercare_survey'

    def test_database_url_from_settings(self):
        assert database_url_from({}) is None
        assert database_url_from({'database': None}) is None
        assert database_url_from({'database': {'url': None}}) is None
        assert database_url_from({'database': {'url': 'sqlite://'}}) == 'sqlite://'
