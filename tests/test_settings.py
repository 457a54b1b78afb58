"""Tests for FolioSettings."""

import json
import os

import pytest
import yaml

from folio_pkg.errors import ConfigError
from folio_pkg.models import Strategy
from folio_pkg.settings import FolioSettings, build_config_from_settings


class TestFolioSettings:
    """Test cases for configuration loading."""

    def test_defaults_without_config_file(self, temp_dir):
        """Test that defaults are returned when no config file exists."""
        settings = FolioSettings(temp_dir).load_settings()
        assert settings == FolioSettings.DEFAULT_SETTINGS
        assert settings['output'] == '.build'
        assert settings['strategy'] == 'freeform'

    def test_yaml_config(self, temp_dir):
        """Test loading folio.yml."""
        with open(os.path.join(temp_dir, 'folio.yml'), 'w', encoding='utf-8') as f:
            yaml.safe_dump({'strategy': 'blog', 'site_title': 'My Blog'}, f)

        loader = FolioSettings(temp_dir)
        settings = loader.load_settings()

        assert settings['strategy'] == 'blog'
        assert settings['site_title'] == 'My Blog'
        assert settings['records'] == '.storage/builds'
        assert loader.config_file_path.endswith('folio.yml')

    def test_json_config(self, temp_dir):
        """Test loading folio.json."""
        with open(os.path.join(temp_dir, 'folio.json'), 'w', encoding='utf-8') as f:
            json.dump({'minify': True}, f)
        assert FolioSettings(temp_dir).load_settings()['minify'] is True

    def test_yml_preferred_over_json(self, temp_dir):
        """Test the config file lookup order."""
        with open(os.path.join(temp_dir, 'folio.json'), 'w', encoding='utf-8') as f:
            json.dump({'strategy': 'book'}, f)
        with open(os.path.join(temp_dir, 'folio.yml'), 'w', encoding='utf-8') as f:
            f.write('strategy: blog\n')
        assert FolioSettings(temp_dir).load_settings()['strategy'] == 'blog'

    def test_invalid_yaml(self, temp_dir):
        """Test that broken YAML raises ValueError."""
        with open(os.path.join(temp_dir, 'folio.yml'), 'w', encoding='utf-8') as f:
            f.write('strategy: [blog\n')
        with pytest.raises(ValueError, match='Invalid YAML'):
            FolioSettings(temp_dir).load_settings()

    def test_non_mapping_config(self, temp_dir):
        """Test that a config file must hold a mapping."""
        with open(os.path.join(temp_dir, 'folio.json'), 'w', encoding='utf-8') as f:
            json.dump(['blog'], f)
        with pytest.raises(ValueError, match='mapping'):
            FolioSettings(temp_dir).load_settings()

    def test_merge_with_args(self, temp_dir):
        """Test that non-None command-line values win."""
        loader = FolioSettings(temp_dir)
        loader.load_settings()
        merged = loader.merge_with_args({'strategy': 'book', 'output': None, 'minify': False})

        assert merged['strategy'] == 'book'
        assert merged['output'] == '.build'
        assert merged['minify'] is False

    @pytest.mark.parametrize('file_format', ['yml', 'yaml', 'json'])
    def test_create_sample_config(self, temp_dir, file_format):
        """Test that sample configs load back with the chosen strategy."""
        loader = FolioSettings(temp_dir)
        path = loader.create_sample_config(file_format, strategy='book')

        assert os.path.basename(path) == f'folio.{file_format}'
        settings = FolioSettings(temp_dir).load_settings()
        assert settings['strategy'] == 'book'
        assert settings['site_title'] == 'My Folio Site'

    def test_create_sample_config_unknown_format(self, temp_dir):
        """Test that unsupported formats are rejected."""
        with pytest.raises(ValueError):
            FolioSettings(temp_dir).create_sample_config('toml')


class TestBuildConfigFromSettings:
    """Test cases for building a BuildConfig from settings."""

    def test_settings_mapped(self):
        """Test that settings become an immutable BuildConfig."""
        settings = dict(FolioSettings.DEFAULT_SETTINGS, strategy='Blog', minify=True,
                        site_title='Site', site_url='https://example.com/')
        config = build_config_from_settings(settings, output_root='/out')

        assert config.strategy is Strategy.BLOG
        assert config.output_root == '/out'
        assert config.minify is True
        assert config.require_layout is False
        assert config.site == {'title': 'Site', 'url': 'https://example.com'}

    def test_unknown_strategy(self):
        """Test that an unknown strategy name is a configuration error."""
        with pytest.raises(ConfigError, match='Unknown build strategy'):
            build_config_from_settings({'strategy': 'wiki'})
