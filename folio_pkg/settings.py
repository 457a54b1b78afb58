#!/usr/bin/env python3
"""
Settings loader for the Folio site builder.
Supports configuration from folio.yml, folio.yaml, or folio.json files.
"""

import os
import json
import yaml
from typing import Dict, Any, Optional

from .models import BuildConfig, Strategy


class FolioSettings:
    """Load and manage Folio configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'strategy': 'freeform',
        'source': '.',
        'output': '.build',
        'records': '.storage/builds',
        'minify': False,
        'require_layout': False,
        'site_title': None,
        'site_url': None,
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['folio.yml', 'folio.yaml', 'folio.json']

    def __init__(self, config_dir: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
        """
        self.config_dir = config_dir or os.getcwd()
        self.settings = self.DEFAULT_SETTINGS.copy()
        self.config_file_path = None

    def load_settings(self) -> Dict[str, Any]:
        """
        Load settings from configuration file if it exists.

        Returns:
            Dictionary of configuration settings
        """
        config_file = self._find_config_file()

        if config_file:
            self.config_file_path = config_file
            loaded_settings = self._load_config_file(config_file)
            if loaded_settings:
                # Merge with defaults, giving preference to loaded settings
                self.settings.update(loaded_settings)
                print(f"Loaded configuration from: {os.path.relpath(config_file)}")

        return self.settings.copy()

    def _find_config_file(self) -> Optional[str]:
        for filename in self.CONFIG_FILES:
            config_path = os.path.join(self.config_dir, filename)
            if os.path.exists(config_path):
                return config_path
        return None

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Dictionary of configuration settings
        """
        file_ext = os.path.splitext(config_path)[1].lower()
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if file_ext in ['.yml', '.yaml']:
                    loaded = yaml.safe_load(f) or {}
                elif file_ext == '.json':
                    loaded = json.load(f) or {}
                else:
                    raise ValueError(f"Unsupported config file format: {file_ext}")
        except PermissionError:
            raise PermissionError(f"Permission denied reading configuration file: {config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {config_path}: {e}")
        except (IOError, OSError) as e:
            raise IOError(f"Error reading configuration file {config_path}: {e}")

        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")
        return loaded

    def create_sample_config(self, file_format: str = 'yml', strategy: str = 'freeform') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')
            strategy: Strategy written into the sample

        Returns:
            Path to created sample config file
        """
        strategy = Strategy.parse(strategy).value
        filename = f'folio.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    f.write("# Folio Configuration File\n")
                    f.write("# Configure your site builder settings here\n\n")
                    f.write("# Site information (available to templates as {{site.title}} / {{site.url}})\n")
                    f.write("site_title: My Folio Site\n")
                    f.write("site_url: https://example.com\n\n")
                    f.write("# Build settings\n")
                    f.write(f"strategy: {strategy}  # freeform, book or blog\n")
                    f.write("source: .\n")
                    f.write("output: .build\n")
                    f.write("records: .storage/builds\n\n")
                    f.write("# Pages without a layout fail the build when true\n")
                    f.write("require_layout: false\n\n")
                    f.write("# Minify copied CSS and JS assets\n")
                    f.write("minify: false\n")
                elif file_format == 'json':
                    sample_config = dict(self.DEFAULT_SETTINGS)
                    sample_config.update({
                        'strategy': strategy,
                        'site_title': 'My Folio Site',
                        'site_url': 'https://example.com',
                    })
                    json.dump(sample_config, f, indent=2)
                else:
                    raise ValueError(f"Unsupported config file format: {file_format}")
        except PermissionError:
            raise PermissionError(f"Permission denied creating configuration file: {config_path}")
        except (IOError, OSError) as e:
            raise IOError(f"Error writing configuration file {config_path}: {e}")

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with command-line arguments.
        Command-line arguments take precedence over config file settings.

        Args:
            args_dict: Dictionary of command-line arguments

        Returns:
            Merged configuration dictionary
        """
        merged = self.settings.copy()

        # Override with non-None command line arguments
        for key, value in args_dict.items():
            if value is not None:
                merged[key] = value

        return merged


def build_config_from_settings(settings: Dict[str, Any], source_root: str = '/',
                               output_root: str = '/.build') -> BuildConfig:
    """Create the immutable BuildConfig for one run from merged settings."""
    site = {
        'title': settings.get('site_title'),
        'url': (settings.get('site_url') or '').rstrip('/') or None,
    }
    return BuildConfig(
        strategy=Strategy.parse(settings.get('strategy', 'freeform')),
        source_root=source_root,
        output_root=output_root,
        require_layout=bool(settings.get('require_layout', False)),
        minify=bool(settings.get('minify', False)),
        site=site,
    )
