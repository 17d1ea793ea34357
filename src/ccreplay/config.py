# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025-2026 @yosagi
"""
Configuration management module

Priority order:
1. Command line arguments
2. Environment variables
3. Configuration file (TOML)
4. Default values
"""

import copy
import os
import sys

# Import TOML library
if sys.version_info >= (3, 11):
    import tomllib
    TOML_BINARY_MODE = True
else:
    import toml as tomllib
    TOML_BINARY_MODE = False
from pathlib import Path
from typing import Optional, Dict, Any


class ConfigError(ValueError):
    """Raised when a configuration file cannot be read or has invalid values"""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        message = super().__str__()
        if self.path:
            return f"{message} ({self.path})"
        return message


class Config:
    """Configuration management class"""

    DEFAULT_CONFIG = {
        'paths': {
            'projects_dir': '~/.claude/projects'
        },
        'processing': {
            # Upper bound on files followed through a continuation chain
            'max_continuation_files': 32,
            # Tool vocabulary used for grouping
            'adapter': 'claude'
        },
        'debug': {
            'verbose': False
        }
    }

    def __init__(self, config_file: Optional[str] = None,
                 projects_dir: Optional[str] = None,
                 verbose: bool = False,
                 adapter: Optional[str] = None):
        """
        Initialize configuration

        Args:
            config_file: Path to configuration file
            projects_dir: Path to projects directory (CLI argument)
            verbose: Verbose logging flag
            adapter: Adapter id selecting the tool vocabulary (CLI argument)

        Raises:
            ConfigError: If the configuration file is malformed
        """
        self.config_file = config_file or "config.toml"
        self._config = self._load_config(config_file)

        # Override with environment variables
        self._apply_env_overrides()

        # Override with CLI arguments
        if projects_dir:
            self._config['paths']['projects_dir'] = projects_dir
        if verbose:
            self._config['debug']['verbose'] = verbose
        if adapter:
            self._config['processing']['adapter'] = adapter

        self._validate()

        # Resolve paths
        self._resolve_paths()

    def _load_config(self, config_file: Optional[str]) -> Dict[str, Any]:
        """Load configuration file"""
        config = copy.deepcopy(self.DEFAULT_CONFIG)

        if config_file:
            config_path = Path(config_file)
        else:
            # Default configuration file location
            config_path = Path('config.toml')
            if not config_path.exists():
                config_path = Path.home() / '.config' / 'ccreplay' / 'config.toml'

        if config_path.exists():
            try:
                # Python 3.11+ tomllib uses 'rb' mode, toml package uses 'r' mode
                if TOML_BINARY_MODE:
                    with open(config_path, 'rb') as f:
                        file_config = tomllib.load(f)
                else:
                    with open(config_path, 'r', encoding='utf-8') as f:
                        file_config = tomllib.load(f)
            except (ValueError, TypeError) as e:
                raise ConfigError(f"Configuration file load error: {e}", config_path) from e
            config = self._deep_merge(config, file_config)

        return config

    def _deep_merge(self, base: Dict, override: Dict) -> Dict:
        """Deep merge dictionaries"""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self):
        """Override configuration with environment variables"""
        if projects_dir := os.getenv('CLAUDE_PROJECTS_DIR'):
            self._config['paths']['projects_dir'] = projects_dir

        if max_files := os.getenv('CCREPLAY_MAX_CONTINUATION_FILES'):
            self._config['processing']['max_continuation_files'] = max_files
        if adapter := os.getenv('CCREPLAY_ADAPTER'):
            self._config['processing']['adapter'] = adapter

    def _validate(self):
        """Coerce and check values that come from files or the environment"""
        raw = self._config['processing']['max_continuation_files']
        try:
            max_files = int(raw)
        except (TypeError, ValueError):
            raise ConfigError(f"processing.max_continuation_files must be an integer, got {raw!r}")
        if max_files < 1:
            raise ConfigError(f"processing.max_continuation_files must be at least 1, got {max_files}")
        self._config['processing']['max_continuation_files'] = max_files

    def _resolve_paths(self):
        """Resolve paths (e.g., ~ expansion)"""
        projects_dir = self._config['paths']['projects_dir']
        self._config['paths']['projects_dir'] = str(Path(projects_dir).expanduser())

    # Access configuration values as properties
    @property
    def projects_dir(self) -> str:
        return self._config['paths']['projects_dir']

    @property
    def verbose(self) -> bool:
        return bool(self._config['debug']['verbose'])

    @property
    def max_continuation_files(self) -> int:
        """Maximum number of files in one continuation chain (primary included)"""
        return self._config['processing']['max_continuation_files']

    @property
    def adapter(self) -> str:
        return self._config['processing']['adapter']

    def get(self, key: str, default=None):
        """Get configuration value by nested key (e.g., 'paths.projects_dir')"""
        keys = key.split('.')
        value = self._config
        try:
            for k in keys:
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default
