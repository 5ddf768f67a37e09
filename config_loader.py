"""Configuration loader with YAML support, secrets merging and environment variable substitution."""

import copy
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union
from urllib.parse import urlparse

import yaml

from exceptions import ConfigError

DEFAULT_SECRETS_NAME = 'SECRETS.yaml'


class ConfigLoader:
    """Handles loading and validation of configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def load(
        cls,
        config_path: Union[str, Path],
        secrets_path: Optional[Union[str, Path]] = None
    ) -> Dict[str, Any]:
        """
        Load configuration from YAML, overlay secrets and substitute ${VAR} references.

        Args:
            config_path: Path to YAML configuration file
            secrets_path: Optional secrets YAML; defaults to SECRETS.yaml next
                to the configuration file when that file exists

        Returns:
            Parsed configuration dictionary

        Raises:
            ConfigError: If a file is missing, unreadable or not a mapping
        """
        config_path = Path(config_path)
        config_data = cls._read_yaml(config_path, required=True)

        if secrets_path is None:
            default_secrets = config_path.parent / DEFAULT_SECRETS_NAME
            secrets_data = cls._read_yaml(default_secrets, required=False)
        else:
            secrets_data = cls._read_yaml(Path(secrets_path), required=True)

        merged = deep_merge(config_data, secrets_data)
        return cls._substitute_env_vars_recursive(merged)

    @staticmethod
    def _read_yaml(path: Path, required: bool) -> Dict[str, Any]:
        if not path.exists():
            if required:
                raise ConfigError(f"Configuration file not found: {path}")
            return {}

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read configuration file {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file must contain a dictionary: {path}")
        return data

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration for required fields and correct values.

        Raises:
            ConfigError: If validation fails
        """
        cls._validate_required_field(config, 'fedora.url')
        cls._validate_required_field(config, 'fedora.user')
        cls._validate_required_field(config, 'fedora.password')
        cls._validate_url(get_nested(config, 'fedora.url'), 'fedora.url')

        cls._validate_required_field(config, 'export.base_dir')
        base_dir = get_nested(config, 'export.base_dir')
        if os.path.exists(base_dir) and not os.path.isdir(base_dir):
            raise ConfigError(f"export.base_dir '{base_dir}' is not a directory")

        mime_types = get_nested(config, 'export.mime_types')
        if mime_types and not os.path.isfile(mime_types):
            raise ConfigError(f"export.mime_types file not found: {mime_types}")

        for field in ('fedora.timeout', 'ledger.stale_after_minutes'):
            value = get_nested(config, field)
            if value is not None and (not isinstance(value, (int, float)) or value <= 0):
                raise ConfigError(f"{field} must be a positive number")

        max_retries = get_nested(config, 'fedora.max_retries', 3)
        if not isinstance(max_retries, int) or max_retries < 0:
            raise ConfigError("fedora.max_retries must be a non-negative integer")

        verify_ssl = get_nested(config, 'fedora.verify_ssl', True)
        if not isinstance(verify_ssl, bool):
            raise ConfigError("fedora.verify_ssl must be a boolean")

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration file with CLI arguments.
        CLI arguments take precedence over config file values.
        """
        merged = copy.deepcopy(config)
        merged.setdefault('ledger', {})
        merged.setdefault('logging', {})

        if getattr(args, 'stale_after', None):
            merged['ledger']['stale_after_minutes'] = args.stale_after

        if getattr(args, 'debug', False):
            merged['logging']['level'] = 'DEBUG'

        return merged

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        def replace_match(match):
            env_value = os.getenv(match.group(1))
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)

    @staticmethod
    def _validate_required_field(config: dict, field: str) -> None:
        value = get_nested(config, field)
        if value is None or value == '':
            raise ConfigError(f"Missing required configuration: {field}")

        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise ConfigError(
                f"Configuration field '{field}' contains unsubstituted environment variable: {value}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )

    @staticmethod
    def _validate_url(url: str, field_name: str) -> None:
        parsed = urlparse(url)
        if parsed.scheme not in ('http', 'https'):
            raise ConfigError(f"{field_name} must use http or https scheme: {url}")
        if not parsed.netloc:
            raise ConfigError(f"{field_name} missing hostname: {url}")


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "fedora.url")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    value = config
    for key in path.split('.'):
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value


__all__ = ['ConfigLoader', 'deep_merge', 'get_nested']
