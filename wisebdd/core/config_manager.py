"""Configuration management"""
import copy
import os
import re
from pathlib import Path
from typing import Dict, Any, List, Optional

import yaml
from dotenv import find_dotenv, load_dotenv

from wisebdd.core.exceptions import ConfigError
from wisebdd.utils.helpers import deep_get
from wisebdd.utils.logger import setup_logger

logger = setup_logger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    'execution': {
        'fail_fast': False,
        'default_keyword': 'Given',
        'tags': [],
    },
    'parser': {
        'tab_width': 4,
    },
    'logging': {
        'level': 'INFO',
    },
    'parameter_types': [],
}

# ${NAME} or ${NAME:-fallback}
ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}')


class ConfigManager:
    """Manages configuration loading and merging"""

    def __init__(self, config_path: Optional[str] = None, environment: Optional[str] = None,
                 env_file: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self.environment = environment
        self.env_file = env_file
        self.config = copy.deepcopy(DEFAULT_CONFIG)

    def load_config(self) -> Dict[str, Any]:
        """Load defaults, the config file and the environment file, then expand ${VAR} values"""
        self._load_env_file()

        layers: List[Dict[str, Any]] = []
        if self.config_path is not None:
            if self.config_path.exists():
                layers.append(self._read_yaml(self.config_path))
            else:
                logger.warning(f"Config file not found: {self.config_path}, using defaults")

            if self.environment:
                env_config_path = self.config_path.parent / 'environments' / f'{self.environment}.yaml'
                if env_config_path.exists():
                    layers.append(self._read_yaml(env_config_path))
                else:
                    logger.warning(f"Environment config not found: {env_config_path}")

        config = copy.deepcopy(DEFAULT_CONFIG)
        for layer in layers:
            config = merge_configs(config, layer)
        self.config = expand_env_vars(config)

        logger.info(f"Configuration loaded for environment: {self.environment or 'default'}")
        return self.config

    def _load_env_file(self) -> None:
        """Load the explicit env file, else `.env` beside the config file, else the nearest one from the cwd"""
        if self.env_file:
            env_path = self.env_file
        elif self.config_path is not None and (self.config_path.parent / '.env').is_file():
            env_path = str(self.config_path.parent / '.env')
        else:
            env_path = find_dotenv(usecwd=True)

        if env_path:
            logger.debug(f"Loading environment file: {env_path}")
            load_dotenv(env_path)

    def _read_yaml(self, path: Path) -> Dict[str, Any]:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Could not read config file {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
        return data

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports dot notation)"""
        return deep_get(self.config, key, default)


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge; mappings merge key by key, any other value replaces the base value"""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_configs(current, value)
        else:
            merged[key] = value
    return merged


def expand_env_vars(value: Any) -> Any:
    """Expand ${VAR} and ${VAR:-fallback} inside strings; unknown variables without fallback stay as written"""
    if isinstance(value, dict):
        return {key: expand_env_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(item) for item in value]
    if not isinstance(value, str) or '${' not in value:
        return value

    def replace(match: re.Match) -> str:
        name, fallback = match.group(1), match.group(2)
        if name in os.environ:
            return os.environ[name]
        return fallback if fallback is not None else match.group(0)

    return ENV_VAR_PATTERN.sub(replace, value)
