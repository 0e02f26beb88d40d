"""
Runtime configuration.

Values come from defaults, then the process environment (a ``.env`` file is
loaded first), then an optional JSON file; later sources win.
"""

import json
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .core.exceptions import ConfigurationError


DEFAULTS: Dict[str, Any] = {
    'host': '0.0.0.0',
    'port': 8000,
    'database_type': 'sqlite',
    'mongodb_uri': None,
    'database_name': 'multigit',
    'sqlite_path': 'multigit.db',
    'cors_origin': 'http://localhost:3000',
    'log_level': 'INFO',
}

# config key -> environment variable
ENVIRONMENT = {
    'host': 'HOST',
    'port': 'PORT',
    'database_type': 'DATABASE_TYPE',
    'mongodb_uri': 'MONGODB_URI',
    'database_name': 'DATABASE_NAME',
    'sqlite_path': 'SQLITE_PATH',
    'cors_origin': 'FRONTEND_URI',
    'log_level': 'LOG_LEVEL',
}


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Build the configuration dict."""
    load_dotenv()
    config = dict(DEFAULTS)

    for key, variable in ENVIRONMENT.items():
        value = os.getenv(variable)
        if value:
            config[key] = value
    if config['mongodb_uri'] and not os.getenv('DATABASE_TYPE'):
        config['database_type'] = 'mongodb'

    if path:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                config.update(json.load(f))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read config file {path}: {e}")

    try:
        config['port'] = int(config['port'])
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid port: {config['port']}")
    if config['database_type'] not in ('sqlite', 'mongodb'):
        raise ConfigurationError(f"Unsupported database type: {config['database_type']}")
    return config


def database_options(config: Dict[str, Any]) -> Dict[str, Any]:
    """Keyword arguments for ``DatabaseFactory.create_database``."""
    if config['database_type'] == 'mongodb':
        return {'uri': config['mongodb_uri'], 'database_name': config['database_name']}
    return {'database_path': config['sqlite_path']}
