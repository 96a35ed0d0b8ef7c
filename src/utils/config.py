"""
OpenImmo Sync - Configuration
Settings come from the environment (a local .env via python-dotenv) or, with
ENVIRONMENT=production, from AWS SSM Parameter Store below AWS_SSM_PREFIX.
"""

import logging
import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


class ConfigurationError(Exception):
    """Raised when a required setting cannot be resolved."""
    pass


class Config:
    """Reads settings from the environment or from SSM, depending on ENVIRONMENT."""

    def __init__(self):
        self.environment = os.getenv('ENVIRONMENT', 'local')
        self._ssm_client = None

    @property
    def is_production(self) -> bool:
        return self.environment == 'production'

    @property
    def is_local(self) -> bool:
        return self.environment == 'local'

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Look up a setting.

        Args:
            key: Setting name, e.g. DB_HOST
            default: Returned when the setting is missing

        Returns:
            The value, or default

        Raises:
            ConfigurationError: In production, if SSM has no value and no
                default is given
        """
        if self.is_production:
            return self._get_from_ssm(key, default)
        return os.getenv(key, default)

    def _ssm(self):
        if self._ssm_client is None:
            import boto3
            self._ssm_client = boto3.client('ssm', region_name=os.getenv('AWS_REGION', 'eu-central-1'))
        return self._ssm_client

    def _get_from_ssm(self, key: str, default: Optional[str]) -> Optional[str]:
        parameter_name = f"{os.getenv('AWS_SSM_PREFIX', '/openimmo')}/{key}"
        client = self._ssm()

        try:
            response = client.get_parameter(Name=parameter_name, WithDecryption=True)
        except client.exceptions.ParameterNotFound:
            if default is not None:
                return default
            raise ConfigurationError(f"Parameter '{key}' not found in SSM at '{parameter_name}'.")
        except Exception as e:
            if default is not None:
                logging.warning(f"Reading SSM parameter '{key}' failed ({type(e).__name__}: {e}), using default")
                return default
            raise ConfigurationError(f"Reading SSM parameter '{key}' failed: {type(e).__name__}: {e}")

        return response['Parameter']['Value']

    def get_int(self, key: str, default: int) -> int:
        """Integer setting; invalid values fall back to default."""
        value = self.get(key, str(default))
        try:
            return int(value)
        except (ValueError, TypeError):
            logging.warning(f"Setting '{key}' is not an integer ('{value}'), using {default}")
            return default

    def get_bool(self, key: str, default: bool) -> bool:
        value = self.get(key, str(default))
        if value is None:
            return default
        return value.lower() in ('true', '1', 'yes', 'on')


config = Config()


# Database configuration (the Contao database holding cc_fiba_* and tl_files)
DB_HOST = config.get('DB_HOST', 'localhost')
DB_PORT = config.get_int('DB_PORT', 3306)
DB_NAME = config.get('DB_NAME', 'contao')
DB_USER = config.get('DB_USER', 'root')
DB_PASSWORD = config.get('DB_PASSWORD', '')

# Logging configuration
LOG_LEVEL = config.get('LOG_LEVEL', 'INFO')

# Resource storage layout: <project_dir>/<upload_path>/<immo_dir>/<provider>/<object>/
OPENIMMO_PROJECT_DIR = config.get('OPENIMMO_PROJECT_DIR', os.getcwd())
OPENIMMO_UPLOAD_PATH = config.get('OPENIMMO_UPLOAD_PATH', 'files')
OPENIMMO_IMMO_DIR = config.get('OPENIMMO_IMMO_DIR', 'openimmo')

# Import runs
OPENIMMO_MAX_FILES = config.get_int('OPENIMMO_MAX_FILES', 1)

# Housekeeping: resource directories of objects unpublished longer than this are removed
OPENIMMO_PRUNE_DAYS = config.get_int('OPENIMMO_PRUNE_DAYS', 10)

# Database connection pool settings
DB_POOL_SIZE = 5
DB_POOL_MAX_OVERFLOW = 10
DB_POOL_RECYCLE = 3600  # Recycle connections after 1 hour
DB_POOL_PRE_PING = True  # Health check connections before use
