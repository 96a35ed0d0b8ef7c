"""
OpenImmo Sync - Configuration Unit Tests

Tests the Config class with:
- Environment variable loading
- AWS SSM Parameter Store integration (mocked)
- Type conversions (int, bool)
- Import settings and their defaults
"""

import pytest
import os
from unittest.mock import patch, MagicMock


class ParameterNotFound(Exception):
    pass


def _ssm_client(side_effect=None, value=None):
    mock_ssm = MagicMock()
    mock_ssm.exceptions = MagicMock()
    mock_ssm.exceptions.ParameterNotFound = ParameterNotFound
    if side_effect is not None:
        mock_ssm.get_parameter.side_effect = side_effect
    else:
        mock_ssm.get_parameter.return_value = {'Parameter': {'Value': value}}
    return mock_ssm


# ============================================================================
# Test Class: Config - Local Mode (Environment Variables)
# ============================================================================

class TestConfigLocalMode:
    """Config reads from the environment (or .env) outside of production."""

    def test_config_defaults_to_local_environment(self):
        with patch.dict(os.environ, {}, clear=True):
            from utils.config import Config
            config = Config()
            assert config.environment == 'local'
            assert config.is_local is True
            assert config.is_production is False

    def test_get_returns_environment_variable_in_local_mode(self):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local', 'OPENIMMO_IMMO_DIR': 'immo'}):
            from utils.config import Config
            assert Config().get('OPENIMMO_IMMO_DIR') == 'immo'

    def test_get_returns_default_when_key_not_found(self):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local'}, clear=True):
            from utils.config import Config
            assert Config().get('MISSING_KEY', 'default_value') == 'default_value'

    def test_get_returns_none_when_key_not_found_and_no_default(self):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local'}, clear=True):
            from utils.config import Config
            assert Config().get('MISSING_KEY') is None


# ============================================================================
# Test Class: Config - Production Mode (AWS SSM)
# ============================================================================

class TestConfigProductionMode:
    """Config reads from AWS SSM Parameter Store in production."""

    @patch('boto3.client')
    def test_get_fetches_from_ssm_in_production_mode(self, mock_boto_client):
        """
        Given: ENVIRONMENT='production'
        When: config.get('DB_HOST') is called
        Then: Fetch from SSM at path /openimmo/DB_HOST
        """
        mock_ssm = _ssm_client(value='prod-database.example.com')
        mock_boto_client.return_value = mock_ssm

        with patch.dict(os.environ, {'ENVIRONMENT': 'production'}, clear=True):
            from utils.config import Config
            result = Config().get('DB_HOST')

        mock_boto_client.assert_called_once_with('ssm', region_name='eu-central-1')
        mock_ssm.get_parameter.assert_called_once_with(
            Name='/openimmo/DB_HOST',
            WithDecryption=True
        )
        assert result == 'prod-database.example.com'

    @patch('boto3.client')
    def test_get_uses_custom_ssm_prefix(self, mock_boto_client):
        mock_ssm = _ssm_client(value='custom-database.example.com')
        mock_boto_client.return_value = mock_ssm

        with patch.dict(os.environ, {
            'ENVIRONMENT': 'production',
            'AWS_SSM_PREFIX': '/custom/prefix'
        }):
            from utils.config import Config
            result = Config().get('DB_HOST')

        mock_ssm.get_parameter.assert_called_once_with(
            Name='/custom/prefix/DB_HOST',
            WithDecryption=True
        )
        assert result == 'custom-database.example.com'

    @patch('boto3.client')
    def test_get_returns_default_when_ssm_parameter_not_found(self, mock_boto_client):
        mock_boto_client.return_value = _ssm_client(side_effect=ParameterNotFound("Not found"))

        with patch.dict(os.environ, {'ENVIRONMENT': 'production'}, clear=True):
            from utils.config import Config
            assert Config().get('MISSING_PARAM', 'default_value') == 'default_value'

    @patch('boto3.client')
    def test_get_raises_error_when_ssm_parameter_not_found_and_no_default(self, mock_boto_client):
        from utils.config import Config, ConfigurationError
        mock_boto_client.return_value = _ssm_client(side_effect=ParameterNotFound("Not found"))

        with patch.dict(os.environ, {'ENVIRONMENT': 'production'}, clear=True):
            config = Config()
            with pytest.raises(ConfigurationError) as exc_info:
                config.get('REQUIRED_PARAM')

        assert 'REQUIRED_PARAM' in str(exc_info.value)
        assert '/openimmo/REQUIRED_PARAM' in str(exc_info.value)

    @patch('boto3.client')
    def test_get_returns_default_on_aws_credentials_error(self, mock_boto_client):
        mock_boto_client.return_value = _ssm_client(side_effect=Exception("NoCredentialsError"))

        with patch.dict(os.environ, {'ENVIRONMENT': 'production'}, clear=True):
            from utils.config import Config
            assert Config().get('DB_HOST', 'localhost') == 'localhost'

    @patch('boto3.client')
    def test_ssm_client_is_created_once(self, mock_boto_client):
        mock_boto_client.return_value = _ssm_client(value='x')

        with patch.dict(os.environ, {'ENVIRONMENT': 'production'}, clear=True):
            from utils.config import Config
            config = Config()
            config.get('DB_HOST')
            config.get('DB_NAME')

        assert mock_boto_client.call_count == 1


# ============================================================================
# Test Class: Type Conversion Methods
# ============================================================================

class TestConfigTypeConversions:
    """get_int() and get_bool()."""

    def test_get_int_converts_string_to_integer(self):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local', 'OPENIMMO_PRUNE_DAYS': '30'}):
            from utils.config import Config
            result = Config().get_int('OPENIMMO_PRUNE_DAYS', 10)
            assert result == 30
            assert isinstance(result, int)

    def test_get_int_returns_default_on_invalid_conversion(self):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local', 'OPENIMMO_MAX_FILES': 'many'}):
            from utils.config import Config
            assert Config().get_int('OPENIMMO_MAX_FILES', 1) == 1

    @pytest.mark.parametrize("value", ['true', 'True', '1', 'yes', 'on'])
    def test_get_bool_converts_true_strings(self, value):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local', 'TEST_BOOL': value}):
            from utils.config import Config
            assert Config().get_bool('TEST_BOOL', False) is True

    @pytest.mark.parametrize("value", ['false', '0', 'no', 'off', 'random'])
    def test_get_bool_converts_false_strings(self, value):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local', 'TEST_BOOL': value}):
            from utils.config import Config
            assert Config().get_bool('TEST_BOOL', True) is False


# ============================================================================
# Test Class: Global Configuration Constants
# ============================================================================

class TestGlobalConfigConstants:
    """Module level settings used by the importer and the scripts."""

    def test_database_config_constants_exist(self):
        from utils import config

        for name in ('DB_HOST', 'DB_PORT', 'DB_NAME', 'DB_USER', 'DB_PASSWORD'):
            assert hasattr(config, name)

    def test_import_settings_defaults(self):
        """
        Given: No environment variables set
        When: Reloading the config module
        Then: Import settings fall back to their defaults
        """
        import importlib
        from utils import config as config_module

        try:
            with patch.dict(os.environ, {}, clear=True):
                importlib.reload(config_module)

                assert config_module.DB_PORT == 3306
                assert config_module.OPENIMMO_UPLOAD_PATH == 'files'
                assert config_module.OPENIMMO_IMMO_DIR == 'openimmo'
                assert config_module.OPENIMMO_MAX_FILES == 1
                assert config_module.OPENIMMO_PRUNE_DAYS == 10
        finally:
            importlib.reload(config_module)


class TestConfigurationError:

    def test_configuration_error_is_exception(self):
        from utils.config import ConfigurationError
        assert issubclass(ConfigurationError, Exception)
