"""Utility functions for application configuration management.

This module provides a standardized interface for Lambda functions to access
configuration data stored in **AWS AppConfig**. Each environment (`APP_ENV`) has
a dedicated AppConfig *Environment* within the shared AppConfig *Application*
identified by `APP_NAME`. Configuration data is stored as a JSON document under
a configuration profile (typically `backend-config`) and deployed to the
corresponding environment.

The configuration JSON follows this structure:

    {
        "build": 7,
        "active_backend": "redis",
        "shortener": {
            "id_length": 4,
            "location": "",
            "visit_workers": 4,
            "visit_queue_size": 256
        },
        "configs": {
            "shorten_url": {
                "redis": { ... }
            },
            "redirect_url": {
                "redis": { ... }
            }
        }
    }

Each Lambda loads its own section (e.g., `"shorten_url"`) from this AppConfig
document. The loaded configuration is turned once into an immutable `Settings`
value which is handed to the components at construction time.

Typical usage inside a Lambda handler:
    >>> from linkshortener.utils.config import load_settings
    >>> settings = load_settings('shorten_url')
    >>> settings.backend_options['host']
    'redis-15501.host.docker.internal'
"""

import os
import json
import functools
import urllib.parse
import urllib.request
import logging
from dataclasses import dataclass, field
from collections.abc import Callable
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from linkshortener.types import AppConfig, LambdaConfiguration
from linkshortener.constants import ENV, Defaults
from linkshortener.utils.helpers import require_environment
from linkshortener.utils.runtime import running_locally
from linkshortener.utils.signing import resolve_signing_key
from linkshortener.exceptions import AppConfigError, BadConfigurationError


logger = logging.getLogger(__name__)


def app_env() -> str:
    return os.environ.get(ENV.App.APP_ENV, 'local').lower()


def app_name() -> str | None:
    return os.environ.get(ENV.App.APP_NAME)


def app_prefix() -> str | None:
    return None if app_name() is None else f'{app_name()}:{app_env()}'


@dataclass(frozen=True)
class Settings:
    """Immutable configuration snapshot for one process lifetime

    Attributes:
        backend (str):
            Name of the active data store backend (e.g. 'redis').
        backend_options (dict[str, Any]):
            Connection parameters of the active backend.
        signing_key (bytes):
            Process-wide key for deletion tags.
        id_length (int):
            Length of generated shortcodes.
        location (str):
            Path prefix under which the service is publicly mounted.
        visit_workers (int):
            Background threads registering visits.
        visit_queue_size (int):
            Visits allowed in flight before new ones are dropped.
        prefix (str | None):
            Namespace prefix for data store keys.
    """

    backend: str
    backend_options: dict[str, Any] = field(hash=False)
    signing_key: bytes = field(repr=False)
    id_length: int = Defaults.ID_LENGTH
    location: str = ''
    visit_workers: int = Defaults.VISIT_WORKERS
    visit_queue_size: int = Defaults.VISIT_QUEUE_SIZE
    prefix: str | None = None

    def __post_init__(self):
        if not self.backend:
            raise BadConfigurationError('No active backend configured.')
        if not isinstance(self.id_length, int) or self.id_length < 1:
            raise BadConfigurationError(f'Shortcode length must be a positive integer (given value: {self.id_length!r}).')
        if not self.signing_key:
            raise BadConfigurationError('Signing key must not be empty.')
        if self.visit_workers < 1 or self.visit_queue_size < 1:
            raise BadConfigurationError('Visit workers and visit queue size must be positive.')

    @classmethod
    def from_config(cls, config: LambdaConfiguration, signing_key: bytes, prefix: str | None = None) -> 'Settings':
        """Build settings from the output of load_config()

        Raises:
            BadConfigurationError:
                If the configuration is incomplete or holds invalid values.
        """
        try:
            backend = config['backend']
            backend_options = dict(config[backend])
        except (KeyError, TypeError) as e:
            raise BadConfigurationError(f'Missing backend configuration: {e}') from e

        shortener = config.get('shortener') or {}
        return cls(
            backend=backend,
            backend_options=backend_options,
            signing_key=signing_key,
            id_length=shortener.get('id_length', Defaults.ID_LENGTH),
            location=shortener.get('location', ''),
            visit_workers=shortener.get('visit_workers', Defaults.VISIT_WORKERS),
            visit_queue_size=shortener.get('visit_queue_size', Defaults.VISIT_QUEUE_SIZE),
            prefix=prefix,
        )


def _lambda_section(config: AppConfig, lambda_name: str) -> LambdaConfiguration:
    """Extract the active backend config for this lambda from the full document"""
    try:
        backend = config['active_backend']
        data = {
            'backend': backend,
            backend: config['configs'][lambda_name][backend],
            'shortener': config.get('shortener', {}),
        }
    except (KeyError, TypeError) as e:
        raise AppConfigError(f"AppConfig document has no '{lambda_name}' section for the active backend.") from e
    return data


def _sam_load_local_appconfig(func: Callable) -> Callable:  # pragma: no cover
    """Decorator: load AppConfig from a local AppConfig Agent when running under SAM.

    Behavior:
        - If the application is running locally and `APPCONFIG_AGENT_URL` is set
          to a safe local URL, fetch the app configuration JSON from the local
          AppConfig agent.
        - Else, call the wrapped function (which pulls from AWS AppConfig via boto3).

    Environment variables used:
        APPCONFIG_AGENT_URL     : Base URL of the local AppConfig Agent (e.g., http://appconfig-agent:2772).
        APPCONFIG_PROFILE_NAME  : Optional profile name (default: "backend-config").
    """

    # ruff: noqa: E701
    def __validate_appconfig_url(url: str) -> str:
        if not url:
            return ''
        components = urllib.parse.urlparse(url)
        if components.scheme not in {'http', 'https'}:
            raise BadConfigurationError(f'Bad scheme {url}')
        if components.hostname not in {'localhost', '127.0.0.1', 'host.docker.internal', 'appconfig-agent'}:
            raise BadConfigurationError(f'Bad host {url}')
        if components.port not in {2772, None}:
            raise BadConfigurationError(f'Bad port {url}')
        return url

    # ruff: enable

    @functools.wraps(func)
    def wrapper(lambda_name: str) -> LambdaConfiguration:
        agent_url = __validate_appconfig_url(os.getenv(ENV.AppConfig.AGENT_URL))
        if not running_locally() or not agent_url:
            return func(lambda_name)

        profile_name = os.getenv(ENV.AppConfig.PROFILE_NAME, 'backend-config')
        url = f'{agent_url}/applications/{app_name()}/environments/{app_env()}/configurations/{profile_name}'

        logger.debug('Trying to load AppConfig from local agent.', extra={'agentUrl': url, 'lambdaName': lambda_name})
        with urllib.request.urlopen(url, timeout=5) as r:  # noqa: S310
            config = json.load(r)

        data = _lambda_section(config, lambda_name)
        logger.debug('Loaded AppConfig from local agent.', extra={'lambdaName': lambda_name, 'build': config.get('build')})
        return data

    return wrapper


@_sam_load_local_appconfig
@require_environment(ENV.AppConfig.APP_ID, ENV.AppConfig.ENV_ID, ENV.AppConfig.PROFILE_ID)
def load_config(lambda_name: str) -> LambdaConfiguration:
    """Load configuration for a given Lambda from AWS AppConfig.

    Fetches the AppConfig JSON once and returns the section relevant
    to the requested Lambda function (e.g., 'shorten_url', 'redirect_url'):

        {'backend': 'redis', 'redis': {...}, 'shortener': {...}}

    Raises:
        MissingEnvironmentVariableError:
            If the AppConfig identifiers are not set.
        AppConfigError:
            If AppConfig cannot be reached or returns a malformed document.
    """
    logger.debug('Trying to load AppConfig from AWS AppConfig.', extra={'lambdaName': lambda_name})

    appconfig = boto3.client('appconfigdata')

    try:
        # Start an AppConfig data session
        session_token = appconfig.start_configuration_session(
            ApplicationIdentifier=os.environ[ENV.AppConfig.APP_ID],
            EnvironmentIdentifier=os.environ[ENV.AppConfig.ENV_ID],
            ConfigurationProfileIdentifier=os.environ[ENV.AppConfig.PROFILE_ID],
        )['InitialConfigurationToken']

        # Fetch the configuration
        response = appconfig.get_latest_configuration(ConfigurationToken=session_token)
        content = response['Configuration'].read()
    except (BotoCoreError, ClientError, KeyError) as e:
        raise AppConfigError('Could not fetch configuration from AWS AppConfig.') from e

    try:
        config = json.loads(content.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise AppConfigError('AppConfig returned a document which is not valid JSON.') from e

    data = _lambda_section(config, lambda_name)
    logger.debug('Loaded AppConfig from AWS AppConfig.', extra={'lambdaName': lambda_name, 'build': config.get('build')})
    return data


def load_settings(lambda_name: str) -> Settings:
    """Load the immutable Settings of a Lambda: AppConfig section + signing key"""
    return Settings.from_config(load_config(lambda_name), signing_key=resolve_signing_key(), prefix=app_prefix())
