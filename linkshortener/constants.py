from enum import StrEnum


class TTL:
    """TTL durations in seconds."""

    # Minimum lifetime granted to an entry with an expiration date
    EXPIRATION_FLOOR = 60


class Defaults:
    """Default values for the entry store."""

    ID_LENGTH = 4  # Length of generated shortcodes
    CREATE_ATTEMPTS = 10  # Attempts to find a free random shortcode
    BCRYPT_ROUNDS = 10  # bcrypt cost factor for password hashes
    VISIT_WORKERS = 4  # Background threads registering visits
    VISIT_QUEUE_SIZE = 256  # Visits allowed in flight before new ones are dropped


class ENV:
    """Environment variable names."""

    class App(StrEnum):
        APP_ENV = 'APP_ENV'
        APP_NAME = 'APP_NAME'
        AWS_SAM_LOCAL = 'AWS_SAM_LOCAL'
        LOG_LEVEL = 'LOG_LEVEL'

    class AppConfig(StrEnum):
        APP_ID = 'APPCONFIG_APP_ID'
        ENV_ID = 'APPCONFIG_ENV_ID'
        PROFILE_ID = 'APPCONFIG_PROFILE_ID'
        AGENT_URL = 'APPCONFIG_AGENT_URL'
        PROFILE_NAME = 'APPCONFIG_PROFILE_NAME'

    class Signing(StrEnum):
        # Secrets Manager name holding {"signing_key": "..."} or the raw key
        SECRET = 'SIGNING_KEY_SECRET'  # noqa: S105
        # Plain key, honoured only when running locally
        KEY = 'SIGNING_KEY'

    class LocalStack(StrEnum):
        ENDPOINT = 'LOCALSTACK_ENDPOINT'  # usually http://localstack:4566


# Error codes
UNKNOWN_INTERNAL_SERVER_ERROR = 'UNKNOWN_INTERNAL_SERVER_ERROR'
