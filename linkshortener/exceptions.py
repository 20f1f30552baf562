class LinkShortenerError(Exception):
    """Base exception for all application-specific errors."""

    error_code = 'app:linkshortener_error'


class ConfigurationError(LinkShortenerError):
    """Base exception for all configuration errors."""

    error_code = 'config:configuration_error'


class MissingEnvironmentVariableError(ConfigurationError):
    """Raised when a required environment variable is missing."""

    error_code = 'config:missing_environment_variable_error'


class BadConfigurationError(ConfigurationError):
    """Raised when the application is configured with invalid parameters."""

    error_code = 'config:bad_configuration_error'


class InfrastructureError(LinkShortenerError):
    """Base exception for all infrastructure (AWS) errors."""

    error_code = 'infra:infrastructure_error'


class AppConfigError(InfrastructureError):
    """Raised when AppConfig responds with erroneous data."""

    error_code = 'infra:appconfig_error'


class EntryStoreError(LinkShortenerError):
    """Base exception for entry store rule violations."""

    error_code = 'store:entry_store_error'


class InvalidURLError(EntryStoreError):
    """Raised when the target of an entry is not an absolute URL."""

    error_code = 'store:invalid_url_error'


class InvalidShortcodeError(EntryStoreError):
    """Raised when a requested shortcode contains unsupported characters."""

    error_code = 'store:invalid_shortcode_error'


class IDGenerationExhaustedError(EntryStoreError):
    """Raised when every attempt to find a free random shortcode collided."""

    error_code = 'store:id_generation_exhausted_error'


class EntryExpiredError(EntryStoreError):
    """Raised when an entry is read for a redirect after its expiration date."""

    error_code = 'store:entry_expired_error'


class AuthorizationFailedError(EntryStoreError):
    """Raised when a deletion tag does not match the entry's shortcode."""

    error_code = 'store:authorization_failed_error'
