from linkshortener.utils.config import app_env, app_name, app_prefix, load_config, load_settings, Settings
from linkshortener.utils.helpers import base_url, get_short_url, as_utc, expiration_ttl, require_environment, guarantee_500_response
from linkshortener.utils.shortener import generate_shortcode
from linkshortener.utils.signing import Signer, encode_tag, decode_tag, resolve_signing_key
from linkshortener.utils.logging import initialize_logging


__all__ = [
    'generate_shortcode',
    'app_env',
    'app_name',
    'app_prefix',
    'load_config',
    'load_settings',
    'Settings',
    'base_url',
    'get_short_url',
    'as_utc',
    'expiration_ttl',
    'require_environment',
    'guarantee_500_response',
    'Signer',
    'encode_tag',
    'decode_tag',
    'resolve_signing_key',
    'initialize_logging',
]
