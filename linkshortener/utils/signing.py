"""Deletion tags: keyed MACs over shortcodes

A deletion tag is HMAC-SHA512(signing key, shortcode). It is handed to the
creator of an entry and recomputed on every deletion request, so the data
store never keeps a per-entry secret. The signing key is loaded once per
process and never rotated within its lifetime.

Classes:
    Signer:
        Compute and verify deletion tags.

Functions:
    encode_tag(tag) -> str / decode_tag(text) -> bytes
        Unpadded base64url representation used in deletion URLs.
    resolve_signing_key(secrets_client=None) -> bytes
        Load the process-wide signing key (Secrets Manager, or SIGNING_KEY locally).

Example:
    >>> signer = Signer(b'secret')
    >>> tag = signer.sign('aBcD')
    >>> signer.verify('aBcD', tag)
    True
    >>> signer.verify('aBcE', tag)
    False
"""

import base64
import binascii
import hashlib
import hmac
import json
import logging
import os
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from linkshortener.types import SecretsManagerClient
from linkshortener.constants import ENV
from linkshortener.exceptions import BadConfigurationError, InfrastructureError
from linkshortener.utils.helpers import require_environment
from linkshortener.utils.runtime import running_locally


logger = logging.getLogger(__name__)


class Signer:
    """Compute deletion tags with HMAC-SHA512 under a process-wide key"""

    digestmod = hashlib.sha512

    def __init__(self, key: bytes | str):
        if isinstance(key, str):
            key = key.encode('utf-8')
        if not key:
            raise BadConfigurationError('Signing key must not be empty.')
        self._key = key

    def sign(self, shortcode: str) -> bytes:
        return hmac.new(self._key, shortcode.encode('utf-8'), self.digestmod).digest()

    def verify(self, shortcode: str, tag: bytes) -> bool:
        """Constant-time comparison of `tag` with the expected tag of `shortcode`"""
        return hmac.compare_digest(self.sign(shortcode), tag)


def encode_tag(tag: bytes) -> str:
    return base64.urlsafe_b64encode(tag).rstrip(b'=').decode('ascii')


def decode_tag(text: str) -> bytes:
    """Decode an unpadded base64url deletion tag

    Raises:
        ValueError: If `text` is not valid base64url.
    """
    padded = text + '=' * (-len(text) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode('ascii'))
    except (binascii.Error, UnicodeEncodeError) as e:
        raise ValueError(f'Malformed deletion tag: {text!r}') from e


def resolve_signing_key(secrets_client: Optional[SecretsManagerClient] = None) -> bytes:
    """Load the process-wide signing key

    When running locally and SIGNING_KEY is set, its value is used as is.
    Otherwise the Secrets Manager secret named by SIGNING_KEY_SECRET is read
    (LocalStack in local mode). The secret is either a JSON object
    {"signing_key": "..."} or the raw key string.

    Raises:
        MissingEnvironmentVariableError:
            If SIGNING_KEY_SECRET is missing.
        InfrastructureError:
            On AWS Secrets Manager API failures.
        BadConfigurationError:
            If the secret holds no usable key.
    """
    local_key = os.environ.get(ENV.Signing.KEY)
    if running_locally() and local_key:
        logger.debug('Using signing key from environment.')
        return local_key.encode('utf-8')

    return _resolve_secret_signing_key(secrets_client)


@require_environment(ENV.Signing.SECRET)
def _resolve_secret_signing_key(secrets_client: Optional[SecretsManagerClient]) -> bytes:
    secret_name = os.environ[ENV.Signing.SECRET]
    # fmt: off
    secrets_client_kwargs = {
        'endpoint_url': os.environ.get(ENV.LocalStack.ENDPOINT, 'http://localhost:4566'),
    } if running_locally() else {}
    # fmt: on
    sm = secrets_client or boto3.client('secretsmanager', **secrets_client_kwargs)

    try:
        raw = sm.get_secret_value(SecretId=secret_name).get('SecretString') or ''
    except (BotoCoreError, ClientError) as e:
        raise InfrastructureError(f"Could not read signing key secret '{secret_name}'.") from e

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        key = raw
    else:
        key = payload.get('signing_key', '') if isinstance(payload, dict) else ''

    if not key:
        raise BadConfigurationError(f"Secret '{secret_name}' does not contain a signing key.")

    logger.debug('Loaded signing key from Secrets Manager.', extra={'secretName': secret_name})
    return key.encode('utf-8')
