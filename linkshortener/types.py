from typing import Any

from botocore.client import BaseClient


# API Gateway proxy integration
type LambdaEvent = dict[str, Any]
type LambdaContext = Any
type LambdaResponse = dict[str, Any]

# AppConfig document and the per-lambda section of it
type AppConfig = dict[str, Any]
type LambdaConfiguration = dict[str, Any]

# Records as stored in Redis (JSON strings, bytes without decode_responses)
type RedisBlob = str | bytes
type EntryRecord = dict[str, Any]
type VisitorRecord = dict[str, Any]

# boto3 clients
type SecretsManagerClient = BaseClient
