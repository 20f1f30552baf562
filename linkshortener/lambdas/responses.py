"""API Gateway proxy responses shared by the lambda handlers"""

import json
from typing import Any

from linkshortener.types import LambdaResponse


CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'Content-Type',
    'Access-Control-Allow-Methods': 'OPTIONS,POST,GET,DELETE',
}


def response_json(status: int, body: dict[str, Any] | list[Any], headers: dict[str, str] | None = None) -> LambdaResponse:
    return {
        'statusCode': status,
        'headers': {'Content-Type': 'application/json', **CORS_HEADERS, **(headers or {})},
        'body': json.dumps(body),
    }


def response_200(body: dict[str, Any] | list[Any]) -> LambdaResponse:
    return response_json(200, body)


def response_302(*, location: str) -> LambdaResponse:
    return {
        'statusCode': 302,
        'headers': {'Location': location, **CORS_HEADERS},
        'body': json.dumps({}),  # no body needed for redirects
    }


def response_error(status: int, base: str, message: str | None = None, error_code: str | None = None) -> LambdaResponse:
    body = {'message': base if not message else f'{base} ({message})'}
    if error_code:
        body['errorCode'] = error_code
    return response_json(status, body)


def response_400(message: str | None = None, error_code: str | None = None) -> LambdaResponse:
    return response_error(400, 'Bad Request', message, error_code)


def response_401(message: str | None = None, error_code: str | None = None) -> LambdaResponse:
    return response_error(401, 'Unauthorized', message, error_code)


def response_403(message: str | None = None, error_code: str | None = None) -> LambdaResponse:
    return response_error(403, 'Forbidden', message, error_code)


def response_404(message: str | None = None, error_code: str | None = None) -> LambdaResponse:
    return response_error(404, 'Not Found', message, error_code)


def response_409(message: str | None = None, error_code: str | None = None) -> LambdaResponse:
    return response_error(409, 'Conflict', message, error_code)


def response_410(message: str | None = None, error_code: str | None = None) -> LambdaResponse:
    return response_error(410, 'Gone', message, error_code)


def response_500(message: str | None = None, error_code: str | None = None) -> LambdaResponse:
    return response_error(500, 'Internal Server Error', message, error_code)
