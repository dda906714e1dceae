"""
Validate and canonicalize a declared endpoint before any remote call.
"""

from typing import Any, Dict, Mapping

from .errors import ValidationError
from .models import EndpointSpec, ResponseSpec

# Checked in this order; the first missing one is reported.
REQUIRED_FIELDS = (
    'path',
    'method',
    'authorizationType',
    'apiKeyRequired',
    'requestTemplates',
    'requestParameters',
    'responses',
    'function',
)

# Must be present and non-empty.
REQUIRED_VALUES = {'path', 'method', 'authorizationType', 'function'}


def statement_id_for(path: str, method: str) -> str:
    """Stable permission statement id for one path + method."""
    return f"s-apig-{path}-{method}".replace('/', '_')


def canonical_path(path: str) -> str:
    """Path without leading, trailing or repeated slashes; "" is the root."""
    return '/'.join(segment for segment in path.split('/') if segment)


def normalize_endpoint(raw: Mapping[str, Any]) -> EndpointSpec:
    """Return the normalized EndpointSpec for a raw endpoint declaration."""
    for name in REQUIRED_FIELDS:
        value = raw.get(name)
        if value is None or (name in REQUIRED_VALUES and value == ''):
            raise ValidationError(name)

    if not isinstance(raw['apiKeyRequired'], bool):
        raise ValidationError('apiKeyRequired',
                              '"apiKeyRequired" must be true or false')
    for name in ('requestTemplates', 'requestParameters', 'responses'):
        if not isinstance(raw[name], Mapping):
            raise ValidationError(name, f'"{name}" must be a mapping')

    path = canonical_path(str(raw['path']))
    method = str(raw['method']).upper()

    return EndpointSpec(
        path=path,
        method=method,
        authorization_type=raw['authorizationType'],
        api_key_required=raw['apiKeyRequired'],
        request_templates=dict(raw['requestTemplates']),
        request_parameters=dict(raw['requestParameters']),
        responses=_normalize_responses(raw['responses']),
        statement_id=statement_id_for(path, method),
        function=str(raw['function']),
        request_models=raw.get('requestModels'),
        cache_key_parameters=raw.get('cacheKeyParameters'),
        cache_namespace=raw.get('cacheNamespace'),
    )


def _normalize_responses(responses: Mapping[str, Any]) -> Dict[str, ResponseSpec]:
    normalized = {}
    for key, response in responses.items():
        key = str(key)
        if not isinstance(response, Mapping) or response.get('statusCode') in (None, ''):
            raise ValidationError(f"responses.{key}.statusCode")
        normalized[key] = ResponseSpec(
            status_code=str(response['statusCode']),
            response_parameters=dict(response.get('responseParameters') or {}),
            response_models=dict(response.get('responseModels') or {}),
            response_templates=dict(response.get('responseTemplates') or {}),
            selection_pattern=response.get('selectionPattern'),
        )
    return normalized
