"""
Create method responses and integration responses for an endpoint.
"""

import logging
from typing import Dict, Optional

from .aws import remote_call
from .models import BuildContext, ResponseSpec

logger = logging.getLogger(__name__)

DEFAULT_RESPONSE_KEY = 'default'


def selection_pattern_for(key: str, response: ResponseSpec) -> Optional[str]:
    """Regex matched against Lambda errors to pick this response.

    An explicit pattern wins. The "default" response has none, so it
    handles successful invocations; any other key is used as the pattern.
    """
    if response.selection_pattern:
        return response.selection_pattern
    if key == DEFAULT_RESPONSE_KEY:
        return None
    return key


def response_parameter_flags(response: ResponseSpec) -> Dict[str, bool]:
    return {name: True for name in response.response_parameters}


class ResponseMapper:
    """Declares every response of the endpoint on the method and integration."""

    name = 'map_responses'

    def __init__(self, apigateway_client):
        self.apigateway_client = apigateway_client

    def run(self, ctx: BuildContext) -> BuildContext:
        status_codes = []
        for key, response in ctx.endpoint.responses.items():
            self.put_method_response(ctx, response)
            self.put_integration_response(ctx, key, response)
            status_codes.append(response.status_code)

        return ctx.evolve(response_status_codes=tuple(status_codes))

    def _target(self, ctx: BuildContext, response: ResponseSpec) -> dict:
        return {
            'restApiId': ctx.region.rest_api_id,
            'resourceId': ctx.resource.id,
            'httpMethod': ctx.endpoint.method,
            'statusCode': response.status_code,
        }

    def put_method_response(self, ctx: BuildContext, response: ResponseSpec) -> None:
        remote_call(
            self.name, 'PutMethodResponse',
            self.apigateway_client.put_method_response,
            responseParameters=response_parameter_flags(response),
            responseModels=dict(response.response_models),
            **self._target(ctx, response),
        )
        logger.info(
            f"{ctx.label}: created method response {response.status_code}")

    def put_integration_response(self, ctx: BuildContext, key: str,
                                 response: ResponseSpec) -> None:
        remote_call(
            self.name, 'PutIntegrationResponse',
            self.apigateway_client.put_integration_response,
            responseParameters=dict(response.response_parameters),
            responseTemplates=dict(response.response_templates),
            selectionPattern=selection_pattern_for(key, response),
            **self._target(ctx, response),
        )
        logger.info(
            f"{ctx.label}: created method integration response {response.status_code}")
