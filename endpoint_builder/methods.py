"""
Ensure the declared HTTP method exists on the endpoint's resource.

API Gateway methods cannot be partially updated for the fields managed
here, so an existing method is deleted and created again. Deleting a
method also deletes its integration and responses.
"""

import logging
import time
from typing import Callable, Dict

from .aws import remote_call, without_metadata
from .errors import NotFound
from .models import BuildContext, EndpointSpec

logger = logging.getLogger(__name__)

METHOD_REQUEST_PREFIX = 'method.request.'


def method_request_parameters(endpoint: EndpointSpec) -> Dict[str, bool]:
    """Method request parameters referenced by the integration mapping."""
    return {
        source: True
        for source in endpoint.request_parameters.values()
        if isinstance(source, str) and source.startswith(METHOD_REQUEST_PREFIX)
    }


class MethodReconciler:
    """Creates the method, replacing any existing one."""

    name = 'reconcile_method'

    def __init__(self, apigateway_client, settle_delay: float = 0.25,
                 sleep: Callable[[float], None] = time.sleep):
        self.apigateway_client = apigateway_client
        self.settle_delay = settle_delay
        self.sleep = sleep

    def run(self, ctx: BuildContext) -> BuildContext:
        endpoint = ctx.endpoint
        target = {
            'restApiId': ctx.region.rest_api_id,
            'resourceId': ctx.resource.id,
            'httpMethod': endpoint.method,
        }

        previous_integration = None
        existing = self.get_method(target)
        if existing is not None:
            # Keep the old integration around; deleting the method destroys it.
            previous_integration = existing.get('methodIntegration')
            if previous_integration:
                logger.info(
                    f"{ctx.label}: replacing method with integration {previous_integration.get('uri')}")

            remote_call(self.name, 'DeleteMethod',
                        self.apigateway_client.delete_method, **target)
            logger.info(f"{ctx.label}: deleted existing method: {endpoint.method}")

            # Deletion is acknowledged before it has propagated.
            self.sleep(self.settle_delay)

        response = remote_call(
            self.name, 'PutMethod', self.apigateway_client.put_method,
            authorizationType=endpoint.authorization_type,
            apiKeyRequired=endpoint.api_key_required,
            requestModels=endpoint.request_models,
            requestParameters=method_request_parameters(endpoint),
            **target,
        )
        logger.info(f"{ctx.label}: created method: {endpoint.method}")

        return ctx.evolve(method=without_metadata(response),
                          previous_integration=previous_integration)

    def get_method(self, target: Dict[str, str]):
        """Current method definition, or None if it does not exist yet."""
        try:
            response = remote_call(self.name, 'GetMethod',
                                   self.apigateway_client.get_method, **target)
        except NotFound:
            return None
        return without_metadata(response)
