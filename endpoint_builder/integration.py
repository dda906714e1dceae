"""
Attach the Lambda integration to an endpoint's method.
"""

import logging

from .aws import remote_call, without_metadata
from .models import BuildContext

logger = logging.getLogger(__name__)

INTEGRATION_TYPE = 'AWS'
INTEGRATION_HTTP_METHOD = 'POST'
LAMBDA_API_VERSION = '2015-03-31'


def alias_placeholder(variable: str = 'functionAlias') -> str:
    """Stage variable reference resolved by API Gateway at invocation time."""
    return '${stageVariables.' + variable + '}'


def invocation_uri(region: str, account_id: str, function_name: str, alias: str) -> str:
    """API Gateway URI that invokes one alias of a Lambda function."""
    function_arn = f"arn:aws:lambda:{region}:{account_id}:function:{function_name}:{alias}"
    return (f"arn:aws:apigateway:{region}:lambda:path/{LAMBDA_API_VERSION}"
            f"/functions/{function_arn}/invocations")


class IntegrationConfigurer:
    """Points the method at the endpoint's Lambda function."""

    name = 'configure_integration'

    def __init__(self, apigateway_client, alias_variable: str = 'functionAlias'):
        self.apigateway_client = apigateway_client
        self.alias_variable = alias_variable

    def run(self, ctx: BuildContext) -> BuildContext:
        endpoint = ctx.endpoint
        alias = ctx.alias or alias_placeholder(self.alias_variable)
        uri = invocation_uri(ctx.region.region, ctx.account_id,
                             ctx.function.function_name, alias)

        # No credentials on the integration: they add ~500ms per request.
        # The Lambda's resource policy grants API Gateway access instead.
        response = remote_call(
            self.name, 'PutIntegration', self.apigateway_client.put_integration,
            restApiId=ctx.region.rest_api_id,
            resourceId=ctx.resource.id,
            httpMethod=endpoint.method,
            type=INTEGRATION_TYPE,
            integrationHttpMethod=INTEGRATION_HTTP_METHOD,
            uri=uri,
            requestParameters=endpoint.request_parameters,
            requestTemplates=endpoint.request_templates,
            cacheKeyParameters=endpoint.cache_key_parameters or [],
            cacheNamespace=endpoint.cache_namespace,
        )

        logger.info(
            f"{ctx.label}: created integration with the type: {INTEGRATION_TYPE}")
        return ctx.evolve(integration=without_metadata(response))
