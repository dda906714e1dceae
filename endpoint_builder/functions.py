"""
Resolve the deployed Lambda function behind an endpoint.
"""

import logging

from .aws import remote_call
from .errors import NotFound, ProvisionError
from .models import BuildContext, FunctionDescriptor

logger = logging.getLogger(__name__)


def lambda_name(project: str, function: str) -> str:
    """Remote function name for a declared function of a project."""
    return f"{project}-{function.replace('/', '-')}"


class FunctionFetcher:
    """Fetches the Lambda version an endpoint integrates with.

    The qualifier is the explicit alias when one is given, otherwise the
    stage, matching the alias the integration URI resolves to.
    """

    name = 'fetch_function'

    def __init__(self, lambda_client, project: str):
        self.lambda_client = lambda_client
        self.project = project

    def run(self, ctx: BuildContext) -> BuildContext:
        function_name = lambda_name(self.project, ctx.endpoint.function)
        qualifier = ctx.alias or ctx.stage

        try:
            response = remote_call(
                self.name, 'GetFunction', self.lambda_client.get_function,
                FunctionName=function_name,
                Qualifier=qualifier,
            )
        except NotFound as e:
            raise ProvisionError(
                f"Lambda function {function_name} has no version or alias {qualifier}",
                stage=self.name, code='ResourceNotFoundException',
                operation='GetFunction') from e

        configuration = response['Configuration']
        descriptor = FunctionDescriptor(
            name=ctx.endpoint.function,
            function_name=configuration['FunctionName'],
            function_arn=configuration['FunctionArn'],
        )
        logger.debug(f"{ctx.label}: using Lambda {descriptor.function_arn}")
        return ctx.evolve(function=descriptor)
