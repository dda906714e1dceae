"""
Build one endpoint on API Gateway in one region.

The build is a fixed sequence of stages, each taking the context produced
by the previous one. Any failure stops the build and is raised with the
failing stage attached. Nothing is rolled back: every stage converges
from whatever state it finds, so re-running a failed build repairs it.
"""

import logging
import re
import time
from typing import Any, Callable, List, Mapping, Optional

from .aws import AwsClients, make_clients
from .config import Settings
from .errors import EndpointBuilderError, NotFound, ProvisionError
from .functions import FunctionFetcher
from .integration import IntegrationConfigurer
from .methods import MethodReconciler
from .models import BuildContext, DeployedEndpoint, RegionContext
from .normalizer import normalize_endpoint
from .permissions import PermissionManager
from .resources import ResourcePathResolver, ResourceTreeLocks
from .responses import ResponseMapper

logger = logging.getLogger(__name__)

ACCOUNT_ID_PATTERN = re.compile(r'^[0-9]{12}$')


def endpoint_url(rest_api_id: str, region: str, stage: str, path: str) -> str:
    """Public invoke URL of a deployed endpoint."""
    return f"https://{rest_api_id}.execute-api.{region}.amazonaws.com/{stage}/{path}"


class EndpointBuilder:
    """Converges a single endpoint. One instance may serve concurrent builds."""

    def __init__(self, project: str, settings: Optional[Settings] = None,
                 clients_factory: Callable[[RegionContext, Settings], AwsClients] = make_clients,
                 locks: Optional[ResourceTreeLocks] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.project = project
        self.settings = settings or Settings()
        self.clients_factory = clients_factory
        self.locks = locks
        self.sleep = sleep

    def stages(self, clients: AwsClients) -> List[Any]:
        """Pipeline stages after preparation, in execution order."""
        return [
            FunctionFetcher(clients.lambda_client, self.project),
            ResourcePathResolver(
                clients.apigateway,
                locks=self.locks,
                page_size=self.settings.resource_page_size,
                fail_on_duplicates=self.settings.fail_on_duplicate_resources,
            ),
            MethodReconciler(clients.apigateway,
                             settle_delay=self.settings.settle_delay,
                             sleep=self.sleep),
            IntegrationConfigurer(clients.apigateway,
                                  alias_variable=self.settings.alias_stage_variable),
            ResponseMapper(clients.apigateway),
            PermissionManager(clients.lambda_client),
        ]

    def build(self, endpoint: Mapping[str, Any], region: RegionContext, stage: str,
              alias: Optional[str] = None) -> DeployedEndpoint:
        """Converge one declared endpoint and return where it is reachable."""
        try:
            spec = normalize_endpoint(endpoint)
        except EndpointBuilderError as e:
            method = endpoint.get('method')
            raise e.bind(stage='normalize', path=endpoint.get('path'),
                         method=str(method).upper() if method else None,
                         region=region.region)

        ctx = BuildContext(endpoint=spec, region=region, stage=stage, alias=alias)

        ctx = self._run('prepare', self.prepare, ctx)
        clients = self._run('prepare', self._clients, ctx)
        for step in self.stages(clients):
            ctx = self._run(step.name, step.run, ctx)

        url = endpoint_url(region.rest_api_id, region.region, stage, spec.path)
        ctx = ctx.evolve(url=url)

        logger.info(
            f'✅ "{stage}" successfully deployed endpoint to API Gateway in the region '
            f'"{region.region}". Access it via {spec.method} @ {url}')

        return DeployedEndpoint(
            path=spec.path,
            method=spec.method,
            url=url,
            region=region.region,
            stage=stage,
            function_name=ctx.function.function_name,
            lambda_arn=ctx.function.function_arn,
            statement_id=spec.statement_id,
            resource_id=ctx.resource.id,
            warnings=ctx.permission_warnings,
        )

    def prepare(self, ctx: BuildContext) -> BuildContext:
        """Derive the AWS account id from the region's execution role."""
        account_id = ctx.region.account_id
        if not ACCOUNT_ID_PATTERN.match(account_id):
            raise ProvisionError(
                f"Cannot derive an AWS account id from role {ctx.region.execution_role_arn!r}",
                stage='prepare')
        return ctx.evolve(account_id=account_id)

    def _clients(self, ctx: BuildContext) -> AwsClients:
        return self.clients_factory(ctx.region, self.settings)

    def _run(self, stage: str, fn: Callable, ctx: BuildContext):
        identity = {
            'path': ctx.endpoint.path,
            'method': ctx.endpoint.method,
            'region': ctx.region.region,
        }
        try:
            return fn(ctx)
        except NotFound as e:
            # A missing object here means something vanished mid-build.
            logger.error(f"❌ {ctx.label}: {stage} failed: {e.message}")
            raise ProvisionError(e.message, stage=stage, code='NotFound',
                                 operation=e.operation).bind(**identity) from e
        except EndpointBuilderError as e:
            logger.error(f"❌ {ctx.label}: {stage} failed: {e.message}")
            raise e.bind(stage=stage, **identity)
        except Exception as e:
            logger.error(f"❌ {ctx.label}: {stage} failed: {e}")
            raise ProvisionError(str(e), stage=stage).bind(**identity) from e
