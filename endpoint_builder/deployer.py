"""
Deploy many endpoints across regions concurrently.

Each (endpoint, region) pair is built independently on a worker thread.
Builds share nothing but the per-API resource tree locks.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .aws import AwsClients, make_clients, remote_call
from .builder import EndpointBuilder
from .config import Settings
from .errors import EndpointBuilderError
from .models import DeployTarget, EndpointOutcome, RegionContext

logger = logging.getLogger(__name__)


class EndpointDeployer:
    """Runs one EndpointBuilder build per target on a thread pool."""

    def __init__(self, builder: EndpointBuilder, max_workers: Optional[int] = None):
        self.builder = builder
        self.max_workers = max_workers or builder.settings.max_workers

    def deploy(self, targets: Sequence[DeployTarget]) -> List[EndpointOutcome]:
        """Build every target; outcomes are returned in target order."""
        if not targets:
            return []

        logger.info(f"Deploying {len(targets)} endpoint(s) with {self.max_workers} workers")
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(self.deploy_one, target) for target in targets]
            outcomes = [future.result() for future in futures]

        succeeded = sum(1 for outcome in outcomes if outcome.ok)
        logger.info(f"Deployed {succeeded}/{len(outcomes)} endpoint(s)")
        return outcomes

    def deploy_one(self, target: DeployTarget) -> EndpointOutcome:
        try:
            deployed = self.builder.build(target.endpoint, target.region,
                                          target.stage, alias=target.alias)
        except EndpointBuilderError as e:
            logger.error(f"❌ Failed to deploy {target.description}: {e}")
            return EndpointOutcome(target=target, error=e)
        return EndpointOutcome(target=target, deployed=deployed)


class StageDeployer:
    """Publishes converged endpoints by creating an API Gateway deployment."""

    name = 'deploy_stage'

    def __init__(self, settings: Optional[Settings] = None,
                 clients_factory: Callable[[RegionContext, Settings], AwsClients] = make_clients):
        self.settings = settings or Settings()
        self.clients_factory = clients_factory

    def deploy_stage(self, region: RegionContext, stage: str,
                     alias: Optional[str] = None) -> str:
        """Create a deployment for the stage and return its id."""
        clients = self.clients_factory(region, self.settings)
        response = remote_call(
            self.name, 'CreateDeployment', clients.apigateway.create_deployment,
            restApiId=region.rest_api_id,
            stageName=stage,
            description=f"Endpoint deployment for stage {stage}",
            variables={self.settings.alias_stage_variable: alias or stage},
        )
        logger.info(f"✅ Deployed {region.rest_api_id} to {stage} stage in {region.region}")
        logger.info(f"Deployment ID: {response['id']}")
        return response['id']

    def deploy_stages(self, outcomes: Sequence[EndpointOutcome]) -> Dict[Tuple[str, str], str]:
        """Deploy every API that received at least one converged endpoint."""
        deployments: Dict[Tuple[str, str], str] = {}
        for outcome in outcomes:
            if not outcome.ok:
                continue
            target = outcome.target
            key = (target.region.region, target.region.rest_api_id)
            if key in deployments:
                continue
            deployments[key] = self.deploy_stage(target.region, target.stage,
                                                 alias=target.alias)
        return deployments
