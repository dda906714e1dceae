import threading
import time

import pytest

from endpoint_builder.builder import EndpointBuilder
from endpoint_builder.deployer import EndpointDeployer, StageDeployer
from endpoint_builder.errors import ValidationError
from endpoint_builder.models import DeployTarget, EndpointOutcome
from fakes import FakePaginator, clients_factory, users_list_endpoint


@pytest.fixture
def builder(apigateway, lambda_client, settings, locks):
    return EndpointBuilder('acme', settings=settings,
                           clients_factory=clients_factory(apigateway, lambda_client),
                           locks=locks, sleep=lambda seconds: None)


class SlowPaginator(FakePaginator):
    """Widens the window between listing and creating resources."""

    def paginate(self, restApiId, PaginationConfig=None):
        pages = list(super().paginate(restApiId, PaginationConfig))
        time.sleep(0.05)
        return iter(pages)


def test_shared_prefix_is_created_once(builder, apigateway, region) -> None:
    apigateway.get_paginator = lambda name: SlowPaginator(apigateway)
    targets = [
        DeployTarget(endpoint=users_list_endpoint(), region=region, stage='dev'),
        DeployTarget(endpoint=users_list_endpoint(path='users/get', function='users/get'),
                     region=region, stage='dev'),
    ]

    outcomes = EndpointDeployer(builder, max_workers=2).deploy(targets)

    assert all(outcome.ok for outcome in outcomes)
    assert apigateway.paths().count('/users') == 1
    assert sorted(apigateway.paths()) == ['/', '/users', '/users/get', '/users/list']
    assert [outcome.deployed.path for outcome in outcomes] == ['users/list', 'users/get']


def test_failures_do_not_stop_other_targets(builder, apigateway, region) -> None:
    broken = users_list_endpoint(path='users/get', function='users/get')
    del broken['responses']
    targets = [
        DeployTarget(endpoint=broken, region=region, stage='dev'),
        DeployTarget(endpoint=users_list_endpoint(), region=region, stage='dev'),
    ]

    outcomes = EndpointDeployer(builder, max_workers=2).deploy(targets)

    assert [outcome.ok for outcome in outcomes] == [False, True]
    assert isinstance(outcomes[0].error, ValidationError)
    assert outcomes[0].error.field == 'responses'
    assert outcomes[1].deployed.url.endswith('/dev/users/list')


def test_deploy_without_targets(builder) -> None:
    assert EndpointDeployer(builder).deploy([]) == []


def test_resource_lock_serializes_one_api(builder, apigateway, region) -> None:
    active = []
    overlap = threading.Event()
    original = apigateway.get_paginator

    def tracking_paginator(name):
        active.append(1)
        if len(active) > 1:
            overlap.set()
        time.sleep(0.02)
        active.pop()
        return original(name)

    apigateway.get_paginator = tracking_paginator
    targets = [
        DeployTarget(endpoint=users_list_endpoint(path=f'items/{index}'),
                     region=region, stage='dev')
        for index in range(4)
    ]

    outcomes = EndpointDeployer(builder, max_workers=4).deploy(targets)

    assert all(outcome.ok for outcome in outcomes)
    assert not overlap.is_set()


def test_stage_deployer_deploys_each_api_once(builder, apigateway, lambda_client, settings,
                                             region) -> None:
    stage_deployer = StageDeployer(settings, clients_factory=clients_factory(
        apigateway, lambda_client))
    outcomes = EndpointDeployer(builder).deploy([
        DeployTarget(endpoint=users_list_endpoint(), region=region, stage='dev'),
        DeployTarget(endpoint=users_list_endpoint(path='users/get', function='users/get'),
                     region=region, stage='dev'),
    ])

    deployments = stage_deployer.deploy_stages(outcomes)

    assert list(deployments) == [('us-east-1', 'abc123')]
    create = apigateway.calls_to('CreateDeployment')
    assert len(create) == 1
    assert create[0]['stageName'] == 'dev'
    assert create[0]['variables'] == {'functionAlias': 'dev'}


def test_stage_deployer_skips_failed_outcomes(apigateway, lambda_client, settings,
                                              region) -> None:
    failed = EndpointOutcome(
        target=DeployTarget(endpoint=users_list_endpoint(), region=region, stage='dev'),
        error=ValidationError('path'))

    deployments = StageDeployer(settings, clients_factory=clients_factory(
        apigateway, lambda_client)).deploy_stages([failed])

    assert deployments == {}
    assert apigateway.calls_to('CreateDeployment') == []
