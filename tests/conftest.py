import sys
from pathlib import Path

import pytest

root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(root))
sys.path.insert(0, str(Path(__file__).resolve().parent))

from endpoint_builder.config import Settings  # noqa: E402
from endpoint_builder.models import BuildContext, RegionContext  # noqa: E402
from endpoint_builder.normalizer import normalize_endpoint  # noqa: E402
from endpoint_builder.resources import ResourceTreeLocks  # noqa: E402
from fakes import (ROLE_ARN, FakeApiGateway, FakeLambda,  # noqa: E402
                   users_list_endpoint)


@pytest.fixture
def endpoint():
    return users_list_endpoint()


@pytest.fixture
def region():
    return RegionContext(region='us-east-1', rest_api_id='abc123',
                         execution_role_arn=ROLE_ARN)


@pytest.fixture
def settings():
    return Settings(settle_delay=0.0)


@pytest.fixture
def apigateway():
    return FakeApiGateway()


@pytest.fixture
def lambda_client():
    client = FakeLambda()
    client.add_function('acme-users-list', qualifiers=('dev', 'blue'))
    client.add_function('acme-users-get')
    return client


@pytest.fixture
def locks():
    return ResourceTreeLocks()


@pytest.fixture
def make_context(region):
    """Build a BuildContext for a raw endpoint without touching AWS."""
    def make(raw=None, **changes):
        ctx = BuildContext(endpoint=normalize_endpoint(raw or users_list_endpoint()),
                           region=region, stage='dev', account_id=region.account_id)
        return ctx.evolve(**changes)
    return make
