"""Provision API Gateway endpoints backed by Lambda functions."""

from .builder import EndpointBuilder, endpoint_url
from .config import Settings
from .deployer import EndpointDeployer, StageDeployer
from .errors import (CallTimeout, EndpointBuilderError, NotFound,
                     PermissionReconcileError, ProvisionError, ValidationError)
from .models import (BuildContext, Credentials, DeployedEndpoint, DeployTarget,
                     EndpointOutcome, EndpointSpec, RegionContext, ResourceNode,
                     ResponseSpec)
from .normalizer import normalize_endpoint, statement_id_for

__all__ = [
    'BuildContext',
    'CallTimeout',
    'Credentials',
    'DeployTarget',
    'DeployedEndpoint',
    'EndpointBuilder',
    'EndpointBuilderError',
    'EndpointDeployer',
    'EndpointOutcome',
    'EndpointSpec',
    'NotFound',
    'PermissionReconcileError',
    'ProvisionError',
    'RegionContext',
    'ResourceNode',
    'ResponseSpec',
    'Settings',
    'StageDeployer',
    'ValidationError',
    'endpoint_url',
    'normalize_endpoint',
    'statement_id_for',
]
