"""
Data types passed between the endpoint build stages.

All types are frozen dataclasses: a stage never mutates the context it was
handed, it returns a new one with its own fields filled in. This keeps
concurrently running builds from observing each other's progress.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

IAM_ARN_PREFIX = 'arn:aws:iam::'


@dataclass(frozen=True)
class ResponseSpec:
    """One declared response mapping."""
    status_code: str
    response_parameters: Dict[str, str] = field(default_factory=dict)
    response_models: Dict[str, str] = field(default_factory=dict)
    response_templates: Dict[str, str] = field(default_factory=dict)
    # Only set when the response declares one explicitly.
    selection_pattern: Optional[str] = None


@dataclass(frozen=True)
class EndpointSpec:
    """Normalized desired state for one HTTP endpoint of one function."""
    path: str
    method: str
    authorization_type: str
    api_key_required: bool
    request_templates: Dict[str, str]
    request_parameters: Dict[str, str]
    responses: Dict[str, ResponseSpec]
    statement_id: str
    function: str
    request_models: Optional[Dict[str, str]] = None
    cache_key_parameters: Optional[List[str]] = None
    cache_namespace: Optional[str] = None


@dataclass(frozen=True)
class Credentials:
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    session_token: Optional[str] = None
    profile_name: Optional[str] = None


@dataclass(frozen=True)
class RegionContext:
    """One target account/region pairing of a stage."""
    region: str
    rest_api_id: str
    execution_role_arn: str
    credentials: Optional[Credentials] = None

    @property
    def account_id(self) -> str:
        return account_id_from_role_arn(self.execution_role_arn)


@dataclass(frozen=True)
class ResourceNode:
    """A node of the remote resource tree, keyed by absolute path."""
    id: str
    path: str
    path_part: Optional[str] = None
    parent_id: Optional[str] = None

    @classmethod
    def from_api(cls, item: Mapping[str, Any]) -> 'ResourceNode':
        return cls(
            id=item['id'],
            path=item['path'],
            path_part=item.get('pathPart'),
            parent_id=item.get('parentId'),
        )


@dataclass(frozen=True)
class FunctionDescriptor:
    """The deployed backend function an endpoint invokes."""
    name: str
    function_name: str
    function_arn: str


@dataclass(frozen=True)
class BuildContext:
    """State accumulated by one (endpoint, region) build."""
    endpoint: EndpointSpec
    region: RegionContext
    stage: str
    alias: Optional[str] = None
    account_id: Optional[str] = None
    function: Optional[FunctionDescriptor] = None
    resource: Optional[ResourceNode] = None
    previous_integration: Optional[Dict[str, Any]] = None
    method: Optional[Dict[str, Any]] = None
    integration: Optional[Dict[str, Any]] = None
    response_status_codes: Tuple[str, ...] = ()
    permission_warnings: Tuple[Any, ...] = ()
    url: Optional[str] = None

    @property
    def label(self) -> str:
        return f'"{self.stage} - {self.region.region} - {self.endpoint.path}"'

    def evolve(self, **changes) -> 'BuildContext':
        return replace(self, **changes)


@dataclass(frozen=True)
class DeployedEndpoint:
    """Result of one successful build."""
    path: str
    method: str
    url: str
    region: str
    stage: str
    function_name: str
    lambda_arn: str
    statement_id: str
    resource_id: str
    warnings: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class DeployTarget:
    """One declared endpoint to converge in one region."""
    endpoint: Mapping[str, Any]
    region: RegionContext
    stage: str
    alias: Optional[str] = None

    @property
    def description(self) -> str:
        method = str(self.endpoint.get('method') or '?').upper()
        path = str(self.endpoint.get('path') or '?')
        return f"{method} {path} ({self.region.region})"


@dataclass(frozen=True)
class EndpointOutcome:
    """Either a deployed endpoint or the error that stopped its build."""
    target: DeployTarget
    deployed: Optional[DeployedEndpoint] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def account_id_from_role_arn(role_arn: str) -> str:
    """Account number embedded in an IAM role ARN."""
    return role_arn.replace(IAM_ARN_PREFIX, '').split(':')[0]
