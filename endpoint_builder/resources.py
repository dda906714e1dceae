"""
Resolve an endpoint path to an API Gateway resource, creating missing
path segments along the way.

Listing and creating resources for one REST API happens under a lock
shared by every build targeting that API, so two endpoints with a common
prefix (users/list, users/get) never both create "/users".
"""

import logging
import threading
from typing import Dict, List, Optional

from .aws import remote_call
from .errors import CallTimeout, NotFound, ProvisionError
from .models import BuildContext, ResourceNode

logger = logging.getLogger(__name__)

ROOT_PATH = '/'


class ResourceTreeLocks:
    """One lock per REST API id."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def for_api(self, rest_api_id: str) -> threading.Lock:
        with self._guard:
            if rest_api_id not in self._locks:
                self._locks[rest_api_id] = threading.Lock()
            return self._locks[rest_api_id]


RESOURCE_TREE_LOCKS = ResourceTreeLocks()


class ResourcePathResolver:
    """Finds or creates the resource tree nodes for an endpoint path."""

    name = 'resolve_resources'

    def __init__(self, apigateway_client, locks: Optional[ResourceTreeLocks] = None,
                 page_size: int = 500, fail_on_duplicates: bool = False):
        self.apigateway_client = apigateway_client
        self.locks = locks or RESOURCE_TREE_LOCKS
        self.page_size = page_size
        self.fail_on_duplicates = fail_on_duplicates

    def run(self, ctx: BuildContext) -> BuildContext:
        with self.locks.for_api(ctx.region.rest_api_id):
            snapshot = self.fetch_resources(ctx)
            resource = self.resolve(ctx, snapshot)
        return ctx.evolve(resource=resource)

    def fetch_resources(self, ctx: BuildContext) -> List[ResourceNode]:
        """List every resource of the REST API, in API order."""
        items = remote_call(self.name, 'GetResources', self._list_resources,
                            restApiId=ctx.region.rest_api_id)
        snapshot = [ResourceNode.from_api(item) for item in items]

        logger.info(
            f"{ctx.label}: found {len(snapshot)} existing Resources on API Gateway")
        return snapshot

    def _list_resources(self, restApiId: str) -> List[dict]:
        paginator = self.apigateway_client.get_paginator('get_resources')
        pages = paginator.paginate(
            restApiId=restApiId,
            PaginationConfig={'PageSize': self.page_size},
        )
        items = []
        for page in pages:
            items.extend(page.get('items', []))
        return items

    def resolve(self, ctx: BuildContext, snapshot: List[ResourceNode]) -> ResourceNode:
        """Walk the path left to right and return its leaf node.

        Nodes created here are appended to ``snapshot``.
        """
        node = self.find(snapshot, ROOT_PATH)
        if node is None:
            raise ProvisionError(
                f"REST API {ctx.region.rest_api_id} has no root resource",
                stage=self.name)

        prefix = ''
        for segment in [part for part in ctx.endpoint.path.split('/') if part]:
            prefix = f"{prefix}/{segment}"
            existing = self.find(snapshot, prefix)
            if existing is not None:
                node = existing
                continue

            node = self.create(ctx, node, segment)
            snapshot.append(node)

        return node

    def find(self, snapshot: List[ResourceNode], path: str) -> Optional[ResourceNode]:
        """First node with this absolute path, in fetch order."""
        matches = [node for node in snapshot if node.path == path]
        if len(matches) > 1:
            ids = ', '.join(node.id for node in matches)
            if self.fail_on_duplicates:
                raise ProvisionError(
                    f"Duplicate resources for path {path}: {ids}",
                    stage=self.name, code='DuplicateResource',
                    details={'path': path, 'ids': [node.id for node in matches]})
            logger.warning(
                f"Duplicate resources for path {path} ({ids}), using {matches[0].id}")
        return matches[0] if matches else None

    def create(self, ctx: BuildContext, parent: ResourceNode, segment: str) -> ResourceNode:
        try:
            response = remote_call(
                self.name, 'CreateResource', self.apigateway_client.create_resource,
                restApiId=ctx.region.rest_api_id,
                parentId=parent.id,
                pathPart=segment,
            )
        except CallTimeout:
            raise
        except ProvisionError as e:
            raise ProvisionError(
                f"Failed to create resource '{segment}' under parent {parent.id}: {e.message}",
                stage=self.name, code=e.code, operation='CreateResource',
                details={'segment': segment, 'parent_id': parent.id}) from e
        except NotFound as e:
            # Parent vanished between listing and creating.
            raise ProvisionError(
                f"Failed to create resource '{segment}' under parent {parent.id}: {e.message}",
                stage=self.name, operation='CreateResource',
                details={'segment': segment, 'parent_id': parent.id}) from e

        node = ResourceNode(
            id=response['id'],
            path=response.get('path') or _child_path(parent.path, segment),
            path_part=response.get('pathPart', segment),
            parent_id=response.get('parentId', parent.id),
        )
        logger.info(f"{ctx.label}: created resource: {node.path_part}")
        return node


def _child_path(parent_path: str, segment: str) -> str:
    if parent_path == ROOT_PATH:
        return f"/{segment}"
    return f"{parent_path}/{segment}"
