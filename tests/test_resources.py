import logging

import pytest

from endpoint_builder.errors import ProvisionError
from endpoint_builder.resources import ResourcePathResolver, ResourceTreeLocks
from fakes import users_list_endpoint


def test_resolve_reuses_existing_prefix_and_creates_leaf(apigateway, locks, make_context) -> None:
    users = apigateway.add_resource('users')
    resolver = ResourcePathResolver(apigateway, locks=locks)

    ctx = resolver.run(make_context())

    creates = apigateway.calls_to('CreateResource')
    assert len(creates) == 1
    assert creates[0]['parentId'] == users['id']
    assert creates[0]['pathPart'] == 'list'
    assert ctx.resource.path == '/users/list'
    assert ctx.resource.parent_id == users['id']


def test_resolve_creates_every_missing_segment_in_order(apigateway, locks, make_context) -> None:
    resolver = ResourcePathResolver(apigateway, locks=locks)

    ctx = resolver.run(make_context(users_list_endpoint(path='a/b/c')))

    creates = apigateway.calls_to('CreateResource')
    assert [call['pathPart'] for call in creates] == ['a', 'b', 'c']
    assert creates[0]['parentId'] == 'root'
    assert apigateway.paths() == ['/', '/a', '/a/b', '/a/b/c']
    assert ctx.resource.path == '/a/b/c'


def test_resolve_existing_path_makes_no_writes(apigateway, locks, make_context) -> None:
    leaf = apigateway.add_resource('users/list')
    resolver = ResourcePathResolver(apigateway, locks=locks)

    ctx = resolver.run(make_context())

    assert apigateway.calls_to('CreateResource') == []
    assert ctx.resource.id == leaf['id']


def test_resolve_empty_path_returns_root(apigateway, locks, make_context) -> None:
    resolver = ResourcePathResolver(apigateway, locks=locks)

    ctx = resolver.run(make_context(users_list_endpoint(path='/')))

    assert ctx.resource.id == 'root'
    assert ctx.resource.path == '/'
    assert apigateway.calls_to('CreateResource') == []


def test_resolve_lists_all_pages(apigateway, locks, make_context) -> None:
    for index in range(5):
        apigateway.add_resource(f'extra{index}')
    leaf = apigateway.add_resource('users/list')
    resolver = ResourcePathResolver(apigateway, locks=locks, page_size=2)

    ctx = resolver.run(make_context())

    assert ctx.resource.id == leaf['id']
    assert apigateway.calls_to('CreateResource') == []


def test_resolve_without_root_fails(apigateway, locks, make_context) -> None:
    apigateway.resources = []
    resolver = ResourcePathResolver(apigateway, locks=locks)

    with pytest.raises(ProvisionError, match='root'):
        resolver.run(make_context())


def test_duplicate_paths_use_first_match(apigateway, locks, make_context, caplog) -> None:
    apigateway.add_resource('users', resource_id='first')
    apigateway.add_resource('users', resource_id='second')
    resolver = ResourcePathResolver(apigateway, locks=locks)

    with caplog.at_level(logging.WARNING):
        ctx = resolver.run(make_context())

    assert ctx.resource.parent_id == 'first'
    assert 'Duplicate resources for path /users' in caplog.text


def test_duplicate_paths_fail_in_strict_mode(apigateway, locks, make_context) -> None:
    apigateway.add_resource('users', resource_id='first')
    apigateway.add_resource('users', resource_id='second')
    resolver = ResourcePathResolver(apigateway, locks=locks, fail_on_duplicates=True)

    with pytest.raises(ProvisionError) as excinfo:
        resolver.run(make_context())

    assert excinfo.value.code == 'DuplicateResource'
    assert excinfo.value.details['ids'] == ['first', 'second']


def test_create_failure_names_segment_and_parent(apigateway, locks, make_context) -> None:
    users = apigateway.add_resource('users')
    apigateway.fail('CreateResource', code='TooManyRequestsException', message='Slow down')
    resolver = ResourcePathResolver(apigateway, locks=locks)

    with pytest.raises(ProvisionError) as excinfo:
        resolver.run(make_context())

    error = excinfo.value
    assert error.stage == 'resolve_resources'
    assert error.code == 'TooManyRequestsException'
    assert error.details == {'segment': 'list', 'parent_id': users['id']}
    assert 'Slow down' in error.message


def test_locks_are_shared_per_api() -> None:
    locks = ResourceTreeLocks()

    assert locks.for_api('abc123') is locks.for_api('abc123')
    assert locks.for_api('abc123') is not locks.for_api('def456')
