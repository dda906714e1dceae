import pytest

from endpoint_builder.errors import ProvisionError
from endpoint_builder.functions import FunctionFetcher, lambda_name


def test_lambda_name_joins_project_and_function() -> None:
    assert lambda_name('acme', 'users/list') == 'acme-users-list'
    assert lambda_name('acme', 'health') == 'acme-health'


def test_fetch_function_for_stage(lambda_client, make_context) -> None:
    ctx = FunctionFetcher(lambda_client, 'acme').run(make_context())

    assert lambda_client.calls_to('GetFunction') == [
        {'FunctionName': 'acme-users-list', 'Qualifier': 'dev'}]
    assert ctx.function.name == 'users/list'
    assert ctx.function.function_name == 'acme-users-list'
    assert ctx.function.function_arn.endswith(':function:acme-users-list:dev')


def test_fetch_function_missing_stage_version(lambda_client, make_context) -> None:
    ctx = make_context().evolve(stage='prod')

    with pytest.raises(ProvisionError) as excinfo:
        FunctionFetcher(lambda_client, 'acme').run(ctx)

    assert excinfo.value.stage == 'fetch_function'
    assert 'acme-users-list' in excinfo.value.message
    assert 'prod' in excinfo.value.message


def test_fetch_function_prefers_explicit_alias(lambda_client, make_context) -> None:
    ctx = FunctionFetcher(lambda_client, 'acme').run(make_context(alias='blue'))

    assert lambda_client.calls_to('GetFunction') == [
        {'FunctionName': 'acme-users-list', 'Qualifier': 'blue'}]
    assert ctx.function.function_arn.endswith(':function:acme-users-list:blue')


def test_fetch_function_missing_alias(lambda_client, make_context) -> None:
    with pytest.raises(ProvisionError, match='green'):
        FunctionFetcher(lambda_client, 'acme').run(make_context(alias='green'))
