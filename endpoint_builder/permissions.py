"""
Grant API Gateway permission to invoke the endpoint's Lambda function.

Attaching credentials to the integration adds latency to every request,
so instead the Lambda's resource policy gets one statement per endpoint.
The statement id is derived from path + method: the old statement is
removed and a fresh one added, leaving exactly one grant per endpoint.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from .aws import remote_call
from .errors import NotFound, PermissionReconcileError, ProvisionError
from .models import BuildContext

logger = logging.getLogger(__name__)

INVOKE_ACTION = 'lambda:InvokeFunction'
API_GATEWAY_PRINCIPAL = 'apigateway.amazonaws.com'


def source_arn(region: str, account_id: str, rest_api_id: str,
               method: str, path: str) -> str:
    """execute-api ARN for one method + path on any stage of the API."""
    return f"arn:aws:execute-api:{region}:{account_id}:{rest_api_id}/*/{method}/{path}"


class PermissionManager:
    """Keeps one invoke grant per endpoint on the Lambda policy."""

    name = 'reconcile_permission'

    def __init__(self, lambda_client):
        self.lambda_client = lambda_client

    def run(self, ctx: BuildContext) -> BuildContext:
        warnings = list(ctx.permission_warnings)

        statements = self.get_policy_statements(ctx)
        if any(statement.get('Sid') == ctx.endpoint.statement_id for statement in statements):
            warning = self.remove_statement(ctx)
            if warning is not None:
                warnings.append(warning)

        self.add_statement(ctx)
        return ctx.evolve(permission_warnings=tuple(warnings))

    def get_policy_statements(self, ctx: BuildContext) -> List[Dict[str, Any]]:
        """Statements of the function's resource policy; empty if it has none."""
        try:
            response = remote_call(
                self.name, 'GetPolicy', self.lambda_client.get_policy,
                FunctionName=ctx.function.function_arn,
            )
        except NotFound:
            return []

        try:
            policy = json.loads(response.get('Policy') or '{}')
        except json.JSONDecodeError as e:
            raise ProvisionError(
                f"Unreadable policy on {ctx.function.function_arn}: {e}",
                stage=self.name, operation='GetPolicy') from e
        return policy.get('Statement', [])

    def remove_statement(self, ctx: BuildContext) -> Optional[PermissionReconcileError]:
        """Remove this endpoint's statement; failures are returned, not raised."""
        statement_id = ctx.endpoint.statement_id
        try:
            remote_call(
                self.name, 'RemovePermission', self.lambda_client.remove_permission,
                FunctionName=ctx.function.function_arn,
                StatementId=statement_id,
            )
        except NotFound:
            logger.info(f"{ctx.label}: statement {statement_id} already removed")
            return None
        except ProvisionError as e:
            warning = PermissionReconcileError(
                statement_id, f"Could not remove statement {statement_id}: {e.message}")
            warning.bind(path=ctx.endpoint.path, method=ctx.endpoint.method,
                         region=ctx.region.region)
            logger.warning(f"{ctx.label}: {warning.message}")
            return warning

        logger.info(f"{ctx.label}: removed existing lambda access policy statement")
        return None

    def add_statement(self, ctx: BuildContext) -> None:
        endpoint = ctx.endpoint
        remote_call(
            self.name, 'AddPermission', self.lambda_client.add_permission,
            FunctionName=ctx.function.function_arn,
            StatementId=endpoint.statement_id,
            Action=INVOKE_ACTION,
            Principal=API_GATEWAY_PRINCIPAL,
            SourceArn=source_arn(ctx.region.region, ctx.account_id,
                                 ctx.region.rest_api_id, endpoint.method, endpoint.path),
        )
        logger.info(f"{ctx.label}: added permission to Lambda")
