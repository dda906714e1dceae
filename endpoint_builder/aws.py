"""
AWS client construction and remote call handling.

Each build gets its own boto3 session (sessions are not thread safe) and
clients configured with explicit timeouts and no SDK-level retries. A
caller that wants resilience re-runs the whole build.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict

import boto3
from botocore.config import Config
from botocore.exceptions import (BotoCoreError, ClientError,
                                 ConnectTimeoutError, ReadTimeoutError)

from .config import Settings
from .errors import CallTimeout, NotFound, ProvisionError
from .models import RegionContext

NOT_FOUND_CODES = {'NotFoundException', 'ResourceNotFoundException'}


@dataclass
class AwsClients:
    apigateway: Any
    lambda_client: Any


def make_clients(region: RegionContext, settings: Settings) -> AwsClients:
    """Create API Gateway and Lambda clients for one region."""
    credentials = region.credentials or settings.admin_credentials()

    session_kwargs: Dict[str, Any] = {'region_name': region.region}
    if credentials is not None:
        session_kwargs.update(compact(
            aws_access_key_id=credentials.access_key_id,
            aws_secret_access_key=credentials.secret_access_key,
            aws_session_token=credentials.session_token,
            profile_name=credentials.profile_name,
        ))
    session = boto3.session.Session(**session_kwargs)

    client_config = Config(
        connect_timeout=settings.connect_timeout,
        read_timeout=settings.read_timeout,
        retries={'total_max_attempts': 1, 'mode': 'standard'},
    )

    return AwsClients(
        apigateway=session.client('apigateway', config=client_config),
        lambda_client=session.client('lambda', config=client_config),
    )


def compact(**params) -> Dict[str, Any]:
    """Drop parameters that are None; botocore rejects null values."""
    return {key: value for key, value in params.items() if value is not None}


def remote_call(stage: str, operation: str, fn: Callable, **params) -> Any:
    """Invoke a boto3 operation and translate failures into typed errors."""
    try:
        return fn(**compact(**params))
    except ClientError as e:
        error = e.response.get('Error', {})
        code = error.get('Code')
        message = error.get('Message') or str(e)
        if code in NOT_FOUND_CODES:
            raise NotFound(message, stage=stage, operation=operation) from e
        raise ProvisionError(message, stage=stage, code=code,
                             operation=operation) from e
    except (ReadTimeoutError, ConnectTimeoutError) as e:
        raise CallTimeout(operation, stage=stage) from e
    except BotoCoreError as e:
        raise ProvisionError(str(e), stage=stage, operation=operation) from e


def without_metadata(response: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in (response or {}).items()
            if key != 'ResponseMetadata'}
