"""
Runtime settings for the endpoint builder.

Values come from the process environment, optionally seeded from a local
.env file, and fall back to the defaults below.
"""

import logging
import os
from dataclasses import dataclass
from typing import Callable, Optional

from dotenv import load_dotenv

from .models import Credentials

logger = logging.getLogger(__name__)

# Configuration defaults
DEFAULT_SETTLE_DELAY = 0.25  # API Gateway takes time to delete methods
DEFAULT_CONNECT_TIMEOUT = 10
DEFAULT_READ_TIMEOUT = 30
DEFAULT_MAX_WORKERS = 8
DEFAULT_RESOURCE_PAGE_SIZE = 500
DEFAULT_ALIAS_VARIABLE = 'functionAlias'

TRUE_VALUES = {'1', 'true', 'yes', 'on'}


@dataclass(frozen=True)
class Settings:
    settle_delay: float = DEFAULT_SETTLE_DELAY
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    read_timeout: float = DEFAULT_READ_TIMEOUT
    max_workers: int = DEFAULT_MAX_WORKERS
    resource_page_size: int = DEFAULT_RESOURCE_PAGE_SIZE
    fail_on_duplicate_resources: bool = False
    alias_stage_variable: str = DEFAULT_ALIAS_VARIABLE
    admin_key_id: Optional[str] = None
    admin_secret_key: Optional[str] = None

    @classmethod
    def from_env(cls, dotenv: bool = True) -> 'Settings':
        """Build settings from environment variables (and .env if present)."""
        if dotenv:
            load_dotenv()

        return cls(
            settle_delay=_env('ENDPOINT_BUILDER_SETTLE_DELAY',
                              DEFAULT_SETTLE_DELAY, float),
            connect_timeout=_env('ENDPOINT_BUILDER_CONNECT_TIMEOUT',
                                 DEFAULT_CONNECT_TIMEOUT, float),
            read_timeout=_env('ENDPOINT_BUILDER_READ_TIMEOUT',
                              DEFAULT_READ_TIMEOUT, float),
            max_workers=_env('ENDPOINT_BUILDER_MAX_WORKERS',
                             DEFAULT_MAX_WORKERS, int),
            resource_page_size=_env('ENDPOINT_BUILDER_RESOURCE_LIMIT',
                                    DEFAULT_RESOURCE_PAGE_SIZE, int),
            fail_on_duplicate_resources=_env(
                'ENDPOINT_BUILDER_STRICT_DUPLICATES', False, _as_bool),
            alias_stage_variable=os.environ.get(
                'ENDPOINT_BUILDER_ALIAS_VARIABLE', DEFAULT_ALIAS_VARIABLE),
            admin_key_id=os.environ.get('AWS_ADMIN_KEY_ID'),
            admin_secret_key=os.environ.get('AWS_ADMIN_SECRET_KEY'),
        )

    def admin_credentials(self) -> Optional[Credentials]:
        """Credentials used for regions that do not carry their own."""
        if self.admin_key_id and self.admin_secret_key:
            return Credentials(access_key_id=self.admin_key_id,
                               secret_access_key=self.admin_secret_key)
        return None


def _as_bool(value: str) -> bool:
    return str(value).strip().lower() in TRUE_VALUES


def _env(name: str, default, parser: Callable):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return parser(raw)
    except ValueError:
        logger.warning(f"Invalid value for {name}: {raw!r}, using {default}")
        return default
