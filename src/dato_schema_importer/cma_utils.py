from __future__ import annotations

import logging
import os
from typing import Final

from . import utils
from .cma_client import DEFAULT_BASE_URL, DatoCmaClient

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

_TOKEN_ENV_VAR: Final[str] = "DATOCMS_API_TOKEN"  # noqa: S105
_ENVIRONMENT_ENV_VAR: Final[str] = "DATOCMS_ENVIRONMENT"
_DEFAULT_TOKEN_PASS_PATH: Final[str] = "datocms/cli/token"  # noqa: S105


def get_token(pass_path: str | None = None) -> str | None:
    """Get the CMA token from pass path, env var DATOCMS_API_TOKEN, or default pass location."""
    if pass_path:
        return utils.get_pass_value(pass_path)

    token: str | None = os.environ.get(_TOKEN_ENV_VAR)
    if token:
        return token

    try:
        return utils.get_pass_value(_DEFAULT_TOKEN_PASS_PATH)
    except (ValueError, utils.PassError, FileNotFoundError):
        logger.warning("No DatoCMS API token specified nor found")
        return None


def get_client(
    token: str | None = None,
    *,
    environment: str | None = None,
    base_url: str | None = None,
) -> DatoCmaClient:
    """Get a CMA client, targeting DATOCMS_ENVIRONMENT unless an environment is given."""
    return DatoCmaClient(
        token,
        base_url=base_url or DEFAULT_BASE_URL,
        environment=environment or os.environ.get(_ENVIRONMENT_ENV_VAR),
    )
