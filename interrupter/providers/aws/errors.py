"""Translation of botocore exceptions into provider exceptions."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from botocore.exceptions import (
    ClientError,
    EndpointConnectionError,
    NoCredentialsError,
    PartialCredentialsError,
)

from interrupter.providers.exceptions import (
    ProviderAPIError,
    ProviderConnectionError,
    ProviderCredentialsError,
)

logger = logging.getLogger(__name__)


@contextmanager
def handle_aws_errors() -> Iterator[None]:
    """Translate botocore exceptions raised inside the block.

    Yields
    ------
    None
        Control to the wrapped block

    Raises
    ------
    ProviderCredentialsError
        If credentials are missing or incomplete
    ProviderAPIError
        If AWS rejected the request
    ProviderConnectionError
        If the endpoint could not be reached
    """
    try:
        yield
    except (NoCredentialsError, PartialCredentialsError) as e:
        raise ProviderCredentialsError(str(e)) from e
    except ClientError as e:
        error = e.response.get("Error", {}) if e.response else {}
        error_code = error.get("Code")
        message = error.get("Message", str(e))
        logger.debug("AWS API error %s: %s", error_code, message)
        raise ProviderAPIError(message, error_code=error_code) from e
    except EndpointConnectionError as e:
        raise ProviderConnectionError(str(e)) from e
