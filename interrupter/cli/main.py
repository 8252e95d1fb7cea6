"""CLI entry point for Interrupter."""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import fire

from interrupter.constants import (
    DEBUG_ENV_VAR,
    EXIT_CODE_CONFIG_ERROR,
    EXIT_CODE_ERROR,
    EXIT_CODE_SUCCESS,
)
from interrupter.core.session import Outcome, SessionResult
from interrupter.logging import StreamRoutingFilter
from interrupter.providers import (
    ProviderAPIError,
    ProviderConnectionError,
    ProviderCredentialsError,
)

logger = logging.getLogger(__name__)


def get_interrupter_base_class() -> type:
    """Get Interrupter base class on-demand to avoid circular imports.

    Returns
    -------
    type
        Interrupter base class
    """
    from interrupter.__main__ import Interrupter

    return Interrupter


def get_aws_credentials_error_message() -> str:
    """Get standard AWS credentials error message.

    Returns
    -------
    str
        Formatted AWS credentials error message
    """
    return (
        "Cloud credentials not found\n\n"
        "Configure your credentials:\n"
        "  aws configure\n\n"
        "Or set environment variables:\n"
        "  export AWS_ACCESS_KEY_ID=...\n"
        "  export AWS_SECRET_ACCESS_KEY=..."
    )


def report_session_result(result: SessionResult) -> int:
    """Log a session summary and return the matching exit code.

    Parameters
    ----------
    result : SessionResult
        Result of an interrupt run

    Returns
    -------
    int
        Process exit code
    """
    if result.outcome is Outcome.QUIT:
        logger.info("No instances interrupted")
        return EXIT_CODE_SUCCESS

    if result.outcome is Outcome.INTERRUPTED:
        logger.info("Interrupted: %s", ", ".join(sorted(result.instance_ids)))
        return EXIT_CODE_SUCCESS

    return EXIT_CODE_ERROR


class InterrupterCLI:
    """CLI wrapper that handles process exit codes.

    This is defined as a factory that creates a subclass of Interrupter
    at runtime to avoid circular import issues.
    """

    _cached_class: type | None = None

    def __new__(cls, **kwargs: Any) -> Any:
        """Create InterrupterCLI instance with dynamic subclassing.

        Parameters
        ----------
        **kwargs : Any
            Factories forwarded to Interrupter

        Returns
        -------
        Any
            Instance of dynamically created InterrupterCLI subclass
        """
        if cls._cached_class is None:
            Interrupter = get_interrupter_base_class()

            class InterrupterCLIImpl(Interrupter):
                """CLI wrapper implementation for Interrupter."""

                def interrupt(
                    self,
                    *instance_ids: str,
                    region: str | None = None,
                    timeout: str | float | None = None,
                    force: bool | None = None,
                    config: str | None = None,
                ) -> None:
                    """Interrupt Spot instances and exit with the session's status.

                    Parameters
                    ----------
                    *instance_ids : str
                        Instances to interrupt without prompting; none opens the selector
                    region : str | None
                        Region override
                    timeout : str | float | None
                        Interruption timeout, seconds or a duration such as ``15s``
                    force : bool | None
                        Skip checking that instances are running Spot instances
                    config : str | None
                        Path to config file
                    """
                    result = super().interrupt(
                        *instance_ids,
                        region=region,
                        timeout=timeout,
                        force=force,
                        config=config,
                    )
                    exit_code = report_session_result(result)

                    if exit_code != EXIT_CODE_SUCCESS:
                        sys.exit(exit_code)

            cls._cached_class = InterrupterCLIImpl

        return cls._cached_class(**kwargs)


def handle_credentials_error(debug_mode: bool) -> None:
    """Handle provider credentials error.

    Raises
    ------
    ProviderCredentialsError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    print(get_aws_credentials_error_message(), file=sys.stderr)
    sys.exit(EXIT_CODE_ERROR)


def handle_value_error(error: ValueError, debug_mode: bool) -> None:
    """Handle configuration and input errors.

    Raises
    ------
    ValueError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    print(f"Configuration error: {error}", file=sys.stderr)
    sys.exit(EXIT_CODE_CONFIG_ERROR)


def handle_api_error(error: ProviderAPIError, debug_mode: bool) -> None:
    """Handle provider API error with context-specific messages.

    Parameters
    ----------
    error : ProviderAPIError
        The API error that was raised
    debug_mode : bool
        Whether debug mode is enabled

    Raises
    ------
    ProviderAPIError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    error_code = error.error_code

    if error_code in ["UnauthorizedOperation", "AccessDenied", "AccessDeniedException"]:
        print("Insufficient IAM permissions\n", file=sys.stderr)
        print(
            "Your cloud credentials don't have the required permissions.",
            file=sys.stderr,
        )
        print("Contact your cloud administrator to grant:", file=sys.stderr)
        print("  - EC2 permissions (DescribeInstances)", file=sys.stderr)
        print(
            "  - FIS permissions (CreateExperimentTemplate, StartExperiment, "
            "GetExperiment, DeleteExperimentTemplate)",
            file=sys.stderr,
        )
        print(
            "  - IAM permissions (GetRole, CreateRole, AttachRolePolicy, PassRole)",
            file=sys.stderr,
        )
    elif error_code in ["ExpiredToken", "RequestExpired", "ExpiredTokenException"]:
        print("Cloud credentials have expired\n", file=sys.stderr)
        print("This usually means:", file=sys.stderr)
        print("  - Your temporary credentials (STS) have expired", file=sys.stderr)
        print("  - Your session token needs to be refreshed\n", file=sys.stderr)
        print("Fix it:", file=sys.stderr)
        print("  aws sso login           # If using AWS SSO", file=sys.stderr)
        print("  aws configure           # Re-configure credentials", file=sys.stderr)
    else:
        print(f"Cloud API error: {error}", file=sys.stderr)

    sys.exit(EXIT_CODE_ERROR)


def handle_connection_error(error: ProviderConnectionError, debug_mode: bool) -> None:
    """Handle unreachable cloud endpoint.

    Raises
    ------
    ProviderConnectionError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    print(f"Could not reach cloud endpoint: {error}", file=sys.stderr)
    sys.exit(EXIT_CODE_ERROR)


def handle_runtime_error(error: RuntimeError, debug_mode: bool) -> None:
    """Handle runtime error, such as an interruption that did not start.

    Raises
    ------
    RuntimeError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    print(f"Interruption failed: {error}", file=sys.stderr)
    sys.exit(EXIT_CODE_ERROR)


def setup_logging() -> None:
    """Route log records to stdout and stderr by level."""
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(logging.Formatter("%(message)s"))
    stdout_handler.addFilter(StreamRoutingFilter("stdout"))

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(logging.Formatter("%(message)s"))
    stderr_handler.addFilter(StreamRoutingFilter("stderr"))

    logging.basicConfig(
        level=logging.DEBUG if os.environ.get(DEBUG_ENV_VAR) == "1" else logging.INFO,
        handlers=[stdout_handler, stderr_handler],
    )


def main() -> None:
    """Entry point for Fire CLI with graceful error handling.

    Fire maps the public methods of InterrupterCLI (``list`` and
    ``interrupt``) to commands and handles argument parsing and help text.
    """
    setup_logging()

    debug_mode = os.environ.get(DEBUG_ENV_VAR) == "1"

    try:
        fire.Fire(InterrupterCLI())
    except ProviderCredentialsError:
        handle_credentials_error(debug_mode)
    except ValueError as e:
        handle_value_error(e, debug_mode)
    except ProviderAPIError as e:
        handle_api_error(e, debug_mode)
    except ProviderConnectionError as e:
        handle_connection_error(e, debug_mode)
    except RuntimeError as e:
        handle_runtime_error(e, debug_mode)
