#!/usr/bin/env python3
"""Interrupter - interactive EC2 Spot interruption tool."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any

import boto3

for _boto_module in ["botocore", "boto3", "urllib3"]:
    logging.getLogger(_boto_module).setLevel(logging.WARNING)

from interrupter.core.config import ConfigLoader  # noqa: E402
from interrupter.core.interfaces import ActionInvoker, CandidateSource  # noqa: E402
from interrupter.core.session import Outcome, SessionResult  # noqa: E402
from interrupter.providers import get_provider  # noqa: E402
from interrupter.tui import InterrupterTUI  # noqa: E402
from interrupter.utils import format_instance_row  # noqa: E402

logger = logging.getLogger(__name__)


class Interrupter:
    """Main CLI interface for interrupter.

    Parameters
    ----------
    source_factory : Callable[[dict[str, Any]], CandidateSource] | None
        Builds the candidate source from the effective config.
        If None, uses the configured provider's source class.
    invoker_factory : Callable[[dict[str, Any]], ActionInvoker] | None
        Builds the action invoker from the effective config.
        If None, uses the configured provider's invoker class.
    tui_factory : Callable[..., InterrupterTUI] | None
        Builds the interactive app. If None, uses InterrupterTUI.
    boto3_client_factory : Callable | None
        Factory passed to the provider classes. If None, uses boto3.client.
    """

    def __init__(
        self,
        source_factory: Callable[[dict[str, Any]], CandidateSource] | None = None,
        invoker_factory: Callable[[dict[str, Any]], ActionInvoker] | None = None,
        tui_factory: Callable[..., InterrupterTUI] | None = None,
        boto3_client_factory: Callable | None = None,
    ) -> None:
        self._config_loader = ConfigLoader()
        self._boto3_client_factory = boto3_client_factory or boto3.client
        self._source_factory = source_factory or self._create_source
        self._invoker_factory = invoker_factory or self._create_invoker
        self._tui_factory = tui_factory or InterrupterTUI

    def _create_source(self, config: dict[str, Any]) -> CandidateSource:
        source_class = get_provider(config["provider"])["source"]
        return source_class(
            region=config["region"],
            boto3_client_factory=self._boto3_client_factory,
            max_attempts=config["max_attempts"],
        )

    def _create_invoker(self, config: dict[str, Any]) -> ActionInvoker:
        invoker_class = get_provider(config["provider"])["invoker"]
        return invoker_class(
            region=config["region"],
            role_name=config["role_name"],
            clean_up=config["clean_up"],
            duration_before_interruption=config["duration_before_interruption"],
            boto3_client_factory=self._boto3_client_factory,
            max_attempts=config["max_attempts"],
        )

    def _effective_config(self, config_path: str | None, **overrides: Any) -> dict[str, Any]:
        config = self._config_loader.load_config(config_path)
        return self._config_loader.get_effective_config(config, overrides)

    def list(
        self,
        region: str | None = None,
        config: str | None = None,
        json_output: bool = False,
    ) -> str:
        """List running Spot instances.

        Parameters
        ----------
        region : str | None
            Region override
        config : str | None
            Path to config file
        json_output : bool
            Output instances as JSON

        Returns
        -------
        str
            One ``id (name)`` row per instance, or a JSON array
        """
        effective = self._effective_config(config, region=region)
        candidates = self._source_factory(effective).list_candidates()

        if json_output:
            return json.dumps(
                [{"instance_id": c.instance_id, "name": c.label} for c in candidates],
                indent=2,
            )

        if not candidates:
            logger.info("No Spot instances running in %s", effective["region"])
            return ""

        return "\n".join(format_instance_row(c.instance_id, c.label) for c in candidates)

    def interrupt(
        self,
        *instance_ids: str,
        region: str | None = None,
        timeout: str | float | None = None,
        force: bool | None = None,
        config: str | None = None,
    ) -> SessionResult:
        """Interrupt Spot instances.

        With instance IDs, interrupts them directly. Without, opens the
        interactive selector.

        Parameters
        ----------
        *instance_ids : str
            Instances to interrupt without prompting
        region : str | None
            Region override
        timeout : str | float | None
            Interruption timeout, seconds or a duration such as ``15s``
        force : bool | None
            Force flag passed to the interruption provider
        config : str | None
            Path to config file

        Returns
        -------
        SessionResult
            How the interruption ended

        Raises
        ------
        Exception
            The collaborator error that ended the session, if any
        """
        effective = self._effective_config(
            config, region=region, timeout=timeout, force=force
        )
        invoker = self._invoker_factory(effective)

        if instance_ids:
            ids = frozenset(str(instance_id) for instance_id in instance_ids)
            invoker.interrupt(ids, effective["timeout"], effective["force"])
            return SessionResult(outcome=Outcome.INTERRUPTED, instance_ids=ids)

        app = self._tui_factory(
            source=self._source_factory(effective),
            invoker=invoker,
            timeout=effective["timeout"],
            force=effective["force"],
        )
        result = app.run()

        if result is None:
            return SessionResult(outcome=Outcome.QUIT)

        if result.error is not None:
            raise result.error

        return result


if __name__ == "__main__":
    from interrupter.cli.main import main

    main()
