"""Spot instance discovery on EC2."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import boto3
from botocore.config import Config

from interrupter.core.selection import Candidate
from interrupter.providers.aws.errors import handle_aws_errors

logger = logging.getLogger(__name__)


def build_client_config(max_attempts: int | None) -> Config | None:
    """Build botocore client config carrying the retry policy.

    Parameters
    ----------
    max_attempts : int | None
        Total attempts per API call, or None for botocore defaults

    Returns
    -------
    Config | None
        Client config, or None when defaults apply
    """
    if max_attempts is None:
        return None

    return Config(retries={"max_attempts": max_attempts, "mode": "standard"})


def instance_name(instance: dict[str, Any]) -> str:
    """Return the Name tag of an instance, or an empty string.

    Parameters
    ----------
    instance : dict[str, Any]
        Instance description from describe_instances

    Returns
    -------
    str
        Value of the ``Name`` tag, empty if the tag is absent
    """
    for tag in instance.get("Tags", []):
        if tag.get("Key") == "Name":
            return tag.get("Value", "")
    return ""


class SpotInstanceSource:
    """List running Spot instances in a region as selectable candidates.

    Parameters
    ----------
    region : str
        AWS region to query
    boto3_client_factory : Callable[..., Any] | None
        Optional factory for creating boto3 clients. If None, uses boto3.client
    max_attempts : int | None
        Total botocore attempts per call
    """

    def __init__(
        self,
        region: str,
        boto3_client_factory: Callable[..., Any] | None = None,
        max_attempts: int | None = None,
    ) -> None:
        self.region = region
        self.boto3_client_factory = boto3_client_factory or boto3.client
        self.client_config = build_client_config(max_attempts)
        self._ec2_client: Any | None = None

    @property
    def ec2_client(self) -> Any:
        """Lazily created EC2 client."""
        if self._ec2_client is None:
            kwargs: dict[str, Any] = {"region_name": self.region}

            if self.client_config is not None:
                kwargs["config"] = self.client_config

            self._ec2_client = self.boto3_client_factory("ec2", **kwargs)
        return self._ec2_client

    def describe_spot_instances(
        self, instance_ids: list[str] | None = None, states: list[str] | None = None
    ) -> list[dict[str, Any]]:
        """Return raw descriptions of Spot instances.

        Parameters
        ----------
        instance_ids : list[str] | None
            Restrict results to these instance IDs
        states : list[str] | None
            Restrict results to these instance states

        Returns
        -------
        list[dict[str, Any]]
            Instance descriptions in response order
        """
        filters = [{"Name": "instance-lifecycle", "Values": ["spot"]}]

        if states:
            filters.append({"Name": "instance-state-name", "Values": states})

        paginate_kwargs: dict[str, Any] = {"Filters": filters}

        if instance_ids:
            paginate_kwargs["InstanceIds"] = sorted(instance_ids)

        instances = []

        with handle_aws_errors():
            paginator = self.ec2_client.get_paginator("describe_instances")

            for page in paginator.paginate(**paginate_kwargs):
                for reservation in page["Reservations"]:
                    instances.extend(reservation["Instances"])

        return instances

    def list_candidates(self) -> list[Candidate]:
        """List running Spot instances.

        Returns
        -------
        list[Candidate]
            One candidate per instance, deduplicated by ID, in response order

        Raises
        ------
        ProviderCredentialsError
            If AWS credentials are not available
        ProviderAPIError
            If the describe call is rejected
        """
        logger.debug("Listing running Spot instances in %s", self.region)

        seen: set[str] = set()
        candidates = []

        for instance in self.describe_spot_instances(states=["running"]):
            instance_id = instance["InstanceId"]

            if instance_id in seen:
                continue

            seen.add(instance_id)
            candidates.append(Candidate(instance_id=instance_id, label=instance_name(instance)))

        logger.debug("Found %d Spot instances in %s", len(candidates), self.region)
        return candidates
