"""Spot interruptions through AWS Fault Injection Service."""

from __future__ import annotations

import json
import logging
import time
import uuid
from collections.abc import Callable, Iterable
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from interrupter.constants import DEFAULT_CLEAN_UP
from interrupter.providers.aws.constants import (
    DEFAULT_DURATION_BEFORE_INTERRUPTION,
    DEFAULT_FIS_ROLE_NAME,
    EXPERIMENT_FAILED_STATES,
    EXPERIMENT_POLL_INTERVAL_SECONDS,
    EXPERIMENT_STARTED_STATES,
    FIS_MANAGED_POLICY_ARN,
    FIS_TRUST_POLICY,
    MANAGED_BY_TAG,
    SPOT_INSTANCES_RESOURCE_TYPE,
    SPOT_INTERRUPTION_ACTION_ID,
)
from interrupter.providers.aws.errors import handle_aws_errors
from interrupter.providers.aws.instances import SpotInstanceSource, build_client_config
from interrupter.providers.exceptions import ProviderAPIError

logger = logging.getLogger(__name__)

TARGET_NAME = "SpotInstances"
ACTION_NAME = "interruptSpotInstances"


class FISInterrupter:
    """Interrupt Spot instances by running a FIS experiment.

    Each call creates an experiment template targeting the given instances
    with the ``aws:ec2:send-spot-instance-interruptions`` action, starts it
    and waits until FIS reports the experiment as running.

    Parameters
    ----------
    region : str
        AWS region of the instances
    role_name : str
        IAM role FIS assumes; created on first use if missing
    clean_up : bool
        Delete the experiment template once the experiment has started
    duration_before_interruption : str
        ISO 8601 delay between the interruption notice and the interruption
    boto3_client_factory : Callable[..., Any] | None
        Optional factory for creating boto3 clients. If None, uses boto3.client
    max_attempts : int | None
        Total botocore attempts per call
    sleep : Callable[[float], None]
        Sleep function used between polls
    clock : Callable[[], float]
        Monotonic clock used for the timeout deadline
    """

    def __init__(
        self,
        region: str,
        role_name: str = DEFAULT_FIS_ROLE_NAME,
        clean_up: bool = DEFAULT_CLEAN_UP,
        duration_before_interruption: str = DEFAULT_DURATION_BEFORE_INTERRUPTION,
        boto3_client_factory: Callable[..., Any] | None = None,
        max_attempts: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.region = region
        self.role_name = role_name
        self.clean_up = clean_up
        self.duration_before_interruption = duration_before_interruption
        self.boto3_client_factory = boto3_client_factory or boto3.client
        self.max_attempts = max_attempts
        self._sleep = sleep
        self._clock = clock
        self._clients: dict[str, Any] = {}

    def _client(self, service: str) -> Any:
        if service not in self._clients:
            kwargs: dict[str, Any] = {"region_name": self.region}
            client_config = build_client_config(self.max_attempts)

            if client_config is not None:
                kwargs["config"] = client_config

            self._clients[service] = self.boto3_client_factory(service, **kwargs)
        return self._clients[service]

    def interrupt(self, instance_ids: Iterable[str], timeout: float, force: bool) -> None:
        """Send Spot interruptions to the given instances.

        Parameters
        ----------
        instance_ids : Iterable[str]
            Instances to interrupt; order is irrelevant
        timeout : float
            Seconds from this call until the experiment must have started
        force : bool
            Skip checking that every instance is a running Spot instance

        Raises
        ------
        ValueError
            If no instances are given, or an instance is not a running Spot
            instance and ``force`` is False
        RuntimeError
            If the experiment fails or does not start before the timeout
        ProviderAPIError
            If an AWS call is rejected
        """
        deadline = self._clock() + timeout
        ids = sorted(set(instance_ids))

        if not ids:
            raise ValueError("No instances selected for interruption")

        if not force:
            self.verify_spot_instances(ids)

        logger.info("Interrupting %d Spot instance(s): %s", len(ids), ", ".join(ids))

        role_arn = self.ensure_role()
        template_id = self.create_experiment_template(ids, role_arn)

        try:
            if self._clock() >= deadline:
                raise RuntimeError(
                    f"Spot interruption did not start within {timeout:g}s "
                    "(timed out before starting the experiment)"
                )

            experiment_id = self.start_experiment(template_id)
            self.wait_for_experiment(experiment_id, timeout, deadline=deadline)
        finally:
            if self.clean_up:
                self.delete_experiment_template(template_id)

        logger.info("Spot interruption experiment %s started", experiment_id)

    def verify_spot_instances(self, instance_ids: list[str]) -> None:
        """Check that every instance is a running Spot instance.

        Parameters
        ----------
        instance_ids : list[str]
            Instances to check

        Raises
        ------
        ValueError
            If any instance is not a running Spot instance
        """
        source = SpotInstanceSource(
            self.region,
            boto3_client_factory=lambda service, **kwargs: self._client(service),
        )
        found = {
            instance["InstanceId"]
            for instance in source.describe_spot_instances(
                instance_ids=instance_ids, states=["running"]
            )
        }
        missing = [instance_id for instance_id in instance_ids if instance_id not in found]

        if missing:
            raise ValueError(
                f"Not running Spot instances in {self.region}: {', '.join(missing)}"
            )

    def instance_arns(self, instance_ids: list[str]) -> list[str]:
        """Build instance ARNs for the caller's account and partition."""
        with handle_aws_errors():
            identity = self._client("sts").get_caller_identity()

        account_id = identity["Account"]
        partition = identity["Arn"].split(":")[1]

        return [
            f"arn:{partition}:ec2:{self.region}:{account_id}:instance/{instance_id}"
            for instance_id in instance_ids
        ]

    def ensure_role(self) -> str:
        """Return the ARN of the FIS role, creating the role if needed.

        Returns
        -------
        str
            IAM role ARN
        """
        iam = self._client("iam")

        try:
            with handle_aws_errors():
                return iam.get_role(RoleName=self.role_name)["Role"]["Arn"]
        except ProviderAPIError as e:
            if e.error_code != "NoSuchEntity":
                raise

        logger.info("Creating IAM role %s for Fault Injection Service", self.role_name)

        with handle_aws_errors():
            response = iam.create_role(
                RoleName=self.role_name,
                AssumeRolePolicyDocument=json.dumps(FIS_TRUST_POLICY),
                Description="Allows FIS to send Spot instance interruptions",
                Tags=[{"Key": "ManagedBy", "Value": MANAGED_BY_TAG}],
            )
            iam.attach_role_policy(RoleName=self.role_name, PolicyArn=FIS_MANAGED_POLICY_ARN)
            iam.get_waiter("role_exists").wait(RoleName=self.role_name)

        return response["Role"]["Arn"]

    def create_experiment_template(self, instance_ids: list[str], role_arn: str) -> str:
        """Create a single-use experiment template for the instances.

        Returns
        -------
        str
            Experiment template ID
        """
        arns = self.instance_arns(instance_ids)

        with handle_aws_errors():
            response = self._client("fis").create_experiment_template(
                clientToken=str(uuid.uuid4()),
                description=f"Interrupt {len(instance_ids)} Spot instance(s)",
                stopConditions=[{"source": "none"}],
                targets={
                    TARGET_NAME: {
                        "resourceType": SPOT_INSTANCES_RESOURCE_TYPE,
                        "resourceArns": arns,
                        "selectionMode": "ALL",
                    }
                },
                actions={
                    ACTION_NAME: {
                        "actionId": SPOT_INTERRUPTION_ACTION_ID,
                        "parameters": {
                            "durationBeforeInterruption": self.duration_before_interruption
                        },
                        "targets": {TARGET_NAME: TARGET_NAME},
                    }
                },
                roleArn=role_arn,
                tags={"ManagedBy": MANAGED_BY_TAG},
            )

        template_id = response["experimentTemplate"]["id"]
        logger.debug("Created experiment template %s", template_id)
        return template_id

    def start_experiment(self, template_id: str) -> str:
        """Start an experiment from a template and return its ID."""
        with handle_aws_errors():
            response = self._client("fis").start_experiment(
                clientToken=str(uuid.uuid4()),
                experimentTemplateId=template_id,
                tags={"ManagedBy": MANAGED_BY_TAG},
            )

        return response["experiment"]["id"]

    def wait_for_experiment(
        self, experiment_id: str, timeout: float, deadline: float | None = None
    ) -> None:
        """Poll an experiment until it runs, fails or the timeout elapses.

        Parameters
        ----------
        experiment_id : str
            Experiment to poll
        timeout : float
            Seconds to wait
        deadline : float | None
            Clock value to stop at; defaults to now plus ``timeout``

        Raises
        ------
        RuntimeError
            If the experiment ends in a failed state or does not start in time
        """
        if deadline is None:
            deadline = self._clock() + timeout

        fis = self._client("fis")

        while True:
            with handle_aws_errors():
                experiment = fis.get_experiment(id=experiment_id)["experiment"]

            state = experiment.get("state", {})
            status = state.get("status", "unknown")
            logger.debug("Experiment %s status: %s", experiment_id, status)

            if status in EXPERIMENT_STARTED_STATES:
                return

            if status in EXPERIMENT_FAILED_STATES:
                reason = state.get("reason", "no reason given")
                raise RuntimeError(f"Spot interruption experiment {status}: {reason}")

            if self._clock() >= deadline:
                raise RuntimeError(
                    f"Spot interruption experiment {experiment_id} did not start "
                    f"within {timeout:g}s (last status: {status})"
                )

            self._sleep(EXPERIMENT_POLL_INTERVAL_SECONDS)

    def delete_experiment_template(self, template_id: str) -> None:
        """Delete an experiment template, logging failures."""
        try:
            self._client("fis").delete_experiment_template(id=template_id)
        except (ClientError, BotoCoreError) as e:
            logger.debug("Failed to delete experiment template %s: %s", template_id, e)
