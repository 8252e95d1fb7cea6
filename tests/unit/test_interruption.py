"""Unit tests for FISInterrupter."""

import json
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from interrupter.providers.aws.constants import (
    FIS_MANAGED_POLICY_ARN,
    SPOT_INTERRUPTION_ACTION_ID,
)
from interrupter.providers.aws.interruption import FISInterrupter
from interrupter.providers.exceptions import ProviderAPIError

ROLE_ARN = "arn:aws:iam::123456789012:role/spot-interrupter-fis-role"


class FakeClock:
    """Monotonic clock advanced by the fake sleep."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def clients(boto3_clients: dict[str, MagicMock]) -> dict[str, MagicMock]:
    boto3_clients["sts"].get_caller_identity.return_value = {
        "Account": "123456789012",
        "Arn": "arn:aws:sts::123456789012:assumed-role/ops/me",
    }
    boto3_clients["iam"].get_role.return_value = {"Role": {"Arn": ROLE_ARN}}
    boto3_clients["fis"].create_experiment_template.return_value = {
        "experimentTemplate": {"id": "EXT123"}
    }
    boto3_clients["fis"].start_experiment.return_value = {
        "experiment": {"id": "EXP123", "state": {"status": "initiating"}}
    }
    boto3_clients["fis"].get_experiment.return_value = {
        "experiment": {"id": "EXP123", "state": {"status": "running"}}
    }
    return boto3_clients


@pytest.fixture
def interrupter(clients, boto3_client_factory, clock) -> FISInterrupter:
    return FISInterrupter(
        "us-east-1",
        boto3_client_factory=boto3_client_factory,
        sleep=clock.sleep,
        clock=clock,
    )


def client_error(code: str, operation: str = "Operation") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class TestInterrupt:
    def test_runs_spot_interruption_experiment(self, interrupter, clients) -> None:
        interrupter.interrupt({"i-2", "i-3"}, timeout=15, force=True)

        kwargs = clients["fis"].create_experiment_template.call_args.kwargs
        assert kwargs["roleArn"] == ROLE_ARN
        assert kwargs["stopConditions"] == [{"source": "none"}]

        target = kwargs["targets"]["SpotInstances"]
        assert target["resourceType"] == "aws:ec2:spot-instance"
        assert target["resourceArns"] == [
            "arn:aws:ec2:us-east-1:123456789012:instance/i-2",
            "arn:aws:ec2:us-east-1:123456789012:instance/i-3",
        ]

        action = kwargs["actions"]["interruptSpotInstances"]
        assert action["actionId"] == SPOT_INTERRUPTION_ACTION_ID
        assert action["parameters"] == {"durationBeforeInterruption": "PT2M"}

        clients["fis"].start_experiment.assert_called_once()
        assert clients["fis"].start_experiment.call_args.kwargs["experimentTemplateId"] == "EXT123"

    def test_clean_up_deletes_template(self, interrupter, clients) -> None:
        interrupter.interrupt(["i-1"], timeout=15, force=True)

        clients["fis"].delete_experiment_template.assert_called_once_with(id="EXT123")

    def test_no_clean_up_keeps_template(self, clients, boto3_client_factory, clock) -> None:
        interrupter = FISInterrupter(
            "us-east-1",
            clean_up=False,
            boto3_client_factory=boto3_client_factory,
            sleep=clock.sleep,
            clock=clock,
        )

        interrupter.interrupt(["i-1"], timeout=15, force=True)

        clients["fis"].delete_experiment_template.assert_not_called()

    def test_empty_selection_is_rejected(self, interrupter, clients) -> None:
        with pytest.raises(ValueError, match="No instances selected"):
            interrupter.interrupt([], timeout=15, force=True)

        clients["fis"].create_experiment_template.assert_not_called()

    def test_partition_is_taken_from_caller_arn(self, interrupter, clients) -> None:
        clients["sts"].get_caller_identity.return_value = {
            "Account": "123456789012",
            "Arn": "arn:aws-cn:sts::123456789012:assumed-role/ops/me",
        }

        interrupter.interrupt(["i-1"], timeout=15, force=True)

        arns = clients["fis"].create_experiment_template.call_args.kwargs["targets"][
            "SpotInstances"
        ]["resourceArns"]
        assert arns == ["arn:aws-cn:ec2:us-east-1:123456789012:instance/i-1"]


class TestVerification:
    def test_force_skips_verification(self, interrupter, clients) -> None:
        interrupter.interrupt(["i-1"], timeout=15, force=True)

        clients["ec2"].get_paginator.assert_not_called()

    def test_non_spot_instances_rejected_without_force(self, interrupter, clients) -> None:
        paginator = MagicMock()
        paginator.paginate.return_value = [
            {"Reservations": [{"Instances": [{"InstanceId": "i-1"}]}]}
        ]
        clients["ec2"].get_paginator.return_value = paginator

        with pytest.raises(ValueError, match="i-2"):
            interrupter.interrupt(["i-1", "i-2"], timeout=15, force=False)

        clients["fis"].create_experiment_template.assert_not_called()

    def test_running_spot_instances_pass_without_force(self, interrupter, clients) -> None:
        paginator = MagicMock()
        paginator.paginate.return_value = [
            {"Reservations": [{"Instances": [{"InstanceId": "i-1"}, {"InstanceId": "i-2"}]}]}
        ]
        clients["ec2"].get_paginator.return_value = paginator

        interrupter.interrupt(["i-2", "i-1"], timeout=15, force=False)

        assert paginator.paginate.call_args.kwargs["InstanceIds"] == ["i-1", "i-2"]
        clients["fis"].start_experiment.assert_called_once()


class TestRole:
    def test_existing_role_is_reused(self, interrupter, clients) -> None:
        assert interrupter.ensure_role() == ROLE_ARN
        clients["iam"].create_role.assert_not_called()

    def test_missing_role_is_created(self, interrupter, clients) -> None:
        clients["iam"].get_role.side_effect = client_error("NoSuchEntity", "GetRole")
        clients["iam"].create_role.return_value = {"Role": {"Arn": ROLE_ARN}}

        assert interrupter.ensure_role() == ROLE_ARN

        create_kwargs = clients["iam"].create_role.call_args.kwargs
        trust = json.loads(create_kwargs["AssumeRolePolicyDocument"])
        assert trust["Statement"][0]["Principal"] == {"Service": "fis.amazonaws.com"}
        clients["iam"].attach_role_policy.assert_called_once_with(
            RoleName="spot-interrupter-fis-role", PolicyArn=FIS_MANAGED_POLICY_ARN
        )
        clients["iam"].get_waiter.assert_called_once_with("role_exists")

    def test_other_role_errors_propagate(self, interrupter, clients) -> None:
        clients["iam"].get_role.side_effect = client_error("AccessDenied", "GetRole")

        with pytest.raises(ProviderAPIError) as exc_info:
            interrupter.ensure_role()

        assert exc_info.value.error_code == "AccessDenied"
        clients["iam"].create_role.assert_not_called()


class TestWaitForExperiment:
    def test_polls_until_running(self, interrupter, clients, clock) -> None:
        clients["fis"].get_experiment.side_effect = [
            {"experiment": {"state": {"status": "pending"}}},
            {"experiment": {"state": {"status": "initiating"}}},
            {"experiment": {"state": {"status": "running"}}},
        ]

        interrupter.wait_for_experiment("EXP123", timeout=15)

        assert clock.sleeps == [1.0, 1.0]

    def test_failed_experiment_raises(self, interrupter, clients) -> None:
        clients["fis"].get_experiment.return_value = {
            "experiment": {"state": {"status": "failed", "reason": "role cannot be assumed"}}
        }

        with pytest.raises(RuntimeError, match="role cannot be assumed"):
            interrupter.wait_for_experiment("EXP123", timeout=15)

    def test_timeout_raises(self, interrupter, clients, clock) -> None:
        clients["fis"].get_experiment.return_value = {
            "experiment": {"state": {"status": "initiating"}}
        }

        with pytest.raises(RuntimeError, match="did not start within 15s"):
            interrupter.wait_for_experiment("EXP123", timeout=15)

        assert clock.now >= 15

    def test_template_deleted_when_experiment_fails(self, interrupter, clients) -> None:
        clients["fis"].get_experiment.return_value = {
            "experiment": {"state": {"status": "failed", "reason": "boom"}}
        }

        with pytest.raises(RuntimeError):
            interrupter.interrupt(["i-1"], timeout=15, force=True)

        clients["fis"].delete_experiment_template.assert_called_once_with(id="EXT123")

    def test_template_delete_failure_is_not_raised(self, interrupter, clients) -> None:
        clients["fis"].delete_experiment_template.side_effect = client_error(
            "ResourceNotFoundException"
        )

        interrupter.interrupt(["i-1"], timeout=15, force=True)

    def test_template_delete_connection_error_keeps_original_error(
        self, interrupter, clients
    ) -> None:
        clients["fis"].get_experiment.return_value = {
            "experiment": {"state": {"status": "failed", "reason": "boom"}}
        }
        clients["fis"].delete_experiment_template.side_effect = EndpointConnectionError(
            endpoint_url="https://fis.us-east-1.amazonaws.com"
        )

        with pytest.raises(RuntimeError, match="boom"):
            interrupter.interrupt(["i-1"], timeout=15, force=True)


class TestTimeoutBudget:
    def test_role_setup_counts_against_timeout(self, interrupter, clients, clock) -> None:
        def slow_get_role(**kwargs):
            clock.now += 20
            return {"Role": {"Arn": ROLE_ARN}}

        clients["iam"].get_role.side_effect = slow_get_role

        with pytest.raises(RuntimeError, match="did not start within 15s"):
            interrupter.interrupt(["i-1"], timeout=15, force=True)

        clients["fis"].start_experiment.assert_not_called()
        clients["fis"].delete_experiment_template.assert_called_once_with(id="EXT123")

    def test_polling_uses_remaining_time(self, interrupter, clients, clock) -> None:
        def slow_get_role(**kwargs):
            clock.now += 10
            return {"Role": {"Arn": ROLE_ARN}}

        clients["iam"].get_role.side_effect = slow_get_role
        clients["fis"].get_experiment.return_value = {
            "experiment": {"state": {"status": "initiating"}}
        }

        with pytest.raises(RuntimeError, match="did not start within 15s"):
            interrupter.interrupt(["i-1"], timeout=15, force=True)

        assert clock.sleeps == [1.0] * 5
