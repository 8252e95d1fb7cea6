"""AWS-specific constants for interrupter."""

DEFAULT_REGION = "us-east-1"

SPOT_INTERRUPTION_ACTION_ID = "aws:ec2:send-spot-instance-interruptions"
"""FIS action that delivers a Spot interruption notice and then interrupts."""

SPOT_INSTANCES_RESOURCE_TYPE = "aws:ec2:spot-instance"

DEFAULT_DURATION_BEFORE_INTERRUPTION = "PT2M"
"""ISO 8601 delay between the interruption notice and the interruption.

Two minutes matches the notice EC2 gives for a real Spot reclaim and is the
minimum FIS accepts.
"""

DEFAULT_FIS_ROLE_NAME = "spot-interrupter-fis-role"

FIS_MANAGED_POLICY_ARN = (
    "arn:aws:iam::aws:policy/service-role/AWSFaultInjectionSimulatorEC2Access"
)

FIS_TRUST_POLICY = {
    "Version": "2012-10-17",
    "Statement": [
        {
            "Effect": "Allow",
            "Principal": {"Service": "fis.amazonaws.com"},
            "Action": "sts:AssumeRole",
        }
    ],
}

EXPERIMENT_POLL_INTERVAL_SECONDS = 1.0
"""Delay between get_experiment polls while waiting for the experiment to start."""

EXPERIMENT_STARTED_STATES = frozenset({"running", "completed"})
EXPERIMENT_FAILED_STATES = frozenset({"failed", "stopped", "stopping", "cancelled"})

MANAGED_BY_TAG = "spot-interrupter"
