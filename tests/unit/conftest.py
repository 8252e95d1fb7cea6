"""Pytest configuration and fixtures for interrupter tests."""

import os
import threading
from collections.abc import Generator
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import yaml

from interrupter.core.selection import Candidate
from tests.unit.fakes import FakeActionInvoker, FakeCandidateSource


@pytest.fixture(autouse=True)
def clean_interrupter_env() -> Generator[None, None, None]:
    """Ensure interrupter environment variables do not leak into tests.

    Yields
    ------
    None
        Control back to test after clearing the environment
    """
    saved = {
        name: os.environ.pop(name, None)
        for name in ("INTERRUPTER_CONFIG", "INTERRUPTER_DEBUG", "AWS_DEFAULT_REGION")
    }

    yield

    for name, value in saved.items():
        if value is not None:
            os.environ[name] = value
        else:
            os.environ.pop(name, None)


@pytest.fixture
def candidates() -> list[Candidate]:
    """Three running Spot instances, the second one unnamed."""
    return [
        Candidate(instance_id="i-1", label="web"),
        Candidate(instance_id="i-2", label=""),
        Candidate(instance_id="i-3", label="db"),
    ]


@pytest.fixture
def source(candidates: list[Candidate]) -> FakeCandidateSource:
    return FakeCandidateSource(candidates)


@pytest.fixture
def invoker() -> FakeActionInvoker:
    return FakeActionInvoker(gate=threading.Event())


@pytest.fixture
def config_file(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a temporary config file path exposed through INTERRUPTER_CONFIG.

    Yields
    ------
    Path
        Path to temporary config file
    """
    config_path = tmp_path / "interrupter.yaml"
    os.environ["INTERRUPTER_CONFIG"] = str(config_path)

    yield config_path

    os.environ.pop("INTERRUPTER_CONFIG", None)


@pytest.fixture
def write_config(config_file: Path):
    """Helper fixture to write config data to file.

    Returns
    -------
    Callable[[dict], Path]
        Function writing a dict as YAML and returning the path
    """

    def _write(data: dict) -> Path:
        config_file.write_text(yaml.dump(data))
        return config_file

    return _write


@pytest.fixture
def boto3_clients() -> dict[str, MagicMock]:
    """Mock boto3 clients keyed by service name."""
    return {service: MagicMock(name=service) for service in ("ec2", "sts", "iam", "fis")}


@pytest.fixture
def boto3_client_factory(boto3_clients: dict[str, MagicMock]) -> MagicMock:
    """Mock boto3.client returning the per-service mocks."""
    return MagicMock(side_effect=lambda service, **kwargs: boto3_clients[service])
