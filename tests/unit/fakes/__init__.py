"""Fake collaborators for interrupter tests."""

from tests.unit.fakes.fake_collaborators import FakeActionInvoker, FakeCandidateSource

__all__ = ["FakeActionInvoker", "FakeCandidateSource"]
