"""Tests for the deployment poller."""

from unittest.mock import Mock

import pytest

from winnie.api import APIError, GatewayTimeoutError, TransportFailure
from winnie.api.client import Client
from winnie.core.deployment import DeploymentPoller, PollTimeoutError


class FakeClock:
    """Monotonic clock advanced only by the fake sleep."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client():
    return Mock(spec=Client)


def make_poller(client, clock, **kwargs):
    return DeploymentPoller(client, sleep=clock.sleep, clock=clock, **kwargs)


class TestDeploymentPoller:
    """Test the DeploymentPoller class."""

    def test_finished_on_first_fetch(self, client, clock):
        """Test a finished deployment returns without sleeping."""
        client.deployment.return_value = {"messages": ["one"], "result": "success", "state": "finished"}
        messages = []

        deployment = make_poller(client, clock).poll("foo", "42", on_message=messages.append)

        assert deployment.succeeded
        assert deployment.id == "42"
        assert messages == ["one"]
        assert clock.sleeps == []

    def test_new_messages_printed_once(self, client, clock):
        """Test messages stream in order without repeats."""
        client.deployment.side_effect = [
            {"messages": ["one"], "state": "running"},
            {"messages": ["one", "two"], "state": "running"},
            {"messages": ["one", "two", "three"], "result": "failure", "state": "deploy_failed"},
        ]
        messages = []

        deployment = make_poller(client, clock).poll("foo", "42", on_message=messages.append)

        assert messages == ["one", "two", "three"]
        assert deployment.is_terminal
        assert not deployment.succeeded

    def test_backoff_is_bounded(self, client, clock):
        """Test the wait grows by the backoff factor up to the maximum."""
        client.deployment.side_effect = [{"state": "running"}] * 5 + [{"state": "finished", "result": "success"}]

        make_poller(client, clock, interval=2.0, max_interval=5.0, backoff=1.5).poll("foo", "42")

        assert clock.sleeps == [2.0, 3.0, 4.5, 5.0, 5.0]

    def test_timeout(self, client, clock):
        """Test a deployment running past the timeout."""
        client.deployment.return_value = {"state": "running"}

        with pytest.raises(PollTimeoutError) as exc_info:
            make_poller(client, clock, interval=2.0, max_interval=10.0, timeout=10.0).poll("foo", "42")

        assert exc_info.value.code_name == "foo"
        assert exc_info.value.deployment_id == "42"
        assert sum(clock.sleeps) == pytest.approx(10.0)

    @pytest.mark.parametrize("error", [GatewayTimeoutError(), TransportFailure()])
    def test_transient_errors_are_retried(self, client, clock, error):
        """Test gateway timeouts and network failures don't end polling."""
        client.deployment.side_effect = [error, {"state": "finished", "result": "success"}]

        deployment = make_poller(client, clock).poll("foo", "42")

        assert deployment.succeeded
        assert client.deployment.call_count == 2

    def test_other_errors_propagate(self, client, clock):
        """Test non-transient failures stop polling."""
        error = APIError({"message": "boom"}, status_code=500)
        client.deployment.side_effect = error

        with pytest.raises(APIError) as exc_info:
            make_poller(client, clock).poll("foo", "42")

        assert exc_info.value is error
