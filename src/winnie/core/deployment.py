"""Polling a deployment until it reaches a terminal state."""

import logging
import time
from typing import Callable, Optional

from winnie.api import GatewayTimeoutError, TransportFailure
from winnie.api.client import Client
from .models import Deployment


logger = logging.getLogger(__name__)


class PollTimeoutError(Exception):
    """Raised when a deployment is still running after the poll timeout."""

    def __init__(self, code_name: str, deployment_id: str, timeout: float) -> None:
        super().__init__(f"Deployment {deployment_id} of {code_name} still running after {timeout:.0f}s")
        self.code_name = code_name
        self.deployment_id = deployment_id
        self.timeout = timeout


class DeploymentPoller:
    """Fetch deployment status until it leaves the ``running`` state.

    The wait between fetches starts at ``interval`` and grows by
    ``backoff`` up to ``max_interval``; the whole wait is bounded by
    ``timeout``. Gateway timeouts and network failures while fetching
    are retried inside that budget, anything else propagates.
    """

    TRANSIENT_ERRORS = (GatewayTimeoutError, TransportFailure)

    def __init__(
        self,
        client: Client,
        interval: float = 2.0,
        max_interval: float = 10.0,
        timeout: float = 900.0,
        backoff: float = 1.5,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.interval = interval
        self.max_interval = max_interval
        self.timeout = timeout
        self.backoff = backoff
        self._sleep = sleep
        self._clock = clock

    def poll(
        self,
        code_name: str,
        deployment_id: str,
        on_message: Optional[Callable[[str], None]] = None,
    ) -> Deployment:
        """Block until the deployment is terminal, streaming new messages.

        Returns:
            The terminal Deployment

        Raises:
            PollTimeoutError: If still running after the timeout
        """
        deadline = self._clock() + self.timeout
        delay = self.interval
        printed = 0

        while True:
            deployment = self._fetch(code_name, deployment_id)
            if deployment is not None:
                for message in deployment.messages[printed:]:
                    if on_message:
                        on_message(message)
                printed = max(printed, len(deployment.messages))
                if deployment.is_terminal:
                    logger.debug("Deployment %s finished: %s/%s", deployment_id, deployment.state, deployment.result)
                    return deployment

            remaining = deadline - self._clock()
            if remaining <= 0:
                raise PollTimeoutError(code_name, deployment_id, self.timeout)
            self._sleep(min(delay, remaining))
            delay = min(delay * self.backoff, self.max_interval)

    def _fetch(self, code_name: str, deployment_id: str) -> Optional[Deployment]:
        try:
            data = self.client.deployment(code_name, deployment_id)
        except self.TRANSIENT_ERRORS as e:
            logger.debug("Retrying deployment %s status after: %s", deployment_id, e)
            return None
        return Deployment.from_api(deployment_id, data)
