"""Shared plumbing for HTTP collaborators."""

import time
from typing import Any

import httpx

from tripcore.app.models.violations import Rejection
from tripcore.app.utils.logging import StructuredCollaboratorLogger
from tripcore.app.utils.metrics import PrometheusCollaboratorMetrics


class CollaboratorUnavailableError(Exception):
    """Collaborator could not be reached or answered with an error."""

    pass


class CatalogUnavailableError(CollaboratorUnavailableError):
    """Experience catalog fetch failed or timed out."""

    pass


class DraftNotReadyError(Exception):
    """Draft cannot be persisted yet."""

    def __init__(self, blockers: list[Rejection]) -> None:
        super().__init__("; ".join(b.message for b in blockers))
        self.blockers = blockers


class CollaboratorClient:
    """Base for async httpx clients of one backend collaborator."""

    collaborator = "backend"

    def __init__(
        self,
        base_url: str,
        timeout_ms: int,
        client: httpx.AsyncClient | None = None,
        logger: StructuredCollaboratorLogger | None = None,
        metrics: PrometheusCollaboratorMetrics | None = None,
    ) -> None:
        """Initialize client.

        Args:
            base_url: Backend base URL
            timeout_ms: Per-request timeout
            client: Optional httpx client (for testing with mocks)
            logger: Structured logger (defaults to StructuredCollaboratorLogger)
            metrics: Metrics recorder (defaults to Prometheus)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_ms = timeout_ms
        self._client = client
        self._logger = logger or StructuredCollaboratorLogger()
        self._metrics = metrics or PrometheusCollaboratorMetrics()

    async def _send(
        self,
        method: str,
        path: str,
        operation: str,
        key: str | int | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request, recording latency and outcome.

        Raises:
            httpx.HTTPError: On network errors or timeouts
        """
        close_client = False
        client = self._client
        if client is None:
            client = httpx.AsyncClient(timeout=self.timeout_ms / 1000)
            close_client = True

        start = time.monotonic()
        try:
            response = await client.request(method, f"{self.base_url}{path}", **kwargs)
        except httpx.TimeoutException:
            self._record(operation, "timeout", start, key, "timeout")
            raise
        except httpx.HTTPError as e:
            self._record(operation, "error", start, key, type(e).__name__)
            raise
        finally:
            if close_client:
                await client.aclose()

        if response.is_success:
            self._record(operation, "success", start, key)
        else:
            self._record(operation, "http_error", start, key, f"status_{response.status_code}")
        return response

    def _record(
        self,
        operation: str,
        outcome: str,
        start: float,
        key: str | int | None,
        error_reason: str | None = None,
    ) -> None:
        elapsed_ms = (time.monotonic() - start) * 1000
        self._metrics.record_latency(self.collaborator, outcome, elapsed_ms)
        if error_reason:
            self._metrics.inc_error(self.collaborator, error_reason)
        self._logger.log_call(
            self.collaborator, operation, outcome, elapsed_ms, key=key, error_reason=error_reason
        )
