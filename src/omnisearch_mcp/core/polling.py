"""Bounded polling for asynchronous upstream jobs.

Crawl and extract jobs return a job id immediately; ``poll`` then checks the
job status on a fixed interval until it completes, fails, or the attempt
budget runs out. Each check is preceded by a sleep, including the first.

Outcomes of a single check:
    - ``PollOutcome.completed(data)``: return ``data`` immediately
    - ``PollOutcome.failed(message)``: raise ``UpstreamProviderError`` now
    - ``PollOutcome.processing()``: keep polling

A ``ProviderError`` raised by the check itself (network blip, 5xx, 429) is
logged and counted as a processing attempt; the attempt budget is the real
backstop. ``poll`` is never wrapped by the retry engine.

Example usage:
    config = PollingConfig(
        provider_name="firecrawl_crawl",
        status_url=f"{base_url}/{job_id}",
        api_key=api_key,
        max_attempts=20,
        poll_interval=5.0,
    )
    data = await poll_job(config)
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

import httpx

from omnisearch_mcp.core.errors import ErrorKind, ProviderError, UpstreamProviderError
from omnisearch_mcp.core.http import execute_request
from omnisearch_mcp.core.retry import SleepFunc

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 20
DEFAULT_POLL_INTERVAL = 5.0  # seconds
DEFAULT_STATUS_TIMEOUT = 30.0  # seconds per status request

COMPLETED_STATUSES = frozenset(["completed"])
FAILED_STATUSES = frozenset(["failed", "error", "cancelled"])


class JobState(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    PROCESSING = "processing"


@dataclass(frozen=True)
class PollOutcome:
    """Result of one status check."""

    state: JobState
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def completed(cls, data: Any) -> "PollOutcome":
        return cls(JobState.COMPLETED, data=data)

    @classmethod
    def failed(cls, error: str) -> "PollOutcome":
        return cls(JobState.FAILED, error=error)

    @classmethod
    def processing(cls) -> "PollOutcome":
        return cls(JobState.PROCESSING)


@dataclass(frozen=True)
class PollingConfig:
    """Settings for one polling invocation.

    Attributes:
        provider_name: Provider errors are attributed to
        status_url: URL returning the job status
        api_key: Bearer credential for the status endpoint
        max_attempts: Status checks before giving up
        poll_interval: Seconds slept before each check
        timeout: Deadline in seconds for each status request
    """

    provider_name: str
    status_url: str
    api_key: str
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    poll_interval: float = DEFAULT_POLL_INTERVAL
    timeout: float = DEFAULT_STATUS_TIMEOUT


StatusCheck = Callable[[], Awaitable[PollOutcome]]


async def poll(
    status_check: StatusCheck,
    max_attempts: int,
    poll_interval: float,
    *,
    provider: str,
    sleep_func: Optional[SleepFunc] = None,
) -> Any:
    """Run ``status_check`` until the job reaches a terminal state.

    Returns:
        The data carried by the completed outcome.

    Raises:
        UpstreamProviderError: The job reported failure, or ``max_attempts``
            checks passed without completion.
    """
    _sleep = sleep_func or asyncio.sleep

    for attempt in range(1, max_attempts + 1):
        await _sleep(poll_interval)

        try:
            outcome = await status_check()
        except ProviderError as e:
            if e.kind is ErrorKind.INVALID_INPUT:
                raise
            logger.warning(
                "%s status check failed (attempt %d/%d): %s",
                provider,
                attempt,
                max_attempts,
                e,
            )
            continue

        if outcome.state is JobState.COMPLETED:
            logger.debug("%s job completed after %d attempt(s)", provider, attempt)
            return outcome.data
        if outcome.state is JobState.FAILED:
            raise UpstreamProviderError(
                f"Job failed: {outcome.error or 'Unknown error'}",
                provider,
                {"attempts": attempt},
            )
        logger.debug("%s job still processing (attempt %d/%d)", provider, attempt, max_attempts)

    raise UpstreamProviderError(
        f"Job timed out after {max_attempts} status checks",
        provider,
        {"attempts": max_attempts},
    )


def interpret_job_status(body: Any) -> PollOutcome:
    """Classify a Firecrawl-style ``{success, status, data, error}`` status body."""
    if not isinstance(body, dict):
        return PollOutcome.processing()
    if body.get("success") is False:
        return PollOutcome.failed(str(body.get("error") or "Unknown error"))

    status = str(body.get("status") or "").lower()
    if status in COMPLETED_STATUSES and body.get("data") is not None:
        return PollOutcome.completed(body)
    if status in FAILED_STATUSES:
        return PollOutcome.failed(str(body.get("error") or f"status {status}"))
    return PollOutcome.processing()


async def poll_job(
    config: PollingConfig,
    *,
    interpret: Callable[[Any], PollOutcome] = interpret_job_status,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    sleep_func: Optional[SleepFunc] = None,
) -> Any:
    """Poll ``config.status_url`` with bearer auth until the job is terminal."""

    async def check() -> PollOutcome:
        response = await execute_request(
            config.status_url,
            provider=config.provider_name,
            headers={"Authorization": f"Bearer {config.api_key}"},
            timeout=config.timeout,
            transport=transport,
        )
        return interpret(response.data)

    return await poll(
        check,
        config.max_attempts,
        config.poll_interval,
        provider=config.provider_name,
        sleep_func=sleep_func,
    )


__all__ = [
    "JobState",
    "PollOutcome",
    "PollingConfig",
    "interpret_job_status",
    "poll",
    "poll_job",
]
