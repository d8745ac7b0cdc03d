# routerbench/services/readiness_service.py
import asyncio
import logging
from typing import Optional, Sequence

import httpx

from routerbench.core.config import Settings
from routerbench.core.exceptions import ServerNotReadyError
from routerbench.models import AppTarget

logger = logging.getLogger(__name__)


async def wait_for_server(
    url: str,
    *,
    max_retries: int = 30,
    retry_delay_ms: int = 1000,
    timeout_s: float = 5.0,
    client: Optional[httpx.AsyncClient] = None,
) -> int:
    """
    Polls a URL until its HTTP listener answers.

    Any response counts as ready, whatever its status code.

    Args:
        url: The target base URL.
        max_retries: Number of attempts before giving up.
        retry_delay_ms: Fixed delay between attempts.
        timeout_s: Per-request timeout.
        client: Optional shared client; a private one is opened otherwise.

    Returns:
        The number of attempts it took.

    Raises:
        ServerNotReadyError: If no attempt got a response.
    """
    if client is None:
        async with httpx.AsyncClient() as own_client:
            return await wait_for_server(
                url,
                max_retries=max_retries,
                retry_delay_ms=retry_delay_ms,
                timeout_s=timeout_s,
                client=own_client,
            )

    logger.info("Waiting for server at %s...", url)
    for attempt in range(1, max_retries + 1):
        try:
            response = await client.get(url, timeout=timeout_s)
        except httpx.RequestError as e:
            logger.debug("Attempt %d for %s failed: %s", attempt, url, e)
            if attempt < max_retries:
                await asyncio.sleep(retry_delay_ms / 1000)
            continue

        logger.info("Server at %s is ready (HTTP %d)", url, response.status_code)
        return attempt

    raise ServerNotReadyError(url, max_retries)


async def wait_for_servers(
    targets: Sequence[AppTarget], config: Settings, client: Optional[httpx.AsyncClient] = None
) -> None:
    """Probes every target concurrently and returns once all of them answered."""
    if client is None:
        async with httpx.AsyncClient() as own_client:
            return await wait_for_servers(targets, config, client=own_client)

    await asyncio.gather(
        *(
            wait_for_server(
                target.base_url,
                max_retries=config.probe_max_retries,
                retry_delay_ms=config.probe_retry_delay_ms,
                timeout_s=config.probe_timeout_s,
                client=client,
            )
            for target in targets
        )
    )
    logger.info("All %d servers are ready for testing", len(targets))
