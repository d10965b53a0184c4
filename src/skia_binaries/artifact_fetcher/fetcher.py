"""
Artifact fetcher implementation.

Downloads a release asset over HTTPS, following redirects by hand and
retrying only the failures the release host produces under load.
"""

import asyncio
import logging
import pathlib
from typing import Awaitable, Callable, Optional, Union

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from skia_binaries.skia_binaries_config import DEFAULT_MAX_RETRIES, DEFAULT_USER_AGENT
from skia_binaries.skia_binaries_exceptions import (
    DownloadError,
    RedirectError,
    TransientNetworkError,
)
from skia_binaries.skia_binaries_logger import SkiaBinariesLogger

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})
RATE_LIMIT_STATUS = 403
DEFAULT_MAX_REDIRECTS = 20
CHUNK_SIZE = 64 * 1024

SleepFn = Callable[[float], Awaitable[None]]


def _caused_by_connection_reset(error: BaseException) -> bool:
    current: Optional[BaseException] = error
    while current is not None:
        if isinstance(current, ConnectionResetError):
            return True
        current = current.__cause__ or current.__context__
    return "connection reset" in str(error).lower()


def is_transient_fault(error: BaseException) -> bool:
    """
    Decide whether a failed attempt is worth retrying.

    Retried: HTTP 403 (the release host's rate limiting), any message
    mentioning "rate limit", connection resets and connection timeouts.
    Everything else, including 404 and malformed redirects, is permanent.
    """
    if isinstance(error, RedirectError):
        return False
    if isinstance(error, TransientNetworkError):
        return True
    if isinstance(error, DownloadError) and error.status_code == RATE_LIMIT_STATUS:
        return True
    return "rate limit" in str(error).lower()


class ArtifactFetcher:
    """
    Streams release assets to disk.

    The HTTP transport and the sleep function are injectable so the retry
    and redirect behaviour can be exercised without network access or
    real delays.
    """

    def __init__(
        self,
        logger: SkiaBinariesLogger,
        user_agent: str = DEFAULT_USER_AGENT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: SleepFn = asyncio.sleep,
    ):
        """
        Args:
            logger: Logger for progress and retry messages
            user_agent: User-Agent header sent with every request
            max_retries: Number of retries after the first attempt
            max_redirects: Redirect hops allowed within one attempt
            transport: Optional httpx transport (tests use httpx.MockTransport)
            sleep: Coroutine used for backoff delays
        """
        self.logger = logger
        self.user_agent = user_agent
        self.max_retries = max_retries
        self.max_redirects = max_redirects
        self.transport = transport
        self.sleep = sleep

    async def fetch(self, url: str, dest_path: Union[str, pathlib.Path]) -> int:
        """
        Download `url` to `dest_path`.

        Returns:
            The number of attempts it took

        Raises:
            DownloadError: For non-200 responses and exhausted retries
            RedirectError: For a redirect without a Location header
            TransientNetworkError: For resets/timeouts once retries run out
        """
        dest_path = pathlib.Path(dest_path)
        dest_path.parent.mkdir(parents=True, exist_ok=True)

        attempts = 0
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=1, exp_base=2),
            retry=retry_if_exception(is_transient_fault),
            before_sleep=self._log_retry,
            sleep=self.sleep,
            reraise=True,
        )
        async with httpx.AsyncClient(
            headers={"User-Agent": self.user_agent},
            follow_redirects=False,
            transport=self.transport,
        ) as client:
            async for attempt in retrying:
                with attempt:
                    attempts += 1
                    await self._attempt_download(client, url, dest_path)
        return attempts

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception()
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        self.logger.log(
            f"Download failed ({error}), retrying in {delay:g}s...",
            logging.WARNING,
        )

    async def _attempt_download(
        self, client: httpx.AsyncClient, url: str, dest_path: pathlib.Path
    ) -> None:
        current_url = url
        for _ in range(self.max_redirects + 1):
            try:
                async with client.stream("GET", current_url) as response:
                    if response.status_code in REDIRECT_STATUSES:
                        location = response.headers.get("location")
                        if not location:
                            raise RedirectError(
                                f"Redirect without location for {current_url}",
                                url=current_url,
                                status_code=response.status_code,
                            )
                        current_url = str(response.url.join(location))
                        continue

                    if response.status_code != 200:
                        raise DownloadError(
                            f"Failed to download: {response.status_code} "
                            f"{response.reason_phrase}",
                            url=current_url,
                            status_code=response.status_code,
                        )

                    await self._stream_to_file(response, dest_path)
                    return
            except httpx.TimeoutException as e:
                raise TransientNetworkError(
                    f"Connection timed out for {current_url}: {e}", url=current_url
                ) from e
            except httpx.TransportError as e:
                if _caused_by_connection_reset(e):
                    raise TransientNetworkError(
                        f"Connection reset for {current_url}: {e}", url=current_url
                    ) from e
                raise

        raise RedirectError(
            f"Too many redirects (>{self.max_redirects}) for {url}", url=url
        )

    async def _stream_to_file(
        self, response: httpx.Response, dest_path: pathlib.Path
    ) -> None:
        # No partial file survives a failed stream.
        try:
            with open(dest_path, "wb") as f:
                async for chunk in response.aiter_bytes(CHUNK_SIZE):
                    f.write(chunk)
        except BaseException:
            dest_path.unlink(missing_ok=True)
            raise
