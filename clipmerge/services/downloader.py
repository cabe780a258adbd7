"""Downloader for the source clips of a job."""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Sequence

import httpx

from clipmerge.utils.errors import DownloadError, TransientDownloadError
from clipmerge.utils.retry import with_retry

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = {429}
CHUNK_SIZE = 1024 * 1024


def clip_filename(index: int) -> str:
    return f"clip-{index}.mp4"


class ClipDownloader:
    """Fetches source clips over HTTP with bounded concurrency."""

    def __init__(
        self,
        concurrency: int = 4,
        timeout: float = 300.0,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the ClipDownloader.

        Args:
            concurrency: Maximum downloads in flight for one job
            timeout: Per-request timeout in seconds
            max_attempts: Attempts per clip for transient failures
            base_delay: Base backoff delay in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.concurrency = max(1, concurrency)
        self.timeout = timeout
        self.transport = transport
        self._fetch = with_retry(
            max_attempts=max_attempts,
            base_delay=base_delay,
            exceptions=(TransientDownloadError,),
        )(self._fetch_once)

    async def _fetch_once(self, client: httpx.AsyncClient, url: str, dest: Path) -> Path:
        try:
            async with client.stream("GET", url) as response:
                if response.status_code >= 500 or response.status_code in RETRYABLE_STATUS:
                    raise TransientDownloadError(url, response.status_code)
                if not response.is_success:
                    raise DownloadError(url, response.status_code)

                with open(dest, "wb") as f:
                    async for chunk in response.aiter_bytes(CHUNK_SIZE):
                        f.write(chunk)
        except httpx.HTTPError as e:
            raise TransientDownloadError(url, message=str(e))

        return dest

    async def download_all(self, urls: Sequence[str], dest_dir: Path) -> List[Path]:
        """
        Download every URL into dest_dir as clip-<index>.mp4.

        Args:
            urls: Source URLs in concatenation order
            dest_dir: Workspace directory

        Returns:
            Local paths in the same order as urls

        Raises:
            DownloadError: On the first clip that cannot be fetched
        """
        semaphore = asyncio.Semaphore(self.concurrency)

        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self.transport,
        ) as client:

            async def fetch(index: int, url: str) -> Path:
                async with semaphore:
                    logger.debug(f"Downloading clip {index + 1}/{len(urls)}: {url}")
                    return await self._fetch(client, url, dest_dir / clip_filename(index))

            tasks = [asyncio.ensure_future(fetch(i, url)) for i, url in enumerate(urls)]
            try:
                paths = await asyncio.gather(*tasks)
            except BaseException:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise

        logger.info(f"Downloaded {len(paths)} clips into {dest_dir}")
        return list(paths)


def create_clip_downloader() -> ClipDownloader:
    """Create a ClipDownloader instance using application settings."""
    from clipmerge.config import get_settings

    settings = get_settings()
    return ClipDownloader(
        concurrency=settings.download_concurrency,
        timeout=settings.download_timeout_seconds,
        max_attempts=settings.max_retry_attempts,
        base_delay=settings.base_delay_seconds,
    )
