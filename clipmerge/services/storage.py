"""Storage service for publishing rendered videos to Supabase Storage."""

import asyncio
import logging
from typing import Any, Literal, Optional

from clipmerge.utils.errors import UploadError, UrlGenerationError
from clipmerge.utils.retry import with_retry

logger = logging.getLogger(__name__)

VIDEO_CONTENT_TYPE = "video/mp4"


class StorageService:
    """Uploads output files and produces retrievable URLs."""

    def __init__(
        self,
        supabase_client: Any,
        bucket: str = "outputs",
        url_mode: Literal["signed", "public"] = "signed",
        signed_url_ttl: int = 60 * 60 * 24,
        max_attempts: int = 3,
        base_delay: float = 1.0,
    ) -> None:
        """
        Initialize the StorageService.

        Args:
            supabase_client: Supabase client instance
            bucket: Bucket holding the outputs
            url_mode: 'signed' for expiring URLs, 'public' for permanent ones
            signed_url_ttl: Lifetime of signed URLs in seconds
            max_attempts: Upload attempts before giving up
            base_delay: Base backoff delay between upload attempts
        """
        self.supabase = supabase_client
        self.bucket = bucket
        self.url_mode = url_mode
        self.signed_url_ttl = signed_url_ttl
        self._upload = with_retry(
            max_attempts=max_attempts,
            base_delay=base_delay,
            exceptions=(UploadError,),
        )(self._upload_once)

    def _bucket(self) -> Any:
        return self.supabase.storage.from_(self.bucket)

    async def _upload_once(self, path: str, data: bytes) -> None:
        try:
            # storage3 is synchronous; keep large uploads off the event loop
            await asyncio.to_thread(
                self._bucket().upload,
                path=path,
                file=data,
                file_options={"content-type": VIDEO_CONTENT_TYPE, "upsert": "true"},
            )
        except Exception as e:
            raise UploadError(f"Failed to upload {path} to bucket {self.bucket}: {e}")

    async def upload_video(self, path: str, data: bytes) -> None:
        """
        Upload an MP4, overwriting any existing object at the same path.

        Raises:
            UploadError: If every attempt fails
        """
        await self._upload(path, data)
        logger.info(f"Uploaded {len(data)} bytes to {self.bucket}/{path}")

    async def get_url(self, path: str) -> str:
        """
        Produce a retrievable URL for an uploaded object.

        Raises:
            UrlGenerationError: If the backend returns no URL
        """
        if self.url_mode == "public":
            return self._public_url(path)
        return self._signed_url(path)

    def _signed_url(self, path: str) -> str:
        try:
            result = self._bucket().create_signed_url(path, self.signed_url_ttl)
        except Exception as e:
            raise UrlGenerationError(f"Failed to sign URL for {path}: {e}")

        url: Optional[str] = None
        if isinstance(result, dict):
            url = result.get("signedURL") or result.get("signedUrl")
        if not url:
            raise UrlGenerationError(f"No signed URL returned for {path}")
        return url

    def _public_url(self, path: str) -> str:
        try:
            url = self._bucket().get_public_url(path)
        except Exception as e:
            raise UrlGenerationError(f"Failed to get public URL for {path}: {e}")

        if not url:
            raise UrlGenerationError(f"No public URL returned for {path}")
        return url


def create_storage_service(supabase_client: Optional[Any] = None) -> StorageService:
    """Create a StorageService instance using application settings."""
    from clipmerge.config import get_settings
    from clipmerge.services.supabase_client import get_supabase_client

    settings = get_settings()
    return StorageService(
        supabase_client=supabase_client or get_supabase_client(),
        bucket=settings.output_bucket,
        url_mode=settings.output_url_mode,
        signed_url_ttl=settings.signed_url_ttl_seconds,
        max_attempts=settings.max_retry_attempts,
        base_delay=settings.base_delay_seconds,
    )
