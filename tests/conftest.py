"""Pytest fixtures for clipmerge tests."""

from pathlib import Path
from typing import Any, Dict

import pytest

from clipmerge.services.database import DatabaseService
from clipmerge.services.downloader import ClipDownloader
from clipmerge.services.pipeline import JobPipeline
from clipmerge.services.storage import StorageService
from clipmerge.services.transcoder import Transcoder
from tests.fakes import FakeFFmpeg, MockSupabaseClient, clip_transport

JOBS_TABLE = "videos"
BUCKET = "outputs"


@pytest.fixture
def sample_request_data() -> Dict[str, Any]:
    """Sample intake request body."""
    return {
        "job_id": "j1",
        "user_id": "u1",
        "files": [{"url": "http://x/a.mp4"}, {"url": "http://x/b.mp4"}],
    }


@pytest.fixture
def supabase() -> MockSupabaseClient:
    client = MockSupabaseClient()
    client.table(JOBS_TABLE).seed(
        {
            "id": "j1",
            "status": "processing",
            "user_id": "u1",
            "input_files": ["http://x/a.mp4", "http://x/b.mp4"],
            "output_url": None,
            "error_message": None,
            "updated_at": None,
        }
    )
    return client


@pytest.fixture
def db(supabase: MockSupabaseClient) -> DatabaseService:
    return DatabaseService(supabase_client=supabase, table_name=JOBS_TABLE)


@pytest.fixture
def storage(supabase: MockSupabaseClient) -> StorageService:
    return StorageService(supabase_client=supabase, bucket=BUCKET, base_delay=0)


@pytest.fixture
def fake_ffmpeg(monkeypatch: pytest.MonkeyPatch) -> FakeFFmpeg:
    fake = FakeFFmpeg()
    monkeypatch.setattr("clipmerge.services.transcoder.asyncio.create_subprocess_exec", fake)
    return fake


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def requested_urls() -> list:
    return []


@pytest.fixture
def downloader(requested_urls: list) -> ClipDownloader:
    return ClipDownloader(base_delay=0, transport=clip_transport(requested=requested_urls))


@pytest.fixture
def pipeline(
    db: DatabaseService,
    storage: StorageService,
    downloader: ClipDownloader,
    fake_ffmpeg: FakeFFmpeg,
    work_dir: Path,
) -> JobPipeline:
    return JobPipeline(
        db=db,
        storage=storage,
        downloader=downloader,
        transcoder=Transcoder(timeout=5),
        work_dir=str(work_dir),
    )
