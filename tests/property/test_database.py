"""Property-based tests for job table operations."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import pytest
from hypothesis import given, settings, strategies as st

from clipmerge.models.job import JobStatus
from clipmerge.services.database import DatabaseService
from clipmerge.utils.errors import DatabaseError, JobNotFoundError
from tests.fakes import MockSupabaseClient

statuses = st.sampled_from(["processing", "in_progress", "done", "completed", "failed"])


def seeded_db(rows: Dict[str, str]) -> tuple[DatabaseService, MockSupabaseClient]:
    client = MockSupabaseClient()
    for job_id, status in rows.items():
        client.table("videos").seed({"id": job_id, "status": status, "input_files": []})
    return DatabaseService(supabase_client=client), client


class TestClaims:
    """At most one execution wins a job."""

    @settings(max_examples=100, deadline=None)
    @given(status=statuses, contenders=st.integers(min_value=1, max_value=5))
    def test_only_one_claim_succeeds(self, status: str, contenders: int) -> None:
        db, client = seeded_db({"j1": status})

        async def run() -> list:
            return [await db.claim_job("j1") for _ in range(contenders)]

        wins = asyncio.run(run())

        if status == "processing":
            assert wins.count(True) == 1
            assert client.table("videos").row("j1")["status"] == "in_progress"
        else:
            assert wins.count(True) == 0
            assert client.table("videos").row("j1")["status"] == status

    @settings(max_examples=100, deadline=None)
    @given(status=statuses)
    def test_begin_job_refuses_only_in_progress(self, status: str) -> None:
        db, client = seeded_db({"j1": status})

        started = asyncio.run(db.begin_job("j1"))

        assert started == (status != "in_progress")
        assert client.table("videos").row("j1")["status"] == "in_progress"

    @pytest.mark.asyncio
    async def test_claim_of_missing_job(self) -> None:
        db, _ = seeded_db({})
        assert not await db.claim_job("nope")
        assert not await db.begin_job("nope")
        assert not await db.job_exists("nope")


class TestReads:
    @pytest.mark.asyncio
    async def test_fetch_next_processing_returns_one_row(self) -> None:
        db, _ = seeded_db({"a": "done", "b": "processing", "c": "processing"})

        row = await db.fetch_next_processing()

        assert row is not None
        assert row["id"] in {"b", "c"}
        assert row["status"] == JobStatus.PROCESSING.value

    @pytest.mark.asyncio
    async def test_fetch_next_processing_returns_malformed_rows_unparsed(self) -> None:
        client = MockSupabaseClient()
        client.table("videos").seed(
            {"id": 42, "status": "processing", "input_files": [{"name": "a.mp4"}]}
        )
        db = DatabaseService(supabase_client=client)

        row = await db.fetch_next_processing()

        assert row == {"id": 42, "status": "processing", "input_files": [{"name": "a.mp4"}]}

    @pytest.mark.asyncio
    async def test_fetch_next_processing_none(self) -> None:
        db, _ = seeded_db({"a": "done", "b": "failed"})
        assert await db.fetch_next_processing() is None

    @pytest.mark.asyncio
    async def test_status_fields(self) -> None:
        db, client = seeded_db({"j1": "completed"})
        client.table("videos").row("j1").update(
            {"output_url": "https://o/1", "updated_at": "2024-05-01T10:00:00+00:00"}
        )

        row = await db.get_job_status("j1")

        assert row == {
            "id": "j1",
            "status": "done",
            "output_url": "https://o/1",
            "error_message": None,
            "updated_at": "2024-05-01T10:00:00+00:00",
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize("stored", ["pending", "queued", None])
    async def test_status_outside_the_enum_is_passed_through(self, stored) -> None:
        db, client = seeded_db({"j1": "processing"})
        client.table("videos").row("j1")["status"] = stored

        row = await db.get_job_status("j1")

        assert row["status"] == stored

    @pytest.mark.asyncio
    async def test_integer_ids_match_text_lookups(self) -> None:
        client = MockSupabaseClient()
        client.table("videos").seed({"id": 42, "status": "done", "input_files": []})
        db = DatabaseService(supabase_client=client)

        row = await db.get_job_status("42")

        assert row["id"] == 42
        assert row["status"] == "done"

    @pytest.mark.asyncio
    async def test_missing_job_raises_not_found(self) -> None:
        db, _ = seeded_db({})
        with pytest.raises(JobNotFoundError):
            await db.get_job_status("nope")
        with pytest.raises(JobNotFoundError):
            await db.get_job("nope")

    @pytest.mark.asyncio
    async def test_backend_failure_raises_database_error(self) -> None:
        db, client = seeded_db({"j1": "processing"})
        client.table("videos").fail_selects = True
        with pytest.raises(DatabaseError):
            await db.get_job_status("j1")
        with pytest.raises(DatabaseError):
            await db.fetch_next_processing()


class TestTerminalUpdates:
    @settings(max_examples=50, deadline=None)
    @given(message=st.text(min_size=1, max_size=200))
    def test_mark_failed_records_message(self, message: str) -> None:
        db, client = seeded_db({"j1": "in_progress"})

        assert asyncio.run(db.mark_failed("j1", message))

        row: Dict[str, Any] = client.table("videos").row("j1")
        assert row["status"] == "failed"
        assert row["error_message"] == message
        assert row["updated_at"]

    @pytest.mark.asyncio
    async def test_mark_failed_never_raises(self) -> None:
        db, client = seeded_db({"j1": "in_progress"})
        client.table("videos").fail_updates = True
        assert await db.mark_failed("j1", "boom") is False

    @pytest.mark.asyncio
    async def test_mark_done_clears_error(self) -> None:
        db, client = seeded_db({"j1": "in_progress"})
        client.table("videos").row("j1")["error_message"] = "old failure"

        assert await db.mark_done("j1", "https://o/1")

        row = client.table("videos").row("j1")
        assert row["status"] == "done"
        assert row["output_url"] == "https://o/1"
        assert row["error_message"] is None

    @pytest.mark.asyncio
    async def test_mark_done_propagates_backend_errors(self) -> None:
        db, client = seeded_db({"j1": "in_progress"})
        client.table("videos").fail_updates = True
        with pytest.raises(DatabaseError):
            await db.mark_done("j1", "https://o/1")


class TestStaleClaims:
    """Abandoned 'in_progress' rows go back to 'processing'."""

    @staticmethod
    def seed_claim(client: MockSupabaseClient, job_id: str, age: timedelta) -> None:
        client.table("videos").seed(
            {
                "id": job_id,
                "status": "in_progress",
                "input_files": [],
                "updated_at": (datetime.now(timezone.utc) - age).isoformat(),
            }
        )

    @pytest.mark.asyncio
    async def test_only_old_claims_are_released(self) -> None:
        client = MockSupabaseClient()
        self.seed_claim(client, "old", timedelta(hours=3))
        self.seed_claim(client, "fresh", timedelta(minutes=5))
        client.table("videos").seed({"id": "finished", "status": "done", "input_files": []})
        db = DatabaseService(supabase_client=client)

        released = await db.release_stale_claims(older_than_seconds=3600)

        table = client.table("videos")
        assert released == 1
        assert table.row("old")["status"] == "processing"
        assert table.row("fresh")["status"] == "in_progress"
        assert table.row("finished")["status"] == "done"

    @pytest.mark.asyncio
    async def test_claims_without_timestamp_are_left_alone(self) -> None:
        db, client = seeded_db({"j1": "in_progress"})

        assert await db.release_stale_claims(older_than_seconds=0) == 0
        assert client.table("videos").row("j1")["status"] == "in_progress"

    @pytest.mark.asyncio
    async def test_backend_errors_are_swallowed(self) -> None:
        client = MockSupabaseClient()
        self.seed_claim(client, "old", timedelta(hours=3))
        client.table("videos").fail_updates = True
        db = DatabaseService(supabase_client=client)

        assert await db.release_stale_claims(older_than_seconds=3600) == 0
