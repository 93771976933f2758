# tests/unit/jobs/test_unit_workflow.py — v1
"""Tests for jobs.workflow: one outcome per item, reason mapping."""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import patch

import pytest

from doctranslator.client.errors import (
    JobNotFoundError,
    RemoteServiceError,
    RemoteTransportError,
)
from doctranslator.core.models import DocumentStatus
from doctranslator.jobs.poller import PollingConfig
from doctranslator.jobs.workflow import SingleItemWorkflow


def _workflow(client, polling: PollingConfig) -> SingleItemWorkflow:
    return SingleItemWorkflow(client, target_language="lv", source_language="en", polling=polling)


class TestSuccess:
    @pytest.mark.asyncio
    async def test_translates_document(self, make_client, fast_polling, source_file: Path, tmp_path: Path):
        client = make_client(
            default_script=[DocumentStatus(status="processing"), DocumentStatus(status="completed")],
            result=b"Sis ir piemers",
        )
        dest = tmp_path / "doc_translated.txt"

        outcome = await _workflow(client, fast_polling).run(source_file, dest)

        assert outcome.success is True
        assert outcome.source_id == "doc.txt"
        assert outcome.destination_path == dest
        assert outcome.job_id == "job-1"
        assert outcome.reason is None
        assert dest.read_bytes() == b"Sis ir piemers"

    @pytest.mark.asyncio
    async def test_stage_order(self, fake_client, fast_polling, source_file: Path, tmp_path: Path):
        await _workflow(fake_client, fast_polling).run(source_file, tmp_path / "out.txt")
        assert fake_client.submit_calls == ["doc.txt"]
        assert fake_client.status_calls == ["job-1"]
        assert fake_client.fetch_calls == ["job-1"]

    @pytest.mark.asyncio
    async def test_custom_source_id_and_callback(self, fake_client, fast_polling, source_file: Path, tmp_path: Path):
        seen = []
        outcome = await _workflow(fake_client, fast_polling).run(
            source_file, tmp_path / "out.txt", source_id="docs/doc.txt", on_outcome=seen.append,
        )
        assert outcome.source_id == "docs/doc.txt"
        assert seen == [outcome]


class TestLocalFailures:
    @pytest.mark.asyncio
    async def test_missing_source_never_submits(self, fake_client, fast_polling, tmp_path: Path):
        outcome = await _workflow(fake_client, fast_polling).run(
            tmp_path / "missing.txt", tmp_path / "out.txt",
        )
        assert outcome.success is False
        assert outcome.reason == "local_read_denied"
        assert fake_client.submit_calls == []

    @pytest.mark.asyncio
    async def test_permission_denied_never_submits(self, fake_client, fast_polling, source_file: Path, tmp_path: Path):
        with patch.object(Path, "open", side_effect=PermissionError("denied")):
            outcome = await _workflow(fake_client, fast_polling).run(source_file, tmp_path / "out.txt")
        assert outcome.reason == "local_read_denied"
        assert "No read permissions" in outcome.detail
        assert fake_client.submit_calls == []

    @pytest.mark.asyncio
    async def test_missing_destination_directory(self, fake_client, fast_polling, source_file: Path, tmp_path: Path):
        outcome = await _workflow(fake_client, fast_polling).run(
            source_file, tmp_path / "missing" / "out.txt",
        )
        assert outcome.reason == "local_write_denied"
        assert outcome.job_id == "job-1"
        # Job finished remotely but its artifact stays unclaimed
        assert fake_client.status_calls == ["job-1"]
        assert fake_client.fetch_calls == []

    @pytest.mark.asyncio
    async def test_write_error_during_retrieval(self, make_client, fast_polling, source_file: Path, tmp_path: Path):
        client = make_client(fetch_errors={"doc.txt": PermissionError("read-only fs")})
        outcome = await _workflow(client, fast_polling).run(source_file, tmp_path / "out.txt")
        assert outcome.reason == "local_write_denied"
        assert not (tmp_path / "out.txt").exists()

    @pytest.mark.asyncio
    async def test_creates_mirrored_directory_on_request(self, fake_client, fast_polling, source_file: Path, tmp_path: Path):
        dest = tmp_path / "out" / "nested" / "doc_translated.txt"
        outcome = await _workflow(fake_client, fast_polling).run(
            source_file, dest, create_destination_dir=True,
        )
        assert outcome.success is True
        assert dest.read_bytes() == b"translated text"

    @pytest.mark.asyncio
    async def test_directory_creation_failure(self, fake_client, fast_polling, source_file: Path, tmp_path: Path, monkeypatch):
        def _deny(self, *args, **kwargs):
            raise PermissionError(13, "Permission denied", str(self))

        monkeypatch.setattr(Path, "mkdir", _deny)
        outcome = await _workflow(fake_client, fast_polling).run(
            source_file, tmp_path / "nested" / "out.txt", create_destination_dir=True,
        )
        assert outcome.reason == "local_write_denied"
        assert "Cannot create target directory" in outcome.detail
        assert fake_client.fetch_calls == []


class TestRemoteFailures:
    @pytest.mark.asyncio
    async def test_submit_failure(self, make_client, fast_polling, source_file: Path, tmp_path: Path):
        client = make_client(submit_errors={"doc.txt": RemoteServiceError("unsupported", 400)})
        outcome = await _workflow(client, fast_polling).run(source_file, tmp_path / "out.txt")
        assert outcome.reason == "remote_submit_failed"
        assert outcome.job_id is None
        assert client.status_calls == []

    @pytest.mark.asyncio
    async def test_submit_transport_failure_is_submit_failed(self, make_client, fast_polling, source_file: Path, tmp_path: Path):
        client = make_client(submit_errors={"doc.txt": RemoteTransportError("timeout")})
        outcome = await _workflow(client, fast_polling).run(source_file, tmp_path / "out.txt")
        assert outcome.reason == "remote_submit_failed"
        # Submission is never retried automatically
        assert client.submit_calls == ["doc.txt"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("terminal", ["failed", "cancelled"])
    async def test_remote_job_failed(self, make_client, fast_polling, source_file: Path, tmp_path: Path, terminal):
        client = make_client(default_script=[DocumentStatus(status=terminal, substatus="corrupt file")])
        outcome = await _workflow(client, fast_polling).run(source_file, tmp_path / "out.txt")
        assert outcome.reason == "remote_job_failed"
        assert "corrupt file" in outcome.detail
        assert terminal in outcome.detail
        assert client.fetch_calls == []

    @pytest.mark.asyncio
    async def test_wait_exceeded(self, make_client, fast_polling, source_file: Path, tmp_path: Path):
        client = make_client(default_script=[DocumentStatus(status="processing")])
        outcome = await _workflow(client, fast_polling).run(source_file, tmp_path / "out.txt")
        assert outcome.reason == "wait_exceeded"
        assert client.fetch_calls == []
        assert not (tmp_path / "out.txt").exists()

    @pytest.mark.asyncio
    async def test_poll_transport_errors_exhausted(self, make_client, fast_polling, source_file: Path, tmp_path: Path):
        client = make_client(default_script=[RemoteTransportError("503")])
        outcome = await _workflow(client, fast_polling).run(source_file, tmp_path / "out.txt")
        assert outcome.reason == "remote_transport_error"

    @pytest.mark.asyncio
    async def test_poll_job_not_found(self, make_client, fast_polling, source_file: Path, tmp_path: Path):
        client = make_client(default_script=[JobNotFoundError("no such job", 404)])
        outcome = await _workflow(client, fast_polling).run(source_file, tmp_path / "out.txt")
        assert outcome.reason == "remote_job_failed"

    @pytest.mark.asyncio
    async def test_retrieval_transport_error(self, make_client, fast_polling, source_file: Path, tmp_path: Path):
        client = make_client(fetch_errors={"doc.txt": RemoteTransportError("connection reset")})
        outcome = await _workflow(client, fast_polling).run(source_file, tmp_path / "out.txt")
        assert outcome.reason == "remote_transport_error"
        assert not (tmp_path / "out.txt").exists()


class TestBoundary:
    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_outcome(self, make_client, fast_polling, source_file: Path, tmp_path: Path):
        client = make_client(submit_errors={"doc.txt": RuntimeError("boom")})
        outcome = await _workflow(client, fast_polling).run(source_file, tmp_path / "out.txt")
        assert outcome.reason == "internal_error"
        assert "RuntimeError" in outcome.detail

    @pytest.mark.asyncio
    async def test_cancel_event_before_start(self, fake_client, fast_polling, source_file: Path, tmp_path: Path):
        event = asyncio.Event()
        event.set()
        outcome = await _workflow(fake_client, fast_polling).run(
            source_file, tmp_path / "out.txt", cancel_event=event,
        )
        assert outcome.reason == "cancelled"
        assert fake_client.submit_calls == []

    @pytest.mark.asyncio
    async def test_cancel_event_during_poll(self, make_client, source_file: Path, tmp_path: Path):
        client = make_client(default_script=[DocumentStatus(status="processing")])
        polling = PollingConfig(initial_delay_s=60.0, max_delay_s=60.0, timeout_s=None)
        event = asyncio.Event()
        task = asyncio.create_task(
            _workflow(client, polling).run(source_file, tmp_path / "out.txt", cancel_event=event)
        )
        while not client.status_calls:
            await asyncio.sleep(0)
        event.set()

        outcome = await asyncio.wait_for(task, timeout=2.0)
        assert outcome.reason == "cancelled"
        assert outcome.job_id == "job-1"

    @pytest.mark.asyncio
    async def test_cancel_event_before_retrieval(self, fake_client, fast_polling, source_file: Path, tmp_path: Path):
        event = asyncio.Event()
        get_status = fake_client.get_status

        async def _status_then_cancel(handle):
            status = await get_status(handle)
            event.set()
            return status

        fake_client.get_status = _status_then_cancel
        outcome = await _workflow(fake_client, fast_polling).run(
            source_file, tmp_path / "out.txt", cancel_event=event,
        )
        assert outcome.reason == "cancelled"
        assert outcome.detail == "Cancelled before retrieval"
        assert fake_client.fetch_calls == []
        assert not (tmp_path / "out.txt").exists()

    @pytest.mark.asyncio
    async def test_task_cancellation_reports_then_reraises(self, make_client, source_file: Path, tmp_path: Path):
        client = make_client(default_script=[DocumentStatus(status="processing")])
        polling = PollingConfig(initial_delay_s=60.0, max_delay_s=60.0, timeout_s=None)
        seen = []
        task = asyncio.create_task(
            _workflow(client, polling).run(source_file, tmp_path / "out.txt", on_outcome=seen.append)
        )
        while not client.status_calls:
            await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert len(seen) == 1
        assert seen[0].reason == "cancelled"
