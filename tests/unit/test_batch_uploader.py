"""Unit tests for the client-side batch uploader"""

import asyncio
from collections import Counter

import httpx
import pytest

from tire_inspection_service.client.uploader import (
    BatchUploader,
    LocalFile,
    UploadResult,
    raise_for_failures,
)
from tire_inspection_service.core.errors import UploadError
from tire_inspection_service.models.inspection import UploadCredential


def _files(count):
    return [LocalFile(name=f"file-{i + 1}.jpg", content_type="image/jpeg", content=b"x" * (i + 1))
            for i in range(count)]


def _credentials(count):
    return [
        UploadCredential(
            upload_url=f"https://bucket.s3.us-east-1.amazonaws.com/tires/ABC123/file-{i + 1}.jpg?sig=1",
            key=f"tires/ABC123/file-{i + 1}.jpg",
            original_name=f"file-{i + 1}.jpg",
            index=i
        )
        for i in range(count)
    ]


class GroupTracker:
    """Mock S3 that records which concurrent group each PUT belonged to"""

    def __init__(self, fail_paths=()):
        self.fail_paths = set(fail_paths)
        self.active = 0
        self.group = 0
        self.groups = Counter()
        self.requests = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.groups[self.group] += 1
        self.active += 1
        await asyncio.sleep(0.005)
        self.active -= 1
        if self.active == 0:
            self.group += 1
        if request.url.path in self.fail_paths:
            return httpx.Response(403, text="SignatureDoesNotMatch")
        return httpx.Response(200)


async def _run(uploader_kwargs, files, credentials, handler):
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        uploader = BatchUploader(http=http, **uploader_kwargs)
        return await uploader.upload_all(files, credentials)


@pytest.mark.unit
class TestBatchUploader:

    def test_thirteen_files_run_as_three_groups(self):
        tracker = GroupTracker()

        results = asyncio.run(_run({"group_pause": 0}, _files(13), _credentials(13), tracker))

        assert len(results) == 13
        assert all(r.success for r in results)
        assert [tracker.groups[g] for g in sorted(tracker.groups)] == [6, 6, 1]

    def test_failure_does_not_short_circuit(self):
        tracker = GroupTracker(fail_paths={"/tires/ABC123/file-8.jpg"})

        results = asyncio.run(_run({"group_pause": 0}, _files(13), _credentials(13), tracker))

        assert len(tracker.requests) == 13
        by_index = {r.index: r for r in results}
        assert sorted(by_index) == list(range(13))
        assert by_index[7].success is False
        assert "HTTP 403" in by_index[7].error
        assert all(by_index[i].success for i in range(13) if i != 7)

    def test_transport_errors_are_failures(self):
        def handler(request):
            if request.url.path.endswith("file-2.jpg"):
                raise httpx.ConnectError("connection reset", request=request)
            return httpx.Response(200)

        results = asyncio.run(_run({}, _files(3), _credentials(3), handler))

        assert [r.success for r in sorted(results, key=lambda r: r.index)] == [True, False, True]

    def test_malformed_url_fails_only_its_own_file(self):
        tracker = GroupTracker()
        credentials = _credentials(3)
        credentials[1] = credentials[1].model_copy(update={"upload_url": "http://[::1"})

        results = asyncio.run(_run({"group_pause": 0}, _files(3), credentials, tracker))

        assert len(results) == 3
        by_index = {r.index: r for r in results}
        assert by_index[1].success is False
        assert by_index[1].error.startswith("Failed to upload file 2")
        assert by_index[0].success and by_index[2].success
        assert len(tracker.requests) == 2

    def test_put_carries_body_and_content_type(self):
        tracker = GroupTracker()
        files = [LocalFile(name="a.png", content_type="image/png", content=b"\x89PNG")]

        asyncio.run(_run({}, files, _credentials(1), tracker))

        (request,) = tracker.requests
        assert request.method == "PUT"
        assert request.headers["content-type"] == "image/png"
        assert request.content == b"\x89PNG"
        assert "x-amz-acl" not in request.headers

    def test_progress_is_monotonic(self):
        seen = []
        tracker = GroupTracker(fail_paths={"/tires/ABC123/file-3.jpg"})

        asyncio.run(_run(
            {"group_pause": 0, "on_progress": lambda p: seen.append((p.current, p.total))},
            _files(8), _credentials(8), tracker
        ))

        counts = [current for current, _ in seen]
        assert counts == sorted(counts)
        assert seen[0] == (0, 8)
        assert seen[-1] == (7, 8)

    def test_pauses_only_between_groups(self, monkeypatch):
        pauses = []
        real_sleep = asyncio.sleep

        async def recording_sleep(delay, *args, **kwargs):
            if delay == 0.25:
                pauses.append(delay)
            return await real_sleep(0)

        monkeypatch.setattr("tire_inspection_service.client.uploader.asyncio.sleep", recording_sleep)

        asyncio.run(_run({"group_pause": 0.25}, _files(13), _credentials(13), lambda r: httpx.Response(200)))

        assert pauses == [0.25, 0.25]

    def test_mismatched_lengths_rejected(self):
        with pytest.raises(ValueError):
            asyncio.run(_run({}, _files(2), _credentials(3), lambda r: httpx.Response(200)))

    def test_reset_clears_progress(self):
        uploader = BatchUploader()
        uploader.progress.current = 5
        uploader.reset(total=9)
        assert (uploader.progress.current, uploader.progress.total) == (0, 9)


@pytest.mark.unit
class TestRaiseForFailures:

    def test_all_success_passes(self):
        raise_for_failures([UploadResult(success=True, index=0), UploadResult(success=True, index=1)])

    def test_any_failure_raises_with_count(self):
        results = [
            UploadResult(success=True, index=0),
            UploadResult(success=False, index=1, error="boom"),
            UploadResult(success=False, index=2, error="boom"),
        ]
        with pytest.raises(UploadError) as exc_info:
            raise_for_failures(results)
        assert exc_info.value.failed_count == 2
        assert str(exc_info.value) == "Failed to upload 2 of 3 files"
