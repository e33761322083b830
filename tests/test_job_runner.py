"""Tests for profile lookup and the background job runner."""

from dataclasses import replace

import pytest

from conftest import FakeBrowserSession, fast_runner_factory, load_fixture
from listing_scraper.ingest.registry import ProfileRegistry, UnknownPlatformError
from listing_scraper.ingest.retailers.amazon import AMAZON_PROFILE
from listing_scraper.ingest.retailers.flipkart import FLIPKART_PROFILE
from listing_scraper.worker.job_registry import (
    STATUS_COMPLETED,
    JobAccessError,
    JobNotFoundError,
    JobRegistry,
)
from listing_scraper.worker.tasks import JobRunner

FLIPKART_URL = "https://www.flipkart.com/search?q=shoes"


class TestProfileRegistry:
    def test_lookup_is_case_insensitive(self):
        assert ProfileRegistry.get_profile("Amazon") is AMAZON_PROFILE
        assert ProfileRegistry.get_profile(" flipkart ") is FLIPKART_PROFILE

    def test_unknown_platform(self):
        with pytest.raises(UnknownPlatformError) as exc_info:
            ProfileRegistry.get_profile("ebay")

        assert exc_info.value.platform == "ebay"
        assert "amazon" in exc_info.value.available
        assert isinstance(exc_info.value, ValueError)

    def test_register_profile(self):
        mobile = replace(FLIPKART_PROFILE, name="flipkart-mobile", base_url="https://m.flipkart.com")
        try:
            ProfileRegistry.register_profile(mobile)

            assert ProfileRegistry.get_profile("Flipkart-Mobile") is mobile
            assert ProfileRegistry.list_platforms()[-1] == "flipkart-mobile"
            assert JobRunner.validate_request(FLIPKART_URL, "flipkart-mobile", 1) is mobile
        finally:
            ProfileRegistry._profiles.pop("flipkart-mobile", None)

        with pytest.raises(UnknownPlatformError):
            ProfileRegistry.get_profile("flipkart-mobile")


class TestValidateRequest:
    def test_valid(self):
        assert JobRunner.validate_request(FLIPKART_URL, "flipkart", 3) is FLIPKART_PROFILE

    @pytest.mark.parametrize("pages", [0, -1, 51, True, "2", 2.0])
    def test_bad_page_count(self, pages):
        with pytest.raises(ValueError):
            JobRunner.validate_request(FLIPKART_URL, "flipkart", pages)

    @pytest.mark.parametrize("url", ["", "www.flipkart.com/search", "file:///etc/passwd"])
    def test_bad_url(self, url):
        with pytest.raises(ValueError):
            JobRunner.validate_request(url, "flipkart", 1)


def _runner(tmp_path):
    pages = {FLIPKART_URL: load_fixture("flipkart_page.html")}

    async def session_factory():
        return FakeBrowserSession(pages=pages)

    return JobRunner(
        registry=JobRegistry(),
        session_factory=session_factory,
        runner_factory=fast_runner_factory(tmp_path),
    )


@pytest.mark.asyncio
async def test_start_and_wait(tmp_path):
    runner = _runner(tmp_path)
    seen = []

    async def on_progress(job_id, snapshot):
        seen.append((job_id, snapshot.status))

    runner.register_progress_callback(on_progress)

    job_id = await runner.start_job(FLIPKART_URL, platform="flipkart", max_pages=1, owner="alice")
    snapshot = await runner.wait_for(job_id)

    assert snapshot.status == STATUS_COMPLETED
    assert snapshot.owner == "alice"
    assert seen[-1] == (job_id, STATUS_COMPLETED)
    assert all(jid == job_id for jid, _ in seen)

    path = await runner.artifact_path(job_id, "alice")
    assert path is not None and path.parent == tmp_path


@pytest.mark.asyncio
async def test_job_ids_are_ordered_and_unique(tmp_path):
    runner = _runner(tmp_path)

    ids = [
        await runner.start_job(FLIPKART_URL, platform="flipkart", owner="alice") for _ in range(3)
    ]
    await runner.wait_all()

    assert ids == sorted(ids)
    assert len(set(ids)) == 3
    assert [s.job_id for s in await runner.list_jobs("alice")] == ids


@pytest.mark.asyncio
async def test_snapshot_lookup_errors(tmp_path):
    runner = _runner(tmp_path)
    job_id = await runner.start_job(FLIPKART_URL, platform="flipkart", owner="alice")

    with pytest.raises(JobAccessError):
        await runner.get_snapshot(job_id, "bob")
    with pytest.raises(JobNotFoundError):
        await runner.get_snapshot("missing")

    await runner.wait_for(job_id)
