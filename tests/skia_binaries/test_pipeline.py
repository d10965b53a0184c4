"""
End-to-end tests of fetch_and_stage against a mocked release host.
"""

import pytest

from skia_binaries.archive_stager import ArchiveStager
from skia_binaries.artifact_fetcher import ArtifactFetcher
from skia_binaries.artifact_models import ArtifactRequest
from skia_binaries.pipeline import (
    ArtifactPipeline,
    DestinationPolicy,
    StagingOutcome,
    StagingState,
)
from skia_binaries.skia_binaries_config import SkiaBinariesConfig
from skia_binaries.skia_binaries_exceptions import DownloadError, PayloadShapeError
from skia_binaries.skia_binaries_logger import SkiaBinariesLogger
from tests.test_utils import (
    RecordingSleep,
    ScriptedTransport,
    make_tar_gz,
    requires_tar,
    respond,
    snapshot_tree,
)

ANDROID_ARCHIVE = make_tar_gz(
    {
        "skia-android-arm-64/arm64-v8a/libskia.a": b"skia-arm64",
        "skia-android-arm-64/arm64-v8a/libsvg.a": b"svg-arm64",
        "skia-android-arm-64/x86/libskia.a": b"skia-x86",
    }
)


def build_pipeline(transport, config=None):
    """Pipeline whose fetcher uses the given transport and no real sleep."""
    logger = SkiaBinariesLogger()
    return ArtifactPipeline(
        config or SkiaBinariesConfig(),
        logger,
        fetcher=ArtifactFetcher(logger, transport=transport, sleep=RecordingSleep()),
        stager=ArchiveStager(logger),
    )


def android_request(dest):
    """Request for the arm64 Android artifact."""
    return ArtifactRequest(
        artifact_name="skia-android-arm-64",
        release_tag="skia-m144c",
        destination=dest,
        source_subdir="arm64-v8a",
    )


class TestFetchAndStage:
    """Tests for successful fetch-and-stage runs."""

    @requires_tar
    @pytest.mark.asyncio
    async def test_stages_payload_from_subdirectory(self, tmp_path):
        """Stage only the requested subdirectory of the archive."""
        transport = ScriptedTransport([respond(200, ANDROID_ARCHIVE)])
        pipeline = build_pipeline(transport)
        dest = tmp_path / "libs" / "arm64-v8a"

        outcome = await pipeline.fetch_and_stage(android_request(dest), DestinationPolicy.MERGE)

        assert outcome is StagingOutcome.STAGED
        assert snapshot_tree(dest) == {"libskia.a": b"skia-arm64", "libsvg.a": b"svg-arm64"}
        assert str(transport.requests[0].url) == (
            "https://github.com/shopify/react-native-skia/releases/download/"
            "skia-m144c/skia-android-arm-64-skia-m144c.tar.gz"
        )

    @requires_tar
    @pytest.mark.asyncio
    async def test_walks_through_every_state_and_removes_scratch(self, tmp_path):
        """Every stage is visited and scratch is removed."""
        pipeline = build_pipeline(ScriptedTransport([respond(200, ANDROID_ARCHIVE)]))

        await pipeline.fetch_and_stage(android_request(tmp_path / "out"), DestinationPolicy.MERGE)

        operation = pipeline.last_operation
        assert operation.history == [
            StagingState.PENDING,
            StagingState.DOWNLOADING,
            StagingState.EXTRACTING,
            StagingState.LOCATING_PAYLOAD,
            StagingState.COPYING,
            StagingState.DONE,
        ]
        assert operation.attempts == 1
        assert not operation.scratch_dir.exists()

    @requires_tar
    @pytest.mark.asyncio
    async def test_staging_twice_yields_same_tree(self, tmp_path):
        """Staging the same artifact twice is idempotent."""
        pipeline = build_pipeline(ScriptedTransport([respond(200, ANDROID_ARCHIVE)]))
        dest = tmp_path / "out"

        await pipeline.fetch_and_stage(android_request(dest), DestinationPolicy.MERGE)
        first = snapshot_tree(dest)
        await pipeline.fetch_and_stage(android_request(dest), DestinationPolicy.MERGE)

        assert snapshot_tree(dest) == first

    @requires_tar
    @pytest.mark.asyncio
    async def test_replace_discards_prior_contents(self, tmp_path):
        """REPLACE removes prior destination contents."""
        dest = tmp_path / "out"
        dest.mkdir()
        (dest / "stale.a").write_bytes(b"old")
        pipeline = build_pipeline(ScriptedTransport([respond(200, ANDROID_ARCHIVE)]))

        await pipeline.fetch_and_stage(android_request(dest), DestinationPolicy.REPLACE)

        assert sorted(p.name for p in dest.iterdir()) == ["libskia.a", "libsvg.a"]

    @requires_tar
    @pytest.mark.asyncio
    async def test_merge_keeps_prior_contents(self, tmp_path):
        """MERGE keeps prior destination contents."""
        dest = tmp_path / "out"
        dest.mkdir()
        (dest / "other.a").write_bytes(b"other")
        pipeline = build_pipeline(ScriptedTransport([respond(200, ANDROID_ARCHIVE)]))

        await pipeline.fetch_and_stage(android_request(dest), DestinationPolicy.MERGE)

        assert sorted(p.name for p in dest.iterdir()) == ["libskia.a", "libsvg.a", "other.a"]

    @requires_tar
    @pytest.mark.asyncio
    async def test_multiple_top_level_entries_are_copied_as_is(self, tmp_path):
        """Archives without a wrapper are copied as extracted."""
        archive = make_tar_gz({"include/core/SkCanvas.h": b"canvas", "LICENSE": b"BSD"})
        pipeline = build_pipeline(ScriptedTransport([respond(200, archive)]))
        request = ArtifactRequest(
            artifact_name="skia-graphite-headers",
            release_tag="skia-graphite-m142b",
            destination=tmp_path / "headers",
        )

        await pipeline.fetch_and_stage(request, DestinationPolicy.MERGE)

        assert snapshot_tree(tmp_path / "headers") == {
            "LICENSE": b"BSD",
            "include/core/SkCanvas.h": b"canvas",
        }


class TestFailures:
    """Tests for failing fetch-and-stage runs."""

    @pytest.mark.asyncio
    async def test_download_failure_cleans_scratch_and_propagates(self, tmp_path):
        """A failed download removes scratch and re-raises."""
        pipeline = build_pipeline(ScriptedTransport([respond(404)]))
        dest = tmp_path / "out"

        with pytest.raises(DownloadError):
            await pipeline.fetch_and_stage(android_request(dest), DestinationPolicy.MERGE)

        operation = pipeline.last_operation
        assert operation.state is StagingState.FAILED
        assert operation.history[-2] is StagingState.DOWNLOADING
        assert isinstance(operation.error, DownloadError)
        assert not operation.scratch_dir.exists()
        assert not dest.exists()

    @requires_tar
    @pytest.mark.asyncio
    async def test_empty_archive_is_a_payload_error(self, tmp_path):
        """An empty archive is a payload error."""
        pipeline = build_pipeline(ScriptedTransport([respond(200, make_tar_gz({}))]))

        with pytest.raises(PayloadShapeError):
            await pipeline.fetch_and_stage(
                android_request(tmp_path / "out"), DestinationPolicy.MERGE
            )

        assert pipeline.last_operation.history[-2] is StagingState.LOCATING_PAYLOAD
        assert not pipeline.last_operation.scratch_dir.exists()


class TestSkipDownload:
    """Tests for the skip flag."""

    @pytest.mark.asyncio
    async def test_skip_flag_short_circuits_before_any_io(self, tmp_path):
        """Skipping returns before any network or filesystem work."""
        transport = ScriptedTransport([respond(200, ANDROID_ARCHIVE)])
        pipeline = build_pipeline(transport, SkiaBinariesConfig(skip_download=True))
        dest = tmp_path / "out"

        outcome = await pipeline.fetch_and_stage(android_request(dest), DestinationPolicy.REPLACE)

        assert outcome is StagingOutcome.SKIPPED
        assert transport.requests == []
        assert pipeline.last_operation is None
        assert not dest.exists()
