"""
Fetch-and-stage pipeline.

Composes the artifact fetcher and the archive stager into one operation
per artifact, owning a scratch directory that never outlives the call.
"""

import logging
import pathlib
import shutil
import tempfile
from enum import Enum
from typing import List, Optional

from skia_binaries.archive_stager import ArchiveStager
from skia_binaries.artifact_fetcher import ArtifactFetcher
from skia_binaries.artifact_models import ArtifactRequest
from skia_binaries.skia_binaries_config import SkiaBinariesConfig
from skia_binaries.skia_binaries_logger import SkiaBinariesLogger

SCRATCH_PREFIX = "skia-download-"
EXTRACT_DIR_NAME = "extracted"


class DestinationPolicy(str, Enum):
    """
    How the destination directory is treated before copying.

    REPLACE removes any prior contents (post-install). MERGE copies item by
    item on top of whatever is there (bulk download into pre-created dirs).
    """

    REPLACE = "replace"
    MERGE = "merge"


class StagingState(str, Enum):
    """Stages of one fetch-and-stage operation."""

    PENDING = "pending"
    DOWNLOADING = "downloading"
    EXTRACTING = "extracting"
    LOCATING_PAYLOAD = "locating_payload"
    COPYING = "copying"
    DONE = "done"
    FAILED = "failed"


class StagingOutcome(str, Enum):
    STAGED = "staged"
    SKIPPED = "skipped"


class StagingOperation:
    """
    Tracks the progress of a single request through the pipeline.
    """

    def __init__(self, request: ArtifactRequest):
        self.request = request
        self.state = StagingState.PENDING
        self.history: List[StagingState] = [StagingState.PENDING]
        self.scratch_dir: Optional[pathlib.Path] = None
        self.payload_root: Optional[pathlib.Path] = None
        self.attempts = 0
        self.error: Optional[BaseException] = None

    def advance(self, state: StagingState) -> None:
        if self.state in (StagingState.DONE, StagingState.FAILED):
            raise RuntimeError(f"Operation already finished in state {self.state.value}")
        self.state = state
        self.history.append(state)

    def __repr__(self) -> str:
        return (
            f"StagingOperation(asset={self.request.asset_name}, "
            f"state={self.state.value})"
        )


class ArtifactPipeline:
    """
    Runs fetch_and_stage for artifact requests.
    """

    def __init__(
        self,
        config: SkiaBinariesConfig,
        logger: SkiaBinariesLogger,
        fetcher: Optional[ArtifactFetcher] = None,
        stager: Optional[ArchiveStager] = None,
    ):
        self.config = config
        self.logger = logger
        self.fetcher = fetcher or ArtifactFetcher(
            logger,
            user_agent=config.user_agent,
            max_retries=config.max_retries,
        )
        self.stager = stager or ArchiveStager(logger)
        self.last_operation: Optional[StagingOperation] = None

    async def fetch_and_stage(
        self, request: ArtifactRequest, policy: DestinationPolicy
    ) -> StagingOutcome:
        """
        Download, extract and place one artifact.

        The destination policy has no default: each call site decides whether
        prior contents are discarded or merged into.

        Returns:
            StagingOutcome.SKIPPED when downloads are disabled, else STAGED

        Raises:
            Whatever the failing stage raised; the scratch directory is removed
            before the error propagates.
        """
        if self.config.skip_download:
            self.logger.log(
                f"Skipping {request.asset_name} (downloads disabled)", logging.INFO
            )
            return StagingOutcome.SKIPPED

        operation = StagingOperation(request)
        self.last_operation = operation
        operation.scratch_dir = pathlib.Path(tempfile.mkdtemp(prefix=SCRATCH_PREFIX))
        archive_path = operation.scratch_dir / request.asset_name
        extract_dir = operation.scratch_dir / EXTRACT_DIR_NAME

        try:
            operation.advance(StagingState.DOWNLOADING)
            self.logger.log(f"Downloading {request.asset_name}...", logging.INFO)
            operation.attempts = await self.fetcher.fetch(
                request.url(self.config.repo, self.config.host), archive_path
            )

            operation.advance(StagingState.EXTRACTING)
            self.logger.log("Extracting...", logging.INFO)
            await self.stager.extract_tar_gz(archive_path, extract_dir)

            operation.advance(StagingState.LOCATING_PAYLOAD)
            operation.payload_root = self.stager.locate_payload_root(
                extract_dir, request.source_subdir
            )

            operation.advance(StagingState.COPYING)
            if policy is DestinationPolicy.REPLACE:
                shutil.rmtree(request.destination, ignore_errors=True)
            self.stager.place_payload(operation.payload_root, request.destination)

            operation.advance(StagingState.DONE)
            return StagingOutcome.STAGED
        except BaseException as e:
            operation.error = e
            operation.advance(StagingState.FAILED)
            raise
        finally:
            shutil.rmtree(operation.scratch_dir, ignore_errors=True)


async def fetch_and_stage(
    request: ArtifactRequest,
    policy: DestinationPolicy,
    config: Optional[SkiaBinariesConfig] = None,
    logger: Optional[SkiaBinariesLogger] = None,
) -> StagingOutcome:
    """
    Convenience wrapper building a pipeline with default collaborators.
    """
    pipeline = ArtifactPipeline(config or SkiaBinariesConfig(), logger or SkiaBinariesLogger())
    return await pipeline.fetch_and_stage(request, policy)
