"""
Bulk artifact downloader.

Executes download plans one after another through the fetch-and-stage
pipeline, merging each payload into its pre-created destination.
"""

import logging
from typing import Dict

from skia_binaries.artifact_downloader.plan_manager import (
    DownloadPlan,
    DownloadPlanner,
    DownloadStatus,
)
from skia_binaries.pipeline import ArtifactPipeline, DestinationPolicy, StagingOutcome
from skia_binaries.skia_binaries_logger import SkiaBinariesLogger


class ArtifactDownloader:
    """
    Downloads and stages every pending plan of a DownloadPlanner.

    Partial destination state is left in place on failure for inspection.
    """

    def __init__(
        self,
        planner: DownloadPlanner,
        pipeline: ArtifactPipeline,
        logger: SkiaBinariesLogger,
        fail_fast: bool = True,
    ):
        """
        Args:
            planner: The DownloadPlanner with download plans
            pipeline: Pipeline used for each artifact
            logger: Logger for progress and error messages
            fail_fast: Stop at the first failed artifact
        """
        self.planner = planner
        self.pipeline = pipeline
        self.logger = logger
        self.fail_fast = fail_fast

    async def download_all_pending(self) -> bool:
        """
        Download all pending artifacts sequentially.

        Returns:
            True if all downloads succeeded, False if any failed
        """
        pending = self.planner.get_pending_downloads()

        if not pending:
            self.logger.log("No pending downloads", logging.INFO)
            return True

        self.logger.log(
            f"Starting download of {len(pending)} artifacts "
            f"({self.planner.flavor.display_name}, {self.planner.release_tag})",
            logging.INFO,
        )

        all_succeeded = True
        for plan in pending:
            success = await self.download_artifact(plan)
            if not success:
                all_succeeded = False
                if self.fail_fast:
                    break

        return all_succeeded

    async def download_artifact(self, plan: DownloadPlan) -> bool:
        """
        Download a single artifact.

        Returns:
            True if the artifact was staged (or skipped), False otherwise
        """
        plan.status = DownloadStatus.IN_PROGRESS
        self.logger.log(f"Platform: {plan.package_name}", logging.INFO)
        try:
            if not self.pipeline.config.skip_download:
                plan.request.destination.mkdir(parents=True, exist_ok=True)
            outcome = await self.pipeline.fetch_and_stage(
                plan.request, DestinationPolicy.MERGE
            )
        except Exception as e:
            error_msg = f"Failed to download {plan.request.asset_name}: {e}"
            self.logger.log(error_msg, logging.ERROR)
            self.planner.mark_download_completed(plan, success=False, error_message=error_msg)
            return False

        if outcome is StagingOutcome.SKIPPED:
            plan.status = DownloadStatus.SKIPPED
        else:
            self.planner.mark_download_completed(plan, success=True)
            self.logger.log(
                f"Installed {plan.request.asset_name} to {plan.request.destination}",
                logging.INFO,
            )
        return True

    def get_failed_downloads(self) -> Dict[str, DownloadPlan]:
        return {
            plan.plan_key: plan
            for plan in self.planner.plans_with_status(DownloadStatus.FAILED)
        }

    def get_download_summary(self) -> Dict[str, int]:
        """
        Get a summary of download results.

        Returns:
            Dictionary with counts of completed, failed, skipped and pending downloads
        """
        completed = len(self.planner.plans_with_status(DownloadStatus.COMPLETED))
        failed = len(self.planner.plans_with_status(DownloadStatus.FAILED))
        skipped = len(self.planner.plans_with_status(DownloadStatus.SKIPPED))
        pending = len(self.planner.get_pending_downloads())

        return {
            "completed": completed,
            "failed": failed,
            "skipped": skipped,
            "pending": pending,
            "total": completed + failed + skipped + pending,
        }
