"""
Download plan management.

Turns the artifact catalog into per-artifact download plans and tracks
the state of each plan as the bulk downloader works through them.
"""

import pathlib
from typing import Dict, List, Optional

from skia_binaries.artifact_models import ArtifactCatalog, ArtifactRequest, Flavor


class DownloadStatus:
    """Enumeration of download statuses."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class DownloadPlan:
    """
    A plan to download a specific artifact.

    Captures the package it belongs to and the request handed to the pipeline.
    """

    def __init__(
        self,
        package_name: str,
        request: ArtifactRequest,
        status: str = DownloadStatus.PENDING,
    ):
        self.package_name = package_name
        self.request = request
        self.status = status
        self.error_message: Optional[str] = None

    @property
    def plan_key(self) -> str:
        """Unique key, e.g. "android.skia-android-arm"."""
        return f"{self.package_name}.{self.request.artifact_name}"

    def __repr__(self) -> str:
        return (
            f"DownloadPlan(key={self.plan_key}, "
            f"status={self.status}, dest={self.request.destination})"
        )


class DownloadPlanner:
    """
    Builds and tracks download plans for one flavor of the catalog.
    """

    def __init__(
        self,
        catalog: ArtifactCatalog,
        flavor: Flavor,
        skia_version: str,
        output_dir: pathlib.Path,
    ):
        """
        Args:
            catalog: The artifact catalog
            flavor: Ganesh or Graphite
            skia_version: Skia milestone, e.g. "m144c"
            output_dir: Root directory; each package lands in output_dir/<package>
        """
        self.catalog = catalog
        self.flavor = flavor
        self.skia_version = skia_version
        self.output_dir = pathlib.Path(output_dir)
        self.download_plans: Dict[str, List[DownloadPlan]] = {}

    @property
    def release_tag(self) -> str:
        return self.flavor.release_tag(self.skia_version)

    def create_download_plan(self, package: Optional[str] = None) -> None:
        """
        Create plans for every artifact of every package, or of `package` only.

        Raises:
            KeyError: If `package` is not in the catalog for this flavor
        """
        self.download_plans = {}
        for name, pkg in self.catalog.select(self.flavor, package).items():
            requests = pkg.requests(self.release_tag, self.output_dir / name)
            self.download_plans[name] = [
                DownloadPlan(package_name=name, request=request) for request in requests
            ]

    def get_download_plans(self) -> Dict[str, List[DownloadPlan]]:
        return self.download_plans

    def get_pending_downloads(self) -> List[DownloadPlan]:
        """
        Get all pending downloads, in catalog order.
        """
        pending = []
        for plans in self.download_plans.values():
            pending.extend(p for p in plans if p.status == DownloadStatus.PENDING)
        return pending

    def mark_download_completed(
        self, plan: DownloadPlan, success: bool = True, error_message: Optional[str] = None
    ) -> None:
        plan.status = DownloadStatus.COMPLETED if success else DownloadStatus.FAILED
        plan.error_message = None if success else error_message

    def plans_with_status(self, status: str) -> List[DownloadPlan]:
        return [
            plan
            for plans in self.download_plans.values()
            for plan in plans
            if plan.status == status
        ]
