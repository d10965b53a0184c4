"""
Bulk artifact downloader.

This package handles:
1. Planning which artifacts to download for a flavor and version
2. Running each plan through the fetch-and-stage pipeline
3. Tracking per-artifact status and summarizing the results
"""

from .downloader import ArtifactDownloader
from .plan_manager import DownloadPlan, DownloadPlanner, DownloadStatus

__all__ = ["ArtifactDownloader", "DownloadPlan", "DownloadPlanner", "DownloadStatus"]
