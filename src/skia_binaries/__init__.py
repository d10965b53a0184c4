"""
skia_binaries - fetch, stage and package prebuilt Skia binaries.
"""

from skia_binaries.artifact_models import ArtifactCatalog, ArtifactRequest, Flavor
from skia_binaries.pipeline import (
    ArtifactPipeline,
    DestinationPolicy,
    StagingOutcome,
    StagingState,
    fetch_and_stage,
)
from skia_binaries.skia_binaries_config import SkiaBinariesConfig
from skia_binaries.skia_binaries_logger import SkiaBinariesLogger
from skia_binaries.versioning import milestone_to_semver

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ArtifactCatalog",
    "ArtifactPipeline",
    "ArtifactRequest",
    "DestinationPolicy",
    "Flavor",
    "SkiaBinariesConfig",
    "SkiaBinariesLogger",
    "StagingOutcome",
    "StagingState",
    "fetch_and_stage",
    "milestone_to_semver",
]
