"""
Artifact models for Skia binary packages.

This package provides Pydantic data models for the artifact catalog
(which packages exist and which release artifacts they are built from)
and for the metadata written into each generated package.json.
"""

from .artifacts import (
    ArchArtifact,
    ArtifactCatalog,
    ArtifactRequest,
    Flavor,
    PackageSpec,
)
from .package_metadata import (
    AndroidArchAsset,
    GeneratedPackageJson,
    PublishConfig,
    RepositoryInfo,
    SkiaMetadata,
)

__all__ = [
    # Catalog
    "ArchArtifact",
    "ArtifactCatalog",
    "ArtifactRequest",
    "Flavor",
    "PackageSpec",
    # package.json
    "AndroidArchAsset",
    "GeneratedPackageJson",
    "PublishConfig",
    "RepositoryInfo",
    "SkiaMetadata",
]
