"""
Pydantic data models for the Skia artifact catalog (artifacts.json).

The catalog is an immutable table mapping each generated package to the
release artifacts it is assembled from. It is loaded once and handed to the
package generator and the bulk downloader at construction time.
"""

import json
import pathlib
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

CATALOG_PATH = pathlib.Path(__file__).parent / "artifacts.json"
ARCHIVE_SUFFIX = ".tar.gz"


class Flavor(str, Enum):
    """The two Skia binary flavors published on the release host."""

    GANESH = "ganesh"
    GRAPHITE = "graphite"

    @classmethod
    def from_graphite(cls, graphite: bool) -> "Flavor":
        return cls.GRAPHITE if graphite else cls.GANESH

    @property
    def tag_prefix(self) -> str:
        """Release tag prefix, also used in package names."""
        return "skia-graphite" if self is Flavor.GRAPHITE else "skia"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    def release_tag(self, skia_version: str) -> str:
        """
        Release tag grouping all artifacts of one version, e.g. skia-m144c.
        """
        return f"{self.tag_prefix}-{skia_version}"


class ArtifactRequest(BaseModel):
    """
    Identifies exactly one downloadable archive and where its payload goes.
    """

    model_config = ConfigDict(frozen=True)

    artifact_name: str = Field(..., min_length=1)
    release_tag: str = Field(..., min_length=1)
    destination: pathlib.Path
    source_subdir: Optional[str] = None

    @property
    def asset_name(self) -> str:
        return f"{self.artifact_name}-{self.release_tag}{ARCHIVE_SUFFIX}"

    def url(self, repo: str, host: str = "github.com") -> str:
        """
        Download URL of the asset on the release host.
        """
        return (
            f"https://{host}/{repo}/releases/download/"
            f"{self.release_tag}/{self.asset_name}"
        )


class ArchArtifact(BaseModel):
    """
    One release artifact of a package.

    `arch` is the destination subdirectory (Android ABI name) or None when the
    payload lands directly in the package root. `src_subdir` selects the
    subdirectory of the extracted archive holding the payload for bulk
    downloads; `lib_subdir` overrides it for generated packages.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    artifact: str
    arch: Optional[str] = None
    src_subdir: Optional[str] = Field(None, alias="srcSubdir")
    lib_subdir: Optional[str] = Field(None, alias="libSubdir")

    @property
    def package_subdir(self) -> Optional[str]:
        """Subdirectory a generated package installs from."""
        return self.lib_subdir or self.src_subdir


class PackageSpec(BaseModel):
    """
    A generated npm package and the artifacts it is built from.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    platform: str = Field(..., pattern="^(android|apple|common)$")
    description: str
    artifacts: Tuple[ArchArtifact, ...]

    @property
    def is_android(self) -> bool:
        return self.platform == "android"

    def requests(self, release_tag: str, root: pathlib.Path) -> List[ArtifactRequest]:
        """
        Build one ArtifactRequest per artifact, placing each under `root/<arch>`.
        """
        return [
            ArtifactRequest(
                artifact_name=artifact.artifact,
                release_tag=release_tag,
                destination=root / artifact.arch if artifact.arch else root,
                source_subdir=artifact.src_subdir,
            )
            for artifact in self.artifacts
        ]


class ArtifactCatalog(BaseModel):
    """
    Complete artifact catalog, keyed by flavor.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    description: Optional[str] = Field(None, alias="_description")
    ganesh: Tuple[PackageSpec, ...]
    graphite: Tuple[PackageSpec, ...]

    @classmethod
    def load(cls, path: Optional[pathlib.Path] = None) -> "ArtifactCatalog":
        with open(path or CATALOG_PATH, "r", encoding="utf-8") as f:
            return cls.model_validate(json.load(f))

    def packages(self, flavor: Flavor) -> Tuple[PackageSpec, ...]:
        return self.graphite if flavor is Flavor.GRAPHITE else self.ganesh

    def package_names(self, flavor: Flavor) -> List[str]:
        return [pkg.name for pkg in self.packages(flavor)]

    def get_package(self, flavor: Flavor, name: str) -> Optional[PackageSpec]:
        for pkg in self.packages(flavor):
            if pkg.name == name:
                return pkg
        return None

    def select(self, flavor: Flavor, name: Optional[str] = None) -> Dict[str, PackageSpec]:
        """
        Packages to process: all of them, or only `name`.

        Raises:
            KeyError: If `name` is not part of the flavor's catalog
        """
        if name is None:
            return {pkg.name: pkg for pkg in self.packages(flavor)}
        pkg = self.get_package(flavor, name)
        if pkg is None:
            raise KeyError(name)
        return {name: pkg}
