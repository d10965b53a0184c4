"""
Pydantic models for the generated package.json and its "skia" metadata block.

The post-install hook reads the same block back to know what to download.
"""

import json
import pathlib
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from skia_binaries.artifact_models.artifacts import ARCHIVE_SUFFIX, ArtifactRequest


class AndroidArchAsset(BaseModel):
    """An Android ABI and the asset that provides it."""

    model_config = ConfigDict(populate_by_name=True)

    arch: str
    asset_name: str = Field(..., alias="assetName")
    src_subdir: Optional[str] = Field(None, alias="srcSubdir")


class SkiaMetadata(BaseModel):
    """
    The "skia" block of a generated package.json.

    Android packages list one asset per ABI in `android_archs`; every other
    package has a single `asset_name` and optional `lib_subdir`.
    """

    model_config = ConfigDict(populate_by_name=True)

    repo: str
    platform: str
    release_tag: str = Field(..., alias="releaseTag")
    graphite: bool = False
    android_archs: Optional[List[AndroidArchAsset]] = Field(None, alias="androidArchs")
    asset_name: Optional[str] = Field(None, alias="assetName")
    lib_subdir: Optional[str] = Field(None, alias="libSubdir")

    def artifact_name(self, asset_name: str) -> str:
        """
        Strip the "-<releaseTag>.tar.gz" suffix from an asset name.
        """
        suffix = f"-{self.release_tag}{ARCHIVE_SUFFIX}"
        if asset_name.endswith(suffix):
            return asset_name[: -len(suffix)]
        return asset_name

    def requests(self, libs_dir: pathlib.Path) -> List[ArtifactRequest]:
        """
        Artifact requests needed to populate `libs_dir`.
        """
        if self.platform == "android" and self.android_archs:
            return [
                ArtifactRequest(
                    artifact_name=self.artifact_name(arch.asset_name),
                    release_tag=self.release_tag,
                    destination=libs_dir / arch.arch,
                    source_subdir=arch.src_subdir,
                )
                for arch in self.android_archs
            ]
        if self.asset_name:
            return [
                ArtifactRequest(
                    artifact_name=self.artifact_name(self.asset_name),
                    release_tag=self.release_tag,
                    destination=libs_dir,
                    source_subdir=self.lib_subdir,
                )
            ]
        return []


class RepositoryInfo(BaseModel):
    type: str = "git"
    url: str
    directory: str


class PublishConfig(BaseModel):
    access: str = "public"
    provenance: bool = True


class GeneratedPackageJson(BaseModel):
    """
    package.json written for each generated binary package.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    version: str
    description: str
    license: str = "MIT"
    repository: RepositoryInfo
    publish_config: PublishConfig = Field(
        default_factory=PublishConfig, alias="publishConfig"
    )
    files: List[str]
    scripts: Dict[str, str]
    skia: SkiaMetadata

    @classmethod
    def read(cls, path: pathlib.Path) -> "GeneratedPackageJson":
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate(json.load(f))

    def to_json_dict(self) -> Dict[str, Any]:
        """
        Dictionary using the camelCase keys npm expects.
        """
        return self.model_dump(by_alias=True, exclude_none=True)

    def write(self, path: pathlib.Path) -> None:
        path.write_text(json.dumps(self.to_json_dict(), indent=2) + "\n", encoding="utf-8")
