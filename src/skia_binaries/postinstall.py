"""
Post-install hook for generated Skia binary packages.

Reads the "skia" block of the package's package.json and downloads the
binaries into libs/. A failed install removes libs/ entirely so the package
is never left half-populated.
"""

import logging
import pathlib
import shutil

from skia_binaries.artifact_models import GeneratedPackageJson, SkiaMetadata
from skia_binaries.package_generator import LIBS_DIR_NAME
from skia_binaries.pipeline import ArtifactPipeline, DestinationPolicy
from skia_binaries.skia_binaries_exceptions import ConfigurationError
from skia_binaries.skia_binaries_logger import SkiaBinariesLogger


class PostInstallStatus:
    """Enumeration of post-install results."""

    SKIPPED = "skipped"
    ALREADY_INSTALLED = "already_installed"
    INSTALLED = "installed"


def is_installed(libs_dir: pathlib.Path, metadata: SkiaMetadata) -> bool:
    """
    Check whether libs/ already holds real content for this package.

    Android needs at least one ABI directory containing a static library,
    Apple needs an .xcframework, anything else just needs to be non-empty.
    """
    if not libs_dir.is_dir():
        return False

    entries = list(libs_dir.iterdir())
    if not entries:
        return False

    if metadata.platform == "android":
        for arch in metadata.android_archs or []:
            arch_dir = libs_dir / arch.arch
            if arch_dir.is_dir() and any(f.name.endswith(".a") for f in arch_dir.iterdir()):
                return True
        return False

    if metadata.platform == "apple":
        return any(entry.name.endswith(".xcframework") for entry in entries)

    return True


class PostInstaller:
    """
    Installs the binaries of one generated package directory.
    """

    def __init__(
        self,
        package_dir: pathlib.Path,
        pipeline: ArtifactPipeline,
        logger: SkiaBinariesLogger,
    ):
        self.package_dir = pathlib.Path(package_dir)
        self.pipeline = pipeline
        self.logger = logger
        self.libs_dir = self.package_dir / LIBS_DIR_NAME

    def load_package(self) -> GeneratedPackageJson:
        """
        Raises:
            ConfigurationError: If package.json is missing or lacks skia metadata
        """
        package_json_path = self.package_dir / "package.json"
        if not package_json_path.exists():
            raise ConfigurationError(f"package.json not found in {self.package_dir}")
        try:
            return GeneratedPackageJson.read(package_json_path)
        except ValueError as e:
            raise ConfigurationError(f"Invalid package.json in {self.package_dir}: {e}") from e

    async def run(self) -> str:
        """
        Returns:
            One of the PostInstallStatus values
        """
        package = self.load_package()

        if self.pipeline.config.skip_download:
            self.logger.log(
                f"Skipping {package.name} download (SKIP_SKIA_DOWNLOAD is set)",
                logging.INFO,
            )
            return PostInstallStatus.SKIPPED

        if is_installed(self.libs_dir, package.skia):
            self.logger.log(f"{package.name}: Binaries already installed", logging.INFO)
            return PostInstallStatus.ALREADY_INSTALLED

        self.logger.log(
            f"{package.name}: Downloading Skia binaries (release {package.skia.release_tag})",
            logging.INFO,
        )

        try:
            shutil.rmtree(self.libs_dir, ignore_errors=True)
            self.libs_dir.mkdir(parents=True, exist_ok=True)

            for request in package.skia.requests(self.libs_dir):
                await self.pipeline.fetch_and_stage(request, DestinationPolicy.REPLACE)
                if request.destination != self.libs_dir:
                    self.logger.log(f"Installed {request.destination.name}", logging.INFO)
        except Exception as e:
            shutil.rmtree(self.libs_dir, ignore_errors=True)
            self.logger.log(
                f"{package.name}: Failed to install binaries: {e}", logging.ERROR
            )
            raise

        self.logger.log(f"{package.name}: Binaries installed successfully", logging.INFO)
        return PostInstallStatus.INSTALLED
