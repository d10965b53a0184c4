"""
Tests for the post-install hook of generated packages.
"""

import json

import pytest

from skia_binaries.artifact_models import ArtifactCatalog, SkiaMetadata
from skia_binaries.package_generator import PackageGenerator
from skia_binaries.pipeline import DestinationPolicy
from skia_binaries.postinstall import PostInstaller, PostInstallStatus, is_installed
from skia_binaries.skia_binaries_config import SkiaBinariesConfig
from skia_binaries.skia_binaries_exceptions import ConfigurationError, DownloadError
from skia_binaries.skia_binaries_logger import SkiaBinariesLogger
from tests.skia_binaries.fakes import FakePipeline


def generate(tmp_path, package, graphite=False):
    """Generate one package of the m144c catalog."""
    generator = PackageGenerator(
        ArtifactCatalog.load(), SkiaBinariesConfig(graphite=graphite), SkiaBinariesLogger()
    )
    (pkg_dir,) = generator.generate_all(tmp_path, "m144c", "144.3.0", package)
    return pkg_dir


def make_installer(pkg_dir, pipeline):
    return PostInstaller(pkg_dir, pipeline, SkiaBinariesLogger())


class TestIsInstalled:
    """Tests for detecting an existing install."""

    def metadata(self, platform, archs=None):
        """Minimal skia metadata for a platform."""
        return SkiaMetadata.model_validate(
            {
                "repo": "shopify/react-native-skia",
                "platform": platform,
                "releaseTag": "skia-m144c",
                "androidArchs": [
                    {"arch": arch, "assetName": f"{arch}.tar.gz"} for arch in archs or []
                ]
                or None,
            }
        )

    def test_missing_or_empty_libs(self, tmp_path):
        """Missing or empty libs/ is not installed."""
        assert not is_installed(tmp_path / "libs", self.metadata("common"))
        (tmp_path / "libs").mkdir()
        assert not is_installed(tmp_path / "libs", self.metadata("common"))

    def test_android_needs_static_library(self, tmp_path):
        """Android counts as installed once an ABI holds a static library."""
        libs = tmp_path / "libs"
        (libs / "x86").mkdir(parents=True)
        (libs / "x86" / "README").write_text("no libs")
        metadata = self.metadata("android", ["x86"])

        assert not is_installed(libs, metadata)
        (libs / "x86" / "libskia.a").write_bytes(b"a")
        assert is_installed(libs, metadata)

    def test_apple_needs_xcframework(self, tmp_path):
        """Apple counts as installed once an xcframework exists."""
        libs = tmp_path / "libs"
        libs.mkdir()
        (libs / "notes.txt").write_text("x")
        assert not is_installed(libs, self.metadata("apple"))
        (libs / "libskia.xcframework").mkdir()
        assert is_installed(libs, self.metadata("apple"))


class TestPostInstaller:
    """Tests for PostInstaller."""

    @pytest.mark.asyncio
    async def test_installs_every_android_arch_with_replace(self, tmp_path):
        """Install each ABI with the REPLACE policy."""
        pkg_dir = generate(tmp_path, "android")
        pipeline = FakePipeline()

        status = await make_installer(pkg_dir, pipeline).run()

        assert status == PostInstallStatus.INSTALLED
        assert [req.destination.name for req, _ in pipeline.calls] == [
            "armeabi-v7a",
            "arm64-v8a",
            "x86",
            "x86_64",
        ]
        assert {policy for _, policy in pipeline.calls} == {DestinationPolicy.REPLACE}
        assert pipeline.calls[0][0].artifact_name == "skia-android-arm"
        assert (pkg_dir / "libs" / "arm64-v8a" / "libskia.a").exists()

    @pytest.mark.asyncio
    async def test_single_asset_package_installs_into_libs(self, tmp_path):
        """Single-asset packages install straight into libs/."""
        pkg_dir = generate(tmp_path, "apple-ios")
        pipeline = FakePipeline(payload={"libskia.xcframework": b"fw"})

        await make_installer(pkg_dir, pipeline).run()

        ((request, _),) = pipeline.calls
        assert request.destination == pkg_dir / "libs"
        assert request.source_subdir == "ios"
        assert request.asset_name == "skia-apple-ios-xcframeworks-skia-m144c.tar.gz"

    @pytest.mark.asyncio
    async def test_already_installed_is_a_no_op(self, tmp_path):
        """An existing install is left alone."""
        pkg_dir = generate(tmp_path, "apple-macos")
        (pkg_dir / "libs" / "libskia.xcframework").mkdir()
        pipeline = FakePipeline()

        status = await make_installer(pkg_dir, pipeline).run()

        assert status == PostInstallStatus.ALREADY_INSTALLED
        assert pipeline.calls == []

    @pytest.mark.asyncio
    async def test_skip_download(self, tmp_path):
        """SKIP_SKIA_DOWNLOAD short-circuits the hook."""
        pkg_dir = generate(tmp_path, "android")
        pipeline = FakePipeline(config=SkiaBinariesConfig(skip_download=True))

        status = await make_installer(pkg_dir, pipeline).run()

        assert status == PostInstallStatus.SKIPPED
        assert pipeline.calls == []

    @pytest.mark.asyncio
    async def test_failure_removes_partial_libs(self, tmp_path):
        """A failed install removes libs/ and re-raises."""
        pkg_dir = generate(tmp_path, "android")
        pipeline = FakePipeline(
            failures={"skia-android-arm-x86": DownloadError("Failed to download: 404", status_code=404)}
        )

        with pytest.raises(DownloadError):
            await make_installer(pkg_dir, pipeline).run()

        assert len(pipeline.calls) == 3
        assert not (pkg_dir / "libs").exists()

    @pytest.mark.asyncio
    async def test_missing_package_json(self, tmp_path):
        """A package dir without package.json is a configuration error."""
        with pytest.raises(ConfigurationError, match="package.json not found"):
            await make_installer(tmp_path, FakePipeline()).run()

    @pytest.mark.asyncio
    async def test_package_json_without_skia_block(self, tmp_path):
        """A package.json without skia metadata is a configuration error."""
        (tmp_path / "package.json").write_text(json.dumps({"name": "x"}))

        with pytest.raises(ConfigurationError, match="Invalid package.json"):
            await make_installer(tmp_path, FakePipeline()).run()
