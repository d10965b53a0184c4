"""
Generates the per-platform npm packages that carry Skia binaries.

Each generated package holds a package.json with "skia" metadata, a README
and an empty libs/ directory that the post-install hook populates.
"""

import logging
import os
import pathlib
from typing import List, Optional

from skia_binaries.artifact_models import (
    AndroidArchAsset,
    ArtifactCatalog,
    Flavor,
    GeneratedPackageJson,
    PackageSpec,
    RepositoryInfo,
    SkiaMetadata,
)
from skia_binaries.skia_binaries_config import SkiaBinariesConfig
from skia_binaries.skia_binaries_logger import SkiaBinariesLogger
from skia_binaries.versioning import milestone_to_semver

PACKAGES_REPOSITORY_URL = "https://github.com/wcandillon/react-native-skia-binaries.git"
POSTINSTALL_COMMAND = "skia-binaries postinstall"
LIBS_DIR_NAME = "libs"


def package_name(flavor: Flavor, pkg: PackageSpec) -> str:
    return f"react-native-{flavor.tag_prefix}-{pkg.name}"


class PackageGenerator:
    """
    Writes package directories for one flavor of the artifact catalog.
    """

    def __init__(
        self,
        catalog: ArtifactCatalog,
        config: SkiaBinariesConfig,
        logger: SkiaBinariesLogger,
    ):
        self.catalog = catalog
        self.config = config
        self.logger = logger
        self.flavor = Flavor.from_graphite(config.graphite)

    def build_metadata(self, pkg: PackageSpec, release_tag: str) -> SkiaMetadata:
        metadata = SkiaMetadata(
            repo=self.config.repo,
            platform=pkg.platform,
            release_tag=release_tag,
            graphite=self.flavor is Flavor.GRAPHITE,
        )
        requests = pkg.requests(release_tag, pathlib.Path(LIBS_DIR_NAME))
        if pkg.is_android:
            metadata.android_archs = [
                AndroidArchAsset(
                    arch=artifact.arch or "",
                    asset_name=request.asset_name,
                    src_subdir=artifact.package_subdir,
                )
                for artifact, request in zip(pkg.artifacts, requests)
            ]
        elif requests:
            metadata.asset_name = requests[0].asset_name
            metadata.lib_subdir = pkg.artifacts[0].package_subdir
        return metadata

    def build_package_json(
        self, pkg: PackageSpec, skia_version: str, npm_version: str
    ) -> GeneratedPackageJson:
        release_tag = self.flavor.release_tag(skia_version)
        return GeneratedPackageJson(
            name=package_name(self.flavor, pkg),
            version=npm_version,
            description=pkg.description,
            repository=RepositoryInfo(
                url=PACKAGES_REPOSITORY_URL,
                directory=f"dist/{self.flavor.value}/{pkg.name}",
            ),
            files=[f"{LIBS_DIR_NAME}/**"],
            scripts={"postinstall": POSTINSTALL_COMMAND},
            skia=self.build_metadata(pkg, release_tag),
        )

    def render_readme(self, pkg: PackageSpec, skia_version: str, npm_version: str) -> str:
        name = package_name(self.flavor, pkg)

        architecture_info = ""
        if pkg.is_android:
            rows = "\n".join(
                f"| `{a.arch}` | {a.arch} |" for a in pkg.artifacts if a.arch
            )
            architecture_info = (
                "\n## Included Architectures\n\n"
                "| Architecture | Description |\n"
                "|--------------|-------------|\n"
                f"{rows}\n"
            )

        backend = (
            "- **Backend**: Graphite (Dawn/WebGPU)\n"
            if self.flavor is Flavor.GRAPHITE
            else ""
        )

        return f"""# {name}

{pkg.description}

## About

This package contains prebuilt Skia libraries downloaded from the [{self.config.repo}](https://{self.config.host}/{self.config.repo}) GitHub releases.

- **Skia Version**: {skia_version}
- **Package Version**: {npm_version}
- **Platform**: {pkg.platform}
{backend}{architecture_info}
## Installation

This package is typically installed automatically as a dependency of `@shopify/react-native-skia`.

```bash
npm install {name}
```

## Postinstall

On installation, this package downloads the binary from GitHub releases:
- Repository: `{self.config.repo}`
- Release Tag: `{self.flavor.release_tag(skia_version)}`

Set `SKIP_SKIA_DOWNLOAD=1` to skip the download.

## License

MIT
"""

    def generate_package(
        self,
        pkg: PackageSpec,
        output_dir: pathlib.Path,
        skia_version: str,
        npm_version: str,
    ) -> pathlib.Path:
        """
        Write one package directory and return its path.
        """
        pkg_dir = pathlib.Path(output_dir) / self.flavor.value / pkg.name
        pkg_dir.mkdir(parents=True, exist_ok=True)

        package_json = self.build_package_json(pkg, skia_version, npm_version)
        package_json.write(pkg_dir / "package.json")
        (pkg_dir / "README.md").write_text(
            self.render_readme(pkg, skia_version, npm_version), encoding="utf-8"
        )
        # populated by the post-install hook
        (pkg_dir / LIBS_DIR_NAME).mkdir(exist_ok=True)

        self.logger.log(f"Generated: {package_json.name}@{npm_version}", logging.INFO)
        return pkg_dir

    def generate_all(
        self,
        output_dir: pathlib.Path,
        skia_version: str,
        npm_version: Optional[str] = None,
        package: Optional[str] = None,
    ) -> List[pathlib.Path]:
        """
        Generate every package of the flavor, or only `package`.

        `npm_version` defaults to the semver derived from `skia_version`.

        Raises:
            InvalidMilestoneError: If npm_version is omitted and skia_version is malformed
            KeyError: If `package` is not in the catalog
        """
        npm_version = npm_version or milestone_to_semver(skia_version)
        generated = [
            self.generate_package(pkg, output_dir, skia_version, npm_version)
            for pkg in self.catalog.select(self.flavor, package).values()
        ]
        self.logger.log(f"Generated {len(generated)} package(s)", logging.INFO)
        return generated


def write_github_output(generated: List[pathlib.Path], github_output: Optional[str] = None) -> bool:
    """
    Append the generated directories to $GITHUB_OUTPUT for CI.

    Returns:
        True if the output file was written
    """
    github_output = github_output or os.environ.get("GITHUB_OUTPUT")
    if not github_output:
        return False
    output = "\n".join(str(path) for path in generated)
    with open(github_output, "a", encoding="utf-8") as f:
        f.write(f"packages={output}\n")
    return True
