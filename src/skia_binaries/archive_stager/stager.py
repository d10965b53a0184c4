"""
Archive stager implementation.

Extracts a downloaded .tar.gz, finds the directory that actually holds the
payload and copies it into the destination.
"""

import asyncio
import logging
import os
import pathlib
from typing import List, Optional, Union

from skia_binaries.skia_binaries_exceptions import ExtractionError, PayloadShapeError
from skia_binaries.skia_binaries_logger import SkiaBinariesLogger
from skia_binaries.skia_binaries_utils import FileUtils, PlatformUtils

PathArg = Union[str, pathlib.Path]


class ArchiveStager:
    """
    Extracts archives with an external tar and places the payload.
    """

    def __init__(
        self,
        logger: SkiaBinariesLogger,
        tar_candidates: Optional[List[str]] = None,
    ):
        """
        Args:
            logger: Logger for progress messages
            tar_candidates: Executables tried in order; defaults to the
                platform's list from PlatformUtils.tar_candidates
        """
        self.logger = logger
        self.tar_candidates = tar_candidates or PlatformUtils.tar_candidates(
            PlatformUtils.get_platform_id()
        )

    async def extract_and_place(
        self,
        archive_path: PathArg,
        scratch_extract_dir: PathArg,
        final_dest_dir: PathArg,
        source_subdir: Optional[str] = None,
    ) -> pathlib.Path:
        """
        Extract `archive_path` into `scratch_extract_dir` and copy the payload
        root into `final_dest_dir`.

        Returns:
            The payload root that was copied
        """
        await self.extract_tar_gz(archive_path, scratch_extract_dir)
        payload_root = self.locate_payload_root(scratch_extract_dir, source_subdir)
        self.place_payload(payload_root, final_dest_dir)
        return payload_root

    async def extract_tar_gz(self, archive_path: PathArg, dest_dir: PathArg) -> None:
        """
        Run `tar -xzf` with each candidate until one succeeds.

        Raises:
            ExtractionError: If no candidate exists or all of them fail
        """
        os.makedirs(dest_dir, exist_ok=True)
        args = ["-xzf", str(archive_path), "-C", str(dest_dir)]

        last_error: Optional[str] = None
        for candidate in self.tar_candidates:
            try:
                process = await asyncio.create_subprocess_exec(
                    candidate, *args, stdin=asyncio.subprocess.DEVNULL
                )
            except FileNotFoundError:
                last_error = f"Command {candidate} not found"
                continue
            except OSError as e:
                last_error = f"Command {candidate} could not be started: {e}"
                continue

            returncode = await process.wait()
            if returncode == 0:
                return
            last_error = f"Command {candidate} exited with code {returncode}"
            self.logger.log(last_error, logging.DEBUG)

        raise ExtractionError(
            f"Failed to extract {pathlib.Path(archive_path).name}. "
            f"Please install a compatible tar binary. "
            f"Last error: {last_error or 'unknown error'}"
        )

    @staticmethod
    def locate_payload_root(
        extract_dir: PathArg, source_subdir: Optional[str] = None
    ) -> pathlib.Path:
        """
        Find the directory holding the payload.

        A single top-level directory is treated as a wrapper and descended
        into; `source_subdir` is then descended into when it exists as a
        directory directly under the current root.

        Raises:
            PayloadShapeError: If the archive extracted to nothing, or if
                `source_subdir` points outside the extracted tree
        """
        root = pathlib.Path(extract_dir)
        entries = list(root.iterdir())
        if not entries:
            raise PayloadShapeError("Archive extracted but no contents found")

        if len(entries) == 1 and entries[0].is_dir():
            root = entries[0]

        if source_subdir:
            candidate = root / source_subdir
            if pathlib.PurePath(source_subdir).is_absolute() or not (
                candidate.resolve().is_relative_to(root.resolve())
            ):
                raise PayloadShapeError(
                    f"Source subdirectory {source_subdir!r} escapes the extracted archive"
                )
            if candidate.is_dir():
                root = candidate

        return root

    def place_payload(self, payload_root: PathArg, final_dest_dir: PathArg) -> None:
        """Copy every item of the payload root into the destination."""
        self.logger.log(f"Installing to {final_dest_dir}...", logging.INFO)
        FileUtils.copy_tree(payload_root, final_dest_dir)
