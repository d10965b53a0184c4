"""
This file contains various utility functions like file copying and platform detection
"""

import os
import pathlib
import platform
import shutil
import stat
from enum import Enum
from typing import List, Optional, Union

PathLike = Union[str, "os.PathLike[str]"]


class PlatformId(str, Enum):
    """
    Operating system families that change how archives are extracted
    """

    WINDOWS = "win"
    MACOS = "osx"
    LINUX = "linux"


class PlatformUtils:
    """
    This class provides utilities for platform detection and identification.
    """

    @staticmethod
    def get_platform_id() -> PlatformId:
        """
        Returns the operating system family of the current machine
        """
        system = platform.system()
        if system == "Windows":
            return PlatformId.WINDOWS
        if system == "Darwin":
            return PlatformId.MACOS
        return PlatformId.LINUX

    @staticmethod
    def tar_candidates(platform_id: PlatformId, system_root: Optional[str] = None) -> List[str]:
        """
        Ordered list of tar executables to try when extracting a .tar.gz archive.

        Windows ships bsdtar as tar.exe under System32, which is not always on PATH.
        """
        if platform_id != PlatformId.WINDOWS:
            return ["tar"]

        system_root = system_root or os.environ.get("SystemRoot") or "C:\\Windows"
        return [
            "tar.exe",
            str(pathlib.PureWindowsPath(system_root, "System32", "tar.exe")),
            "bsdtar.exe",
            "bsdtar",
        ]


def is_special_file(mode: int) -> bool:
    """True for sockets, FIFOs and device nodes."""
    return (
        stat.S_ISSOCK(mode)
        or stat.S_ISFIFO(mode)
        or stat.S_ISCHR(mode)
        or stat.S_ISBLK(mode)
    )


class FileUtils:
    """
    Utility functions for file operations.
    """

    @staticmethod
    def copy_tree(src: PathLike, dest: PathLike) -> None:
        """
        Copy the contents of `src` into `dest`, merging with whatever is there.

        Directories are copied recursively, regular files byte-for-byte and
        symlinks are recreated as symlinks. Sockets, FIFOs and device nodes
        are skipped.
        """
        os.makedirs(dest, exist_ok=True)
        with os.scandir(src) as entries:
            for entry in entries:
                src_path = entry.path
                dest_path = os.path.join(dest, entry.name)
                mode = entry.stat(follow_symlinks=False).st_mode

                if is_special_file(mode):
                    continue

                if stat.S_ISLNK(mode):
                    FileUtils._copy_symlink(src_path, dest_path)
                elif stat.S_ISDIR(mode):
                    FileUtils.copy_tree(src_path, dest_path)
                else:
                    shutil.copyfile(src_path, dest_path)

    @staticmethod
    def _copy_symlink(src_path: str, dest_path: str) -> None:
        if os.path.lexists(dest_path):
            if os.path.isdir(dest_path) and not os.path.islink(dest_path):
                shutil.rmtree(dest_path)
            else:
                os.unlink(dest_path)
        os.symlink(os.readlink(src_path), dest_path)

    @staticmethod
    def remove_tree(path: PathLike) -> None:
        """Remove a directory tree if it exists."""
        shutil.rmtree(path, ignore_errors=True)
