"""
Milestone to semver conversion for generated package versions.
"""

import re

from skia_binaries.skia_binaries_exceptions import InvalidMilestoneError

MILESTONE_PATTERN = re.compile(r"^m(\d+)([a-z])?$")


def milestone_to_semver(milestone: str) -> str:
    """
    Map a Skia milestone such as "m144c" to "144.3.0".

    The optional trailing letter becomes the minor version ("a" -> 1, "b" -> 2,
    ...); without a letter the minor version is 0.

    Raises:
        InvalidMilestoneError: If `milestone` is not of the form m<major>[<letter>]
    """
    match = MILESTONE_PATTERN.match(milestone.strip())
    if not match:
        raise InvalidMilestoneError(
            f"Invalid Skia milestone {milestone!r}, expected e.g. 'm144' or 'm144c'"
        )
    major, letter = match.groups()
    minor = ord(letter) - ord("a") + 1 if letter else 0
    return f"{int(major)}.{minor}.0"
