"""
Archive stager.

Extracts downloaded archives and materializes their payload.
"""

from .stager import ArchiveStager

__all__ = ["ArchiveStager"]
