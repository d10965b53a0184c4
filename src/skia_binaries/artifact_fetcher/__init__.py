"""
Artifact fetcher.

Downloads release assets with redirect following and rate-limit aware retries.
"""

from .fetcher import ArtifactFetcher, is_transient_fault

__all__ = ["ArtifactFetcher", "is_transient_fault"]
