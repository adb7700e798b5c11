"""Hosted release API client."""

from tagcut.host.github import GitHubHost, ReleaseHost
from tagcut.host.models import Asset, HostError, Release, ReleaseInput

__all__ = [
    "Asset",
    "GitHubHost",
    "HostError",
    "Release",
    "ReleaseHost",
    "ReleaseInput",
]
