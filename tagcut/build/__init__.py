"""Release artifact builds."""

from tagcut.build.builder import ArtifactBuilder, BuildTarget, CommandArtifactBuilder
from tagcut.build.errors import BuildError, describe_build_error

__all__ = [
    "ArtifactBuilder",
    "BuildError",
    "BuildTarget",
    "CommandArtifactBuilder",
    "describe_build_error",
]
