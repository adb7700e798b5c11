from __future__ import annotations

from enum import StrEnum

from tagcut.core.config import ReleaseModel
from tagcut.release.semver import Segment


class Model(StrEnum):
    master = "master"
    branch = "branch"


_MODELS: dict[Model, ReleaseModel] = {Model.master: "master", Model.branch: "branch"}


def select_segment(*, patch: bool, minor: bool, major: bool) -> Segment:
    """major > minor > patch; patch when no flag is given."""
    del patch
    if major:
        return "major"
    if minor:
        return "minor"
    return "patch"


def release_model(model: Model | None) -> ReleaseModel | None:
    return None if model is None else _MODELS[model]
