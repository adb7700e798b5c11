from tagcut.git.repository import RepositoryIdentity
from tagcut.release.model import ReleasePlan, ReleaseState
from tagcut.release.semver import SemanticVersion


def _plan(**overrides: object) -> ReleasePlan:
    fields: dict[str, object] = {
        "identity": RepositoryIdentity(owner="acme", name="widget"),
        "base_branch": "main",
        "head_commit": "a" * 40,
        "current_version": SemanticVersion(1, 4, 2),
        "segment": "minor",
        "next_version": SemanticVersion(1, 5, 0),
        "tag": "v1.5.0",
        "previous_tag": "v1.4.2",
        "changes": ("Add export", "Fix import"),
        "comment": "",
        "build": False,
    }
    fields.update(overrides)
    return ReleasePlan(**fields)  # type: ignore[arg-type]


def test_body_with_comment_and_changes() -> None:
    body = _plan(comment="  Big one  ").body()
    assert body == "Big one\n\nChanges since v1.4.2:\n\n- Add export\n- Fix import"


def test_body_without_previous_tag() -> None:
    assert _plan(previous_tag=None).body().startswith("Changes:\n")


def test_body_empty() -> None:
    assert _plan(changes=()).body() == ""


def test_repo_slug_and_title() -> None:
    plan = _plan()
    assert plan.repo == "acme/widget"
    assert plan.title == "v1.5.0"


def test_terminal_states() -> None:
    terminal = {s for s in ReleaseState if s.is_terminal}
    assert terminal == {ReleaseState.COMMITTED, ReleaseState.REVERTED, ReleaseState.REVERT_FAILED}
