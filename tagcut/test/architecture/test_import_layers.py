from __future__ import annotations

import pytest

from ._utils import iter_python_files, matches_prefix, parse_imports, tagcut_root

# package -> tagcut packages it may import (besides itself)
ALLOWED: dict[str, set[str]] = {
    "core": set(),
    "platform": {"core"},
    "output": set(),
    "git": {"core", "platform"},
    "host": {"core"},
    "build": {"core", "platform"},
    "release": {"core", "git", "host", "build", "output"},
    "cli": {"core", "git", "host", "build", "output", "release"},
}


@pytest.mark.parametrize("package", sorted(ALLOWED))
def test_package_imports_respect_layers(package: str) -> None:
    root = tagcut_root()
    allowed = ALLOWED[package] | {package}
    offenders: list[str] = []

    for file_path in iter_python_files(root / package):
        rel = file_path.relative_to(root)
        for item in parse_imports(file_path):
            if item.module == "tagcut":
                # Only the version string lives at the top level.
                continue
            if not matches_prefix(item.module, "tagcut"):
                continue
            target = item.module.split(".")[1]
            if target not in allowed:
                offenders.append(f"{rel}:{item.line}: forbidden import '{item.module}'")

    assert not offenders, f"{package} layering violations:\n" + "\n".join(offenders)


def test_every_package_is_classified() -> None:
    root = tagcut_root()
    packages = {
        p.name
        for p in root.iterdir()
        if p.is_dir() and (p / "__init__.py").exists() and p.name != "test"
    }
    assert packages == set(ALLOWED)
