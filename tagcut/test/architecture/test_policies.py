from __future__ import annotations

import ast

from ._utils import iter_source_files, matches_prefix, parse_imports, read_tree, tagcut_root


def test_direct_rich_imports_are_limited_to_console() -> None:
    root = tagcut_root()
    offenders: list[str] = []
    for file_path in iter_source_files():
        rel = file_path.relative_to(root)
        if str(rel) == "output/console.py":
            continue
        for item in parse_imports(file_path):
            if matches_prefix(item.module, "rich"):
                offenders.append(f"{rel}:{item.line}: direct rich import '{item.module}'")

    assert not offenders, "Direct rich usage policy violations:\n" + "\n".join(offenders)


def _direct_subprocess_calls(tree: ast.AST) -> list[int]:
    lines: list[int] = []
    for node in ast.walk(tree):
        if not isinstance(node, ast.Call) or not isinstance(node.func, ast.Attribute):
            continue
        func = node.func
        if func.attr not in {"run", "check_output", "Popen", "call"}:
            continue
        if isinstance(func.value, ast.Name) and func.value.id == "subprocess":
            lines.append(node.lineno)
    return lines


def test_subprocess_only_through_platform_process() -> None:
    root = tagcut_root()
    offenders: list[str] = []
    for file_path in iter_source_files():
        rel = file_path.relative_to(root)
        if str(rel) == "platform/process.py":
            continue
        for line in _direct_subprocess_calls(read_tree(file_path)):
            offenders.append(f"{rel}:{line}: direct subprocess call")

    assert not offenders, "Subprocess policy violations:\n" + "\n".join(offenders)


def test_release_never_raises_typer_exit() -> None:
    root = tagcut_root()
    offenders: list[str] = []
    for file_path in iter_source_files():
        rel = file_path.relative_to(root)
        if rel.parts[0] == "cli":
            continue
        for item in parse_imports(file_path):
            if matches_prefix(item.module, "typer") or matches_prefix(item.module, "click"):
                offenders.append(f"{rel}:{item.line}: {item.module} import outside cli")

    assert not offenders, "CLI framework leaked below cli:\n" + "\n".join(offenders)
