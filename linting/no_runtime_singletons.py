#!/usr/bin/env python
"""Reject ambient module-level state in the relay package.

Connections, routers and client identity live on objects passed to constructors.
A module that parks one of them in a global, or hands out a lazily created
instance, is reported.
"""

from __future__ import annotations

import ast
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
PACKAGE_DIR = ROOT / "tabrelay"

SINGLETON_CLASS_SUFFIX = "Singleton"
SINGLETON_FN_NAMES = {"get_instance", "reset_instance", "get_connection", "get_client"}
SINGLETON_STATE_NAMES = {"_STATE", "STATE", "_INSTANCE", "INSTANCE"}
AMBIENT_STATE_SUFFIXES = ("_instance", "_connection", "_client", "_manager", "_router", "_ws")
STATEFUL_CONSTRUCTORS = {"ConnectionManager", "RequestRouter", "MessageDispatcher", "Subscribers"}


def _top_level_targets(node: ast.Assign | ast.AnnAssign) -> list[str]:
    if isinstance(node, ast.AnnAssign):
        return [node.target.id] if isinstance(node.target, ast.Name) else []
    return [target.id for target in node.targets if isinstance(target, ast.Name)]


def _dict_contains_instance_key(value: ast.expr) -> bool:
    if not isinstance(value, ast.Dict):
        return False
    return any(isinstance(key, ast.Constant) and key.value == "instance" for key in value.keys)


def _constructs_stateful_object(value: ast.expr) -> bool:
    if not isinstance(value, ast.Call):
        return False
    func = value.func
    name = func.id if isinstance(func, ast.Name) else func.attr if isinstance(func, ast.Attribute) else ""
    return name in STATEFUL_CONSTRUCTORS


def _is_ambient_state(node: ast.Assign | ast.AnnAssign) -> bool:
    names = _top_level_targets(node)
    value = node.value
    if not names or value is None:
        return False

    if any(name in SINGLETON_STATE_NAMES for name in names) and _dict_contains_instance_key(value):
        return True
    if _constructs_stateful_object(value):
        return True
    if isinstance(value, ast.Constant) and value.value is None:
        return any(name.lower().endswith(AMBIENT_STATE_SUFFIXES) for name in names)
    return False


def _collect_violations(filepath: Path) -> list[str]:
    try:
        source = filepath.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return []

    try:
        tree = ast.parse(source, filename=str(filepath))
    except SyntaxError:
        return []

    violations: list[str] = []
    rel = filepath.relative_to(ROOT) if filepath.is_relative_to(ROOT) else filepath

    for node in tree.body:
        if isinstance(node, ast.ClassDef) and node.name.endswith(SINGLETON_CLASS_SUFFIX):
            violations.append(f"  {rel}:{node.lineno} class `{node.name}` uses singleton naming")
            continue
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and node.name in SINGLETON_FN_NAMES:
            violations.append(f"  {rel}:{node.lineno} function `{node.name}` suggests singleton lifecycle")
            continue
        if isinstance(node, ast.Global):
            violations.append(f"  {rel}:{node.lineno} module-level `global` statement")
            continue
        if isinstance(node, (ast.Assign, ast.AnnAssign)) and _is_ambient_state(node):
            names = ", ".join(_top_level_targets(node))
            violations.append(f"  {rel}:{node.lineno} ambient module state assignment: {names}")

    for node in ast.walk(tree):
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            for stmt in ast.walk(node):
                if isinstance(stmt, ast.Global):
                    names = ", ".join(stmt.names)
                    violations.append(f"  {rel}:{stmt.lineno} `global {names}` inside `{node.name}`")

    return violations


def collect_package_violations(package_dir: Path = PACKAGE_DIR) -> list[str]:
    violations: list[str] = []
    for py_file in sorted(package_dir.rglob("*.py")):
        if "__pycache__" in py_file.parts:
            continue
        violations.extend(_collect_violations(py_file))
    return violations


def main() -> int:
    if not PACKAGE_DIR.is_dir():
        print(f"[no-runtime-singletons] Missing package directory: {PACKAGE_DIR}", file=sys.stderr)
        return 1

    violations = collect_package_violations()
    if not violations:
        return 0

    print("Ambient runtime state violations:", file=sys.stderr)
    for violation in violations:
        print(violation, file=sys.stderr)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
