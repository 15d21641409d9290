"""System-level static checks for import direction between runtime roots.

Runtime code is layered ``packages`` (shared primitives) below ``resources``
(substrates) below ``services`` (the audit trail). Imports may only point to
the same root or downward, and no runtime module may import test code.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parents[2]
_LAYERS = {"packages": 0, "resources": 1, "services": 2}


@dataclass(frozen=True)
class _Violation:
    """One import-direction violation with stable source location."""

    file_path: Path
    line: int
    message: str

    def format(self) -> str:
        """Render violation for assertion output."""
        return f"{self.file_path}:{self.line}: {self.message}"


def test_runtime_roots_only_import_same_or_lower_layers() -> None:
    violations: list[_Violation] = []
    for file_path in _runtime_python_files():
        caller_module = _module_name_for_file(file_path)
        caller_layer = _LAYERS[caller_module.split(".", 1)[0]]
        tree = ast.parse(file_path.read_text(encoding="utf-8"), filename=str(file_path))

        for module_name, line in _imported_modules(tree, caller_module):
            root = module_name.split(".", 1)[0]
            if root not in _LAYERS:
                continue
            if ".tests" in f".{module_name}" or root == "tests":
                violations.append(
                    _Violation(file_path, line, f"Runtime code imports tests: '{module_name}'")
                )
                continue
            if _LAYERS[root] > caller_layer:
                violations.append(
                    _Violation(
                        file_path,
                        line,
                        f"'{caller_module}' imports higher layer module '{module_name}'",
                    )
                )

    assert not violations, "\n".join(v.format() for v in violations)


def test_runtime_scan_covers_every_layer() -> None:
    roots = {_module_name_for_file(path).split(".", 1)[0] for path in _runtime_python_files()}

    assert roots == set(_LAYERS)


def _runtime_python_files() -> tuple[Path, ...]:
    """Return runtime Python files under layered roots, excluding tests."""
    files: set[Path] = set()
    for root_name in _LAYERS:
        for file_path in (_REPO_ROOT / root_name).rglob("*.py"):
            parts = file_path.relative_to(_REPO_ROOT).parts
            if "tests" in parts or "__pycache__" in parts:
                continue
            files.add(file_path)
    return tuple(sorted(files))


def _module_name_for_file(file_path: Path) -> str:
    """Convert a repo file path to its dotted module name."""
    rel = file_path.relative_to(_REPO_ROOT)
    if rel.name == "__init__.py":
        return ".".join(rel.parent.parts)
    return ".".join(rel.with_suffix("").parts)


def _imported_modules(tree: ast.Module, caller_module: str) -> list[tuple[str, int]]:
    """Resolve absolute imported module names from one module AST."""
    imported: list[tuple[str, int]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            imported.extend((alias.name, node.lineno) for alias in node.names)
        elif isinstance(node, ast.ImportFrom):
            if node.level == 0:
                imported.append((node.module or "", node.lineno))
                continue
            package = caller_module.split(".")
            if not _module_is_package(caller_module):
                package = package[:-1]
            base = package[: len(package) - (node.level - 1)]
            suffix = [node.module] if node.module else []
            imported.append((".".join(base + suffix), node.lineno))
    return imported


def _module_is_package(module_name: str) -> bool:
    """Return True when ``module_name`` maps to a package ``__init__``."""
    return (_REPO_ROOT / Path(*module_name.split(".")) / "__init__.py").exists()
