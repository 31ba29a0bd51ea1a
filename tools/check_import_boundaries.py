"""Static import boundary guard for the explox layers."""

from __future__ import annotations

import argparse
import ast
from dataclasses import dataclass
from pathlib import Path

PACKAGE = "explox"

# layer -> layers it must never import
FORBIDDEN_IMPORTS: dict[str, set[str]] = {
    "domain": {"adapters", "api", "application", "infrastructure", "persistence", "planner", "services"},
    "shared": {"adapters", "api", "application", "domain", "infrastructure", "persistence", "planner", "services"},
    "planner": {"api", "application"},
    "persistence": {"api", "application", "services"},
    "adapters": {"api", "application", "persistence", "services"},
    "services": {"api"},
    "application": {"api"},
}


@dataclass(frozen=True)
class ImportRecord:
    source_file: Path
    source_layer: str | None
    target_module: str
    target_layer: str | None
    lineno: int


def _layer_from_module(module_name: str) -> str | None:
    parts = module_name.split(".")
    if len(parts) < 2 or parts[0] != PACKAGE:
        return None
    return parts[1]


def _module_from_path(path: Path, root: Path) -> str:
    parts = [PACKAGE, *path.relative_to(root).with_suffix("").parts]
    if parts[-1] == "__init__":
        parts = parts[:-1]
    return ".".join(parts)


def collect_import_records(root: str | Path = PACKAGE) -> list[ImportRecord]:
    root_path = Path(root)
    records: list[ImportRecord] = []
    for path in sorted(root_path.rglob("*.py")):
        if "__pycache__" in path.parts:
            continue
        tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
        source_layer = _layer_from_module(_module_from_path(path, root_path))
        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                targets = [alias.name for alias in node.names]
            elif isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
                targets = [node.module]
            else:
                continue
            for target in targets:
                if not target.startswith(f"{PACKAGE}."):
                    continue
                records.append(
                    ImportRecord(
                        source_file=path,
                        source_layer=source_layer,
                        target_module=target,
                        target_layer=_layer_from_module(target),
                        lineno=node.lineno,
                    )
                )
    return records


def check_import_boundaries(root: str | Path = PACKAGE) -> list[str]:
    violations: list[str] = []
    for rec in collect_import_records(root):
        if rec.source_layer is None or rec.target_layer is None:
            continue
        if rec.target_layer in FORBIDDEN_IMPORTS.get(rec.source_layer, set()):
            violations.append(
                f"{rec.source_file.as_posix()}:{rec.lineno} -> {rec.target_module}: "
                f"{rec.source_layer} layer must not import {rec.target_layer} layer"
            )
    return sorted(set(violations))


def main() -> int:
    parser = argparse.ArgumentParser(description="Check explox import boundaries")
    parser.add_argument("--root", default=PACKAGE, help="package directory to scan")
    args = parser.parse_args()

    violations = check_import_boundaries(args.root)
    if violations:
        print("Import boundary violations:")
        for line in violations:
            print(f"- {line}")
        return 1
    print("Import boundary check passed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
