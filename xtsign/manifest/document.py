"""Reading and validating extension manifest files.

The manifest is a free-form JSON object. Only a handful of fields matter to
packaging: ``name`` and ``version`` name the artifact, ``public_key`` and
``signature`` are outputs of the signing pipeline. ``permissions`` and
``dependencies`` are checked for shape only; they are consumed by the host's
permission system.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..errors import ManifestFormatError, ManifestMissingError

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "manifest.json"


@dataclass
class TableGrant:
    table: str
    operations: List[str]
    reason: str = ""


@dataclass
class DependencyDeclaration:
    identity: str
    name: str
    min_version: str
    tables: List[TableGrant] = field(default_factory=list)


@dataclass
class ManifestFile:
    """A manifest as loaded from disk, with its exact original bytes."""
    path: Path
    original_bytes: bytes
    document: Dict[str, Any]

    @property
    def name(self) -> str:
        return self.document["name"]

    @property
    def version(self) -> str:
        return self.document["version"]


def _package_json_version(project_root: Path) -> Optional[str]:
    pkg = project_root / "package.json"
    try:
        version = json.loads(pkg.read_text(encoding="utf-8")).get("version")
    except (OSError, ValueError, AttributeError):
        logger.warning("Could not read version from %s", pkg)
        return None
    if version:
        logger.info("Using version from package.json: %s", version)
    return version


def load_manifest(path: Union[str, Path], project_root: Optional[Union[str, Path]] = None) -> ManifestFile:
    """Load and validate the manifest at path.

    If the manifest has no ``version``, the one in ``package.json`` under
    project_root is used (in memory only, the file is not rewritten).
    """
    manifest_path = Path(path)
    try:
        raw = manifest_path.read_bytes()
    except FileNotFoundError as e:
        raise ManifestMissingError(f"manifest not found at {manifest_path}") from e
    except OSError as e:
        raise ManifestMissingError(f"cannot read manifest at {manifest_path}: {e}") from e

    try:
        doc = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise ManifestFormatError(f"manifest at {manifest_path} is not valid JSON: {e}") from e
    if not isinstance(doc, dict):
        raise ManifestFormatError(f"manifest at {manifest_path} must be a JSON object")

    if not doc.get("version") and project_root is not None:
        version = _package_json_version(Path(project_root))
        if version:
            doc["version"] = version

    validate_manifest(doc)
    logger.debug("Loaded manifest %s", manifest_path)
    return ManifestFile(path=manifest_path, original_bytes=raw, document=doc)


def validate_manifest(doc: Dict[str, Any]) -> None:
    """Raise ManifestFormatError listing every structural problem found."""
    problems: List[str] = []

    for key in ("name", "version"):
        value = doc.get(key)
        if not isinstance(value, str) or not value.strip():
            problems.append(f"'{key}' must be a non-empty string")

    for key in ("public_key", "signature"):
        if key in doc and doc[key] is not None and not isinstance(doc[key], str):
            problems.append(f"'{key}' must be a string")

    if "permissions" in doc and doc["permissions"] is not None and not isinstance(doc["permissions"], dict):
        problems.append("'permissions' must be an object")

    deps = doc.get("dependencies")
    if deps is not None:
        if not isinstance(deps, list):
            problems.append("'dependencies' must be a list")
        else:
            for i, dep in enumerate(deps):
                problems.extend(_dependency_problems(i, dep))

    if problems:
        raise ManifestFormatError("invalid manifest: " + "; ".join(problems), problems=problems)


def _dependency_problems(index: int, dep: Any) -> List[str]:
    where = f"dependencies[{index}]"
    if not isinstance(dep, dict):
        return [f"{where} must be an object"]
    problems = []
    for key in ("identity", "name", "minVersion"):
        if not isinstance(dep.get(key), str) or not dep.get(key):
            problems.append(f"{where}.{key} must be a non-empty string")
    tables = dep.get("tables", [])
    if not isinstance(tables, list):
        return problems + [f"{where}.tables must be a list"]
    for j, grant in enumerate(tables):
        if not isinstance(grant, dict) or not isinstance(grant.get("table"), str):
            problems.append(f"{where}.tables[{j}].table must be a string")
            continue
        ops = grant.get("operations", [])
        if not isinstance(ops, list) or not all(isinstance(op, str) for op in ops):
            problems.append(f"{where}.tables[{j}].operations must be a list of strings")
    return problems


def parse_dependencies(doc: Dict[str, Any]) -> List[DependencyDeclaration]:
    """Typed view of the manifest's dependency declarations."""
    validate_manifest(doc)
    out = []
    for dep in doc.get("dependencies") or []:
        tables = [
            TableGrant(
                table=g["table"],
                operations=list(g.get("operations", [])),
                reason=g.get("reason", "") or "",
            )
            for g in dep.get("tables", [])
        ]
        out.append(DependencyDeclaration(
            identity=dep["identity"],
            name=dep["name"],
            min_version=dep["minVersion"],
            tables=tables,
        ))
    return out


def artifact_file_name(doc: Dict[str, Any], suffix: str = ".xt") -> str:
    """Default artifact file name: ``<name>-<version><suffix>``."""
    return f"{doc['name']}-{doc['version']}{suffix}"


__all__ = [
    "MANIFEST_FILENAME",
    "TableGrant",
    "DependencyDeclaration",
    "ManifestFile",
    "load_manifest",
    "validate_manifest",
    "parse_dependencies",
    "artifact_file_name",
]
