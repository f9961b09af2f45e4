"""
metadata/validator.py — JSON Schema validation for relation YAML files.

Usage:
    from docrelate.metadata.validator import validate_relations_dir

    issues = validate_relations_dir(Path("relations"))
    for issue in issues:
        print(issue)
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

logger = logging.getLogger(__name__)

_SCHEMA_PATH = Path(__file__).parent / "schemas" / "relation.schema.json"


@dataclass
class ValidationIssue:
    """A single validation finding for a relation YAML file."""

    file: Path
    message: str
    path: str = ""          # Location within the document, e.g. "relations/author/onDelete"
    severity: str = "error" # "error" | "warning"

    def __str__(self) -> str:
        loc = f" at {self.path}" if self.path else ""
        return f"[{self.severity.upper()}] {self.file}{loc}: {self.message}"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_schema() -> dict[str, Any]:
    with _SCHEMA_PATH.open() as fh:
        return json.load(fh)


def _json_path(error: ValidationError) -> str:
    """Convert a jsonschema ValidationError path to a readable string."""
    parts = []
    for p in error.absolute_path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(str(p))
    return "/".join(parts).replace("/[", "[")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_relation_file(
    yaml_path: Path,
    *,
    validator: Draft202012Validator | None = None,
) -> list[ValidationIssue]:
    """
    Validate a single relation YAML file against the relation schema.

    Returns a (possibly empty) list of ValidationIssue objects.
    """
    try:
        with yaml_path.open() as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as e:
        return [ValidationIssue(file=yaml_path, message=f"YAML parse error: {e}")]

    if data is None:
        return [
            ValidationIssue(
                file=yaml_path, message="File is empty", severity="warning"
            )
        ]

    if validator is None:
        validator = Draft202012Validator(_load_schema())

    issues = [
        ValidationIssue(file=yaml_path, message=error.message, path=_json_path(error))
        for error in sorted(validator.iter_errors(data), key=_json_path)
    ]

    relations = data.get("relations") if isinstance(data, dict) else None
    if not isinstance(relations, dict):
        relations = {}

    for name, relation in relations.items():
        if isinstance(relation, dict) and relation.get("onDelete") == "pull" and not relation.get("many"):
            issues.append(
                ValidationIssue(
                    file=yaml_path,
                    message="onDelete 'pull' expects an array relation (many: true)",
                    path=f"relations/{name}/onDelete",
                    severity="warning",
                )
            )

    logger.debug("Validated %s: %d issue(s)", yaml_path, len(issues))
    return issues


def validate_relations_dir(
    relations_path: Path,
    *,
    strict: bool = False,
) -> list[ValidationIssue]:
    """
    Validate every *.yaml file in a relations directory.

    When ``strict`` is True, warnings are promoted to errors.
    """
    validator = Draft202012Validator(_load_schema())
    issues: list[ValidationIssue] = []
    for yaml_file in sorted(relations_path.glob("*.yaml")):
        issues.extend(validate_relation_file(yaml_file, validator=validator))

    if strict:
        for issue in issues:
            issue.severity = "error"
    return issues
