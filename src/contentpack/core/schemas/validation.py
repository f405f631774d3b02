"""Shared schema validation utilities.

Filter and package definition documents are validated with JSON Schema.
Schemas are stored as YAML files under ``contentpack.data/schemas/``.
"""
from __future__ import annotations

from typing import Any, Dict, List

from jsonschema import Draft202012Validator

from contentpack.data import get_data_path, read_yaml


class SchemaValidationError(ValueError):
    """Raised when schema validation fails."""

    def __init__(self, schema_name: str, issues: List[str]) -> None:
        super().__init__(f"{schema_name}: " + "; ".join(issues))
        self.schema_name = schema_name
        self.issues = issues


def load_schema(schema_name: str) -> Dict[str, Any]:
    """Load a bundled schema, appending ``.schema.yaml`` when no extension is given."""
    filename = schema_name
    if not (filename.endswith(".yaml") or filename.endswith(".yml")):
        filename = f"{schema_name}.schema.yaml"
    if not get_data_path("schemas", filename).exists():
        raise FileNotFoundError(f"Schema not found: {filename}")
    return read_yaml("schemas", filename)


def collect_errors(payload: Any, schema_name: str) -> List[str]:
    """Return schema violations as ``"<path>: <message>"`` strings (empty when valid)."""
    schema = load_schema(schema_name)
    validator = Draft202012Validator(schema)
    issues: List[str] = []
    for err in sorted(validator.iter_errors(payload), key=lambda e: list(map(str, e.path))):
        path = "/".join(str(p) for p in err.path) or "<root>"
        issues.append(f"{path}: {err.message}")
    return issues


def validate_payload(payload: Any, schema_name: str) -> None:
    issues = collect_errors(payload, schema_name)
    if issues:
        raise SchemaValidationError(schema_name, issues)


__all__ = ["SchemaValidationError", "load_schema", "collect_errors", "validate_payload"]
