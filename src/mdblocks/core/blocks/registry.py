"""Block schema registry: recognized block types and payload validation"""

import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field


SCHEMA_FILE = Path(__file__).with_name("schemas.yaml")

FORMATS: dict[str, re.Pattern] = {
    "uri": re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:[^\s]*$"),
}


class FieldRule(BaseModel):
    """A JSON-schema-shaped rule for one value of a block payload."""
    model_config = ConfigDict(frozen=True)

    type: Optional[str] = None
    properties: dict[str, "FieldRule"] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)
    additional_properties: bool = True
    items: Optional["FieldRule"] = None
    min_length: Optional[int] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    min_items: Optional[int] = None
    enum: Optional[list[Any]] = None
    format: Optional[str] = None
    pattern: Optional[str] = None
    default: Any = None


FieldRule.model_rebuild()

# A schema entry is the root rule of a payload
SchemaEntry = FieldRule


class ValidationResult(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)


def _type_ok(expected: str, value: Any) -> bool:
    """Check a JSON value against a JSON-schema primitive type name."""
    if expected == "object":
        return isinstance(value, dict)
    if expected == "array":
        return isinstance(value, list)
    if expected == "string":
        return isinstance(value, str)
    if expected == "boolean":
        return isinstance(value, bool)
    if expected == "integer":
        return isinstance(value, int) and not isinstance(value, bool)
    if expected == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected == "null":
        return value is None
    return True


def _fmt_num(n: float) -> str:
    return str(int(n)) if float(n).is_integer() else str(n)


def _check(rule: FieldRule, value: Any, path: str, errors: list[str]) -> None:
    """Append errors for value at path, following the fixed keyword precedence."""
    where = path or "root"

    if rule.type and not _type_ok(rule.type, value):
        errors.append(f"{where}: must be {rule.type}")
        return

    if isinstance(value, dict):
        for name in rule.required:
            if name not in value:
                errors.append(f"{where}: must have required property '{name}'")
        if not rule.additional_properties and any(k not in rule.properties for k in value):
            errors.append(f"{where}: must NOT have additional properties")

    if isinstance(value, str) and rule.min_length is not None and len(value) < rule.min_length:
        errors.append(f"{where}: must NOT have fewer than {rule.min_length} characters")

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if rule.maximum is not None and value > rule.maximum:
            errors.append(f"{where}: must be <= {_fmt_num(rule.maximum)}")
        if rule.minimum is not None and value < rule.minimum:
            errors.append(f"{where}: must be >= {_fmt_num(rule.minimum)}")

    if isinstance(value, list) and rule.min_items is not None and len(value) < rule.min_items:
        errors.append(f"{where}: must NOT have fewer than {rule.min_items} items")

    if rule.enum is not None and value not in rule.enum:
        errors.append(f"{where}: must be equal to one of the allowed values")

    if isinstance(value, str):
        if rule.format and rule.format in FORMATS and not FORMATS[rule.format].match(value):
            errors.append(f'{where}: must match format "{rule.format}"')
        if rule.pattern and not re.search(rule.pattern, value):
            errors.append(f'{where}: must match pattern "{rule.pattern}"')

    if isinstance(value, dict):
        for name, sub in rule.properties.items():
            if name in value:
                _check(sub, value[name], f"{path}/{name}" if path else name, errors)

    if isinstance(value, list) and rule.items is not None:
        for i, item in enumerate(value):
            _check(rule.items, item, f"{path}/{i}" if path else str(i), errors)


class BlockRegistry:
    """Immutable table of recognized block types and their payload schemas."""

    def __init__(self, block_types: list[str], schemas: dict[str, SchemaEntry]):
        self._types = frozenset(block_types) | frozenset(schemas)
        self._schemas = dict(schemas)

    @classmethod
    def from_yaml(cls, path: Path = SCHEMA_FILE) -> "BlockRegistry":
        """Load the registry from a YAML file with block_types and schemas keys."""
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid block schema file {path}: {e}") from e
        schemas = {
            name: FieldRule.model_validate(entry)
            for name, entry in (data.get("schemas") or {}).items()
        }
        return cls(data.get("block_types") or [], schemas)

    def list_types(self) -> frozenset[str]:
        """All block type names recognized in fenced code."""
        return self._types

    def schema_types(self) -> frozenset[str]:
        return frozenset(self._schemas)

    def is_block_type(self, name: str) -> bool:
        return name in self._types

    def get_schema(self, block_type: str) -> Optional[SchemaEntry]:
        return self._schemas.get(block_type)

    def validate(self, block_type: str, payload: Any) -> ValidationResult:
        """Validate a payload; errors are ordered 'path: message' strings."""
        schema = self._schemas.get(block_type)
        if schema is None:
            return ValidationResult(valid=False, errors=[f"Unknown block type: {block_type}"])
        if not isinstance(payload, dict):
            return ValidationResult(valid=False, errors=["root: must be object"])
        errors: list[str] = []
        _check(schema, payload, "", errors)
        return ValidationResult(valid=not errors, errors=errors)


@lru_cache(maxsize=1)
def default_registry() -> BlockRegistry:
    """Process-wide registry loaded once from the packaged schemas.yaml."""
    return BlockRegistry.from_yaml()
