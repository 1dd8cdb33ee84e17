# domain/model/schema.py

"""Declarative field schemas and the sanitizer that applies them.

Every entity is described by an EntitySchema: a tuple of FieldSpec rules plus
entity-level settings (collection, search fields, unique fields, virtuals).
sanitize() turns a raw payload into a clean document or raises a single
ValidationError carrying every violated rule.

Modes:
    full    (create)  absent required -> error, absent optional -> default
    partial (update)  absent fields are omitted, nothing is defaulted
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from domain.model.errors import ValidationError


class FieldKind(str, Enum):
    """How a raw value is coerced before the rules run."""
    TEXT = 'text'
    BOOLEAN = 'boolean'
    OBJECT = 'object'
    TEXT_LIST = 'text_list'


TRUE_LITERALS = ('true', '1', 'yes')
FALSE_LITERALS = ('false', '0', 'no')


@dataclass(frozen=True)
class FieldSpec:
    """Validation and normalization rules for one field."""
    name: str
    kind: FieldKind = FieldKind.TEXT
    required: bool = False
    trim: bool = True
    lowercase: bool = False
    max_length: int | None = None
    pattern: re.Pattern | None = None
    pattern_message: str | None = None
    default: Any = None
    children: tuple[FieldSpec, ...] = ()
    max_items: int | None = None
    is_image: bool = False
    upload_field: str | None = None  # multipart field the image arrives in, if not name

    @property
    def form_field(self) -> str:
        return self.upload_field or self.name

    @property
    def max_uploads(self) -> int:
        return self.max_items if self.kind == FieldKind.TEXT_LIST and self.max_items else 1

    def default_value(self) -> Any:
        """Return the default, calling it when it is a factory."""
        if callable(self.default):
            return self.default()
        if isinstance(self.default, (list, dict)):
            return type(self.default)(self.default)
        return self.default


@dataclass(frozen=True)
class EntitySchema:
    """Everything the generic repository needs to know about one entity."""
    name: str
    label: str
    plural_label: str
    collection: str
    fields: tuple[FieldSpec, ...]
    search_fields: tuple[str, ...] = ()
    unique_fields: tuple[str, ...] = ()
    virtuals: dict[str, Callable[[dict], Any]] = field(default_factory=dict)

    def get_field(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(name)

    @property
    def image_fields(self) -> tuple[FieldSpec, ...]:
        return tuple(spec for spec in self.fields if spec.is_image)

    @property
    def invalid_id_message(self) -> str:
        return f"Invalid {self.name} id"

    @property
    def not_found_message(self) -> str:
        return f"{self.label} not found"


# ── value coercion ───────────────────────────────────────────


def clean_text(value: Any, trim: bool = True, lowercase: bool = False) -> str | None:
    """Coerce to text and normalize. Returns None for None, '' for blank."""
    if value is None:
        return None
    result = value if isinstance(value, str) else str(value)
    if trim:
        result = result.strip()
    if not result:
        return ''
    if lowercase:
        result = result.lower()
    return result


def _coerce_boolean(spec: FieldSpec, value: Any, errors: list[str]) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in TRUE_LITERALS:
            return True
        if normalized in FALSE_LITERALS:
            return False
    errors.append(f"{spec.name} must be a boolean value")
    return None


def _coerce_object(spec: FieldSpec, value: Any, errors: list[str]) -> dict | None:
    # Form submissions carry nested objects as JSON strings
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            value = None
        if not isinstance(value, dict):
            errors.append(f"{spec.name} must be a valid JSON object string")
            return None
    if not isinstance(value, dict):
        errors.append(f"{spec.name} must be a valid object")
        return None
    return value


def _check_text(spec: FieldSpec, value: str, errors: list[str], label: str | None = None) -> None:
    label = label or spec.name
    if spec.max_length is not None and len(value) > spec.max_length:
        errors.append(f"{label} must be at most {spec.max_length} characters")
    if spec.pattern is not None and not spec.pattern.search(value):
        errors.append(spec.pattern_message or f"{label} has an invalid format")


# ── per-kind sanitizers ──────────────────────────────────────


def _sanitize_text(spec: FieldSpec, raw: Any, partial: bool, doc: dict, errors: list[str]) -> None:
    value = clean_text(raw, trim=spec.trim, lowercase=spec.lowercase)
    if not value:
        if partial:
            return
        if spec.required:
            errors.append(f"{spec.name} is required")
        elif spec.default is not None:
            doc[spec.name] = spec.default_value()
        return
    _check_text(spec, value, errors)
    doc[spec.name] = value


def _sanitize_boolean(spec: FieldSpec, raw: Any, partial: bool, doc: dict, errors: list[str]) -> None:
    if raw is None:
        if not partial:
            doc[spec.name] = spec.default_value()
        return
    value = _coerce_boolean(spec, raw, errors)
    if value is not None:
        doc[spec.name] = value


def _sanitize_object(spec: FieldSpec, raw: Any, partial: bool, doc: dict, errors: list[str]) -> None:
    if raw is None or raw == '':
        if not partial:
            doc[spec.name] = {child.name: child.default_value() for child in spec.children}
        return
    source = _coerce_object(spec, raw, errors)
    if source is None:
        return

    result = {}
    for child in spec.children:
        if source.get(child.name) is None:
            if not partial:
                result[child.name] = child.default_value()
            continue
        # An explicitly supplied blank resets the key to its default
        value = clean_text(source[child.name], trim=child.trim, lowercase=child.lowercase)
        if not value:
            result[child.name] = child.default_value()
            continue
        _check_text(child, value, errors, label=f"{spec.name}.{child.name}")
        result[child.name] = value

    if result:
        doc[spec.name] = result


def _sanitize_text_list(spec: FieldSpec, raw: Any, partial: bool, doc: dict, errors: list[str]) -> None:
    items = raw if isinstance(raw, (list, tuple)) else ([] if raw is None else [raw])
    values = []
    for item in items:
        value = clean_text(item, trim=spec.trim, lowercase=spec.lowercase)
        if value:
            _check_text(spec, value, errors)
            values.append(value)

    if not values:
        if partial:
            return
        if spec.required:
            errors.append(f"{spec.name} is required")
        else:
            doc[spec.name] = spec.default_value() if spec.default is not None else []
        return
    if spec.max_items is not None and len(values) > spec.max_items:
        errors.append(f"You can upload up to {spec.max_items} images" if spec.is_image
                      else f"{spec.name} must have at most {spec.max_items} items")
    doc[spec.name] = values


_SANITIZERS = {
    FieldKind.TEXT: _sanitize_text,
    FieldKind.BOOLEAN: _sanitize_boolean,
    FieldKind.OBJECT: _sanitize_object,
    FieldKind.TEXT_LIST: _sanitize_text_list,
}


def sanitize(schema: EntitySchema, payload: dict, partial: bool = False) -> dict:
    """Validate and normalize payload against schema.

    Unknown keys are dropped. Raises ValidationError listing every
    violation once all fields have been checked.
    """
    errors: list[str] = []
    doc: dict = {}
    payload = payload or {}

    for spec in schema.fields:
        _SANITIZERS[spec.kind](spec, payload.get(spec.name), partial, doc, errors)

    if errors:
        raise ValidationError(errors)
    return doc
