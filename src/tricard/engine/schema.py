from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path

from jsonschema import Draft202012Validator

from tricard.paths import get_paths

from .errors import CorruptStateError

STATE_SCHEMA = "match_state.schema.json"


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise FileNotFoundError(f"Missing schema file: {path}") from e


@lru_cache(maxsize=None)
def load_schema(name: str = STATE_SCHEMA) -> dict[str, object]:
    schema = _load_json(get_paths().schema_dir / name)
    if not isinstance(schema, dict):
        raise ValueError(f"Schema {name} must be a JSON object")
    Draft202012Validator.check_schema(schema)
    return schema


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.path])
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise CorruptStateError("\n".join(lines))
