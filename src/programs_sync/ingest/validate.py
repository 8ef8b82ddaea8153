import json, jsonschema
from functools import lru_cache
from pathlib import Path

from ..config import SCHEMA_PATH

@lru_cache(maxsize=4)
def _load_schema(schema_path: str) -> dict:
    return json.loads(Path(schema_path).read_text(encoding="utf-8"))

def validate_program(obj: dict, schema_path: str = SCHEMA_PATH):
    jsonschema.validate(instance=obj, schema=_load_schema(schema_path))
