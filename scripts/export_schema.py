import json

from payrates.config import get_settings
from payrates.extract.schema import export_json_schema

out = get_settings().schema_file
if out is None:
    raise ValueError("No schema file specified (set PAYRATES_SCHEMA_FILE)")
out.parent.mkdir(parents=True, exist_ok=True)
out.write_text(json.dumps(export_json_schema(), indent=2) + "\n", encoding="utf-8")
print(f"Wrote dataset schema to {out}")
