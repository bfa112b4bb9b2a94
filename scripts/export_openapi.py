from __future__ import annotations

import argparse
import json
from pathlib import Path


def _write_json(path: Path, data: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    # ASCII-only output keeps snapshot diffs readable.
    payload = json.dumps(data, ensure_ascii=True, indent=2, sort_keys=True)
    path.write_text(payload + "\n", encoding="utf-8")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Export the notes API OpenAPI schema as a JSON snapshot."
    )
    parser.add_argument(
        "--out",
        default="apidocs/openapi.json",
        help="Output file (default: apidocs/openapi.json)",
    )
    args = parser.parse_args()

    # Import lazily so argparse --help stays fast.
    from notes_backend.main import app

    _write_json(Path(args.out), app.openapi())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
