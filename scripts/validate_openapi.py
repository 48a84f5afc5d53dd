from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from trip_architect.app.main import app

REQUIRED_PATHS = [
    "/api/health",
    "/api/generate",
    "/api/v2/generate",
    "/api/v3/generate",
    "/api/plans",
    "/api/plans/{slug}",
    "/api/v2/plans",
    "/api/v2/plans/{slug}",
    "/api/v2/plans/{slug}/legacy",
    "/api/v3/plans",
    "/api/v3/plans/{slug}",
    "/api/sitemap.xml",
]


def main() -> int:
    schema = app.openapi()
    paths = schema.get("paths", {})

    missing = [path for path in REQUIRED_PATHS if path not in paths]
    if missing:
        for path in missing:
            print(f"[error] OpenAPI schema is missing {path}", file=sys.stderr)
        return 1

    print("OpenAPI required paths present")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
