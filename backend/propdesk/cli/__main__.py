# backend/propdesk/cli/__main__.py
from __future__ import annotations

import argparse
import json

from ..logging_config import configure_logging
from .seed_demo import seed_demo


def main() -> None:
    p = argparse.ArgumentParser(prog="python -m propdesk.cli", description="Seed a demo portfolio.")
    p.add_argument("--org-name", default="Demo Property Group")
    p.add_argument("--create-schema", action="store_true", help="create tables directly instead of via alembic")
    p.add_argument("--no-tokens", action="store_true", help="omit bearer tokens from the output")
    args = p.parse_args()

    configure_logging()
    out = seed_demo(org_name=args.org_name, create_schema=args.create_schema)
    payload = {
        "ok": True,
        "org_id": out.org_id,
        "entity_id": out.entity_id,
        "property_id": out.property_id,
        "space_ids": out.space_ids,
    }
    if not args.no_tokens:
        payload["tokens"] = out.tokens
    print(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main()
