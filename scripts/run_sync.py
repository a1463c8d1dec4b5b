#!/usr/bin/env python
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from sprint_pilot.application import build_sync_service
from sprint_pilot.config import load_settings
from sprint_pilot.core.errors import SprintPilotError
from sprint_pilot.core.schema import SyncRequest, SyncResult
from sprint_pilot.logging import configure_logging


def main() -> int:
    parser = argparse.ArgumentParser(description="Run one ClickUp sprint sync from the command line")
    parser.add_argument("--codebase-map", required=True, help="Codebase map JSON produced by the scanner")
    parser.add_argument("--webhook-url", required=True, help="Destination that receives the sprint document")
    parser.add_argument("--list-id", default=None, help="ClickUp list id (defaults to CLICKUP_LIST_ID)")
    parser.add_argument("--secret", default=None, help="Webhook secret for HMAC signing")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    settings = load_settings()
    configure_logging(verbose=args.verbose, level=None if args.verbose else settings.log_level)

    codebase_map = json.loads(Path(args.codebase_map).read_text(encoding="utf-8"))
    request = SyncRequest(
        list_id=args.list_id,
        codebase_map=codebase_map,
        webhook_url=args.webhook_url,
        webhook_secret=args.secret,
    )

    service = build_sync_service(settings)

    async def run() -> SyncResult:
        try:
            return await service.run_sync(request)
        finally:
            await service.aclose()

    try:
        result = asyncio.run(run())
    except SprintPilotError as exc:
        print(f"Sync failed ({exc.kind}): {exc}", file=sys.stderr)
        return 1

    print(json.dumps(result.model_dump(by_alias=True), indent=2))
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
