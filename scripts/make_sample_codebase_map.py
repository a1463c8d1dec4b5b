#!/usr/bin/env python
from __future__ import annotations

import argparse
import json
from datetime import datetime, timezone
from pathlib import Path


ROUTES = [
    {"path": "/", "files": ["app/page.tsx", "app/layout.tsx"]},
    {"path": "/login", "files": ["app/(auth)/login/page.tsx"]},
    {"path": "/profile", "files": ["app/profile/page.tsx", "app/profile/loading.tsx"]},
    {"path": "/settings", "files": ["app/settings/page.tsx", "app/settings/error.tsx"]},
]

COMPONENTS = [
    "components/ui/button.tsx",
    "components/ui/input.tsx",
    "components/auth/login-form.tsx",
    "components/profile/avatar.tsx",
    "components/profile/profile-card.tsx",
]

ACTIONS = [
    "app/(auth)/login/actions.ts",
    "app/profile/actions.ts",
]


def main() -> None:
    parser = argparse.ArgumentParser(description="Write a sample codebase map JSON for sync runs")
    parser.add_argument("--output", required=True, help="Output file path (.json)")
    args = parser.parse_args()

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)

    codebase_map = {
        "routes": ROUTES,
        "components": COMPONENTS,
        "actions": ACTIONS,
        "scannedAt": datetime.now(timezone.utc).isoformat(),
    }
    output.write_text(json.dumps(codebase_map, indent=2), encoding="utf-8")

    print(f"Sample codebase map written to: {output}")


if __name__ == "__main__":
    main()
