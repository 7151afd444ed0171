"""
Compose one dashboard snapshot from the command line and print it as JSON.
Run it via `python -m grain_dashboard.analytics.run_dashboard --token <session token>`.
"""

from __future__ import annotations

import argparse
import asyncio
import datetime as dt
import os
import sys

from grain_dashboard.analytics.analytics_config import load_analytics_config
from grain_dashboard.analytics.composer import DashboardComposer
from grain_dashboard.analytics.models import DashboardSnapshot
from grain_dashboard.analytics.repository import EntryRepository
from grain_dashboard.auth.session_client import CallerIdentity, SupabaseAuthClient
from grain_dashboard.common.logging import configure_logging
from grain_dashboard.common.settings import get_settings
from grain_dashboard.store import build_record_store


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compose the grain price dashboard snapshot")
    parser.add_argument(
        "--token",
        default=os.getenv("DASHBOARD_ACCESS_TOKEN"),
        help="Session token of the caller (defaults to DASHBOARD_ACCESS_TOKEN)",
    )
    parser.add_argument(
        "--as-of",
        default=None,
        help="Timezone-aware ISO8601 evaluation time (defaults to now)",
    )
    parser.add_argument(
        "--service",
        action="store_true",
        help="Skip session lookup and run as the service account",
    )
    return parser.parse_args(argv)


def _parse_as_of(value: str | None) -> dt.datetime | None:
    if value is None:
        return None
    parsed = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        raise ValueError(f"--as-of must be timezone-aware ISO8601, got: {value!r}")
    return parsed


async def run(args: argparse.Namespace) -> DashboardSnapshot:
    settings = get_settings()
    config = load_analytics_config()
    composer = DashboardComposer(
        repository=EntryRepository(store=build_record_store(settings), config=config),
        config=config,
    )

    caller: CallerIdentity | None
    if args.service:
        caller = CallerIdentity(user_id="service")
    elif args.token:
        auth_client = SupabaseAuthClient(
            base_url=settings.SUPABASE_URL,
            api_key=settings.SUPABASE_ANON_KEY or settings.SUPABASE_SERVICE_ROLE_KEY,
            service_role_key=settings.SUPABASE_SERVICE_ROLE_KEY,
        )
        caller = await asyncio.to_thread(auth_client.get_user, args.token)
    else:
        caller = None

    return await composer.compose(caller, now=_parse_as_of(args.as_of))


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    args = parse_args(argv)
    snapshot = asyncio.run(run(args))
    print(snapshot.model_dump_json(indent=2, exclude_none=True))
    return 1 if snapshot.errors else 0


if __name__ == "__main__":
    sys.exit(main())
