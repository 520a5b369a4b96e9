"""proof360-qa: housekeeping commands for the test suite.

Usage:
    proof360-qa verify-env [--strict]
    proof360-qa reset-session [admin|normal]
    proof360-qa cleanup-artifacts
    proof360-qa publish trex-private
    proof360-qa latest-dispatch --company "Automation company" --since now-24h
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from loguru import logger

from proof360.artifacts import ArtifactsCleanup
from proof360.config import REQUIRED_ENV_KEYS, USER_TYPES, Settings, load_settings
from proof360.errors import ConfigurationError, PublishError
from proof360.events import AlertKind, EventPublisher
from proof360.search import DispatchQuery, ElasticsearchClient
from proof360.sessions import SessionManager


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def cmd_verify_env(args, settings: Settings) -> int:
    missing = set(settings.missing(REQUIRED_ENV_KEYS))
    for key in REQUIRED_ENV_KEYS:
        print(f"{key}: {'MISSING' if key in missing else 'set'}")
    if missing:
        print(f"{len(missing)} required setting(s) missing")
        return 1 if args.strict else 0
    print("All required settings present")
    return 0


def cmd_reset_session(args, settings: Settings) -> int:
    user_types = [args.user_type] if args.user_type else USER_TYPES
    for user_type in user_types:
        SessionManager.from_settings(user_type, settings).clear_session()
    return 0


def cmd_cleanup_artifacts(args, settings: Settings) -> int:
    cleanup = ArtifactsCleanup(settings.artifacts_root)
    cleanup.display_summary()
    cleanup.cleanup()
    return 0


def cmd_publish(args, settings: Settings) -> int:
    publisher = EventPublisher(settings)
    try:
        result = publisher.publish(args.kind)
    except PublishError as e:
        print(f"Publish failed: {e}")
        return 1
    finally:
        publisher.close()
    if result.skipped:
        print(f"{args.kind}: skipped (endpoint not configured)")
        return 0
    print(f"{args.kind}: status {result.status} event {result.event_id}")
    return 0 if result.ok else 1


def cmd_latest_dispatch(args, settings: Settings) -> int:
    try:
        client = ElasticsearchClient.from_settings(settings)
    except ConfigurationError as e:
        print(f"Elasticsearch not configured: {e}")
        return 2
    query = DispatchQuery(company=args.company, site=args.site or None, time_range=args.since)
    with client:
        dispatch_id = client.latest_dispatch_id(query)
    if dispatch_id is None:
        print("No dispatch found")
        return 1
    print(dispatch_id)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="proof360-qa", description="Proof360 test suite utilities")
    parser.add_argument("--env-file", help="dotenv file to load (default: $ENV_FILE or .env)")
    parser.add_argument("--log-level", default="INFO", help="loguru level for stderr output")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("verify-env", help="Report which required settings are present")
    p.add_argument("--strict", action="store_true", help="Exit 1 when anything is missing")
    p.set_defaults(func=cmd_verify_env)

    p = sub.add_parser("reset-session", help="Delete persisted login sessions")
    p.add_argument("user_type", nargs="?", choices=USER_TYPES, help="Only this user type")
    p.set_defaults(func=cmd_reset_session)

    p = sub.add_parser("cleanup-artifacts", help="Empty test-failures/ and test-results/")
    p.set_defaults(func=cmd_cleanup_artifacts)

    p = sub.add_parser("publish", help="Publish one synthetic alert to Event Grid")
    p.add_argument("kind", choices=[k.value for k in AlertKind])
    p.set_defaults(func=cmd_publish)

    p = sub.add_parser("latest-dispatch", help="Print the newest dispatch id from Elasticsearch")
    p.add_argument("--company", default="Automation company")
    p.add_argument("--site", default="")
    p.add_argument("--since", default="now-24h", help="Elasticsearch date math, e.g. now-2h")
    p.set_defaults(func=cmd_latest_dispatch)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    settings = load_settings(args.env_file)
    return args.func(args, settings)


if __name__ == "__main__":
    sys.exit(main())
