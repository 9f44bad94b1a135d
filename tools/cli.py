#!/usr/bin/env python3
# =============================================================================
# CLI Tool for the Sheets & Slack handlers
# =============================================================================
# Developer tooling for local testing. Uses the same dispatch system as the
# Lambda handlers; secrets come from the environment (or .env) unless the
# JSON payload carries its own.
#
# Usage:
#   python tools/cli.py health
#   python tools/cli.py list_actions
#   python tools/cli.py write_to_sheet --sheet_id 1efj... --range Sheet1!A1 --summary "Hello"
#   python tools/cli.py summarize_chat --channel_id C0123 --user_id U0123 --text 20
#   python tools/cli.py --json '{"action": "write_to_sheet", "args": {...}, "secrets": {...}}'
# =============================================================================

import argparse
import json
import os
import sys

from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.runtime.deps import create_deps
from src.runtime.dispatch import dispatch
from src.runtime.envelope import Outcome
from src.runtime.errors import MalformedRequest
from src.runtime.parse_event import decode

ARG_FIELDS = ["sheet_id", "range", "summary", "title", "channel_id", "user_id", "text", "category"]


def build_event(args) -> dict:
    if args.file:
        with open(args.file, "r") as f:
            payload = json.load(f)
    elif args.json:
        payload = json.loads(args.json)
    else:
        payload = {"action": args.action}
        for name in ARG_FIELDS:
            value = getattr(args, name)
            if value is not None:
                payload[name] = value
    payload["_source"] = "cli"
    return payload


def main():
    parser = argparse.ArgumentParser(
        description="Sheets & Slack tool CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s health
  %(prog)s write_to_sheet --sheet_id 1efj3u3z --range Sheet1!A1 --summary "Test summary"
  %(prog)s summarize_chat --channel_id C0123 --user_id U0123 --text 20
  %(prog)s --file request.json
        """
    )

    parser.add_argument("action", nargs="?", help="Action to execute")
    parser.add_argument("--json", "-j", help="JSON payload (overrides action)")
    parser.add_argument("--file", "-f", help="JSON file to load payload from")
    parser.add_argument("--pretty", "-p", action="store_true", help="Pretty print output")
    parser.add_argument("--env-file", default=".env", help="dotenv file with secrets")
    for name in ARG_FIELDS:
        parser.add_argument(f"--{name}")

    args = parser.parse_args()
    if not (args.action or args.json or args.file):
        parser.print_help()
        sys.exit(1)

    load_dotenv(args.env_file, override=False)
    deps = create_deps()

    try:
        invocation = decode(
            build_event(args),
            default_action=deps.config["DEFAULT_ACTION"],
            secret_provider=deps.resolve_secrets,
        )
        outcome = dispatch(invocation, deps)
    except MalformedRequest as e:
        outcome = Outcome(status=e.status, body=e.to_body())

    if args.pretty:
        print(f"Status Code: {outcome.status}")
        print(json.dumps(dict(outcome.body), indent=2, ensure_ascii=False, default=str))
    else:
        print(json.dumps(outcome.to_response(), ensure_ascii=False))

    if outcome.status >= 400:
        sys.exit(1)


if __name__ == "__main__":
    main()
