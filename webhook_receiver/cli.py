"""CLI for the webhook receiver.

Usage:
    python -m webhook_receiver.cli serve
    python -m webhook_receiver.cli send consumption --url http://localhost:8080/webhook
    python -m webhook_receiver.cli send bills --trigger paid --secret my-secret
"""

from __future__ import annotations

import argparse
import json
import sys

import httpx

from webhook_receiver.client import (
    WebhookClient,
    sample_bills_payload,
    sample_consumption_payload,
)
from webhook_receiver.config import Settings


def cmd_serve(args: argparse.Namespace) -> None:
    """Run the receiver with uvicorn."""
    from webhook_receiver.serve import main

    main()


def cmd_send(args: argparse.Namespace) -> None:
    """Send a signed sample webhook and print the acknowledgment."""
    secret = args.secret or Settings().resolved_secret()
    if args.kind == "consumption":
        payload = sample_consumption_payload()
    else:
        payload = sample_bills_payload(trigger_type=args.trigger)

    client = WebhookClient(args.url, secret, timeout=args.timeout)
    try:
        delivery = client.send(payload)
    except httpx.HTTPError as e:
        print(f"ERROR: failed to send webhook: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Status Code: {delivery.status_code}")
    if delivery.ack is not None:
        print(json.dumps(delivery.ack.model_dump(mode="json"), indent=2))
    if not delivery.ok:
        sys.exit(1)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="webhook-receiver",
        description="Signed consumption/bills webhook receiver",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_serve = sub.add_parser("serve", help="Run the HTTP receiver")
    p_serve.set_defaults(func=cmd_serve)

    p_send = sub.add_parser("send", help="Send a signed sample webhook")
    p_send.add_argument("kind", choices=["consumption", "bills"])
    p_send.add_argument("--url", default="http://localhost:8080/webhook")
    p_send.add_argument("--secret", default="", help="Defaults to WEBHOOK_SECRET_KEY")
    p_send.add_argument("--trigger", choices=["available", "paid"], default="available")
    p_send.add_argument("--timeout", type=float, default=30.0)
    p_send.set_defaults(func=cmd_send)

    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
