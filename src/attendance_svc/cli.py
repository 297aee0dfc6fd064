#!/usr/bin/env python3
"""
Reviewer CLI for the attendance approval service.

Usage:
    python -m attendance_svc.cli pending
    python -m attendance_svc.cli list --status approved
    python -m attendance_svc.cli show REQ-1a2b3c4d5e6f
    python -m attendance_svc.cli approve REQ-1a2b3c4d5e6f --actor hrmanager
    python -m attendance_svc.cli reject REQ-1a2b3c4d5e6f --actor hrmanager --reason duplicate
    python -m attendance_svc.cli stats
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

import httpx


def print_json(data: Any, indent: int = 2) -> None:
    """Print JSON."""
    output = json.dumps(data, indent=indent, default=str)
    print(output)


def format_request(req: dict[str, Any]) -> str:
    """One-line summary of a request."""
    payload = req.get("payload", {})
    if req.get("kind") == "work_mode_change":
        detail = f"{payload.get('current_mode')} -> {payload.get('requested_mode')}"
    else:
        detail = f"{payload.get('name', '')} <{payload.get('email', '')}>"
    return (
        f"{req['request_id']}  {req['status']:<8}  {req['kind']:<16}  "
        f"{req['subject']:<16}  {detail}  ({req.get('requested_at', '')})"
    )


def _client(args) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=args.base_url, timeout=args.timeout)


def _print_error(response: httpx.Response) -> int:
    try:
        detail = response.json().get("detail", response.text)
    except ValueError:
        detail = response.text
    print(f"Error: {response.status_code} {detail}", file=sys.stderr)
    return 1


async def cmd_list(args) -> int:
    """List requests."""
    params = {}
    if args.status:
        params["status"] = args.status
    if args.kind:
        params["kind"] = args.kind

    async with _client(args) as client:
        response = await client.get("/requests", params=params)

    if response.status_code != 200:
        return _print_error(response)

    data = response.json()
    for req in data.get("requests", []):
        print(format_request(req))
    print(f"\n{data.get('total', 0)} request(s)")
    return 0


async def cmd_pending(args) -> int:
    """List pending requests."""
    args.status = "pending"
    return await cmd_list(args)


async def cmd_show(args) -> int:
    """Show one request."""
    async with _client(args) as client:
        response = await client.get(f"/requests/{args.request_id}")

    if response.status_code != 200:
        return _print_error(response)

    print_json(response.json())
    return 0


async def cmd_resolve(args) -> int:
    """Approve or reject a request."""
    body = {"actor": args.actor, "reason": getattr(args, "reason", "") or ""}
    async with _client(args) as client:
        response = await client.post(f"/requests/{args.request_id}/{args.command}", json=body)

    if response.status_code != 200:
        return _print_error(response)

    data = response.json()
    print(f"{data['request_id']} -> {data['status']} by {data.get('resolved_by')}")
    return 0


async def cmd_stats(args) -> int:
    """Print reviewer dashboard counters."""
    async with _client(args) as client:
        response = await client.get("/requests/stats")

    if response.status_code != 200:
        return _print_error(response)

    print_json(response.json())
    return 0


COMMANDS = {
    "list": cmd_list,
    "pending": cmd_pending,
    "show": cmd_show,
    "approve": cmd_resolve,
    "reject": cmd_resolve,
    "stats": cmd_stats,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Reviewer CLI for the attendance approval service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--base-url",
        default="http://localhost:8060",
        help="Base URL of the approval service",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Request timeout in seconds",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    list_parser = subparsers.add_parser("list", help="List requests")
    list_parser.add_argument("--status", choices=["pending", "approved", "rejected"])
    list_parser.add_argument("--kind", choices=["account_signup", "work_mode_change"])

    pending_parser = subparsers.add_parser("pending", help="List pending requests")
    pending_parser.add_argument("--kind", choices=["account_signup", "work_mode_change"])

    show_parser = subparsers.add_parser("show", help="Show a request")
    show_parser.add_argument("request_id")

    approve_parser = subparsers.add_parser("approve", help="Approve a request")
    approve_parser.add_argument("request_id")
    approve_parser.add_argument("--actor", required=True, help="Reviewer username")

    reject_parser = subparsers.add_parser("reject", help="Reject a request")
    reject_parser.add_argument("request_id")
    reject_parser.add_argument("--actor", required=True, help="Reviewer username")
    reject_parser.add_argument("--reason", default="", help="Rejection reason")

    subparsers.add_parser("stats", help="Show request statistics")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 1

    return asyncio.run(command(args))


if __name__ == "__main__":
    sys.exit(main() or 0)
