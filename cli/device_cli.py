# cli/device_cli.py
# Command line client for a running activation server (check / set a device)
import argparse
import json
import os
import sys

import requests

DEFAULT_URL = "http://localhost:10000"


def check_device(base_url: str, device: str, timeout: float = 8) -> dict:
    r = requests.get(f"{base_url.rstrip('/')}/check", params={"device": device}, timeout=timeout)
    return r.json()


def set_device(base_url: str, admin_key: str, device: str, status: str, plan: str = "", expiry: str = "", notes: str = "", timeout: float = 8) -> dict:
    payload = {
        "device": device,
        "status": status,
        "plan": plan,
        "expiry": expiry,
        "notes": notes,
    }
    headers = {"Authorization": f"Bearer {admin_key}"}
    r = requests.post(f"{base_url.rstrip('/')}/update", json=payload, headers=headers, timeout=timeout)
    return r.json()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Query or update device activation records")
    parser.add_argument("--url", default=os.environ.get("SERVER_URL", DEFAULT_URL), help="Server base URL")
    parser.add_argument("--timeout", type=float, default=8, help="Request timeout in seconds")
    sub = parser.add_subparsers(dest="action", required=True)

    p_check = sub.add_parser("check", help="Show the status of a device")
    p_check.add_argument("device")

    p_set = sub.add_parser("set", help="Create or replace a device record")
    p_set.add_argument("device")
    p_set.add_argument("--status", default="active", help="active / inactive")
    p_set.add_argument("--plan", default="")
    p_set.add_argument("--expiry", default="", help="ISO-8601 timestamp, blank for never")
    p_set.add_argument("--notes", default="")
    p_set.add_argument("--key", default=os.environ.get("ADMIN_KEY"), help="Admin key (defaults to $ADMIN_KEY)")

    args = parser.parse_args(argv)

    try:
        if args.action == "check":
            result = check_device(args.url, args.device, timeout=args.timeout)
        else:
            if not args.key:
                print("admin key required for set (--key or ADMIN_KEY)", file=sys.stderr)
                return 1
            result = set_device(
                args.url,
                args.key,
                args.device,
                status=args.status,
                plan=args.plan,
                expiry=args.expiry,
                notes=args.notes,
                timeout=args.timeout,
            )
    except (requests.RequestException, ValueError) as e:
        print(f"request failed: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2))
    return 0 if result.get("ok") else 1


if __name__ == "__main__":
    sys.exit(main())
