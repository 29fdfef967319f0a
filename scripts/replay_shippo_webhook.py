"""
Replay a Shippo webhook payload against a running server.

Usage:
    python scripts/replay_shippo_webhook.py scripts/sample_shippo_delivered.json
    python scripts/replay_shippo_webhook.py payload.json --secret $SHIPPO_WEBHOOK_SECRET

Without --secret the request is unsigned, which the server accepts only
when SHIPPO_WEBHOOK_SECRET is not configured.
"""

import argparse
import json
import os
import sys

import requests
from dotenv import load_dotenv

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from rental_backend.app.core.webhook_security import compute_shippo_signature

load_dotenv()

DEFAULT_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://127.0.0.1:8000")


def main():
    parser = argparse.ArgumentParser(description="Replay a Shippo track_updated webhook")
    parser.add_argument("payload_file")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL)
    parser.add_argument("--secret", default=None, help="Sign the body with this webhook secret")
    args = parser.parse_args()

    if not os.path.exists(args.payload_file):
        print(f"❌ File not found: {args.payload_file}")
        sys.exit(1)

    with open(args.payload_file, "rb") as f:
        body = f.read()

    payload = json.loads(body)
    data = payload.get("data") or {}
    print("📋 Payload summary:")
    print(f"  tracking_number: {data.get('tracking_number', 'MISSING')}")
    print(f"  carrier:         {data.get('carrier', 'MISSING')}")
    print(f"  status:          {(data.get('tracking_status') or {}).get('status', 'MISSING')}")

    headers = {"Content-Type": "application/json"}
    if args.secret:
        headers["X-Shippo-Signature"] = compute_shippo_signature(body, args.secret)

    url = f"{args.base_url}/v1/webhooks/shippo"
    print(f"\n📡 POST {url}")
    try:
        response = requests.post(url, data=body, headers=headers, timeout=15)
    except requests.RequestException as e:
        print(f"❌ Request failed: {e}")
        sys.exit(1)

    print(f"  Status: {response.status_code}")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)

    sys.exit(0 if response.ok else 1)


if __name__ == "__main__":
    main()
