"""Post one test donation to a running subscription service.

Useful for manual checks against Stripe test mode, e.g. with the
`pm_card_visa` or `pm_card_authenticationRequired` test payment methods.
"""

import argparse
import asyncio
import json
import time

import httpx


async def send(base_url: str, origin: str, payload: dict) -> tuple[int, dict, float]:
    """Send one preflight + POST pair and return (status_code, body, latency_ms)."""

    started = time.perf_counter()
    async with httpx.AsyncClient(timeout=30.0) as client:
        preflight = await client.options(f"{base_url}/create-subscription", headers={"Origin": origin})
        if preflight.status_code != 200:
            raise SystemExit(f"Preflight failed with status {preflight.status_code}")
        resp = await client.post(
            f"{base_url}/create-subscription",
            json=payload,
            headers={"Origin": origin},
        )
    latency = (time.perf_counter() - started) * 1000
    return resp.status_code, resp.json(), latency


def main() -> None:
    """Parse CLI args and send one donation."""

    parser = argparse.ArgumentParser(description="Create one monthly donation subscription.")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--origin", default="http://localhost:8888")
    parser.add_argument("--amount", type=int, default=1000, help="Amount in minor units")
    parser.add_argument("--currency", default="eur")
    parser.add_argument("--name", default="Test Donor")
    parser.add_argument("--email", default="donor@example.org")
    parser.add_argument("--payment-method", default="pm_card_visa")
    parser.add_argument("--donation-by", default=None)
    args = parser.parse_args()

    payload = {
        "amount": args.amount,
        "currency": args.currency,
        "name": args.name,
        "email": args.email,
        "paymentMethodId": args.payment_method,
    }
    if args.donation_by:
        payload["donation_by"] = args.donation_by

    status_code, body, latency = asyncio.run(send(args.base_url, args.origin, payload))
    print(f"status_code={status_code} latency_ms={latency:.1f}")
    print(json.dumps(body, indent=2))


if __name__ == "__main__":
    main()
