"""
Generate a dashboard access token for local development.

Signs an HS256 JWT with the same secret the API verifies against. The
subject must have a row in shop_users for the API to resolve a shop.

Usage:
    python3 scripts/generate_dev_token.py --sub <user-uuid>
    python3 scripts/generate_dev_token.py --sub <user-uuid> --hours 24 --secret dev-secret

Output:
    Bearer token (paste into the dashboard / curl): eyJ...
"""

import argparse
import os
import time

import jwt


def generate_dev_token(sub: str, secret: str, hours: int = 8) -> str:
    """Sign a short-lived HS256 token for `sub`."""
    now = int(time.time())
    payload = {"sub": sub, "iat": now, "exp": now + hours * 3600}
    return jwt.encode(payload, secret, algorithm="HS256")


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a dashboard dev token")
    parser.add_argument("--sub", required=True, help="User id (JWT subject)")
    parser.add_argument(
        "--secret",
        default=os.environ.get("JWT_SECRET"),
        help="Signing secret (default: $JWT_SECRET)",
    )
    parser.add_argument(
        "--hours",
        type=int,
        default=8,
        help="Token lifetime in hours (default: 8)",
    )
    args = parser.parse_args()

    if not args.secret:
        parser.error("no secret: pass --secret or set JWT_SECRET")

    token = generate_dev_token(args.sub, args.secret, hours=args.hours)
    print(f"\nBearer token (paste into the dashboard / curl):\n  {token}\n")


if __name__ == "__main__":
    main()
