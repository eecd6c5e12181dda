#!/usr/bin/env python3
"""Issue an access token signed with SECRET_KEY, for local development.

Usage:
    python scripts/issue_token.py <subject> [--minutes N]
"""

import argparse
from datetime import timedelta

from netpool.core.security import create_access_token


def main() -> None:
    """Print a bearer token for the given subject."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("subject", help="Token subject (e.g., user id)")
    parser.add_argument(
        "--minutes", type=int, default=None, help="Lifetime in minutes"
    )
    args = parser.parse_args()

    expires = timedelta(minutes=args.minutes) if args.minutes else None
    print(create_access_token(args.subject, expires_delta=expires))


if __name__ == "__main__":
    main()
