"""Print a bearer token for local development and manual API calls."""
from __future__ import annotations

import argparse

from app.services.auth import CallerIdentity, create_access_token


def main(*, subject: str, email: str, name: str, groups: list[str]) -> None:
    identity = CallerIdentity(subject=subject, email=email, name=name, username=subject, groups=tuple(groups))
    token, expires_at = create_access_token(identity)
    print(token)
    print(f"expires at {expires_at.isoformat()}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("subject", help="user id placed in the token")
    parser.add_argument("--email", default="")
    parser.add_argument("--name", default="")
    parser.add_argument("--group", dest="groups", action="append", default=[], help="repeat for several groups")
    args = parser.parse_args()
    main(subject=args.subject, email=args.email, name=args.name, groups=args.groups)
