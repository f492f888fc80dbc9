#!/usr/bin/env python
"""Mint a bearer token for a user so the library API can be exercised locally."""
import argparse
import asyncio

from dotenv import load_dotenv

load_dotenv()

from wortschatz.db.connection import dispose_engine, get_async_session_context
from wortschatz.services.auth_service import SessionService
from wortschatz.settings import get_settings


async def issue_token(user_id: str, lifetime_hours: int) -> str:
    async with get_async_session_context() as session:
        token = await SessionService(session, lifetime_hours=lifetime_hours).issue_token(user_id)
        await session.commit()
    await dispose_engine()
    return token


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("user_id", help="Identifier of the user the token belongs to")
    parser.add_argument(
        "--hours",
        type=int,
        default=get_settings().session_lifetime_hours,
        help="Token lifetime in hours (default: SESSION_LIFETIME_HOURS)",
    )
    args = parser.parse_args()

    token = asyncio.run(issue_token(args.user_id, args.hours))
    print(f"Bearer token for {args.user_id} (valid {args.hours}h):")
    print(token)


if __name__ == "__main__":
    main()
