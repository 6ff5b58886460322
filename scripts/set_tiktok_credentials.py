from __future__ import annotations

import argparse

from vidshare.core.errors import InvalidInputError
from vidshare.db.init_db import init_db
from vidshare.services.app_token_manager import AppTokenManager


def main() -> int:
    parser = argparse.ArgumentParser(description='Install the app-level TikTok credential used for guest access.')
    parser.add_argument('--access-token', required=True)
    parser.add_argument('--refresh-token', required=True)
    parser.add_argument('--open-id', required=True)
    parser.add_argument('--scope', default=None)
    parser.add_argument('--expires-in', type=int, default=None, help='Seconds, defaults to 7200')
    args = parser.parse_args()

    init_db()
    manager = AppTokenManager()
    try:
        token_id = manager.set_credentials(
            args.access_token,
            args.refresh_token,
            args.open_id,
            scope=args.scope,
            expires_in=args.expires_in,
        )
    except InvalidInputError as exc:
        print(f"error: {exc}")
        return 1
    status = manager.get_status()
    print(f"stored token {token_id}; expires in {status.minutes_until_expiry} minutes")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
