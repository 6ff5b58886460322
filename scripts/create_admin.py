from __future__ import annotations

import argparse
import getpass

from sqlmodel import Session

from vidshare.db.init_db import init_db
from vidshare.db.session import engine
from vidshare.models.enums import UserRole
from vidshare.services.auth_service import create_user, find_user


def promote_or_create(session: Session, email: str, password: str, username: str | None) -> tuple[str, bool]:
    user = find_user(session, email=email)
    if user:
        user.role = UserRole.ADMIN
        session.add(user)
        session.commit()
        return user.id, False
    user = create_user(session, email, password, username=username, role=UserRole.ADMIN)
    return user.id, True


def main() -> None:
    parser = argparse.ArgumentParser(description='Create an admin user, or promote an existing one.')
    parser.add_argument('email')
    parser.add_argument('--username', default=None)
    parser.add_argument('--password', default=None, help='Prompted for when omitted')
    args = parser.parse_args()

    init_db()
    password = args.password or getpass.getpass('Password: ')
    with Session(engine) as session:
        user_id, created = promote_or_create(session, args.email, password, args.username)
    print(f"{'created' if created else 'promoted'} admin {args.email} ({user_id})")


if __name__ == '__main__':
    main()
