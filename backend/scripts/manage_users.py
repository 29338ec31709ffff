import argparse
import getpass
from pathlib import Path
from typing import Optional, Sequence

from backend.app.config import get_settings
from backend.app.models import Role
from backend.app.user_store import UserStore


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create users or change their role outside the admin panel")
    parser.add_argument("--db", type=Path, default=None, help="Database path (defaults to APP_DATABASE_PATH)")
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="Create a user")
    create.add_argument("username")
    create.add_argument("email")
    create.add_argument("--role", default=Role.MEMBER.value, help="admin or member")
    create.add_argument("--password", default=None, help="Prompted for when omitted")
    create.add_argument("--permission", action="append", default=[], help="Repeat for several permissions")

    set_role = sub.add_parser("set-role", help="Change the role of an existing user")
    set_role.add_argument("username")
    set_role.add_argument("role")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    store = UserStore(args.db or get_settings().database_path)
    if args.command == "create":
        role = Role.parse(args.role)
        password = args.password or getpass.getpass("Password: ")
        try:
            record = store.create_user(
                username=args.username,
                email=args.email,
                password=password,
                role=role,
                permissions=args.permission,
            )
        except ValueError as exc:
            raise SystemExit(f"Cannot create user: {exc}") from exc
        print(f"Created {record['username']} ({record['role'].value})")
    elif args.command == "set-role":
        try:
            record = store.update_role(args.username, Role.parse(args.role))
        except KeyError as exc:
            raise SystemExit(f"User not found: {args.username}") from exc
        print(f"{record['username']} is now {record['role'].value}")


if __name__ == "__main__":
    main()
