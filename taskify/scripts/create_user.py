"""
Create an account from the shell, typically the first admin. The default
roles and permissions are seeded first when missing. From the project root:

  python -m taskify.scripts.create_user USERNAME EMAIL PASSWORD [--role admin]
"""
import argparse
import sys

from taskify.core.authorization import ADMIN_ROLE, USER_ROLE
from taskify.core.database import session_scope
from taskify.core.errors import AuthError
from taskify.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, USERNAME_MAX_LEN
from taskify.services.credentials import register_user
from taskify.services.policy import assign_role, seed_default_policy


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create a Taskify account.")
    parser.add_argument("username", help=f"1-{USERNAME_MAX_LEN} characters")
    parser.add_argument("email")
    parser.add_argument("password", help=f"{PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters")
    parser.add_argument(
        "--role",
        default=USER_ROLE,
        choices=[USER_ROLE, ADMIN_ROLE],
        help="Extra role on top of the default 'user' role",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _parser().parse_args(argv)
    username = args.username.strip()
    if not username or len(username) > USERNAME_MAX_LEN:
        print(f"Username must be 1-{USERNAME_MAX_LEN} characters.", file=sys.stderr)
        return 1
    if not PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN:
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    with session_scope() as db:
        seed_default_policy(db)
        try:
            user = register_user(db, username, args.email.strip().lower(), args.password)
            if args.role != USER_ROLE:
                assign_role(db, user, args.role)
        except AuthError as e:
            print(f"Could not create '{username}': {e.message}", file=sys.stderr)
            return 1
        print(f"Created '{username}' (id={user.id}) with roles {', '.join(user.role_names)}.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
