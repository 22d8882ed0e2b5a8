import argparse
import getpass

from medpos.core.constants import ROLE_ADMIN, USER_ROLES
from medpos.core.exceptions import PosError
from medpos.core.logging import setup_logging
from medpos.database import Base, engine, session_scope
from medpos.models import import_all_models
from medpos.services.user_service import create_user


def parse_args():
    parser = argparse.ArgumentParser(description="Create a staff user.")
    parser.add_argument("--username", required=True)
    parser.add_argument("--full-name", default="")
    parser.add_argument("--email", default=None)
    parser.add_argument("--role", choices=USER_ROLES, default=ROLE_ADMIN)
    parser.add_argument(
        "--password",
        default=None,
        help="Password. Prompted for when omitted.",
    )
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()
    password = args.password or getpass.getpass("Password: ")

    import_all_models()
    Base.metadata.create_all(bind=engine)

    try:
        with session_scope() as db:
            user = create_user(
                db,
                username=args.username,
                password=password,
                role=args.role,
                full_name=args.full_name,
                email=args.email,
            )
    except PosError as exc:
        raise SystemExit(f"Could not create user: {exc.message}") from exc
    print(f"User {user.username} created with role {user.role}.")


if __name__ == "__main__":
    main()
