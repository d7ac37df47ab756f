"""Create an artist login, or reset its password, for local development."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from werkzeug.security import generate_password_hash

# Ensure the project root is on sys.path so ``stagepass`` can be imported when the script is executed directly.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from stagepass import create_app
from stagepass.extensions import db
from stagepass.models import ArtistAccount


def set_password(email: str, password: str, name: str) -> None:
    app = create_app()

    with app.app_context():
        email = email.strip().lower()
        account = ArtistAccount.query.filter_by(email=email).first()
        if account is None:
            account = ArtistAccount(name=name, email=email, password_hash="")
            db.session.add(account)

        account.password_hash = generate_password_hash(password)
        db.session.commit()

        print(f"Password for {email} has been set.")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Set an artist password for local testing.")
    parser.add_argument("email", help="Artist login email address")
    parser.add_argument("password", help="Plain-text password to hash and store")
    parser.add_argument("--name", default="Artist", help="Display name for a new account")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    set_password(args.email, args.password, args.name)


if __name__ == "__main__":
    main()
