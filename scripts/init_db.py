#!/usr/bin/env python3
"""Create (or with --reset, recreate) the StagePass tables."""
import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from stagepass import create_app
from stagepass.extensions import db


def init_database(reset: bool = False):
    app = create_app()
    with app.app_context():
        if reset:
            db.drop_all()
            print("Dropped existing tables")
        db.create_all()
        tables = ", ".join(sorted(db.metadata.tables))
        print(f"Tables ready: {tables}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Initialize the StagePass database")
    parser.add_argument("--reset", action="store_true", help="drop all tables before creating them")
    args = parser.parse_args()
    init_database(reset=args.reset)
