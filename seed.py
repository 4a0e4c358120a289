"""Seed the development database: python seed.py"""
import sys

from dotenv import load_dotenv
load_dotenv()

from edu_erp import create_app
from edu_erp.seed import run_seed


def main():
    app = create_app()
    with app.app_context():
        try:
            counts = run_seed()
        except Exception as exc:
            print(f"Seeding failed: {exc}")
            return 1

    for table, count in counts.items():
        print(f"{table}: {count}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
