"""Storefront database management CLI.

Creates and drops the RDBMS schema when the active configuration uses a
SQL provider (for example the ``production`` overlay). The default memory
provider needs no schema, so both commands are then a no-op.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def _domain():
    from storefront.domain import storefront

    print("Initializing storefront domain...")
    storefront.init()
    return storefront


def setup_databases():
    from storefront.utils.db import setup_db

    touched = setup_db(_domain())
    if touched:
        print(f"  Schema ready on: {', '.join(touched)}")
    else:
        print("  No SQL provider configured, nothing to create.")
    print("Done.")


def drop_databases():
    from storefront.utils.db import drop_db

    touched = drop_db(_domain())
    if touched:
        print(f"  Schema dropped on: {', '.join(touched)}")
    else:
        print("  No SQL provider configured, nothing to drop.")
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Storefront database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_databases()
    elif args.command == "drop-db":
        drop_databases()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
