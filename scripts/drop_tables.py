import argparse

from sqlalchemy import inspect

from gamemeta.db.base import Base
from gamemeta.db.session import engine

# Import models so SQLAlchemy metadata includes all mapped tables.
import gamemeta.db.models  # noqa: F401


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Drop the metadata sync tables (reports, aggregates, tags, blacklist, contributors, games)."
    )
    parser.add_argument(
        "--yes",
        action="store_true",
        help="Skip interactive confirmation prompt.",
    )
    parser.add_argument(
        "--recreate",
        action="store_true",
        help="Recreate empty tables after dropping them.",
    )
    parser.add_argument(
        "--reports-only",
        action="store_true",
        help="Only drop ttb reports, aggregates and library mirrors; keep contributors, games and tags.",
    )
    args = parser.parse_args()

    tables = Base.metadata.sorted_tables
    if args.reports_only:
        tables = [table for table in tables if table.name in {"ttb_reports", "game_ttb_stats", "library_entries"}]

    existing = set(inspect(engine).get_table_names())
    to_drop = [table for table in tables if table.name in existing]
    if not to_drop:
        print("No tables found.")
        return

    if not args.yes:
        print("Tables to drop: " + ", ".join(table.name for table in to_drop))
        confirm = input("Type 'drop' to continue: ").strip()
        if confirm.lower() != "drop":
            print("Aborted. No changes made.")
            return

    Base.metadata.drop_all(bind=engine, tables=to_drop)
    print(f"Dropped {len(to_drop)} table(s).")

    if args.recreate:
        Base.metadata.create_all(bind=engine, tables=to_drop)
        print("Recreated empty tables.")


if __name__ == "__main__":
    main()
