import argparse
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from salesmanager.database import Database, resolve_database_path


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a SalesManager merchant store")
    parser.add_argument("code", help="Unique store code used in URLs")
    parser.add_argument("name", help="Display name for the store")
    parser.add_argument("email", help="Store contact e-mail address")
    parser.add_argument("--country", default="CA", help="ISO country code")
    parser.add_argument("--currency", default="CAD", help="ISO currency code")
    parser.add_argument(
        "--languages",
        default="en",
        help="Comma separated language codes; the first one becomes the default",
    )
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Path to the SQLite database (defaults to SALESMANAGER_DB_PATH or data/salesmanager.sqlite3)",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    languages = [code.strip().lower() for code in args.languages.split(",") if code.strip()]
    if not languages:
        print("Error: at least one language is required", file=sys.stderr)
        return 1

    db_env = args.db_path or os.getenv("SALESMANAGER_DB_PATH")
    db_path = resolve_database_path(db_env)
    database = Database(db_path)
    database.initialize()
    database.ensure_languages(languages)

    try:
        store = database.create_store(
            args.code.strip(),
            name=args.name.strip(),
            email=args.email.strip(),
            country=args.country,
            currency=args.currency,
            default_language=languages[0],
            languages=languages[1:],
        )
    except ValueError as exc:  # duplicates, unknown parent, etc.
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Created store #{store.id}: {store.code} <{store.email}>")
    print("Configure SALESMANAGER_API_TOKENS to manage its catalog through the admin API.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
