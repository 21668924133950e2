"""Command-line interface for the SalesManager storefront service."""

from __future__ import annotations
import argparse
import logging
import sys
from typing import Sequence

from salesmanager.config import Settings, load_settings
from salesmanager.database import Database

logger = logging.getLogger("salesmanager.main")

DEFAULT_LANGUAGES = ("en", "fr")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="SalesManager storefront utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    init_parser = subparsers.add_parser("init-db", help="Create the schema and seed languages")
    init_parser.add_argument(
        "--language",
        dest="languages",
        action="append",
        default=None,
        help="Language code to seed (repeatable, default: en and fr)",
    )

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP storefront service")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address for the API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="Port for the HTTP API (default: 8080)",
    )
    serve_parser.add_argument(
        "--ssl-certfile",
        default=None,
        help="Path to the TLS certificate chain in PEM format",
    )
    serve_parser.add_argument(
        "--ssl-keyfile",
        default=None,
        help="Path to the TLS private key in PEM format",
    )

    store_parser = subparsers.add_parser("create-store", help="Create a merchant store")
    store_parser.add_argument("code", help="Unique store code used in URLs")
    store_parser.add_argument("name", help="Display name of the store")
    store_parser.add_argument("email", help="Contact address used as the sender of store e-mails")
    store_parser.add_argument("--country", default="CA", help="ISO country code (default: CA)")
    store_parser.add_argument("--currency", default="CAD", help="ISO currency code (default: CAD)")
    store_parser.add_argument("--language", default=None, help="Default language (default: configured language)")
    store_parser.add_argument(
        "--supported-language",
        dest="supported_languages",
        action="append",
        default=[],
        help="Additional supported language (repeatable)",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db", "create-store"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _initialise_database(settings: Settings) -> Database:
    database = Database(settings.database_path)
    database.initialize()
    logger.info("Database initialised at %s", settings.database_path)
    return database


def _seed_languages(database: Database, codes: Sequence[str]) -> None:
    languages = database.ensure_languages(codes)
    logger.info("Languages available: %s", ", ".join(language.code for language in languages))


def _serve(
    *,
    settings: Settings,
    database: Database,
    host: str,
    port: int,
    ssl_certfile: str | None,
    ssl_keyfile: str | None,
) -> None:
    from salesmanager import create_app
    import uvicorn

    if bool(ssl_certfile) ^ bool(ssl_keyfile):
        raise SystemExit("Both --ssl-certfile and --ssl-keyfile must be provided together.")

    protocol = "https" if ssl_certfile and ssl_keyfile else "http"
    logger.info("Starting storefront API on %s://%s:%s", protocol, host, port)

    app = create_app(settings=settings, database=database, initialize_database=False)
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="info",
        ssl_certfile=ssl_certfile,
        ssl_keyfile=ssl_keyfile,
    )


def _create_store(database: Database, settings: Settings, args: argparse.Namespace) -> int:
    default_language = (args.language or settings.default_language).lower()
    _seed_languages(database, [default_language, *args.supported_languages])
    try:
        store = database.create_store(
            args.code,
            name=args.name,
            email=args.email,
            country=args.country,
            currency=args.currency,
            default_language=default_language,
            languages=args.supported_languages,
        )
    except ValueError as exc:
        print(f"Failed to create store: {exc}", file=sys.stderr)
        return 1

    languages = ", ".join(language.code for language in store.languages)
    print(f"Created store #{store.id}: {store.code} ({store.name}) languages: {languages}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    settings = load_settings()
    database = _initialise_database(settings)

    if args.command == "serve":
        _serve(
            settings=settings,
            database=database,
            host=args.host,
            port=args.port,
            ssl_certfile=args.ssl_certfile,
            ssl_keyfile=args.ssl_keyfile,
        )
    elif args.command == "init-db":
        _seed_languages(database, args.languages or DEFAULT_LANGUAGES)
        print("Database initialisation complete.")
    elif args.command == "create-store":
        return _create_store(database, settings, args)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
