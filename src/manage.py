"""Logistics management CLI.

Creates and drops the database schema for the logistics domain on whichever
provider domain.toml configures for the current PROTEAN_ENV, and runs the
HTTP server.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
    python src/manage.py serve      # Run the API with uvicorn
"""

import argparse
import sys


def _domain():
    from logistics.domain import logistics

    print("Initializing logistics domain...")
    logistics.init()
    return logistics


def setup_database():
    """Create the database schema for every registered aggregate and entity."""
    domain = _domain()
    print("Creating logistics database schema...")
    with domain.domain_context():
        domain.setup_database()
    print("Done.")


def drop_database():
    """Drop the database schema."""
    domain = _domain()
    print("Dropping logistics database schema...")
    with domain.domain_context():
        domain.drop_database()
    print("Done.")


def serve(host: str, port: int, reload: bool):
    import uvicorn

    uvicorn.run("app:app", host=host, port=port, reload=reload)


def main():
    parser = argparse.ArgumentParser(description="Logistics management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "serve":
        serve(args.host, args.port, args.reload)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
