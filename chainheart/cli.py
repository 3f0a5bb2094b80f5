"""CLI module for the ChainHeart ledger with db/stats/export subcommands."""

import argparse
import os
import sys
from typing import List, Optional

from chainheart.config import Config
from chainheart.db.healthcheck import check_tables_exist, create_schema
from chainheart.db.session import init_db
from chainheart.log import get_logger, setup_logging
from chainheart.services.aggregation import AggregationEngine
from chainheart.services.certificate import CertificateRenderer
from chainheart.services.ledger_store import LedgerStore

logger = get_logger(__name__)


def show_stats(engine: AggregationEngine) -> None:
    """Print platform statistics.

    Args:
        engine: Aggregation engine to read from
    """
    stats = engine.platform_statistics()

    print("Platform Statistics:")
    print("-" * 50)
    print(f"  Donations:        {stats.total_donations}")
    print(f"  Total donated:    {stats.total_donations_eth} ETH")
    print(f"  Unique donors:    {stats.total_donors}")
    print(f"  Average donation: {stats.average_donation} ETH")
    print(f"  Campaigns:        {stats.total_campaigns}")
    print(f"  Charities:        {stats.total_charities}")
    print(f"  Platform fees:    {stats.platform_fees} ETH")


def show_leaderboard(engine: AggregationEngine, limit: int) -> None:
    """Print the donor leaderboard.

    Args:
        engine: Aggregation engine to read from
        limit: Number of donors to show
    """
    standings = engine.donor_leaderboard(limit)
    if not standings:
        print("No donors yet")
        return

    print(f"Top {len(standings)} donors:")
    print("-" * 50)
    for standing in standings:
        print(
            f"  {standing.rank:>3}. {standing.donor_address}  "
            f"{standing.total_amount} ETH ({standing.donation_count} donations)"
        )


def export_history(engine: AggregationEngine, donor: str, output: Optional[str]) -> None:
    """Write a donor's CSV history to a file or stdout.

    Args:
        engine: Aggregation engine to read from
        donor: Donor wallet address
        output: Destination path; stdout when None
    """
    content = engine.export_donation_history(donor)
    if output is None:
        sys.stdout.write(content)
        return

    with open(output, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    print(f"Exported donation history for {donor} to {output}")


def write_certificate(engine: AggregationEngine, tx_hash: str, output: str) -> None:
    """Render a donation certificate to a PDF file.

    Args:
        engine: Aggregation engine with a renderer
        tx_hash: Donation transaction hash
        output: Destination path
    """
    pdf = engine.render_certificate(tx_hash)
    with open(output, "wb") as f:
        f.write(pdf)
    print(f"Wrote certificate for {tx_hash} to {output} ({len(pdf)} bytes)")


def serve(addr: str) -> None:
    """Run the HTTP API on Django's development server.

    Args:
        addr: HOST:PORT to bind
    """
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "chainheart.api.settings")

    import django
    from django.core.management import call_command

    django.setup()
    call_command("runserver", addr, use_reloader=False)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        description="ChainHeart donation ledger and charity lifecycle engine",
        prog="chainheart",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Database commands
    db_parser = subparsers.add_parser("db", help="Database commands")
    db_subparsers = db_parser.add_subparsers(dest="subcommand", help="Database subcommands")
    db_subparsers.add_parser("init", help="Create missing tables")
    db_subparsers.add_parser("check", help="Verify all tables exist")

    # Reporting commands
    subparsers.add_parser("stats", help="Show platform statistics")

    leaderboard_parser = subparsers.add_parser("leaderboard", help="Show the donor leaderboard")
    leaderboard_parser.add_argument("--limit", "-n", type=int, default=10, help="Number of donors to show")

    export_parser = subparsers.add_parser("export", help="Export a donor's donation history as CSV")
    export_parser.add_argument("--donor", "-d", type=str, required=True, help="Donor wallet address")
    export_parser.add_argument("--output", "-o", type=str, help="Output file (default: stdout)")

    certificate_parser = subparsers.add_parser("certificate", help="Render a donation certificate PDF")
    certificate_parser.add_argument("--tx-hash", type=str, required=True, help="Donation transaction hash")
    certificate_parser.add_argument("--output", "-o", type=str, required=True, help="Output PDF file")

    # HTTP API
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API (development server)")
    serve_parser.add_argument("--addr", type=str, default="127.0.0.1:8000", help="HOST:PORT to bind")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Load config
    try:
        config = Config.from_env()
        config.validate()
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    # Setup logging
    setup_logging(config)

    try:
        init_db(config)
        engine = AggregationEngine(
            store=LedgerStore(),
            renderer=CertificateRenderer(brand_name=config.brand_name, explorer_tx_url=config.explorer_tx_url),
        )

        if args.command == "db":
            if not args.subcommand:
                print("Usage: chainheart db {init|check}")
                sys.exit(1)

            if args.subcommand == "init":
                create_schema()
                print("Database schema ready")
            elif args.subcommand == "check":
                check_tables_exist()
                print("All required tables exist")

        elif args.command == "stats":
            show_stats(engine)
        elif args.command == "leaderboard":
            show_leaderboard(engine, args.limit)
        elif args.command == "export":
            export_history(engine, args.donor, args.output)
        elif args.command == "certificate":
            write_certificate(engine, args.tx_hash, args.output)
        elif args.command == "serve":
            serve(args.addr)
        else:
            parser.print_help()
            sys.exit(1)

    except KeyboardInterrupt:
        print("\nInterrupted")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
