"""CLI entry point for rent ledger maintenance.

Usage:
    pgmanager-billing init-db
    pgmanager-billing generate --owner-id 1
    pgmanager-billing sweep [--owner-id 1]

Exit Codes:
    0 - Success
    1 - Failure: error encountered (details in the log)

Logging:
    INFO level logs to both stdout and the configured log file
"""

import argparse
import logging
import sys
from typing import Sequence

from pgmanager.services.config import load_config
from pgmanager.services.logging import setup_server_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pgmanager-billing", description="Rent ledger maintenance")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create database tables")

    generate = subparsers.add_parser("generate", help="Generate missing monthly payments")
    generate.add_argument("--owner-id", type=int, required=True, help="Owner whose active tenants are billed")

    sweep = subparsers.add_parser("sweep", help="Mark past-due pending payments overdue")
    sweep.add_argument("--owner-id", type=int, default=None, help="Restrict to one owner")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the billing CLI.

    Returns:
        Exit code: 0 for success, 1 for failure
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_config()
        setup_server_logging(config.log_file, config.log_level)

        from pgmanager.services import init_db, new_session
        from pgmanager.services.payment_service import PaymentService

        if args.command == "init-db":
            init_db()
            logger.info("Database tables created")
            return 0

        db = new_session()
        try:
            service = PaymentService(db, due_day=config.rent_due_day)
            if args.command == "generate":
                results = service.generate_for_owner(args.owner_id)
                for result in results:
                    logger.info(
                        "tenant=%d name=%s created=%d error=%s",
                        result.tenant_id,
                        result.tenant_name,
                        result.records_created,
                        result.error or "-",
                    )
                return 0 if all(r.ok for r in results) else 1

            count = service.sweep_overdue(owner_id=args.owner_id)
            logger.info("Sweep complete: %d payments marked overdue", count)
            return 0
        finally:
            db.close()

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 1
    except Exception as e:
        logger.error(f"Billing command failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
