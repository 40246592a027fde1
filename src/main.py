import argparse
import logging
import sys
from decimal import Context, Decimal, ROUND_HALF_EVEN
from typing import Dict, List, Optional, TextIO

from config import EngineConfig
from errors import PaymentsError
from models import ClientAccount
from payments_engine import PaymentsEngine

logger = logging.getLogger(__name__)

FOUR_PLACES = Decimal("0.0001")


def format_decimal(value: Decimal) -> str:
    """Format decimal with exactly 4 decimal places."""
    # Enough precision for every integer digit plus the four fractional ones.
    context = Context(prec=max(28, value.adjusted() + 5), rounding=ROUND_HALF_EVEN)
    return f"{value.quantize(FOUR_PLACES, context=context):f}"


def write_accounts(accounts: Dict[int, ClientAccount], out: TextIO) -> None:
    print("client,available,held,total,locked", file=out)
    for client_id in sorted(accounts.keys()):
        account = accounts[client_id]
        print(
            f"{client_id},"
            f"{format_decimal(account.available)},"
            f"{format_decimal(account.held)},"
            f"{format_decimal(account.total)},"
            f"{str(account.locked).lower()}",
            file=out,
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payments-engine",
        description="Apply a CSV of transactions and print the resulting client accounts.",
    )
    parser.add_argument("input", help="CSV file with columns type, client, tx, amount")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="abort on transactions with an unknown type instead of skipping them",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log skipped transactions")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    engine = PaymentsEngine(EngineConfig(strict_unknown_types=args.strict))
    try:
        accounts = engine.process_file(args.input)
    except OSError as e:
        logger.error(f"Cannot read {args.input}: {e}")
        return 1
    except PaymentsError as e:
        logger.error(str(e))
        return 1

    write_accounts(accounts, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
