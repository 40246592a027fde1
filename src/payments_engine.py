import csv
import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Iterator, Optional, TextIO

from config import EngineConfig
from ledger_store import LedgerStore
from models import (
    Transaction,
    TransactionType,
    ClientAccount,
    ProcessingStats,
    WithdrawalDisputePolicy,
    MAX_CLIENT_ID,
    MAX_TRANSACTION_ID,
    MAX_AMOUNT,
)
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)

UNSIGNED_INT_PATTERN = re.compile(r"[0-9]+")
AMOUNT_PATTERN = re.compile(r"-?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")


class PaymentsEngine:
    """
    Feeds transaction records through a single processor in input order.
    Successive batches (files, streams or plain iterables) accumulate into the same ledger.
    """

    def __init__(
        self,
        config: EngineConfig = EngineConfig(),
        withdrawal_dispute_policy: WithdrawalDisputePolicy = WithdrawalDisputePolicy.REVERSE_DEBIT,
    ):
        self._config = config
        self._state = LedgerStore()
        self._processor = TransactionProcessor(self._state, config, withdrawal_dispute_policy)
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def accounts(self) -> Dict[int, ClientAccount]:
        return self._state.accounts()

    def process(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        """Apply transactions in order and return the account states."""
        for transaction in transactions:
            result = self._processor.process_transaction(transaction)
            self._stats.record(result)

        logger.info(f"Batch complete. {self._stats.summary()}")
        return self._state.accounts()

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        with open(filepath, "r", newline="") as f:
            return self.process_stream(f)

    def process_stream(self, stream: TextIO) -> Dict[int, ClientAccount]:
        return self.process(read_transactions(stream))


def read_transactions(stream: TextIO) -> Iterator[Transaction]:
    """Yield transactions from CSV text with a `type, client, tx, amount` header, skipping bad rows."""
    reader = csv.DictReader(stream)
    for row in reader:
        transaction = parse_csv_row(row)
        if transaction is not None:
            yield transaction


def parse_csv_row(row: Dict[Optional[str], object]) -> Optional[Transaction]:
    """Parse CSV row into Transaction. Returns None (and logs) if the row is malformed."""
    try:
        # DictReader puts surplus cells under a None key and fills short rows with None.
        normalized = {
            k.strip(): v.strip()
            for k, v in row.items()
            if k is not None and isinstance(v, str)
        }

        transaction_type = TransactionType.parse(normalized["type"])
        client_id = _parse_bounded_int(normalized["client"], MAX_CLIENT_ID)
        transaction_id = _parse_bounded_int(normalized["tx"], MAX_TRANSACTION_ID)

        amount = None
        amount_str = normalized.get("amount", "")
        if amount_str:
            amount = _parse_amount(amount_str)

        if transaction_type == TransactionType.UNKNOWN:
            logger.debug(f"Row {row}: unrecognized type {normalized['type']!r}")

        return Transaction(
            transaction_type=transaction_type,
            client_id=client_id,
            transaction_id=transaction_id,
            amount=amount,
        )
    except (KeyError, ValueError, InvalidOperation) as e:
        logger.warning(f"Failed to parse row {row}: {e}")
        return None


def _parse_bounded_int(text: str, upper: int) -> int:
    if not UNSIGNED_INT_PATTERN.fullmatch(text):
        raise ValueError(f"not an unsigned integer: {text!r}")
    value = int(text)
    if not 0 <= value <= upper:
        raise ValueError(f"{value} outside 0..{upper}")
    return value


def _parse_amount(text: str) -> Decimal:
    # Plain decimal notation only: no exponents, underscores, plus signs or NaN/Infinity.
    if not AMOUNT_PATTERN.fullmatch(text):
        raise ValueError(f"not a decimal amount: {text!r}")
    amount = Decimal(text)
    if amount.copy_abs() >= MAX_AMOUNT:
        raise ValueError(f"amount {text} exceeds {MAX_AMOUNT:f}")
    return amount
