import logging
from decimal import Decimal
from typing import Optional

from config import EngineConfig
from errors import InsufficientFundsError, NonActionableTransactionError, UnknownTransactionTypeError
from ledger_store import LedgerStore
from models import (
    Transaction,
    TransactionType,
    ClientAccount,
    ProcessingResult,
    WithdrawalDisputePolicy,
)

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions to the ledger, one at a time, in arrival order.
    Returns ProcessingResult to say whether the record changed anything and, if not, why.
    A skipped record never leaves a partial change behind.
    """

    def __init__(
        self,
        state: LedgerStore,
        config: EngineConfig = EngineConfig(),
        withdrawal_dispute_policy: WithdrawalDisputePolicy = WithdrawalDisputePolicy.REVERSE_DEBIT,
    ):
        self._state = state
        self._config = config
        self._withdrawal_dispute_policy = withdrawal_dispute_policy

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Deposits and withdrawals are refused on a locked account. Disputes, resolves and
        chargebacks are evaluated regardless of the lock.

        Raises:
            UnknownTransactionTypeError: unrecognized type while strict_unknown_types is set
        """
        if transaction.transaction_type == TransactionType.UNKNOWN:
            return self._handle_unknown(transaction)

        account = self._state.get_or_create_account(transaction.client_id)

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(account, transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(account, transaction)
            case TransactionType.DISPUTE:
                return self._handle_dispute(account, transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(account, transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(account, transaction)

    def _handle_unknown(self, transaction: Transaction) -> ProcessingResult:
        if self._config.strict_unknown_types:
            logger.error(f"Tx {transaction.transaction_id}: unknown transaction type, aborting (strict mode)")
            raise UnknownTransactionTypeError(transaction)
        logger.info(f"Tx {transaction.transaction_id}: unknown transaction type, skipping")
        return ProcessingResult.UNKNOWN_TYPE

    def _check_transfer(self, account: ClientAccount, transaction: Transaction) -> Optional[ProcessingResult]:
        label = transaction.transaction_type.value.capitalize()

        if not transaction.is_valid_transfer():
            logger.warning(f"{label} tx {transaction.transaction_id}: invalid amount {transaction.amount}")
            return ProcessingResult.INVALID_AMOUNT

        if account.locked:
            logger.info(f"{label} tx {transaction.transaction_id}: client {account.client_id} is locked")
            return ProcessingResult.ACCOUNT_LOCKED

        return None

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        rejection = self._check_transfer(account, transaction)
        if rejection is not None:
            return rejection

        account.credit(transaction.amount)
        self._state.record_transfer(transaction)
        return ProcessingResult.APPLIED

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        rejection = self._check_transfer(account, transaction)
        if rejection is not None:
            return rejection

        try:
            account.debit(transaction.amount)
        except InsufficientFundsError as e:
            logger.warning(f"Withdrawal tx {transaction.transaction_id}: {e}")
            return ProcessingResult.INSUFFICIENT_FUNDS

        self._state.record_transfer(transaction)
        return ProcessingResult.APPLIED

    def _find_referenced(self, transaction: Transaction) -> Optional[Transaction]:
        """Look up the transfer a dispute-family record points at, scoped to the record's client."""
        original = self._state.find_transfer(transaction.transaction_id)
        if original is None or original.client_id != transaction.client_id:
            return None
        return original

    def _referenced_result(self, transaction: Transaction) -> ProcessingResult:
        if self._state.find_transfer(transaction.transaction_id) is None:
            return ProcessingResult.TRANSACTION_NOT_FOUND
        return ProcessingResult.CLIENT_MISMATCH

    def _disputed_amount(self, transfer: Transaction) -> Optional[Decimal]:
        """
        Amount moved into held funds while the transfer is disputed.

        Deposits hold their amount. Withdrawals follow the withdrawal dispute policy:
        REVERSE_DEBIT holds the negated amount, REJECT returns None.
        """
        match transfer.transaction_type:
            case TransactionType.DEPOSIT:
                return transfer.amount
            case TransactionType.WITHDRAWAL:
                if self._withdrawal_dispute_policy == WithdrawalDisputePolicy.REVERSE_DEBIT:
                    return -transfer.amount
                return None
        logger.error(f"Tx {transfer.transaction_id}: {transfer.transaction_type.value} cannot be disputed")
        raise NonActionableTransactionError(transfer)

    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original = self._find_referenced(transaction)

        if original is None:
            logger.info(f"Dispute for tx {transaction.transaction_id}: no matching transfer for client {transaction.client_id}")
            return self._referenced_result(transaction)

        if original.disputed:
            logger.info(f"Dispute for tx {transaction.transaction_id}: transaction already disputed")
            return ProcessingResult.ALREADY_DISPUTED

        amount = self._disputed_amount(original)
        if amount is None:
            logger.info(f"Dispute for tx {transaction.transaction_id}: {original.transaction_type.value} not disputable")
            return ProcessingResult.NOT_DISPUTABLE

        account.hold(amount)
        original.disputed = True
        return ProcessingResult.APPLIED

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original = self._find_referenced(transaction)

        if original is None:
            logger.info(f"Resolve for tx {transaction.transaction_id}: no matching transfer for client {transaction.client_id}")
            return self._referenced_result(transaction)

        if not original.disputed:
            logger.info(f"Resolve for tx {transaction.transaction_id}: transaction not disputed")
            return ProcessingResult.NOT_DISPUTED

        account.release_hold(self._disputed_amount(original))
        original.disputed = False
        return ProcessingResult.APPLIED

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original = self._find_referenced(transaction)

        if original is None:
            logger.info(f"Chargeback for tx {transaction.transaction_id}: no matching transfer for client {transaction.client_id}")
            return self._referenced_result(transaction)

        if not original.disputed:
            logger.info(f"Chargeback for tx {transaction.transaction_id}: transaction not disputed")
            return ProcessingResult.NOT_DISPUTED

        account.remove_held(self._disputed_amount(original))
        account.locked = True
        original.disputed = False
        logger.info(f"Chargeback for tx {transaction.transaction_id}: client {account.client_id} locked")
        return ProcessingResult.APPLIED
