from typing import Dict, Optional

from models import Transaction, ClientAccount


class LedgerStore:
    """
    Client accounts plus the deposits and withdrawals kept for dispute lookups.
    Single writer; no locking.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._transfers: Dict[int, Transaction] = {}

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create a zeroed, unlocked one."""
        account = self._accounts.get(client_id)
        if account is None:
            account = ClientAccount(client_id=client_id)
            self._accounts[client_id] = account
        return account

    def record_transfer(self, transaction: Transaction) -> None:
        """Store a deposit or withdrawal by transaction id, replacing any earlier entry."""
        self._transfers[transaction.transaction_id] = transaction

    def find_transfer(self, transaction_id: int) -> Optional[Transaction]:
        """Return the stored transfer itself, so dispute flag changes persist."""
        return self._transfers.get(transaction_id)

    def transfer_count(self) -> int:
        return len(self._transfers)

    def accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)
