from decimal import Decimal


class PaymentsError(Exception):
    """Base class for errors raised by the payments engine."""


class NonActionableTransactionError(PaymentsError):
    """A dispute, resolve or chargeback was applied to something that is not a deposit or withdrawal."""

    def __init__(self, transaction):
        self.transaction = transaction
        super().__init__(f"Transaction cannot be referenced by a dispute: {transaction!r}")


class InsufficientFundsError(PaymentsError):
    def __init__(self, client_id: int, available: Decimal, requested: Decimal):
        self.client_id = client_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Client {client_id}: insufficient funds (available {available}, requested {requested})"
        )


class UnknownTransactionTypeError(PaymentsError):
    """Raised in strict mode when a record carries an unrecognized type."""

    def __init__(self, transaction):
        self.transaction = transaction
        super().__init__(
            f"Unknown transaction type for tx {transaction.transaction_id} (client {transaction.client_id})"
        )
