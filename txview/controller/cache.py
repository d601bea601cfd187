from txview.models.transaction import TransactionRecord


class TransactionCache:
    """Session-scoped signature -> record map. Unbounded, no expiry.

    The first record stored for a signature wins; records are immutable so
    a later put for the same signature is ignored.
    """

    def __init__(self) -> None:
        self._records: dict[str, TransactionRecord] = {}

    def get(self, signature: str) -> TransactionRecord | None:
        return self._records.get(signature)

    def put(self, signature: str, record: TransactionRecord) -> None:
        self._records.setdefault(signature, record)

    def clear(self) -> None:
        self._records.clear()

    def __contains__(self, signature: object) -> bool:
        return signature in self._records

    def __len__(self) -> int:
        return len(self._records)
