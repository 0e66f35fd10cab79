"""Storage exceptions."""


class StoreError(Exception):
    """Raised when a store query or write fails.

    Wraps the underlying sqlite3 error (available as ``__cause__``).
    A StoreError ends the search that triggered it; it is not retried.
    """

    pass
