"""Storage exceptions."""


class StoreError(Exception):
    """The host row store or key-value store rejected a read or write."""
