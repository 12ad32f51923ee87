"""Exception types shared across the orw library."""


class CatalogFetchError(RuntimeError):
    """Upstream catalog could not be fetched or its payload was malformed."""


class SnapshotStoreError(RuntimeError):
    """The snapshot store failed to read or write."""
