class RecmapError(Exception):
    """Base exception for recmap errors."""


class ConfigurationError(RecmapError):
    """Mapping or call misconfiguration (unregistered type, bad key, bad destination)."""


class NoRowsError(RecmapError):
    """A Get or SelectOne query returned no rows."""


class OptimisticLockError(RecmapError):
    """
    An UPDATE or DELETE on a versioned table affected zero rows.

    ``rows_affected`` is the batch-level result of the failed call and is
    always -1: counts from records processed earlier in the same call are
    discarded.
    """

    rows_affected = -1
