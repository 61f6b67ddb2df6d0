class StoreError(Exception):
    """Base class for anything the entity store refuses or fails to do."""


class ConstraintError(StoreError):
    """Record failed validation, a database constraint, or named an unknown table/column."""


class AccessDenied(StoreError):
    """The caller's identity or role does not permit the operation."""


class RowNotFound(StoreError):
    """An update matched no row visible to the caller."""


class MultipleRowsFound(StoreError):
    """A single-row lookup matched more than one row."""


HTTP_STATUS = {
    ConstraintError: (422, "Invalid record"),
    AccessDenied: (403, "Access denied"),
    RowNotFound: (404, "Not found"),
    MultipleRowsFound: (409, "Ambiguous lookup"),
}


def http_status(exc: StoreError):
    """(status_code, detail) for reporting a store error over HTTP."""
    return HTTP_STATUS.get(type(exc), (500, "Please try again later"))
