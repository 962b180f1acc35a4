"""
Domain errors raised by marketplace services.

Each error carries the HTTP status the API layer answers with; the message is
user-facing.
"""


class MarketplaceError(Exception):
    """Base exception for marketplace operations."""
    status_code = 400


class NotFoundError(MarketplaceError):
    """Referenced record does not exist."""
    status_code = 404


class InvalidStateError(MarketplaceError):
    """Record exists but its lifecycle state does not allow the operation."""
    status_code = 400


class InvalidInputError(MarketplaceError):
    """Request data failed a business rule."""
    status_code = 400


class ForbiddenError(MarketplaceError):
    """Acting user may not perform the operation."""
    status_code = 403


class ConflictError(MarketplaceError):
    """Operation would duplicate an existing record."""
    status_code = 409
