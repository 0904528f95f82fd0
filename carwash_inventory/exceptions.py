"""Errors raised by the ledger and workflow services.

Each carries the HTTP status the API layer answers with; the handlers in
``main`` render them as ``{"status": "error", "message": ...}``.
"""


class LedgerError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    status_code = 400


class EmptyItems(ValidationError):
    pass


class InvalidAction(ValidationError):
    pass


class NotFound(LedgerError):
    status_code = 404


class InvalidState(LedgerError):
    status_code = 400


class InsufficientStock(LedgerError):
    status_code = 400


class PermissionDenied(LedgerError):
    status_code = 403


class StoreUnavailable(LedgerError):
    status_code = 500
