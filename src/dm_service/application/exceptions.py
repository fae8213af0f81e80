from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    pass


class ForbiddenError(AppError):
    pass


class ValidationError(AppError):
    pass


class ProcedureUnavailableError(AppError):
    """A stored procedure the procedure strategy relies on is not installed."""

    def __init__(self, procedure: str) -> None:
        self.procedure = procedure
        super().__init__(f"Stored procedure {procedure!r} is not available")
