"""Workflow error taxonomy.

Each error is a werkzeug ``HTTPException`` so the JSON error handler in
``app.py`` renders it with the request id; ``extra`` is merged into the
payload.
"""

from __future__ import annotations

from werkzeug.exceptions import HTTPException


class WorkflowError(HTTPException):
    code = 409
    retryable = False

    def __init__(self, description: str | None = None, **extra) -> None:
        super().__init__(description)
        self.extra = extra

    @property
    def name(self) -> str:  # type: ignore[override]
        return type(self).__name__


class UnknownStatus(WorkflowError):
    code = 422
    description = "Status is not declared in the visa type's status flow."


class InvalidTransition(WorkflowError):
    code = 409
    description = "Status transition is not allowed."


class DocumentsIncomplete(WorkflowError):
    code = 422
    description = "Required documents are missing."


class StaleWrite(WorkflowError):
    code = 409
    retryable = True
    description = "Application was modified concurrently; reload and retry."


class UploadFailure(WorkflowError):
    code = 502
    retryable = True
    description = "A document could not be stored; no documents were kept."


class DuplicateApplicationNumber(WorkflowError):
    code = 409
    retryable = True
    description = "Could not reserve a unique application number."


class InvalidStatusFlow(WorkflowError):
    code = 422
    description = "Visa type definition is invalid."


class PaymentAmountMismatch(WorkflowError):
    code = 422
    description = "Payment amount must equal the visa type base fee."


class PaymentAlreadyConfirmed(WorkflowError):
    code = 409
    description = "A payment has already been confirmed for this application."
