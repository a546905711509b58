"""Errors raised by the approval workflow.

Each error carries a stable ``kind`` and the HTTP status the controllers
answer with. Server-side failures share the generic ``internal_error`` kind.
"""


class WorkflowError(Exception):
    kind = "workflow_error"
    status_code = 500
    public_message = None

    def __init__(self, message: str = None):
        super().__init__(message or self.public_message or self.kind)

    @property
    def client_message(self) -> str:
        # 5xx errors never leak internal detail to the caller
        if self.status_code >= 500:
            return "The request could not be completed. Please try again later."
        return str(self)


class ValidationError(WorkflowError):
    kind = "validation_error"
    status_code = 400


class InvalidSignatureFormat(ValidationError):
    kind = "invalid_signature_format"
    public_message = "Invalid signature image format"


class ApprovalNotFound(WorkflowError):
    kind = "approval_not_found"
    status_code = 404
    public_message = "Approval not found or unauthorized."


class AlreadyDecided(ApprovalNotFound):
    """The step exists and belongs to the actor but is no longer pending."""


class SignerNotFound(WorkflowError):
    kind = "internal_error"


class PersistenceFailure(WorkflowError):
    kind = "internal_error"


class NotificationDeliveryFailure(WorkflowError):
    """Raised by delivery channels; always caught by the notifier."""
    kind = "notification_delivery_failure"
