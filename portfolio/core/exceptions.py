"""
Portfolio-wide exception hierarchy.

Services and gateways raise these; blueprints never build error responses
for them by hand. A single set of handlers (``portfolio.utils.errors``)
maps each type to an HTTP status and the standard error envelope.

Usage:
    from portfolio.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Service", resource_id=42)
    raise ValidationError("service is required", details={"service": "required"})
"""


class NotFoundError(Exception):
    """Raised when a record does not exist (update/delete of an unknown id).

    Maps to HTTP 404. Non-fatal: the caller surfaces the message and carries on.

    Args:
        resource: Human-readable entity name (e.g. "Service", "Board").
        resource_id: The id that was looked up.
        detail: Optional message returned by the remote collaborator.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None, detail: str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        self.detail = detail
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input is missing or out of range.

    Blocks the specific submit action; nothing is partially submitted.
    Maps to HTTP 422.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown. Keys are field names.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation collides with existing state. Maps to HTTP 409.

    Args:
        resource: Entity name.
        field: The field that collides.
        value: The conflicting value.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        msg = f"{resource} with {field}={value!r} already exists"
        super().__init__(msg)


class UnsavedChangesError(Exception):
    """Raised when an action would silently drop pending edits.

    The caller must repeat the action with ``confirm=True``. Maps to HTTP 409.

    Args:
        pending: Number of records with unsaved edits.
        action: What the caller tried to do ("change_filters", "discard").
    """

    def __init__(self, pending: int, action: str) -> None:
        self.pending = pending
        self.action = action
        super().__init__(
            f"{pending} unsaved change(s) would be discarded by {action}; repeat with confirm=true"
        )


class SavingInProgressError(Exception):
    """Raised when edits or view changes are attempted while a save is running. HTTP 409."""

    def __init__(self) -> None:
        super().__init__("A save is in progress; try again when it finishes")


class PermissionDeniedError(Exception):
    """Raised when a read-only user attempts a mutation. Maps to HTTP 403."""

    def __init__(self, action: str = "modify data") -> None:
        self.action = action
        super().__init__(f"Read-only users cannot {action}")


class ConfigurationError(Exception):
    """Raised when a collaborator endpoint is not configured.

    Fatal for that feature only: the action is disabled and the message is
    shown persistently. Maps to HTTP 503.

    Args:
        setting: The config key that is missing (e.g. "WEBHOOK_URL").
    """

    def __init__(self, setting: str, message: str | None = None) -> None:
        self.setting = setting
        super().__init__(message or f"{setting} is not configured")


class GatewayError(Exception):
    """Raised on network/transport failure talking to a remote collaborator.

    Transient and user-retryable. Maps to HTTP 502.

    Args:
        message: Human-readable explanation.
        status_code: HTTP status from the remote side, None for network errors.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class RemoteError(Exception):
    """Raised when the remote API answers ``success: false``.

    Carries the collaborator's own error string (e.g. "E-mail já cadastrado").
    Maps to HTTP 400.
    """

    def __init__(self, action: str, message: str) -> None:
        self.action = action
        super().__init__(message)
