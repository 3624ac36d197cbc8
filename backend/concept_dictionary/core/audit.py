"""Audit logging for dictionary changes and authentication.

Every change to the dictionary (save, retire, purge, proposal mapping)
is written to the ``audit`` logger with the user who made it. This audit
log should be persisted to a secure, append-only store in production.
"""

import logging
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

# Separate audit logger for security-critical events
audit_logger = logging.getLogger("audit")


class AuditAction(str, Enum):
    """Types of auditable actions."""

    # Dictionary
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    RETIRE = "retire"
    DELETE = "delete"
    MAP = "map"
    REJECT = "reject"

    # Authentication
    AUTH_SUCCESS = "auth_success"
    AUTH_FAILURE = "auth_failure"


class AuditEvent(BaseModel):
    """Audit event record.

    Contains all relevant context for an auditable action.
    """

    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    action: AuditAction = Field(..., description="Type of action performed")
    resource_type: str = Field(..., description="Type of resource changed")
    resource_id: str | None = Field(None, description="ID of specific resource")
    user_id: str | None = Field(None, description="User who performed action")
    ip_address: str | None = Field(None, description="Client IP address")
    details: dict | None = Field(None, description="Additional context")
    success: bool = Field(True, description="Whether action succeeded")


def log_audit(
    action: AuditAction,
    resource_type: str,
    resource_id: str | int | None = None,
    user_id: str | None = None,
    ip_address: str | None = None,
    details: dict | None = None,
    success: bool = True,
) -> AuditEvent:
    """Log an audit event.

    Args:
        action: Type of action being audited
        resource_type: The type of resource being changed
        resource_id: Specific resource identifier
        user_id: User performing the action
        ip_address: Client IP address
        details: Additional context
        success: Whether the action succeeded

    Returns:
        The created AuditEvent
    """
    event = AuditEvent(
        action=action,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        user_id=user_id,
        ip_address=ip_address,
        details=details,
        success=success,
    )

    log_level = logging.INFO if success else logging.WARNING
    audit_logger.log(
        log_level,
        f"AUDIT: {action.value} {resource_type}"
        f"{f'/{event.resource_id}' if event.resource_id else ''}"
        f"{f' user={user_id}' if user_id else ''}"
        f" success={success}",
        extra={"audit_event": event.model_dump()},
    )

    return event


def log_dictionary_change(
    action: AuditAction,
    resource_type: str,
    resource_id: str | int | None,
    user_id: str | None,
    details: dict | None = None,
) -> AuditEvent:
    """Log a change to a dictionary object.

    Convenience wrapper used by the concept service.
    """
    return log_audit(
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        user_id=user_id,
        details=details,
    )


def log_auth_event(
    success: bool,
    user_id: str | None = None,
    ip_address: str | None = None,
    reason: str | None = None,
) -> AuditEvent:
    """Log an authentication event.

    Args:
        success: Whether authentication succeeded
        user_id: User attempting to authenticate
        ip_address: Client IP address
        reason: Reason for failure if applicable

    Returns:
        The created AuditEvent
    """
    action = AuditAction.AUTH_SUCCESS if success else AuditAction.AUTH_FAILURE
    details = {"reason": reason} if reason else None

    return log_audit(
        action=action,
        resource_type="auth",
        user_id=user_id,
        ip_address=ip_address,
        details=details,
        success=success,
    )
