"""Core application configuration and utilities."""

from concept_dictionary.core.audit import AuditAction, AuditEvent, log_audit, log_dictionary_change
from concept_dictionary.core.config import settings
from concept_dictionary.core.database import Base, get_session
from concept_dictionary.core.exceptions import (
    APIAuthenticationException,
    APIException,
    ConceptInUseException,
    ConceptsLockedException,
    ObjectNotFoundException,
)
from concept_dictionary.core.privileges import Privilege, UserContext, authorized
from concept_dictionary.core.security import RequireUser, get_user_context
from concept_dictionary.core.transaction import transactional

__all__ = [
    # Config
    "settings",
    # Database
    "Base",
    "get_session",
    "transactional",
    # Errors
    "APIAuthenticationException",
    "APIException",
    "ConceptInUseException",
    "ConceptsLockedException",
    "ObjectNotFoundException",
    # Authorization
    "Privilege",
    "RequireUser",
    "UserContext",
    "authorized",
    "get_user_context",
    # Audit
    "AuditAction",
    "AuditEvent",
    "log_audit",
    "log_dictionary_change",
]
