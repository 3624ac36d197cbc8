"""Dictionary privileges and per-call authorization checks.

Service methods declare the privileges they need with ``@authorized``.
The caller must hold at least one of them; the check runs before the
method body (and before any transaction is opened).
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from functools import wraps
from typing import Any, TypeVar

from concept_dictionary.core.exceptions import APIAuthenticationException

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class Privilege(str, Enum):
    """Privileges guarding the concept dictionary."""

    VIEW_CONCEPTS = "View Concepts"
    MANAGE_CONCEPTS = "Manage Concepts"
    PURGE_CONCEPTS = "Purge Concepts"

    VIEW_CONCEPT_CLASSES = "View Concept Classes"
    MANAGE_CONCEPT_CLASSES = "Manage Concept Classes"
    PURGE_CONCEPT_CLASSES = "Purge Concept Classes"

    VIEW_CONCEPT_DATATYPES = "View Concept Datatypes"
    MANAGE_CONCEPT_DATATYPES = "Manage Concept Datatypes"
    PURGE_CONCEPT_DATATYPES = "Purge Concept Datatypes"

    VIEW_CONCEPT_PROPOSALS = "View Concept Proposals"
    ADD_CONCEPT_PROPOSALS = "Add Concept Proposals"
    EDIT_CONCEPT_PROPOSALS = "Edit Concept Proposals"
    PURGE_CONCEPT_PROPOSALS = "Purge Concept Proposals"


SYSTEM_USERNAME = "system"


@dataclass(frozen=True)
class UserContext:
    """The authenticated caller of a service operation."""

    username: str
    privileges: frozenset[Privilege] = field(default_factory=frozenset)

    @classmethod
    def system(cls) -> "UserContext":
        """Context holding every privilege (dev mode, jobs, scripts)."""
        return cls(username=SYSTEM_USERNAME, privileges=frozenset(Privilege))

    @classmethod
    def with_privileges(cls, username: str, privileges: Iterable[Privilege | str]) -> "UserContext":
        return cls(username=username, privileges=frozenset(Privilege(p) for p in privileges))

    def has_privilege(self, privilege: Privilege) -> bool:
        return privilege in self.privileges

    def has_any(self, privileges: Iterable[Privilege]) -> bool:
        return any(p in self.privileges for p in privileges)


def authorized(*privileges: Privilege) -> Callable[[F], F]:
    """Require the service's user to hold one of ``privileges``.

    The decorated method must belong to an object exposing a ``user``
    attribute holding a UserContext.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            user: UserContext = self.user
            if privileges and not user.has_any(privileges):
                names = ", ".join(p.value for p in privileges)
                logger.warning(f"User '{user.username}' denied {func.__name__}: requires one of [{names}]")
                raise APIAuthenticationException(
                    f"Privilege required: {names}",
                    privileges=[p.value for p in privileges],
                )
            return func(self, *args, **kwargs)

        wrapper.required_privileges = privileges  # type: ignore[attr-defined]
        return wrapper  # type: ignore[return-value]

    return decorator
