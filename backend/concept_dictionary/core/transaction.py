"""Transaction boundaries for service operations.

``@transactional`` marks a service method as a unit of work. Only the
outermost call on a service instance ends the transaction: it commits
read-write work on success and rolls back whenever an exception escapes.
Calls made from inside another transactional method join the outer one.
"""

import logging
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from sqlalchemy.exc import IntegrityError

from concept_dictionary.core.exceptions import APIException

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def transactional(read_only: bool = False) -> Callable[[F], F]:
    """Run the decorated method inside the service session's transaction.

    The decorated method must belong to an object exposing ``session``
    (a SQLAlchemy Session) and an integer ``_tx_depth`` counter.

    Args:
        read_only: When True the operation never commits.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            session = self.session
            outermost = self._tx_depth == 0
            self._tx_depth += 1
            try:
                result = func(self, *args, **kwargs)
                if not read_only:
                    if outermost:
                        session.commit()
                    else:
                        session.flush()
                return result
            except IntegrityError as e:
                if outermost:
                    session.rollback()
                logger.warning(f"{func.__name__} violated a database constraint: {e.orig}")
                raise APIException(f"Database constraint violated in {func.__name__}") from e
            except Exception:
                if outermost:
                    session.rollback()
                raise
            finally:
                self._tx_depth -= 1

        wrapper.read_only = read_only  # type: ignore[attr-defined]
        return wrapper  # type: ignore[return-value]

    return decorator
