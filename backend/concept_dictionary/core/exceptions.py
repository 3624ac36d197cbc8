"""Exceptions raised by the concept dictionary service."""


class APIException(Exception):
    """Any failure of a dictionary operation."""

    def __init__(self, message: str = "Concept dictionary operation failed") -> None:
        super().__init__(message)
        self.message = message


class APIAuthenticationException(APIException):
    """The caller does not hold a privilege required by the operation."""

    def __init__(self, message: str, privileges: list[str] | None = None) -> None:
        super().__init__(message)
        self.privileges = privileges or []


class ConceptsLockedException(APIException):
    """The dictionary is locked against concept changes."""

    def __init__(self, message: str = "Concepts are locked. Unlock the dictionary to make changes") -> None:
        super().__init__(message)


class ObjectNotFoundException(APIException):
    """A referenced dictionary object does not exist."""

    def __init__(self, object_type: str, object_id: int | str) -> None:
        super().__init__(f"{object_type} {object_id} not found")
        self.object_type = object_type
        self.object_id = object_id


class ConceptInUseException(APIException):
    """A purge was refused because other records still reference the object."""
