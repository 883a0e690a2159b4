"""Errors raised while turning CSV field definitions into org metadata."""


class FieldCreationError(Exception):
    """Base class for every user-facing failure of a field creation run."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInvocationError(FieldCreationError):
    pass


class MalformedInputError(FieldCreationError):
    def __init__(self, message: str, source: str = None):
        super().__init__(message)
        self.source = source


class NoFieldDefinitionsError(FieldCreationError):
    def __init__(self, message: str = "No field definitions found in the CSV file"):
        super().__init__(message)


class InvalidFieldDefinitionError(FieldCreationError):
    def __init__(self, message: str, row: int = None):
        super().__init__(message)
        self.row = row


class InvalidFieldNameError(FieldCreationError):
    def __init__(self, field_name: str):
        super().__init__(
            f"Invalid field name: {field_name}. Custom field names must end with __c"
        )
        self.field_name = field_name


class NoMetadataGeneratedError(FieldCreationError):
    def __init__(self, message: str = "No field metadata was generated"):
        super().__init__(message)


class RemoteDeploymentError(FieldCreationError):
    """One or more fields were rejected by the org and were not skippable."""

    def __init__(self, failures: dict):
        self.failures = dict(failures)
        self.count = len(self.failures)
        super().__init__(f"Failed to create {self.count} fields. See log for details.")


class TransportError(FieldCreationError):
    """The metadata call itself did not complete; the cause is chained."""
