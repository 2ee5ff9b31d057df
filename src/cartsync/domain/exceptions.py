"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class ContractViolationError(DomainException):
    """A caller passed input that breaks an operation's contract.

    Signals an upstream bug, never a runtime condition to recover from.
    """


class InvalidTransitionError(ValidationError):
    """A state machine was asked for a transition it does not allow."""


class AuthenticationRequiredError(DomainException):
    """The operation needs a signed-in user."""


class RemoteStoreError(DomainException):
    """A Remote Store or durable storage call failed (transient I/O)."""
