"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    code = "domain_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(DomainException):
    """Referenced entity does not exist"""

    code = "not_found"


class InvalidStateError(DomainException):
    """State-machine precondition violated (e.g. confirming a non-pending request)"""

    code = "invalid_state"


class InsufficientFundsError(DomainException):
    """Debit would overdraw the balance"""

    code = "insufficient_funds"


class ValidationError(DomainException):
    """Malformed or out-of-range input"""

    code = "validation_error"


class AuthenticationError(DomainException):
    """Credentials did not match"""

    code = "authentication_failed"


class PersistenceError(DomainException):
    """Underlying store failed mid-operation; nothing was written"""

    code = "persistence_error"


class ExternalServiceError(DomainException):
    """Messaging channel is unreachable or refused the request"""

    code = "external_service_error"
