"""Domain error types shared by the ledger, the API and the client."""


class BankError(Exception):
    """Base class for all Tardis Bank errors."""


class RecordMissingError(BankError):
    """A lookup that must succeed found nothing.

    Raised by existence-guaranteed lookups (for example a login fetched by
    the id carried in a valid token). It signals internal inconsistency and
    is surfaced as a server fault, never as a client 404.
    """


class ValidationError(BankError, ValueError):
    """Invalid input or a violated business rule."""


class TransactionOrderError(ValidationError):
    """Transaction dated before the latest transaction on the account."""


class InsufficientFundsError(ValidationError):
    """Debit would overdraw an account while overdrafts are disabled."""


class ConflictError(BankError):
    """Uniqueness violation, such as an already registered email."""


class AuthenticationError(BankError):
    """Credentials rejected. The message never says which part was wrong."""

    def __init__(self, message: str = "Unknown Email or Password."):
        super().__init__(message)


class InvalidTokenError(BankError):
    """Bearer or verification token is malformed, expired or misused."""


class HypermediaError(BankError):
    """The link navigation contract was violated."""


class LinkNotFoundError(HypermediaError):
    """Resource offers no link with the requested relation."""


class AmbiguousLinkError(HypermediaError):
    """Resource offers more than one link with the requested relation."""
