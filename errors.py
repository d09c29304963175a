"""Service-level exceptions, mapped to HTTP responses in main.py."""


class LoanBotError(Exception):
    """Base class for errors raised by the marketplace services."""


class InvalidRequestError(LoanBotError):
    """Missing or malformed input; nothing was mutated."""


class InvalidIdError(InvalidRequestError):
    """An identifier that cannot be converted to a store id."""


class NotFoundError(LoanBotError):
    """A referenced session or record does not exist."""


class InvalidCredentialsError(LoanBotError):
    """Unknown lender, wrong password, or a bad/expired token."""
