class BroadcastBotError(Exception):
    """
    Base exception for all plugin errors.

    Handlers catch this (and anything unexpected) at their boundary and
    turn it into a user-facing message.
    """
    pass

class TransportError(BroadcastBotError):
    """
    Raised when an outbound HTTP call fails (network error or non-2xx status).

    When raised from a paginated fetch, `partial_results` holds the nodes
    collected before the failing page. They are never part of the return value.
    """

    def __init__(self, message: str, partial_results: list | None = None):
        super().__init__(message)
        self.partial_results = partial_results or []

class MalformedResponseError(BroadcastBotError):
    """
    Raised when a response does not have the expected JSON shape.

    Examples: missing `data.feedV3.edges`, a GraphQL `errors` payload,
    or a non-JSON body.
    """
    pass

class NumericConversionError(BroadcastBotError):
    """
    Raised when a trade field used in arithmetic is not a number.
    """
    pass

class ConnectionSetupError(BroadcastBotError):
    """
    Raised when the memory store cannot register a user/room connection.
    """
    pass
