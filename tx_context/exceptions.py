class TxContextException(Exception):
    """Base exception for all tx_context errors."""

    pass


class ContextError(TxContextException):
    """Base exception for errors raised while attaching or resolving a transaction context.

    Attributes:
        transaction_id (Optional[str]): The transaction id being processed when the
            error occurred, if known.
        status_code (Optional[int]): An HTTP status code associated with this error.
        detail (Optional[str]): A detailed error message. If not provided directly
            but other arguments are, the first positional argument is used.
    """

    default_status_code: int = 500

    def __init__(
        self,
        *args,
        transaction_id: str | None = None,
        status_code: int | None = None,
        detail: str | None = None,
    ):
        super().__init__(*args)
        self.transaction_id = transaction_id
        self.status_code = status_code or self.default_status_code
        # Use the first arg as detail if detail kwarg is not provided and args exist
        self.detail = detail or (args[0] if args else None)


class ContextSerializationError(ValueError, ContextError):
    """Raised when a context value cannot be serialized into a transaction id."""

    def __init__(self, *args, transaction_id: str | None = None, detail: str | None = None):
        ContextError.__init__(self, *args, transaction_id=transaction_id, detail=detail)


class ContextDecodeError(ValueError, ContextError):
    """Raised when a transaction id carries a context suffix that cannot be decoded."""

    default_status_code = 400

    def __init__(self, *args, transaction_id: str | None = None, detail: str | None = None):
        ContextError.__init__(self, *args, transaction_id=transaction_id, detail=detail)


class ContextCreationError(ContextError):
    """Raised when the pluggable create-context hook fails for an inbound request."""

    pass


class ActionNotFoundError(TxContextException):
    """Raised when no local action or client route matches a message."""

    def __init__(self, message: dict):
        self.message = message
        super().__init__(f"No action or client route matches message {message!r}")


class ActionLoadError(ValueError, TxContextException):
    """Raised when a module of action registrations cannot be loaded."""

    pass


class RemoteActionError(TxContextException):
    """Raised on the calling side when a remote action reported an error.

    Attributes:
        error_type (str): Class name of the exception raised in the remote process.
        detail (str): The remote error detail.
        status_code (int): The HTTP status code returned by the remote node.
        transaction_id (Optional[str]): The transaction id the remote node reported.
    """

    def __init__(self, error_type: str, detail: str, status_code: int, transaction_id: str | None = None):
        super().__init__(f"Remote action failed with {error_type}: {detail}")
        self.error_type = error_type
        self.detail = detail
        self.status_code = status_code
        self.transaction_id = transaction_id
