class SpeechClientError(Exception):
    pass


class AuthenticationError(SpeechClientError):
    pass


class RejectedRequestError(SpeechClientError):
    """The service refused a call (recognize, stream open, submit or status fetch)."""

    def __init__(self, method: str, code: str, details: str = "") -> None:
        self.method = method
        self.code = code
        self.details = details
        super().__init__(f"{method} rejected: {code} {details}".rstrip())


class StreamFailureError(SpeechClientError):
    pass


class DecodeError(SpeechClientError):
    pass


class PollDeadlineExceeded(SpeechClientError):
    def __init__(self, operation_name: str, deadline: float, attempts: int) -> None:
        self.operation_name = operation_name
        self.deadline = deadline
        self.attempts = attempts
        super().__init__(
            f"Operation {operation_name} not done after {deadline}s ({attempts} fetches)"
        )


class PollCancelledError(SpeechClientError):
    def __init__(self, operation_name: str, attempts: int) -> None:
        self.operation_name = operation_name
        self.attempts = attempts
        super().__init__(f"Polling of {operation_name} cancelled after {attempts} fetches")


class OffsetOverflowError(SpeechClientError, OverflowError):
    pass


class InvalidTransitionError(SpeechClientError):
    pass
