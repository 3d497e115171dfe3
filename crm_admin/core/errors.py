from typing import Optional


class TransportError(Exception):
    """
    Raised by the record store client when the remote service is unreachable,
    answers with a non-success status or returns a payload we cannot decode.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
