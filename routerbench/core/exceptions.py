# routerbench/core/exceptions.py
class ServerNotReadyError(RuntimeError):
    """Raised when a target server never answers within the retry budget."""

    def __init__(self, url: str, attempts: int):
        self.url = url
        self.attempts = attempts
        super().__init__(f"Server at {url} is not ready after {attempts} retries")


class TrialError(RuntimeError):
    """Raised inside a trial when a measurement cannot be taken at all."""
