class BananadoroError(Exception):
    """Base class for errors raised by the session engine."""


class SessionNotFound(BananadoroError):
    def __init__(self, code):
        super().__init__(f"Session not found: {code}")
        self.code = code


class MalformedMessage(BananadoroError):
    """An inbound payload that cannot be parsed or has an unknown kind."""
