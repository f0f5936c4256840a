class GameError(Exception):
    """Base class for recoverable engine failures reported to the host."""


class ValidationError(GameError, ValueError):
    pass


class InsufficientResourceError(GameError):
    def __init__(self, resource: str, required: int, available: int) -> None:
        self.resource = resource
        self.required = int(required)
        self.available = int(available)
        super().__init__(f"Not enough {resource}: need {self.required}, have {self.available}.")


class NotFoundError(GameError, LookupError):
    def __init__(self, kind: str, identifier: object) -> None:
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"Unknown {kind}: {identifier!r}")


class InvariantViolation(AssertionError):
    """Raised when an operation would leave a character in an impossible state."""
