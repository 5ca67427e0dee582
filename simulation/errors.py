class GameError(Exception):
    """Base class for simulation service errors"""


class InputError(GameError, ValueError):
    """Request fields are missing or mistyped"""


class UpstreamUnavailable(GameError):
    """The LLM call itself failed (network, auth, model missing)"""


class LLMTimeout(UpstreamUnavailable):
    """The LLM call did not finish within the configured timeout"""


class SchemaValidationError(GameError, ValueError):
    """
    LLM output was unparseable or nothing survived schema filtering

    Attributes:
        dropped: Number of elements rejected before giving up
    """

    def __init__(self, message: str, dropped: int = 0):
        super().__init__(message)
        self.dropped = dropped


class GenerationError(GameError):
    """A generation path with no fallback could not produce a result"""
