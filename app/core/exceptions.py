class MovieAgentError(RuntimeError):
    """Base class for errors raised by the movie agent pipeline."""


class MissingCredentialError(MovieAgentError):
    """Raised when a credential required by the active code path is not configured."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Missing {name} configuration")


class ProviderError(MovieAgentError):
    """Raised when an upstream provider call fails or returns invalid data."""


class LLMProviderError(ProviderError):
    """Raised when the LLM provider call fails or returns invalid data."""


class TitleNotFoundError(MovieAgentError):
    """Raised when every provider answered and none knows the requested title."""

    def __init__(self, query: str):
        self.query = query
        super().__init__(f"No title matching '{query}' was found")
