"""Custom exception hierarchy for hyperevo."""


class HyperEvoError(Exception):
    """Base for all hyperevo errors."""


class ConfigurationError(HyperEvoError):
    """Required configuration (e.g. the store location) is missing."""


class StoreError(HyperEvoError):
    """The backing store rejected or failed an operation."""


class KnowledgeAPIError(HyperEvoError):
    """An external knowledge or LLM endpoint returned an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
