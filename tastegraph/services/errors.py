"""Failure types raised while building a cultural ecosystem."""


class FetchFailure(Exception):
    """Raised when candidate retrieval for one category fails."""

    def __init__(self, category_key: str, reason: str) -> None:
        super().__init__(f"{category_key}: {reason}")
        self.category_key = category_key
        self.reason = reason


class NarrativeFailure(Exception):
    """Raised when the narrative collaborator fails or returns malformed data."""


class EmptyInputFailure(Exception):
    """Raised when no category produced any entity."""


class EcosystemContractError(ValueError):
    """Raised when inputs break a structural contract, e.g. an entity filed under the wrong category."""


class EcosystemBuildError(Exception):
    """Raised when not even a baseline ecosystem can be constructed."""
