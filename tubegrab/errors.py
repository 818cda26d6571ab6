from dataclasses import dataclass


class TubegrabError(Exception):
    """Base class for failures that end a run with exit code 1."""


class InvalidReference(TubegrabError):
    def __init__(self, reference):
        super().__init__(f"Not a valid YouTube video URL or id: {reference!r}")
        self.reference = reference


class MissingPrerequisite(TubegrabError):
    def __init__(self, message, remedy=None):
        super().__init__(message)
        self.remedy = remedy


class CatalogUnavailable(TubegrabError):
    """Metadata could not be fetched or decoded. Callers usually degrade."""


class SetupError(TubegrabError):
    pass


@dataclass(frozen=True)
class FileFailure:
    path: str
    stage: str  # "rename" or "move"
    error: str
