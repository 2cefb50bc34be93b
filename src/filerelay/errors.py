"""Error taxonomy for FileRelay.

Two families:

Collaborator errors — raised by locators, fetchers, archivers and uploaders:
    CollaboratorError
    ├── LocateError
    ├── FetchError
    ├── ArchiveError
    └── UploadError

Pipeline errors — raised by the orchestrator, one per failed run:
    PipelineError
    ├── DiscoveryFailed
    ├── NoFilesFound
    ├── FetchFailed
    ├── ArchiveFailed
    ├── UploadFailed
    └── Cancelled

The collaborator error that caused a pipeline failure is chained as
``__cause__`` (``raise FetchFailed(...) from err``).
"""


class CollaboratorError(Exception):
    """Base exception for collaborator failures."""


class LocateError(CollaboratorError):
    """Remote file search failed."""


class FetchError(CollaboratorError):
    """Download of a single remote file failed."""

    def __init__(self, message: str, handle: str | None = None) -> None:
        super().__init__(message)
        self.handle = handle


class ArchiveError(CollaboratorError):
    """Archive could not be produced (e.g. size limit exceeded)."""


class UploadError(CollaboratorError):
    """Archive could not be stored in the object store."""


class PipelineError(Exception):
    """Base exception for a failed pipeline run.

    Args:
        message: Human-readable description
        stage: Pipeline state the run was in when it failed
    """

    stage: str | None = None

    def __init__(self, message: str, stage: str | None = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class DiscoveryFailed(PipelineError):
    stage = "discovering"


class NoFilesFound(PipelineError):
    stage = "discovering"

    def __init__(self, pattern: str) -> None:
        super().__init__(f"No remote files match pattern {pattern!r}")
        self.pattern = pattern


class FetchFailed(PipelineError):
    stage = "fetching"

    def __init__(self, message: str, handle: str | None = None) -> None:
        super().__init__(message)
        self.handle = handle


class ArchiveFailed(PipelineError):
    stage = "archiving"


class UploadFailed(PipelineError):
    stage = "uploading"


class Cancelled(PipelineError):
    """Run was cancelled through its cancellation signal."""
