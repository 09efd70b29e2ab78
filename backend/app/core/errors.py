from __future__ import annotations


class PipelineError(Exception):
    """Base class for errors raised by the listing pipeline."""


class ConfigError(PipelineError):
    """Required configuration is missing or invalid."""


class SourceFetchError(PipelineError):
    """The upstream search index could not be read."""


class DuplicateJobError(PipelineError):
    def __init__(self, external_id: str):
        super().__init__(f"job posting {external_id} already exists")
        self.external_id = external_id


class PipelineCancelled(PipelineError):
    def __init__(self, message: str = "cancelled"):
        super().__init__(message)


class PipelineAlreadyRunning(PipelineError):
    def __init__(self, execution_id: int | None = None):
        super().__init__("a pipeline run is already in progress")
        self.execution_id = execution_id
