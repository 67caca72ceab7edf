class PipelineError(Exception):
    """Raised when a cleaning run aborts."""


class IngestionError(PipelineError):
    """The source CSV is missing, empty or lacks required columns."""


class StageError(PipelineError):
    """A stage was pointed at a table that does not exist."""
