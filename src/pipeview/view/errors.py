"""Error taxonomy for pipeline views."""


class PipelineViewError(Exception):
    """Base class for all pipeline view errors."""


class ConfigurationError(PipelineViewError, ValueError):
    """Invalid view configuration, raised when the configuration is saved or loaded."""


class PipelineConstructionError(PipelineViewError):
    """A pipeline snapshot could not be built (broken correlation, missing job)."""


class JobNotFoundError(PipelineViewError, LookupError):
    def __init__(self, job_name: str):
        super().__init__(f"Job not found: {job_name}")
        self.job_name = job_name


class AuthorizationError(PipelineViewError):
    """The current principal may not build the requested job."""


class TriggerError(PipelineViewError):
    """A manual trigger could not be carried out."""


class TriggerNotFoundError(TriggerError):
    """No trigger strategy applies to the requested (downstream, upstream) pair."""
