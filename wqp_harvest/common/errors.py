"""Exception types raised across the WQP harvest, each tagged with an ``error_code`` for the JSON log."""


class PipelineError(Exception):
    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """``wqp.yml`` is missing, malformed, or holds out-of-range values."""

    error_code = "CONFIG_ERROR"


class ContractError(PipelineError):
    """Input handed to a harvest step breaks its precondition (mixed group, missing identifier or coordinates)."""

    error_code = "CONTRACT_ERROR"


class StageError(PipelineError):
    """A download group could not be fetched; fatal for the run in strict mode."""

    error_code = "STAGE_ERROR"
