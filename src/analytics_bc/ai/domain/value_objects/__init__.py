from .outcome import FallbackReason, OutcomeSource, ParseResult, PipelineOutcome, TaskKind

__all__ = ["FallbackReason", "OutcomeSource", "ParseResult", "PipelineOutcome", "TaskKind"]
