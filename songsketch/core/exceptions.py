"""Exceptions raised by the analysis pipeline."""


class AnalysisCancelled(RuntimeError):
    """Raised when a caller-supplied cancellation check fires mid-analysis."""

    def __init__(self, stage: str):
        self.stage = stage
        super().__init__(f"Analysis cancelled during {stage}")
