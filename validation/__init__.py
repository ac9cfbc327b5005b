"""NVMe validation engine: evaluator, recorder, orchestrator, and report."""

__all__ = [
    "CheckOrchestrator",
    "OrchestratorSettings",
    "RunRecorder",
    "Severity",
    "ValidationProbes",
]


def __getattr__(name: str):
    if name in {"CheckOrchestrator", "OrchestratorSettings", "ValidationProbes"}:
        from validation import orchestrator

        return getattr(orchestrator, name)
    if name == "RunRecorder":
        from validation.recorder import RunRecorder

        return RunRecorder
    if name == "Severity":
        from validation.models import Severity

        return Severity
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
