from .analysis_runner import AnalysisRunner

__all__ = ["AnalysisRunner"]
