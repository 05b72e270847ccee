from .live_detector import DETECTORS, LiveFlowDetector
from .pattern_analyzer import PatternAnalyzer
from .report import render_interaction_report

__all__ = ["DETECTORS", "LiveFlowDetector", "PatternAnalyzer", "render_interaction_report"]
