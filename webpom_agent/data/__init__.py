from .models import (
    AnalysisMetadata,
    APICall,
    Assertion,
    AssertionType,
    ElementType,
    FlowStep,
    Interaction,
    InteractionType,
    PageAnalysis,
    PageElement,
    PageSection,
    UserFlow,
    VisualCheckpoint,
)

__all__ = [
    "AnalysisMetadata",
    "APICall",
    "Assertion",
    "AssertionType",
    "ElementType",
    "FlowStep",
    "Interaction",
    "InteractionType",
    "PageAnalysis",
    "PageElement",
    "PageSection",
    "UserFlow",
    "VisualCheckpoint",
]
