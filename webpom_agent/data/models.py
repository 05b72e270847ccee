from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ElementType(str, Enum):
    """Closed element taxonomy produced by the classifier."""

    HEADER = "header"
    FOOTER = "footer"
    NAVIGATION = "navigation"
    MODAL = "modal"
    FORM = "form"
    BUTTON = "button"
    INPUT = "input"
    LINK = "link"
    IMAGE = "image"
    LIST = "list"
    CONTAINER = "container"
    TEXT = "text"
    OTHER = "other"

    def __str__(self) -> str:
        return self.value


class InteractionType(str, Enum):
    CLICK = "click"
    FILL = "fill"
    SELECT = "select"
    CHECK = "check"
    PRESS = "press"
    HOVER = "hover"
    SCROLL = "scroll"


class AssertionType(str, Enum):
    VISIBLE = "visible"
    HIDDEN = "hidden"
    TEXT = "text"
    VALUE = "value"
    COUNT = "count"
    URL = "url"


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with camelCase keys, dropping absent optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class PageElement(_Model):
    """One observed DOM node."""

    id: str
    tag_name: str = Field(alias="tagName")
    selector: str
    xpath: str
    classes: List[str] = Field(default_factory=list)
    attributes: Dict[str, str] = Field(default_factory=dict)
    styles: Dict[str, str] = Field(default_factory=dict)
    test_id: Optional[str] = Field(default=None, alias="testId")
    aria_label: Optional[str] = Field(default=None, alias="ariaLabel")
    role: Optional[str] = None
    text: Optional[str] = None
    is_interactive: bool = Field(default=False, alias="isInteractive")
    element_type: ElementType = Field(default=ElementType.OTHER, alias="elementType")
    unique_name: str = Field(alias="uniqueName")
    # nearest extracted ancestor, used for containment checks
    parent_id: Optional[str] = Field(default=None, alias="parentId")


class PageSection(_Model):
    name: str
    type: ElementType
    elements: List[PageElement] = Field(default_factory=list)
    selector: str = ""


class Interaction(_Model):
    type: InteractionType
    element: str
    value: Optional[str] = None
    wait_for: Optional[str] = Field(default=None, alias="waitFor")


class Assertion(_Model):
    type: AssertionType
    selector: Optional[str] = None
    expected: Union[bool, int, str]


class FlowStep(_Model):
    id: str
    action: Interaction
    assertion: Optional[Assertion] = None
    screenshot: Optional[bool] = None
    visual_regression: Optional[bool] = Field(default=None, alias="visualRegression")


class VisualCheckpoint(_Model):
    name: str
    selector: Optional[str] = None
    full_page: bool = Field(default=True, alias="fullPage")
    mask: List[str] = Field(default_factory=list)


class APICall(_Model):
    """A normalized network call. Bodies are absent when not JSON."""

    method: str
    url: str
    status: int
    request_body: Optional[Any] = Field(default=None, alias="requestBody")
    response_body: Optional[Any] = Field(default=None, alias="responseBody")


class UserFlow(_Model):
    name: str
    description: str
    steps: List[FlowStep] = Field(default_factory=list)
    expected_api_calls: List[APICall] = Field(default_factory=list, alias="expectedAPICalls")
    visual_checkpoints: List[VisualCheckpoint] = Field(default_factory=list, alias="visualCheckpoints")


class AnalysisMetadata(_Model):
    total_elements: int = Field(default=0, alias="totalElements")
    test_ids: int = Field(default=0, alias="testIds")
    interactive_elements: int = Field(default=0, alias="interactiveElements")
    forms: int = 0
    modals: int = 0
    tables: int = 0

    @classmethod
    def from_elements(cls, elements: List[PageElement]) -> "AnalysisMetadata":
        return cls(
            total_elements=len(elements),
            test_ids=sum(1 for el in elements if el.test_id),
            interactive_elements=sum(1 for el in elements if el.is_interactive),
            forms=sum(1 for el in elements if el.element_type == ElementType.FORM),
            modals=sum(1 for el in elements if el.element_type == ElementType.MODAL),
            # the taxonomy has no table type, kept for consumers that read it
            tables=sum(1 for el in elements if el.element_type == "table"),
        )


class PageAnalysis(_Model):
    """Root artifact handed to the code generators.

    Built once per URL by the extractor, then extended exactly twice: once
    with recorded API calls and once with inferred user flows.
    """

    url: str
    title: str = ""
    elements: List[PageElement] = Field(default_factory=list)
    screenshot: str = ""
    sections: List[PageSection] = Field(default_factory=list)
    interactive_elements: List[PageElement] = Field(default_factory=list, alias="interactiveElements")
    user_flows: List[UserFlow] = Field(default_factory=list, alias="userFlows")
    api_routes: List[APICall] = Field(default_factory=list, alias="apiRoutes")
    metadata: AnalysisMetadata = Field(default_factory=AnalysisMetadata)

    def add_api_calls(self, calls: List[APICall]) -> None:
        self.api_routes.extend(calls)

    def add_user_flows(self, flows: List[UserFlow]) -> None:
        self.user_flows.extend(flows)
