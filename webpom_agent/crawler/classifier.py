import re
from dataclasses import dataclass
from typing import Optional

from webpom_agent.crawler.dom_snapshot import NodeSnapshot
from webpom_agent.data.models import ElementType

INTERACTIVE_TAGS = {"button", "a", "input", "select", "textarea"}
INTERACTIVE_ROLES = {"button", "link", "tab", "menuitem", "option"}

CONTAINER_TAGS = {"main", "section", "article", "div"}
TEXT_TAGS = {"p", "span", "h1", "h2", "h3", "h4", "h5", "h6"}
IMAGE_TAGS = {"img", "picture", "svg"}
INPUT_TAGS = {"input", "textarea", "select"}

NAME_TEXT_LIMIT = 30


class ExtractionContext:
    """Counters scoped to one extraction pass."""

    def __init__(self):
        self._element_counter = 0
        self._fallback_counter = 0

    def next_element_id(self) -> str:
        element_id = f"element_{self._element_counter}"
        self._element_counter += 1
        return element_id

    def next_fallback_name(self, element_type: str) -> str:
        name = f"{element_type}_{self._fallback_counter}"
        self._fallback_counter += 1
        return name


@dataclass
class Classification:
    element_type: ElementType
    is_interactive: bool
    unique_name: str


def determine_element_type(node: NodeSnapshot) -> ElementType:
    tag = node.tag
    role = node.role

    # roles are checked before tags
    if role == "banner" or tag == "header":
        return ElementType.HEADER
    if role == "contentinfo" or tag == "footer":
        return ElementType.FOOTER
    if role == "navigation" or tag == "nav":
        return ElementType.NAVIGATION
    if role == "dialog" or "modal" in node.classes:
        return ElementType.MODAL
    if tag == "form":
        return ElementType.FORM

    if tag == "button" or (tag == "input" and node.attributes.get("type") == "submit"):
        return ElementType.BUTTON
    if tag in INPUT_TAGS:
        return ElementType.INPUT
    if tag == "a":
        return ElementType.LINK
    if tag in IMAGE_TAGS:
        return ElementType.IMAGE
    if tag in ("ul", "ol"):
        return ElementType.LIST
    if tag in CONTAINER_TAGS:
        return ElementType.CONTAINER
    if tag in TEXT_TAGS:
        return ElementType.TEXT
    return ElementType.OTHER


def is_interactive(node: NodeSnapshot) -> bool:
    if node.tag in INTERACTIVE_TAGS:
        return True
    if node.role in INTERACTIVE_ROLES:
        return True
    if "onclick" in node.attributes:
        return True
    return node.cursor == "pointer"


def _underscore(value: str) -> str:
    # hyphens and whitespace first, then anything else a generator could not use
    value = re.sub(r"[-\s]", "_", value)
    return re.sub(r"[^A-Za-z0-9_]", "_", value)


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", value.lower()).strip("_")


def _name_candidate(node: NodeSnapshot) -> Optional[str]:
    test_id = node.test_id
    if test_id:
        return _underscore(test_id)

    if node.element_id:
        return _underscore(node.element_id)

    aria_label = node.get("aria-label")
    if aria_label and _slug(aria_label):
        return _slug(aria_label)

    text = node.text.strip()[:NAME_TEXT_LIMIT]
    if text and _slug(text):
        return _slug(text)

    if node.classes:
        return _underscore(node.classes[0])
    return None


def generate_unique_name(node: NodeSnapshot, element_type: ElementType, context: ExtractionContext) -> str:
    """Human-readable identifier used as a property name by the generators.

    Only the counter fallback is guaranteed unique within a run.
    """
    return _name_candidate(node) or context.next_fallback_name(str(element_type))


def classify(node: NodeSnapshot, context: ExtractionContext) -> Classification:
    element_type = determine_element_type(node)
    return Classification(
        element_type=element_type,
        is_interactive=is_interactive(node),
        unique_name=generate_unique_name(node, element_type, context),
    )
