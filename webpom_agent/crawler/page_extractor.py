import base64
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from playwright.async_api import Page

from webpom_agent.crawler.classifier import ExtractionContext, classify
from webpom_agent.crawler.dom_snapshot import NodeSnapshot, build_xpath
from webpom_agent.crawler.selector import SelectorCounts, class_selector, synthesize
from webpom_agent.data.models import AnalysisMetadata, ElementType, PageAnalysis, PageElement, PageSection

# Structural and semantic queries whose matches make up the element model.
EXTRACTION_SELECTORS = [
    "header",
    "footer",
    "nav",
    "main",
    "aside",
    "section",
    "article",
    "form",
    "button",
    "a",
    "input",
    "textarea",
    "select",
    "img",
    "[data-testid]",
    "[data-test]",
    "[data-qa]",
    '[role="dialog"]',
    '[role="banner"]',
    '[role="navigation"]',
    ".modal",
    ".dropdown",
    ".menu",
    "h1",
    "h2",
    "h3",
]

STYLE_PROPERTIES = [
    "display",
    "position",
    "width",
    "height",
    "backgroundColor",
    "color",
    "fontSize",
    "fontWeight",
    "padding",
    "margin",
    "border",
    "zIndex",
]

SECTION_TYPES = [
    ElementType.HEADER,
    ElementType.FOOTER,
    ElementType.NAVIGATION,
    ElementType.FORM,
    ElementType.MODAL,
]

TEXT_LIMIT = 100


class PageExtractor:
    """Builds a PageAnalysis from a page that is already on the target URL.

    A JavaScript payload collects raw node snapshots; selectors, element
    types and names are then derived in Python. The only other round trip
    to the page is one batched uniqueness count for class selectors.
    """

    _default_dir = Path(__file__).parent
    SNAPSHOT_JS = _default_dir / "js" / "element_snapshot.js"
    COUNTER_JS = _default_dir / "js" / "selector_counter.js"

    def __init__(self, page: Page):
        self.page = page

    async def extract(self, url: Optional[str] = None) -> PageAnalysis:
        """Extract elements, sections, metadata and a full-page screenshot.

        Args:
            url: URL recorded on the analysis. Defaults to the page URL.

        Returns:
            A fully populated PageAnalysis without flows or API calls.
        """
        snapshots = await self.collect_snapshots()
        counts = await self.count_class_selectors(snapshots)
        elements = self.build_elements(snapshots, counts)
        logging.info(f"Extracted {len(elements)} elements from {url or self.page.url}")

        interactive = [el for el in elements if el.is_interactive]
        screenshot = await self.capture_screenshot()
        title = await self.page.title()

        return PageAnalysis(
            url=url or self.page.url,
            title=title,
            elements=elements,
            screenshot=screenshot,
            sections=self.categorize_sections(elements),
            interactive_elements=interactive,
            metadata=AnalysisMetadata.from_elements(elements),
        )

    async def collect_snapshots(self) -> List[NodeSnapshot]:
        payload = (
            f"(() => {{"
            f"window._extractionSelectors = {json.dumps(EXTRACTION_SELECTORS)};\n"
            f"window._styleProperties = {json.dumps(STYLE_PROPERTIES)};\n"
            f"\n{self.read_js(self.SNAPSHOT_JS)}"
            f"\nreturn buildSnapshot();"
            f"}})()"
        )
        raw_nodes = await self.page.evaluate(payload)
        return [NodeSnapshot.from_dict(raw) for raw in raw_nodes or []]

    async def count_class_selectors(self, snapshots: List[NodeSnapshot]) -> SelectorCounts:
        """Ask the page how many nodes each candidate class selector matches."""
        candidates: List[str] = []
        for node in snapshots:
            if node.test_id or node.element_id:
                continue
            candidate = class_selector(node)
            if candidate and candidate not in candidates:
                candidates.append(candidate)

        counts = SelectorCounts()
        if candidates:
            results = await self.page.evaluate(self.read_js(self.COUNTER_JS), candidates)
            counts.update(candidates, results or [])
        return counts

    @staticmethod
    def build_elements(snapshots: List[NodeSnapshot], counts: SelectorCounts) -> List[PageElement]:
        context = ExtractionContext()
        ids: Dict[int, str] = {node.key: context.next_element_id() for node in snapshots}

        elements = []
        for node in snapshots:
            classification = classify(node, context)
            elements.append(
                PageElement(
                    id=ids[node.key],
                    tag_name=node.tag,
                    selector=synthesize(node, counts),
                    xpath=build_xpath(node.ancestry),
                    classes=node.classes,
                    attributes=node.attributes,
                    styles=node.styles,
                    test_id=node.test_id,
                    aria_label=node.get("aria-label"),
                    role=node.role,
                    text=node.text[:TEXT_LIMIT] or None,
                    is_interactive=classification.is_interactive,
                    element_type=classification.element_type,
                    unique_name=classification.unique_name,
                    parent_id=ids.get(node.parent_key) if node.parent_key is not None else None,
                )
            )
        return elements

    @staticmethod
    def categorize_sections(elements: List[PageElement]) -> List[PageSection]:
        sections = []
        for section_type in SECTION_TYPES:
            members = [el for el in elements if el.element_type == section_type]
            if not members:
                continue
            sections.append(
                PageSection(
                    name=section_type.value.capitalize(),
                    type=section_type,
                    elements=members,
                    selector=members[0].selector,
                )
            )
        return sections

    async def capture_screenshot(self) -> str:
        image = await self.page.screenshot(full_page=True, type="png")
        return f"data:image/png;base64,{base64.b64encode(image).decode('ascii')}"

    @staticmethod
    def read_js(file_path: Path) -> str:
        with open(file_path, "r", encoding="utf-8") as file:
            return file.read()
