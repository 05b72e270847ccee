import logging
from typing import Dict, List, Optional

from webpom_agent.data.models import (
    Assertion,
    AssertionType,
    ElementType,
    FlowStep,
    Interaction,
    InteractionType,
    PageAnalysis,
    PageElement,
    UserFlow,
    VisualCheckpoint,
)
from webpom_agent.flows.values import generate_mock_value

MAX_NAVIGATION_STEPS = 5


def xpath_contains(ancestor_xpath: str, xpath: str) -> bool:
    """Segment-aware prefix test: ``/div[1]`` does not contain ``/div[10]/a[1]``."""
    if not ancestor_xpath or not xpath:
        return False
    return xpath.startswith(ancestor_xpath.rstrip("/") + "/")


class PatternAnalyzer:
    """Derives user flows from an already extracted PageAnalysis.

    Works purely on the element model; the page is never touched.
    """

    def __init__(self, analysis: PageAnalysis):
        self.analysis = analysis
        self._by_id: Dict[str, PageElement] = {el.id: el for el in analysis.elements}

    def analyze(self) -> List[UserFlow]:
        flows: List[UserFlow] = []
        flows.extend(self.analyze_form_interactions())
        flows.extend(self.analyze_navigation_interactions())
        flows.extend(self.analyze_component_interactions())
        logging.info(f"Pattern analysis produced {len(flows)} flows")
        return flows

    def is_child_of(self, element: PageElement, ancestor: PageElement) -> bool:
        """Whether ``element`` sits inside ``ancestor``.

        Follows the extracted parent links; elements without one fall back to
        comparing XPaths.
        """
        if element.id == ancestor.id:
            return False
        if element.parent_id is None:
            return xpath_contains(ancestor.xpath, element.xpath)

        seen = set()
        parent_id = element.parent_id
        while parent_id is not None and parent_id not in seen:
            if parent_id == ancestor.id:
                return True
            seen.add(parent_id)
            parent = self._by_id.get(parent_id)
            parent_id = parent.parent_id if parent else None
        return False

    def analyze_form_interactions(self) -> List[UserFlow]:
        flows = []
        forms = [el for el in self.analysis.elements if el.element_type == ElementType.FORM]

        for form in forms:
            inputs = [
                el
                for el in self.analysis.elements
                if el.element_type == ElementType.INPUT and self.is_child_of(el, form)
            ]
            if not inputs:
                continue

            steps = [
                FlowStep(
                    id=f"form-step-{idx}",
                    action=Interaction(
                        type=InteractionType.FILL,
                        element=field.selector,
                        value=generate_mock_value(field.attributes),
                    ),
                    assertion=Assertion(type=AssertionType.VISIBLE, selector=field.selector, expected=True),
                )
                for idx, field in enumerate(inputs)
            ]

            submit = self._find_submit_button(form)
            if submit:
                steps.append(
                    FlowStep(
                        id="form-submit",
                        action=Interaction(type=InteractionType.CLICK, element=submit.selector),
                    )
                )

            flows.append(
                UserFlow(
                    name=f"Form Submission - {form.unique_name}",
                    description=f"Fill and submit {form.unique_name} form",
                    steps=steps,
                )
            )
        return flows

    def _find_submit_button(self, form: PageElement) -> Optional[PageElement]:
        for el in self.analysis.elements:
            if el.element_type != ElementType.BUTTON and el.tag_name != "button":
                continue
            if not self.is_child_of(el, form):
                continue
            if el.attributes.get("type") == "submit" or "submit" in (el.text or "").lower():
                return el
        return None

    def analyze_navigation_interactions(self) -> List[UserFlow]:
        nav_links = [
            el
            for el in self.analysis.elements
            if el.element_type == ElementType.NAVIGATION
            or (el.element_type == ElementType.LINK and el.role == "navigation")
        ]
        if not nav_links:
            return []

        steps = [
            FlowStep(
                id=f"nav-step-{idx}",
                action=Interaction(type=InteractionType.CLICK, element=link.selector, wait_for="networkidle"),
                assertion=Assertion(type=AssertionType.URL, expected=link.attributes.get("href") or "/"),
            )
            for idx, link in enumerate(nav_links[:MAX_NAVIGATION_STEPS])
        ]
        return [
            UserFlow(
                name="Navigation Flow",
                description="Navigate through main menu items",
                steps=steps,
                visual_checkpoints=[
                    VisualCheckpoint(name=f"Navigation Step {idx + 1}", full_page=True) for idx in range(len(steps))
                ],
            )
        ]

    def analyze_component_interactions(self) -> List[UserFlow]:
        flows = []

        for modal in (el for el in self.analysis.elements if el.element_type == ElementType.MODAL):
            trigger = self.find_modal_trigger(modal)
            if not trigger:
                continue
            flows.append(
                UserFlow(
                    name=f"Modal Interaction - {modal.unique_name}",
                    description=f"Open and interact with {modal.unique_name}",
                    steps=[
                        FlowStep(
                            id="open-modal",
                            action=Interaction(type=InteractionType.CLICK, element=trigger.selector),
                            assertion=Assertion(type=AssertionType.VISIBLE, selector=modal.selector, expected=True),
                        )
                    ],
                    visual_checkpoints=[VisualCheckpoint(name="Modal Open", selector=modal.selector, full_page=False)],
                )
            )

        # no tab element type exists, tabs are recognised by their role
        tabs = [el for el in self.analysis.elements if el.role == "tab"]
        if tabs:
            flows.append(
                UserFlow(
                    name="Tab Navigation",
                    description="Navigate through tab components",
                    steps=[
                        FlowStep(
                            id=f"tab-{idx}",
                            action=Interaction(type=InteractionType.CLICK, element=tab.selector),
                            assertion=Assertion(type=AssertionType.VISIBLE, selector=tab.selector, expected=True),
                        )
                        for idx, tab in enumerate(tabs)
                    ],
                )
            )
        return flows

    def find_modal_trigger(self, modal: PageElement) -> Optional[PageElement]:
        modal_id = modal.attributes.get("id")
        targets = {modal_id, f"#{modal_id}"} if modal_id else set()
        for el in self.analysis.elements:
            if el.element_type != ElementType.BUTTON:
                continue
            if el.attributes.get("data-target") in targets or el.attributes.get("aria-controls") in targets:
                return el
            if "open" in (el.text or "").lower():
                return el
        return None
