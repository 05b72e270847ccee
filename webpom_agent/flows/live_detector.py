import logging
from typing import List, Optional

from playwright.async_api import Page

from webpom_agent.data.models import APICall, UserFlow
from webpom_agent.errors import FlowDetectionError
from webpom_agent.flows.detectors import (
    DetectionContext,
    detect_accordion_flow,
    detect_cart_flow,
    detect_filter_flow,
    detect_form_flow,
    detect_infinite_scroll_flow,
    detect_login_flow,
    detect_modal_flow,
    detect_navigation_flow,
    detect_search_flow,
    detect_tab_flow,
)

# Fixed execution order; several detectors scroll the page, so they never overlap.
DETECTORS = (
    ("login", detect_login_flow),
    ("search", detect_search_flow),
    ("form", detect_form_flow),
    ("navigation", detect_navigation_flow),
    ("cart", detect_cart_flow),
    ("filter", detect_filter_flow),
    ("modal", detect_modal_flow),
    ("accordion", detect_accordion_flow),
    ("tab", detect_tab_flow),
    ("infinite_scroll", detect_infinite_scroll_flow),
)


class LiveFlowDetector:
    """Probes a rendered page for known interaction archetypes."""

    def __init__(self, page: Page, api_calls: Optional[List[APICall]] = None, scroll_wait: int = 1000):
        self.context = DetectionContext(
            page=page,
            api_calls=api_calls if api_calls is not None else [],
            scroll_wait=scroll_wait,
        )

    async def detect_user_flows(self) -> List[UserFlow]:
        """Run every detector in order and collect the flows they found.

        A detector that raises contributes nothing; the rest still run.
        """
        flows: List[UserFlow] = []
        for name, detector in DETECTORS:
            try:
                flow = await detector(self.context)
            except Exception as e:
                logging.warning(str(FlowDetectionError(name, e)))
                continue
            if flow is not None:
                logging.debug(f"Detector {name} found '{flow.name}' with {len(flow.steps)} steps")
                flows.append(flow)

        logging.info(f"Live detection produced {len(flows)} flows")
        return flows
