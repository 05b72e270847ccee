import asyncio
import logging
from typing import Any, Callable, Dict, List

from webpom_agent.browser.config import build_analysis_config
from webpom_agent.browser.session import BrowserSession
from webpom_agent.crawler.page_extractor import PageExtractor
from webpom_agent.data.models import PageAnalysis, UserFlow
from webpom_agent.errors import AnalysisTimeoutError
from webpom_agent.flows.live_detector import LiveFlowDetector
from webpom_agent.flows.pattern_analyzer import PatternAnalyzer
from webpom_agent.network.api_recorder import APICallRecorder
from webpom_agent.utils.log_icon import icon


class AnalysisRunner:
    """Runs one page analysis inside its own browser session.

    The session is closed on every exit path, including failures and
    cancellation by the overall timeout.
    """

    def __init__(
        self,
        browser_config: Dict[str, Any] = None,
        analysis_config: Dict[str, Any] = None,
        session_factory: Callable[..., BrowserSession] = BrowserSession,
    ):
        self.browser_config = browser_config or {}
        self.config = build_analysis_config(analysis_config)
        self.session_factory = session_factory

    async def analyze(self, url: str) -> PageAnalysis:
        """Navigate, extract, infer flows and merge recorded API calls.

        Raises:
            NavigationError: If the page could not be loaded.
            BrowserLaunchError: If no browser could be started.
            AnalysisTimeoutError: If the whole run exceeded ``request_timeout``.
        """
        return await self._with_timeout(self._analyze(url), url)

    async def detect_interactions(self, url: str) -> List[UserFlow]:
        """Live detection only, without building the element model."""
        return await self._with_timeout(self._detect_interactions(url), url)

    async def _with_timeout(self, coro, url: str):
        timeout = self.config["request_timeout"]
        try:
            return await asyncio.wait_for(coro, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise AnalysisTimeoutError(f"Analysis of {url} did not finish within {timeout} seconds") from e

    async def _analyze(self, url: str) -> PageAnalysis:
        logging.info(f"{icon['running']} Analyzing {url}")
        async with self.session_factory(browser_config=self.browser_config) as session:
            page = session.get_page()
            recorder = APICallRecorder(body_timeout=self.config["body_read_timeout"] / 1000)
            recorder.attach(page)

            await session.navigate_to(
                url, timeout=self.config["navigation_timeout"], settle_delay=self.config["settle_delay"]
            )
            analysis = await PageExtractor(page).extract(url)

            flows: List[UserFlow] = []
            if self.config["analyze_patterns"]:
                flows.extend(PatternAnalyzer(analysis).analyze())
            if self.config["detect_flows"]:
                detector = LiveFlowDetector(page, api_calls=recorder.calls, scroll_wait=self.config["scroll_wait"])
                flows.extend(await detector.detect_user_flows())

            api_calls = await recorder.snapshot()
            recorder.detach()

        analysis.add_api_calls(api_calls)
        analysis.add_user_flows(flows)
        logging.info(
            f"{icon['check']} Analysis of {url} finished: {analysis.metadata.total_elements} elements, "
            f"{len(analysis.user_flows)} flows, {len(analysis.api_routes)} API calls"
        )
        return analysis

    async def _detect_interactions(self, url: str) -> List[UserFlow]:
        async with self.session_factory(browser_config=self.browser_config) as session:
            page = session.get_page()
            recorder = APICallRecorder(body_timeout=self.config["body_read_timeout"] / 1000)
            recorder.attach(page)
            await session.navigate_to(
                url, timeout=self.config["navigation_timeout"], settle_delay=self.config["settle_delay"]
            )
            detector = LiveFlowDetector(page, api_calls=recorder.calls, scroll_wait=self.config["scroll_wait"])
            flows = await detector.detect_user_flows()
            await recorder.settle()
            recorder.detach()
        return flows
