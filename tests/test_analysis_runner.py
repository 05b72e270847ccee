import asyncio

import pytest

from conftest import FakeElement, FakePage, FakeRequest, FakeResponse, login_page_handler
from webpom_agent.errors import AnalysisTimeoutError, NavigationError, NavigationKind
from webpom_agent.executor import AnalysisRunner


class FakeSession:
    """Stands in for BrowserSession; records its lifecycle."""

    instances = []

    def __init__(self, browser_config=None, page=None, navigate=None):
        self.browser_config = browser_config
        self.page = page or FakePage(evaluate_handler=login_page_handler())
        self.navigate = navigate
        self.closed = False
        FakeSession.instances.append(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.closed = True

    def get_page(self):
        return self.page

    async def navigate_to(self, url, timeout=30000, settle_delay=2000):
        if self.navigate:
            return await self.navigate(self.page, url)
        self.page.url = url
        # traffic produced while the page loads
        self.page.emit(
            'response',
            FakeResponse(FakeRequest('https://example.com/api/session', method='GET'), body={'user': None}),
        )
        return 'networkidle'


@pytest.fixture(autouse=True)
def reset_sessions():
    FakeSession.instances = []
    yield


def runner_with(navigate=None, page=None, **config):
    def factory(browser_config=None):
        return FakeSession(browser_config=browser_config, page=page, navigate=navigate)

    return AnalysisRunner(browser_config={'headless': True}, analysis_config=config, session_factory=factory)


class TestAnalyze:
    @pytest.mark.asyncio
    async def test_full_analysis(self):
        analysis = await runner_with().analyze('https://example.com/login')

        assert analysis.url == 'https://example.com/login'
        assert len(analysis.elements) == 4
        assert [call.url for call in analysis.api_routes] == ['https://example.com/api/session']
        assert analysis.api_routes[0].response_body == {'user': None}
        assert [flow.name for flow in analysis.user_flows] == ['Form Submission - login_form']

        session = FakeSession.instances[0]
        assert session.closed
        assert session.browser_config == {'headless': True}
        assert session.page.listeners['response'] == []

    @pytest.mark.asyncio
    async def test_flow_inference_can_be_disabled(self):
        analysis = await runner_with(analyze_patterns=False, detect_flows=False).analyze('https://example.com/login')
        assert analysis.user_flows == []
        assert len(analysis.api_routes) == 1

    @pytest.mark.asyncio
    async def test_session_closed_on_navigation_error(self):
        async def fail(page, url):
            raise NavigationError(NavigationKind.TIMEOUT, 'Page load timeout')

        with pytest.raises(NavigationError):
            await runner_with(navigate=fail).analyze('https://slow.example.com')
        assert FakeSession.instances[0].closed

    @pytest.mark.asyncio
    async def test_timeout(self):
        async def hang(page, url):
            await asyncio.sleep(10)

        with pytest.raises(AnalysisTimeoutError):
            await runner_with(navigate=hang, request_timeout=0.05).analyze('https://slow.example.com')
        assert FakeSession.instances[0].closed

    @pytest.mark.asyncio
    async def test_slow_api_body_does_not_lose_the_analysis(self):
        async def stream(page, url):
            page.emit('response', FakeResponse(FakeRequest('https://example.com/api/stream'), delay=30))
            return 'networkidle'

        runner = runner_with(navigate=stream, request_timeout=1, body_read_timeout=50, detect_flows=False)
        analysis = await runner.analyze('https://example.com/login')

        assert [call.url for call in analysis.api_routes] == ['https://example.com/api/stream']
        assert analysis.api_routes[0].response_body is None
        assert [flow.name for flow in analysis.user_flows] == ['Form Submission - login_form']

    @pytest.mark.asyncio
    async def test_pattern_and_live_flows_are_combined(self):
        page = FakePage(
            evaluate_handler=login_page_handler(),
            selectors={
                'input[type="email"]': [FakeElement('input', {'type': 'email', 'name': 'email'})],
                'input[type="password"]': [FakeElement('input', {'type': 'password', 'name': 'password'})],
                'button[type="submit"]': [FakeElement('button', {'type': 'submit'}, classes=['btn', 'btn-primary'])],
            },
        )
        analysis = await runner_with(page=page).analyze('https://example.com/login')
        flows = {flow.name: flow for flow in analysis.user_flows}

        assert [flow.name for flow in analysis.user_flows] == ['Form Submission - login_form', 'Login Flow']
        assert len(flows['Form Submission - login_form'].steps) == 3
        assert len(flows['Login Flow'].steps) == 3
        assert len(flows['Login Flow'].visual_checkpoints) == 2
        assert flows['Login Flow'].steps[2].action.element == 'button.btn.btn-primary'


class TestDetectInteractions:
    @pytest.mark.asyncio
    async def test_live_only(self):
        flows = await runner_with().detect_interactions('https://example.com/login')

        # the fake page exposes no live archetypes
        assert flows == []
        assert FakeSession.instances[0].closed
