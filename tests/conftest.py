import asyncio
from typing import Any, Callable, Dict, List, Optional

import pytest


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        '--url',
        action='store',
        default=None,
        help='Target URL for live analysis tests (overrides default)',
    )


@pytest.fixture
def test_url(request: pytest.FixtureRequest) -> Optional[str]:
    # live page analysis only runs when --url is given
    return request.config.getoption('--url')


def _match(mapping: Dict[str, List['FakeElement']], selector: str) -> List['FakeElement']:
    """Resolve a selector list ("a, b") against exact-key fixtures, keeping order."""
    if selector in mapping:
        return list(mapping[selector])
    found: List[FakeElement] = []
    for part in selector.split(', '):
        for element in mapping.get(part.strip(), []):
            if element not in found:
                found.append(element)
    return found


class FakeElement:
    def __init__(self, tag: str, attributes: Optional[Dict[str, str]] = None, classes=None, children=None):
        self.tag = tag
        self.attributes = attributes or {}
        self.classes = classes or []
        self.children: Dict[str, List[FakeElement]] = children or {}


class FakeLocator:
    """The slice of the Playwright Locator API the detectors use."""

    def __init__(self, elements: List[FakeElement]):
        self.elements = elements

    @property
    def first(self) -> 'FakeLocator':
        return FakeLocator(self.elements[:1])

    async def all(self) -> List['FakeLocator']:
        return [FakeLocator([el]) for el in self.elements]

    async def count(self) -> int:
        return len(self.elements)

    def locator(self, selector: str) -> 'FakeLocator':
        found: List[FakeElement] = []
        for element in self.elements:
            found.extend(_match(element.children, selector))
        return FakeLocator(found)

    def _element(self) -> FakeElement:
        if not self.elements:
            raise RuntimeError('element is not attached to the DOM')
        return self.elements[0]

    async def get_attribute(self, name: str) -> Optional[str]:
        return self._element().attributes.get(name)

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        element = self._element()
        if 'classList' in script:
            classes = '.'.join(element.classes[:2])
            return f'{element.tag}.{classes}' if classes else element.tag
        if 'tagName' in script:
            return element.tag
        raise NotImplementedError(script)


class FakeRequest:
    def __init__(self, url: str, method: str = 'GET', resource_type: str = 'fetch', post_data: Any = None,
                 post_data_is_json: bool = True):
        self.url = url
        self.method = method
        self.resource_type = resource_type
        self._post_data = post_data
        self._post_data_is_json = post_data_is_json

    @property
    def post_data_json(self) -> Any:
        if not self._post_data_is_json:
            raise ValueError('POST data is not a valid JSON object')
        return self._post_data


class FakeResponse:
    def __init__(self, request: FakeRequest, status: int = 200, body: Any = None, body_is_json: bool = True,
                 delay: float = 0):
        self.request = request
        self.url = request.url
        self.status = status
        self._body = body
        self._body_is_json = body_is_json
        self._delay = delay

    async def json(self) -> Any:
        if self._delay:
            await asyncio.sleep(self._delay)
        if not self._body_is_json:
            raise ValueError('Unexpected token < in JSON at position 0')
        return self._body


class FakePage:
    """In-memory stand-in for a Playwright page."""

    def __init__(
        self,
        selectors: Optional[Dict[str, List[FakeElement]]] = None,
        evaluate_handler: Optional[Callable[[str, Any], Any]] = None,
        url: str = 'https://example.com/login',
        title: str = 'Login',
        goto_errors: Optional[List[Optional[Exception]]] = None,
    ):
        self.selectors = selectors or {}
        self.evaluate_handler = evaluate_handler
        self.url = url
        self._title = title
        self.goto_errors = list(goto_errors or [])
        self.goto_calls: List[Dict[str, Any]] = []
        self.waits: List[int] = []
        self.evaluate_calls: List[str] = []
        self.listeners: Dict[str, List[Callable]] = {}

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(_match(self.selectors, selector))

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        self.evaluate_calls.append(script)
        if self.evaluate_handler is not None:
            return self.evaluate_handler(script, arg)
        if 'scrollHeight' in script:
            return 1000
        return None

    async def goto(self, url: str, wait_until: str = 'load', timeout: int = 30000):
        self.goto_calls.append({'url': url, 'wait_until': wait_until, 'timeout': timeout})
        if self.goto_errors:
            error = self.goto_errors.pop(0)
            if error is not None:
                raise error
        self.url = url

    async def wait_for_timeout(self, timeout: int) -> None:
        self.waits.append(timeout)

    async def screenshot(self, full_page: bool = False, type: str = 'png') -> bytes:
        return b'\x89PNG'

    async def title(self) -> str:
        return self._title

    def on(self, event: str, handler: Callable) -> None:
        self.listeners.setdefault(event, []).append(handler)

    def remove_listener(self, event: str, handler: Callable) -> None:
        self.listeners.get(event, []).remove(handler)

    def emit(self, event: str, payload: Any) -> None:
        for handler in list(self.listeners.get(event, [])):
            handler(payload)


def _ancestry(*levels):
    return [
        {'tag': tag, 'id': element_id, 'index': index, 'sameTagCount': same}
        for tag, element_id, index, same in levels
    ]


BODY = [('body', None, 1, 1), ('html', None, 1, 1)]
IN_FORM = [('form', 'login-form', 1, 1)] + BODY


def login_page_nodes() -> List[Dict[str, Any]]:
    """Raw snapshot of a page holding one login form."""
    return [
        {
            'key': 0,
            'parentKey': None,
            'tagName': 'FORM',
            'classes': [],
            'attributes': {'id': 'login-form'},
            'styles': {'display': 'block'},
            'cursor': 'auto',
            'text': 'Sign in',
            'ancestry': _ancestry(*IN_FORM),
        },
        {
            'key': 1,
            'parentKey': 0,
            'tagName': 'INPUT',
            'classes': ['field'],
            'attributes': {'type': 'email', 'name': 'email', 'class': 'field'},
            'styles': {},
            'cursor': 'text',
            'text': '',
            'ancestry': _ancestry(('input', None, 1, 2), *IN_FORM),
        },
        {
            'key': 2,
            'parentKey': 0,
            'tagName': 'INPUT',
            'classes': ['field'],
            'attributes': {'type': 'password', 'name': 'password', 'class': 'field'},
            'styles': {},
            'cursor': 'text',
            'text': '',
            'ancestry': _ancestry(('input', None, 2, 2), *IN_FORM),
        },
        {
            'key': 3,
            'parentKey': 0,
            'tagName': 'BUTTON',
            'classes': ['btn', 'btn-primary'],
            'attributes': {'type': 'submit', 'class': 'btn btn-primary'},
            'styles': {},
            'cursor': 'pointer',
            'text': 'Sign in',
            'ancestry': _ancestry(('button', None, 1, 1), *IN_FORM),
        },
    ]


def login_page_handler(counts: Optional[Dict[str, int]] = None):
    """evaluate() handler answering the snapshot and selector-count payloads."""
    counts = counts if counts is not None else {'input.field': 2, 'button.btn.btn-primary': 1}

    def handler(script: str, arg: Any) -> Any:
        if 'buildSnapshot' in script:
            return login_page_nodes()
        if arg is not None:
            return [counts.get(selector, 0) for selector in arg]
        if 'scrollHeight' in script:
            return 1000
        return None

    return handler


@pytest.fixture
def login_nodes() -> List[Dict[str, Any]]:
    return login_page_nodes()


@pytest.fixture
def login_page() -> FakePage:
    return FakePage(evaluate_handler=login_page_handler())
