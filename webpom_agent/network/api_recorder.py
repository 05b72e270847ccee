import asyncio
import logging
from typing import Any, List, Optional, Set

from playwright.async_api import Page, Request, Response

from webpom_agent.data.models import APICall
from webpom_agent.errors import BodyParseError

API_RESOURCE_TYPES = {"fetch", "xhr"}
API_URL_MARKERS = ("/api/", "/graphql")


def is_api_response(url: str, resource_type: str) -> bool:
    """Fetch/XHR traffic, or anything addressed to an API-looking path."""
    if resource_type in API_RESOURCE_TYPES:
        return True
    return any(marker in url for marker in API_URL_MARKERS)


def parse_request_body(request: Request) -> Any:
    try:
        return request.post_data_json
    except Exception as e:
        raise BodyParseError(f"request body of {request.url} is not JSON") from e


async def parse_response_body(response: Response) -> Any:
    try:
        return await response.json()
    except Exception as e:
        raise BodyParseError(f"response body of {response.url} is not JSON") from e


class APICallRecorder:
    """Accumulates API calls seen on a page for the lifetime of a session.

    Each matching response is recorded synchronously when it arrives, so
    the list keeps arrival order; bodies are filled in afterwards by a
    background task. Call :meth:`snapshot` to wait a bounded time for those
    tasks and get the final list.
    """

    def __init__(self, body_timeout: float = 0.5):
        self.body_timeout = body_timeout
        self._calls: List[APICall] = []
        self._pending: Set[asyncio.Future] = set()
        self._page: Optional[Page] = None

    def attach(self, page: Page) -> None:
        """Subscribe to the page's responses. Must happen before navigation."""
        self._page = page
        page.on("response", self._on_response)
        logging.debug("API call recorder attached")

    def detach(self) -> None:
        if self._page is not None:
            self._page.remove_listener("response", self._on_response)
            self._page = None

    @property
    def calls(self) -> List[APICall]:
        """The live list; it keeps growing while the page is open."""
        return self._calls

    def _on_response(self, response: Response) -> None:
        request = response.request
        if not is_api_response(request.url, request.resource_type):
            return

        call = APICall(method=request.method.upper(), url=request.url, status=response.status)
        self._calls.append(call)
        logging.debug(f"Recorded API call {call.method} {call.url} -> {call.status}")

        task = asyncio.ensure_future(self._fill_bodies(call, response))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _fill_bodies(self, call: APICall, response: Response) -> None:
        try:
            call.request_body = parse_request_body(response.request)
        except BodyParseError as e:
            logging.debug(str(e))
        try:
            call.response_body = await parse_response_body(response)
        except BodyParseError as e:
            logging.debug(str(e))

    async def settle(self) -> None:
        """Wait up to ``body_timeout`` seconds for pending body reads.

        Reads still running after that (long polls, streams) are cancelled;
        their calls stay recorded without the missing bodies.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.body_timeout
        while self._pending:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            await asyncio.wait(list(self._pending), timeout=remaining)

        leftover = list(self._pending)
        if leftover:
            logging.debug(f"Abandoning {len(leftover)} body reads still pending after {self.body_timeout}s")
            for task in leftover:
                task.cancel()
            await asyncio.gather(*leftover, return_exceptions=True)

    async def snapshot(self) -> List[APICall]:
        await self.settle()
        return list(self._calls)
