import pytest

from conftest import FakePage, FakeRequest, FakeResponse
from webpom_agent.network.api_recorder import APICallRecorder, is_api_response


@pytest.mark.parametrize(
    'url,resource_type,expected',
    [
        ('https://example.com/users', 'fetch', True),
        ('https://example.com/users', 'xhr', True),
        ('https://example.com/api/users', 'document', True),
        ('https://example.com/graphql', 'other', True),
        ('https://example.com/logo.png', 'image', False),
        ('https://example.com/app.js', 'script', False),
    ],
)
def test_is_api_response(url, resource_type, expected):
    assert is_api_response(url, resource_type) is expected


class TestAPICallRecorder:
    @pytest.mark.asyncio
    async def test_records_only_api_traffic(self):
        page = FakePage()
        recorder = APICallRecorder()
        recorder.attach(page)

        page.emit('response', FakeResponse(FakeRequest('https://example.com/logo.png', resource_type='image')))
        page.emit(
            'response',
            FakeResponse(FakeRequest('https://example.com/api/users', method='get'), body=[{'id': 1}]),
        )
        calls = await recorder.snapshot()

        assert len(calls) == 1
        assert calls[0].method == 'GET'
        assert calls[0].status == 200
        assert calls[0].response_body == [{'id': 1}]
        assert calls[0].request_body is None

    @pytest.mark.asyncio
    async def test_non_json_bodies_are_absent(self):
        page = FakePage()
        recorder = APICallRecorder()
        recorder.attach(page)

        request = FakeRequest('https://example.com/api/upload', method='POST', post_data_is_json=False)
        page.emit('response', FakeResponse(request, status=500, body_is_json=False))
        call = (await recorder.snapshot())[0]

        assert call.request_body is None
        assert call.response_body is None
        assert call.to_dict() == {'method': 'POST', 'url': 'https://example.com/api/upload', 'status': 500}

    @pytest.mark.asyncio
    async def test_request_body_recorded(self):
        page = FakePage()
        recorder = APICallRecorder()
        recorder.attach(page)

        request = FakeRequest('https://example.com/api/login', method='POST', post_data={'user': 'a'})
        page.emit('response', FakeResponse(request, body={'ok': True}))
        call = (await recorder.snapshot())[0]

        assert call.request_body == {'user': 'a'}
        assert call.response_body == {'ok': True}

    @pytest.mark.asyncio
    async def test_arrival_order_kept(self):
        page = FakePage()
        recorder = APICallRecorder()
        recorder.attach(page)

        # the first body takes longer to read than the second
        page.emit('response', FakeResponse(FakeRequest('https://example.com/api/slow'), body={'n': 1}, delay=0.05))
        page.emit('response', FakeResponse(FakeRequest('https://example.com/api/fast'), body={'n': 2}))
        calls = await recorder.snapshot()

        assert [call.url for call in calls] == ['https://example.com/api/slow', 'https://example.com/api/fast']
        assert [call.response_body for call in calls] == [{'n': 1}, {'n': 2}]

    @pytest.mark.asyncio
    async def test_detach_stops_recording(self):
        page = FakePage()
        recorder = APICallRecorder()
        recorder.attach(page)
        recorder.detach()

        page.emit('response', FakeResponse(FakeRequest('https://example.com/api/users')))
        assert await recorder.snapshot() == []
        assert page.listeners['response'] == []

    @pytest.mark.asyncio
    async def test_slow_body_read_is_abandoned(self):
        page = FakePage()
        recorder = APICallRecorder(body_timeout=0.05)
        recorder.attach(page)

        page.emit('response', FakeResponse(FakeRequest('https://example.com/api/stream'), body={'n': 1}, delay=30))
        page.emit('response', FakeResponse(FakeRequest('https://example.com/api/users'), body=[{'id': 1}]))
        calls = await recorder.snapshot()

        assert [call.url for call in calls] == ['https://example.com/api/stream', 'https://example.com/api/users']
        assert calls[0].response_body is None
        assert calls[1].response_body == [{'id': 1}]
