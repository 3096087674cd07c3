"""
Unit tests for EventCatalogClientImpl

Every failure of the catalog maps to a typed error; transport is mocked with
httpx.MockTransport.
"""

from collections.abc import Callable

import httpx
import pytest

from ticket_inventory.service.ticketing.domain.ticketing_error import (
    CatalogUnavailableError,
    EventNotFoundError,
)
from ticket_inventory.service.ticketing.driven_adapter.catalog.event_catalog_client_impl import (
    EventCatalogClientImpl,
)


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> EventCatalogClientImpl:
    return EventCatalogClientImpl(
        base_url='http://catalog.test', timeout_seconds=1.0, transport=httpx.MockTransport(handler)
    )


@pytest.mark.unit
class TestEventCatalogClient:
    @pytest.mark.asyncio
    async def test_wrapped_event_document(self) -> None:
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(request.url.path)
            return httpx.Response(
                200,
                json={
                    'event': {
                        'title': 'Jazz Night',
                        'status': 'published',
                        'startDate': '2030-06-01T20:00:00Z',
                        'endDate': '2030-06-01T23:00:00Z',
                        'venue': {'name': 'Blue Room'},
                    }
                },
            )

        client = _client(handler)
        summary = await client.get_event(event_id='evt-1')
        await client.aclose()

        assert requested == ['/api/events/evt-1']
        assert summary.title == 'Jazz Night'
        assert summary.is_published
        assert summary.venue == {'name': 'Blue Room'}

    @pytest.mark.asyncio
    async def test_bare_event_document(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={'title': 'Draft', 'status': 'draft'}))

        summary = await client.get_event(event_id='evt-1')

        assert summary.title == 'Draft'
        assert not summary.is_published

    @pytest.mark.asyncio
    async def test_not_found(self) -> None:
        client = _client(lambda request: httpx.Response(404, json={'error': 'not found'}))

        with pytest.raises(EventNotFoundError) as exc_info:
            await client.get_event(event_id='evt-1')
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        'response',
        [
            httpx.Response(500, text='boom'),
            httpx.Response(200, text='<html>'),
            httpx.Response(200, json=['not', 'an', 'object']),
        ],
    )
    async def test_bad_answers(self, response: httpx.Response) -> None:
        client = _client(lambda request: response)

        with pytest.raises(CatalogUnavailableError) as exc_info:
            await client.get_event(event_id='evt-1')
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    @pytest.mark.parametrize('error_type', [httpx.ReadTimeout, httpx.ConnectError])
    async def test_transport_failures(self, error_type: type[httpx.TransportError]) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise error_type('catalog down', request=request)

        client = _client(handler)

        with pytest.raises(CatalogUnavailableError):
            await client.get_event(event_id='evt-1')
