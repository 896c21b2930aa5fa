"""
Unit tests for the blocking Datasource client.

The PagerDuty API is replaced by an httpx.MockTransport so that URLs, headers
and the number of calls can be asserted without any network access.
"""

import time

import httpx
import pytest

from pagerduty_adapter import (
    API_CALL_TIMEOUT_SECONDS,
    Datasource,
    DatasourceFailedError,
    ErrorCode,
    InternalError,
    PageRequest,
)
from tests.helpers.fake_api import TEST_TOKEN, FailingStream, SlowStream, teams_body


class TestRequestComposition:
    """Test the HTTP request sent to the datasource."""

    def test_first_page_url(self, mock_http, page_request):
        handler, client = mock_http(httpx.Response(200, content=teams_body(teams=[])))

        Datasource(client=client).get_page(page_request)

        assert handler.call_count == 1
        sent = handler.requests[0]
        assert sent.method == "GET"
        assert sent.url.scheme == "https"
        assert sent.url.host == "api.pagerduty.com"
        assert sent.url.path == "/teams"
        assert sent.url.params["limit"] == "10"
        assert sent.url.params["offset"] == ""

    def test_cursor_becomes_offset(self, mock_http):
        handler, client = mock_http(httpx.Response(200, content=teams_body(teams=[])))
        request = PageRequest(
            base_url="https://api.pagerduty.com",
            entity_external_id="teams",
            page_size=25,
            cursor="75",
            token=TEST_TOKEN,
        )

        Datasource(client=client).get_page(request)

        params = handler.requests[0].url.params
        assert params["limit"] == "25"
        assert params["offset"] == "75"

    def test_authorization_header(self, mock_http, page_request):
        handler, client = mock_http(httpx.Response(200, content=teams_body(teams=[])))

        Datasource(client=client).get_page(page_request)

        assert handler.requests[0].headers["Authorization"] == TEST_TOKEN

    def test_no_authorization_header_without_token(self, mock_http, page_request):
        handler, client = mock_http(httpx.Response(200, content=teams_body(teams=[])))
        request = PageRequest(
            base_url=page_request.base_url,
            entity_external_id="teams",
            page_size=10,
        )

        Datasource(client=client).get_page(request)

        assert "Authorization" not in handler.requests[0].headers

    @pytest.mark.parametrize("timeout,expected", [(120, API_CALL_TIMEOUT_SECONDS), (2, 2.0)])
    def test_call_timeout_is_capped(self, mock_http, page_request, timeout, expected):
        handler, client = mock_http(httpx.Response(200, content=teams_body(teams=[])))
        datasource = Datasource(timeout=timeout, client=client)

        datasource.get_page(page_request)

        assert datasource.call_timeout == expected
        sent_timeout = handler.requests[0].extensions["timeout"]
        assert sent_timeout["connect"] == expected
        assert sent_timeout["read"] == expected


class TestSuccessfulResponses:
    def test_decoded_page(self, mock_http, page_request, sample_teams):
        _, client = mock_http(
            httpx.Response(200, content=teams_body(teams=sample_teams, limit=10, more=True))
        )

        page = Datasource(client=client).get_page(page_request)

        assert page.status_code == 200
        assert page.objects == sample_teams
        assert page.next_cursor == "10"
        assert page.retry_after_header == ""

    def test_last_page(self, mock_http, page_request):
        _, client = mock_http(
            httpx.Response(200, content=teams_body(teams=[], limit=10, offset=90, more=False))
        )

        page = Datasource(client=client).get_page(page_request)

        assert page.objects == []
        assert page.next_cursor == ""
        assert page.has_more is False

    def test_malformed_body(self, mock_http, page_request):
        _, client = mock_http(httpx.Response(200, content=b"<html>oops</html>"))

        with pytest.raises(InternalError, match="Failed to unmarshal"):
            Datasource(client=client).get_page(page_request)


class TestNonSuccessResponses:
    """Non-200 statuses come back as pages, not errors."""

    def test_rate_limited(self, mock_http, page_request):
        handler, client = mock_http(
            httpx.Response(429, headers={"Retry-After": "30"}, json={"error": "slow down"})
        )

        page = Datasource(client=client).get_page(page_request)

        assert handler.call_count == 1
        assert page.status_code == 429
        assert page.retry_after_header == "30"
        assert page.objects == []
        assert page.next_cursor == ""

    @pytest.mark.parametrize("status_code", [201, 204, 301, 400, 401, 403, 404, 500, 503])
    def test_other_statuses(self, mock_http, page_request, status_code):
        _, client = mock_http(httpx.Response(status_code, content=b"not json"))

        page = Datasource(client=client).get_page(page_request)

        assert page.status_code == status_code
        assert page.retry_after_header == ""
        assert page.objects == []

    def test_non_success_body_is_not_read(self, mock_http, page_request):
        """A broken body on an error status does not turn into an exception."""
        _, client = mock_http(httpx.Response(503, stream=FailingStream()))

        page = Datasource(client=client).get_page(page_request)

        assert page.status_code == 503

    def test_no_retry(self, mock_http, page_request):
        handler, client = mock_http(httpx.Response(500), httpx.Response(200))

        Datasource(client=client).get_page(page_request)

        assert handler.call_count == 1


class TestFailures:
    def test_connection_error(self, mock_http, page_request):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        handler, client = mock_http(refuse)

        with pytest.raises(InternalError, match="connection refused") as exc_info:
            Datasource(client=client).get_page(page_request)

        assert exc_info.value.code is ErrorCode.INTERNAL
        assert handler.call_count == 1

    def test_timeout(self, mock_http, page_request):
        def stall(request):
            raise httpx.ReadTimeout("timed out", request=request)

        _, client = mock_http(stall)

        with pytest.raises(InternalError, match="timed out"):
            Datasource(client=client).get_page(page_request)

    def test_invalid_base_url(self, mock_http):
        handler, client = mock_http()
        request = PageRequest(
            base_url="https://api.pagerduty.com:abc", entity_external_id="teams", page_size=10
        )

        with pytest.raises(InternalError, match="Failed to create HTTP request"):
            Datasource(client=client).get_page(request)

        assert handler.call_count == 0

    def test_body_read_failure(self, mock_http, page_request):
        _, client = mock_http(httpx.Response(200, stream=FailingStream()))

        with pytest.raises(DatasourceFailedError, match="Failed to read response body") as exc_info:
            Datasource(client=client).get_page(page_request)

        assert exc_info.value.code is ErrorCode.DATASOURCE_FAILED
        assert isinstance(exc_info.value.original_error, httpx.ReadError)

    def test_trickling_body_stops_at_deadline(self, mock_http, page_request):
        """Every chunk arrives within the read timeout, but the call as a whole does not."""
        _, client = mock_http(httpx.Response(200, stream=SlowStream(chunks=40, delay=0.05)))
        datasource = Datasource(timeout=0.2, client=client)

        started = time.monotonic()
        with pytest.raises(DatasourceFailedError, match="timed out") as exc_info:
            datasource.get_page(page_request)
        elapsed = time.monotonic() - started

        assert exc_info.value.code is ErrorCode.DATASOURCE_FAILED
        assert elapsed < 1.0

    def test_late_status_line_is_internal(self, mock_http, page_request):
        def stall(request):
            time.sleep(0.3)
            return httpx.Response(200, content=teams_body(teams=[]))

        handler, client = mock_http(stall)

        with pytest.raises(InternalError, match="timed out") as exc_info:
            Datasource(timeout=0.1, client=client).get_page(page_request)

        assert exc_info.value.code is ErrorCode.INTERNAL
        assert handler.call_count == 1


class TestClientLifecycle:
    def test_owned_client_closed(self):
        datasource = Datasource(timeout=10)
        with datasource:
            pass
        assert datasource._client.is_closed

    def test_injected_client_left_open(self, mock_http):
        _, client = mock_http()
        with Datasource(client=client):
            pass
        assert not client.is_closed
