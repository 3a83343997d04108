import threading
import time
from dataclasses import replace
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
import requests

from app.clients.base_http_client import BaseHTTPClient
from app.clients.service_families import FAMILIES
from app.schemas.health import HealthStatus, RunningStatus, ServiceType
from app.services.prober_service import ProberService

from conftest import FakeSession, make_response


def _prober(outcomes, clock):
    session = FakeSession(outcomes, clock=clock)
    return ProberService(http_client=BaseHTTPClient(session=session), clock=clock), session


HIBOB_CREDS = {"apiToken": "hb-token"}
KEYPAY_CREDS = {"apiKey": "kp-key"}
WORKATO_CREDS = {"token": "wk-token", "email": "ops@example.com"}


@pytest.mark.parametrize("service_type,credentials,expected", [
    (ServiceType.HIBOB, {}, "Missing API token in credentials"),
    (ServiceType.HIBOB, {"apiKey": "wrong-field"}, "Missing API token in credentials"),
    (ServiceType.KEYPAY, {"apiToken": "wrong-field"}, "Missing API key in credentials"),
    (ServiceType.WORKATO, None, "Missing API token in credentials"),
    (ServiceType.WORKATO, "not json", "Missing API token in credentials"),
])
def test_missing_credentials_is_unknown_without_network(prober, fake_session, service_type, credentials, expected):
    result = prober.probe(service_type, None, credentials)

    assert result.status == HealthStatus.UNKNOWN
    assert result.response_time_ms is None
    assert result.error_message == expected
    assert fake_session.calls == []


def test_healthy_on_200_uses_default_endpoint_and_headers(prober, fake_session):
    result = prober.probe(ServiceType.HIBOB, None, HIBOB_CREDS)

    assert result.status == HealthStatus.HEALTHY
    assert result.error_message is None
    assert result.response_time_ms == 50
    assert result.recipe_statuses is None

    assert len(fake_session.calls) == 1
    call = fake_session.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "https://api.hibob.com/v1/company"
    assert call["headers"]["Authorization"] == "hb-token"
    assert call["headers"]["Content-Type"] == "application/json"
    assert call["timeout"] == (10.0, 10.0)


def test_keypay_headers_endpoint_override_and_json_string_credentials(clock):
    prober, session = _prober([make_response(204)], clock)

    result = prober.probe("keypay", "https://api.yourpayroll.co.uk/api/v2/business", '{"key": "kp-key"}')

    assert result.status == HealthStatus.HEALTHY
    call = session.calls[0]
    assert call["url"] == "https://api.yourpayroll.co.uk/api/v2/business"
    assert call["headers"]["Api-Key"] == "kp-key"
    assert call["timeout"] == (10.0, 10.0)


def test_workato_headers_and_timeout(clock):
    prober, session = _prober([make_response(200, [])], clock)

    result = prober.probe(ServiceType.WORKATO, None, {"apiToken": "wk-token"})

    assert result.status == HealthStatus.HEALTHY
    call = session.calls[0]
    assert call["url"] == "https://www.workato.com/api/recipes"
    assert call["headers"]["X-USER-TOKEN"] == "wk-token"
    assert call["headers"]["X-USER-EMAIL"] == ""
    assert call["timeout"] == (15.0, 15.0)


@pytest.mark.parametrize("code", [401, 403])
def test_auth_failure_is_down(clock, code):
    prober, _ = _prober([make_response(code, reason="Unauthorized")], clock)

    result = prober.probe(ServiceType.HIBOB, None, HIBOB_CREDS)

    assert result.status == HealthStatus.DOWN
    assert "Authentication failed" in result.error_message
    assert result.response_time_ms is not None


def test_keypay_auth_message_names_api_key(clock):
    prober, _ = _prober([make_response(401)], clock)

    result = prober.probe(ServiceType.KEYPAY, None, KEYPAY_CREDS)

    assert result.error_message == "Authentication failed - invalid or expired API key"


def test_server_error_is_down_with_status_code(clock):
    prober, _ = _prober([make_response(503, reason="Service Unavailable")], clock)

    result = prober.probe(ServiceType.KEYPAY, None, KEYPAY_CREDS)

    assert result.status == HealthStatus.DOWN
    assert "503" in result.error_message
    assert result.error_message == "KeyPay API server error (503)"


def test_rate_limited_is_degraded(clock):
    prober, session = _prober([make_response(429, reason="Too Many Requests")], clock)

    result = prober.probe(ServiceType.HIBOB, None, HIBOB_CREDS)

    assert result.status == HealthStatus.DEGRADED
    assert "Rate limit" in result.error_message
    # no retry on 429
    assert len(session.calls) == 1


def test_other_status_is_degraded_with_code_and_reason(clock):
    prober, _ = _prober([make_response(404, reason="Not Found")], clock)

    result = prober.probe(ServiceType.HIBOB, None, HIBOB_CREDS)

    assert result.status == HealthStatus.DEGRADED
    assert result.error_message == "HTTP 404: Not Found"


def test_redirect_status_is_not_healthy(clock):
    prober, _ = _prober([make_response(304, reason="Not Modified")], clock)

    result = prober.probe(ServiceType.HIBOB, None, HIBOB_CREDS)

    assert result.status == HealthStatus.DEGRADED


@pytest.mark.parametrize("service_type,credentials,budget", [
    (ServiceType.HIBOB, HIBOB_CREDS, 10.0),
    (ServiceType.KEYPAY, KEYPAY_CREDS, 10.0),
    (ServiceType.WORKATO, WORKATO_CREDS, 15.0),
])
def test_timeout_is_down_and_takes_the_budget(clock, service_type, credentials, budget):
    prober, session = _prober([requests.exceptions.ReadTimeout("read timed out")], clock)

    result = prober.probe(service_type, None, credentials)

    assert result.status == HealthStatus.DOWN
    assert "timeout" in result.error_message.lower()
    assert result.response_time_ms >= budget * 1000
    assert session.calls[0]["timeout"] == (budget, budget)


def test_connect_timeout_is_classified_as_timeout(clock):
    prober, _ = _prober([requests.exceptions.ConnectTimeout("connect timed out")], clock)

    result = prober.probe(ServiceType.HIBOB, None, HIBOB_CREDS)

    assert result.error_message == "Request timeout - HiBob API not responding"


def test_connection_error_is_down_with_network_message(clock):
    prober, session = _prober([requests.exceptions.ConnectionError("Name or service not known")], clock)

    result = prober.probe(ServiceType.WORKATO, None, WORKATO_CREDS)

    assert result.status == HealthStatus.DOWN
    assert result.error_message == "Cannot connect to Workato API - DNS or network error"
    assert len(session.calls) == 1


def test_other_transport_error_uses_error_text(clock):
    prober, _ = _prober([requests.exceptions.InvalidURL("Invalid URL 'nope' at 0xdeadbeef")], clock)

    result = prober.probe(ServiceType.HIBOB, "nope", HIBOB_CREDS)

    assert result.status == HealthStatus.DOWN
    assert result.error_message == "Invalid URL 'nope' at <ptr>"


def test_unexpected_exception_never_escapes(clock):
    prober, _ = _prober([RuntimeError("")], clock)

    result = prober.probe(ServiceType.HIBOB, None, HIBOB_CREDS)

    assert result.status == HealthStatus.DOWN
    assert result.error_message == "Unknown error occurred"


def test_unsupported_service_type_is_unknown(prober, fake_session):
    result = prober.probe("adp", None, {"token": "x"})

    assert result.status == HealthStatus.UNKNOWN
    assert result.response_time_ms is None
    assert fake_session.calls == []


def test_workato_stopped_recipe_degrades(clock):
    body = {"items": [
        {"id": 11, "running": True, "last_run_at": "2026-10-16T08:00:00Z"},
        {"id": 12, "running": False, "last_run_at": None},
        {"id": 13, "running": False},
    ]}
    prober, _ = _prober([make_response(200, body)], clock)

    result = prober.probe(ServiceType.WORKATO, None, WORKATO_CREDS, ["12"])

    assert result.status == HealthStatus.DEGRADED
    assert "stopped" in result.error_message
    assert len(result.recipe_statuses) == 1
    assert result.recipe_statuses[0].recipe_id == "12"
    assert result.recipe_statuses[0].running_status == RunningStatus.STOPPED
    assert result.recipe_statuses[0].last_run_at is None


def test_workato_running_recipes_stay_healthy_and_are_attached(clock):
    body = [
        {"id": 11, "running": True, "last_run_at": "2026-10-16T08:00:00Z"},
        {"id": 12, "running": False},
    ]
    prober, _ = _prober([make_response(200, body)], clock)

    result = prober.probe(ServiceType.WORKATO, None, WORKATO_CREDS, [11])

    assert result.status == HealthStatus.HEALTHY
    assert result.error_message is None
    assert [r.recipe_id for r in result.recipe_statuses] == ["11"]
    assert result.recipe_statuses[0].running_status == RunningStatus.RUNNING
    assert result.recipe_statuses[0].last_run_at == "2026-10-16T08:00:00Z"


def test_workato_without_matching_recipes_has_no_statuses(clock):
    prober, _ = _prober([make_response(200, [{"id": 1, "running": False}])], clock)

    result = prober.probe(ServiceType.WORKATO, None, WORKATO_CREDS, ["999"])

    assert result.status == HealthStatus.HEALTHY
    assert result.recipe_statuses is None


def test_workato_undecodable_body_with_filter_is_down(clock):
    response = make_response(200)
    response._content = b"<html>maintenance</html>"
    prober, _ = _prober([response], clock)

    result = prober.probe(ServiceType.WORKATO, None, WORKATO_CREDS, ["1"])

    assert result.status == HealthStatus.DOWN
    assert result.error_message


def test_recipe_filter_is_ignored_for_other_families(clock):
    response = make_response(200)
    response._content = b"not json"
    prober, _ = _prober([response], clock)

    result = prober.probe(ServiceType.HIBOB, None, HIBOB_CREDS, ["1"])

    assert result.status == HealthStatus.HEALTHY


def test_probe_is_repeatable_for_identical_responses(clock):
    prober, _ = _prober([make_response(429), make_response(429)], clock)

    first = prober.probe(ServiceType.KEYPAY, None, KEYPAY_CREDS)
    second = prober.probe(ServiceType.KEYPAY, None, KEYPAY_CREDS)

    assert (first.status, first.error_message) == (second.status, second.error_message)


@pytest.mark.parametrize("outcome", [
    make_response(200),
    make_response(401),
    make_response(429),
    make_response(500),
    make_response(418),
    requests.exceptions.Timeout(),
    requests.exceptions.ConnectionError(),
])
def test_response_time_always_set_once_a_request_was_sent(clock, outcome):
    prober, _ = _prober([outcome], clock)

    result = prober.probe(ServiceType.HIBOB, None, HIBOB_CREDS)

    assert result.status != HealthStatus.UNKNOWN
    assert result.response_time_ms is not None and result.response_time_ms >= 0
    assert (result.error_message is None) == (result.status == HealthStatus.HEALTHY)


@pytest.fixture
def local_server():
    """Starts local HTTP servers whose response is sent with configurable delays."""
    servers = []

    def start(body: bytes = b"{}", status: int = 200, header_delay: float = 0.0, byte_delay: float = 0.0) -> str:
        class Handler(BaseHTTPRequestHandler):
            def do_GET(self):
                try:
                    time.sleep(header_delay)
                    self.send_response(status)
                    self.send_header("Content-Type", "application/json")
                    self.send_header("Content-Length", str(len(body)))
                    self.end_headers()
                    for i in range(len(body)):
                        self.wfile.write(body[i:i + 1])
                        self.wfile.flush()
                        time.sleep(byte_delay)
                except (BrokenPipeError, ConnectionResetError):
                    # client gave up
                    pass

            def log_message(self, *args):
                pass

        server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
        threading.Thread(target=server.serve_forever, daemon=True).start()
        servers.append(server)
        return f"http://127.0.0.1:{server.server_address[1]}/api"

    yield start

    for server in servers:
        server.shutdown()
        server.server_close()


@pytest.fixture
def short_budget(monkeypatch):
    for service_type, family in list(FAMILIES.items()):
        monkeypatch.setitem(FAMILIES, service_type, replace(family, timeout=1.0))
    return 1.0


def test_trickling_body_is_cut_off_at_the_budget(local_server, short_budget):
    url = local_server(body=b"x" * 30, byte_delay=0.1)

    started = time.monotonic()
    result = ProberService().probe(ServiceType.HIBOB, url, HIBOB_CREDS)
    wall = time.monotonic() - started

    assert result.status == HealthStatus.DOWN
    assert result.error_message == "Request timeout - HiBob API not responding"
    assert short_budget * 1000 <= result.response_time_ms < short_budget * 1000 + 700
    assert wall < short_budget + 0.7


def test_headers_later_than_the_budget_time_out(local_server, short_budget):
    url = local_server(header_delay=short_budget + 1.0)

    result = ProberService().probe(ServiceType.KEYPAY, url, KEYPAY_CREDS)

    assert result.status == HealthStatus.DOWN
    assert result.error_message == "Request timeout - KeyPay API not responding"
    assert result.response_time_ms < (short_budget + 0.7) * 1000


def test_body_within_the_budget_is_read_over_the_wire(local_server, short_budget):
    url = local_server(body=b'{"items": [{"id": 7, "running": false}]}', byte_delay=0.001)

    result = ProberService().probe(ServiceType.WORKATO, url, WORKATO_CREDS, ["7"])

    assert result.status == HealthStatus.DEGRADED
    assert result.recipe_statuses[0].recipe_id == "7"
    assert result.recipe_statuses[0].running_status == RunningStatus.STOPPED
