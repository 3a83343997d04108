import requests
import time
from typing import Any, Callable, Iterable, List, Optional

from app.utils.log import app_logger
from app.utils.parser import Parser
from app.clients.base_http_client import BaseHTTPClient, sanitize_error
from app.clients.service_families import ServiceFamily, get_family
from app.schemas.health import HealthStatus, ProbeResult, ServiceType


class ProberService:
    """Health prober for third-party integrations.

    - Sends exactly one GET to the family endpoint (caller override or default),
      with the family auth headers and timeout. No retries, no caching.
    - Classifies the outcome into healthy / degraded / down / unknown.
    - `probe` never raises: missing credentials, transport errors and error
      statuses all come back as a ProbeResult.
    """

    def __init__(
        self,
        http_client: Optional[BaseHTTPClient] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        # max_retries=0: a probe is a single request
        self.http_client = http_client or BaseHTTPClient(max_retries=0)
        self._clock = clock or time.monotonic

    def _elapsed_ms(self, started: float) -> int:
        return max(0, int(round((self._clock() - started) * 1000)))

    def probe(
        self,
        service_type: ServiceType,
        endpoint: Optional[str],
        credentials: Any,
        recipe_ids: Optional[Iterable[Any]] = None,
    ) -> ProbeResult:
        started = self._clock()

        try:
            family = get_family(service_type)
        except (KeyError, ValueError):
            return ProbeResult.unknown(f"Unsupported service type: {service_type}")

        creds = Parser(credentials).parse_credentials()
        missing = family.missing_credentials(creds)
        if missing:
            app_logger.debug("probe.missing_credentials", service_type=family.service_type.value)
            return ProbeResult.unknown(missing)

        url = family.resolve_endpoint(endpoint)
        wanted: List[str] = [str(r) for r in (recipe_ids or [])]

        try:
            response = self.http_client.get(url, headers=family.build_auth_headers(creds), timeout=family.timeout)
            result = self._classify_response(family, response, wanted, self._elapsed_ms(started))
        except requests.exceptions.Timeout:
            result = ProbeResult.down(
                self._elapsed_ms(started), f"Request timeout - {family.display_name} API not responding"
            )
        except requests.exceptions.ConnectionError:
            result = ProbeResult.down(
                self._elapsed_ms(started), f"Cannot connect to {family.display_name} API - DNS or network error"
            )
        except Exception as e:
            # anything else (bad URL, undecodable body, ...) still yields a result
            result = ProbeResult.down(self._elapsed_ms(started), sanitize_error(e) or "Unknown error occurred")

        app_logger.debug(
            "probe.result",
            service_type=family.service_type.value,
            url=url,
            status=result.status.value,
            response_time_ms=result.response_time_ms,
            error=result.error_message,
        )
        return result

    def _classify_response(
        self,
        family: ServiceFamily,
        response: requests.Response,
        recipe_ids: List[str],
        elapsed_ms: int,
    ) -> ProbeResult:
        code = response.status_code

        if code in (401, 403):
            return ProbeResult.down(elapsed_ms, f"Authentication failed - invalid or expired {family.credential_label}")

        if code >= 500:
            return ProbeResult.down(elapsed_ms, f"{family.display_name} API server error ({code})")

        if code == 429:
            return ProbeResult.degraded(elapsed_ms, "Rate limit exceeded")

        if 200 <= code < 300:
            if family.classify_success is None or not recipe_ids:
                return ProbeResult.healthy(elapsed_ms)
            degraded_message, recipe_statuses = family.classify_success(response.json(), recipe_ids)
            if degraded_message:
                return ProbeResult.degraded(elapsed_ms, degraded_message, recipe_statuses)
            return ProbeResult.healthy(elapsed_ms, recipe_statuses)

        return ProbeResult.degraded(elapsed_ms, f"HTTP {code}: {response.reason or ''}".rstrip())


prober = ProberService()


def probe(
    service_type: ServiceType,
    endpoint: Optional[str],
    credentials: Any,
    recipe_ids: Optional[Iterable[Any]] = None,
) -> ProbeResult:
    """Probe one integration with the module-level prober."""
    return prober.probe(service_type, endpoint, credentials, recipe_ids)
