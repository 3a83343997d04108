"""Per-family probe configuration.

Each monitored service family is described by a ServiceFamily record; the
prober runs the same request/classify flow for every family and only reads
these values. Adding an integration means adding a record to FAMILIES.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from app.schemas.health import RecipeStatus, RunningStatus, ServiceType
from app.utils.parser import Parser


# (degraded message or None, recipe statuses to attach)
SuccessVerdict = Tuple[Optional[str], List[RecipeStatus]]


@dataclass(frozen=True)
class ServiceFamily:
    service_type: ServiceType
    display_name: str
    default_endpoint: str
    timeout: float
    # wording used in the 401/403 message, e.g. "token" or "API key"
    credential_label: str
    build_auth_headers: Callable[[Dict[str, Any]], Dict[str, str]]
    missing_credentials: Callable[[Dict[str, Any]], Optional[str]]
    # only families that inspect the 2xx body set this
    classify_success: Optional[Callable[[Any, List[str]], SuccessVerdict]] = None

    def resolve_endpoint(self, endpoint: Optional[str]) -> str:
        return endpoint or self.default_endpoint


def _token(credentials: Dict[str, Any]) -> Optional[str]:
    return credentials.get("apiToken") or credentials.get("token")


def _api_key(credentials: Dict[str, Any]) -> Optional[str]:
    return credentials.get("apiKey") or credentials.get("key")


def _hibob_headers(credentials: Dict[str, Any]) -> Dict[str, str]:
    return {"Authorization": str(_token(credentials)), "Content-Type": "application/json"}


def _keypay_headers(credentials: Dict[str, Any]) -> Dict[str, str]:
    return {"Api-Key": str(_api_key(credentials)), "Content-Type": "application/json"}


def _workato_headers(credentials: Dict[str, Any]) -> Dict[str, str]:
    return {
        "X-USER-TOKEN": str(_token(credentials)),
        "X-USER-EMAIL": str(credentials.get("email") or ""),
        "Content-Type": "application/json",
    }


def _require_token(credentials: Dict[str, Any]) -> Optional[str]:
    if not _token(credentials):
        return "Missing API token in credentials"
    return None


def _require_api_key(credentials: Dict[str, Any]) -> Optional[str]:
    if not _api_key(credentials):
        return "Missing API key in credentials"
    return None


def _workato_recipes(body: Any, recipe_ids: List[str]) -> SuccessVerdict:
    statuses = Parser(body).parse_workato_recipes(recipe_ids)
    stopped = [s.recipe_id for s in statuses if s.running_status == RunningStatus.STOPPED]
    if stopped:
        return f"Some Workato recipes are stopped: {', '.join(stopped)}", statuses
    return None, statuses


HIBOB = ServiceFamily(
    service_type=ServiceType.HIBOB,
    display_name="HiBob",
    default_endpoint="https://api.hibob.com/v1/company",
    timeout=10.0,
    credential_label="token",
    build_auth_headers=_hibob_headers,
    missing_credentials=_require_token,
)

KEYPAY = ServiceFamily(
    service_type=ServiceType.KEYPAY,
    display_name="KeyPay",
    default_endpoint="https://api.keypay.com.au/api/v2/business",
    timeout=10.0,
    credential_label="API key",
    build_auth_headers=_keypay_headers,
    missing_credentials=_require_api_key,
)

# Workato responds slower than the others
WORKATO = ServiceFamily(
    service_type=ServiceType.WORKATO,
    display_name="Workato",
    default_endpoint="https://www.workato.com/api/recipes",
    timeout=15.0,
    credential_label="Workato token",
    build_auth_headers=_workato_headers,
    missing_credentials=_require_token,
    classify_success=_workato_recipes,
)

FAMILIES: Dict[ServiceType, ServiceFamily] = {
    f.service_type: f for f in (HIBOB, KEYPAY, WORKATO)
}


def get_family(service_type) -> ServiceFamily:
    """Look up a family by enum member or raw string (raises ValueError if unknown)."""
    return FAMILIES[ServiceType(service_type)]
