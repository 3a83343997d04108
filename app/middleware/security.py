from urllib.parse import urlsplit

from validators import url as validate_url
from validators.utils import ValidationError

from app.schemas.health import ServiceType


class Security:
    """Input validator for monitor configuration.

    Behavior:
    - Service types must be one of the supported families (hibob, keypay, workato).
    - Endpoint overrides must be absolute http(s) URLs without embedded credentials;
      an empty endpoint is allowed and means "use the family default".
    - Uses validators.url for format validation.
    """

    def is_valid_service_type(self, service_type: str) -> bool:
        if not service_type or not isinstance(service_type, str):
            return False
        return service_type in {s.value for s in ServiceType}

    def is_valid_endpoint(self, endpoint) -> bool:
        if endpoint is None or endpoint == "":
            return True
        if not isinstance(endpoint, str):
            return False

        raw = endpoint.strip()
        try:
            parts = urlsplit(raw)
        except ValueError:
            return False

        if parts.scheme not in ("http", "https"):
            return False

        # Reject credentials (user:pass@host); those belong in the credential bundle
        if parts.username or parts.password:
            return False

        try:
            return validate_url(raw) is True
        except (ValidationError, UnicodeError):
            return False
