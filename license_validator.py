import logging
from typing import Optional

import httpx

from config import settings
from models import LicenseInfo, TrustLevel

logger = logging.getLogger(__name__)

def mask_key(license_key: str) -> str:
    """Keep the prefix and the last four characters of a key for logs."""
    prefix = settings.KEY_PREFIX if license_key.startswith(settings.KEY_PREFIX) else ""
    if len(license_key) <= len(prefix) + 4:
        return f"{prefix}****"
    return f"{prefix}****{license_key[-4:]}"

def is_well_formed(license_key: str) -> bool:
    return license_key.startswith(settings.KEY_PREFIX) and len(license_key) > settings.KEY_MIN_LENGTH

class LicenseValidator:
    def __init__(self, api_base: Optional[str] = None, timeout: Optional[float] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        self.api_base = api_base or settings.API_BASE
        self.timeout = timeout or settings.API_TIMEOUT
        self.transport = transport
        # success, failed or offline; read by the installer for the audit log
        self.last_result: Optional[str] = None
        self.last_error: Optional[str] = None

    def validate(self, license_key: str) -> LicenseInfo:
        """
        Validate a license key with the license server.

        Keys without the expected prefix are rejected without a network call.
        When the server cannot be reached, a well-formed key is accepted with
        degraded trust and an unknown license type.
        """
        self.last_error = None

        if not license_key.startswith(settings.KEY_PREFIX):
            self.last_result = "failed"
            self.last_error = "malformed key"
            return LicenseInfo(valid=False)

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(
                    f"{self.api_base}/auth/validate",
                    json={"api_key": license_key},
                    headers={"Content-Type": "application/json"}
                )

                if response.status_code != 200:
                    self.last_result = "failed"
                    self.last_error = f"status {response.status_code}"
                    return LicenseInfo(valid=False)

                data = response.json()
                self.last_result = "success"
                return LicenseInfo(
                    valid=True,
                    license_type=data.get("license_type"),
                    features=set(data.get("features") or []),
                    trust=TrustLevel.AUTHORITATIVE
                )

        except (httpx.ConnectError, httpx.TimeoutException) as e:
            logger.warning("Cannot reach license server - check internet connection: %s", e)
            self.last_error = str(e)
        except (httpx.HTTPError, ValueError, AttributeError, TypeError) as e:
            logger.warning("License validation failed: %s", e)
            self.last_error = str(e)

        return self._offline_check(license_key)

    def _offline_check(self, license_key: str) -> LicenseInfo:
        if is_well_formed(license_key):
            logger.warning("Using offline mode - API validation failed but key format is valid")
            self.last_result = "offline"
            return LicenseInfo(
                valid=True,
                license_type="unknown",
                features=set(),
                trust=TrustLevel.DEGRADED
            )

        self.last_result = "failed"
        return LicenseInfo(valid=False)
