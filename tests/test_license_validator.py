import json

import httpx
import pytest

from license_validator import LicenseValidator, is_well_formed, mask_key
from models import TrustLevel


def make_validator(server):
    return LicenseValidator(transport=server.transport)


def test_validate_online_success(license_server):
    info = make_validator(license_server).validate("nbci_validkey")

    assert info.valid is True
    assert info.trust == TrustLevel.AUTHORITATIVE
    assert info.license_type == "research"
    assert info.features == {"streaming", "calibration"}

    request = license_server.calls[0]
    assert request.method == "POST"
    assert str(request.url) == "https://api.nimbus.test/auth/validate"
    assert json.loads(request.content) == {"api_key": "nbci_validkey"}


@pytest.mark.parametrize("status", [401, 403, 404, 500])
def test_validate_non_200_is_invalid(license_server, status):
    license_server.validate_status = status
    info = make_validator(license_server).validate("nbci_" + "x" * 20)

    assert info.valid is False
    assert info.trust is None


@pytest.mark.parametrize("offline", [True, False])
def test_bad_prefix_rejected_without_network(license_server, offline):
    license_server.offline = offline
    validator = make_validator(license_server)

    info = validator.validate("badkey")

    assert info.valid is False
    assert license_server.calls == []
    assert validator.last_result == "failed"


def test_offline_well_formed_key_is_degraded(license_server):
    license_server.offline = True
    validator = make_validator(license_server)

    info = validator.validate("nbci_" + "x" * 20)

    assert info.valid is True
    assert info.license_type == "unknown"
    assert info.trust == TrustLevel.DEGRADED
    assert info.features == set()
    assert validator.last_result == "offline"


def test_offline_short_key_is_invalid(license_server):
    license_server.offline = True
    info = make_validator(license_server).validate("nbci_short")

    assert info.valid is False
    assert len(license_server.calls) == 1


def test_timeout_uses_offline_fallback():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    info = LicenseValidator(transport=httpx.MockTransport(handler)).validate("nbci_" + "y" * 30)

    assert info.valid is True
    assert info.trust == TrustLevel.DEGRADED


def test_unreadable_body_falls_back_to_format_check():
    def handler(request):
        return httpx.Response(200, content=b"<html>gateway</html>")

    validator = LicenseValidator(transport=httpx.MockTransport(handler))

    assert validator.validate("nbci_" + "z" * 20).trust == TrustLevel.DEGRADED
    assert validator.validate("nbci_tooshort").valid is False


def test_default_timeout_is_thirty_seconds():
    assert LicenseValidator().timeout == 30


def test_is_well_formed():
    assert is_well_formed("nbci_" + "a" * 16)
    assert not is_well_formed("nbci_" + "a" * 15)
    assert not is_well_formed("live_" + "a" * 30)


def test_mask_key_hides_secret():
    masked = mask_key("nbci_live_abcdefgh1234")
    assert masked == "nbci_****1234"
    assert "abcdefgh" not in masked
    assert mask_key("nbci_x") == "nbci_****"
