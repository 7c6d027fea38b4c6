import os
import sys
import tempfile
import uuid
from pathlib import Path

import httpx
import pytest

_SANDBOX = Path(tempfile.mkdtemp(prefix="nimbus-tests-"))

# Must be set before any project module reads the settings
os.environ["NIMBUS_API_BASE"] = "https://api.nimbus.test"
os.environ["NIMBUS_CONFIG_DIR"] = str(_SANDBOX / "nimbus")
os.environ["NIMBUS_CREDENTIALS_PATH"] = str(_SANDBOX / "git-credentials")
os.environ["NIMBUS_DATABASE_URL"] = f"sqlite:///{(_SANDBOX / 'nimbus.db').as_posix()}"
os.environ["NIMBUS_CONFIGURE_GIT_HELPER"] = "false"

VALID_KEY = "nbci_validkey"
LONG_KEY = "nbci_" + "x" * 20

CORE_MODULE_SOURCE = '''
__version__ = "{version}"

class RxLDAModel:
    pass

def load_model(model_type, name):
    return (model_type, name)

def predict_batch(model, data):
    return [0 for _ in data]

def _private_helper():
    return None

unrelated_public_name = 42
'''


class FakeCore:
    """A core distribution that can be 'installed' onto sys.path on demand."""

    def __init__(self, root: Path, monkeypatch):
        suffix = uuid.uuid4().hex[:8]
        self.root = root
        self.monkeypatch = monkeypatch
        self.module_name = f"fake_core_{suffix}"
        self.distribution = f"fake-core-{suffix}"
        self.version = "1.2.0"

    def install(self, module_source: str = CORE_MODULE_SOURCE, with_module: bool = True):
        site = self.root / f"site-{uuid.uuid4().hex[:6]}"
        dist_info = site / f"{self.module_name}-{self.version}.dist-info"
        dist_info.mkdir(parents=True)
        (dist_info / "METADATA").write_text(
            f"Metadata-Version: 2.1\nName: {self.distribution}\nVersion: {self.version}\n",
            encoding="utf-8"
        )
        if with_module:
            (site / f"{self.module_name}.py").write_text(
                module_source.format(version=self.version), encoding="utf-8"
            )
        self.monkeypatch.syspath_prepend(str(site))
        self.monkeypatch.delitem(sys.modules, self.module_name, raising=False)
        return site


@pytest.fixture
def fake_core(tmp_path, monkeypatch):
    core = FakeCore(tmp_path, monkeypatch)
    yield core
    sys.modules.pop(core.module_name, None)


class LicenseServer:
    """In-process stand-in for the license server, served through httpx.MockTransport."""

    def __init__(self):
        self.calls = []
        self.validate_status = 200
        self.validate_body = {"license_type": "research", "features": ["streaming", "calibration"]}
        self.token_status = 200
        self.token_body = {"github_token": "ghs_testtoken"}
        self.offline = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if self.offline:
            raise httpx.ConnectError("Name or service not known", request=request)
        if request.url.path == "/auth/validate":
            return httpx.Response(self.validate_status, json=self.validate_body)
        if request.url.path == "/installer/github-token":
            return httpx.Response(self.token_status, json=self.token_body)
        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def license_server():
    return LicenseServer()


@pytest.fixture
def store_paths(tmp_path):
    return tmp_path / "home" / ".git-credentials", tmp_path / "home" / ".nimbus" / "credentials.toml"
