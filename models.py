from enum import Enum
from typing import Optional, List, Set

from pydantic import BaseModel, Field

class TrustLevel(str, Enum):
    AUTHORITATIVE = "authoritative"
    DEGRADED = "degraded"

class InstallState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    EXCHANGING = "exchanging"
    CONFIGURING_CREDENTIALS = "configuring_credentials"
    INSTALLING = "installing"
    VERIFYING = "verifying"
    DONE = "done"
    FAILED = "failed"

class LicenseInfo(BaseModel):
    valid: bool
    license_type: Optional[str] = None
    features: Set[str] = Field(default_factory=set)
    trust: Optional[TrustLevel] = None

class InstallResult(BaseModel):
    success: bool
    state: InstallState
    message: str
    history: List[InstallState] = Field(default_factory=list)
    trust: Optional[TrustLevel] = None
    license_type: Optional[str] = None

class BootstrapResult(BaseModel):
    status: str  # loaded, not_installed, deferred, load_failed
    version: Optional[str] = None
    capabilities: List[str] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def loaded(self) -> bool:
        return self.status == "loaded"

# HTTP API models

class CoreInstallRequest(BaseModel):
    apiKey: str
    force: bool = False

class CoreInstallResponse(BaseModel):
    success: bool
    state: str
    message: str
    history: List[str] = []
    trust: Optional[str] = None
    licenseType: Optional[str] = None

class InstallationStatusResponse(BaseModel):
    installed: bool
    loaded: bool
    status: str
    version: Optional[str] = None
    capabilities: List[str] = []
    message: Optional[str] = None

class HealthCheckResponse(BaseModel):
    status: str
    service: str
    version: str
    coreInstalled: bool
