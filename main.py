import logging

from fastapi import FastAPI, Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from installer import CoreInstaller
from component_loader import ComponentLoader
from config import settings
from models import (
    CoreInstallRequest,
    CoreInstallResponse,
    InstallationStatusResponse,
    HealthCheckResponse
)

app = FastAPI(
    title="NimbusSDK Core Installer",
    description="Local provisioning service for the proprietary NimbusSDK core",
    version="1.0.0"
)

# API Endpoints
@app.post("/api/core/install", response_model=CoreInstallResponse)
def install_core(
    request: CoreInstallRequest,
    db: Session = Depends(get_db)
):
    """
    Install the gated core with a license key.

    This endpoint:
    1. Validates the key with the license server (offline format check as fallback)
    2. Exchanges it for a repository access token
    3. Stores the token as a git credential
    4. Installs the core with pip and verifies it
    """
    installer = CoreInstaller(db)
    result = installer.run(request.apiKey, force=request.force)

    if not result.success:
        raise HTTPException(status_code=400, detail=result.message)

    return {
        "success": result.success,
        "state": result.state.value,
        "message": result.message,
        "history": [state.value for state in result.history],
        "trust": result.trust.value if result.trust else None,
        "licenseType": result.license_type
    }

@app.get("/api/core/status", response_model=InstallationStatusResponse)
def get_core_status():
    """
    Report whether the core is installed and loaded.

    Installation presence is queried fresh on every request.
    """
    loader = ComponentLoader()
    installed = loader.check_installation()
    result = loader.bootstrap()
    return {
        "installed": installed,
        "loaded": result.loaded,
        "status": result.status,
        "version": result.version,
        "capabilities": result.capabilities,
        "message": result.error
    }

@app.get("/health", response_model=HealthCheckResponse)
def health_check():
    return {
        "status": "healthy",
        "service": "nimbus-core-installer",
        "version": "1.0.0",
        "coreInstalled": ComponentLoader().check_installation()
    }

if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="127.0.0.1", port=8000)
