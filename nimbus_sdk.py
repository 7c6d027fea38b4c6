"""
Public entry points of the NimbusSDK wrapper.

    import nimbus_sdk
    nimbus_sdk.install_core("nbci_live_your_key_here")

    nimbus_sdk.bootstrap()
    model = nimbus_sdk.load_model(nimbus_sdk.RxLDAModel, "motor_imagery_4class")

Nothing is loaded on import; the hosting application calls ``bootstrap()``
once at startup. Core capabilities resolve from the process-wide registry
only after a successful bootstrap.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from component_loader import CORE_CAPABILITIES, ComponentLoader, process_registry as registry
from database import SessionLocal, init_db
from config import settings
from installer import CoreInstaller
from models import BootstrapResult

logger = logging.getLogger(__name__)

__all__ = ["install_core", "check_installation", "bootstrap", "capability", "registry"]

_loader = ComponentLoader(registry)

def install_core(api_key: str, force: bool = False) -> bool:
    """
    Install the proprietary core using a license key.

    Returns True when the core is installed, False with a logged reason otherwise.
    """
    db = _open_audit_session()
    try:
        result = CoreInstaller(db, loader=_loader).run(api_key, force=force)
    finally:
        if db is not None:
            db.close()

    if not result.success:
        logger.error("%s\nPlease contact hello@nimbusbci.com for support.", result.message)
    return result.success

def _open_audit_session():
    if not settings.RECORD_ATTEMPTS:
        return None
    try:
        init_db()
    except (OSError, SQLAlchemyError) as e:
        logger.warning("Attempt log unavailable: %s", e)
        return None
    return SessionLocal()

def bootstrap() -> BootstrapResult:
    return _loader.bootstrap()

def check_installation() -> bool:
    """Check if the core is installed and loads. The answer is recomputed every call."""
    if not _loader.check_installation():
        logger.info("%s is not installed", settings.CORE_DISTRIBUTION)
        return False

    result = _loader.bootstrap()
    if result.loaded:
        logger.info("%s %s is installed and ready", settings.CORE_DISTRIBUTION, result.version)
        return True

    if result.status == "deferred":
        logger.debug("%s is installed but not importable yet: %s", settings.CORE_DISTRIBUTION, result.error)
        return False

    logger.warning("%s is installed but failed to load: %s", settings.CORE_DISTRIBUTION, result.error)
    return False

def capability(name: str):
    return registry.get(name)

def __getattr__(name):
    if name in CORE_CAPABILITIES and name in registry:
        return registry.get(name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
