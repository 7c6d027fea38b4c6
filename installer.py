import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from component_loader import ComponentLoader
from config import settings
from credential_store import CredentialStore
from database import LocalInstallationAttempt, LocalLicenseValidationAttempt
from errors import CredentialWriteFailed, InvalidLicense, MalformedKey, NimbusError, VerificationFailed
from license_validator import LicenseValidator, mask_key
from models import InstallResult, InstallState, LicenseInfo, TrustLevel
from package_manager import PipPackageManager
from token_exchanger import TokenExchanger

logger = logging.getLogger(__name__)

class CoreInstaller:
    """
    Drives the provisioning of the gated core:

        idle -> validating -> exchanging -> configuring_credentials
             -> installing -> verifying -> done | failed

    Failures are returned as an ``InstallResult``, never raised. Once the
    credential write has started, any failure removes the credential file again.
    Callers must not run two installations against the same files at once.
    """

    def __init__(self, db: Optional[Session] = None,
                 validator: Optional[LicenseValidator] = None,
                 exchanger=None,
                 store: Optional[CredentialStore] = None,
                 package_manager=None,
                 loader: Optional[ComponentLoader] = None):
        self.db = db
        self.validator = validator or LicenseValidator()
        self.exchanger = exchanger or TokenExchanger()
        self.store = store or CredentialStore()
        self.package_manager = package_manager or PipPackageManager()
        self.loader = loader or ComponentLoader()

        self.state = InstallState.IDLE
        self.history: List[InstallState] = []
        self._credentials_written = False
        self._license: Optional[LicenseInfo] = None

    def install(self, api_key: str, force: bool = False) -> bool:
        return self.run(api_key, force=force).success

    def run(self, api_key: str, force: bool = False) -> InstallResult:
        self.history = []
        self._credentials_written = False
        self._license = None
        started_at = datetime.utcnow()
        self._transition(InstallState.IDLE)

        if not force and self.loader.check_installation():
            logger.info("%s already installed. Use force=True to reinstall.", settings.CORE_DISTRIBUTION)
            result = self._finish(InstallState.DONE, f"{settings.CORE_DISTRIBUTION} already installed")
        else:
            try:
                self._provision(api_key, force)
                result = self._finish(InstallState.DONE, "Installation complete")
            except NimbusError as e:
                result = self._fail(e)
            except Exception as e:
                logger.exception("Unexpected error during %s", self.state.value)
                result = self._fail(e)

        self._record_installation(api_key, force, result, started_at)
        return result

    def _provision(self, api_key: str, force: bool):
        self._transition(InstallState.VALIDATING)
        self._license = self.validator.validate(api_key)
        self._record_validation(api_key)
        if not self._license.valid:
            if getattr(self.validator, "last_error", None) == "malformed key":
                raise MalformedKey(f"Malformed license key. Keys start with '{settings.KEY_PREFIX}'.")
            raise InvalidLicense("Invalid license key. Please check your key at https://nimbusbci.com/dashboard")
        if self._license.trust == TrustLevel.DEGRADED:
            logger.warning("License accepted offline by key format only; it was not confirmed by the server")
        logger.info("License valid: %s", self._license.license_type)

        self._transition(InstallState.EXCHANGING)
        token = self.exchanger.exchange(api_key)
        logger.info("Repository access granted")

        self._transition(InstallState.CONFIGURING_CREDENTIALS)
        self._credentials_written = True
        self.store.persist_token(token)

        self._transition(InstallState.INSTALLING)
        self.package_manager.install(settings.core_requirement, settings.CORE_INDEX_URL or None, force)

        self._transition(InstallState.VERIFYING)
        if not self.loader.check_installation():
            raise VerificationFailed("Installation completed but package not found. Try restarting Python.")

        try:
            self.store.persist_key(api_key)
        except CredentialWriteFailed as e:
            logger.warning("Failed to save API key: %s", e)

        # Installed and verified; no cleanup past this point
        try:
            bootstrap = self.loader.bootstrap()
            logger.info("Core bootstrap after install: %s", bootstrap.status)
        except Exception as e:
            logger.warning("Core installed but bootstrap failed: %s", e)

    def _transition(self, state: InstallState):
        logger.debug("Installer state %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def _finish(self, state: InstallState, message: str) -> InstallResult:
        self._transition(state)
        return InstallResult(
            success=state == InstallState.DONE,
            state=state,
            message=message,
            history=list(self.history),
            trust=self._license.trust if self._license else None,
            license_type=self._license.license_type if self._license else None
        )

    def _fail(self, error: Exception) -> InstallResult:
        failed_during = self.state
        if self._credentials_written:
            self.store.cleanup()
        logger.error("Installation failed during %s: %s", failed_during.value, error)
        return self._finish(InstallState.FAILED, f"Installation failed during {failed_during.value}: {error}")

    def _record_validation(self, api_key: str):
        self._record(LocalLicenseValidationAttempt(
            license_key=mask_key(api_key),
            result=getattr(self.validator, "last_result", None) or ("success" if self._license.valid else "failed"),
            license_type=self._license.license_type,
            error_message=getattr(self.validator, "last_error", None)
        ))

    def _record_installation(self, api_key: str, force: bool, result: InstallResult, started_at: datetime):
        self._record(LocalInstallationAttempt(
            license_key=mask_key(api_key),
            forced=force,
            final_state=result.state.value,
            success=result.success,
            message=result.message,
            started_at=started_at,
            finished_at=datetime.utcnow()
        ))

    def _record(self, entry):
        if self.db is None or not settings.RECORD_ATTEMPTS:
            return
        try:
            self.db.add(entry)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning("Could not record %s: %s", entry.__tablename__, e)
