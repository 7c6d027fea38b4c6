import importlib
import logging
import threading
from importlib import metadata
from typing import Any, Callable, Dict, Iterable, List, Optional

from config import settings
from errors import LoadFailed
from models import BootstrapResult

logger = logging.getLogger(__name__)

# The public contract of the gated core. Only these names are ever published.
CORE_CAPABILITIES = (
    "authenticate",
    "predict_batch",
    "load_model",
    "save_model",
    "train_model",
    "calibrate_model",
    "BCIData",
    "BCIMetadata",
    "RxLDAModel",
    "RxGMMModel",
    "RxPolyaModel",
    "init_streaming",
    "process_chunk",
    "finalize_trial",
    "calculate_ITR",
    "assess_trial_quality",
)

INSTALL_GUIDANCE = """
NimbusSDK - Commercial BCI Toolkit

To use this package, you need to install the proprietary core:

    import nimbus_sdk
    nimbus_sdk.install_core("your-api-key")

Get your API key at: https://nimbusbci.com/dashboard
Documentation: https://docs.nimbusbci.com
"""

class ComponentRegistry:
    """Process-wide table of the core's capabilities, filled at most once."""

    def __init__(self):
        # Held by loaders from the populated check through populate()
        self.lock = threading.RLock()
        self._capabilities: Dict[str, Any] = {}
        self._populated = False
        self.version: Optional[str] = None

    @property
    def populated(self) -> bool:
        return self._populated

    def populate(self, capabilities: Dict[str, Any], version: Optional[str]):
        with self.lock:
            if self._populated:
                raise RuntimeError("Component registry is already populated")
            self._capabilities = dict(capabilities)
            self.version = version
            self._populated = True

    def get(self, name: str) -> Any:
        try:
            return self._capabilities[name]
        except KeyError:
            raise KeyError(f"Capability '{name}' is not available; is the core installed and loaded?") from None

    def names(self) -> List[str]:
        return sorted(self._capabilities)

    def __contains__(self, name: str) -> bool:
        return name in self._capabilities

process_registry = ComponentRegistry()

class ComponentLoader:
    def __init__(self, registry: Optional[ComponentRegistry] = None,
                 distribution: Optional[str] = None,
                 module_name: Optional[str] = None,
                 capabilities: Iterable[str] = CORE_CAPABILITIES,
                 importer: Callable[[str], Any] = importlib.import_module):
        self.registry = registry if registry is not None else process_registry
        self.distribution = distribution or settings.CORE_DISTRIBUTION
        self.module_name = module_name or settings.CORE_MODULE
        self.capabilities = tuple(capabilities)
        self.importer = importer

    def installed_version(self) -> Optional[str]:
        """
        Query the package metadata for the core distribution.

        Every call rescans ``sys.path``; nothing is cached between calls so an
        install made earlier in the same process is seen.
        """
        importlib.invalidate_caches()
        try:
            return metadata.version(self.distribution)
        except metadata.PackageNotFoundError:
            return None

    def check_installation(self) -> bool:
        return self.installed_version() is not None

    def bootstrap(self) -> BootstrapResult:
        version = self.installed_version()
        if version is None:
            logger.info(INSTALL_GUIDANCE)
            return BootstrapResult(status="not_installed")

        with self.registry.lock:
            return self._populate(version)

    def _populate(self, version: str) -> BootstrapResult:
        if self.registry.populated:
            return BootstrapResult(status="loaded", version=self.registry.version,
                                   capabilities=self.registry.names())

        try:
            module = self._load()
        except LoadFailed as e:
            if e.expected:
                logger.debug("Core not importable yet: %s", e)
                return BootstrapResult(status="deferred", version=version, error=str(e))
            logger.warning(
                "%s is installed but failed to load. The package may need to be rebuilt "
                "or there may be a version mismatch. Try reinstalling with "
                "install_core(YOUR_API_KEY, force=True). Error: %s",
                self.distribution, e
            )
            return BootstrapResult(status="load_failed", version=version, error=str(e))

        exported = {name: getattr(module, name) for name in self.capabilities if hasattr(module, name)}
        missing = [name for name in self.capabilities if name not in exported]
        if missing:
            logger.warning("%s %s does not provide: %s", self.distribution, version, ", ".join(missing))

        self.registry.populate(exported, version)
        logger.info("NimbusSDK ready (core version %s)", version)
        return BootstrapResult(status="loaded", version=version,
                               capabilities=self.registry.names(), missing=missing)

    def _load(self):
        try:
            return self.importer(self.module_name)
        except ModuleNotFoundError as e:
            if e.name == self.module_name:
                raise LoadFailed(f"{self.module_name} is not importable yet", expected=True) from e
            raise LoadFailed(repr(e)) from e
        except Exception as e:
            raise LoadFailed(repr(e)) from e
