from pathlib import Path

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # License Server Configuration
    API_BASE: str = "https://api.nimbusbci.com"
    API_TIMEOUT: int = 30

    # Gated component
    GITHUB_ORG: str = "nimbusbci"
    GIT_HOST: str = "github.com"
    CORE_DISTRIBUTION: str = "nimbus-sdk-core"
    CORE_MODULE: str = "nimbus_sdk_core"
    CORE_REQUIREMENT: str = ""  # Derived from GIT_HOST/GITHUB_ORG when empty
    CORE_INDEX_URL: str = ""  # Optional private package index

    # License key format
    KEY_PREFIX: str = "nbci_"
    KEY_MIN_LENGTH: int = 20

    # Local storage
    CREDENTIALS_PATH: str = "~/.git-credentials"
    CONFIG_DIR: str = "~/.nimbus"
    DATABASE_URL: str = ""  # sqlite inside CONFIG_DIR when empty
    RECORD_ATTEMPTS: bool = True
    CONFIGURE_GIT_HELPER: bool = True

    class Config:
        env_file = ".env"
        env_prefix = "NIMBUS_"

    @property
    def core_requirement(self) -> str:
        if self.CORE_REQUIREMENT:
            return self.CORE_REQUIREMENT
        return f"git+https://{self.GIT_HOST}/{self.GITHUB_ORG}/{self.CORE_DISTRIBUTION}.git"

    @property
    def credentials_path(self) -> Path:
        return Path(self.CREDENTIALS_PATH).expanduser()

    @property
    def config_dir(self) -> Path:
        return Path(self.CONFIG_DIR).expanduser()

    @property
    def config_file(self) -> Path:
        return self.config_dir / "credentials.toml"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"sqlite:///{(self.config_dir / 'nimbus.db').as_posix()}"

settings = Settings()
