import tempfile

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SF_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    username: str = ""
    password: str = ""
    security_token: str = ""
    domain: str = "login"
    instance_url: str = ""
    session_id: str = ""
    api_version: str = "62.0"
    staging_root: str = tempfile.gettempdir()
    request_timeout: int = 120
    log_level: str = "INFO"

    @property
    def api_version_number(self) -> str:
        version = str(self.api_version).strip()
        return version[1:] if version.lower().startswith("v") else version


settings = Settings()
