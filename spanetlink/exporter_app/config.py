from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import SettingsConfigDict, BaseSettings

from spanetlink.clients.cloud import ApiConfig


class ExporterSettings(BaseSettings):
    username: str = Field("", validation_alias="SPANET_USERNAME")
    password_hash: str = Field("", validation_alias="SPANET_PASSWORD_HASH")
    spa_name: str = Field("", validation_alias="SPANET_SPA_NAME")

    # Unset values fall back to the packaged api_config.json.
    api_url: Optional[str] = Field(None, validation_alias="SPANET_API_URL")
    api_key: Optional[str] = Field(None, validation_alias="SPANET_API_KEY")
    api_timeout: Optional[float] = Field(None, validation_alias="SPANET_API_TIMEOUT")

    listen_address: str = Field(":9150", validation_alias="LISTEN_ADDRESS")
    metrics_path: str = Field("/metrics", validation_alias="METRICS_PATH")

    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    log_ring_size: int = Field(200, validation_alias="LOG_RING_SIZE")

    device_connect_timeout: float = Field(5.0, validation_alias="DEVICE_CONNECT_TIMEOUT")
    device_io_timeout: float = Field(5.0, validation_alias="DEVICE_IO_TIMEOUT")
    mapping_path: Optional[str] = Field(None, validation_alias="MAPPING_PATH")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", populate_by_name=True, extra="ignore")

    def api_config(self) -> ApiConfig:
        default = ApiConfig.default()
        return ApiConfig(
            api_url=self.api_url or default.api_url,
            api_key=self.api_key or default.api_key,
            timeout=self.api_timeout if self.api_timeout is not None else default.timeout,
        )

    def listen_host_port(self) -> tuple[str, int]:
        host, sep, port = self.listen_address.rpartition(":")
        if not sep:
            raise ValueError(f"listen address must look like 'host:port' or ':port', got {self.listen_address!r}")
        return host or "0.0.0.0", int(port)


@lru_cache
def get_settings() -> ExporterSettings:
    return ExporterSettings()
