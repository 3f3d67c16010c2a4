# src/odata_proxy/config.py
from dataclasses import dataclass
from typing import Optional, Tuple
import os

from dotenv import find_dotenv, load_dotenv
from fastapi import Request

DEFAULT_PORT = 3000
DEFAULT_UPSTREAM_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class ProxyConfig:
    # Upstream JSON source
    upstream_url: Optional[str] = None
    upstream_user: Optional[str] = None
    upstream_password: Optional[str] = None
    upstream_timeout: float = DEFAULT_UPSTREAM_TIMEOUT_SECONDS

    # Inbound Basic Auth for /odata/*
    odata_user: Optional[str] = None
    odata_password: Optional[str] = None

    port: int = DEFAULT_PORT
    strict: bool = False
    log_level: str = "INFO"

    @property
    def upstream_auth(self) -> Optional[Tuple[str, str]]:
        if self.upstream_user is None and self.upstream_password is None:
            return None
        return (self.upstream_user or "", self.upstream_password or "")

    @property
    def auth_enabled(self) -> bool:
        return bool(self.odata_user or self.odata_password)


def _env(name: str) -> Optional[str]:
    # Empty variables count as unset
    value = os.getenv(name)
    return value if value else None


def load_config(dotenv: bool = True) -> ProxyConfig:
    """
    Build the process configuration from the environment.

    A .env file in the working directory is read first; real environment
    variables take precedence over it.
    """
    if dotenv:
        load_dotenv(find_dotenv(usecwd=True), override=False)

    return ProxyConfig(
        upstream_url=_env("SOURCE_API"),
        upstream_user=_env("SOURCE_USER"),
        upstream_password=_env("SOURCE_PASS"),
        upstream_timeout=float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", str(DEFAULT_UPSTREAM_TIMEOUT_SECONDS))),
        odata_user=_env("ODATA_USER"),
        odata_password=_env("ODATA_PASS"),
        port=int(os.getenv("PORT", str(DEFAULT_PORT))),
        strict=os.getenv("ODATA_STRICT", "false").lower() == "true",
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def get_config(request: Request) -> ProxyConfig:
    """FastAPI dependency: the configuration the app was created with."""
    return request.app.state.config
