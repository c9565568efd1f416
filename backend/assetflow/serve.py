# backend/assetflow/serve.py
"""Run the AssetFlow API under uvicorn, configured from the environment."""

import logging
import os
from typing import Dict

import uvicorn

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_SSL_ENV = {
    "ssl_certfile": "SSL_CERTFILE",
    "ssl_keyfile": "SSL_KEYFILE",
    "ssl_ca_certs": "SSL_CA_CERTS",
    "ssl_keyfile_password": "SSL_KEYFILE_PASSWORD",
}


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes", "on"}


def _ssl_options() -> Dict[str, str]:
    return {option: os.environ[env] for option, env in _SSL_ENV.items() if os.getenv(env)}


def configure_logging(level: str) -> None:
    """Root logger for the audit engine; uvicorn keeps its own handlers."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def main() -> None:
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    log_level = os.getenv("LOG_LEVEL", "info")

    configure_logging(log_level)
    uvicorn.run(
        "assetflow.main:app",
        host=host,
        port=port,
        reload=_env_flag("RELOAD"),
        log_level=log_level,
        proxy_headers=True,
        forwarded_allow_ips=os.getenv("FORWARDED_ALLOW_IPS", "*"),
        **_ssl_options(),
    )


if __name__ == "__main__":
    main()
