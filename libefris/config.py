import json
import logging
import logging.config
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

import envtoml
from dotenv import load_dotenv


@dataclass(frozen=True)
class ClientConfig:
    """Defaults copied into every outgoing ``globalInfo``."""

    app_id: str
    version: str
    tin: str
    device_no: str
    device_mac: str = ""
    brn: str = ""
    taxpayer_id: str = ""
    user_name: str = ""
    longitude: str = ""
    latitude: str = ""
    agent_type: str = "0"


@dataclass(frozen=True)
class CryptoConfig:
    """Key material locations and the names the codec uses to refer to them."""

    session_key: str | None = None
    symmetric_key_ref: str = "session"
    private_key_file: Path | None = None
    private_key_password: str | None = None
    private_key_ref: str = "client"
    peer_public_key_file: Path | None = None
    peer_key_ref: str = "server"
    signature_hash: str = "sha1"


@dataclass(frozen=True)
class CodecConfig:
    """``dataDescription`` flags of outgoing envelopes."""

    code_type: str = "0"
    encrypt_code: str = "2"
    zip_code: str = "0"
    verify_signatures: bool = True


@dataclass(frozen=True)
class DictionaryConfig:
    """Local snapshots of the T115, T123 and T125 responses, if any."""

    system_dictionary_file: Path | None = None
    commodity_categories_file: Path | None = None
    excise_duties_file: Path | None = None


@dataclass(frozen=True)
class AppConfig:
    """Root container for all configuration sections."""

    client: ClientConfig
    crypto: CryptoConfig
    codec: CodecConfig
    dictionary: DictionaryConfig
    # Non-TOML configuration state
    env_config_file: Path = field(repr=False)


def _get_path_from_env(env_var: str, check_exists: bool = True) -> Path:
    """Get a path from an environment variable and validate it."""
    path_str = os.getenv(env_var)
    if not path_str:
        raise ValueError(f"Environment variable '{env_var}' must be set.")
    path = Path(path_str)
    if check_exists and not path.exists():
        raise FileNotFoundError(f"Path from '{env_var}' does not exist: {path}")
    return path


def _optional(value: Any) -> str | None:
    # TOML has no null; an empty string means unset
    if value is None or value == "":
        return None
    return str(value)


def _optional_path(value: Any) -> Path | None:
    text = _optional(value)
    return Path(text) if text else None


@lru_cache(maxsize=1)
def get_config(
    env: str = "localhost",
    config_file: str | Path | None = None,
    secrets_path: str | Path | None = None,
) -> AppConfig:
    """
    Load configuration from files and environment, returning a frozen AppConfig instance.

    Loading precedence:
    1. Arguments passed to this function.
    2. Environment variables (LIBEFRIS_CONFIG_FILE, LIBEFRIS_SECRETS_PATH and the
       variables referenced from the TOML file, e.g. LIBEFRIS_SESSION_KEY).
    3. Values from the TOML configuration file.

    The result is cached, so subsequent calls with the same arguments will not reload files.

    Args:
        env: The environment name (e.g., 'localhost', 'production').
        config_file: Path to the main TOML config file. Overrides LIBEFRIS_CONFIG_FILE env var.
        secrets_path: Path to the directory containing .env files. Overrides LIBEFRIS_SECRETS_PATH.

    Returns:
        An immutable, nested AppConfig object.
    """
    config_file_path = Path(config_file or _get_path_from_env("LIBEFRIS_CONFIG_FILE"))
    secrets_dir_path = Path(secrets_path or _get_path_from_env("LIBEFRIS_SECRETS_PATH"))
    env_file_path = secrets_dir_path / f".env.{env}"

    if not env_file_path.exists():
        raise FileNotFoundError(f"Environment file for env '{env}' not found at: {env_file_path}")

    # The .env file populates the environment for envtoml's ${VAR} expansion
    load_dotenv(env_file_path)

    with open(config_file_path, "rb") as f:
        toml_config = envtoml.load(f)

    # envtoml turns numeric-looking ${VAR} values (a TIN) into numbers
    client_cfg = ClientConfig(**{key: str(value) for key, value in toml_config["client"].items()})

    crypto = toml_config.get("crypto", {})
    crypto_cfg = CryptoConfig(
        session_key=_optional(crypto.get("session_key")),
        symmetric_key_ref=crypto.get("symmetric_key_ref", "session"),
        private_key_file=_optional_path(crypto.get("private_key_file")),
        private_key_password=_optional(crypto.get("private_key_password")),
        private_key_ref=crypto.get("private_key_ref", "client"),
        peer_public_key_file=_optional_path(crypto.get("peer_public_key_file")),
        peer_key_ref=crypto.get("peer_key_ref", "server"),
        signature_hash=crypto.get("signature_hash", "sha1"),
    )

    codec_cfg = CodecConfig(**toml_config.get("codec", {}))
    dictionary = toml_config.get("dictionary", {})
    dictionary_cfg = DictionaryConfig(
        system_dictionary_file=_optional_path(dictionary.get("system_dictionary_file")),
        commodity_categories_file=_optional_path(dictionary.get("commodity_categories_file")),
        excise_duties_file=_optional_path(dictionary.get("excise_duties_file")),
    )

    return AppConfig(
        client=client_cfg,
        crypto=crypto_cfg,
        codec=codec_cfg,
        dictionary=dictionary_cfg,
        env_config_file=env_file_path,
    )


def setup_logging(verbose: bool = False) -> None:
    """
    Setup logging for the CLI application.

    This should be called from the CLI entrypoint. It is not part of the
    core configuration loading to keep the library decoupled from logging setup.
    """
    logging_config_file = _get_path_from_env("LIBEFRIS_LOGGING_CONFIG_FILE")
    with open(logging_config_file) as f:
        logging_config: dict[str, Any] = json.load(f)

    if verbose:
        # For CLI, make console more verbose
        if "console" in logging_config.get("handlers", {}):
            logging_config["handlers"]["console"]["level"] = "DEBUG"
        if "libefris" in logging_config.get("loggers", {}):
            logging_config["loggers"]["libefris"]["level"] = "DEBUG"

    logging.config.dictConfig(logging_config)
