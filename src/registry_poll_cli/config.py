"""
CLI Configuration

Loads YAML configuration with optional named profiles.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from registry_poll.exceptions import ConfigurationError
from registry_poll.poller import TIME_BUDGET


# Default config locations
DEFAULT_CONFIG_PATHS = [
    Path.home() / ".regpoll" / "config.yaml",
    Path.home() / ".regpoll" / "config.yml",
    Path("/etc/regpoll/config.yaml"),
    Path("regpoll_config.yaml"),
]


@dataclass
class ServerConfig:
    """EPP server configuration."""
    host: Optional[str] = None
    port: int = 700
    timeout: int = 30
    verify_server: bool = True


@dataclass
class CertConfig:
    """Certificate configuration."""
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    ca_file: Optional[str] = None


@dataclass
class CredentialsConfig:
    """Credentials configuration."""
    client_id: Optional[str] = None
    password: Optional[str] = None


@dataclass
class PollConfig:
    """Poll loop defaults."""
    vendor: str = "epp"
    limit: int = 100
    time_budget: float = TIME_BUDGET


@dataclass
class CLIConfig:
    """Complete CLI configuration."""
    server: ServerConfig = field(default_factory=ServerConfig)
    certs: CertConfig = field(default_factory=CertConfig)
    credentials: CredentialsConfig = field(default_factory=CredentialsConfig)
    poll: PollConfig = field(default_factory=PollConfig)
    logging: Optional[str] = None  # Path to a logging dictConfig YAML
    profile: str = "default"

    @classmethod
    def from_dict(cls, data: dict, profile: str = "default") -> "CLIConfig":
        """
        Create config from dictionary.

        Args:
            data: Configuration dictionary
            profile: Profile name; falls back to the root section

        Raises:
            ConfigurationError: If a section has the wrong shape
        """
        if "profiles" in data and profile in (data["profiles"] or {}):
            profile_data = data["profiles"][profile]
        else:
            profile_data = data

        server_data = _section(profile_data, "server")
        certs_data = _section(profile_data, "certs")
        creds_data = _section(profile_data, "credentials")
        poll_data = _section(profile_data, "poll")

        try:
            server = ServerConfig(
                host=server_data.get("host"),
                port=int(server_data.get("port", 700)),
                timeout=int(server_data.get("timeout", 30)),
                verify_server=bool(server_data.get("verify_server", True)),
            )
            poll = PollConfig(
                vendor=str(poll_data.get("vendor", "epp")),
                limit=int(poll_data.get("limit", 100)),
                time_budget=float(poll_data.get("time_budget", TIME_BUDGET)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration value: {e}")

        if poll.limit < 1:
            raise ConfigurationError("poll.limit must be a positive integer")

        return cls(
            server=server,
            certs=CertConfig(
                cert_file=_expand_path(certs_data.get("cert_file")),
                key_file=_expand_path(certs_data.get("key_file")),
                ca_file=_expand_path(certs_data.get("ca_file")),
            ),
            credentials=CredentialsConfig(
                client_id=creds_data.get("client_id"),
                password=creds_data.get("password"),
            ),
            poll=poll,
            logging=_expand_path(profile_data.get("logging")),
            profile=profile,
        )

    @classmethod
    def from_file(cls, path: Path, profile: str = "default") -> "CLIConfig":
        """Load config from YAML file."""
        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {path}: {e}")

        if data is not None and not isinstance(data, dict):
            raise ConfigurationError(f"{path}: top level must be a mapping")
        return cls.from_dict(data or {}, profile)

    @classmethod
    def find_and_load(cls, profile: str = "default") -> Optional["CLIConfig"]:
        """Load the first config found in DEFAULT_CONFIG_PATHS, or None."""
        for path in DEFAULT_CONFIG_PATHS:
            if path.exists():
                return cls.from_file(path, profile)
        return None


def _section(data: dict, name: str) -> dict:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"'{name}' must be a mapping")
    return value


def _expand_path(path: Optional[str]) -> Optional[str]:
    """Expand environment variables and ~ in path."""
    if path is None:
        return None
    return os.path.expandvars(os.path.expanduser(path))


def create_sample_config() -> str:
    """Sample configuration YAML."""
    return """# Registry poll configuration
# Copy to ~/.regpoll/config.yaml

server:
  host: epp.registry.example
  port: 700
  timeout: 30
  verify_server: true

certs:
  cert_file: ~/.regpoll/client.crt
  key_file: ~/.regpoll/client.key
  ca_file: ~/.regpoll/ca.crt

credentials:
  client_id: your_registrar_id
  # password: your_password  # Optional, falls back to REGPOLL_PASSWORD or a prompt

poll:
  vendor: epp
  limit: 100
  time_budget: 60

# logging: ~/.regpoll/logging.yaml  # Optional logging.config.dictConfig file

profiles:
  ote:
    server:
      host: epp-ote.registry.example
    certs:
      cert_file: ~/.regpoll/ote/client.crt
      key_file: ~/.regpoll/ote/client.key
    credentials:
      client_id: ote_registrar
    poll:
      limit: 20
"""
