"""Configuration loading and validation.

Usage:
    config = load("sonar-config.yaml")       # raises ConfigError on bad config
    key    = config.resolve_resource("wcs")  # returns "ch.corren:wcs"
    server = config.server_config()          # ServerConfig for ConnectionFactory
    generate_template("sonar-config.yaml")   # writes example file to disk
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from sonar_connector.connection import EnvironmentPasswordStore, ServerConfig
from sonar_connector.proxy import EnvironmentProxyProvider, ProxyCredentials


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ConfigError(Exception):
    """Raised when the configuration is missing or invalid."""


# ---------------------------------------------------------------------------
# Config dataclass
# ---------------------------------------------------------------------------

@dataclass
class Config:
    url: str
    username: str = ""
    anonymous: bool = False
    password_env: str = "SONAR_PASSWORD"
    proxy_authentication: bool = False
    proxy_login: str = ""
    proxy_password_env: str = "SONAR_PROXY_PASSWORD"
    resources: dict[str, str] = field(default_factory=dict)

    def resolve_resource(self, name: str) -> str:
        """Return the resource key for a configured alias.

        Anything that is not an alias is taken to be a raw resource key.
        """
        return self.resources.get(name, name)

    def server_config(self) -> ServerConfig:
        return ServerConfig(
            host_url=self.url,
            anonymous=self.anonymous,
            username=self.username or None,
            password_store=EnvironmentPasswordStore(self.password_env),
        )

    def proxy_provider(self) -> EnvironmentProxyProvider:
        credentials = None
        if self.proxy_authentication:
            credentials = ProxyCredentials(
                login=self.proxy_login,
                password=os.environ.get(self.proxy_password_env, ""),
            )
        return EnvironmentProxyProvider(credentials)


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def load(config_path: str = "sonar-config.yaml") -> Config:
    """Load and validate configuration from a YAML file.

    Environment variables SONAR_URL and SONAR_USERNAME override file values.

    Raises:
        ConfigError: if the file is missing, malformed, or required fields
                     are absent.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(
            f"Config file not found: '{config_path}'\n"
            "Run `python -m sonar_connector init` to generate a template."
        )

    try:
        with path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse '{config_path}': {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"'{config_path}' must be a YAML mapping at the top level.")

    server = raw.get("server") or {}
    proxy = raw.get("proxy") or {}
    url      = os.environ.get("SONAR_URL")      or server.get("url",      "")
    username = os.environ.get("SONAR_USERNAME") or server.get("username", "")
    resources: dict[str, str] = raw.get("resources") or {}

    config = Config(
        url=str(url).strip(),
        username=str(username or "").strip(),
        anonymous=bool(server.get("anonymous", False)),
        password_env=server.get("password_env") or "SONAR_PASSWORD",
        proxy_authentication=bool(proxy.get("authentication", False)),
        proxy_login=str(proxy.get("login") or ""),
        proxy_password_env=proxy.get("password_env") or "SONAR_PROXY_PASSWORD",
        resources=resources,
    )
    _validate(config)
    return config


def _validate(config: Config) -> None:
    """Raise ConfigError if required fields are missing."""
    errors: list[str] = []

    if not config.url:
        errors.append(
            "  - 'server.url' is missing (or set the SONAR_URL environment variable)"
        )
    if not config.anonymous and not config.username:
        errors.append(
            "  - 'server.username' is missing (or set SONAR_USERNAME, "
            "or set 'server.anonymous: true')"
        )
    if config.proxy_authentication and not config.proxy_login:
        errors.append(
            "  - 'proxy.login' is required when 'proxy.authentication' is enabled"
        )
    if not isinstance(config.resources, dict):
        errors.append(
            "  - 'resources' must be a mapping of alias: resource key"
        )

    if errors:
        raise ConfigError("Invalid configuration:\n" + "\n".join(errors))


# ---------------------------------------------------------------------------
# Template generator (used by `init` command)
# ---------------------------------------------------------------------------

TEMPLATE = """\
server:
  url: "https://sonar.example.com"
  anonymous: false
  username: "admin"                 # login, or a user token with an empty password
  password_env: "SONAR_PASSWORD"    # the password is read from this variable

proxy:
  # The proxy address comes from HTTP_PROXY / HTTPS_PROXY / NO_PROXY.
  authentication: false
  login: ""
  password_env: "SONAR_PROXY_PASSWORD"

resources:
  # Human-readable alias: SonarQube resource key
  my-project: "com.example:my-project"
"""


def generate_template(output_path: str = "sonar-config.yaml") -> None:
    """Write a template sonar-config.yaml to *output_path*.

    Raises:
        ConfigError: if the file already exists (to avoid overwriting secrets).
    """
    path = Path(output_path)
    if path.exists():
        raise ConfigError(
            f"'{output_path}' already exists. Remove it first or choose a different path."
        )
    path.write_text(TEMPLATE, encoding="utf-8")
