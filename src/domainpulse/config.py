"""Configuration loading from YAML with environment overrides."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigurationError

DEFAULT_CONFIG_PATH = "config/config.yaml"

BACKENDS = ('doh', 'dns', 'registrar', 'namecheap')
RUN_MODES = ('chunked', 'whole')


def _text(section: Dict[str, Any], key: str, default: str = '') -> str:
    """String value; a blank YAML entry (None) means the default."""
    value = section.get(key)
    return default if value is None else str(value)


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"{name} must be a mapping")
    return section


def _number(section: Dict[str, Any], key: str, default, cast, where: str):
    value = section.get(key)
    if value is None:
        return default
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{where}.{key} must be a number (got {value!r})")


@dataclass
class CheckerConfig:
    backend: str = 'doh'
    resolver_url: str = 'https://cloudflare-dns.com/dns-query'
    timeout: float = 3.0
    max_concurrent: int = 50
    registrar_url: str = ''
    registrar_api_key: str = ''
    registrar_auth_header: str = 'X-API-Key'
    namecheap_api_user: str = ''
    namecheap_api_key: str = ''
    namecheap_username: str = ''
    namecheap_client_ip: str = '127.0.0.1'
    namecheap_sandbox: bool = False


@dataclass
class RunnerConfig:
    batch_size: int = 10
    mode: str = 'chunked'


@dataclass
class AIConfig:
    model: str = 'gemini-2.5-flash'
    api_key: str = ''
    base_url: str = 'https://generativelanguage.googleapis.com/v1beta'
    count: int = 30
    timeout: float = 60.0


@dataclass
class ServerConfig:
    host: str = '127.0.0.1'
    port: int = 8088


@dataclass
class Settings:
    """All runtime settings, grouped by section of the YAML file."""
    checker: CheckerConfig = field(default_factory=CheckerConfig)
    runner: RunnerConfig = field(default_factory=RunnerConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Settings':
        data = data or {}
        ch = _section(data, 'checker')
        rn = _section(data, 'runner')
        ai = _section(data, 'ai')
        sv = _section(data, 'server')

        settings = cls(
            checker=CheckerConfig(
                backend=_text(ch, 'backend', 'doh').lower(),
                resolver_url=_text(ch, 'resolver_url', CheckerConfig.resolver_url),
                timeout=_number(ch, 'timeout', 3.0, float, 'checker'),
                max_concurrent=_number(ch, 'max_concurrent', 50, int, 'checker'),
                registrar_url=_text(ch, 'registrar_url', ''),
                registrar_api_key=_text(ch, 'registrar_api_key', ''),
                registrar_auth_header=_text(ch, 'registrar_auth_header', 'X-API-Key'),
                namecheap_api_user=_text(ch, 'namecheap_api_user', ''),
                namecheap_api_key=_text(ch, 'namecheap_api_key', ''),
                namecheap_username=_text(ch, 'namecheap_username', ''),
                namecheap_client_ip=_text(ch, 'namecheap_client_ip', '127.0.0.1'),
                namecheap_sandbox=bool(ch.get('namecheap_sandbox', False)),
            ),
            runner=RunnerConfig(
                batch_size=_number(rn, 'batch_size', 10, int, 'runner'),
                mode=_text(rn, 'mode', 'chunked').lower(),
            ),
            ai=AIConfig(
                model=_text(ai, 'model', AIConfig.model),
                api_key=_text(ai, 'api_key', ''),
                base_url=_text(ai, 'base_url', AIConfig.base_url),
                count=_number(ai, 'count', 30, int, 'ai'),
                timeout=_number(ai, 'timeout', 60.0, float, 'ai'),
            ),
            server=ServerConfig(
                host=_text(sv, 'host', '127.0.0.1'),
                port=_number(sv, 'port', 8088, int, 'server'),
            ),
            logging=dict(_section(data, 'logging')),
        )
        settings.apply_env()
        settings.validate()
        return settings

    def apply_env(self, environ=None):
        """Fill secrets from the environment when the file leaves them blank."""
        env = os.environ if environ is None else environ
        self.ai.api_key = self.ai.api_key or env.get('GEMINI_API_KEY') or env.get('API_KEY', '')
        self.checker.registrar_api_key = self.checker.registrar_api_key or env.get('REGISTRAR_API_KEY', '')
        self.checker.namecheap_api_user = self.checker.namecheap_api_user or env.get('NAMECHEAP_API_USER', '')
        self.checker.namecheap_api_key = self.checker.namecheap_api_key or env.get('NAMECHEAP_API_KEY', '')
        if env.get('NAMECHEAP_CLIENT_IP'):
            self.checker.namecheap_client_ip = env['NAMECHEAP_CLIENT_IP']

    def validate(self):
        if self.checker.backend not in BACKENDS:
            raise ConfigurationError(
                f"checker.backend must be one of {', '.join(BACKENDS)} (got {self.checker.backend!r})"
            )
        if self.runner.mode not in RUN_MODES:
            raise ConfigurationError(
                f"runner.mode must be one of {', '.join(RUN_MODES)} (got {self.runner.mode!r})"
            )
        if self.runner.batch_size < 1:
            raise ConfigurationError("runner.batch_size must be at least 1")
        if self.checker.timeout <= 0:
            raise ConfigurationError("checker.timeout must be positive")
        if self.checker.max_concurrent < 1:
            raise ConfigurationError("checker.max_concurrent must be at least 1")


def load_config(config_path: Optional[str] = None) -> Settings:
    """Load configuration from YAML file, falling back to defaults."""
    path = config_path or os.environ.get('DOMAINPULSE_CONFIG', DEFAULT_CONFIG_PATH)
    config_file = Path(path)
    data = {}
    if config_file.exists():
        with open(config_file) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {config_file}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_file} must contain a mapping")
    return Settings.from_dict(data)
