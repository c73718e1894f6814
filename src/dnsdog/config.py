"""
Configuration management for dnsdog
"""

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union, get_args, get_origin

import yaml

from . import constants
from .exceptions import ConfigError
from .utils.network import get_iface


@dataclass
class CaptureConfig:
    """Packet capture configuration"""
    interface: Optional[str] = constants.DEFAULT_INTERFACE
    pcap_file: Optional[str] = None  # replay a capture file instead of going live
    snaplen: int = constants.DEFAULT_SNAPLEN
    promiscuous: bool = True
    timeout_ms: int = constants.DEFAULT_CAPTURE_TIMEOUT
    bpf_filter: str = constants.DEFAULT_BPF_FILTER
    dns_port: int = constants.DEFAULT_DNS_PORT


@dataclass
class StatsdConfig:
    """DogStatsD client configuration"""
    address: str = constants.DEFAULT_STATSD_ADDRESS
    namespace: Optional[str] = None
    constant_tags: List[str] = field(default_factory=list)
    buffered: bool = False


@dataclass
class WatcherConfig:
    """Query/reply correlation settings"""
    cache_ttl: float = constants.DEFAULT_CACHE_TTL  # seconds
    cleanup_interval: Optional[float] = constants.DEFAULT_CLEANUP_INTERVAL  # seconds, None disables the janitor
    include_query: bool = True  # tag question/answer metrics with the queried name


@dataclass
class DNSDogConfig:
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    statsd: StatsdConfig = field(default_factory=StatsdConfig)
    watcher: WatcherConfig = field(default_factory=WatcherConfig)
    cidr: Optional[str] = None  # pick the capture interface by network
    log_level: str = "INFO"
    log_file: Optional[str] = None


def _section(cls, data: Any, name: str):
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigError(f"'{name}' section must be a mapping")
    declared = {f.name: f.type for f in fields(cls)}
    unknown = set(data) - set(declared)
    if unknown:
        raise ConfigError(f"Unknown keys in '{name}': {', '.join(sorted(unknown))}")
    return cls(**{key: _coerce(f"{name}.{key}", declared[key], value) for key, value in data.items()})


def _coerce(key: str, declared: Any, value: Any) -> Any:
    """Convert a YAML value to the field's declared scalar type."""
    if get_origin(declared) is Union:
        if value is None:
            return None
        declared = next(t for t in get_args(declared) if t is not type(None))

    if get_origin(declared) is list:
        if not isinstance(value, list):
            raise ConfigError(f"'{key}' must be a list, got {value!r}")
        return [str(item) for item in value]

    if declared is bool:
        if not isinstance(value, bool):
            raise ConfigError(f"'{key}' must be true or false, got {value!r}")
        return value

    if declared in (int, float, str):
        if value is None or isinstance(value, (dict, list)):
            raise ConfigError(f"'{key}' must be {declared.__name__}, got {value!r}")
        if isinstance(value, bool) and declared is not str:
            raise ConfigError(f"'{key}' must be a number, got {value!r}")
        try:
            return declared(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"'{key}' must be {declared.__name__}, got {value!r}") from e
    return value


class ConfigManager:
    """Configuration manager for dnsdog"""

    def __init__(self, config_file: Optional[str] = None):
        self.config_file = config_file
        self.config = DNSDogConfig()

        if config_file:
            self.load_from_file(config_file)

    def load_from_file(self, config_file: str) -> None:
        """Load configuration from a YAML file."""
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load config from {config_file}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {config_file} must contain a mapping")

        self.config = self.from_dict(data)
        if self.config.cidr and not (data.get('capture') or {}).get('interface'):
            self.resolve_interface(self.config.cidr)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> DNSDogConfig:
        config = DNSDogConfig(
            capture=_section(CaptureConfig, data.get('capture'), 'capture'),
            statsd=_section(StatsdConfig, data.get('statsd'), 'statsd'),
            watcher=_section(WatcherConfig, data.get('watcher'), 'watcher'),
        )
        if 'cidr' in data: config.cidr = data['cidr']
        if 'log_level' in data: config.log_level = str(data['log_level']).upper()
        if 'log_file' in data: config.log_file = data['log_file']

        if config.watcher.cache_ttl <= 0:
            raise ConfigError(f"watcher.cache_ttl must be positive, got {config.watcher.cache_ttl}")
        if config.log_level not in constants.LOG_LEVELS:
            raise ConfigError(f"Unknown log level {config.log_level}")
        return config

    def resolve_interface(self, cidr: str) -> str:
        """Point the capture at the interface that sits on ``cidr``."""
        iface = get_iface(cidr)
        if not iface:
            raise ConfigError(f"Could not find interface for CIDR {cidr}")
        self.config.cidr = cidr
        self.config.capture.interface = iface
        return iface

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self.config)

    def save_to_file(self, config_file: str) -> None:
        """Save current configuration to a YAML file."""
        path = Path(config_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, allow_unicode=True, sort_keys=False)

    def get_config(self) -> DNSDogConfig:
        """Get the current configuration"""
        return self.config
