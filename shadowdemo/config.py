"""Settings for the device shadow demo: broker, identity and credentials."""

from __future__ import annotations

import os
import platform
from collections.abc import Mapping
from dataclasses import dataclass, field

ALPN_PROTOCOL_NAME = "x-amzn-mqtt-ca"
ALPN_PORT = 443
DEFAULT_PORT = 8883
DEFAULT_NETWORK_BUFFER_SIZE = 1024

CONNACK_RECV_TIMEOUT_MS = 1000
MAX_OUTGOING_PUBLISHES = 5
MQTT_PROCESS_LOOP_TIMEOUT_MS = 1500
MQTT_KEEP_ALIVE_INTERVAL_SECONDS = 60
TRANSPORT_SEND_RECV_TIMEOUT_MS = 1500

SHADOW_NAME_CLASSIC = ""

_ENV_PREFIX = "SHADOW_DEMO_"


@dataclass(frozen=True)
class DemoConfig:
    """Everything the demo needs to reach the broker and address its shadow."""

    endpoint: str
    client_identifier: str
    port: int = DEFAULT_PORT
    thing_name: str = ""
    shadow_name: str = SHADOW_NAME_CLASSIC
    network_buffer_size: int = DEFAULT_NETWORK_BUFFER_SIZE
    os_name: str = field(default_factory=platform.system)
    os_version: str = field(default_factory=platform.release)
    hardware_platform: str = field(default_factory=platform.machine)
    mqtt_lib: str = "paho-mqtt"
    root_ca_path: str | None = None
    client_cert_path: str | None = None
    client_key_path: str | None = None
    keep_alive_seconds: int = MQTT_KEEP_ALIVE_INTERVAL_SECONDS
    connack_timeout_ms: int = CONNACK_RECV_TIMEOUT_MS
    process_loop_timeout_ms: int = MQTT_PROCESS_LOOP_TIMEOUT_MS
    max_outgoing_publishes: int = MAX_OUTGOING_PUBLISHES

    def __post_init__(self) -> None:
        if not self.endpoint:
            raise ValueError("broker endpoint must not be empty")
        if not self.client_identifier:
            raise ValueError("client identifier must not be empty")
        if not 0 < self.port < 65536:
            raise ValueError(f"invalid broker port: {self.port}")
        if self.network_buffer_size <= 0:
            raise ValueError("network buffer size must be positive")
        if not self.thing_name:
            object.__setattr__(self, "thing_name", self.client_identifier)

    def metrics_string(self) -> str:
        """The metrics string sent as the MQTT user name."""
        return (
            f"?SDK={self.os_name}&Version={self.os_version}"
            f"&Platform={self.hardware_platform}&MQTTLib={self.mqtt_lib}"
        )

    def alpn_protocols(self) -> list[str] | None:
        """ALPN protocol names to offer, needed only on port 443."""
        if self.port == ALPN_PORT:
            return [ALPN_PROTOCOL_NAME]
        return None


def _int_setting(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(_ENV_PREFIX + name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{_ENV_PREFIX + name} must be an integer, got {raw!r}") from None


def load_config(environ: Mapping[str, str] | None = None) -> DemoConfig:
    """Build a configuration from SHADOW_DEMO_* environment variables."""
    env = os.environ if environ is None else environ

    def text(name: str, default: str | None = None) -> str | None:
        value = env.get(_ENV_PREFIX + name)
        return default if value is None or value == "" else value

    endpoint = text("ENDPOINT")
    if endpoint is None:
        raise ValueError(f"{_ENV_PREFIX}ENDPOINT is not set")
    client_identifier = text("CLIENT_IDENTIFIER")
    if client_identifier is None:
        raise ValueError(f"{_ENV_PREFIX}CLIENT_IDENTIFIER is not set")

    optional: dict[str, str] = {}
    for key, name in (
        ("os_name", "OS_NAME"),
        ("os_version", "OS_VERSION"),
        ("hardware_platform", "HARDWARE_PLATFORM_NAME"),
        ("mqtt_lib", "MQTT_LIB"),
    ):
        value = text(name)
        if value is not None:
            optional[key] = value

    return DemoConfig(
        endpoint=endpoint,
        client_identifier=client_identifier,
        port=_int_setting(env, "PORT", DEFAULT_PORT),
        thing_name=text("THING_NAME", "") or "",
        shadow_name=text("SHADOW_NAME", SHADOW_NAME_CLASSIC) or SHADOW_NAME_CLASSIC,
        network_buffer_size=_int_setting(env, "NETWORK_BUFFER_SIZE", DEFAULT_NETWORK_BUFFER_SIZE),
        root_ca_path=text("ROOT_CA_PATH"),
        client_cert_path=text("CLIENT_CERT_PATH"),
        client_key_path=text("CLIENT_KEY_PATH"),
        **optional,
    )