from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable, Optional

from prometheus_client.metrics_core import GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from spanetlink.clients.cloud import AuthError, Client, Session
from spanetlink.parsing.rf import AttributeMapping, SpaAttributes
from spanetlink.transports.base import DeviceError
from spanetlink.transports.tcp.transport import DeviceSession

logger = logging.getLogger(__name__)

NAMESPACE = "spanet"

# (metric name, help text, value getter)
SPA_GAUGES: list[tuple[str, str, Callable[[SpaAttributes], float]]] = [
    ("water_temp", "Current water temperature.", lambda spa: spa.water_temperature),
    ("target_temp", "Target water temperature.", lambda spa: spa.target_temperature),
    ("heating", "Heater is on.", lambda spa: spa.heating),
    ("auto", "Auto is enabled.", lambda spa: spa.auto),
    ("sanitising", "Sanitise cycle is active.", lambda spa: spa.sanitising),
    ("cleaning", "UV / Ozone is active.", lambda spa: spa.cleaning),
    ("sleeping", "Sleep mode is active.", lambda spa: spa.sleeping),
    (
        "blower_mode",
        "Blower Mode. 2 when off, 1 when in ramp mode and 0 in variable mode.",
        lambda spa: spa.blower.mode,
    ),
    ("blower_speed", "Blower Speed. 1 to 5.", lambda spa: spa.blower.speed),
    ("lights_active", "Lights on or off.", lambda spa: spa.lights.active),
    (
        "lights_mode",
        "Lighting mode. 0 for white, 1 for colour, 2 for step, 3 for fade, 4 for party mode!",
        lambda spa: spa.lights.mode,
    ),
    ("lights_brightness", "Lights brightness. 1 to 5.", lambda spa: spa.lights.brightness),
    ("lights_speed", "Light effect speed. 1 to 5.", lambda spa: spa.lights.speed),
    ("lights_colour", "Light colour. 0 to 30.", lambda spa: spa.lights.colour),
    (
        "locked",
        "Control panel is locked. 0 for unlocked, 1 for partial, 2 for full lock.",
        lambda spa: spa.settings.lock,
    ),
]


class SpaCollector(Collector):
    """
    Prometheus collector that polls one spa per scrape.

    Scrapes are serialized. A scrape logs in and resolves the spa if that has
    not happened yet, reconnects a disconnected device session, then polls
    it. Any failure is logged and reported as ``up 0``.
    """

    def __init__(
        self,
        username: str,
        password_hash: str,
        spa_name: str,
        client: Optional[Client] = None,
        mapping: Optional[AttributeMapping] = None,
        connect_timeout: float = 5.0,
        io_timeout: float = 5.0,
    ) -> None:
        self.username = username
        self.password_hash = password_hash
        self.spa_name = spa_name
        self.client = client or Client()
        self.mapping = mapping
        self.connect_timeout = connect_timeout
        self.io_timeout = io_timeout
        self.session: Optional[Session] = None
        self.device: Optional[DeviceSession] = None
        self._lock = threading.Lock()

    def discover(self) -> DeviceSession:
        if self.session is None or not self.session.valid:
            self.session = self.client.login(self.username, self.password_hash)
        descriptor = self.client.resolve(self.session, self.spa_name)
        logger.info("Resolved spa %r to %s", descriptor.name, descriptor.host)
        self.device = DeviceSession(
            descriptor=descriptor,
            mapping=self.mapping,
            connect_timeout=self.connect_timeout,
            io_timeout=self.io_timeout,
        )
        return self.device

    def read(self) -> Optional[SpaAttributes]:
        with self._lock:
            try:
                device = self.device or self.discover()
                if not device.is_ready:
                    logger.info("Connecting to spa %r", self.spa_name)
                    device.connect()
                return device.poll()
            except AuthError as exc:
                logger.error("Error finding spa %r: %s", self.spa_name, exc, extra={"details": {"error": str(exc)}})
                self.session = None
            except DeviceError as exc:
                logger.error(
                    "Error reading data from spa %r: %s", self.spa_name, exc, extra={"details": {"error": str(exc)}}
                )
            except Exception as exc:
                logger.exception(
                    "Unexpected error polling spa %r: %s", self.spa_name, exc, extra={"details": {"error": str(exc)}}
                )
            return None

    def health(self) -> dict:
        if self.device is None:
            return {"state": "undiscovered", "ready": False, "spa": self.spa_name}
        return self.device.health()

    def close(self) -> None:
        # Not locked, so a scrape blocked on the device can be aborted.
        device = self.device
        if device is not None:
            device.close()

    def collect(self) -> Iterable[Metric]:
        spa = self.read()

        up = GaugeMetricFamily("up", "Could the spa be reached.", labels=["spa_name"])
        up.add_metric([self.spa_name], 1.0 if spa is not None else 0.0)
        yield up
        if spa is None:
            return

        for name, documentation, getter in SPA_GAUGES:
            gauge = GaugeMetricFamily(f"{NAMESPACE}_{name}", documentation, labels=["spa_name"])
            gauge.add_metric([self.spa_name], getter(spa))
            yield gauge

        pump_active = GaugeMetricFamily(f"{NAMESPACE}_pump_active", "Pump is on.", labels=["spa_name", "pump"])
        pump_ok = GaugeMetricFamily(f"{NAMESPACE}_pump_ok", "Pump is OK to turn on.", labels=["spa_name", "pump"])
        for pump in spa.pumps:
            pump_active.add_metric([self.spa_name, str(pump.id)], pump.active)
            pump_ok.add_metric([self.spa_name, str(pump.id)], pump.ok)
        yield pump_active
        yield pump_ok
