from __future__ import annotations

from contextlib import asynccontextmanager
from importlib.metadata import PackageNotFoundError, version
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import HTMLResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Info, generate_latest

from spanetlink.clients.cloud import Client
from spanetlink.exporter_app.collector import SpaCollector
from spanetlink.exporter_app.config import ExporterSettings, get_settings
from spanetlink.exporter_app.logging import RingBufferHandler, configure_logging
from spanetlink.parsing.rf import DEFAULT_MAPPING, AttributeMapping

LANDING_PAGE = """<html>
<head><title>SpaNet Exporter</title></head>
<body>
<h1>SpaNet Exporter</h1>
<p><a href='{metrics_path}'>Metrics</a></p>
</body>
</html>"""


def _package_version() -> str:
    try:
        return version("spanetlink")
    except PackageNotFoundError:
        return "0.0.0"


def build_collector(settings: ExporterSettings, client: Optional[Client] = None) -> SpaCollector:
    mapping: AttributeMapping = DEFAULT_MAPPING
    if settings.mapping_path:
        mapping = AttributeMapping.from_json_file(settings.mapping_path)
    return SpaCollector(
        username=settings.username,
        password_hash=settings.password_hash,
        spa_name=settings.spa_name,
        client=client or Client(config=settings.api_config()),
        mapping=mapping,
        connect_timeout=settings.device_connect_timeout,
        io_timeout=settings.device_io_timeout,
    )


def create_app(
    settings: Optional[ExporterSettings] = None,
    collector: Optional[SpaCollector] = None,
    log_handler: Optional[RingBufferHandler] = None,
) -> FastAPI:
    settings = settings or get_settings()
    collector = collector or build_collector(settings)
    log_handler = log_handler or configure_logging(settings.log_level, settings.log_ring_size)

    registry = CollectorRegistry()
    Info("spanet_exporter_build", "Build information of the SpaNet exporter.", registry=registry).info(
        {"version": _package_version()}
    )
    registry.register(collector)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        collector.close()

    app = FastAPI(title="SpaNet Exporter", version=_package_version(), lifespan=lifespan)
    app.state.settings = settings
    app.state.collector = collector
    app.state.registry = registry
    app.state.log_handler = log_handler

    @app.get("/", response_class=HTMLResponse)
    def index() -> str:
        return LANDING_PAGE.format(metrics_path=settings.metrics_path)

    @app.get(settings.metrics_path)
    def metrics() -> Response:
        return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "device": collector.health()}

    @app.get("/logs")
    def logs() -> dict:
        return {"events": log_handler.get_events()}

    return app
