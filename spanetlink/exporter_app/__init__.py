from spanetlink.exporter_app.app import build_collector, create_app
from spanetlink.exporter_app.collector import SpaCollector
from spanetlink.exporter_app.config import ExporterSettings

__all__ = ["ExporterSettings", "SpaCollector", "build_collector", "create_app"]
