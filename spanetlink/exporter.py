import argparse
import logging
import sys

import uvicorn

from spanetlink.exporter_app import ExporterSettings, build_collector, create_app
from spanetlink.exporter_app.logging import configure_logging

logger = logging.getLogger(__name__)


class Exporter:
    def __init__(self, settings: ExporterSettings) -> None:
        self.settings = settings
        self.log_handler = configure_logging(settings.log_level, settings.log_ring_size)
        self.collector = build_collector(settings)
        self.app = create_app(settings=self.settings, collector=self.collector, log_handler=self.log_handler)

    def start(self) -> None:
        host, port = self.settings.listen_host_port()
        logger.info("Starting spanet exporter for spa %r", self.settings.spa_name)
        # An early read surfaces bad credentials or spa names in the log at startup.
        if self.collector.read() is None:
            logger.warning("Spa %r is not reachable yet, will retry on every scrape", self.settings.spa_name)
        logger.info("Listening on address %s:%d", host, port)
        uvicorn.run(self.app, host=host, port=port, log_level=self.settings.log_level.lower())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Export SpaNET spa telemetry as Prometheus metrics.")
    parser.add_argument("--spanet.username", dest="username", help="SpaNet username.")
    parser.add_argument("--spanet.password-hash", dest="password_hash", help="SpaNet password hash.")
    parser.add_argument("--spanet.spa-name", "--spanet.spaName", dest="spa_name", help="SpaNet spa name.")
    parser.add_argument(
        "--web.listen-address",
        dest="listen_address",
        help="Address to listen on for web interface and telemetry (default :9150).",
    )
    parser.add_argument(
        "--web.telemetry-path",
        dest="metrics_path",
        help="Path under which to expose metrics (default /metrics).",
    )
    parser.add_argument("--log.level", dest="log_level", help="Log level (default INFO).")
    parser.add_argument("--mapping", dest="mapping_path", help="JSON file overriding frame column mappings.")
    return parser


def settings_from_args(argv: list[str] | None = None) -> ExporterSettings:
    args = build_parser().parse_args(argv)
    overrides = {key: value for key, value in vars(args).items() if value is not None}
    settings = ExporterSettings(**overrides)
    missing = [name for name in ("username", "password_hash", "spa_name") if not getattr(settings, name)]
    if missing:
        raise SystemExit(f"Missing required settings: {', '.join(missing)}")
    return settings


def main(argv: list[str] | None = None) -> int:
    Exporter(settings_from_args(argv)).start()
    return 0


if __name__ == "__main__":
    sys.exit(main())
