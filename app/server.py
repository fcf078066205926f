"""FastAPI server setup and routes"""
import functools
import os
import time
from typing import List
from fastapi import FastAPI, Response, HTTPException
from fastapi.responses import HTMLResponse
from config import Config
from collectors.atasmart import AtaSmartCollector
from collectors.disk import SmartctlDisk
from collectors.enumerator import DeviceDescriptor, DiskEnumerator, open_disks
from metrics.registry import MetricsRegistry
from metrics.exporters.prometheus import PrometheusExporter, CONTENT_TYPE
from middleware.request_logging import RequestLoggingMiddleware
from logging_config import get_logger
from .gate import GateClosedError, ScrapeGate, ScrapeTimeoutError
from .loop import CollectionLoop


logger = get_logger(__name__)


class MetricsServer:
    """FastAPI server exposing disk health metrics refreshed on every scrape"""

    def __init__(self, config: Config, collector: AtaSmartCollector, descriptors: List[DeviceDescriptor] = None):
        self.config = config
        self.app = FastAPI(
            title="ATA SMART Exporter",
            version=config.service_version,
            docs_url=None,
            redoc_url=None,
            openapi_url=None
        )
        self.collector = collector
        self.registry = collector.registry
        self.descriptors = list(descriptors) if descriptors is not None else [d.descriptor for d in collector.disks]
        self.exporter = PrometheusExporter(config)
        self.gate = ScrapeGate(scrape_timeout=config.scrape_timeout)
        self.loop = CollectionLoop(collector, self.gate)

        self._setup_middleware()
        self._setup_routes()
        self._setup_events()

    @classmethod
    def from_config(cls, config: Config) -> "MetricsServer":
        """Discover and open disks, then build the server around them.

        Raises ``EnumerationError`` when the device tree cannot be read and
        ``DiskOpenError`` when a disk fails to open under strict mode.
        """
        enumerator = DiskEnumerator(config.scsi_device_root, config.dev_root)
        descriptors = enumerator.discover()

        opener = functools.partial(
            SmartctlDisk.open,
            smartctl_path=config.smartctl_path,
            timeout=config.smartctl_timeout
        )
        disks = open_disks(descriptors, opener, strict=config.strict_disk_open)
        logger.info(
            "Disks opened",
            discovered=len(descriptors),
            opened=len(disks),
            disks=[disk.name for disk in disks],
            event_type="disks_opened"
        )

        collector = AtaSmartCollector(disks, MetricsRegistry(), config)
        return cls(config, collector, descriptors)

    def _setup_middleware(self):
        """Setup HTTP middleware"""
        if self.config.enable_request_logging:
            self.app.add_middleware(RequestLoggingMiddleware)

    def _setup_routes(self):
        """Setup FastAPI routes"""

        @self.app.get('/metrics', response_class=Response)
        def get_metrics():
            """Run one collection cycle and serve the result in Prometheus format"""
            try:
                with self.gate.scrape():
                    content = self.exporter.render(self.registry)
            except (GateClosedError, ScrapeTimeoutError) as e:
                logger.warning("Scrape failed", error=str(e), event_type="scrape_error")
                raise HTTPException(status_code=503, detail=str(e))
            return Response(content, media_type=CONTENT_TYPE)

        @self.app.get('/health')
        def health_check():
            """Health check endpoint"""
            is_healthy = self.loop.is_alive() and not self.gate.closed
            health_data = {
                "status": "healthy" if is_healthy else "unhealthy",
                "gate_state": self.gate.state.value,
                "disks": len(self.collector.disks),
                "total_collections": self.collector.cycle_count,
                "collection_errors": self.loop.collection_errors,
            }

            if not is_healthy:
                raise HTTPException(status_code=503, detail=health_data)

            return health_data

        @self.app.get('/status')
        def get_status():
            """Detailed status information"""
            last = self.collector.last_result
            age = time.time() - self.loop.last_collection_time if self.loop.last_collection_time > 0 else None

            return {
                "service": {
                    **self.config.get_service_info(),
                    "uptime_seconds": round(time.time() - getattr(self.app.state, "start_time", time.time()), 1),
                    "hostname": os.uname().nodename
                },
                "collection": {
                    "gate_state": self.gate.state.value,
                    "requests_received": self.gate.requests_received,
                    "cycles_finished": self.gate.cycles_finished,
                    "total_collections": self.collector.cycle_count,
                    "collection_errors": self.loop.collection_errors,
                    "last_collection_seconds_ago": round(age, 1) if age is not None else None,
                    "last_cycle": {
                        "disks": last.disks,
                        "refresh_failures": last.refresh_failures,
                        "reads": last.reads,
                        "read_failures": last.read_failures,
                        "duration_seconds": round(last.duration, 3)
                    } if last else None
                },
                "disks": [disk.name for disk in self.collector.disks]
            }

        @self.app.get('/disks')
        def list_disks():
            """List discovered and opened disks"""
            opened = {disk.name for disk in self.collector.disks}
            return {
                "disks": [
                    {
                        "path": descriptor.path,
                        "scsi_address": descriptor.scsi_address,
                        "opened": descriptor.path in opened
                    }
                    for descriptor in self.descriptors
                ]
            }

        @self.app.get('/', response_class=HTMLResponse)
        def index():
            """Web interface"""
            return self._generate_html_interface()

    def _setup_events(self):
        """Setup FastAPI startup/shutdown events"""

        @self.app.on_event("startup")
        async def startup_event():
            """Start the collection loop"""
            self.app.state.start_time = time.time()
            self.loop.start()
            logger.info(
                "Application startup complete",
                service_name=self.config.service_name,
                disks=len(self.collector.disks),
                event_type="server_startup"
            )

        @self.app.on_event("shutdown")
        async def shutdown_event():
            """Stop the collection loop and close disks"""
            logger.info("Shutting down metrics exporter", event_type="server_shutdown")
            self.loop.stop()
            self.collector.cleanup()

    def _generate_html_interface(self) -> str:
        """Generate HTML interface"""
        disks = ''.join(f'<li>{disk.name}</li>' for disk in self.collector.disks) or '<li>No disks tracked</li>'

        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <title>ATA SMART Exporter</title>
            <style>
                body {{ font-family: Arial, sans-serif; margin: 40px; background-color: #f5f5f5; }}
                .container {{ max-width: 1200px; margin: 0 auto; background-color: white; padding: 20px; border-radius: 8px; }}
                .endpoint {{ margin: 10px 0; padding: 10px; background-color: #f8f9fa; border-radius: 4px; }}
                .endpoint a {{ text-decoration: none; color: #0066cc; font-weight: bold; }}
            </style>
        </head>
        <body>
            <div class="container">
                <h1>ATA SMART Exporter</h1>
                <h2>Available Endpoints:</h2>
                <div class="endpoint"><a href="/metrics">/metrics</a> - Prometheus metrics</div>
                <div class="endpoint"><a href="/health">/health</a> - Health check</div>
                <div class="endpoint"><a href="/status">/status</a> - Status information</div>
                <div class="endpoint"><a href="/disks">/disks</a> - Tracked disks</div>
                <h2>Disks:</h2>
                <ul>{disks}</ul>
            </div>
        </body>
        </html>
        """

    def get_app(self) -> FastAPI:
        """Get the FastAPI application"""
        return self.app
