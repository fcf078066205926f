"""Configuration management for the ATA SMART exporter"""
from pathlib import Path
from typing import Dict, Literal, Optional
from pydantic import Field, validator
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Configuration class with Pydantic validation and environment-based settings"""

    # Server settings
    metrics_port: int = Field(default=9393, ge=1, le=65535, description="Metrics server port")
    metrics_host: str = Field(default="127.0.0.1", description="Metrics server host")

    # Device discovery
    scsi_device_root: Path = Field(default=Path("/sys/class/scsi_device"), description="SCSI device tree to enumerate")
    dev_root: Path = Field(default=Path("/dev"), description="Directory holding block device nodes")
    strict_disk_open: bool = Field(default=False, description="Abort startup when a discovered disk cannot be opened")

    # smartctl session settings
    smartctl_path: str = Field(default="smartctl", description="smartctl binary name or path")
    smartctl_timeout: float = Field(default=30.0, gt=0, description="Timeout for a single smartctl invocation in seconds")

    # Collection behaviour
    clear_stale_overall: bool = Field(default=True, description="Zero the previous overall verdict label when it changes")
    scrape_timeout: Optional[float] = Field(default=None, gt=0, description="Seconds a scrape waits for its collection cycle")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO", description="Log level")
    log_file: Optional[Path] = Field(default=None, description="Optional log file path")

    # Service settings
    service_name: str = Field(default="atasmart-exporter", description="Service name")
    service_version: str = Field(default="1.0.0", description="Service version")
    enable_request_logging: bool = Field(default=True, description="Enable HTTP request logging")

    class Config:
        env_prefix = ""
        case_sensitive = False

    @validator('log_level', pre=True)
    def normalize_log_level(cls, v):
        """Accept log levels in any case"""
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @validator('log_file')
    def ensure_log_directory(cls, v):
        """Ensure the parent directory of the log file exists"""
        if isinstance(v, Path):
            v.parent.mkdir(parents=True, exist_ok=True)
        return v

    @validator('scrape_timeout', pre=True)
    def parse_scrape_timeout(cls, v):
        """Treat an empty value as no timeout"""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def listen_address(self) -> str:
        """host:port the metrics server binds to"""
        return f"{self.metrics_host}:{self.metrics_port}"

    def get_service_info(self) -> Dict[str, str]:
        """Get service identification attributes"""
        return {
            "name": self.service_name,
            "version": self.service_version,
            "listen_address": self.listen_address,
        }
