"""Configuration management for Cluster Export."""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Cluster Export configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Export output
    manifest_filename: str = "cluster-export.csv"
    errors_filename: str = "cluster-export-errors.csv"
    fallback_extension: str = "BIN"

    # Cluster selection
    include_pseudo_clusters: bool = False

    # Summary report aggregation
    summary_report_filename: str = "summary-report.xml"
    unit_type: str = "Custodian"
    report_parse_policy: Literal["skip", "abort"] = "skip"
    host_version: str = "unknown"

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "console"


settings = Settings()
