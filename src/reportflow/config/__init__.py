"""Config document loading (YAML / JSON)."""

from reportflow.config.loader import load_config_file, load_pipeline_config, load_report_config

__all__ = ["load_config_file", "load_pipeline_config", "load_report_config"]
