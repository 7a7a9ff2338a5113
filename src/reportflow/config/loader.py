"""
Config document loader.

Reads pipeline and report documents from YAML or JSON files and validates
them into their pydantic models.

File Format (YAML, pipeline):
    fetchers:
      - id: sales
        source: {type: http, url: "https://api.example.com/sales"}
        retry: {maxRetries: 3, backoffMs: 100}
      - id: refunds
        source: {type: file, path: ./refunds.json}
    aggregate:
      fetchers: [sales, refunds]
      strategy: concat
      parallel: true
      postProcess:
        sort: {field: date, order: desc}

File Format (YAML, report):
    report: {title: "Daily sales {{YYYYMMDD}}"}
    data:
      - title: sales
        source: "https://api.example.com/sales"
    actions:
      - type: file_output
        on: report_ready
        renderMode: json
        spec: {path: "./out/sales-{{YYYYMMDD}}"}
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from reportflow.core.errors import InvalidConfigError, SourceNotFoundError
from reportflow.core.logging import get_logger
from reportflow.phases.types import ExecutableConfig
from reportflow.pipeline.types import PipelineConfig

logger = get_logger(__name__)

YAML_SUFFIXES = {".yaml", ".yml"}


def load_config_file(path: Path | str) -> dict[str, Any]:
    """Read a YAML or JSON document (by extension) into a dict.

    Raises:
        SourceNotFoundError: If the file doesn't exist
        InvalidConfigError: If the document can't be parsed or isn't a mapping
    """
    path = Path(path)
    if not path.is_file():
        raise SourceNotFoundError(f"Config file not found: {path}")

    logger.debug("config.load", path=str(path))
    text = path.read_text(encoding="utf-8")

    if path.suffix.lower() in YAML_SUFFIXES:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise InvalidConfigError("document", str(path), f"Invalid YAML in {path}: {e}") from e
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidConfigError("document", str(path), f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise InvalidConfigError(
            "document", str(path), f"Expected a mapping in {path}, got {type(data).__name__}"
        )
    return data


def load_pipeline_config(path: Path | str) -> PipelineConfig:
    data = load_config_file(path)
    try:
        config = PipelineConfig.model_validate(data)
    except ValidationError as e:
        raise InvalidConfigError("pipeline", str(path), f"Invalid pipeline config {path}: {e}") from e

    logger.info(
        "config.pipeline_loaded",
        path=str(path),
        fetchers=len(config.fetchers),
        strategy=config.aggregate.strategy.value,
    )
    return config


def load_report_config(path: Path | str) -> ExecutableConfig:
    data = load_config_file(path)
    try:
        config = ExecutableConfig.model_validate(data)
    except ValidationError as e:
        raise InvalidConfigError("report", str(path), f"Invalid report config {path}: {e}") from e

    logger.info(
        "config.report_loaded",
        path=str(path),
        title=config.report.title,
        items=len(config.data),
        actions=len(config.actions),
    )
    return config


__all__ = ["load_config_file", "load_pipeline_config", "load_report_config"]
