# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Load TemporalCluster manifests from YAML or JSON files."""

from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from .errors import PlannerErrorCode, SpecificationLoadError
from .models import TemporalCluster

logger = structlog.get_logger(__name__)


def parse_cluster(data: Any, source: str = "<memory>") -> TemporalCluster:
    """Validate a decoded manifest.

    Raises:
        SpecificationLoadError: if the manifest does not match the schema
    """
    if not isinstance(data, dict):
        raise SpecificationLoadError(source, "Manifest must be a mapping")
    try:
        return TemporalCluster.model_validate(data)
    except ValidationError as e:
        errors = [
            {"loc": ".".join(str(part) for part in err["loc"]), "msg": err["msg"]}
            for err in e.errors()
        ]
        raise SpecificationLoadError(
            source,
            f"Manifest failed validation with {len(errors)} error(s)",
            details={"errors": errors},
        ) from e


def load_cluster(path: Path | str) -> TemporalCluster:
    """Read and validate a manifest file (JSON is valid YAML).

    Raises:
        SpecificationLoadError: if the file is missing, unreadable or invalid
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SpecificationLoadError(
            str(path),
            f"Cannot read manifest: {e.strerror or e}",
            code=PlannerErrorCode.SPECIFICATION_NOT_FOUND,
        ) from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise SpecificationLoadError(str(path), f"Invalid YAML: {e}") from e

    cluster = parse_cluster(data, source=str(path))
    logger.debug("Loaded cluster manifest", path=str(path), cluster=cluster.metadata.name)
    return cluster
