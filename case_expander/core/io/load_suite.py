from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from case_expander.core.errors import SuiteLoadError

logger = logging.getLogger(__name__)


def load_suite(path: str) -> dict[str, Any]:
    """Load a YAML/JSON suite declaration.

    Returns a dict with keys: schema_version, tests.
    Does not coerce types; validator owns shape checking.
    """

    p = Path(path)
    if not p.exists():
        raise SuiteLoadError(
            code="E_FILE_NOT_FOUND",
            message="file does not exist",
            file=str(p),
        )

    suffix = p.suffix.lower()
    try:
        raw_text = p.read_text(encoding="utf-8")
    except OSError as e:  # pragma: no cover
        raise SuiteLoadError(code="E_FILE_READ", message=str(e), file=str(p)) from e

    try:
        if suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(raw_text)
        elif suffix == ".json":
            data = json.loads(raw_text)
        else:
            raise SuiteLoadError(
                code="E_UNSUPPORTED_FORMAT",
                message="supported formats are .yaml/.yml and .json",
                file=str(p),
            )
    except SuiteLoadError:
        raise
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        code = "E_YAML_PARSE" if suffix in {".yaml", ".yml"} else "E_JSON_PARSE"
        raise SuiteLoadError(code=code, message=str(e), file=str(p)) from e

    if not isinstance(data, dict):
        raise SuiteLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="top-level document must be a mapping/object",
            file=str(p),
        )

    logger.debug("loaded suite %s (%s)", p, suffix)

    # Normalize: keep only expected keys; validator checks required ones.
    return {
        "schema_version": data.get("schema_version"),
        "tests": data.get("tests"),
        "__file__": str(p),
    }
