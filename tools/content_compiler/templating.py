from __future__ import annotations

import json

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .config import TEMPLATE_DIR


def ts_string(value: str) -> str:
    """Single-quoted TypeScript string literal."""
    return "'" + str(value).replace("\\", "\\\\").replace("'", "\\'") + "'"


def yaml_string(value: str) -> str:
    return json.dumps(str(value), ensure_ascii=False)


def build_environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        autoescape=False,
    )
    env.filters["ts_string"] = ts_string
    env.filters["yaml_string"] = yaml_string
    return env
