from __future__ import annotations

import json
import pathlib
import re
from datetime import date, datetime
from typing import Any, Dict, Optional, Tuple

import yaml

from .config import GENERATED_WARNING


def _norm_text(s: str) -> str:
    return s.replace('\r\n', '\n').replace('\r', '\n').lstrip('\ufeff')


def heading_id(text: str) -> str:
    s = re.sub(r"[^\w\s-]", "", text.strip().lower(), flags=re.ASCII)
    s = re.sub(r"\s+", "-", s)
    s = re.sub(r"-{2,}", "-", s)
    return s.strip()


def display_name(content_id: str) -> str:
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), content_id.replace("-", " "))


def _coerce_date_like(v):
    if isinstance(v, datetime):
        return v.date().isoformat()
    if isinstance(v, date):
        return v.isoformat()
    return v


def normalize_frontmatter_dates(
    fm: Dict[str, Any],
    keys=("publishDate", "date", "updateDate"),
) -> Dict[str, Any]:
    """Dates become plain YYYY-MM-DD strings, as they are stored in records."""
    if not isinstance(fm, dict):
        return fm
    for k in keys:
        if k in fm:
            fm[k] = _coerce_date_like(fm[k])
    return fm


def parse_frontmatter(text: str) -> Tuple[Optional[Dict[str, Any]], str]:
    s = text.lstrip()
    if not s.startswith("---\n") and not s.startswith("---\r\n"):
        return None, text

    lines = text.splitlines(keepends=True)
    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            fm_text = "".join(lines[1:i])
            body = "".join(lines[i + 1 :])
            fm = yaml.safe_load(fm_text) or {}
            if not isinstance(fm, dict):
                raise yaml.YAMLError("frontmatter must be a mapping")
            return fm, body
    return None, text


def escape_overview(markdown: str) -> str:
    return (
        markdown.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )


_OVERVIEW_ESCAPES = {"n": "\n", "t": "\t", "\\": "\\", '"': '"'}


def unescape_overview(escaped: str) -> str:
    return re.sub(
        r'\\([nt\\"])', lambda m: _OVERVIEW_ESCAPES[m.group(1)], escaped
    )


def _json_default(v):
    if isinstance(v, (date, datetime)):
        return _coerce_date_like(v)
    raise TypeError(f"Object of type {type(v).__name__} is not JSON serializable")


def read_json(path: pathlib.Path) -> Dict[str, Any]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path.name} does not hold a JSON object")
    return data


def write_record(path: pathlib.Path, record: Dict[str, Any]) -> None:
    body = {k: v for k, v in record.items() if k != "_WARNING"}
    data = {"_WARNING": GENERATED_WARNING, **body}
    path.write_text(
        json.dumps(data, indent=2, ensure_ascii=False, default=_json_default),
        encoding="utf-8",
    )


def write_if_changed(path: pathlib.Path, text: str) -> bool:
    """Write `text` unless the file already holds exactly that."""
    if path.exists() and path.read_text(encoding="utf-8") == text:
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return True
