"""
Markdown source -> JSON record, with the incremental-build policy.

A record is regenerated when it does not exist yet, when its JSON no
longer parses, or when the markdown is newer than it. An up-to-date
record is left alone unless it is missing `content.overviewHtml`, in
which case it is merged with the frontmatter and the HTML is added.

Field priority for every merged field is:

    frontmatter  >  prior record (only when not regenerating)  >  default

and any prior field the frontmatter does not declare is carried over
unchanged, so values added to the JSON by hand survive a merge.
"""

from __future__ import annotations

import pathlib
import sys
from dataclasses import dataclass
from typing import Any, Callable, Dict, NamedTuple, Optional, Tuple

import yaml

from .config import ContentType
from .context import RunContext
from .images import discover_images
from .rendering import render_overview
from .utils import (
    _norm_text,
    escape_overview,
    normalize_frontmatter_dates,
    parse_frontmatter,
    read_json,
    unescape_overview,
    write_record,
)

GENERATED = "generated"
REGENERATED = "regenerated"
MERGED = "merged"
SKIPPED = "skipped"

# Computed on every write, never copied from an older record.
DERIVED_CONTENT_KEYS = ("overview", "overviewHtml")


class FieldRule(NamedTuple):
    key: str
    sources: Tuple[str, ...]
    default: Callable[[ContentType, str], Any]
    # Use the frontmatter value whenever the key is present, even if falsy.
    explicit: bool = False


def _const(value):
    return lambda ct, today: value


RECORD_FIELDS = (
    FieldRule("title", ("title",), lambda ct, today: f"Untitled {ct.name}"),
    FieldRule("description", ("description",), _const("")),
    FieldRule("technologies", ("technologies", "tags"), lambda ct, today: []),
    FieldRule("tags", ("tags", "technologies"), lambda ct, today: []),
    FieldRule("category", ("category",), _const("Uncategorized")),
    FieldRule("status", ("status",), _const("Unknown")),
    FieldRule("featured", ("featured",), _const(False), explicit=True),
    FieldRule("publishDate", ("publishDate",), lambda ct, today: today),
    FieldRule("contentTitle", ("contentTitle", "content-title"), _const(None)),
    FieldRule("achievementTitle", ("achievementTitle", "achievement-title"), _const(None)),
    FieldRule("readTime", ("readTime",), _const("5 min read")),
    FieldRule("author", ("author",), _const(None)),
    FieldRule("excerpt", ("excerpt", "description"), _const("")),
    FieldRule("links", ("links",), lambda ct, today: {}),
)

CONTENT_FIELDS = (
    FieldRule("keyAchievements", ("keyAchievements",), lambda ct, today: []),
    FieldRule("media", ("media",), lambda ct, today: {"items": []}),
)


def _absent(v) -> bool:
    return v is None or v == ""


def resolve_field(
    rule: FieldRule,
    content_type: ContentType,
    frontmatter: Dict[str, Any],
    prior: Optional[Dict[str, Any]],
    today: str,
) -> Any:
    if rule.explicit and rule.sources[0] in frontmatter:
        return frontmatter[rule.sources[0]]
    for key in rule.sources:
        value = frontmatter.get(key)
        if not _absent(value):
            return value
    if prior is not None and not _absent(prior.get(rule.key)):
        return prior[rule.key]
    return rule.default(content_type, today)


def merge_record(
    content_type: ContentType,
    frontmatter: Dict[str, Any],
    overview: str,
    overview_html: str,
    prior: Optional[Dict[str, Any]] = None,
    force: bool = False,
    today: str = "",
) -> Dict[str, Any]:
    """Build the record for one item; `prior` is ignored when `force` is set."""
    frontmatter = normalize_frontmatter_dates(dict(frontmatter or {}))
    if force:
        prior = None
    prior_content = (prior or {}).get("content")
    if not isinstance(prior_content, dict):
        prior_content = {}

    record: Dict[str, Any] = {}
    for rule in RECORD_FIELDS:
        value = resolve_field(rule, content_type, frontmatter, prior, today)
        if value is not None or rule.explicit:
            record[rule.key] = value

    content: Dict[str, Any] = {"overview": overview, "overviewHtml": overview_html}
    for rule in CONTENT_FIELDS:
        content[rule.key] = resolve_field(
            rule, content_type, frontmatter, prior_content if prior else None, today
        )
    record["content"] = content

    if prior is not None:
        for key, value in prior.items():
            if key in ("content", "_WARNING") or key in frontmatter:
                continue
            record[key] = value
        for key, value in prior_content.items():
            if key in DERIVED_CONTENT_KEYS or key in frontmatter:
                continue
            content[key] = value

    return record


@dataclass
class SourceDocument:
    path: pathlib.Path
    frontmatter: Dict[str, Any]
    body: str


@dataclass
class ItemResult:
    content_id: str
    action: str
    record: Dict[str, Any]


def load_source(md_path: pathlib.Path) -> SourceDocument:
    text = _norm_text(md_path.read_text(encoding="utf-8"))
    fm, body = parse_frontmatter(text)
    return SourceDocument(md_path, fm or {}, body)


def check_freshness(
    content_id: str, md_path: pathlib.Path, json_path: pathlib.Path
) -> Tuple[str, Optional[Dict[str, Any]]]:
    """Decide what to do with an item's record; returns (action, prior record)."""
    if not json_path.exists():
        print(f"- {content_id}: first time generation")
        return GENERATED, None

    try:
        if md_path.stat().st_mtime > json_path.stat().st_mtime:
            print(f"- {content_id}: regenerating (markdown is newer)")
            return REGENERATED, None
        prior = read_json(json_path)
    except (OSError, ValueError) as e:
        print(f"! {content_id}: JSON unreadable, regenerating ({e})", file=sys.stderr)
        return REGENERATED, None

    content = prior.get("content")
    if not isinstance(content, dict) or "overviewHtml" not in content:
        print(f"- {content_id}: adding HTML to existing record")
        return MERGED, prior
    return SKIPPED, prior


def process_item(
    ctx: RunContext, content_type: ContentType, content_id: str
) -> Optional[ItemResult]:
    folder = content_type.content_dir / content_id
    md_path = folder / content_type.source_name
    json_path = folder / content_type.record_name

    if not md_path.exists():
        print(f"- no {content_type.source_name} in {content_id}, skipping")
        return None

    try:
        source = load_source(md_path)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        print(f"! failed to read {content_id}/{md_path.name}: {e}", file=sys.stderr)
        return None

    action, prior = check_freshness(content_id, md_path, json_path)
    if action == SKIPPED:
        print(f"= {content_id} up to date, skip")
        return ItemResult(content_id, action, prior)

    images = discover_images(folder)
    html = render_overview(ctx, source.body, content_id, images, ctx.registry(content_type))
    record = merge_record(
        content_type,
        source.frontmatter,
        escape_overview(source.body),
        html,
        prior=prior,
        force=action != MERGED,
        today=ctx.today_iso,
    )

    try:
        write_record(json_path, record)
    except (OSError, TypeError, ValueError) as e:
        print(f"! failed to write {content_id}/{json_path.name}: {e}", file=sys.stderr)
        return None

    print(f"✓ {action} {content_type.name} {content_id}")
    return ItemResult(content_id, action, record)


def backfill_html(
    ctx: RunContext, content_type: ContentType, content_id: str
) -> Optional[Dict[str, Any]]:
    """Add `overviewHtml` to a record that lacks it, touching nothing else."""
    folder = content_type.content_dir / content_id
    json_path = folder / content_type.record_name
    if not json_path.exists():
        return None

    try:
        record = read_json(json_path)
    except (OSError, ValueError) as e:
        print(f"! failed to read {content_id}/{json_path.name}: {e}", file=sys.stderr)
        return None

    content = record.get("content")
    if not isinstance(content, dict) or "overviewHtml" in content:
        return None
    raw = content.get("overview")
    if not raw:
        ctx.warn_once(f"{content_id}: no overview content to render")
        return None

    body = unescape_overview(raw)
    html = render_overview(ctx, body, content_id, discover_images(folder), ctx.registry(content_type))
    record["content"] = {**content, "overviewHtml": html}

    try:
        write_record(json_path, record)
    except OSError as e:
        print(f"! failed to write {content_id}/{json_path.name}: {e}", file=sys.stderr)
        return None
    print(f"✓ added HTML to {content_type.name} {content_id}")
    return record
