from __future__ import annotations

import json
import pathlib
import sys
from datetime import date
from typing import Any, Dict, List, Sequence

from .config import ContentType
from .context import RunContext
from .errors import CompilerError
from .images import discover_images
from .utils import read_json, write_if_changed


def _write_module(path: pathlib.Path, text: str) -> None:
    try:
        changed = write_if_changed(path, text)
    except OSError as e:
        raise CompilerError(f"cannot write generated module {path}: {e}") from e
    print(("✓ wrote " if changed else "= unchanged ") + path.name)


def build_image_entries(
    ctx: RunContext, content_type: ContentType, content_ids: Sequence[str]
) -> List[Dict[str, Any]]:
    registry = ctx.registry(content_type)
    entries: List[Dict[str, Any]] = []
    for content_id in content_ids:
        images = discover_images(content_type.content_dir / content_id)
        if images.is_empty():
            print(f"- no images for {content_id}")
            registry.forget(content_id)
            continue
        bindings = registry.register(content_id, images)
        by_role = {b.role: b.name for b in bindings if b.role != "screenshot"}
        entries.append(
            {
                "id": content_id,
                "hero": by_role.get("hero"),
                "demo": by_role.get("demo"),
                "screenshots": [b.name for b in bindings if b.role == "screenshot"],
                "bindings": bindings,
            }
        )

    for first, second in registry.collisions:
        ctx.warn_once(
            f"binding {second.name} used for both {first.content_id}/{first.filename} "
            f"and {second.content_id}/{second.filename}"
        )
    return entries


def generate_image_imports(
    ctx: RunContext, content_type: ContentType, content_ids: Sequence[str]
) -> pathlib.Path:
    entries = build_image_entries(ctx, content_type, content_ids)
    text = ctx.templates().get_template("image_imports.ts.j2").render(
        ct=content_type, entries=entries
    )
    path = ctx.settings.generated_dir / content_type.imports_module
    _write_module(path, text)
    print(f"  {sum(len(e['bindings']) for e in entries)} {content_type.name} image imports")
    return path


def manifest_ids(content_type: ContentType, content_ids: Sequence[str]) -> List[str]:
    """Ids that ended the run with a record on disk, without duplicates."""
    seen = set()
    out = []
    for content_id in content_ids:
        if content_id in seen:
            continue
        if (content_type.content_dir / content_id / content_type.record_name).is_file():
            seen.add(content_id)
            out.append(content_id)
    return out


def generate_manifest(
    ctx: RunContext, content_type: ContentType, content_ids: Sequence[str]
) -> pathlib.Path:
    text = ctx.templates().get_template("manifest.ts.j2").render(
        ct=content_type, ids=list(content_ids)
    )
    path = ctx.settings.generated_dir / content_type.manifest_module
    _write_module(path, text)
    return path


def _publish_key(post: Dict[str, Any]) -> date:
    try:
        return date.fromisoformat(str(post["publishDate"])[:10])
    except ValueError:
        return date.min


def normalize_post(content_id: str, data: Dict[str, Any], today: str) -> Dict[str, Any]:
    return {
        "id": content_id,
        "title": data.get("title") or "Untitled",
        "description": data.get("description") or "",
        "excerpt": data.get("excerpt") or data.get("description") or "",
        "category": data.get("category") or "General",
        "publishDate": data.get("publishDate") or today,
        "readTime": data.get("readTime") or "5 min read",
        "tags": data.get("tags") or data.get("technologies") or [],
    }


def latest_posts(
    ctx: RunContext, content_type: ContentType, content_ids: Sequence[str]
) -> List[Dict[str, Any]]:
    posts = []
    for content_id in content_ids:
        path = content_type.content_dir / content_id / content_type.record_name
        if not path.exists():
            continue
        try:
            data = read_json(path)
        except (OSError, ValueError) as e:
            print(f"! failed to load blog {content_id}: {e}", file=sys.stderr)
            continue
        posts.append(normalize_post(content_id, data, ctx.today_iso))

    # Stable sort keeps discovery order between posts of the same day.
    posts.sort(key=_publish_key, reverse=True)
    return posts[: ctx.settings.latest_posts]


def generate_latest_posts(
    ctx: RunContext, content_type: ContentType, content_ids: Sequence[str]
) -> pathlib.Path:
    try:
        posts = latest_posts(ctx, content_type, content_ids)
        posts_json = json.dumps(posts, indent=2, ensure_ascii=False)
    except Exception as e:
        print(f"! failed to build latest blog posts: {e}", file=sys.stderr)
        posts_json = "[]"

    text = ctx.templates().get_template("latest_posts.ts.j2").render(posts_json=posts_json)
    path = ctx.settings.latest_posts_module
    _write_module(path, text)
    return path
