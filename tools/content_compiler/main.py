#!/usr/bin/env python3
"""
Content compiler for the portfolio site.

- Projects -> src/app/projects/content/<id>/project.json
- Blog posts -> src/app/blog/content/<id>/blog.json
  fields: title, description, technologies, tags, category, status,
  featured, publishDate, readTime, excerpt, links, content{...}

Each run:
- Starter project.md/blog.md written for folders holding only images
- Records rebuilt only when the markdown is newer than the JSON
- Records without rendered HTML get it added in place
- Image folders classified into hero/demo/screenshots
- src/lib/generated/ gets image imports, id manifests and the latest
  blog posts, rewritten on every run

Only one run may touch a site tree at a time.
"""

from __future__ import annotations

import argparse
import pathlib
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .codegen import (
    generate_image_imports,
    generate_latest_posts,
    generate_manifest,
    manifest_ids,
)
from .config import load_settings
from .context import RunContext
from .discovery import discover_content
from .errors import CompilerError
from .images import discover_images
from .records import MERGED, REGENERATED, SKIPPED, backfill_html, process_item
from .starters import create_template


@dataclass
class RunSummary:
    processed: Dict[str, int] = field(default_factory=dict)
    regenerated: int = 0
    merged: int = 0
    skipped: int = 0
    backfilled: int = 0
    templates: List[str] = field(default_factory=list)
    manifests: Dict[str, List[str]] = field(default_factory=dict)


def synthesize_templates(ctx: RunContext, ids_by_type: Dict[str, List[str]]) -> List[str]:
    created = []
    for ct in ctx.settings.content_types:
        for content_id in ids_by_type[ct.name]:
            folder = ct.content_dir / content_id
            if (folder / ct.source_name).exists():
                continue
            images = discover_images(folder)
            if images.hero or images.screenshots:
                print(f"- image-only {ct.name} folder {content_id}")
                if create_template(ctx, ct, content_id):
                    created.append(f"{content_id}/{ct.source_name}")
    return created


def run(ctx: RunContext) -> RunSummary:
    settings = ctx.settings
    summary = RunSummary()

    ids_by_type = {ct.name: discover_content(ctx, ct) for ct in settings.content_types}
    if len(ctx.discovery_failures) == len(settings.content_types):
        raise CompilerError("no content directory could be listed")

    summary.templates = synthesize_templates(ctx, ids_by_type)
    if summary.templates:
        print(f"✓ auto-generated {len(summary.templates)} template markdown files")

    for ct in settings.content_types:
        processed = 0
        for content_id in ids_by_type[ct.name]:
            result = process_item(ctx, ct, content_id)
            if result is None:
                continue
            processed += 1
            if result.action == REGENERATED:
                summary.regenerated += 1
            elif result.action == MERGED:
                summary.merged += 1
            elif result.action == SKIPPED:
                summary.skipped += 1
        summary.processed[ct.name] = processed

    print(
        f"Projects: {summary.processed['project']}, Blogs: {summary.processed['blog']}\n"
        f"Regenerated: {summary.regenerated}, Merged: {summary.merged}, "
        f"Skipped: {summary.skipped}"
    )

    for ct in settings.content_types:
        for content_id in ids_by_type[ct.name]:
            if backfill_html(ctx, ct, content_id) is not None:
                summary.backfilled += 1

    for ct in settings.content_types:
        generate_image_imports(ctx, ct, ids_by_type[ct.name])

    for ct in settings.content_types:
        ids = manifest_ids(ct, ids_by_type[ct.name])
        generate_manifest(ctx, ct, ids)
        summary.manifests[ct.name] = ids

    generate_latest_posts(ctx, settings.blogs, summary.manifests[settings.blogs.name])

    print(
        f"✓ done: {summary.regenerated} regenerated, "
        f"{summary.merged + summary.backfilled} enhanced, {summary.skipped} up-to-date"
    )
    return summary


def _content_id(value: str) -> str:
    if not value or value in (".", "..") or "/" in value or "\\" in value:
        raise argparse.ArgumentTypeError(f"invalid content id: {value!r}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="compile-content",
        description="Build JSON records and generated modules from project/blog markdown.",
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=("create", "create-blog"),
        help="create a starter project.md / blog.md instead of running the build",
    )
    parser.add_argument("name", nargs="?", type=_content_id, help="content id for create modes")
    parser.add_argument("--create", metavar="ID", type=_content_id, help="create a project template")
    parser.add_argument("--create-blog", metavar="ID", type=_content_id, help="create a blog template")
    parser.add_argument("--root", type=pathlib.Path, help="site root (default: current directory)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    project_id = args.create or (args.name if args.command == "create" else None)
    blog_id = args.create_blog or (args.name if args.command == "create-blog" else None)
    if args.command and not args.name:
        parser.error(f"{args.command} needs a content id")

    try:
        ctx = RunContext(load_settings(args.root))
        if project_id:
            if create_template(ctx, ctx.settings.projects, project_id):
                print(f"  next: edit {project_id}/project.md, add images, then run compile-content")
            return 0
        if blog_id:
            if create_template(ctx, ctx.settings.blogs, blog_id):
                print(f"  next: edit {blog_id}/blog.md, add images, then run compile-content")
            return 0
        run(ctx)
    except (CompilerError, OSError) as e:
        print(f"ERROR: build generation failed: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
