from __future__ import annotations

from .config import ContentType
from .context import RunContext
from .utils import display_name


def render_starter(ctx: RunContext, content_type: ContentType, content_id: str) -> str:
    template = ctx.templates().get_template(f"{content_type.name}.md.j2")
    return template.render(
        title=display_name(content_id),
        content_id=content_id,
        today=ctx.today_iso,
        author=ctx.settings.author,
        site_url=ctx.settings.site_url,
    )


def create_template(ctx: RunContext, content_type: ContentType, content_id: str) -> bool:
    """Write a starter markdown file; never replaces one that exists."""
    folder = content_type.content_dir / content_id
    md_path = folder / content_type.source_name

    if not folder.exists():
        folder.mkdir(parents=True)
        print(f"✓ created {content_type.name} directory {content_id}")

    if md_path.exists():
        print(f"= template already exists at {content_id}/{md_path.name}")
        return False

    md_path.write_text(render_starter(ctx, content_type, content_id), encoding="utf-8")
    print(f"✓ created template {content_id}/{md_path.name}")
    return True
