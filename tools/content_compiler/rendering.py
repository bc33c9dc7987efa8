from __future__ import annotations

import posixpath
import re
import sys
from typing import TYPE_CHECKING
from urllib.parse import unquote

import markdown
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor
from markdown.util import ETX, STX

from .bindings import BindingRegistry, guess_binding_name
from .config import IMG_ALT, IMG_SRC, IMG_TAG, PLACEHOLDER_ALT, URL_SCHEME
from .images import ImageSet
from .utils import heading_id

if TYPE_CHECKING:
    from .context import RunContext

HEADING_TAGS = {f"h{n}" for n in range(1, 7)}
HEADING_CLASSES = {3: "project-subsection-title", 4: "project-detail-title"}
DEFAULT_HEADING_CLASS = "project-section-title"

_ESCAPED_CHAR = re.compile(STX + r"(\d+)" + ETX)
_STASHED = re.compile(STX + r"wzxhzdk:\d+" + ETX)

IMAGE_COMPONENT = """<Image
  src={{{binding}}}
  alt="{alt}"
  class="project-content-image"
  width={{800}}
  height={{600}}
  sizes="(max-width: 768px) 100vw, (max-width: 1024px) 80vw, 800px"
  placeholder="blur"
  loading="lazy"
  style={{{{ width: '100%', height: 'auto', borderRadius: '8px', marginBottom: '0.5rem' }}}}
/>"""

PLAIN_IMAGE = (
    '<img src="{src}" alt="{alt}" class="project-content-image" '
    'style="width: 100%; height: auto; border-radius: 8px;" />'
)

# Order matters: the code-block wrapper must run before the inline-code rule.
STYLING_RULES = [
    (r"<h2>", '<h2 class="project-section-title">'),
    (r"<h3>", '<h3 class="project-subsection-title">'),
    (r"<h4>", '<h4 class="project-detail-title">'),
    (r"<p>", '<p class="project-content-paragraph">'),
    (r"<blockquote>", '<div class="project-callout-panel"><blockquote class="project-quote">'),
    (r"</blockquote>", "</blockquote></div>"),
    (r"<ul>", '<ul class="project-content-list">'),
    (r"<ol>", '<ol class="project-content-list project-numbered-list">'),
    (r"<pre>(<code[^>]*>)", r'<div class="project-code-block"><pre>\1'),
    (r"</code></pre>", "</code></pre></div>"),
    (r"<code>", '<code class="project-inline-code">'),
]
_STYLING = [(re.compile(p, re.IGNORECASE), r) for p, r in STYLING_RULES]


def is_external(href: str) -> bool:
    return href.startswith(("http://", "https://", "//"))


def is_local_image(src: str) -> bool:
    return bool(src) and not URL_SCHEME.match(src) and not src.startswith("//")


def _plain_text(el) -> str:
    text = "".join(el.itertext())
    text = _STASHED.sub("", text)
    return _ESCAPED_CHAR.sub(lambda m: chr(int(m.group(1))), text)


class _SiteTreeprocessor(Treeprocessor):
    """Heading ids/classes and new-tab attributes for external links."""

    def run(self, root):
        for el in root.iter():
            if el.tag in HEADING_TAGS:
                level = int(el.tag[1])
                el.set("id", heading_id(_plain_text(el)))
                el.set("class", HEADING_CLASSES.get(level, DEFAULT_HEADING_CLASS))
            elif el.tag == "a" and is_external(el.get("href", "")):
                el.set("target", "_blank")
                el.set("rel", "noopener noreferrer")


class SiteExtension(Extension):
    def extendMarkdown(self, md):
        # Below the inline processor (20) so links and code spans exist.
        md.treeprocessors.register(_SiteTreeprocessor(md), "site_attributes", 5)


def build_markdown() -> markdown.Markdown:
    return markdown.Markdown(
        extensions=["fenced_code", "tables", "nl2br", "sane_lists", SiteExtension()],
        output_format="html",
    )


def _wrap(inner: str, alt: str) -> str:
    if alt and alt.strip() and alt != PLACEHOLDER_ALT:
        return (
            '<figure class="image-figure">\n'
            '  <div class="image-container">\n'
            f"  {inner}\n"
            "  </div>\n"
            f'  <figcaption class="image-caption">{alt}</figcaption>\n'
            "</figure>"
        )
    return f'<div class="image-container">\n  {inner}\n</div>'


def process_images_in_html(
    html: str,
    content_id: str,
    registry: BindingRegistry,
    ctx: "RunContext | None" = None,
) -> str:
    def _repl(m):
        tag = m.group(0)
        src_m, alt_m = IMG_SRC.search(tag), IMG_ALT.search(tag)
        if not src_m or not alt_m:
            return tag
        src, alt = src_m.group("url"), alt_m.group("alt")

        if is_local_image(src):
            name = posixpath.basename(unquote(src))
            binding = registry.lookup(content_id, name)
            if binding is None and name:
                binding = guess_binding_name(content_id, name)
                if binding and ctx is not None:
                    ctx.warn_once(
                        f"{content_id}: {name} is not in the content folder, "
                        f"guessed binding {binding}"
                    )
            if binding:
                component = IMAGE_COMPONENT.format(
                    binding=binding, alt=alt or PLACEHOLDER_ALT
                )
                return _wrap(component, alt)

        return _wrap(PLAIN_IMAGE.format(src=src, alt=alt or PLACEHOLDER_ALT), alt)

    return IMG_TAG.sub(_repl, html)


def apply_styling(html: str) -> str:
    for pattern, replacement in _STYLING:
        html = pattern.sub(replacement, html)
    return html


def render_html(
    ctx: "RunContext",
    body: str,
    content_id: str,
    images: ImageSet,
    registry: BindingRegistry,
) -> str:
    if not body:
        return ""
    registry.register(content_id, images)
    md = ctx.markdown()
    md.reset()
    html = md.convert(body)
    html = process_images_in_html(html, content_id, registry, ctx)
    return apply_styling(html)


def render_overview(
    ctx: "RunContext",
    body: str,
    content_id: str,
    images: ImageSet,
    registry: BindingRegistry,
) -> str:
    """Rendered HTML for one item, or the raw markdown if rendering fails."""
    try:
        return render_html(ctx, body, content_id, images, registry)
    except Exception as e:
        print(
            f"! failed to render HTML for {content_id}: {e}",
            file=sys.stderr,
        )
        return body
