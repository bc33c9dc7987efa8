from __future__ import annotations

import sys
from typing import List

from .config import ContentType
from .context import RunContext


def discover_content(ctx: RunContext, content_type: ContentType) -> List[str]:
    """Immediate subdirectories of a content root; each one is a content id."""
    try:
        ids = sorted(p.name for p in content_type.content_dir.iterdir() if p.is_dir())
    except OSError as e:
        print(f"! failed to discover {content_type.name} content: {e}", file=sys.stderr)
        ctx.discovery_failures.append(content_type.name)
        return []

    print(f"- found {len(ids)} {content_type.name} folders: {', '.join(ids)}")
    return ids
