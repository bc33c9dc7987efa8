from __future__ import annotations

import pathlib
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .config import DEMO_TOKENS, HERO_TOKENS, IMAGE_EXTENSIONS


@dataclass
class ImageSet:
    hero: Optional[str] = None
    demo: Optional[str] = None
    screenshots: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return self.hero is None and self.demo is None and not self.screenshots

    def files(self) -> List[str]:
        out = [f for f in (self.hero, self.demo) if f]
        return out + list(self.screenshots)

    def to_dict(self) -> Dict[str, object]:
        return {
            "hero": self.hero,
            "demo": self.demo,
            "screenshots": list(self.screenshots),
        }


def is_image(name: str) -> bool:
    return name.lower().endswith(IMAGE_EXTENSIONS)


def categorize_image(file_name: str, all_images: Sequence[str]) -> str:
    """Role a single file asks for; `classify_images` settles conflicts."""
    lower = file_name.lower()
    if any(t in lower for t in HERO_TOKENS) or all_images.index(file_name) == 0:
        return "hero"
    if any(t in lower for t in DEMO_TOKENS):
        return "demo"
    return "screenshot"


def classify_images(listing: Sequence[str]) -> ImageSet:
    """
    Sort a folder listing into hero/demo/screenshots.

    Rules are checked per file in listing order and the first matching
    rule wins: hero token or first file -> hero, demo token -> demo,
    anything else -> screenshot. Only the first hero and the first demo
    are kept; later candidates for a taken role become screenshots.
    """
    images = ImageSet()
    for name in listing:
        role = categorize_image(name, listing)
        if role == "hero" and images.hero is None:
            images.hero = name
        elif role == "demo" and images.demo is None:
            images.demo = name
        else:
            images.screenshots.append(name)
    return images


def list_images(folder: pathlib.Path) -> List[str]:
    # Name order keeps "first file" stable across filesystems.
    return sorted(
        p.name for p in folder.iterdir() if p.is_file() and is_image(p.name)
    )


def discover_images(folder: pathlib.Path) -> ImageSet:
    try:
        listing = list_images(folder)
    except OSError as e:
        print(f"! failed to list images in {folder.name}: {e}", file=sys.stderr)
        return ImageSet()
    return classify_images(listing)
