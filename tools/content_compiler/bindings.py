"""
Names of the image bindings emitted in generated modules.

Every discovered image gets one binding, `{cleanId}{Role}{Index}`:
`cleanId` is the content id without non-alphanumerics, `Role` is
`Hero`, `Demo` or `Screenshot`, and screenshots carry a 1-based index.
Names that would start with a digit get a leading underscore so they
stay valid TypeScript identifiers.
The registry is filled once per content item and read both by the HTML
renderer (filename -> binding) and by the import generator.
"""

from __future__ import annotations

from typing import Dict, List, NamedTuple, Optional, Tuple

from .config import LEGACY_IMAGE_BINDINGS, NON_ALNUM
from .images import ImageSet


class Binding(NamedTuple):
    name: str
    content_id: str
    role: str
    index: Optional[int]
    filename: str


def clean_id(content_id: str) -> str:
    return NON_ALNUM.sub("", content_id)


def _identifier(name: str) -> str:
    return f"_{name}" if name[:1].isdigit() else name


def binding_name(content_id: str, role: str, index: Optional[int] = None) -> str:
    suffix = "" if index is None else str(index + 1)
    return _identifier(f"{clean_id(content_id)}{role[:1].upper()}{role[1:]}{suffix}")


def guess_binding_name(content_id: str, filename: str) -> Optional[str]:
    """
    Best-effort name for an image the registry does not know.

    Tries the legacy hand-written imports first, then builds a name from
    the filename. Nothing guarantees the guessed binding is imported by
    the page, so this is only reached for references to files that are
    not in the content folder.
    """
    compact = content_id.replace("-", "")
    legacy = dict(LEGACY_IMAGE_BINDINGS)
    legacy["hero.jpg"] = _identifier(f"{compact}HeroImage")
    legacy["demo.gif"] = _identifier(f"{compact}DemoImage")
    if filename in legacy:
        return legacy[filename]

    cleaned = NON_ALNUM.sub("", filename)
    if not cleaned:
        return None
    return _identifier(f"{compact}{cleaned[:1].upper()}{cleaned[1:]}")


class BindingRegistry:
    def __init__(self) -> None:
        self._by_file: Dict[Tuple[str, str], Binding] = {}
        self._by_name: Dict[str, Binding] = {}
        self._order: List[str] = []
        self.collisions: List[Tuple[Binding, Binding]] = []

    def register(self, content_id: str, images: ImageSet) -> List[Binding]:
        self.forget(content_id)

        wanted: List[Binding] = []
        if images.hero:
            wanted.append(
                Binding(binding_name(content_id, "hero"), content_id, "hero", None, images.hero)
            )
        if images.demo:
            wanted.append(
                Binding(binding_name(content_id, "demo"), content_id, "demo", None, images.demo)
            )
        for i, shot in enumerate(images.screenshots):
            wanted.append(
                Binding(binding_name(content_id, "screenshot", i), content_id, "screenshot", i, shot)
            )

        for b in wanted:
            prev = self._by_name.get(b.name)
            if prev is not None and (prev.content_id, prev.filename) != (b.content_id, b.filename):
                self.collisions.append((prev, b))
            self._by_name[b.name] = b
            self._by_file[(content_id, b.filename)] = b
        self._order.append(content_id)
        return wanted

    def forget(self, content_id: str) -> None:
        if content_id not in self._order:
            return
        self._order.remove(content_id)
        for key in [k for k in self._by_file if k[0] == content_id]:
            b = self._by_file.pop(key)
            if self._by_name.get(b.name) == b:
                del self._by_name[b.name]

    def lookup(self, content_id: str, filename: str) -> Optional[str]:
        b = self._by_file.get((content_id, filename))
        return b.name if b else None

    def resolve(self, binding: str) -> Optional[Binding]:
        return self._by_name.get(binding)

    def bindings_for(self, content_id: str) -> List[Binding]:
        return [b for (cid, _), b in self._by_file.items() if cid == content_id]
