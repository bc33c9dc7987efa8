from __future__ import annotations

import sys
from datetime import date
from typing import Dict, List, Optional, Set

from .bindings import BindingRegistry
from .config import ContentType, Settings


class RunContext:
    """
    State shared by every step of one compiler run.

    Built once at the start of a run and handed to each component. Holds
    the memoized Markdown converter, one binding registry per content
    type and the warnings already printed. Nothing needs closing; the
    object is dropped when the run ends.
    """

    def __init__(self, settings: Settings, today: Optional[date] = None) -> None:
        self.settings = settings
        self.today = today or date.today()
        self.registries: Dict[str, BindingRegistry] = {
            ct.name: BindingRegistry() for ct in settings.content_types
        }
        self.discovery_failures: List[str] = []
        self._warned: Set[str] = set()
        self._markdown = None
        self._templates = None

    @property
    def today_iso(self) -> str:
        return self.today.isoformat()

    def registry(self, content_type: ContentType) -> BindingRegistry:
        return self.registries[content_type.name]

    def markdown(self):
        # Loaded on first use and kept for the rest of the run.
        if self._markdown is None:
            from .rendering import build_markdown

            self._markdown = build_markdown()
        return self._markdown

    def templates(self):
        if self._templates is None:
            from .templating import build_environment

            self._templates = build_environment()
        return self._templates

    def warn_once(self, message: str) -> None:
        if message in self._warned:
            return
        self._warned.add(message)
        print(f"! {message}", file=sys.stderr)
