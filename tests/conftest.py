"""Shared fixtures: a throwaway site tree with project and blog content roots."""

from __future__ import annotations

import os
from datetime import date
from pathlib import Path

import pytest
import yaml

from content_compiler.config import load_settings
from content_compiler.context import RunContext

# Well before any file the tests write.
OLD_MTIME = 1_600_000_000


@pytest.fixture
def site(tmp_path: Path) -> Path:
    (tmp_path / "src" / "app" / "projects" / "content").mkdir(parents=True)
    (tmp_path / "src" / "app" / "blog" / "content").mkdir(parents=True)
    return tmp_path


@pytest.fixture
def settings(site: Path):
    return load_settings(site)


@pytest.fixture
def ctx(settings) -> RunContext:
    return RunContext(settings, today=date(2025, 1, 15))


@pytest.fixture
def make_item():
    def _make(content_type, content_id, frontmatter=None, body="## Overview\n\nHello.\n",
              images=(), source=True):
        folder = content_type.content_dir / content_id
        folder.mkdir(parents=True, exist_ok=True)
        for name in images:
            (folder / name).write_bytes(b"img")
        if source:
            md = folder / content_type.source_name
            fm = yaml.safe_dump(frontmatter or {}, sort_keys=False).rstrip()
            md.write_text(f"---\n{fm}\n---\n{body}", encoding="utf-8")
            os.utime(md, (OLD_MTIME, OLD_MTIME))
        return folder

    return _make
