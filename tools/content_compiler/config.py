#!/usr/bin/env python3
from __future__ import annotations

import pathlib
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import yaml

from .errors import CompilerError

# ---------- Paths (relative to the site root)

PROJECTS_DIR = pathlib.Path("src") / "app" / "projects" / "content"
BLOG_DIR = pathlib.Path("src") / "app" / "blog" / "content"
GENERATED_DIR = pathlib.Path("src") / "lib" / "generated"
SETTINGS_FILE = "content-compiler.yml"

TEMPLATE_DIR = pathlib.Path(__file__).resolve().parent / "templates"

# ---------- Config

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg")
HERO_TOKENS = ("hero", "main", "continuous-innovation")
DEMO_TOKENS = ("demo", "gif")
LATEST_POSTS = 2
DEFAULT_AUTHOR = "Your Name"
DEFAULT_SITE_URL = "https://example.com"

GENERATED_WARNING = (
    "IMPORTANT: The contents of this file are auto-generated. "
    "Manual changes will be overwritten when the generator runs."
)
PLACEHOLDER_ALT = "Project Image"

# Images referenced by name in older content, imported by hand elsewhere.
LEGACY_IMAGE_BINDINGS = {
    "continuous-innovation.jpg": "continuousInnovationImage",
    "tech-excellence.jpg": "techExcellenceImage",
    "user-centered-design.jpg": "userCenteredDesignImage",
}

# Some shared regexes

IMG_TAG = re.compile(r"<img\b[^>]*>", re.IGNORECASE)
IMG_SRC = re.compile(r'\bsrc\s*=\s*"(?P<url>[^"]*)"', re.IGNORECASE)
IMG_ALT = re.compile(r'\balt\s*=\s*"(?P<alt>[^"]*)"', re.IGNORECASE)
URL_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")
NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


@dataclass(frozen=True)
class ContentType:
    """One kind of authored content and the names its generated code uses."""

    name: str
    content_dir: pathlib.Path
    import_prefix: str
    plural_title: str

    @property
    def title(self) -> str:
        return self.name.capitalize()

    @property
    def source_name(self) -> str:
        return f"{self.name}.md"

    @property
    def record_name(self) -> str:
        return f"{self.name}.json"

    @property
    def imports_module(self) -> str:
        return f"{self.name}ImageImports.ts"

    @property
    def manifest_module(self) -> str:
        return f"{self.name}Manifest.ts"


@dataclass
class Settings:
    root: pathlib.Path
    projects: ContentType
    blogs: ContentType
    generated_dir: pathlib.Path
    latest_posts: int = LATEST_POSTS
    author: str = DEFAULT_AUTHOR
    site_url: str = DEFAULT_SITE_URL

    @property
    def content_types(self) -> Tuple[ContentType, ContentType]:
        return (self.projects, self.blogs)

    @property
    def latest_posts_module(self) -> pathlib.Path:
        return self.generated_dir / "latestBlogPosts.ts"


def _read_settings_file(path: pathlib.Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise CompilerError(f"{path.name} is not valid YAML: {e}") from e
    if not isinstance(data, dict):
        raise CompilerError(f"{path.name} must contain a mapping")
    return data


def load_settings(root: Optional[pathlib.Path] = None) -> Settings:
    root = pathlib.Path(root or pathlib.Path.cwd()).resolve()
    data = _read_settings_file(root / SETTINGS_FILE)

    try:
        latest = int(data.get("latest_posts", LATEST_POSTS))
    except (TypeError, ValueError) as e:
        raise CompilerError("latest_posts must be an integer") from e

    projects = ContentType(
        name="project",
        content_dir=root / data.get("projects_dir", PROJECTS_DIR),
        import_prefix=data.get("projects_import_prefix", "@/app/projects/content"),
        plural_title="Projects",
    )
    blogs = ContentType(
        name="blog",
        content_dir=root / data.get("blog_dir", BLOG_DIR),
        import_prefix=data.get("blog_import_prefix", "@/app/blog/content"),
        plural_title="Blog",
    )
    return Settings(
        root=root,
        projects=projects,
        blogs=blogs,
        generated_dir=root / data.get("generated_dir", GENERATED_DIR),
        latest_posts=latest,
        author=str(data.get("author", DEFAULT_AUTHOR)),
        site_url=str(data.get("site_url", DEFAULT_SITE_URL)).rstrip("/"),
    )
