"""Tests for generated image-import modules, manifests and latest posts."""

from __future__ import annotations

import json

import pytest

from content_compiler.codegen import (
    generate_image_imports,
    generate_latest_posts,
    generate_manifest,
    latest_posts,
    manifest_ids,
)
from content_compiler.errors import CompilerError
from content_compiler.utils import write_record


def _blog(settings, content_id, **fields):
    folder = settings.blogs.content_dir / content_id
    folder.mkdir(parents=True, exist_ok=True)
    write_record(folder / "blog.json", {"content": {}, **fields})


class TestImageImports:
    def test_module_contents(self, ctx, settings, make_item):
        make_item(
            settings.projects, "my-app", source=False,
            images=["banner.jpg", "demo.gif", "shot-a.png", "shot-b.png"],
        )
        make_item(settings.projects, "no-images", source=False)

        path = generate_image_imports(ctx, settings.projects, ["my-app", "no-images"])
        text = path.read_text(encoding="utf-8")

        assert path.name == "projectImageImports.ts"
        assert "import myappHero from '@/app/projects/content/my-app/banner.jpg';" in text
        assert "import myappDemo from '@/app/projects/content/my-app/demo.gif';" in text
        assert "import myappScreenshot2 from '@/app/projects/content/my-app/shot-b.png';" in text
        assert "screenshots: [myappScreenshot1, myappScreenshot2]" in text
        assert "'shot-b.png': myappScreenshot2" in text
        assert "export const availableProjects = ['my-app'];" in text
        assert "export function getProjectImages(projectId: string): ProjectImageImports" in text
        assert "export function getProjectImageByFilename(" in text
        assert "export { myappScreenshot1 };" in text
        assert "no-images" not in text

    def test_blog_names(self, ctx, settings, make_item):
        make_item(settings.blogs, "first-post", source=False, images=["cover.png"])

        text = generate_image_imports(ctx, settings.blogs, ["first-post"]).read_text(encoding="utf-8")

        assert "import firstpostHero from '@/app/blog/content/first-post/cover.png';" in text
        assert "export const blogImagesByFilename" in text
        assert "export const availableBlog = ['first-post'];" in text

    def test_leading_digit_id_gives_valid_identifiers(self, ctx, settings, make_item):
        make_item(settings.blogs, "2024-recap", source=False, images=["cover.png"])

        text = generate_image_imports(ctx, settings.blogs, ["2024-recap"]).read_text(encoding="utf-8")

        assert "import _2024recapHero from '@/app/blog/content/2024-recap/cover.png';" in text
        assert "hero: _2024recapHero," in text
        assert "import 2024recap" not in text

    def test_registry_filled_for_renderer(self, ctx, settings, make_item):
        make_item(settings.projects, "site", source=False, images=["a.png", "b.png"])
        generate_image_imports(ctx, settings.projects, ["site"])
        assert ctx.registry(settings.projects).lookup("site", "b.png") == "siteScreenshot1"

    def test_unwritable_target_is_fatal(self, ctx, settings):
        settings.generated_dir.parent.mkdir(parents=True, exist_ok=True)
        settings.generated_dir.write_text("not a directory", encoding="utf-8")

        with pytest.raises(CompilerError):
            generate_image_imports(ctx, settings.projects, [])


class TestManifest:
    def test_ids_with_records_only(self, settings, make_item):
        make_item(settings.projects, "a", source=False)
        make_item(settings.projects, "b", source=False)
        (settings.projects.content_dir / "a" / "project.json").write_text("{}", encoding="utf-8")

        assert manifest_ids(settings.projects, ["a", "b", "a"]) == ["a"]

    def test_module_contents(self, ctx, settings):
        path = generate_manifest(ctx, settings.projects, ["alpha", "beta"])
        text = path.read_text(encoding="utf-8")

        assert path.name == "projectManifest.ts"
        assert "export const PROJECT_IDS = [\n  'alpha',\n  'beta'\n] as const;" in text
        assert "export const PROJECT_COUNT = 2;" in text
        assert "export function isValidProjectId(id: string): id is ProjectId" in text
        assert "export function getStaticProjectParams()" in text

    def test_empty_manifest(self, ctx, settings):
        text = generate_manifest(ctx, settings.blogs, []).read_text(encoding="utf-8")

        assert "export const BLOG_IDS = [\n] as const;" in text
        assert "export const BLOG_COUNT = 0;" in text

    def test_ids_are_quoted(self, ctx, settings):
        text = generate_manifest(ctx, settings.blogs, ["it's"]).read_text(encoding="utf-8")
        assert "'it\\'s'" in text


class TestLatestPosts:
    def test_two_newest_first(self, ctx, settings):
        dates = ["2024-01-05", "2024-06-01", "2023-12-31", "2024-03-10", "2024-05-20"]
        for i, d in enumerate(dates):
            _blog(settings, f"post-{i}", title=f"Post {i}", publishDate=d)

        posts = latest_posts(ctx, settings.blogs, [f"post-{i}" for i in range(5)])

        assert [p["id"] for p in posts] == ["post-1", "post-4"]
        assert [p["publishDate"] for p in posts] == ["2024-06-01", "2024-05-20"]

    def test_projection_defaults(self, ctx, settings):
        _blog(settings, "bare", description="Desc", technologies=["go"])

        (post,) = latest_posts(ctx, settings.blogs, ["bare"])

        assert post == {
            "id": "bare",
            "title": "Untitled",
            "description": "Desc",
            "excerpt": "Desc",
            "category": "General",
            "publishDate": "2025-01-15",
            "readTime": "5 min read",
            "tags": ["go"],
        }

    def test_unreadable_post_is_skipped(self, ctx, settings, capsys):
        _blog(settings, "good", title="Good", publishDate="2024-01-01")
        bad = settings.blogs.content_dir / "bad"
        bad.mkdir()
        (bad / "blog.json").write_text("{oops", encoding="utf-8")

        posts = latest_posts(ctx, settings.blogs, ["bad", "good"])

        assert [p["id"] for p in posts] == ["good"]
        assert "failed to load blog bad" in capsys.readouterr().err

    def test_module_contents(self, ctx, settings):
        _blog(settings, "one", title="One", publishDate="2024-02-02", tags=["a"])

        text = generate_latest_posts(ctx, settings.blogs, ["one"]).read_text(encoding="utf-8")
        payload = text.split("export const latestBlogPosts: LatestBlogPost[] = ", 1)[1]

        assert json.loads(payload.rstrip().rstrip(";"))[0]["title"] == "One"

    def test_failure_writes_empty_aggregate(self, ctx, settings, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr("content_compiler.codegen.latest_posts", boom)

        text = generate_latest_posts(ctx, settings.blogs, ["x"]).read_text(encoding="utf-8")
        assert "export const latestBlogPosts: LatestBlogPost[] = [];" in text
