"""
Unit tests for target to filesystem path resolution.
"""

import os

import pytest

from statichttp.http.errors import MalformedRequest, PathTraversal
from statichttp.http.paths import PathResolver, extension_of


class TestExtensionOf:

    @pytest.mark.parametrize("target,expected", [
        ("/a.png", ".png"),
        ("/img/logo.jpeg", ".jpeg"),
        ("/archive.tar.gz", ".gz"),
        ("/x.PNG", ".PNG"),
        ("/a.b/c", None),
        ("/", None),
        ("/docs", None),
        ("/docs/", None),
        ("/a.png?v=2", ".png?v=2"),
    ])
    def test_extension(self, target, expected):
        assert extension_of(target) == expected


class TestPathResolver:
    """Tests for PathResolver.resolve()."""

    def test_root_resolves_to_index(self, site):
        resolved = PathResolver(site.root).resolve("/")

        assert resolved.filesystem_path == (site.root / "index.html").resolve()
        assert resolved.extension == ".html"
        assert resolved.content_type == "text/html"

    def test_extensionless_target_gets_index(self, site):
        resolver = PathResolver(site.root)

        assert resolver.resolve("/docs").filesystem_path == (site.root / "docs" / "index.html").resolve()
        assert resolver.resolve("/docs/").filesystem_path == (site.root / "docs" / "index.html").resolve()

    def test_custom_index_file(self, site):
        resolved = PathResolver(site.root, index_file="home.html").resolve("/")

        assert resolved.filesystem_path.name == "home.html"

    def test_file_target(self, site):
        resolved = PathResolver(site.root).resolve("/a.png")

        assert resolved.filesystem_path == (site.root / "a.png").resolve()
        assert resolved.content_type == "image/png"
        assert resolved.is_supported

    def test_unsupported_extension_has_no_content_type(self, site):
        resolved = PathResolver(site.root).resolve("/data.xyz")

        assert resolved.extension == ".xyz"
        assert resolved.content_type is None
        assert not resolved.is_supported

    def test_missing_file_still_resolves(self, site):
        """Existence is checked when the file is opened, not here."""
        resolved = PathResolver(site.root).resolve("/missing.css")

        assert resolved.filesystem_path == (site.root / "missing.css").resolve()

    def test_dot_dot_inside_root_is_fine(self, site):
        resolved = PathResolver(site.root).resolve("/docs/../a.png")

        assert resolved.filesystem_path == (site.root / "a.png").resolve()

    @pytest.mark.parametrize("target", [
        "/../secret.html",
        "/docs/../../secret.html",
        "/..",
        "/../..",
    ])
    def test_traversal_rejected(self, site, target):
        with pytest.raises(PathTraversal) as exc_info:
            PathResolver(site.root).resolve(target)

        assert exc_info.value.status == 400

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlink_out_of_root_rejected(self, site):
        (site.root / "link.html").symlink_to(site.root.parent / "secret.html")

        with pytest.raises(PathTraversal):
            PathResolver(site.root).resolve("/link.html")

    @pytest.mark.parametrize("target", ["index.html", "*", "http://example.com/a.png"])
    def test_target_must_start_with_slash(self, site, target):
        with pytest.raises(MalformedRequest):
            PathResolver(site.root).resolve(target)

    def test_nul_byte_rejected(self, site):
        with pytest.raises(MalformedRequest):
            PathResolver(site.root).resolve("/a\x00.png")

    def test_missing_root_is_not_fatal(self, tmp_path):
        resolver = PathResolver(tmp_path / "nowhere")

        assert resolver.resolve("/a.png").filesystem_path == (tmp_path / "nowhere" / "a.png").resolve()
