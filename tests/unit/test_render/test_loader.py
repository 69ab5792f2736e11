"""
test_loader.py - ViewTemplateLoader 테스트

테스트 대상:
- import_root: 뷰 클래스 → import root
- localized_names: locale 후보 이름
- ViewTemplateLoader: root / sys.path 탐색, 인코딩, 경로 검증
"""

from pathlib import Path

import pytest
from jinja2 import Environment, TemplateNotFound

from src.render.loader import ViewTemplateLoader, import_root, localized_names
from tests.fixtures.views import ViewFixture

# =============================================================================
# import_root / localized_names
# =============================================================================


class TestImportRoot:
    """import_root 테스트."""

    def test_package_view(self, project_root: Path):
        assert import_root(ViewFixture) == project_root.resolve()

    def test_builtin_type(self):
        assert import_root(object) is None


class TestLocalizedNames:
    """localized_names 테스트."""

    def test_full_locale(self):
        assert localized_names("/a/view.j2", "en_US") == [
            "/a/view_en_US.j2",
            "/a/view_en.j2",
            "/a/view.j2",
        ]

    def test_hyphenated_locale(self):
        assert localized_names("/a/view.j2h", "de-AT") == [
            "/a/view_de_AT.j2h",
            "/a/view_de.j2h",
            "/a/view.j2h",
        ]

    def test_no_locale(self):
        assert localized_names("/a/view.j2", None) == ["/a/view.j2"]

    def test_name_without_extension(self):
        assert localized_names("/a/view", "en") == ["/a/view_en", "/a/view"]


# =============================================================================
# ViewTemplateLoader
# =============================================================================


class TestViewTemplateLoader:
    """ViewTemplateLoader 테스트."""

    def test_load_from_root(self, tmp_path: Path):
        (tmp_path / "pkg").mkdir()
        (tmp_path / "pkg" / "page.j2").write_text("<p>page</p>", encoding="utf-8")
        loader = ViewTemplateLoader(tmp_path)

        source, filename, uptodate = loader.load_source("/pkg/page.j2", "utf-8")

        assert source == "<p>page</p>"
        assert filename == str(tmp_path / "pkg" / "page.j2")
        assert uptodate() is True

    def test_load_with_encoding(self, tmp_path: Path):
        (tmp_path / "latin.j2").write_bytes("äöü".encode("iso-8859-1"))
        loader = ViewTemplateLoader(tmp_path)

        source, _, _ = loader.load_source("/latin.j2", "ISO-8859-1")

        assert source == "äöü"

    def test_uptodate_after_delete(self, tmp_path: Path):
        path = tmp_path / "page.j2"
        path.write_text("x", encoding="utf-8")
        loader = ViewTemplateLoader(tmp_path)

        _, _, uptodate = loader.load_source("/page.j2", "utf-8")
        path.unlink()

        assert uptodate() is False

    def test_falls_back_to_sys_path(self, tmp_path: Path):
        """root에 없으면 sys.path (프로젝트 루트) 에서 탐색."""
        loader = ViewTemplateLoader(tmp_path)

        source, _, _ = loader.load_source("/tests/fixtures/view.j2", "utf-8")

        assert source == "<p>Hello, World!</p>"

    def test_not_found(self, tmp_path: Path):
        loader = ViewTemplateLoader(tmp_path)

        with pytest.raises(TemplateNotFound):
            loader.load_source("/missing/page.j2", "utf-8")

    def test_parent_directory_rejected(self, tmp_path: Path):
        loader = ViewTemplateLoader(tmp_path / "sub")

        with pytest.raises(TemplateNotFound):
            loader.load_source("/../secret.j2", "utf-8")

    def test_include_uses_default_encoding(self, tmp_path: Path):
        """{% include %} → get_source (loader 기본 인코딩)."""
        (tmp_path / "outer.j2").write_text(
            '<div>{% include "/inner.j2" %}</div>', encoding="utf-8"
        )
        (tmp_path / "inner.j2").write_text("<p>inner</p>", encoding="utf-8")
        env = Environment(loader=ViewTemplateLoader(tmp_path))

        assert env.get_template("/outer.j2").render() == "<div><p>inner</p></div>"
