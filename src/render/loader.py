"""
Template loader: 뷰 클래스의 import root + sys.path 에서 템플릿 탐색.

탐색 순서:
1. 뷰 클래스의 import root (패키지 최상위 디렉터리의 부모)
2. sys.path 의 각 디렉터리 (classpath 역할)

템플릿 이름은 Jinja2 경로 규칙으로 분해 (".." 금지).
"""

import logging
import sys
from collections.abc import Callable
from pathlib import Path

from jinja2 import BaseLoader, Environment, TemplateNotFound
from jinja2.loaders import split_template_path

from src.views.view import package_of

logger = logging.getLogger(__name__)


def import_root(view_type: type) -> Path | None:
    """
    뷰 클래스 모듈의 import root.

    예: /app/tests/fixtures/views.py (패키지 tests.fixtures) → /app

    Returns:
        import root 디렉터리 (파일이 없는 내장 모듈이면 None)
    """
    module = sys.modules.get(view_type.__module__)
    module_file = getattr(module, "__file__", None)
    if not module_file:
        return None

    directory = Path(module_file).resolve().parent
    package = package_of(view_type)
    depth = len(package.split(".")) if package else 0
    if depth == 0:
        return directory
    return directory.parents[depth - 1]


def localized_names(template: str, locale: str | None) -> list[str]:
    """
    locale 기반 후보 템플릿 이름 목록.

    예: ("/a/view.j2", "en_US")
        → ["/a/view_en_US.j2", "/a/view_en.j2", "/a/view.j2"]
    """
    if not locale:
        return [template]

    directory, slash, filename = template.rpartition("/")
    stem, dot, ext = filename.rpartition(".")
    if not dot:
        stem, ext = filename, ""

    parts = [p for p in locale.replace("-", "_").split("_") if p]
    names = []
    for i in range(len(parts), 0, -1):
        suffix = "_".join(parts[:i])
        names.append(f"{directory}{slash}{stem}_{suffix}{dot}{ext}")
    names.append(template)
    return names


class ViewTemplateLoader(BaseLoader):
    """
    뷰 클래스 단위 템플릿 로더.

    Usage:
        loader = ViewTemplateLoader(import_root(MyView))
        source, filename, uptodate = loader.load_source("/pkg/view.j2", "utf-8")
    """

    def __init__(self, root: Path | None = None, encoding: str = "utf-8") -> None:
        self.root = root
        self.encoding = encoding

    def search_path(self) -> list[Path]:
        """탐색 디렉터리 목록 (root 우선, 그 다음 sys.path)."""
        paths: list[Path] = []
        if self.root is not None:
            paths.append(self.root)
        for entry in sys.path:
            path = Path(entry or ".")
            if path.is_dir() and path not in paths:
                paths.append(path)
        return paths

    def find(self, template: str) -> Path:
        """
        템플릿 파일 경로 탐색.

        Raises:
            TemplateNotFound: 어느 디렉터리에도 없음
        """
        pieces = split_template_path(template)
        if not pieces:
            raise TemplateNotFound(template)

        for base in self.search_path():
            path = base.joinpath(*pieces)
            if path.is_file():
                return path

        raise TemplateNotFound(template)

    def load_source(
        self,
        template: str,
        encoding: str,
    ) -> tuple[str, str, Callable[[], bool]]:
        """
        지정 인코딩으로 템플릿 소스 로드.

        Returns:
            (source, filename, uptodate)
        """
        path = self.find(template)
        mtime = path.stat().st_mtime
        source = path.read_text(encoding=encoding)
        logger.debug(f"Loaded template {template} from {path} ({encoding})")

        def uptodate() -> bool:
            try:
                return path.stat().st_mtime == mtime
            except OSError:
                return False

        return source, str(path), uptodate

    def get_source(
        self,
        environment: Environment,
        template: str,
    ) -> tuple[str, str, Callable[[], bool]]:
        """
        Environment 경유 로드용 (기본 인코딩).

        뷰 렌더 중의 {% include %} / {% extends %} 는 ViewEnvironment가
        TemplateConfiguration.get_template() → load_source() 로 렌더 인코딩을
        넘겨 로드하므로 여기를 거치지 않는다.
        """
        return self.load_source(template, self.encoding)
