"""
View: 템플릿 이름 + 데이터 컨텍스트.

템플릿 이름 규칙:
- "/" 로 시작 → 절대 경로 (import root 기준, classpath와 같은 개념)
- 그 외 → 뷰 클래스가 정의된 패키지 기준 상대 경로

예:
    tests.fixtures.views 모듈의 뷰가 "view.j2" 사용
    → "/tests/fixtures/view.j2"
"""

import copy
import sys


def package_of(view_type: type) -> str:
    """뷰 클래스가 속한 패키지 이름 (최상위 모듈이면 "")."""
    module = sys.modules.get(view_type.__module__)
    package = getattr(module, "__package__", None)
    if package is None:
        package = view_type.__module__.rpartition(".")[0]
    return package


def resolve_template_name(view_type: type, template_name: str) -> str:
    """
    템플릿 이름을 절대 경로 형태로 변환.

    Args:
        view_type: 뷰 클래스
        template_name: 뷰가 선언한 템플릿 이름

    Returns:
        "/" 로 시작하는 템플릿 이름
    """
    if template_name.startswith("/"):
        return template_name

    package = package_of(view_type)
    if not package:
        return f"/{template_name}"
    return f"/{package.replace('.', '/')}/{template_name}"


class View:
    """
    렌더 가능한 뷰.

    Usage:
        class GreetingView(View):
            def __init__(self, name: str):
                super().__init__("greeting.j2")
                self.name = name

    공개 속성/프로퍼티가 템플릿 컨텍스트가 된다.
    """

    def __init__(self, template_name: str, charset: str | None = None) -> None:
        """
        Args:
            template_name: 템플릿 이름 (상대 또는 "/" 로 시작하는 절대 경로)
            charset: 템플릿/출력 인코딩 (None이면 설정의 locale 기본값 사용)

        Raises:
            TypeError: template_name이 None
            ValueError: template_name이 비어 있음
        """
        if template_name is None:
            raise TypeError("template_name must not be None")
        if not template_name:
            raise ValueError("template_name must not be empty")

        self._template_name = resolve_template_name(type(self), template_name)
        self._charset = charset

    @property
    def template_name(self) -> str:
        return self._template_name

    @property
    def charset(self) -> str | None:
        return self._charset

    def __repr__(self) -> str:
        return f"{type(self).__name__}(template_name={self._template_name!r})"


class LayoutView(View):
    """
    Two-step layout: 바깥 레이아웃이 안쪽 content view의 렌더 결과를 감싼다.

    content는 렌더러가 채운다:
    1. content_view 렌더 → 문자열
    2. with_content()로 content가 채워진 복사본 생성
    3. 복사본(레이아웃) 렌더 → 템플릿에서 {{ content }} 사용

    원본 인스턴스는 변경되지 않는다.
    """

    def __init__(
        self,
        layout_template_name: str,
        content_view: View,
        charset: str | None = None,
    ) -> None:
        if content_view is None:
            raise TypeError("content_view must not be None")

        super().__init__(layout_template_name, charset)
        self._content_view = content_view
        self._content = ""

    @property
    def content_view(self) -> View:
        """안쪽 content view."""
        return self._content_view

    @property
    def content(self) -> str:
        """렌더된 content (렌더 전에는 빈 문자열)."""
        return self._content

    def with_content(self, content: str) -> "LayoutView":
        """
        content가 채워진 얕은 복사본 반환.

        Raises:
            TypeError: content가 None
        """
        if content is None:
            raise TypeError("content must not be None")

        layout = copy.copy(self)
        layout._content = content
        return layout
