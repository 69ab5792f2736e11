"""
테스트용 뷰 정의.

템플릿은 이 디렉터리(tests/fixtures/)에 있다.
상대 이름 "view.j2" → "/tests/fixtures/view.j2"
"""

from datetime import datetime

from src.views import View

FIXTURES = "/tests/fixtures"


class ViewFixture(View):
    """text 프로퍼티를 노출하는 기본 뷰."""

    @property
    def text(self) -> str:
        return "Hello, World!"


class AbsoluteView(View):
    def __init__(self, name: str) -> None:
        super().__init__(f"{FIXTURES}/absolute.j2")
        self.name = name


class RelativeView(View):
    def __init__(self) -> None:
        super().__init__("relative.j2")


class NotFoundView(View):
    def __init__(self) -> None:
        super().__init__("/does-not-exist.j2")


class ErrorView(View):
    """존재하지 않는 변수 접근 → 실행 실패."""

    def __init__(self) -> None:
        super().__init__(f"{FIXTURES}/error.j2")


class BrokenView(View):
    """문법 오류 템플릿 → 컴파일 실패."""

    def __init__(self) -> None:
        super().__init__("broken.j2")


class AutoEscapingView(View):
    def __init__(self, content: str) -> None:
        super().__init__(f"{FIXTURES}/auto-escaping.j2h")
        self.content = content


class ExplodingView(View):
    def __init__(self) -> None:
        super().__init__("explode.j2")

    @property
    def explode(self) -> str:
        raise RuntimeError("boom")


class StampView(View):
    def __init__(self, stamp: datetime) -> None:
        super().__init__("stamp.j2")
        self.stamp = stamp


class TextView(View):
    def __init__(self, text: str, charset: str | None = None) -> None:
        super().__init__("text.j2", charset)
        self.text = text


class Latin1View(View):
    """ISO-8859-1로 저장된 템플릿 (äöü)."""

    def __init__(self) -> None:
        super().__init__("latin1.j2", charset="ISO-8859-1")


class LazyView(View):
    """템플릿이 참조하지 않는 프로퍼티가 예외를 던지는 뷰 (view.j2)."""

    def __init__(self) -> None:
        super().__init__("view.j2")

    @property
    def expensive(self) -> str:
        raise RuntimeError("must not be evaluated")


class Latin1PageView(View):
    """ISO-8859-1 템플릿을 include 하는 ISO-8859-1 뷰."""

    def __init__(self) -> None:
        super().__init__("latin1-page.j2", charset="ISO-8859-1")
