"""
ViewRenderer: 호스트 프레임워크가 사용하는 렌더러 계약.

호스트는 등록된 렌더러 중 is_renderable()이 True인 첫 렌더러로
뷰를 렌더링하고, 설정 블록은 configuration_key로 찾는다.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import BinaryIO

from src.views.view import View


class ViewRenderer(ABC):
    """뷰 렌더러 인터페이스."""

    @abstractmethod
    def is_renderable(self, view: View) -> bool:
        """이 렌더러가 뷰의 템플릿을 처리할 수 있는지."""

    @property
    @abstractmethod
    def configuration_key(self) -> str:
        """호스트 설정에서 이 렌더러의 블록을 찾는 키."""

    @abstractmethod
    def configure(self, options: Mapping[str, str]) -> None:
        """엔진 설정 주입 (첫 렌더 전 1회)."""

    @abstractmethod
    def render(self, view: View, locale: str | None, output: BinaryIO) -> None:
        """
        뷰를 렌더링해 output에 바이트로 기록.

        Raises:
            ViewRenderError: 템플릿 없음 / 컴파일 실패 / 실행 실패
        """
