"""
Views: 렌더 대상 모델.

- View: 템플릿 이름 + 데이터 컨텍스트
- LayoutView: content view를 감싸는 레이아웃
"""

from .view import LayoutView, View, resolve_template_name

__all__ = [
    "View",
    "LayoutView",
    "resolve_template_name",
]
