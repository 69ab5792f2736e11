"""
Render layer: 뷰 → 바이트 출력.

역할:
- 렌더러 선택 (템플릿 확장자), 설정 키
- 뷰 클래스별 Jinja2 설정 캐시
- LayoutView two-step 렌더
"""

from .base import ViewRenderer
from .configuration import (
    ConfigurationCache,
    ConfigurationLoader,
    TemplateConfiguration,
    ViewObjectWrapper,
)
from .loader import ViewTemplateLoader
from .renderer import CONFIGURATION_KEY, FILE_PATTERN, JinjaLayoutViewRenderer

__all__ = [
    "ViewRenderer",
    "JinjaLayoutViewRenderer",
    "CONFIGURATION_KEY",
    "FILE_PATTERN",
    "ConfigurationCache",
    "ConfigurationLoader",
    "TemplateConfiguration",
    "ViewObjectWrapper",
    "ViewTemplateLoader",
]
