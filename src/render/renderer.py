"""
Jinja2 레이아웃 뷰 렌더러.

Two-step 렌더 프로토콜:
1. LayoutView → content view를 메모리 버퍼로 렌더
2. content view 인코딩으로 버퍼 디코딩
3. content가 채워진 레이아웃 복사본을 렌더 → {{ content }} 사용 가능

일반 View는 3단계만 수행한다.
"""

import codecs
import io
import logging
import re
from collections.abc import Mapping
from typing import BinaryIO

from jinja2 import TemplateNotFound, TemplateSyntaxError
from markupsafe import Markup

from src.domain.errors import ErrorCodes, ViewRenderError
from src.render.base import ViewRenderer
from src.render.configuration import (
    ConfigurationCache,
    ConfigurationLoader,
    TemplateConfiguration,
    normalize_encoding,
)
from src.views.view import LayoutView, View

logger = logging.getLogger(__name__)

CONFIGURATION_KEY = "jinja2"

# .j2 (plain), .j2h (HTML 자동 이스케이프), .j2x (XML 자동 이스케이프)
FILE_PATTERN = re.compile(r"\.j2[hx]?$")


class JinjaLayoutViewRenderer(ViewRenderer):
    """
    LayoutView 지원 Jinja2 렌더러.

    Usage:
        renderer = JinjaLayoutViewRenderer()
        renderer.configure({"trim_blocks": "yes"})
        renderer.render(LayoutView("layout.j2", PageView()), "en", output)

    여러 요청 스레드가 한 인스턴스를 공유해도 안전하다
    (공유 상태는 설정 캐시와 base 설정뿐).
    """

    def __init__(self) -> None:
        self.loader = ConfigurationLoader()
        self.configurations = ConfigurationCache(self.loader.load)

    def is_renderable(self, view: View) -> bool:
        return FILE_PATTERN.search(view.template_name) is not None

    @property
    def configuration_key(self) -> str:
        return CONFIGURATION_KEY

    def configure(self, options: Mapping[str, str]) -> None:
        """
        Raises:
            TypeError: options가 None
        """
        if options is None:
            raise TypeError("options must not be None")

        if len(self.configurations):
            logger.warning(
                f"configure() called after {len(self.configurations)} "
                f"configuration(s) were built; they keep their old settings"
            )
        self.loader.set_base_configuration(options)

    def render(self, view: View, locale: str | None, output: BinaryIO) -> None:
        if isinstance(view, LayoutView):
            self._render_layout(view, locale, output)
        else:
            self._render_view(view, locale, output)

    # =========================================================================
    # Internal
    # =========================================================================

    def _render_layout(self, layout: LayoutView, locale: str | None, output: BinaryIO) -> None:
        content_view = layout.content_view
        buffer = io.BytesIO()
        self.render(content_view, locale, buffer)

        encoding = self._determine_encoding(content_view, locale)
        try:
            content = buffer.getvalue().decode(encoding)
        except UnicodeDecodeError as e:
            raise ViewRenderError(
                ErrorCodes.TEMPLATE_EXECUTION_FAILED,
                template=content_view.template_name,
                encoding=encoding,
                error=str(e),
            ) from e

        # 이미 렌더된 출력 → 레이아웃의 자동 이스케이프 대상 아님
        self._render_view(layout.with_content(Markup(content)), locale, output)

    def _render_view(self, view: View, locale: str | None, output: BinaryIO) -> None:
        configuration = self.configurations.get(type(view))
        encoding = self._determine_encoding(view, locale, configuration)
        name = view.template_name

        try:
            template = configuration.get_template(name, locale, encoding)
            context = configuration.object_wrapper.wrap(view)
            template_encoding = template.encoding or encoding
            writer = codecs.getwriter(template_encoding)(output)
            # include/extends 대상도 같은 locale/인코딩으로 로드
            with configuration.environment.rendering(locale, template_encoding):
                for chunk in template.generate(context):
                    writer.write(chunk)
        except TemplateNotFound as e:
            logger.error(f"Template not found: {name}")
            raise ViewRenderError(
                ErrorCodes.TEMPLATE_NOT_FOUND,
                template=name,
                error=str(e),
            ) from e
        except TemplateSyntaxError as e:
            logger.error(f"Template compilation failed: {name}: {e}")
            raise ViewRenderError(
                ErrorCodes.TEMPLATE_SYNTAX_ERROR,
                template=name,
                line=e.lineno,
                error=e.message,
            ) from e
        except Exception as e:
            logger.error(f"Template execution failed: {name}: {e}", exc_info=True)
            raise ViewRenderError(
                ErrorCodes.TEMPLATE_EXECUTION_FAILED,
                template=name,
                error=str(e),
            ) from e

    def _determine_encoding(
        self,
        view: View,
        locale: str | None,
        configuration: TemplateConfiguration | None = None,
    ) -> str:
        """view.charset 우선, 없으면 설정의 locale 기본 인코딩."""
        if configuration is None:
            configuration = self.configurations.get(type(view))

        encoding = view.charset or configuration.get_encoding(locale)
        try:
            return normalize_encoding(encoding)
        except LookupError as e:
            raise ViewRenderError(
                ErrorCodes.ENCODING_UNSUPPORTED,
                template=view.template_name,
                encoding=encoding,
            ) from e
