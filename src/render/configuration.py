"""
Template configuration: 뷰 클래스별 Jinja2 엔진 설정 + 캐시.

구성:
- TemplateConfiguration: Environment + 인코딩 정책 + object wrapper
- ConfigurationLoader: 뷰 클래스 → TemplateConfiguration 생성 (base 설정 적용)
- ConfigurationCache: 뷰 클래스별 1회 생성, 이후 재사용 (evict 없음)

설정 적용 순서:
1. 기본값 (UTF-8, 내장 locale 인코딩 맵, localized lookup,
   ViewObjectWrapper, StrictUndefined, .j2h/.j2x 자동 이스케이프)
2. configure()로 받은 base 설정 (순서대로, 같은 키는 나중 값 우선)
"""

import codecs
import logging
import threading
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from datetime import date, datetime, time
from functools import partial
from importlib.metadata import version as distribution_version
from types import MappingProxyType
from typing import Any

from jinja2 import (
    ChainableUndefined,
    DebugUndefined,
    Environment,
    StrictUndefined,
    Template,
    TemplateNotFound,
    Undefined,
    select_autoescape,
)
from jinja2.runtime import Context
from jinja2.utils import LRUCache, missing

from src.domain.errors import ConfigurationError, ErrorCodes
from src.render.loader import ViewTemplateLoader, import_root, localized_names

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

ENGINE_VERSION = distribution_version("jinja2")
DEFAULT_ENCODING = "UTF-8"
DEFAULT_CACHE_SIZE = 400

# 자동 이스케이프 대상 확장자 (.j2h: HTML, .j2x: XML)
AUTOESCAPE_EXTENSIONS = ("j2h", "j2x")

DEFAULT_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_DATE_FORMAT = "%Y-%m-%d"
DEFAULT_TIME_FORMAT = "%H:%M:%S"

# 템플릿 컨텍스트에서 뷰 인스턴스 자체를 가리키는 이름 ({{ view.text }})
VIEW_KEY = "view"

# locale → 인코딩 기본 맵. "encoding.<locale>" 설정으로 덮어쓴다.
BUILTIN_ENCODING_MAP: dict[str, str] = {
    **dict.fromkeys(
        ("ca", "da", "de", "en", "es", "et", "fi", "fr", "is", "it", "nl", "no", "pt", "sv"),
        "ISO-8859-1",
    ),
    **dict.fromkeys(
        ("cs", "hr", "hu", "lt", "lv", "pl", "ro", "sk", "sl", "sq"),
        "ISO-8859-2",
    ),
    **dict.fromkeys(("be", "bg", "mk", "ru", "sh", "sr", "uk"), "ISO-8859-5"),
    "ar": "ISO-8859-6",
    "el": "ISO-8859-7",
    "iw": "ISO-8859-8",
    "tr": "ISO-8859-9",
    "ja": "Shift_JIS",
    "ko": "EUC-KR",
    "zh": "GB2312",
    "zh_TW": "Big5",
}

_BOOLEAN_TRUE = {"true", "yes", "y", "1", "on"}
_BOOLEAN_FALSE = {"false", "no", "n", "0", "off"}

_NEWLINE_ALIASES = {
    "lf": "\n",
    "crlf": "\r\n",
    "cr": "\r",
    "\\n": "\n",
    "\\r\\n": "\r\n",
    "\\r": "\r",
}

_UNDEFINED_POLICIES: dict[str, type[Undefined]] = {
    "strict": StrictUndefined,
    "default": Undefined,
    "chainable": ChainableUndefined,
    "debug": DebugUndefined,
}

_DELIMITER_SETTINGS = (
    "block_start_string",
    "block_end_string",
    "variable_start_string",
    "variable_end_string",
    "comment_start_string",
    "comment_end_string",
)

_PREFIX_SETTINGS = (
    "line_statement_prefix",
    "line_comment_prefix",
)

_BOOLEAN_ENVIRONMENT_SETTINGS = (
    "trim_blocks",
    "lstrip_blocks",
    "keep_trailing_newline",
)


def parse_boolean(value: str) -> bool:
    """
    설정 문자열 → bool.

    Raises:
        ValueError: 인식할 수 없는 값
    """
    normalized = value.strip().lower()
    if normalized in _BOOLEAN_TRUE:
        return True
    if normalized in _BOOLEAN_FALSE:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def normalize_encoding(encoding: str) -> str:
    """
    codec 이름 검증 후 그대로 반환.

    Raises:
        LookupError: 알 수 없는 인코딩
    """
    codecs.lookup(encoding)
    return encoding


# =============================================================================
# Object Wrapping
# =============================================================================

class ViewObjectWrapper:
    """
    뷰 인스턴스 → 템플릿 컨텍스트 변환.

    "_" 로 시작하지 않는 속성/프로퍼티/메서드를 노출한다.
    멤버는 템플릿이 이름을 참조할 때 읽는다 (사용하지 않는 프로퍼티는 호출되지 않음).
    프로퍼티에서 발생한 예외는 그대로 전파 (렌더 실패로 처리됨).
    """

    def wrap(self, view: object) -> dict[str, Any]:
        """렌더 컨텍스트 초기 변수. 뷰 멤버는 ViewContext가 필요할 때 조회."""
        return {VIEW_KEY: view}

    def resolve(self, view: object, name: str) -> Any:
        """
        뷰 멤버 하나 조회.

        Returns:
            멤버 값, 비공개 이름이거나 없으면 jinja2 missing
        """
        if name.startswith("_"):
            return missing
        return getattr(view, name, missing)


class ViewContext(Context):
    """컨텍스트/전역에 없는 이름을 렌더 중인 뷰의 멤버로 조회하는 Context."""

    def resolve_or_missing(self, key: str) -> Any:
        value = super().resolve_or_missing(key)
        if value is not missing:
            return value

        view = self.parent.get(VIEW_KEY, missing)
        if view is missing:
            return missing
        return self.environment.object_wrapper.resolve(view, key)


class ViewTemplate(Template):
    """로드 시 사용한 인코딩을 기억하는 Template."""

    encoding: str | None = None


class ViewEnvironment(Environment):
    """
    TemplateConfiguration 전용 Environment.

    - 변수 조회: ViewContext (뷰 멤버 지연 조회)
    - 렌더 중 {% include %} / {% extends %}: 현재 렌더의 locale/인코딩으로
      configuration.get_template() 경유 로드
    """

    context_class = ViewContext
    template_class = ViewTemplate

    def __init__(self, configuration: "TemplateConfiguration", **options: Any) -> None:
        super().__init__(**options)
        self.configuration = configuration
        self._state = threading.local()

    @property
    def object_wrapper(self) -> ViewObjectWrapper:
        return self.configuration.object_wrapper

    @contextmanager
    def rendering(self, locale: str | None, encoding: str) -> Iterator[None]:
        """현재 스레드의 렌더 locale/인코딩 설정 (중첩 시 이전 값 복원)."""
        previous = getattr(self._state, "render", None)
        self._state.render = (locale, encoding)
        try:
            yield
        finally:
            self._state.render = previous

    def get_template(
        self,
        name: str | Template,
        parent: str | None = None,
        globals: Mapping[str, Any] | None = None,
    ) -> Template:
        render = getattr(self._state, "render", None)
        if render is None or globals is not None or isinstance(name, Template):
            return super().get_template(name, parent, globals)

        if parent is not None:
            name = self.join_path(name, parent)
        locale, encoding = render
        return self.configuration.get_template(name, locale, encoding)


# =============================================================================
# Template Configuration
# =============================================================================

class TemplateConfiguration:
    """
    뷰 클래스 하나에 대한 엔진 설정.

    Usage:
        configuration = TemplateConfiguration(ViewTemplateLoader(root))
        configuration.set_setting("trim_blocks", "yes")
        template = configuration.get_template("/pkg/view.j2", "en", "UTF-8")
    """

    def __init__(self, loader: ViewTemplateLoader, version: str = ENGINE_VERSION) -> None:
        self.loader = loader
        self.version = version
        self.environment = ViewEnvironment(
            self,
            loader=loader,
            autoescape=select_autoescape(
                enabled_extensions=AUTOESCAPE_EXTENSIONS,
                disabled_extensions=(),
                default_for_string=False,
                default=False,
            ),
            undefined=StrictUndefined,
        )
        self.object_wrapper = ViewObjectWrapper()

        self._default_encoding = DEFAULT_ENCODING
        self.loader.encoding = DEFAULT_ENCODING
        self.encoding_map: dict[str, str] = dict(BUILTIN_ENCODING_MAP)
        self.localized_lookup = True

        self.datetime_format = DEFAULT_DATETIME_FORMAT
        self.date_format = DEFAULT_DATE_FORMAT
        self.time_format = DEFAULT_TIME_FORMAT
        self.number_format = ""

        self._templates: LRUCache = LRUCache(DEFAULT_CACHE_SIZE)

        self.environment.filters.update(
            {
                "datetime": self.format_datetime,
                "date": self.format_date,
                "time": self.format_time,
                "number": self.format_number,
            }
        )

    # -------------------------------------------------------------------------
    # Encoding
    # -------------------------------------------------------------------------

    @property
    def default_encoding(self) -> str:
        return self._default_encoding

    @default_encoding.setter
    def default_encoding(self, encoding: str) -> None:
        self._default_encoding = normalize_encoding(encoding)
        self.loader.encoding = self._default_encoding

    def get_encoding(self, locale: str | None) -> str:
        """
        locale 기준 인코딩.

        조회 순서: 전체 locale (en_US) → 언어 (en) → default_encoding.
        locale이 None이면 default_encoding.
        """
        if not locale or not self.encoding_map:
            return self._default_encoding

        normalized = locale.replace("-", "_")
        encoding = self.encoding_map.get(normalized)
        if encoding is None:
            encoding = self.encoding_map.get(normalized.split("_")[0])
        return encoding or self._default_encoding

    # -------------------------------------------------------------------------
    # Templates
    # -------------------------------------------------------------------------

    def get_template(
        self,
        name: str,
        locale: str | None = None,
        encoding: str | None = None,
    ) -> ViewTemplate:
        """
        템플릿 로드 + 컴파일 (캐시).

        Args:
            name: 템플릿 이름 ("/" 로 시작)
            locale: localized_lookup 활성 시 후보 이름 생성에 사용
            encoding: 소스 디코딩 인코딩 (None이면 get_encoding(locale))

        Raises:
            TemplateNotFound: 후보 이름 모두 없음
            TemplateSyntaxError: 컴파일 실패
        """
        if encoding is None:
            encoding = self.get_encoding(locale)

        lookup_locale = locale if self.localized_lookup else None
        key = (name, lookup_locale, encoding)
        cached = self._templates.get(key)
        if cached is not None and cached.is_up_to_date:
            return cached

        for candidate in localized_names(name, lookup_locale):
            try:
                source, filename, uptodate = self.loader.load_source(candidate, encoding)
            except TemplateNotFound:
                continue

            env = self.environment
            code = env.compile(source, candidate, filename)
            template = env.template_class.from_code(
                env, code, env.make_globals(None), uptodate
            )
            template.encoding = encoding
            self._templates[key] = template
            logger.debug(f"Compiled template {candidate} (requested {name})")
            return template

        raise TemplateNotFound(name)

    # -------------------------------------------------------------------------
    # Formatting filters
    # -------------------------------------------------------------------------

    def format_datetime(self, value: datetime, pattern: str | None = None) -> str:
        return value.strftime(pattern or self.datetime_format)

    def format_date(self, value: date, pattern: str | None = None) -> str:
        return value.strftime(pattern or self.date_format)

    def format_time(self, value: time | datetime, pattern: str | None = None) -> str:
        return value.strftime(pattern or self.time_format)

    def format_number(self, value: Any, spec: str | None = None) -> str:
        return format(value, self.number_format if spec is None else spec)

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def set_setting(self, name: str, value: str) -> None:
        """
        설정 문자열 하나 적용.

        Raises:
            ConfigurationError: UNKNOWN_SETTING, INVALID_SETTING_VALUE
        """
        handler: Callable[[str], None] | None
        if name.startswith("encoding."):
            handler = partial(self._set_locale_encoding, name.partition(".")[2])
        else:
            handler = self._setting_handlers().get(name)

        if handler is None:
            raise ConfigurationError(ErrorCodes.UNKNOWN_SETTING, setting=name)

        try:
            handler(value)
        except (ValueError, TypeError, LookupError) as e:
            raise ConfigurationError(
                ErrorCodes.INVALID_SETTING_VALUE,
                setting=name,
                value=value,
                error=str(e),
            ) from e

    def _setting_handlers(self) -> dict[str, Callable[[str], None]]:
        handlers: dict[str, Callable[[str], None]] = {
            "default_encoding": self._set_default_encoding,
            "localized_lookup": self._set_localized_lookup,
            "datetime_format": self._set_datetime_format,
            "date_format": self._set_date_format,
            "time_format": self._set_time_format,
            "number_format": self._set_number_format,
            "newline_sequence": self._set_newline_sequence,
            "autoescape": self._set_autoescape,
            "undefined": self._set_undefined,
            "cache_size": self._set_cache_size,
        }
        for name in _BOOLEAN_ENVIRONMENT_SETTINGS:
            handlers[name] = self._environment_boolean_setter(name)
        for name in _DELIMITER_SETTINGS:
            handlers[name] = self._delimiter_setter(name)
        for name in _PREFIX_SETTINGS:
            handlers[name] = self._prefix_setter(name)
        return handlers

    def _set_default_encoding(self, value: str) -> None:
        self.default_encoding = value

    def _set_locale_encoding(self, locale: str, value: str) -> None:
        if not locale:
            raise ValueError("locale must not be empty")
        self.encoding_map[locale.replace("-", "_")] = normalize_encoding(value)

    def _set_localized_lookup(self, value: str) -> None:
        self.localized_lookup = parse_boolean(value)

    def _set_datetime_format(self, value: str) -> None:
        self.datetime_format = value

    def _set_date_format(self, value: str) -> None:
        self.date_format = value

    def _set_time_format(self, value: str) -> None:
        self.time_format = value

    def _set_number_format(self, value: str) -> None:
        format(1.5, value)
        self.number_format = value

    def _set_newline_sequence(self, value: str) -> None:
        sequence = _NEWLINE_ALIASES.get(value.lower(), value)
        if sequence not in ("\n", "\r\n", "\r"):
            raise ValueError(f"unsupported newline sequence: {value!r}")
        self.environment.newline_sequence = sequence  # type: ignore[assignment]

    def _set_autoescape(self, value: str) -> None:
        if value.strip().lower() == "auto":
            self.environment.autoescape = select_autoescape(
                enabled_extensions=AUTOESCAPE_EXTENSIONS,
                disabled_extensions=(),
                default_for_string=False,
                default=False,
            )
        else:
            self.environment.autoescape = parse_boolean(value)

    def _set_undefined(self, value: str) -> None:
        policy = _UNDEFINED_POLICIES.get(value.strip().lower())
        if policy is None:
            raise ValueError(
                f"unknown undefined policy: {value!r} "
                f"(expected one of {sorted(_UNDEFINED_POLICIES)})"
            )
        self.environment.undefined = policy

    def _set_cache_size(self, value: str) -> None:
        size = int(value)
        if size < 1:
            raise ValueError(f"cache_size must be positive: {size}")
        self._templates = LRUCache(size)

    def _environment_boolean_setter(self, name: str) -> Callable[[str], None]:
        def setter(value: str) -> None:
            setattr(self.environment, name, parse_boolean(value))

        return setter

    def _delimiter_setter(self, name: str) -> Callable[[str], None]:
        def setter(value: str) -> None:
            if not value:
                raise ValueError(f"{name} must not be empty")
            env = self.environment
            starts = {
                "block_start_string": env.block_start_string,
                "variable_start_string": env.variable_start_string,
                "comment_start_string": env.comment_start_string,
            }
            if name in starts:
                starts[name] = value
                if len(set(starts.values())) != len(starts):
                    raise ValueError(
                        "block, variable and comment start strings must differ"
                    )
            setattr(env, name, value)

        return setter

    def _prefix_setter(self, name: str) -> Callable[[str], None]:
        def setter(value: str) -> None:
            setattr(self.environment, name, value or None)

        return setter


# =============================================================================
# Loader / Cache
# =============================================================================

class ConfigurationLoader:
    """
    뷰 클래스 → TemplateConfiguration 생성기.

    base 설정은 configure 시점에 한 번 주입되고, 이후 생성되는
    모든 설정에 적용된다.
    """

    def __init__(self) -> None:
        self._base_configuration: Mapping[str, str] = MappingProxyType({})

    @property
    def base_configuration(self) -> Mapping[str, str]:
        """읽기 전용 base 설정."""
        return self._base_configuration

    def set_base_configuration(self, base_configuration: Mapping[str, str]) -> None:
        """
        Raises:
            TypeError: base_configuration이 None
        """
        if base_configuration is None:
            raise TypeError("base_configuration must not be None")
        self._base_configuration = MappingProxyType(dict(base_configuration))

    def load(self, view_type: type) -> TemplateConfiguration:
        """
        새 설정 생성.

        Raises:
            TypeError: view_type이 None
            ConfigurationError: base 설정 중 유효하지 않은 항목
        """
        if view_type is None:
            raise TypeError("view_type must not be None")

        configuration = TemplateConfiguration(ViewTemplateLoader(import_root(view_type)))
        for name, value in self._base_configuration.items():
            configuration.set_setting(name, value)

        logger.debug(
            f"Built template configuration for {view_type.__qualname__} "
            f"(root={configuration.loader.root}, "
            f"settings={len(self._base_configuration)})"
        )
        return configuration


class ConfigurationCache:
    """
    뷰 클래스별 TemplateConfiguration 캐시.

    - 이미 캐시된 타입: 락 없이 조회
    - 미캐시 타입: 타입별 락 + double-check → 동시 호출에도 1회만 생성
    - 생성 실패 시 캐시하지 않고 예외 전파
    - evict 없음 (프로세스 수명 동안 유지)
    """

    def __init__(self, builder: Callable[[type], TemplateConfiguration]) -> None:
        self._builder = builder
        self._entries: dict[type, TemplateConfiguration] = {}
        self._locks: dict[type, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def get(self, view_type: type) -> TemplateConfiguration:
        configuration = self._entries.get(view_type)
        if configuration is not None:
            return configuration

        with self._lock_for(view_type):
            configuration = self._entries.get(view_type)
            if configuration is None:
                configuration = self._builder(view_type)
                self._entries[view_type] = configuration
        return configuration

    def _lock_for(self, view_type: type) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(view_type)
            if lock is None:
                lock = self._locks[view_type] = threading.Lock()
            return lock

    def __contains__(self, view_type: object) -> bool:
        return view_type in self._entries

    def __len__(self) -> int:
        return len(self._entries)
