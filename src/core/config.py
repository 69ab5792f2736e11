"""
Host configuration: YAML의 views 블록 → 렌더러별 설정.

예 (default.yaml):

    views:
      jinja2:
        trim_blocks: yes
        datetime_format: "%d.%m.%Y %H:%M"
        encoding.de: ISO-8859-1

키는 렌더러의 configuration_key, 값은 엔진 설정 문자열 맵.
"""

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml

from src.render.base import ViewRenderer

logger = logging.getLogger(__name__)

VIEWS_SECTION = "views"


def _to_setting_value(value: Any) -> str:
    """YAML 스칼라 → 설정 문자열 (bool은 true/false)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def load_config(config_path: Path) -> dict[str, Any]:
    """설정 파일 로드 (없으면 빈 dict)."""
    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[str, Any] | None = yaml.safe_load(f)
        return data or {}


def parse_views_config(config: dict[str, Any]) -> dict[str, dict[str, str]]:
    """
    설정 dict에서 views 블록 추출.

    Raises:
        ValueError: views 또는 렌더러 블록이 mapping이 아님
    """
    section = config.get(VIEWS_SECTION) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{VIEWS_SECTION}' must be a mapping")

    views: dict[str, dict[str, str]] = {}
    for key, options in section.items():
        options = options or {}
        if not isinstance(options, dict):
            raise ValueError(f"'{VIEWS_SECTION}.{key}' must be a mapping")
        views[str(key)] = {
            str(name): _to_setting_value(value) for name, value in options.items()
        }
    return views


def load_views_config(config_path: Path) -> dict[str, dict[str, str]]:
    """YAML 파일에서 views 블록 로드."""
    return parse_views_config(load_config(config_path))


def configure_renderers(
    renderers: Iterable[ViewRenderer],
    views_config: dict[str, dict[str, str]],
) -> None:
    """각 렌더러에 configuration_key에 해당하는 블록 주입 (없으면 빈 dict)."""
    for renderer in renderers:
        options = views_config.get(renderer.configuration_key, {})
        logger.info(
            f"Configuring renderer '{renderer.configuration_key}' "
            f"with {len(options)} option(s)"
        )
        renderer.configure(options)
