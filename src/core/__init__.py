"""
Core layer: 호스트 설정 연결.

역할:
- YAML views 블록 로드
- 렌더러별 configure() 호출
"""

from .config import configure_renderers, load_config, load_views_config, parse_views_config

__all__ = [
    "load_config",
    "parse_views_config",
    "load_views_config",
    "configure_renderers",
]
