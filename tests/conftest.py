"""
Pytest fixtures for the view renderer tests.

구성:
- 렌더러 인스턴스 (테스트마다 새로 생성 → 설정 캐시 격리)
- 출력 버퍼
- 설정 파일 (YAML)
"""

import io
from pathlib import Path

import pytest
import yaml

from src.render import JinjaLayoutViewRenderer

# =============================================================================
# Path Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """프로젝트 루트 경로."""
    return Path(__file__).parent.parent


@pytest.fixture
def fixtures_dir() -> Path:
    """테스트 템플릿 디렉터리."""
    return Path(__file__).parent / "fixtures"


# =============================================================================
# Renderer Fixtures
# =============================================================================

@pytest.fixture
def renderer() -> JinjaLayoutViewRenderer:
    """새 렌더러 (빈 설정)."""
    return JinjaLayoutViewRenderer()


@pytest.fixture
def output() -> io.BytesIO:
    """렌더 출력 버퍼."""
    return io.BytesIO()


# =============================================================================
# Config Fixtures
# =============================================================================

@pytest.fixture
def views_config_path(tmp_path: Path) -> Path:
    """views 블록이 있는 설정 파일."""
    config_path = tmp_path / "default.yaml"
    config = {
        "server": {"port": 8080},
        "views": {
            "jinja2": {
                "trim_blocks": True,
                "datetime_format": "%d.%m.%Y",
                "cache_size": 50,
            },
            "mustache": None,
        },
    }
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config, f)
    return config_path
