import textwrap
from pathlib import Path

import pytest

from tests.infrastructure.file_utils import write, write_json


@pytest.fixture
def tmpproj(tmp_path: Path):
    """Минимальный набор: шаблон, JSON- и YAML-данные в одном каталоге."""
    root = tmp_path
    write(
        root / "page.tpl",
        textwrap.dedent("""
        Hello, {{ user.name }}!
        {% for item in items %}- {{ item }}
        {% endfor %}{% if admin %}admin{% else %}guest{% endif %}
        """).lstrip(),
    )
    write_json(root / "data.json", {
        "user": {"name": "Homebrew"},
        "items": ["a", "b"],
        "admin": False,
    })
    write(root / "override.yaml", "admin: true\nuser:\n  name: Root\n")
    return root


@pytest.fixture(autouse=True)
def _clean_rtpl_env(monkeypatch):
    # лимиты и отладка не должны протекать из окружения разработчика
    for name in ("RTPL_DEBUG", "RTPL_MAX_DEPTH", "RTPL_MAX_ITERATIONS"):
        monkeypatch.delenv(name, raising=False)
