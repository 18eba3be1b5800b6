import io
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from mapper_rewrite.orchestrator.progress import ProgressReporter


CONFLICTED_MAPPER = (
    '<mapper namespace="UserMapper">\n'
    "<<<<<<< HEAD\n"
    '  <select id="findUser">SELECT * FROM users WHERE id = #{id}</select>\n'
    "=======\n"
    '  <select id="findUser">SELECT id, name FROM users WHERE id = #{id}</select>\n'
    ">>>>>>> feature/user-columns\n"
    "</mapper>\n"
)

CLEAN_MAPPER = (
    '<mapper namespace="OrderMapper">\n'
    '  <select id="findOrder">SELECT * FROM orders WHERE id = #{id}</select>\n'
    "</mapper>\n"
)

FORMAT_TEMPLATE = "Rewrite this MyBatis mapper, keep #{params} intact:\n{content}\n"


@pytest.fixture
def fixture_tree(tmp_path) -> Path:
    """Directory with a.xml, nested b.XML and c.sql."""
    root = tmp_path / "repo"
    nested = root / "nested"
    nested.mkdir(parents=True)
    (root / "a.xml").write_text(CLEAN_MAPPER)
    (nested / "b.XML").write_text(CONFLICTED_MAPPER)
    (root / "c.sql").write_text("SELECT 1;\n")
    return root


@pytest.fixture
def mock_service():
    """Transformation service returning a fenced XML reply."""
    service = MagicMock()
    service.generate = MagicMock(return_value="```xml\n<mapper rewritten=\"true\"/>\n```")
    return service


@pytest.fixture
def no_wait_limiter():
    limiter = MagicMock()
    limiter.pause = MagicMock(return_value=True)
    return limiter


@pytest.fixture
def progress_stream():
    return io.StringIO()


@pytest.fixture
def reporter(progress_stream):
    return ProgressReporter(stream=progress_stream)


class FakeClock:
    """Monotonic clock advancing by a fixed step on every read."""

    def __init__(self, step: float = 1.0) -> None:
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        self.now += self.step
        return self.now


@pytest.fixture
def fake_clock():
    return FakeClock()
