"""Pytest configuration shared by the backend and API tests."""

import os
import sys
import tempfile
from datetime import datetime
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "apps" / "backend"))

# `review_planner.main` は import 時にアプリを組み立てるため、既定の DB を
# 一時ディレクトリへ向けておく。個々のテストは tmp_path の DB を使う。
os.environ.setdefault(
    "REVIEW_PLANNER_DB_PATH",
    os.path.join(tempfile.mkdtemp(prefix="review-planner-tests-"), "default.sqlite3"),
)
# 暦日判定はホストのローカル時刻に任せる（naive な datetime のみを扱う）
os.environ.pop("TIMEZONE", None)

from review_planner.planner import ReviewPlanner  # noqa: E402
from review_planner.store import PlannerRepository, create_repository  # noqa: E402

# 2024-05-15 は水曜日、2024-05-18 は土曜日
FIXED_NOW = datetime(2024, 5, 15, 9, 30)


def sequential_ids(prefix: str = "id"):
    counter = iter(range(1, 10_000))
    return lambda: f"{prefix}-{next(counter)}"


@pytest.fixture()
def repository(tmp_path: Path) -> PlannerRepository:
    return create_repository(str(tmp_path / "planner.sqlite3"))


@pytest.fixture()
def planner(repository: PlannerRepository) -> ReviewPlanner:
    return ReviewPlanner.load(
        repository,
        clock=lambda: FIXED_NOW,
        id_factory=sequential_ids("task"),
    )
