from fastapi import APIRouter

from ..config import settings
from ..models.common import format_minutes
from ..scheduler import REVIEW_INTERVALS, TIME_MULTIPLIERS


router = APIRouter()

# 所要時間・上限の選択肢: 30分刻みで 30..480 分
TIME_OPTION_STEP_MINUTES = 30
TIME_OPTION_COUNT = 16


def time_options() -> list[dict[str, object]]:
    return [
        {"value": minutes, "label": format_minutes(minutes)}
        for minutes in (
            TIME_OPTION_STEP_MINUTES * (i + 1) for i in range(TIME_OPTION_COUNT)
        )
    ]


@router.get("/config")
def get_runtime_config() -> dict[str, object]:
    """Expose runtime config needed by the frontend.

    フロントエンドのフォーム/表示に必要な定数（時間の選択肢、既定の上限、
    復習間隔と時間係数、週の開始曜日）を返す。
    """
    return {
        "time_options": time_options(),
        "default_time_limits": {
            "weekday": settings.default_weekday_limit,
            "weekend": settings.default_weekend_limit,
        },
        "review_intervals_minutes": [
            int(interval.total_seconds() // 60) for interval in REVIEW_INTERVALS
        ],
        "time_multipliers": list(TIME_MULTIPLIERS),
        "week_starts_on": settings.week_starts_on,
        "overview_weeks": settings.overview_weeks,
        "analysis_months": settings.analysis_months,
    }
