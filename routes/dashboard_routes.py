import asyncio
import logging

from fastapi import APIRouter, Depends

from services.aggregation import build_analytics
from services.api_client import ApiClient
from services.errors import ApiError, RecruitmentError
from services.presentation import format_change, format_score, score_tier
from utils import get_api_client, to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

ANALYTICS_CANDIDATE_LIMIT = 500
ANALYTICS_ROLE_LIMIT = 100


@router.get("")
async def get_dashboard(api: ApiClient = Depends(get_api_client)):
    try:
        stats, feed = await asyncio.gather(api.get_dashboard_stats(), api.get_dashboard_activity())
    except RecruitmentError as e:
        raise to_http_exception(e)

    return {
        "stats": {
            **stats.model_dump(by_alias=True),
            "averageScoreDisplay": format_score(stats.average_score),
        },
        "activity": [
            {**item.model_dump(mode="json", by_alias=True), "scoreTier": score_tier(item.score)}
            for item in feed.activities
        ],
    }


async def _upstream_analytics(api: ApiClient):
    # Period counters are optional; local derivation covers everything else
    try:
        return await api.get_dashboard_analytics()
    except ApiError as e:
        logger.warning(f"Upstream analytics unavailable ({e}); deriving from candidates only")
        return None


@router.get("/analytics")
async def get_analytics(api: ApiClient = Depends(get_api_client)):
    try:
        candidates, roles, upstream = await asyncio.gather(
            api.list_candidates(limit=ANALYTICS_CANDIDATE_LIMIT),
            api.list_roles(limit=ANALYTICS_ROLE_LIMIT),
            _upstream_analytics(api),
        )
    except RecruitmentError as e:
        raise to_http_exception(e)

    report = build_analytics(candidates.candidates, roles.roles, upstream=upstream)
    return {
        **report.model_dump(mode="json", by_alias=True),
        "display": {
            "averageScore": format_score(report.average_score),
            "candidatesChange": format_change(report.candidates_change),
            "rolesChange": format_change(report.roles_change),
            "applicationsChange": format_change(report.applications_change),
        },
    }
