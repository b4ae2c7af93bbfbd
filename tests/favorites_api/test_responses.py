"""Unit tests for the response envelope helpers."""

from __future__ import annotations

import json

from fastapi import status

from favorites_api.schemas.entries import EntryStats, EntryStatsPayload
from favorites_api.schemas.envelope import FieldError
from favorites_api.utils.responses import build_envelope, error_response, success_response


def test_build_envelope_serialises_models_with_camel_case() -> None:
    stats = EntryStats(
        total_entries=2,
        movies_count=1,
        tv_shows_count=1,
        recent_entries=0,
        avg_budget=10,
        generated_at="2024-01-01 05:30:00",
    )

    envelope = build_envelope(
        success=True, message="ok", data=EntryStatsPayload(stats=stats)
    )

    assert envelope.to_payload() == {
        "success": True,
        "message": "ok",
        "data": {
            "stats": {
                "totalEntries": 2,
                "moviesCount": 1,
                "tvShowsCount": 1,
                "recentEntries": 0,
                "avgBudget": 10,
                "generatedAt": "2024-01-01 05:30:00",
            }
        },
    }


def test_success_response_omits_absent_members() -> None:
    response = success_response("Entry deleted successfully")

    assert response.status_code == status.HTTP_200_OK
    assert json.loads(response.body) == {
        "success": True,
        "message": "Entry deleted successfully",
    }


def test_error_response_carries_errors_headers_and_retry_after() -> None:
    response = error_response(
        "Too many requests from this IP, please try again later.",
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        errors=[FieldError(message="slow down")],
        headers={"Retry-After": "60"},
        retry_after="1 minute",
    )

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "60"
    assert json.loads(response.body) == {
        "success": False,
        "message": "Too many requests from this IP, please try again later.",
        "errors": [{"message": "slow down"}],
        "retryAfter": "1 minute",
    }
