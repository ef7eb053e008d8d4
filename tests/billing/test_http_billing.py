import json
from datetime import datetime, timezone

import httpx
import pytest
import respx

from usagerecon.billing.base import NoOpBillingController
from usagerecon.billing.http import HTTPBillingController
from usagerecon.models import AttributionID, UsageRecord, WorkspaceType

BILLING_URL = "https://billing.example.com/v1/credits"


def _record(attribution: "AttributionID", credits: "int") -> "UsageRecord":
    return UsageRecord(
        instance_id="i-1",
        attribution_id=attribution,
        user_id="o-1",
        workspace_id="ws-1",
        project_id="",
        workspace_type=WorkspaceType.REGULAR,
        workspace_class="default",
        credits_used=credits,
        started_at=datetime(2022, 5, 30, tzinfo=timezone.utc),
    )


class TestHTTPBillingController:
    @pytest.mark.asyncio
    @respx.mock
    async def test_posts_team_summary(self) -> "None":
        route = respx.post(BILLING_URL).mock(return_value=httpx.Response(204))
        report = [
            _record(AttributionID.team("t-1"), 470),
            _record(AttributionID.team("t-1"), 10),
            _record(AttributionID.user("u-1"), 99),
        ]

        controller = HTTPBillingController(BILLING_URL, api_token="secret")
        await controller.reconcile(report)
        await controller.close()

        assert route.call_count == 1
        request = route.calls.last.request
        payload = json.loads(request.content)
        assert payload["credits"] == {"t-1": 480}
        assert [r["attribution_id"] for r in payload["records"]] == [
            "team:t-1",
            "team:t-1",
            "user:u-1",
        ]
        assert payload["records"][0]["credits_used"] == 470
        assert payload["records"][0]["started_at"] == "2022-05-30T00:00:00Z"
        assert payload["records"][0]["stopped_at"] == ""
        assert payload["records"][0]["generation_id"] == 0
        assert request.headers["Authorization"] == "Bearer secret"
        # the report is left untouched
        assert len(report) == 3

    @pytest.mark.asyncio
    @respx.mock
    async def test_skips_request_for_empty_report(self) -> "None":
        route = respx.post(BILLING_URL).mock(return_value=httpx.Response(204))

        controller = HTTPBillingController(BILLING_URL)
        await controller.reconcile([])

        assert route.call_count == 0

    @pytest.mark.asyncio
    @respx.mock
    async def test_exports_user_usage_without_team_credits(self) -> "None":
        route = respx.post(BILLING_URL).mock(return_value=httpx.Response(204))

        controller = HTTPBillingController(BILLING_URL)
        await controller.reconcile([_record(AttributionID.user("u-1"), 10)])

        payload = json.loads(route.calls.last.request.content)
        assert payload["credits"] == {}
        assert payload["records"][0]["attribution_id"] == "user:u-1"

    @pytest.mark.asyncio
    @respx.mock
    async def test_rejected_export_raises(self) -> "None":
        respx.post(BILLING_URL).mock(return_value=httpx.Response(500))

        controller = HTTPBillingController(BILLING_URL)
        with pytest.raises(httpx.HTTPStatusError):
            await controller.reconcile([_record(AttributionID.team("t-1"), 10)])


class TestNoOpBillingController:
    @pytest.mark.asyncio
    async def test_accepts_any_report(self) -> "None":
        await NoOpBillingController().reconcile([])
