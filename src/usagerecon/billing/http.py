import httpx
import structlog

from usagerecon.models import UsageReport, usage_record_to_dict
from usagerecon.report import credit_summary_for_teams

logger = structlog.get_logger()


class HTTPBillingController:
    """
    HTTPBillingController exports a report to a metering endpoint as
    {"credits": {"<team id>": <credits>}, "records": [...]}. Records carry
    the instance id and generation for upserts, and the summary is the
    current total for the period, so re-sending a report is harmless.
    """

    def __init__(
        self,
        url: "str",
        api_token: "str" = "",
        timeout: "float" = 10.0,
        client: "httpx.AsyncClient | None" = None,
    ) -> "None":
        self._url = url
        headers: "dict[str, str]" = {}
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"
        self._client: "httpx.AsyncClient" = client or httpx.AsyncClient(
            timeout=timeout,
            headers=headers,
        )

    async def close(self) -> "None":
        await self._client.aclose()

    async def reconcile(self, report: "UsageReport") -> "None":
        if not report:
            logger.debug("billing_nothing_to_export")
            return

        summary = credit_summary_for_teams(report)
        payload = {
            "credits": summary,
            "records": [usage_record_to_dict(r) for r in report],
        }
        resp = await self._client.post(self._url, json=payload)
        resp.raise_for_status()
        logger.info("billing_exported", teams=len(summary), records=len(report))
