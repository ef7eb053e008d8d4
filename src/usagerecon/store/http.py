from datetime import datetime

import httpx
import structlog

from usagerecon.models import InstanceRecord, format_time, instance_record_from_dict

logger = structlog.get_logger()


class HTTPInstanceStore:
    """
    HTTPInstanceStore implements the InstanceStore protocol against a JSON
    API exposing the workspace instance table. The API applies the overlap
    filter server side and pages its results; this store follows
    next_page until has_more is false.
    """

    def __init__(
        self,
        base_url: "str",
        api_token: "str" = "",
        timeout: "float" = 10.0,
        client: "httpx.AsyncClient | None" = None,
    ) -> "None":
        self._base_url = base_url.rstrip("/")
        headers: "dict[str, str]" = {}
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"
        self._client: "httpx.AsyncClient" = client or httpx.AsyncClient(
            timeout=timeout,
            headers=headers,
        )

    async def close(self) -> "None":
        """
        closes the underlying HTTP client.
        """
        await self._client.aclose()

    async def list_instances_overlapping(
        self,
        start: "datetime",
        end: "datetime",
    ) -> "list[InstanceRecord]":
        records: "list[InstanceRecord]" = []
        next_page = ""

        # loop over pages instead of recursing
        while True:
            params: "dict[str, str]" = {
                "from": format_time(start),
                "to": format_time(end),
            }
            if next_page:
                params["page"] = next_page

            logger.debug("store_fetch_instances", page=next_page or "first")
            resp = await self._client.get(
                f"{self._base_url}/workspace-instances", params=params
            )
            resp.raise_for_status()
            data = resp.json()

            for item in data.get("data", []):
                records.append(instance_record_from_dict(item))

            if not data.get("has_more"):
                break

            next_page = data.get("next_page", "")
            if not next_page:
                break

        logger.debug("store_fetch_instances_done", record_count=len(records))
        return records
