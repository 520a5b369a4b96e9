"""Dispatch record lookups against Elasticsearch."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import requests
from loguru import logger
from pydantic import BaseModel, Field

from proof360.config import Settings
from proof360.errors import ConfigurationError, SearchError

DISPATCH_ID_FIELDS = (
    "dispatchId",
    "internalDispatchId",
    "id",
    "responseData.callout.calloutid",
    "responseData.callout.acknowledged",
)

SOURCE_FIELDS = [
    *DISPATCH_ID_FIELDS,
    "companyName",
    "siteName",
    "groupName",
    "assetName",
    "alertType",
    "actionTimestamp",
    "proofStatus",
]


@dataclass
class DispatchQuery:
    company: str = "Automation company"
    site: Optional[str] = "WVRD_9th Ave and JG Strydom Rd_62"
    time_range: str = "now-24h"
    size: int = 10


class DispatchRecord(BaseModel):
    dispatch_id: Optional[Any] = None
    company_name: Optional[str] = None
    site_name: Optional[str] = None
    alert_type: Optional[str] = None
    timestamp: Optional[str] = None
    proof_status: Optional[str] = None
    source: dict[str, Any] = Field(default_factory=dict)


def build_dispatch_query(query: DispatchQuery) -> dict[str, Any]:
    """Newest-first search by company and time window, optionally by site.

    The site may be recorded as the site, group or asset name, so any of
    the three matches.
    """
    bool_query: dict[str, Any] = {
        "must": [{"match_phrase": {"companyName": query.company}}],
        "filter": [{"range": {"actionTimestamp": {"gte": query.time_range, "lte": "now"}}}],
    }
    if query.site and query.site.strip():
        bool_query["should"] = [
            {"match_phrase": {"siteName": query.site}},
            {"match_phrase": {"groupName": query.site}},
            {"match_phrase": {"assetName": query.site}},
        ]
        bool_query["minimum_should_match"] = 1
    return {
        "size": query.size,
        "sort": [{"actionTimestamp": {"order": "desc"}}],
        "query": {"bool": bool_query},
        "_source": list(SOURCE_FIELDS),
    }


def _lookup(source: dict[str, Any], path: str) -> Any:
    value: Any = source
    for key in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def extract_dispatch_id(hit: dict[str, Any]) -> Any:
    """First truthy value among the known dispatch id fields."""
    source = hit.get("_source") or {}
    for field in DISPATCH_ID_FIELDS:
        value = _lookup(source, field)
        if value:
            logger.debug(f"[Elasticsearch] dispatch id in '{field}': {value}")
            return value
    logger.warning(f"[Elasticsearch] no dispatch id in record: {source}")
    return None


class ElasticsearchClient:
    """Minimal REST client; API key auth wins over basic auth."""

    def __init__(
        self,
        url: str,
        index: str = "proof360-dispatch*",
        api_key: str = "",
        username: str = "",
        password: str = "",
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ):
        if not url:
            raise ConfigurationError("ELASTICSEARCH_URL is required")
        self.url = url.rstrip("/")
        self.index = index
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if api_key:
            self.session.headers["Authorization"] = f"ApiKey {api_key}"
        elif username and password:
            self.session.auth = (username, password)
        else:
            raise ConfigurationError(
                "Either ELASTICSEARCH_API_KEY or ELASTICSEARCH_USERNAME/PASSWORD must be provided"
            )

    @classmethod
    def from_settings(cls, settings: Settings, session: Optional[requests.Session] = None) -> "ElasticsearchClient":
        return cls(
            settings.elasticsearch_url,
            settings.elasticsearch_index,
            settings.elasticsearch_api_key,
            settings.elasticsearch_username,
            settings.elasticsearch_password,
            session=session,
        )

    def test_connection(self) -> bool:
        try:
            resp = self.session.get(f"{self.url}/_cluster/health", timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"[Elasticsearch] connection failed: {e}")
            return False
        logger.info(f"[Elasticsearch] connection ok: {resp.json().get('status')}")
        return True

    def search_dispatch_records(self, query: Optional[DispatchQuery] = None) -> dict[str, Any]:
        """Raw ``_search`` response.

        Raises:
            SearchError: the request failed or returned an error status.
        """
        body = build_dispatch_query(query or DispatchQuery())
        try:
            resp = self.session.post(f"{self.url}/{self.index}/_search", json=body, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as e:
            logger.error(f"[Elasticsearch] search error: {e}")
            raise SearchError(f"Dispatch search failed: {e}") from e

    def latest_dispatch_id(self, query: Optional[DispatchQuery] = None) -> Optional[Any]:
        query = query or DispatchQuery()
        try:
            results = self.search_dispatch_records(
                DispatchQuery(query.company, query.site, query.time_range, size=1)
            )
        except SearchError as e:
            logger.error(f"[Elasticsearch] failed to get latest dispatch id: {e}")
            return None
        hits = (results.get("hits") or {}).get("hits") or []
        if not hits:
            logger.info("[Elasticsearch] no dispatch records found with the given criteria")
            return None
        dispatch_id = extract_dispatch_id(hits[0])
        if dispatch_id:
            source = hits[0].get("_source") or {}
            logger.info(
                f"[Elasticsearch] latest dispatch id {dispatch_id} at {source.get('actionTimestamp')}"
            )
        return dispatch_id

    def search_dispatches(self, query: Optional[DispatchQuery] = None) -> list[DispatchRecord]:
        try:
            results = self.search_dispatch_records(query)
        except SearchError as e:
            logger.error(f"[Elasticsearch] failed to search dispatches: {e}")
            return []
        records = []
        for hit in (results.get("hits") or {}).get("hits") or []:
            source = hit.get("_source") or {}
            records.append(DispatchRecord(
                dispatch_id=extract_dispatch_id(hit),
                company_name=source.get("companyName"),
                site_name=source.get("siteName") or source.get("groupName") or source.get("assetName"),
                alert_type=source.get("alertType"),
                timestamp=source.get("actionTimestamp"),
                proof_status=source.get("proofStatus"),
                source=source,
            ))
        return records

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "ElasticsearchClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
