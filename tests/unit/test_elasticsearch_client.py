"""Unit tests for the dispatch query builder and ElasticsearchClient."""
from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from proof360.config import Settings
from proof360.errors import ConfigurationError, SearchError
from proof360.search import (
    DispatchQuery,
    ElasticsearchClient,
    build_dispatch_query,
    extract_dispatch_id,
)

pytestmark = pytest.mark.unit


def response(payload=None, status: int = 200) -> MagicMock:
    resp = MagicMock(status_code=status)
    resp.json.return_value = payload or {}
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return resp


def make_client(**kw) -> ElasticsearchClient:
    session = requests.Session()
    session.post = MagicMock()
    session.get = MagicMock()
    session.close = MagicMock()
    return ElasticsearchClient("https://es.example/", api_key=kw.pop("api_key", "k"), session=session, **kw)


def hits(*sources):
    return {"hits": {"hits": [{"_source": s} for s in sources]}}


class TestBuildQuery:
    def test_with_site(self):
        body = build_dispatch_query(DispatchQuery("Acme", "Site A", "now-2h", 5))
        bool_q = body["query"]["bool"]
        assert body["size"] == 5
        assert bool_q["must"] == [{"match_phrase": {"companyName": "Acme"}}]
        assert bool_q["filter"] == [{"range": {"actionTimestamp": {"gte": "now-2h", "lte": "now"}}}]
        assert {"match_phrase": {"assetName": "Site A"}} in bool_q["should"]
        assert len(bool_q["should"]) == 3
        assert bool_q["minimum_should_match"] == 1
        assert body["sort"] == [{"actionTimestamp": {"order": "desc"}}]
        assert "responseData.callout.calloutid" in body["_source"]

    @pytest.mark.parametrize("site", [None, "", "   "])
    def test_without_site(self, site):
        bool_q = build_dispatch_query(DispatchQuery("Acme", site))["query"]["bool"]
        assert "should" not in bool_q
        assert "minimum_should_match" not in bool_q


class TestExtractDispatchId:
    def test_first_field_wins(self):
        assert extract_dispatch_id({"_source": {"dispatchId": "D1", "id": "X"}}) == "D1"

    def test_nested_callout(self):
        hit = {"_source": {"dispatchId": "", "responseData": {"callout": {"calloutid": 77}}}}
        assert extract_dispatch_id(hit) == 77

    def test_nothing_found(self):
        assert extract_dispatch_id({"_source": {"companyName": "Acme"}}) is None


class TestClient:
    def test_requires_url(self):
        with pytest.raises(ConfigurationError):
            ElasticsearchClient("", api_key="k")

    def test_requires_auth(self):
        with pytest.raises(ConfigurationError):
            ElasticsearchClient("https://es", username="u")

    def test_api_key_header(self):
        client = make_client(api_key="secret")
        assert client.session.headers["Authorization"] == "ApiKey secret"
        assert client.url == "https://es.example"

    def test_basic_auth(self):
        client = ElasticsearchClient("https://es", username="u", password="p", session=requests.Session())
        assert client.session.auth == ("u", "p")
        assert "Authorization" not in client.session.headers

    def test_from_settings(self):
        s = Settings(_env_file=None, elasticsearch_url="https://es", elasticsearch_index="idx*",
                     elasticsearch_api_key="k")
        client = ElasticsearchClient.from_settings(s, session=requests.Session())
        assert client.index == "idx*"

    def test_connection_ok(self):
        client = make_client()
        client.session.get.return_value = response({"status": "green"})
        assert client.test_connection()
        assert client.session.get.call_args.args[0] == "https://es.example/_cluster/health"

    def test_connection_failure(self):
        client = make_client()
        client.session.get.side_effect = requests.ConnectionError("down")
        assert client.test_connection() is False

    def test_search_posts_to_index(self):
        client = make_client(index="proof360-dispatch*")
        client.session.post.return_value = response(hits({"dispatchId": "D1"}))
        result = client.search_dispatch_records(DispatchQuery("Acme", None))
        assert client.session.post.call_args.args[0] == "https://es.example/proof360-dispatch*/_search"
        assert result["hits"]["hits"][0]["_source"]["dispatchId"] == "D1"

    def test_search_error(self):
        client = make_client()
        client.session.post.return_value = response(status=500)
        with pytest.raises(SearchError):
            client.search_dispatch_records()

    def test_latest_dispatch_id(self):
        client = make_client()
        client.session.post.return_value = response(hits({"internalDispatchId": "I9"}))
        assert client.latest_dispatch_id(DispatchQuery("Acme", "Site", size=50)) == "I9"
        assert client.session.post.call_args.kwargs["json"]["size"] == 1

    def test_latest_dispatch_id_none_when_empty(self):
        client = make_client()
        client.session.post.return_value = response(hits())
        assert client.latest_dispatch_id() is None

    def test_latest_dispatch_id_swallows_errors(self):
        client = make_client()
        client.session.post.side_effect = requests.Timeout("slow")
        assert client.latest_dispatch_id() is None

    def test_search_dispatches(self):
        client = make_client()
        client.session.post.return_value = response(hits(
            {"dispatchId": "D1", "companyName": "Acme", "groupName": "Group 1",
             "alertType": "Trex", "actionTimestamp": "2024-01-01T00:00:00Z", "proofStatus": "Open"},
        ))
        [record] = client.search_dispatches()
        assert record.dispatch_id == "D1"
        assert record.site_name == "Group 1"
        assert record.alert_type == "Trex"
        assert record.source["companyName"] == "Acme"

    def test_search_dispatches_empty_on_error(self):
        client = make_client()
        client.session.post.return_value = response(status=503)
        assert client.search_dispatches() == []

    def test_context_manager_closes(self):
        client = make_client()
        with client:
            pass
        client.session.close.assert_called_once()
