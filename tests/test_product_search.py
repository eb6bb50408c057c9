import httpx
import pytest

from app.services.product_search import ProductSearchService, rank_links


def test_marketplace_link_sorts_first():
    links = ["https://smallshop.com/x", "https://amazon.com.br/y"]

    assert rank_links(links) == ["https://amazon.com.br/y", "https://smallshop.com/x"]


def test_ranking_is_stable_and_case_insensitive():
    links = [
        "https://blog.example/a",
        "https://www.MercadoLivre.com.br/b",
        "https://other.example/c",
        "https://loja-oficial.example/d",
    ]

    assert rank_links(links) == [
        "https://www.MercadoLivre.com.br/b",
        "https://loja-oficial.example/d",
        "https://blog.example/a",
        "https://other.example/c",
    ]


class TestFindLinks:
    @pytest.mark.asyncio
    async def test_returns_ranked_organic_links_capped_at_four(self, mock_http):
        organic = [{"link": f"https://shop{i}.example/p"} for i in range(5)]
        organic.append({"link": "https://www.magazineluiza.com.br/p"})
        organic.append({"title": "no link here"})

        seen = mock_http(lambda request: httpx.Response(200, json={"organic_results": organic}))

        links = await ProductSearchService("serp-key").find_links("7891234567890")

        assert links == [
            "https://www.magazineluiza.com.br/p",
            "https://shop0.example/p",
            "https://shop1.example/p",
            "https://shop2.example/p",
        ]
        params = seen[0].url.params
        assert params["q"] == "7891234567890"
        assert params["engine"] == "google"
        assert params["google_domain"] == "google.com.br"
        assert params["api_key"] == "serp-key"

    @pytest.mark.asyncio
    async def test_disabled_without_api_key(self, mock_http):
        seen = mock_http(lambda request: httpx.Response(200, json={}))

        assert await ProductSearchService("").find_links("anything") == []
        assert seen == []

    @pytest.mark.asyncio
    async def test_http_error_yields_empty(self, mock_http):
        mock_http(lambda request: httpx.Response(500, text="boom"))

        assert await ProductSearchService("k").find_links("q") == []

    @pytest.mark.asyncio
    async def test_timeout_yields_empty(self, mock_http):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        mock_http(handler)

        assert await ProductSearchService("k").find_links("q") == []

    @pytest.mark.asyncio
    async def test_malformed_payload_yields_empty(self, mock_http):
        mock_http(lambda request: httpx.Response(200, json=["not", "a", "dict"]))

        assert await ProductSearchService("k").find_links("q") == []

    @pytest.mark.asyncio
    async def test_missing_organic_results(self, mock_http):
        mock_http(lambda request: httpx.Response(200, json={"search_metadata": {}}))

        assert await ProductSearchService("k").find_links("q") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"organic_results": "not a list"},
            {"organic_results": {"link": "https://a.example"}},
            {"organic_results": [{"link": 42}, {"link": None}, "https://b.example"]},
        ],
    )
    async def test_wrong_value_types_yield_empty(self, mock_http, payload):
        mock_http(lambda request: httpx.Response(200, json=payload))

        assert await ProductSearchService("k").find_links("q") == []

    @pytest.mark.asyncio
    async def test_keeps_valid_links_next_to_malformed_ones(self, mock_http):
        payload = {"organic_results": [{"link": 42}, {"link": "https://ok.example/p"}]}
        mock_http(lambda request: httpx.Response(200, json=payload))

        assert await ProductSearchService("k").find_links("q") == ["https://ok.example/p"]
