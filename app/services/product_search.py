import logging
import re

import httpx

logger = logging.getLogger(__name__)

SERPAPI_URL = "https://serpapi.com/search.json"
MAX_LINKS = 4

# Manufacturer pages and large Brazilian marketplaces tend to carry full specs
TRUSTED_LINK_RE = re.compile(
    r"(fabricante|oficial|amazon\.com\.br|mercadolivre\.com\.br|magazineluiza\.com\.br"
    r"|rihappy|casasbahia|submarino|extra)",
    re.IGNORECASE,
)


def rank_links(links: list[str]) -> list[str]:
    """Stable sort putting trusted-looking URLs first."""
    return sorted(links, key=lambda u: 0 if TRUSTED_LINK_RE.search(u) else 1)


class ProductSearchService:
    """Find candidate product pages via SerpAPI Google search."""

    def __init__(self, api_key: str, timeout: float = 7.0):
        self.api_key = api_key
        self.timeout = timeout

    async def find_links(self, query: str) -> list[str]:
        if not self.api_key or not query:
            return []

        params = {
            "engine": "google",
            "google_domain": "google.com.br",
            "q": query,
            "api_key": self.api_key,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(SERPAPI_URL, params=params)
                resp.raise_for_status()
                data = resp.json()

            results = data.get("organic_results") if isinstance(data, dict) else None
            if not isinstance(results, list):
                results = []
            links = [
                r.get("link")
                for r in results
                if isinstance(r, dict) and isinstance(r.get("link"), str)
            ]
            ranked = rank_links(links)[:MAX_LINKS]
            logger.info("SerpAPI returned %d links for: %s", len(ranked), query)
            return ranked

        except Exception:
            logger.exception("SerpAPI search failed for: %s", query)
            return []
