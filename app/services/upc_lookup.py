import logging

import httpx

from app.schemas.product import SourceResult

logger = logging.getLogger(__name__)


def _text(value) -> str | None:
    """Keep upstream values only when they are non-blank strings."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


class UpcLookupService:
    """Exact barcode lookup against UPCitemdb."""

    def __init__(self, api_key: str, base_url: str, timeout: float = 6.0):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def lookup(self, identifier: str) -> SourceResult | None:
        if not self.api_key:
            return None

        url = f"{self.base_url}/lookup"
        params = {"upc": identifier}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(url, params=params)
                resp.raise_for_status()
                data = resp.json()

            items = data.get("items") if isinstance(data, dict) else None
            if not isinstance(items, list) or not items or not isinstance(items[0], dict):
                logger.info("UPCitemdb has no item for %s", identifier)
                return None
            item = items[0]

            images = item.get("images")
            offers = item.get("offers")
            image = _text(images[0]) if isinstance(images, list) and images else None
            offer = offers[0] if isinstance(offers, list) and offers else None
            offer_link = _text(offer.get("link")) if isinstance(offer, dict) else None
            query_url = str(httpx.URL(url, params=params))

            return SourceResult(
                name=_text(item.get("title")),
                brand=_text(item.get("brand")),
                image_url=image,
                source=offer_link or _text(item.get("elid")) or query_url,
            )

        except Exception:
            logger.exception("UPCitemdb lookup failed for %s", identifier)
            return None
