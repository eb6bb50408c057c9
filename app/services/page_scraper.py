import logging
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from app.schemas.product import SourceResult
from app.services.measurements import extract_measurements

logger = logging.getLogger(__name__)

KNOWN_BRANDS = [
    "hasbro",
    "mattel",
    "nig",
    "junges",
    "toymix",
    "pais & filhos",
    "ciranda cultural",
    "grow",
    "multikids",
    "hot wheels",
    "lego",
    "qman",
]

HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "pt-BR,pt;q=0.9,en;q=0.5",
}


def guess_brand(title: str) -> str:
    """First known brand contained in the title, title-cased. Empty if none."""
    lower = (title or "").lower()
    for brand in KNOWN_BRANDS:
        if brand in lower:
            return brand.title()
    return ""


def _meta(soup: BeautifulSoup, name: str) -> str:
    tag = soup.find("meta", attrs={"property": name}) or soup.find("meta", attrs={"name": name})
    if tag is None:
        return ""
    return (tag.get("content") or "").strip()


def parse_page(url: str, html: str) -> SourceResult:
    soup = BeautifulSoup(html, "lxml")

    title = soup.title.get_text(strip=True) if soup.title else ""
    title = title or _meta(soup, "og:title")

    image = _meta(soup, "og:image")
    if image:
        image = urljoin(url, image)

    brand = _meta(soup, "product:brand") or _meta(soup, "brand") or guess_brand(title)

    body = soup.body or soup
    for tag in body.find_all(["script", "style", "noscript"]):
        tag.decompose()
    text = body.get_text(" ")

    return SourceResult(
        name=title or None,
        brand=brand or None,
        image_url=image or None,
        source=url,
        measurements=extract_measurements(text),
    )


class PageScraper:
    def __init__(self, timeout: float = 8.0):
        self.timeout = timeout

    async def scrape(self, url: str) -> SourceResult | None:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                resp = await client.get(url, headers=HEADERS)
                if not resp.is_success:
                    logger.info("Scrape of %s returned HTTP %d", url, resp.status_code)
                    return None
                html = resp.text

            return parse_page(url, html)

        except Exception:
            logger.exception("Scrape failed for %s", url)
            return None
