"""Resolve a barcode into a product record by merging several sources.

Stages run in a fixed order over one WorkingRecord:

    seed -> identifier lookup -> web search -> scrape & merge -> refinement

Every merge is first-non-empty-wins: a field, once set, is never replaced by
a later source. The only exception is the brand returned by the refinement
step, which is applied last. Merge helpers are pure functions so the ordering
rules can be tested without any I/O.
"""

import asyncio
import logging
from dataclasses import replace
from urllib.parse import urlparse

from app.config import PipelineConfig, Settings
from app.schemas.autofill import ProductQuery, ProductRecord
from app.schemas.product import Measurements, Refinement, SourceResult, WorkingRecord
from app.services.page_scraper import PageScraper
from app.services.product_search import MAX_LINKS, ProductSearchService
from app.services.refinement import RefinementService
from app.services.upc_lookup import UpcLookupService

logger = logging.getLogger(__name__)

SEED_CONFIDENCE = 0.20
LOOKUP_BONUS = 0.20
SCRAPE_BONUS = 0.35
SCRAPE_CEILING = 0.85
HARD_FIELD_THRESHOLD = 2


def _present(value) -> bool:
    if isinstance(value, str):
        return bool(value.strip())
    return value is not None


def _first(current, candidate):
    if _present(current):
        return current
    return candidate if _present(candidate) else current


def is_absolute_url(value: str | None) -> bool:
    if not value:
        return False
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def seed(query: ProductQuery) -> WorkingRecord:
    return WorkingRecord(name=query.known_name or None, confidence=SEED_CONFIDENCE)


def add_source(record: WorkingRecord, source: str | None) -> WorkingRecord:
    if not _present(source) or source in record.sources:
        return record
    return replace(record, sources=record.sources + (source,))


def merge_identity(record: WorkingRecord, result: SourceResult) -> WorkingRecord:
    """Fill name, brand and image from result where still empty."""
    image = result.image_url if is_absolute_url(result.image_url) else None
    return replace(
        record,
        name=_first(record.name, result.name),
        brand=_first(record.brand, result.brand),
        image_url=_first(record.image_url, image),
    )


def merge_measurements(record: WorkingRecord, result: SourceResult) -> WorkingRecord:
    """Fill each measurement independently where still unset."""
    have, new = record.measurements, result.measurements
    merged = Measurements(
        weight_kg=_first(have.weight_kg, new.weight_kg),
        width_cm=_first(have.width_cm, new.width_cm),
        height_cm=_first(have.height_cm, new.height_cm),
        length_cm=_first(have.length_cm, new.length_cm),
    )
    return replace(record, measurements=merged)


def hard_field_count(record: WorkingRecord) -> int:
    m = record.measurements
    fields = [record.brand, record.image_url, m.width_cm, m.height_cm, m.length_cm, m.weight_kg]
    return sum(1 for f in fields if _present(f))


def apply_lookup(record: WorkingRecord, result: SourceResult) -> WorkingRecord:
    record = add_source(record, result.source)
    record = merge_identity(record, result)
    return replace(record, confidence=record.confidence + LOOKUP_BONUS)


def apply_scrape(record: WorkingRecord, result: SourceResult) -> WorkingRecord:
    record = add_source(record, result.source)
    record = merge_identity(record, result)
    record = merge_measurements(record, result)
    # re-evaluated after every successful scrape, so several corroborating
    # pages keep raising confidence up to the ceiling
    if hard_field_count(record) >= HARD_FIELD_THRESHOLD:
        bumped = min(SCRAPE_CEILING, record.confidence + SCRAPE_BONUS)
        record = replace(record, confidence=max(record.confidence, bumped))
    return record


def apply_refinement(record: WorkingRecord, refinement: Refinement) -> WorkingRecord:
    if _present(refinement.brand):
        return replace(record, brand=refinement.brand)
    return record


def build_queries(identifier: str, name: str | None) -> list[str]:
    name = (name or "").strip()
    candidates = [identifier, f"{identifier} {name}".strip(), name]
    queries = []
    for q in candidates:
        if q and q not in queries:
            queries.append(q)
    return queries


def dedupe_links(links: list[str], limit: int = MAX_LINKS) -> list[str]:
    return list(dict.fromkeys(links))[:limit]


def to_product_record(
    query: ProductQuery, record: WorkingRecord, short_description: str = ""
) -> ProductRecord:
    m = record.measurements
    image = record.image_url if is_absolute_url(record.image_url) else ""
    return ProductRecord(
        name=record.name or "",
        identifier=query.identifier,
        brand=record.brand or "",
        weight_kg=m.weight_kg,
        width_cm=m.width_cm,
        height_cm=m.height_cm,
        length_cm=m.length_cm,
        short_description=short_description or "",
        image_url=image,
        sources=list(record.sources),
        confidence=min(1.0, max(0.0, record.confidence)),
    )


class AutofillPipeline:
    def __init__(
        self,
        config: PipelineConfig,
        lookup: UpcLookupService,
        search: ProductSearchService,
        scraper: PageScraper,
        refiner: RefinementService,
    ):
        self.config = config
        self.lookup = lookup
        self.search = search
        self.scraper = scraper
        self.refiner = refiner

    @classmethod
    def from_settings(cls, s: Settings) -> "AutofillPipeline":
        config = PipelineConfig.from_settings(s)
        t = config.timeouts
        return cls(
            config=config,
            lookup=UpcLookupService(s.upcitemdb_api_key, s.upcitemdb_base_url, timeout=t.lookup),
            search=ProductSearchService(s.serpapi_api_key, timeout=t.search),
            scraper=PageScraper(timeout=t.scrape),
            refiner=RefinementService(
                backend=s.refine_backend,
                openai_api_key=s.openai_api_key,
                openai_url=s.openai_url,
                openai_model=s.openai_model,
                anthropic_api_key=s.anthropic_api_key,
                anthropic_model=s.anthropic_model,
                timeout=t.refine,
            ),
        )

    async def run(self, query: ProductQuery) -> ProductRecord:
        record = seed(query)
        if self.config.disable_external:
            return to_product_record(query, record)

        found = await self.lookup.lookup(query.identifier)
        if found is not None:
            record = apply_lookup(record, found)

        links = await self._discover_links(query.identifier, record.name)
        for result in await self._scrape_all(links):
            if result is not None:
                record = apply_scrape(record, result)

        refinement = await self.refiner.refine(
            name=record.name or "",
            brand=record.brand or "",
            identifier=query.identifier,
            measurements=record.measurements,
        )
        record = apply_refinement(record, refinement)

        logger.debug(
            "Resolved %s: %d sources, confidence %.2f",
            query.identifier, len(record.sources), record.confidence,
        )
        return to_product_record(query, record, refinement.short_description)

    async def _discover_links(self, identifier: str, name: str | None) -> list[str]:
        queries = build_queries(identifier, name)
        if self.config.concurrent_fetch:
            batches = await asyncio.gather(*(self.search.find_links(q) for q in queries))
        else:
            batches = [await self.search.find_links(q) for q in queries]
        return dedupe_links([link for batch in batches for link in batch])

    async def _scrape_all(self, links: list[str]) -> list[SourceResult | None]:
        # gather keeps input order, so merging stays in link-discovery order
        if self.config.concurrent_fetch:
            return list(await asyncio.gather(*(self.scraper.scrape(u) for u in links)))
        return [await self.scraper.scrape(u) for u in links]
