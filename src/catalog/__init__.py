"""Price catalog — ingest сырого price feed и атомарно заменяемая таблица цен."""

from .feed import (
    DEFAULT_ICON_URL_TEMPLATE,
    IngestResult,
    PriceFeedSource,
    RejectedRecord,
    ingest,
    ingest_lenient,
    parse_price_record,
    token_icon_url,
)
from .price_catalog import CatalogConfig, CatalogSnapshot, PriceCatalog

__all__ = [
    "DEFAULT_ICON_URL_TEMPLATE",
    "IngestResult",
    "PriceFeedSource",
    "RejectedRecord",
    "ingest",
    "ingest_lenient",
    "parse_price_record",
    "token_icon_url",
    "CatalogConfig",
    "CatalogSnapshot",
    "PriceCatalog",
]
