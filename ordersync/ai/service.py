from __future__ import annotations

import logging

from pydantic import ValidationError

from ordersync.ai.base import OrderTextExtractor
from ordersync.ai.gemini_provider import GeminiExtractor
from ordersync.ai.mock_provider import NullExtractor, RuleBasedExtractor
from ordersync.ai.schema import ExtractedOrder
from ordersync.core.config import EXTRACTION_PROVIDER
from ordersync.services.outcomes import ErrorKind, Outcome

logger = logging.getLogger(__name__)

CONTENT_TEMPLATE = "<b>Name: </b> {name}\n<b>Phone:</b> {phone}\n<b>Address:</b> {address}"


def get_extractor(provider: str | None = None) -> OrderTextExtractor:
    selected = (provider or EXTRACTION_PROVIDER or "rules").strip().lower()
    if selected == "gemini":
        return GeminiExtractor()
    if selected == "none":
        return NullExtractor()
    return RuleBasedExtractor()


def format_order_content(extracted: ExtractedOrder) -> str:
    return CONTENT_TEMPLATE.format(
        name=extracted.name,
        phone=extracted.phone,
        address=extracted.address,
    )


def build_order_content(raw_text: str, extractor: OrderTextExtractor) -> tuple[str, Outcome]:
    """Turn raw order text into the stored content.

    Never raises: on any extractor failure, invalid payload or missing name the
    raw text is kept verbatim and the outcome reports ``extraction_failed``.
    """
    provider_name = getattr(extractor, "name", type(extractor).__name__)
    try:
        payload = extractor.parse(raw_text)
    except Exception as exc:
        logger.warning("Order text extraction failed (provider=%s): %s", provider_name, exc)
        return raw_text, Outcome.failure(ErrorKind.extraction_failed, f"provider_error: {exc}")

    if not payload:
        return raw_text, Outcome.failure(ErrorKind.extraction_failed, "No customer details found")

    try:
        extracted = ExtractedOrder.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Order text extraction returned invalid data (provider=%s)", provider_name)
        return raw_text, Outcome.failure(ErrorKind.extraction_failed, f"validation_error: {exc}")

    if not extracted.name.strip():
        return raw_text, Outcome.failure(ErrorKind.extraction_failed, "No customer name found")

    return format_order_content(extracted), Outcome.success(extracted)
