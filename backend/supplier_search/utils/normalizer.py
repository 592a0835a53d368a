"""Data normalization utilities for price, size and brand parsing."""

import json
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

import structlog

logger = structlog.get_logger()


# Brands commonly stocked by UK trade and DIY suppliers, matched case-insensitively
KNOWN_BRANDS = [
    "No Nonsense",
    "Soudal",
    "Everbuild",
    "UniBond",
    "Ronseal",
    "Dulux",
    "Polycell",
    "Evo-Stik",
    "Gorilla",
    "CT1",
    "Geocel",
    "Bond It",
    "Wickes",
    "Diall",
    "Mac Allister",
    "Magnusson",
    "Stanley",
    "DeWalt",
    "Makita",
    "Bosch",
    "Crown",
    "Cuprinol",
    "Sadolin",
    "Thompson's",
    "GoodHome",
    "Erbauer",
]

# "<number><unit>" in titles such as "365ml", "2.5 L", "10 pack"
SIZE_PATTERN = re.compile(
    r"(\d+(?:\.\d+)?)\s*(ml|mm|cm|kg|litres?|ltr|l|m|g|pk|pack|each|sheets?|rolls?)\b",
    re.IGNORECASE,
)

# Currency-formatted price: "£1,299.99", "GBP 12.50", "12.99"
PRICE_PATTERN = re.compile(r"£?\s*(\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?)")


@dataclass(frozen=True)
class ParsedSize:
    """Package size parsed from a product title."""

    value: Optional[float] = None
    unit: Optional[str] = None
    label: Optional[str] = None


class PriceNormalizer:
    """Price parsing utilities.

    Handles API fields that may be numeric or strings, and
    currency-formatted text scraped from listing pages.
    """

    @staticmethod
    def clean_price_string(raw: Any) -> Optional[Decimal]:
        """Parse a price field and extract its numeric value.

        Handles various formats:
        - 12.99 -> 12.99
        - "12.99" -> 12.99
        - "£1,234.50" -> 1234.50
        - "GBP 7" -> 7

        Args:
            raw: Raw price value, string or number

        Returns:
            Decimal price value, or None if parsing fails
        """
        if raw is None or isinstance(raw, bool):
            return None

        if isinstance(raw, (int, float, Decimal)):
            try:
                price = Decimal(str(raw))
            except InvalidOperation:
                return None
            return price if price.is_finite() else None

        cleaned = str(raw).replace(",", "")
        cleaned = re.sub(r"[^\d.]", "", cleaned)
        if not cleaned:
            return None

        try:
            return Decimal(cleaned)
        except InvalidOperation:
            return None

    @staticmethod
    def extract_price_from_text(text: str) -> Optional[Decimal]:
        """Extract the first price-like number from text.

        Tolerates currency symbols and thousands separators, e.g.
        "Now £1,049.00 was £1,199.00" -> 1049.00.

        Args:
            text: Text containing price information

        Returns:
            Extracted price as Decimal, or None if not found
        """
        if not text:
            return None

        match = PRICE_PATTERN.search(text)
        if not match:
            return None

        try:
            return Decimal(match.group(1).replace(",", ""))
        except InvalidOperation:
            return None

    @staticmethod
    def positive_or_none(price: Optional[Decimal]) -> Optional[Decimal]:
        """Treat zero and negative prices as unknown."""
        if price is None or price <= 0:
            return None
        return price

    @staticmethod
    def price_per_unit(
        price: Optional[Decimal], size_value: Optional[float]
    ) -> Optional[Decimal]:
        """Price divided by package size, rounded to 4 decimal places."""
        if price is None or not size_value or size_value <= 0:
            return None
        try:
            per_unit = (price / Decimal(str(size_value))).quantize(Decimal("0.0001"))
        except InvalidOperation:
            return None
        return per_unit if per_unit.is_finite() else None


def parse_size(text: Optional[str]) -> ParsedSize:
    """Parse a package size from a product title.

    Args:
        text: Product title, e.g. "UniBond No More Nails 365ml"

    Returns:
        ParsedSize with value, unit and label, all None if no size found
    """
    if not text:
        return ParsedSize()

    match = SIZE_PATTERN.search(text)
    if not match:
        return ParsedSize()

    number, unit = match.group(1), match.group(2)
    return ParsedSize(
        value=float(number),
        unit=unit.lower(),
        label=f"{number}{unit}",
    )


def extract_brand(product_name: Optional[str]) -> Optional[str]:
    """Infer a brand by substring match against KNOWN_BRANDS.

    This is a heuristic; the first listed brand found in the name wins.
    """
    if not product_name:
        return None

    name_lower = product_name.lower()
    for brand in KNOWN_BRANDS:
        if brand.lower() in name_lower:
            return brand
    return None


def extract_json_array(text: Optional[str]) -> List[Any]:
    """Parse the JSON array embedded in a model response.

    Model output may wrap the array in markdown fences or add prose
    around it, so the substring from the first "[" to the last "]" is
    parsed.

    Args:
        text: Raw model response text

    Returns:
        Parsed list

    Raises:
        ValueError: If no array is present or it is not valid JSON
    """
    if not text:
        raise ValueError("empty response")

    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end <= start:
        raise ValueError("no JSON array found")

    data = json.loads(text[start:end + 1])
    if not isinstance(data, list):
        raise ValueError("JSON payload is not an array")
    return data


def normalize_url(url: Optional[str], base_url: str = "") -> str:
    """Make a listing link absolute; missing links become an empty string."""
    if not url:
        return ""
    url = url.strip()
    if url.startswith("//"):
        return f"https:{url}"
    if url.startswith("http"):
        return url
    if base_url:
        return f"{base_url.rstrip('/')}/{url.lstrip('/')}"
    return url
