"""Utilities for price normalization, retries and browser management."""

from .normalizer import (
    KNOWN_BRANDS,
    ParsedSize,
    PriceNormalizer,
    extract_brand,
    extract_json_array,
    normalize_url,
    parse_size,
)
from .retry import http_retry, llm_retry
from .user_agents import get_random_user_agent, USER_AGENTS


__all__ = [
    # Normalization
    "KNOWN_BRANDS",
    "ParsedSize",
    "PriceNormalizer",
    "extract_brand",
    "extract_json_array",
    "normalize_url",
    "parse_size",
    # Retry decorators
    "http_retry",
    "llm_retry",
    # User agents
    "get_random_user_agent",
    "USER_AGENTS",
]
