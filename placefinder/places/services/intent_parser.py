"""Keyword-based intent detection for free-text place searches"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

from pydantic import BaseModel, Field, ValidationError

from placefinder.core.config import settings
from placefinder.core.config_cache import load_yaml_cached

logger = logging.getLogger(__name__)

NEAR_ME_PATTERN = re.compile(r"near\s*me", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


class CategoryKeyword(BaseModel):
    keyword: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)


class SeedCategory(BaseModel):
    slug: str
    display_name: str


class SearchVocabulary(BaseModel):
    """Hand-maintained vocabulary loaded from config/search_vocabulary.yml"""
    category_keywords: List[CategoryKeyword] = Field(default_factory=list)
    cities: List[str] = Field(default_factory=list)
    filler_words: List[str] = Field(default_factory=list)
    categories: List[SeedCategory] = Field(default_factory=list)


@dataclass
class SearchIntent:
    """Structured reading of one search query; never persisted"""
    query: str
    category: Optional[str] = None
    city: Optional[str] = None
    has_near_me: bool = False
    lat: Optional[float] = None
    lng: Optional[float] = None

    @property
    def uses_location(self) -> bool:
        return self.has_near_me and self.lat is not None and self.lng is not None


def normalize_query(query: str) -> str:
    """Lowercase, trim, collapse whitespace"""
    return _WHITESPACE.sub(" ", query.lower().strip())


class IntentParser:
    """Detects near-me, category and city phrases and leaves the rest as a name filter"""

    def __init__(self, vocabulary: SearchVocabulary):
        self.vocabulary = vocabulary
        self._keywords: List[Tuple[str, str, Pattern]] = [
            (kw.keyword.lower(), kw.slug, re.compile(re.escape(kw.keyword.lower()), re.IGNORECASE))
            for kw in vocabulary.category_keywords
        ]
        self._cities: List[Tuple[str, Pattern]] = [
            (city.lower(), re.compile(re.escape(city.lower()), re.IGNORECASE))
            for city in vocabulary.cities
        ]
        fillers = [re.escape(w.lower()) for w in vocabulary.filler_words if w.strip()]
        self._fillers: Optional[Pattern] = (
            re.compile(r"\b(?:" + "|".join(fillers) + r")\b", re.IGNORECASE) if fillers else None
        )

    def detect(self, query: str, lat: Optional[float] = None, lng: Optional[float] = None) -> SearchIntent:
        normalized = normalize_query(query)
        intent = SearchIntent(query=normalized)
        remaining = normalized

        if NEAR_ME_PATTERN.search(normalized):
            intent.has_near_me = True
            if lat is not None and lng is not None:
                intent.lat = lat
                intent.lng = lng
            remaining = NEAR_ME_PATTERN.sub(" ", remaining)

        # first match wins, so the table order decides specificity
        for keyword, slug, pattern in self._keywords:
            if keyword in normalized:
                intent.category = slug
                remaining = pattern.sub(" ", remaining)
                break

        for city, pattern in self._cities:
            if city in normalized:
                intent.city = city
                remaining = pattern.sub(" ", remaining)
                break

        if self._fillers is not None and (intent.category or intent.city or intent.has_near_me):
            remaining = self._fillers.sub(" ", remaining)

        intent.query = _WHITESPACE.sub(" ", remaining).strip()
        logger.debug(
            "Intent for '%s': category=%s city=%s near_me=%s rest='%s'",
            normalized, intent.category, intent.city, intent.has_near_me, intent.query,
        )
        return intent


def load_vocabulary(path: Optional[str] = None) -> SearchVocabulary:
    """Load the search vocabulary from YAML; an unusable file yields an empty vocabulary"""
    config_path = path or settings.search_vocabulary_path
    data = load_yaml_cached(config_path)
    try:
        return SearchVocabulary.model_validate(data)
    except ValidationError as e:
        logger.error(f"Failed to load search vocabulary from {config_path}: {e}")
        return SearchVocabulary()


def create_intent_parser(path: Optional[str] = None) -> IntentParser:
    """Create intent parser with the loaded vocabulary"""
    return IntentParser(load_vocabulary(path))
