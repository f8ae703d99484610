"""
Buyer/property matching.

Scores how well a property fits the stored search criteria of a buyer. The
score is the sum of independent weighted criteria, so it always lies between
0 and 100 and does not depend on the order in which criteria are checked:

==========  ======  ==================================================
Criterion   Points  Satisfied when
==========  ======  ==================================================
budget      40      ``budget_min <= price <= budget_max`` (both bounds set)
city        30      the property city is one of the preferred cities
bedrooms    15      ``bedrooms >= min_bedrooms``
area        15      ``area >= min_area``
==========  ======  ==================================================

A criterion the buyer did not fill in contributes nothing.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Protocol

from pydantic import BaseModel, Field

BUDGET_POINTS = 40
CITY_POINTS = 30
BEDROOMS_POINTS = 15
AREA_POINTS = 15

MAX_SCORE = BUDGET_POINTS + CITY_POINTS + BEDROOMS_POINTS + AREA_POINTS

# Buyers at or above this score are notified automatically of a new property.
AUTO_NOTIFY_THRESHOLD = 50


class PropertyFacts(Protocol):
    price: int
    city: Optional[str]
    bedrooms: Optional[int]
    area: Optional[int]


class BuyerCriteria(Protocol):
    budget_min: Optional[int]
    budget_max: Optional[int]
    city_preferences: Optional[str]
    min_bedrooms: Optional[int]
    min_area: Optional[int]


class MatchScore(BaseModel):
    """Result of scoring one buyer against one property."""

    score: int = Field(ge=0, le=MAX_SCORE, description="Compatibility score out of 100")
    reasons: List[str] = Field(default_factory=list, description="Human readable satisfied criteria")


class RankedMatch(BaseModel):
    """A contact together with its match score, as returned by ``rank_buyers``."""

    contact: Any
    score: int
    reasons: List[str]


def parse_city_preferences(raw: Optional[str]) -> List[str]:
    """Split a comma separated list of cities into normalized names."""
    if not raw:
        return []
    return [city.strip().lower() for city in raw.split(",") if city.strip()]


def budget_matches(price: int, budget_min: Optional[int], budget_max: Optional[int]) -> bool:
    if budget_min is None or budget_max is None:
        return False
    return budget_min <= price <= budget_max


def city_matches(city: Optional[str], city_preferences: Optional[str]) -> bool:
    if not city:
        return False
    return city.strip().lower() in parse_city_preferences(city_preferences)


def minimum_matches(value: Optional[int], minimum: Optional[int]) -> bool:
    if minimum is None or value is None:
        return False
    return value >= minimum


def score_match(prop: PropertyFacts, buyer: BuyerCriteria) -> MatchScore:
    """
    Score a property against the search criteria of a buyer.

    Args:
        prop: Object exposing ``price``, ``city``, ``bedrooms`` and ``area``
        buyer: Object exposing the buyer search criteria

    Returns:
        The score and the list of satisfied criteria
    """
    score = 0
    reasons: List[str] = []

    if budget_matches(prop.price, buyer.budget_min, buyer.budget_max):
        score += BUDGET_POINTS
        reasons.append(f"Price {prop.price} within budget {buyer.budget_min}-{buyer.budget_max}")

    if city_matches(prop.city, buyer.city_preferences):
        score += CITY_POINTS
        reasons.append(f"Located in preferred city {prop.city}")

    if minimum_matches(prop.bedrooms, buyer.min_bedrooms):
        score += BEDROOMS_POINTS
        reasons.append(f"{prop.bedrooms} bedrooms (minimum {buyer.min_bedrooms})")

    if minimum_matches(prop.area, buyer.min_area):
        score += AREA_POINTS
        reasons.append(f"{prop.area} m2 (minimum {buyer.min_area} m2)")

    return MatchScore(score=score, reasons=reasons)


def rank_buyers(prop: PropertyFacts, buyers: Iterable[BuyerCriteria], min_score: int = 1) -> List[RankedMatch]:
    """
    Score every buyer against a property and rank them by descending score.

    Buyers scoring below ``min_score`` are dropped. The sort is stable, so
    buyers with equal scores keep their input order.
    """
    ranked = []
    for buyer in buyers:
        result = score_match(prop, buyer)
        if result.score >= min_score:
            ranked.append(RankedMatch(contact=buyer, score=result.score, reasons=result.reasons))
    ranked.sort(key=lambda match: match.score, reverse=True)
    return ranked
