"""
Listing search filters.

Query-string values arrive as raw strings. ListingFilters.from_query turns them
into typed filters, treating anything malformed as absent, and
ListingPredicateBuilder turns those filters into SQL conditions for the
listing repository.
"""

from sqlalchemy import and_, or_, exists, select, true
from sublets.models.listing import Listing, ListingAmenity
from sublets.utils.formatting import as_utc, contains_pattern
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_CEILING, ROUND_FLOOR
from typing import Any, List, Optional, Sequence, Union
import enum
import logging
import uuid

logger = logging.getLogger(__name__)

# "4" in the bedrooms filter means "4 or more"
BEDROOMS_AT_LEAST = "4"

# Listing.price is Numeric(10, 2)
MAX_PRICE_MAGNITUDE = Decimal(10) ** 8
CENT = Decimal("0.01")


class ListingScope(str, enum.Enum):
    """Which listings a query may see."""
    PUBLIC = "public"
    MINE = "mine"


def parse_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def parse_price(value: Any, rounding: str = ROUND_CEILING) -> Optional[Decimal]:
    """
    A price bound the price column can compare against, or None.

    Bounds are rounded to cents; use ROUND_CEILING for a lower bound and
    ROUND_FLOOR for an upper bound so the stored prices they match don't change.
    """
    number = parse_decimal(value)
    if number is None or abs(number) >= MAX_PRICE_MAGNITUDE:
        return None
    return number.quantize(CENT, rounding=rounding)


def parse_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or datetime into aware UTC.
    A trailing 'Z' is accepted; naive values are taken as UTC.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    text = str(value).strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return as_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def parse_amenities(value: Union[None, str, Sequence[str]]) -> List[str]:
    """Split comma separated amenities, dropping blanks and repeats."""
    if not value:
        return []
    parts = value.split(",") if isinstance(value, str) else [
        piece for item in value for piece in str(item).split(",")
    ]
    amenities = []
    for part in parts:
        part = part.strip()
        if part and part not in amenities:
            amenities.append(part)
    return amenities


class ListingFilters:
    """Normalized listing search filters."""

    def __init__(
        self,
        search: Optional[str] = None,
        min_price: Decimal = Decimal(0),
        max_price: Decimal = Decimal(10000),
        bedrooms: Optional[int] = None,
        bedrooms_at_least: bool = False,
        available_from: Optional[datetime] = None,
        available_until: Optional[datetime] = None,
        amenities: Optional[List[str]] = None,
        limit: Optional[int] = None,
        scope: ListingScope = ListingScope.PUBLIC
    ):
        self.search = search
        self.min_price = min_price
        self.max_price = max_price
        self.bedrooms = bedrooms
        self.bedrooms_at_least = bedrooms_at_least
        self.available_from = available_from
        self.available_until = available_until
        self.amenities = amenities or []
        self.limit = limit
        self.scope = scope

    @classmethod
    def from_query(
        cls,
        search: Optional[str] = None,
        min_price: Any = None,
        max_price: Any = None,
        bedrooms: Any = None,
        available_from: Any = None,
        available_until: Any = None,
        amenities: Union[None, str, Sequence[str]] = None,
        limit: Any = None,
        scope: Optional[str] = None,
        default_min_price: Union[int, Decimal] = 0,
        default_max_price: Union[int, Decimal] = 10000,
        max_limit: Optional[int] = None
    ) -> "ListingFilters":
        """Build filters from raw query values."""
        parsed_min = parse_price(min_price)
        parsed_max = parse_price(max_price, rounding=ROUND_FLOOR)

        bedrooms_text = str(bedrooms).strip() if bedrooms is not None else ""
        bedrooms_at_least = bedrooms_text == BEDROOMS_AT_LEAST
        parsed_bedrooms = parse_int(bedrooms_text) if bedrooms_text else None

        parsed_limit = parse_int(limit)
        if parsed_limit is not None and parsed_limit <= 0:
            parsed_limit = None
        if parsed_limit is not None and max_limit is not None:
            parsed_limit = min(parsed_limit, max_limit)

        try:
            parsed_scope = ListingScope((scope or "").strip().lower())
        except ValueError:
            parsed_scope = ListingScope.PUBLIC

        search_text = (search or "").strip() or None

        return cls(
            search=search_text,
            min_price=parsed_min if parsed_min is not None else Decimal(default_min_price),
            max_price=parsed_max if parsed_max is not None else Decimal(default_max_price),
            bedrooms=parsed_bedrooms,
            bedrooms_at_least=bedrooms_at_least,
            available_from=parse_datetime(available_from),
            available_until=parse_datetime(available_until),
            amenities=parse_amenities(amenities),
            limit=parsed_limit,
            scope=parsed_scope,
        )

    def to_dict(self) -> dict:
        return {
            "search": self.search,
            "min_price": str(self.min_price),
            "max_price": str(self.max_price),
            "bedrooms": self.bedrooms,
            "bedrooms_at_least": self.bedrooms_at_least,
            "available_from": self.available_from.isoformat() if self.available_from else None,
            "available_until": self.available_until.isoformat() if self.available_until else None,
            "amenities": self.amenities,
            "limit": self.limit,
            "scope": self.scope.value,
        }


class ListingPredicateBuilder:
    """
    Composes independent boolean conditions over the listings table.

    Visibility and content predicates are collected separately and ANDed
    together by build().
    """

    def __init__(self, filters: ListingFilters, caller_id: Optional[uuid.UUID] = None):
        self.filters = filters
        self.caller_id = caller_id

    def visibility(self) -> List:
        """Own listings in any state for scope=mine, otherwise only live listings."""
        if self.filters.scope == ListingScope.MINE and self.caller_id is not None:
            return [Listing.owner_id == self.caller_id]
        return [Listing.published.is_(True), Listing.is_draft.is_(False)]

    def content(self) -> List:
        filters = self.filters
        conditions = [
            Listing.price >= filters.min_price,
            Listing.price <= filters.max_price,
        ]

        if filters.bedrooms is not None:
            if filters.bedrooms_at_least:
                conditions.append(Listing.bedrooms >= filters.bedrooms)
            else:
                conditions.append(Listing.bedrooms == filters.bedrooms)

        # The listing window must cover the requested window
        if filters.available_from is not None:
            conditions.append(Listing.available_from <= filters.available_from)
        if filters.available_until is not None:
            conditions.append(Listing.available_until >= filters.available_until)

        for amenity in filters.amenities:
            conditions.append(
                exists(
                    select(ListingAmenity.id).where(
                        ListingAmenity.listing_id == Listing.id,
                        ListingAmenity.name == amenity,
                    )
                )
            )

        if filters.search:
            pattern = contains_pattern(filters.search)
            conditions.append(
                or_(
                    Listing.title.ilike(pattern, escape="\\"),
                    Listing.description.ilike(pattern, escape="\\"),
                    Listing.address.ilike(pattern, escape="\\"),
                )
            )

        return conditions

    def conditions(self) -> List:
        return self.visibility() + self.content()

    def build(self):
        conditions = self.conditions()
        return and_(*conditions) if conditions else true()
