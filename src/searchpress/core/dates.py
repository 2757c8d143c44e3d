"""Date helpers — lenient date parsing and date-query translation.

``DateQueryTranslator`` turns the simple ``year``/``monthnum``/``w``/``day``/``m``
query vars and structured ``date_query`` clauses into filter clauses over
``post_date`` (ranges) and ``date_terms.*`` (calendar components).
"""

from __future__ import annotations

import calendar
import logging
from datetime import datetime
from typing import Any

from dateutil import parser as dt_parser

from searchpress.models.query import ContentQuery, DateQuery, DateQueryClause

logger = logging.getLogger(__name__)

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
ZERO_DATES = frozenset({"0000-00-00 00:00:00", "0000-00-00"})
DATE_COLUMNS = frozenset({"post_date", "post_date_gmt", "post_modified", "post_modified_gmt"})
DATE_PARTS = ("year", "month", "week", "dayofyear", "day", "dayofweek", "dayofweek_iso", "hour", "minute", "second")

_EPOCH = datetime(1970, 1, 1)


def parse_date(value: Any) -> datetime | None:
    """Parse a date string, returning None when it is not a usable date.

    Zero dates and bare numbers are rejected; timezone information is
    dropped so the wall-clock value is kept as written.
    """
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text or text in ZERO_DATES or _is_number(text):
        return None
    try:
        parsed = dt_parser.parse(text, default=_EPOCH)
    except (ValueError, OverflowError):
        return None
    return parsed.replace(tzinfo=None)


def _is_number(text: str) -> bool:
    try:
        float(text)
    except ValueError:
        return False
    return True


class DateQueryTranslator:
    """Translate date restrictions into filter clauses."""

    def simple_filter(self, query: ContentQuery) -> dict[str, Any] | None:
        """Build a filter from ``year``, ``monthnum``, ``w``, ``day`` and ``m``.

        ``m`` is ``YYYY[MM[DD[HH[MM[SS]]]]]``; explicit vars win over the
        parts encoded in ``m``.
        """
        parts: dict[str, int] = {}
        if query.m:
            digits = "".join(ch for ch in query.m if ch.isdigit())
            for name, start, end in (
                ("year", 0, 4),
                ("month", 4, 6),
                ("day", 6, 8),
                ("hour", 8, 10),
                ("minute", 10, 12),
                ("second", 12, 14),
            ):
                if len(digits) >= end:
                    parts[name] = int(digits[start:end])

        for name, value in (("year", query.year), ("month", query.monthnum), ("week", query.w), ("day", query.day)):
            if value:
                parts[name] = value

        if not parts:
            return None
        return {"bool": {"must": [{"term": {f"date_terms.{name}": value}} for name, value in parts.items()]}}

    def get_filter(self, date_query: DateQuery) -> dict[str, Any]:
        """Translate a structured date query.

        Returns:
            ``{"and": {"bool": {<must|should>: [...]}}}``, or ``{}`` when no
            clause produced a restriction.
        """
        relation = "should" if date_query.relation.upper() == "OR" else "must"
        clauses = [c for c in (self._clause(clause) for clause in date_query.clauses) if c]
        if not clauses:
            return {}
        return {"and": {"bool": {relation: clauses}}}

    def _clause(self, clause: DateQueryClause) -> dict[str, Any] | None:
        column = clause.column if clause.column in DATE_COLUMNS else "post_date"
        must: list[dict[str, Any]] = []

        bounds: dict[str, str] = {}
        if clause.after is not None:
            after = self._boundary(clause.after, default_to_max=not clause.inclusive)
            if after:
                bounds["gte" if clause.inclusive else "gt"] = after
        if clause.before is not None:
            before = self._boundary(clause.before, default_to_max=clause.inclusive)
            if before:
                bounds["lte" if clause.inclusive else "lt"] = before
        if bounds:
            must.append({"range": {column: bounds}})

        for part in DATE_PARTS:
            value = getattr(clause, part)
            if value is not None:
                must.append({"term": {f"date_terms.{part}": value}})

        if not must:
            return None
        return {"bool": {"must": must}}

    @staticmethod
    def _boundary(value: str | dict[str, int], default_to_max: bool) -> str | None:
        """Render a range boundary.

        Partial ``{"year": ..}`` boundaries expand to the first or last
        instant of the period depending on ``default_to_max``.
        """
        if isinstance(value, str):
            parsed = parse_date(value)
            if parsed is None:
                logger.debug("Ignoring unparsable date boundary %r", value)
                return None
            return parsed.strftime(DATETIME_FORMAT)

        year = value.get("year")
        if not year:
            return None
        month = value.get("month") or (12 if default_to_max else 1)
        if not 1 <= month <= 12 or not 1 <= year <= 9999:
            return None
        last_day = calendar.monthrange(year, month)[1]
        day = value.get("day") or (last_day if default_to_max else 1)
        if default_to_max:
            moment = datetime(year, month, max(1, min(day, last_day)), 23, 59, 59)
        else:
            moment = datetime(year, month, max(1, min(day, last_day)))
        return moment.strftime(DATETIME_FORMAT)
