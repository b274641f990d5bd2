"""
Lookup clause builders — Pure functions for visualization filters.

Single Responsibility: turn the optional lookup arguments (slug, name,
organization, tags) into SQLAlchemy boolean expressions.  Every value
is a bound parameter; tag keys travel as bound JSON paths.
No I/O, no sessions.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from sqlalchemy import ColumnElement

from viz_gateway.core.errors import UserDataError
from viz_gateway.models.visualization_models import Visualization

logger = logging.getLogger(__name__)


def build_lookup_conditions(
    slug: str = "",
    name: str = "",
    organization_id: str = "",
    tags: Optional[Mapping[str, Any]] = None,
) -> List[ColumnElement[bool]]:
    """
    One equality predicate per non-empty argument and per tag key.

    An empty list means "match everything".
    """
    conditions: List[ColumnElement[bool]] = []

    if slug:
        conditions.append(Visualization.slug == slug)
    if name:
        conditions.append(Visualization.name == name)
    if organization_id:
        conditions.append(Visualization.organization_id == organization_id)

    for key, value in (tags or {}).items():
        conditions.append(tag_predicate(key, value))

    logger.debug(
        f"[Lookup] {len(conditions)} condition(s) "
        f"(tags={sorted((tags or {}).keys())})"
    )
    return conditions


def tag_predicate(key: str, value: Any) -> ColumnElement[bool]:
    """
    Equality on a single key inside the ``tags`` JSON column.

    Tags are scalar-valued; the accessor is picked from the Python type
    so the comparison happens on the extracted JSON scalar.
    """
    if not isinstance(key, str) or not key:
        raise UserDataError(f"Tag keys must be non-empty strings, got {key!r}")

    element = Visualization.tags[key]

    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return element.as_boolean() == value
    if isinstance(value, int):
        return element.as_integer() == value
    if isinstance(value, float):
        return element.as_float() == value
    if isinstance(value, str):
        return element.as_string() == value

    raise UserDataError(
        f"Tag '{key}' must be a string, number or boolean to be used "
        f"as a filter, got {type(value).__name__}"
    )
