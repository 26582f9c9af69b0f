"""Crowd Pick – random candidate selection.

A candidate must:
  * not be in the visitor's seen set,
  * carry at least one included tag (when any are included),
  * carry none of the excluded tags.

The random draw happens in SQLite (ORDER BY RANDOM()), so every eligible
row is equally likely regardless of id order.
"""

import logging

from database import SQLITE_INT_MAX, SQLITE_INT_MIN

logger = logging.getLogger(__name__)


def parse_name_list(raw):
    """'a, b,,c' -> ['a', 'b', 'c'].  Accepts a string, an iterable or None."""
    if not raw:
        return []
    parts = raw.split(",") if isinstance(raw, str) else raw
    return [p.strip() for p in parts if p and p.strip()]


def parse_id_list(raw):
    """'1,2,x,3' -> [1, 2, 3].  Non-integer and out-of-range entries are ignored."""
    if not raw:
        return []
    parts = raw.split(",") if isinstance(raw, str) else raw
    ids = []
    for p in parts:
        try:
            value = int(str(p).strip())
        except ValueError:
            continue
        if SQLITE_INT_MIN <= value <= SQLITE_INT_MAX:
            ids.append(value)
    return ids


def _placeholders(values):
    return ",".join("?" for _ in values)


def build_selection_query(included=(), excluded=(), seen=()):
    """Build the parameterised query for one random eligible character.

    Returns (sql, params).
    """
    joins = []
    where = []
    params = []

    # Inclusion joins come first so their params precede the WHERE params.
    if included:
        joins.append(
            "JOIN character_tags ct_incl ON characters.id = ct_incl.character_id"
        )
        joins.append(
            "JOIN tags t_incl ON ct_incl.tag_id = t_incl.id "
            f"AND t_incl.name IN ({_placeholders(included)})"
        )
        params.extend(included)

    if seen:
        where.append(f"characters.id NOT IN ({_placeholders(seen)})")
        params.extend(seen)

    if excluded:
        where.append(
            "NOT EXISTS (SELECT 1 FROM character_tags ct_excl "
            "JOIN tags t_excl ON ct_excl.tag_id = t_excl.id "
            "WHERE ct_excl.character_id = characters.id "
            f"AND t_excl.name IN ({_placeholders(excluded)}))"
        )
        params.extend(excluded)

    sql = "SELECT characters.* FROM characters"
    if joins:
        sql += " " + " ".join(joins)
    if where:
        sql += " WHERE " + " AND ".join(where)
    # A character matching several included tags must not be drawn more often
    sql += " GROUP BY characters.id ORDER BY RANDOM() LIMIT 1"
    return sql, params


def select_random(db, included=(), excluded=(), seen=()):
    """Pick one random eligible character with its tags, or None if none match."""
    included = parse_name_list(included)
    excluded = parse_name_list(excluded)
    seen = parse_id_list(seen)

    sql, params = build_selection_query(included, excluded, seen)
    row = db.fetch_one(sql, params)
    if row is None:
        logger.debug(
            "No character for include=%s exclude=%s (%d seen)",
            included, excluded, len(seen),
        )
        return None

    row["tags"] = db.get_character_tags(row["id"])
    return row
