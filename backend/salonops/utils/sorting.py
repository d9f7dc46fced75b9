from __future__ import annotations
from salonops.errors import ValidationError


def apply_multi_sort(query, sort_expr: str | None, allowed: dict, default_clauses):
    """Order a query by ``sort_expr`` (comma-separated keys, '-' prefix = descending).

    Falls back to ``default_clauses`` when no expression is given; unknown keys are a 400.
    """
    if not sort_expr:
        return query.order_by(*default_clauses)
    clauses = []
    for raw in sort_expr.split(','):
        token = raw.strip()
        if not token:
            continue
        desc = token.startswith('-')
        key = token.lstrip('-')
        col = allowed.get(key)
        if col is None:
            raise ValidationError(f'Invalid sort field {key}')
        clauses.append(col.desc() if desc else col.asc())
    return query.order_by(*clauses, *default_clauses)
