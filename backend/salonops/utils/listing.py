from __future__ import annotations
from typing import Tuple
from flask import request
from sqlalchemy.orm import Query
from salonops.config.pagination import normalize_pagination
from salonops.errors import ValidationError


def request_pagination(default_limit=None) -> Tuple[int, int]:
    try:
        return normalize_pagination(request.args.get('limit', default_limit), request.args.get('offset'), request.args.get('page'))
    except ValueError as e:
        raise ValidationError(str(e))


def apply_pagination(q: Query) -> Tuple[Query, int, int, int]:
    limit, offset = request_pagination()
    total = q.count()
    return q.offset(offset).limit(limit), total, limit, offset


def build_list_payload(rows: list, total: int, limit: int, offset: int):
    return {
        'data': rows,
        'pagination': {
            'total': total,
            'limit': limit,
            'offset': offset,
            'returned': len(rows),
            'total_pages': (total + limit - 1) // limit if limit else 0,
        }
    }
