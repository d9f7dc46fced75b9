DEFAULT_LIMIT = 10
MAX_LIMIT = 200


def normalize_pagination(limit_raw, offset_raw, page_raw=None):
    """Return (limit, offset). ``page`` (1-based) is honoured when no offset is given."""
    try:
        limit = int(limit_raw) if limit_raw is not None else DEFAULT_LIMIT
        offset = int(offset_raw) if offset_raw is not None else None
        page = int(page_raw) if page_raw is not None else None
    except ValueError:
        raise ValueError('limit/offset/page must be int')
    limit = max(1, min(limit, MAX_LIMIT))
    if offset is None:
        offset = (max(1, page) - 1) * limit if page is not None else 0
    return limit, max(0, offset)
