"""Query helpers for the custom repositories."""

# Upper bound for full scans; the query set otherwise pages results at 100.
SCAN_LIMIT = 10_000


def scan(repository, **filters):
    """Return every record of the repository's aggregate matching `filters`."""
    query = repository._dao.query
    if filters:
        query = query.filter(**filters)
    return query.limit(SCAN_LIMIT).all().items
