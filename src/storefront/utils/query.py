"""Repository scan helper.

Protean querysets are paginated; ``scan`` walks every page so callers that
need the complete result (rating recomputation, order-number uniqueness)
never silently stop at the default page size.
"""

PAGE_SIZE = 500


def scan(aggregate_cls, **filters) -> list:
    from protean.utils.globals import current_domain

    dao = current_domain.repository_for(aggregate_cls)._dao
    results = []
    offset = 0
    while True:
        page = dao.query.filter(**filters).offset(offset).limit(PAGE_SIZE).all().items
        results.extend(page)
        if len(page) < PAGE_SIZE:
            return results
        offset += PAGE_SIZE
