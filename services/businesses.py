"""Business discovery for customers."""
from sqlalchemy import func, or_

from models.business import Business


def list_businesses(category=None, city=None, search=None, page=1, limit=10):
    """Approved businesses, best rated first. Returns ``(rows, total)``.

    ``category`` and ``city`` match case-insensitively; ``search`` is a
    case-insensitive substring match on name or description.
    """
    q = Business.query.filter(Business.is_approved.is_(True))
    if category:
        q = q.filter(func.lower(Business.category) == category.strip().lower())
    if city:
        q = q.filter(func.lower(Business.city) == city.strip().lower())
    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter(or_(Business.name.ilike(pattern), Business.description.ilike(pattern)))

    total = q.count()
    rows = (
        q.order_by(Business.rating.desc(), Business.created_at.desc(), Business.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total
