import logging

from models import db
from models.user import Role
from utils.roles import DEFAULT_ROLES

logger = logging.getLogger(__name__)


def seed_roles():
    """Insert any of CUSTOMER/BUSINESS/ADMIN that is missing. Safe to rerun."""
    present = set(db.session.scalars(db.select(Role.name)))
    missing = [name for name in DEFAULT_ROLES if name not in present]
    if not missing:
        return []

    db.session.add_all(Role(name=name) for name in missing)
    db.session.commit()
    logger.info("Seeded roles: %s", ", ".join(missing))
    return missing
