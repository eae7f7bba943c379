"""Service price lookup and catalog price changes."""
import logging

from models import db
from models.business import Business
from models.service import Service
from services.errors import ServiceNotFound

logger = logging.getLogger(__name__)


def get_service_for_booking(service_id, business_id):
    service = Service.query.filter_by(id=service_id, business_id=business_id, is_active=True).first()
    if not service:
        raise ServiceNotFound()
    return service


def current_price(service_id):
    service = Service.query.get(service_id)
    if not service:
        raise ServiceNotFound()
    return service.price


def update_service(actor_id, service_id, price=None, name=None, description=None, is_active=None):
    """Edit a service owned by the actor. Existing bookings keep their captured price."""
    try:
        service = (
            Service.query
            .join(Business, Service.business_id == Business.id)
            .filter(Service.id == service_id, Business.owner_user_id == actor_id)
            .with_for_update(of=Service)
            .first()
        )
        if not service:
            raise ServiceNotFound()

        if price is not None and price != service.price:
            logger.info("Service %s price %s -> %s", service.id, service.price, price)
            service.price = price
        if name is not None:
            service.name = name
        if description is not None:
            service.description = description
        if is_active is not None:
            service.is_active = is_active
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return service
