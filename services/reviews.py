"""Review submission and the business rating aggregate."""
import logging
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import COMPLETED, Booking
from models.business import Business
from models.review import Review
from services.errors import BookingNotFound, BusinessNotFound, DuplicateReview, ValidationError

logger = logging.getLogger(__name__)


def validate_rating(rating):
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError("Rating must be between 1 and 5")
    return rating


def recompute_business_rating(business_id):
    """Re-aggregate rating and total_reviews from every review of the business."""
    business = Business.query.filter_by(id=business_id).with_for_update().first()
    if not business:
        raise BusinessNotFound()

    avg_rating, total = (
        db.session.query(func.coalesce(func.avg(Review.rating), 0), func.count(Review.id))
        .filter(Review.business_id == business_id)
        .one()
    )
    business.rating = Decimal(str(avg_rating)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    business.total_reviews = int(total)
    return business


def submit_review(booking_id, customer_id, rating, comment=None):
    validate_rating(rating)
    if isinstance(comment, str):
        comment = comment.strip() or None

    try:
        booking = (
            Booking.query
            .filter_by(id=booking_id, customer_id=customer_id, status=COMPLETED)
            .with_for_update()
            .first()
        )
        if not booking:
            raise BookingNotFound("Completed booking not found")
        if Review.query.filter_by(booking_id=booking.id).first():
            raise DuplicateReview()

        review = Review(
            booking_id=booking.id,
            business_id=booking.business_id,
            customer_id=customer_id,
            rating=rating,
            comment=comment,
        )
        db.session.add(review)
        db.session.flush()

        business = recompute_business_rating(booking.business_id)
        db.session.commit()
    except IntegrityError:
        # uq on reviews.booking_id lost a race with a concurrent submit
        db.session.rollback()
        raise DuplicateReview() from None
    except Exception:
        db.session.rollback()
        raise

    logger.info(
        "Review %s on booking %s; business %s now %s over %d reviews",
        review.id, booking_id, business.id, business.rating, business.total_reviews,
    )
    return review


def list_business_reviews(business_id, page=1, limit=10):
    q = Review.query.filter_by(business_id=business_id)
    total = q.count()
    rows = (
        q.order_by(Review.created_at.desc(), Review.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def list_customer_reviews(customer_id):
    return (
        Review.query
        .filter_by(customer_id=customer_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )
