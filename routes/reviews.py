from flask import Blueprint, request, jsonify, g, current_app

from services.reviews import list_business_reviews, list_customer_reviews, submit_review
from utils.audit import log_event
from utils.auth_context import login_required
from utils.parsing import positive_int
from utils.serializers import review_json

review_bp = Blueprint("review", __name__, url_prefix="/reviews")


@review_bp.post("")
@login_required
def create_review():
    data = request.get_json(silent=True) or {}
    booking_id = positive_int(data.get("booking_id"), "booking ID")
    comment = data.get("comment")
    if comment is not None and not isinstance(comment, str):
        return jsonify(error="comment must be text"), 400

    review = submit_review(booking_id, g.user.id, data.get("rating"), comment)

    log_event("REVIEW_CREATE", user_id=g.user.id, entity="review", entity_id=review.id,
              metadata={"booking_id": booking_id, "rating": review.rating})
    return jsonify(message="Review submitted successfully", review=review_json(review)), 201


@review_bp.get("/business/<int:business_id>")
def business_reviews(business_id: int):
    page = max(request.args.get("page", default=1, type=int) or 1, 1)
    max_limit = current_app.config.get("REVIEWS_PAGE_SIZE_MAX", 50)
    limit = max(1, min(request.args.get("limit", default=10, type=int) or 10, max_limit))

    rows, total = list_business_reviews(business_id, page=page, limit=limit)
    return jsonify(
        reviews=[review_json(r) for r in rows],
        pagination={"page": page, "limit": limit, "total": total},
    ), 200


@review_bp.get("/me")
@login_required
def my_reviews():
    return jsonify(reviews=[review_json(r) for r in list_customer_reviews(g.user.id)]), 200
