"""Ratings for delivered orders and the outlet's running average."""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from havens.core.cache import CacheKeys
from havens.core.exceptions import ConflictError, NotFoundError, ValidationFailed
from havens.models.order import OrderStatus
from havens.models.review import Review
from havens.services.store import DataStore

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def updated_average(current: Decimal, count: int, rating: int) -> Decimal:
    """Fold one more rating into an average of ``count`` ratings."""
    total = Decimal(str(current or 0)) * count + rating
    return (total / (count + 1)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class ReviewService:
    def __init__(self, store: DataStore):
        self.store = store

    def submit(self, user, order_id: int, rating: int, comment: Optional[str] = None) -> Review:
        order = self.store.get_order(order_id)
        if order is None or order.user_id != user.id:
            raise NotFoundError("Order", order_id)
        if order.status != OrderStatus.DELIVERED:
            raise ValidationFailed({"order": "Only delivered orders can be rated"})
        if order.is_rated or self.store.get_review_for_order(order.id) is not None:
            raise ConflictError("This order has already been rated")
        if not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationFailed({"rating": f"Rating must be between {MIN_RATING} and {MAX_RATING}"})

        review = Review(
            outlet_id=order.outlet_id,
            order_id=order.id,
            user_id=user.id,
            rating=rating,
            comment=(comment or "").strip() or None,
            customer_name=order.customer_name,
        )
        self.store.save_review(review)
        order.is_rated = True

        outlet = self.store.get_outlet(order.outlet_id, include_deleted=True)
        if outlet is not None:
            outlet.rating = updated_average(outlet.rating, outlet.total_ratings, rating)
            outlet.total_ratings += 1

        self.store.commit(CacheKeys.REVIEWS, CacheKeys.ORDERS, CacheKeys.OUTLETS)
        logger.info(f"Order {order.id} rated {rating} by user {user.id}")
        return review
