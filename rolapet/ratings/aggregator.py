"""Rating aggregator.

Accepts at most one rating per ``(user, target, target type)``, enforces the
purchase rating window for products and keeps each product's and provider's
``rating``/``review_count`` in step with the stored ratings by recomputing
them from scratch after every new rating.
"""

from __future__ import annotations

import logging
from typing import Optional

from rolapet.config import RatingSettings
from rolapet.ratings.models import (
    AGGREGATE_COLLECTIONS,
    Purchase,
    Rating,
    RatingSummary,
    TargetType,
)
from rolapet.results import ErrorKind, OperationResult
from rolapet.storage import BaseStore
from rolapet.utils import Clock, days_since, new_id, parse_timestamp, utc_now

log = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class RatingAggregator:
    """Creates ratings, tracks likes and maintains target aggregates."""

    def __init__(
        self,
        store: BaseStore,
        settings: Optional[RatingSettings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._store = store
        self._settings = settings or RatingSettings()
        self._clock = clock or utc_now

    @property
    def window_days(self) -> int:
        return self._settings.window_days

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _rating_from_dict(d: dict) -> Rating:
        return Rating(
            id=d["id"],
            user_id=d["user_id"],
            target_id=d["target_id"],
            target_type=TargetType(d["target_type"]),
            value=d["value"],
            created_at=d.get("created_at", ""),
            comment=d.get("comment"),
            purchase_date=d.get("purchase_date"),
            likes=d.get("likes", 0),
            dislikes=d.get("dislikes", 0),
        )

    @staticmethod
    def _rating_to_dict(r: Rating) -> dict:
        return {
            "id": r.id,
            "user_id": r.user_id,
            "target_id": r.target_id,
            "target_type": r.target_type.value,
            "value": r.value,
            "created_at": r.created_at,
            "comment": r.comment,
            "purchase_date": r.purchase_date,
            "likes": r.likes,
            "dislikes": r.dislikes,
        }

    @staticmethod
    def _purchase_from_dict(d: dict) -> Purchase:
        return Purchase(
            id=d["id"],
            user_id=d["user_id"],
            product_id=d["product_id"],
            provider_id=d.get("provider_id", ""),
            purchase_date=d["purchase_date"],
            has_rated=d.get("has_rated", False),
        )

    @staticmethod
    def _purchase_to_dict(p: Purchase) -> dict:
        return {
            "id": p.id,
            "user_id": p.user_id,
            "product_id": p.product_id,
            "provider_id": p.provider_id,
            "purchase_date": p.purchase_date,
            "has_rated": p.has_rated,
        }

    def _within_window(self, purchase_date: str) -> bool:
        return days_since(purchase_date, self._clock()) <= self.window_days

    def _update_target(self, target_id: str, target_type: TargetType) -> None:
        collection = AGGREGATE_COLLECTIONS.get(target_type)
        if collection is None:
            return
        summary = self.get_average_rating(target_id, target_type)
        with self._store.collection(collection) as records:
            for record in records:
                if record["id"] == target_id:
                    record["rating"] = summary.average
                    record["review_count"] = summary.count
                    break

    def _mark_purchase_rated(self, user_id: str, product_id: str) -> None:
        with self._store.collection("purchases") as purchases:
            for p in purchases:
                if p["user_id"] == user_id and p["product_id"] == product_id and not p.get("has_rated"):
                    p["has_rated"] = True
                    break

    # ------------------------------------------------------------------
    # Ratings
    # ------------------------------------------------------------------

    def create_rating(
        self,
        user_id: str,
        target_id: str,
        target_type: str | TargetType,
        value: int,
        comment: Optional[str] = None,
        purchase_date: Optional[str] = None,
    ) -> OperationResult:
        """Record a rating of *target_id* by *user_id*."""
        try:
            target_type = TargetType(target_type)
        except ValueError:
            return OperationResult.fail(ErrorKind.validation, f"Tipo de objetivo inválido: {target_type}")

        if isinstance(value, bool) or not isinstance(value, int) or not MIN_RATING <= value <= MAX_RATING:
            return OperationResult.fail(
                ErrorKind.validation,
                f"La calificación debe estar entre {MIN_RATING} y {MAX_RATING} estrellas",
            )

        if purchase_date is not None:
            try:
                purchase_date = parse_timestamp(purchase_date).isoformat()
            except (AttributeError, ValueError):
                return OperationResult.fail(ErrorKind.validation, "Fecha de compra inválida")

        # Only product ratings tied to a purchase are time-boxed.
        if target_type == TargetType.product and purchase_date and not self._within_window(purchase_date):
            return OperationResult.fail(
                ErrorKind.window_expired,
                f"Solo puedes calificar productos dentro de los {self.window_days} días "
                "posteriores a la compra",
            )

        with self._store.collection("ratings") as ratings:
            duplicate = any(
                r["user_id"] == user_id
                and r["target_id"] == target_id
                and r["target_type"] == target_type.value
                for r in ratings
            )
            if duplicate:
                return OperationResult.fail(ErrorKind.duplicate, "Ya has calificado este elemento")

            rating = Rating(
                id=new_id("rat"),
                user_id=user_id,
                target_id=target_id,
                target_type=target_type,
                value=value,
                created_at=self._clock().isoformat(),
                comment=comment,
                purchase_date=purchase_date,
            )
            ratings.append(self._rating_to_dict(rating))

        self._update_target(target_id, target_type)
        if target_type == TargetType.product and purchase_date:
            self._mark_purchase_rated(user_id, target_id)

        log.info("Rating %s: %s rated %s %s with %d", rating.id, user_id, target_type.value, target_id, value)
        return OperationResult.ok("Calificación registrada exitosamente", rating)

    def get_rating(self, rating_id: str) -> Optional[Rating]:
        for d in self._store.get("ratings") or []:
            if d["id"] == rating_id:
                return self._rating_from_dict(d)
        return None

    def get_ratings(self, target_id: str, target_type: str | TargetType) -> list[Rating]:
        target_type = TargetType(target_type)
        return [
            self._rating_from_dict(d)
            for d in self._store.get("ratings") or []
            if d["target_id"] == target_id and d["target_type"] == target_type.value
        ]

    def get_average_rating(self, target_id: str, target_type: str | TargetType) -> RatingSummary:
        """Arithmetic mean over every rating of the target; ``(0, 0)`` when unrated."""
        ratings = self.get_ratings(target_id, target_type)
        if not ratings:
            return RatingSummary(average=0.0, count=0)
        return RatingSummary(
            average=sum(r.value for r in ratings) / len(ratings),
            count=len(ratings),
        )

    # ------------------------------------------------------------------
    # Likes
    # ------------------------------------------------------------------

    def like_rating(self, rating_id: str, user_id: str) -> OperationResult:
        with self._store.collection("ratings") as ratings:
            rating = next((r for r in ratings if r["id"] == rating_id), None)
            if rating is None:
                return OperationResult.fail(ErrorKind.not_found, "Calificación no encontrada")

            with self._store.collection("ratingLikes", {}) as likes:
                likers = likes.setdefault(rating_id, [])
                if user_id in likers:
                    return OperationResult.fail(
                        ErrorKind.already_liked,
                        "Ya le diste me gusta a esta calificación",
                    )
                likers.append(user_id)
                rating["likes"] = rating.get("likes", 0) + 1

        return OperationResult.ok("Me gusta registrado")

    def unlike_rating(self, rating_id: str, user_id: str) -> OperationResult:
        with self._store.collection("ratings") as ratings:
            rating = next((r for r in ratings if r["id"] == rating_id), None)
            if rating is None:
                return OperationResult.fail(ErrorKind.not_found, "Calificación no encontrada")

            with self._store.collection("ratingLikes", {}) as likes:
                likers = likes.get(rating_id, [])
                if user_id not in likers:
                    return OperationResult.fail(
                        ErrorKind.not_liked,
                        "No le has dado me gusta a esta calificación",
                    )
                likes[rating_id] = [u for u in likers if u != user_id]
                rating["likes"] = max(0, rating.get("likes", 0) - 1)

        return OperationResult.ok("Me gusta eliminado")

    # ------------------------------------------------------------------
    # Purchases
    # ------------------------------------------------------------------

    def register_purchase(
        self,
        user_id: str,
        product_id: str,
        provider_id: str,
        purchase_date: Optional[str] = None,
    ) -> OperationResult:
        """Record a purchase. *purchase_date* defaults to now and is stored normalised."""
        if purchase_date is None:
            purchase_date = self._clock().isoformat()
        else:
            try:
                purchase_date = parse_timestamp(purchase_date).isoformat()
            except (AttributeError, ValueError):
                return OperationResult.fail(ErrorKind.validation, "Fecha de compra inválida")

        purchase = Purchase(
            id=new_id("pur"),
            user_id=user_id,
            product_id=product_id,
            provider_id=provider_id,
            purchase_date=purchase_date,
        )
        with self._store.collection("purchases") as purchases:
            purchases.append(self._purchase_to_dict(purchase))
        return OperationResult.ok("Compra registrada", purchase)

    def get_user_purchases(self, user_id: str) -> list[Purchase]:
        return [
            self._purchase_from_dict(d)
            for d in self._store.get("purchases") or []
            if d["user_id"] == user_id
        ]

    def should_alert(self, user_id: str) -> list[Purchase]:
        """Unrated purchases of *user_id* that can still be rated."""
        return [
            p
            for p in self.get_user_purchases(user_id)
            if not p.has_rated and self._within_window(p.purchase_date)
        ]
