"""Per-user shopping cart and wishlist.

Cart lines are kept in the ``cart`` collection, wishlist entries in
``wishlist``. Checking out turns every line into a purchase, which is what
later opens the rating window for that product.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Optional

from rolapet.cart.models import CartItem, CartTotal, WishlistEntry
from rolapet.catalog.service import CatalogService
from rolapet.ratings.aggregator import RatingAggregator
from rolapet.results import ErrorKind, OperationResult
from rolapet.storage import BaseStore
from rolapet.utils import Clock, new_id, utc_now

log = logging.getLogger(__name__)


class CartService:
    def __init__(
        self,
        store: BaseStore,
        catalog: CatalogService,
        ratings: RatingAggregator,
        clock: Optional[Clock] = None,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._ratings = ratings
        self._clock = clock or utc_now

    # -- cart ----------------------------------------------------------------

    def add_to_cart(self, user_id: str, product_id: str, quantity: int = 1) -> OperationResult:
        """Add *quantity* units, merging with an existing line for the same product."""
        if quantity <= 0:
            return OperationResult.fail(ErrorKind.validation, "La cantidad debe ser mayor a 0")

        product = self._catalog.get_product(product_id)
        if product is None:
            return OperationResult.fail(ErrorKind.not_found, "Producto no encontrado")
        if not product.is_available:
            return OperationResult.fail(ErrorKind.validation, "El producto no está disponible")

        with self._store.collection("cart") as cart:
            line = next(
                (c for c in cart if c["user_id"] == user_id and c["product_id"] == product_id),
                None,
            )
            new_quantity = quantity + (line["quantity"] if line else 0)
            if product.stock is not None and new_quantity > product.stock:
                return OperationResult.fail(ErrorKind.validation, "Stock insuficiente")

            if line is not None:
                line["quantity"] = new_quantity
                return OperationResult.ok("Cantidad actualizada en el carrito", CartItem(**line))

            item = CartItem(
                id=new_id("cart"),
                user_id=user_id,
                product_id=product.id,
                provider_id=product.provider_id,
                unit_price=product.price,
                quantity=quantity,
                added_at=self._clock().isoformat(),
            )
            cart.append(asdict(item))

        return OperationResult.ok("Producto agregado al carrito", item)

    def update_quantity(self, item_id: str, user_id: str, quantity: int) -> OperationResult:
        if quantity <= 0:
            return self.remove_from_cart(item_id, user_id)

        with self._store.collection("cart") as cart:
            line = next((c for c in cart if c["id"] == item_id and c["user_id"] == user_id), None)
            if line is None:
                return OperationResult.fail(ErrorKind.not_found, "Producto no encontrado en el carrito")
            product = self._catalog.get_product(line["product_id"])
            if product is not None and product.stock is not None and quantity > product.stock:
                return OperationResult.fail(ErrorKind.validation, "Stock insuficiente")
            line["quantity"] = quantity

        return OperationResult.ok("Cantidad actualizada")

    def remove_from_cart(self, item_id: str, user_id: str) -> OperationResult:
        with self._store.collection("cart") as cart:
            remaining = [c for c in cart if not (c["id"] == item_id and c["user_id"] == user_id)]
            if len(remaining) == len(cart):
                return OperationResult.fail(ErrorKind.not_found, "Producto no encontrado en el carrito")
            cart[:] = remaining
        return OperationResult.ok("Producto eliminado del carrito")

    def get_cart(self, user_id: str) -> list[CartItem]:
        return [CartItem(**c) for c in self._store.get("cart") or [] if c["user_id"] == user_id]

    def clear_cart(self, user_id: str) -> OperationResult:
        with self._store.collection("cart") as cart:
            cart[:] = [c for c in cart if c["user_id"] != user_id]
        return OperationResult.ok("Carrito limpiado")

    def get_cart_total(self, user_id: str) -> CartTotal:
        items = self.get_cart(user_id)
        return CartTotal(
            subtotal=sum(i.unit_price * i.quantity for i in items),
            item_count=sum(i.quantity for i in items),
        )

    def checkout(self, user_id: str) -> OperationResult:
        """Register a purchase for every cart line and empty the cart."""
        items = self.get_cart(user_id)
        if not items:
            return OperationResult.fail(ErrorKind.validation, "El carrito está vacío")

        purchases = []
        for item in items:
            result = self._ratings.register_purchase(user_id, item.product_id, item.provider_id)
            purchases.append(result.data)
        self.clear_cart(user_id)

        log.info("User %s checked out %d items", user_id, len(purchases))
        return OperationResult.ok("Compra realizada exitosamente", purchases)

    # -- wishlist ------------------------------------------------------------

    def add_to_wishlist(self, user_id: str, product_id: str) -> OperationResult:
        with self._store.collection("wishlist") as wishlist:
            if any(w["user_id"] == user_id and w["product_id"] == product_id for w in wishlist):
                return OperationResult.fail(
                    ErrorKind.duplicate,
                    "El producto ya está en tu lista de deseos",
                )
            entry = WishlistEntry(
                id=new_id("wish"),
                user_id=user_id,
                product_id=product_id,
                added_at=self._clock().isoformat(),
            )
            wishlist.append(asdict(entry))
        return OperationResult.ok("Producto agregado a lista de deseos", entry)

    def remove_from_wishlist(self, user_id: str, product_id: str) -> OperationResult:
        with self._store.collection("wishlist") as wishlist:
            remaining = [
                w for w in wishlist if not (w["user_id"] == user_id and w["product_id"] == product_id)
            ]
            if len(remaining) == len(wishlist):
                return OperationResult.fail(ErrorKind.not_found, "Producto no encontrado en lista de deseos")
            wishlist[:] = remaining
        return OperationResult.ok("Producto eliminado de lista de deseos")

    def get_wishlist(self, user_id: str) -> list[str]:
        """Product ids on *user_id*'s wishlist."""
        return [w["product_id"] for w in self._store.get("wishlist") or [] if w["user_id"] == user_id]

    def is_in_wishlist(self, user_id: str, product_id: str) -> bool:
        return product_id in self.get_wishlist(user_id)
