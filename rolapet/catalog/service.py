"""Provider and product catalog backed by the ``providers`` and ``products`` collections.

The ``rating``/``review_count`` fields of both records are owned by
:class:`~rolapet.ratings.aggregator.RatingAggregator`; nothing here writes them
after creation.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, fields
from typing import Any, Optional

from rolapet.catalog.models import Product, ProductType, Provider, ProviderType
from rolapet.results import ErrorKind, OperationResult
from rolapet.storage import BaseStore
from rolapet.utils import Clock, new_id, utc_now

log = logging.getLogger(__name__)

_PRODUCT_FIELDS = {f.name for f in fields(Product)}
_PRODUCT_LOCKED = {"id", "provider_id", "rating", "review_count", "created_at", "updated_at"}


class CatalogService:
    """Providers, their enablement, and the products they publish."""

    def __init__(self, store: BaseStore, clock: Optional[Clock] = None) -> None:
        self._store = store
        self._clock = clock or utc_now

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _provider_from_dict(d: dict) -> Provider:
        return Provider(
            id=d["id"],
            name=d["name"],
            email=d["email"],
            type=ProviderType(d.get("type", "both")),
            phone=d.get("phone", ""),
            address=d.get("address", ""),
            description=d.get("description", ""),
            categories=list(d.get("categories", [])),
            is_enabled=d.get("is_enabled", False),
            registration_date=d.get("registration_date", ""),
            user_id=d.get("user_id"),
            rating=d.get("rating", 0.0),
            review_count=d.get("review_count", 0),
        )

    @staticmethod
    def _provider_to_dict(p: Provider) -> dict:
        d = asdict(p)
        d["type"] = p.type.value
        return d

    @staticmethod
    def _product_from_dict(d: dict) -> Product:
        return Product(**{k: v for k, v in d.items() if k in _PRODUCT_FIELDS})

    @staticmethod
    def _product_to_dict(p: Product) -> dict:
        d = asdict(p)
        d["type"] = p.type.value
        return d

    def _set_provider_flag(self, provider_id: str, **changes: Any) -> Optional[Provider]:
        with self._store.collection("providers") as providers:
            for d in providers:
                if d["id"] == provider_id:
                    d.update(changes)
                    return self._provider_from_dict(d)
        return None

    # ------------------------------------------------------------------
    # Providers
    # ------------------------------------------------------------------

    def register_provider(
        self,
        name: str,
        email: str,
        type: str,
        phone: str = "",
        address: str = "",
        description: str = "",
        categories: Optional[list[str]] = None,
        user_id: Optional[str] = None,
    ) -> OperationResult:
        if not name or not email or not type:
            return OperationResult.fail(ErrorKind.validation, "Campos obligatorios faltantes")
        try:
            provider_type = ProviderType(type)
        except ValueError:
            return OperationResult.fail(ErrorKind.validation, f"Tipo de proveedor inválido: {type}")

        with self._store.collection("providers") as providers:
            if any(p.get("email") == email for p in providers):
                return OperationResult.fail(ErrorKind.duplicate, "El email ya está registrado")
            provider = Provider(
                id=new_id("prov"),
                name=name,
                email=email,
                type=provider_type,
                phone=phone,
                address=address,
                description=description,
                categories=list(categories or []),
                registration_date=self._clock().isoformat(),
                user_id=user_id,
            )
            providers.append(self._provider_to_dict(provider))

        log.info("Registered provider %s (%s)", provider.id, name)
        return OperationResult.ok("Proveedor registrado exitosamente", provider)

    def enable_provider(self, provider_id: str) -> OperationResult:
        if self._set_provider_flag(provider_id, is_enabled=True) is None:
            return OperationResult.fail(ErrorKind.not_found, "Proveedor no encontrado")
        return OperationResult.ok("Proveedor habilitado exitosamente")

    def disable_provider(self, provider_id: str) -> OperationResult:
        if self._set_provider_flag(provider_id, is_enabled=False) is None:
            return OperationResult.fail(ErrorKind.not_found, "Proveedor no encontrado")
        return OperationResult.ok("Proveedor deshabilitado exitosamente")

    def update_provider_type(self, provider_id: str, type: str) -> OperationResult:
        try:
            provider_type = ProviderType(type)
        except ValueError:
            return OperationResult.fail(ErrorKind.validation, f"Tipo de proveedor inválido: {type}")
        if self._set_provider_flag(provider_id, type=provider_type.value) is None:
            return OperationResult.fail(ErrorKind.not_found, "Proveedor no encontrado")
        return OperationResult.ok("Tipo de proveedor actualizado exitosamente")

    def get_provider(self, provider_id: str) -> Optional[Provider]:
        for d in self._store.get("providers") or []:
            if d["id"] == provider_id:
                return self._provider_from_dict(d)
        return None

    def list_providers(self, only_enabled: bool = False) -> list[Provider]:
        providers = [self._provider_from_dict(d) for d in self._store.get("providers") or []]
        if only_enabled:
            providers = [p for p in providers if p.is_enabled]
        return providers

    def filter_providers(
        self,
        type: Optional[str] = None,
        category: Optional[str] = None,
        min_rating: Optional[float] = None,
    ) -> list[Provider]:
        """Enabled providers matching every given filter."""
        providers = self.list_providers(only_enabled=True)
        if type:
            providers = [p for p in providers if p.type.value == type or p.type == ProviderType.both]
        if category:
            providers = [p for p in providers if category in p.categories]
        if min_rating:
            providers = [p for p in providers if p.rating >= min_rating]
        return providers

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def publish_product(
        self,
        provider_id: str,
        name: str,
        type: str,
        price: float,
        category: str = "",
        description: str = "",
        currency: str = "COP",
        stock: Optional[int] = None,
        features: Optional[list[str]] = None,
    ) -> OperationResult:
        provider = self.get_provider(provider_id)
        if provider is None:
            return OperationResult.fail(ErrorKind.not_found, "Proveedor no encontrado")
        if not provider.is_enabled:
            return OperationResult.fail(ErrorKind.permission, "El proveedor no está habilitado")
        if not name or not type or not price or price < 0:
            return OperationResult.fail(ErrorKind.validation, "Campos obligatorios faltantes")
        try:
            product_type = ProductType(type)
        except ValueError:
            return OperationResult.fail(ErrorKind.validation, f"Tipo de producto inválido: {type}")

        now = self._clock().isoformat()
        product = Product(
            id=new_id("prod"),
            provider_id=provider_id,
            name=name,
            type=product_type,
            price=price,
            category=category,
            description=description,
            currency=currency,
            stock=stock,
            created_at=now,
            updated_at=now,
            features=list(features or []),
        )
        with self._store.collection("products") as products:
            products.append(self._product_to_dict(product))

        log.info("Provider %s published product %s", provider_id, product.id)
        return OperationResult.ok("Producto publicado exitosamente", product)

    def update_product(self, product_id: str, provider_id: str, /, **updates: Any) -> OperationResult:
        """Edit a product owned by *provider_id*. Ownership and aggregates are never changed."""
        if "type" in updates:
            try:
                updates["type"] = ProductType(updates["type"]).value
            except ValueError:
                return OperationResult.fail(ErrorKind.validation, f"Tipo de producto inválido: {updates['type']}")

        with self._store.collection("products") as products:
            record = next((d for d in products if d["id"] == product_id), None)
            if record is None:
                return OperationResult.fail(ErrorKind.not_found, "Producto no encontrado")
            if record["provider_id"] != provider_id:
                return OperationResult.fail(
                    ErrorKind.permission,
                    "No tienes permiso para editar este producto",
                )
            for key, value in updates.items():
                if key in _PRODUCT_FIELDS and key not in _PRODUCT_LOCKED:
                    record[key] = value
            record["updated_at"] = self._clock().isoformat()
            product = self._product_from_dict(record)

        return OperationResult.ok("Producto actualizado exitosamente", product)

    def get_product(self, product_id: str) -> Optional[Product]:
        for d in self._store.get("products") or []:
            if d["id"] == product_id:
                return self._product_from_dict(d)
        return None

    def get_products(
        self,
        type: Optional[str] = None,
        category: Optional[str] = None,
        provider_id: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        min_rating: Optional[float] = None,
        search: Optional[str] = None,
        only_available: bool = False,
    ) -> list[Product]:
        products = [self._product_from_dict(d) for d in self._store.get("products") or []]
        if type:
            products = [p for p in products if p.type.value == type]
        if category:
            products = [p for p in products if p.category == category]
        if provider_id:
            products = [p for p in products if p.provider_id == provider_id]
        if min_price is not None:
            products = [p for p in products if p.price >= min_price]
        if max_price is not None:
            products = [p for p in products if p.price <= max_price]
        if min_rating:
            products = [p for p in products if p.rating >= min_rating]
        if search:
            term = search.lower()
            products = [p for p in products if term in p.name.lower() or term in p.description.lower()]
        if only_available:
            products = [p for p in products if p.is_available]
        return products
