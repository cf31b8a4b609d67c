"""Application context: builds every service once and wires them together.

Services receive their collaborators explicitly; there is no module-level
state. Build one context per process (or per test) with
:meth:`AppContext.create`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from rolapet.cart.service import CartService
from rolapet.catalog.service import CatalogService
from rolapet.config import DEFAULT_CATEGORIES, Settings
from rolapet.content.service import ContentService
from rolapet.moderation.ledger import WarningLedger
from rolapet.moderation.moderator import ContentModerator
from rolapet.places.service import PlacesService
from rolapet.ratings.aggregator import RatingAggregator
from rolapet.storage import BaseStore, JsonFileStore
from rolapet.users.models import User, UserRole, user_to_dict
from rolapet.users.service import UserService
from rolapet.utils import Clock, utc_now
from rolapet.vehicles.service import VehicleService

log = logging.getLogger(__name__)

ADMIN_USER_ID = "1"

_EMPTY_COLLECTIONS = (
    "vehicles",
    "posts",
    "comments",
    "ratings",
    "purchases",
    "providers",
    "products",
    "pointsOfInterest",
    "routes",
    "warnings",
    "cart",
    "wishlist",
)


@dataclass
class AppContext:
    settings: Settings
    store: BaseStore
    users: UserService
    ledger: WarningLedger
    moderator: ContentModerator
    ratings: RatingAggregator
    content: ContentService
    catalog: CatalogService
    cart: CartService
    vehicles: VehicleService
    places: PlacesService
    clock: Clock = utc_now

    @classmethod
    def create(
        cls,
        settings: Optional[Settings] = None,
        store: Optional[BaseStore] = None,
        clock: Optional[Clock] = None,
        seed: bool = True,
    ) -> AppContext:
        settings = settings or Settings()
        store = store or JsonFileStore(settings.data_dir, prefix=settings.key_prefix)
        clock = clock or utc_now

        users = UserService(store, settings.users, clock)
        ledger = WarningLedger(store, settings.moderation, clock)
        moderator = ContentModerator(store, ledger, settings.moderation)
        ratings = RatingAggregator(store, settings.ratings, clock)
        catalog = CatalogService(store, clock)
        ctx = cls(
            settings=settings,
            store=store,
            users=users,
            ledger=ledger,
            moderator=moderator,
            ratings=ratings,
            content=ContentService(store, users, moderator, settings.content, clock),
            catalog=catalog,
            cart=CartService(store, catalog, ratings, clock),
            vehicles=VehicleService(store, clock),
            places=PlacesService(store, clock),
            clock=clock,
        )
        if seed:
            ctx.seed_defaults()
        return ctx

    def seed_defaults(self) -> None:
        """Write the seed collections that do not exist yet."""
        if self.store.get("users") is None:
            admin = User(
                id=ADMIN_USER_ID,
                email="admin@rolapet.com",
                username="admin",
                name="Administrador Rola PET",
                role=UserRole.admin,
                created_at=self.clock().isoformat(),
            )
            self.store.set("users", [user_to_dict(admin)])
            log.debug("Seeded admin user")
        for key in _EMPTY_COLLECTIONS:
            if self.store.get(key) is None:
                self.store.set(key, [])
        if self.store.get("bannedWords") is None:
            self.store.set("bannedWords", list(self.settings.moderation.default_banned_words))
        if self.store.get("categories") is None:
            self.store.set("categories", [dict(c) for c in DEFAULT_CATEGORIES])

    def reset(self) -> None:
        """Drop every collection and re-seed the defaults."""
        self.store.clear()
        self.seed_defaults()
        log.info("Store reset to defaults")
