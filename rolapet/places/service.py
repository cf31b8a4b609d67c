"""Riders' map: points of interest (``pointsOfInterest``) and shared routes (``routes``)."""

from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from rolapet.places.models import PointOfInterest, PointType, Route, RouteDifficulty, RouteType, Waypoint
from rolapet.results import ErrorKind, OperationResult
from rolapet.storage import BaseStore
from rolapet.utils import Clock, new_id, utc_now


def is_valid_location(lat: float, lng: float) -> bool:
    return -90 <= lat <= 90 and -180 <= lng <= 180


class PlacesService:
    def __init__(self, store: BaseStore, clock: Optional[Clock] = None) -> None:
        self._store = store
        self._clock = clock or utc_now

    @staticmethod
    def _to_dict(p: PointOfInterest) -> dict:
        d = asdict(p)
        d["type"] = p.type.value
        return d

    def create_point(
        self,
        name: str,
        type: str,
        lat: float,
        lng: float,
        created_by: str,
        description: str = "",
        address: str = "",
        amenities: Optional[list[str]] = None,
    ) -> OperationResult:
        if not name or not type or lat is None or lng is None:
            return OperationResult.fail(ErrorKind.validation, "Campos obligatorios faltantes")
        try:
            point_type = PointType(type)
        except ValueError:
            return OperationResult.fail(ErrorKind.validation, f"Tipo de punto inválido: {type}")
        if not is_valid_location(lat, lng):
            return OperationResult.fail(ErrorKind.validation, "Ubicación inválida")

        point = PointOfInterest(
            id=new_id("poi"),
            name=name,
            type=point_type,
            lat=lat,
            lng=lng,
            created_by=created_by,
            created_at=self._clock().isoformat(),
            description=description,
            address=address,
            amenities=list(amenities or []),
        )
        with self._store.collection("pointsOfInterest") as points:
            points.append(self._to_dict(point))
        return OperationResult.ok("Punto de interés registrado", point)

    def get_point(self, point_id: str) -> Optional[PointOfInterest]:
        for d in self._store.get("pointsOfInterest") or []:
            if d["id"] == point_id:
                return PointOfInterest(**d)
        return None

    def list_points(
        self,
        type: Optional[str] = None,
        min_rating: Optional[float] = None,
        search: Optional[str] = None,
    ) -> list[PointOfInterest]:
        points = [PointOfInterest(**d) for d in self._store.get("pointsOfInterest") or []]
        if type:
            points = [p for p in points if p.type.value == type]
        if min_rating:
            points = [p for p in points if p.rating >= min_rating]
        if search:
            term = search.lower()
            points = [p for p in points if term in p.name.lower() or term in p.description.lower()]
        return points

    # -- routes --------------------------------------------------------------

    @staticmethod
    def _route_to_dict(r: Route) -> dict:
        d = asdict(r)
        d["difficulty"] = r.difficulty.value
        d["type"] = r.type.value
        return d

    def create_route(
        self,
        name: str,
        created_by: str,
        waypoints: list[dict],
        difficulty: str = "easy",
        type: str = "urban",
        description: str = "",
        distance: float = 0.0,
        estimated_duration: int = 0,
        points_of_interest: Optional[list[str]] = None,
        is_public: bool = True,
    ) -> OperationResult:
        """Publish a route through at least two *waypoints* (``lat``/``lng``/``order`` dicts)."""
        if not name or not waypoints or len(waypoints) < 2:
            return OperationResult.fail(ErrorKind.validation, "La ruta debe tener al menos 2 puntos")
        try:
            route_difficulty = RouteDifficulty(difficulty)
            route_type = RouteType(type)
        except ValueError:
            return OperationResult.fail(ErrorKind.validation, "Dificultad o tipo de ruta inválido")
        try:
            points = [
                Waypoint(lat=w["lat"], lng=w["lng"], order=w.get("order", i))
                for i, w in enumerate(waypoints)
            ]
        except (KeyError, TypeError):
            return OperationResult.fail(ErrorKind.validation, "Punto de ruta inválido")
        if not all(is_valid_location(p.lat, p.lng) for p in points):
            return OperationResult.fail(ErrorKind.validation, "Ubicación inválida")

        now = self._clock().isoformat()
        route = Route(
            id=new_id("route"),
            name=name,
            created_by=created_by,
            difficulty=route_difficulty,
            type=route_type,
            waypoints=sorted(points, key=lambda p: p.order),
            created_at=now,
            updated_at=now,
            description=description,
            distance=distance,
            estimated_duration=estimated_duration,
            points_of_interest=list(points_of_interest or []),
            is_public=is_public,
        )
        with self._store.collection("routes") as routes:
            routes.append(self._route_to_dict(route))
        return OperationResult.ok("Ruta creada exitosamente", route)

    def get_route(self, route_id: str) -> Optional[Route]:
        for d in self._store.get("routes") or []:
            if d["id"] == route_id:
                return Route(**d)
        return None

    def list_routes(
        self,
        created_by: Optional[str] = None,
        difficulty: Optional[str] = None,
        type: Optional[str] = None,
        min_rating: Optional[float] = None,
        is_public: Optional[bool] = None,
    ) -> list[Route]:
        """Routes matching every given filter.

        Private routes are only listed for their creator or when
        ``is_public=False`` is asked for explicitly.
        """
        routes = [Route(**d) for d in self._store.get("routes") or []]
        if is_public is not None:
            routes = [r for r in routes if r.is_public == is_public]
        elif created_by is None:
            routes = [r for r in routes if r.is_public]
        if created_by:
            routes = [r for r in routes if r.created_by == created_by]
        if difficulty:
            routes = [r for r in routes if r.difficulty.value == difficulty]
        if type:
            routes = [r for r in routes if r.type.value == type]
        if min_rating:
            routes = [r for r in routes if r.rating >= min_rating]
        return routes
