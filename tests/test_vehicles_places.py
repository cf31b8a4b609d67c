"""Tests for vehicles and points of interest."""

from datetime import datetime, timezone

import pytest

from rolapet.context import AppContext
from rolapet.places.service import is_valid_location
from rolapet.results import ErrorKind
from rolapet.storage import MemoryStore

NOW = datetime(2026, 6, 1, tzinfo=timezone.utc)


def _context() -> AppContext:
    return AppContext.create(store=MemoryStore(), clock=lambda: NOW)


def _user(ctx: AppContext, username: str = "rider") -> str:
    return ctx.users.register(f"{username}@example.com", username, "Rider", True).data.id


def test_register_vehicle_with_details():
    ctx = _context()
    user_id = _user(ctx)
    result = ctx.vehicles.register_vehicle(
        user_id, "bicycle", "Specialized", "Turbo Vado", 2024, color="negro", max_speed=45
    )
    assert result.success
    vehicle = result.data
    assert vehicle.color == "negro"
    assert vehicle.max_speed == 45
    assert vehicle.registration_date == NOW.isoformat()


@pytest.mark.parametrize("year", [1899, 2028, "2020", 0])
def test_register_vehicle_rejects_bad_year(year):
    ctx = _context()
    result = ctx.vehicles.register_vehicle("u1", "scooter", "Xiaomi", "Pro 2", year)
    assert result.error == ErrorKind.validation


def test_next_model_year_is_accepted():
    ctx = _context()
    assert ctx.vehicles.register_vehicle("u1", "scooter", "Xiaomi", "Pro 5", 2027).success


def test_register_vehicle_rejects_bad_type():
    ctx = _context()
    assert ctx.vehicles.register_vehicle("u1", "tank", "X", "Y", 2020).error == ErrorKind.validation
    assert ctx.vehicles.register_vehicle("", "scooter", "X", "Y", 2020).error == ErrorKind.validation


def test_link_requires_ownership():
    ctx = _context()
    owner = _user(ctx, "owner")
    other = _user(ctx, "other")
    vehicle = ctx.vehicles.register_vehicle(owner, "scooter", "Xiaomi", "Pro 2", 2023).data

    assert ctx.vehicles.link_vehicle(other, vehicle.id).error == ErrorKind.permission
    assert ctx.vehicles.link_vehicle(owner, "missing").error == ErrorKind.not_found

    assert ctx.vehicles.link_vehicle(owner, vehicle.id).success
    assert ctx.vehicles.link_vehicle(owner, vehicle.id).success
    assert ctx.users.get_user(owner).vehicles == [vehicle.id]


def test_update_vehicle():
    ctx = _context()
    owner = _user(ctx)
    vehicle = ctx.vehicles.register_vehicle(owner, "scooter", "Xiaomi", "Pro 2", 2023).data

    result = ctx.vehicles.update_vehicle(vehicle.id, owner, color="rojo", user_id="someone")
    assert result.success
    assert result.data.color == "rojo"
    assert result.data.user_id == owner

    assert ctx.vehicles.update_vehicle(vehicle.id, "someone", color="azul").error == ErrorKind.permission
    assert ctx.vehicles.update_vehicle(vehicle.id, owner, year=1500).error == ErrorKind.validation
    assert ctx.vehicles.update_vehicle(vehicle.id, owner, type="tank").error == ErrorKind.validation


def test_delete_vehicle_unlinks_it():
    ctx = _context()
    owner = _user(ctx)
    vehicle = ctx.vehicles.register_vehicle(owner, "motorcycle", "Super Soco", "TC", 2022).data
    ctx.vehicles.link_vehicle(owner, vehicle.id)

    assert ctx.vehicles.delete_vehicle(vehicle.id, "someone").error == ErrorKind.permission
    assert ctx.vehicles.delete_vehicle(vehicle.id, owner).success

    assert ctx.vehicles.get_user_vehicles(owner) == []
    assert not ctx.vehicles.get_vehicle(vehicle.id).is_active
    assert ctx.users.get_user(owner).vehicles == []


def test_location_bounds():
    assert is_valid_location(4.65, -74.05)
    assert is_valid_location(-90, 180)
    assert not is_valid_location(91, 0)
    assert not is_valid_location(0, -181)


def test_create_point_validation():
    ctx = _context()
    assert ctx.places.create_point("", "parking", 4.6, -74.0, "u1").error == ErrorKind.validation
    assert ctx.places.create_point("X", "volcano", 4.6, -74.0, "u1").error == ErrorKind.validation
    assert ctx.places.create_point("X", "parking", 120, -74.0, "u1").error == ErrorKind.validation


def test_list_points_filters():
    ctx = _context()
    charger = ctx.places.create_point(
        "Cargador Parque 93", "charging_station", 4.676, -74.048, "u1", description="Dos tomas"
    ).data
    ctx.places.create_point("Taller Chapinero", "repair_shop", 4.64, -74.06, "u1")

    assert len(ctx.places.list_points()) == 2
    assert [p.id for p in ctx.places.list_points(type="charging_station")] == [charger.id]
    assert [p.id for p in ctx.places.list_points(search="tomas")] == [charger.id]
    assert ctx.places.list_points(min_rating=3) == []
    assert ctx.places.get_point("missing") is None


_SEPTIMA = [
    {"lat": 4.676, "lng": -74.048, "order": 2},
    {"lat": 4.598, "lng": -74.076, "order": 0},
    {"lat": 4.636, "lng": -74.065, "order": 1},
]


def test_create_route_orders_waypoints():
    ctx = _context()
    result = ctx.places.create_route(
        "Séptima completa", "u1", _SEPTIMA, difficulty="medium", distance=9.5, estimated_duration=40
    )
    assert result.success
    route = ctx.places.get_route(result.data.id)
    assert [w.order for w in route.waypoints] == [0, 1, 2]
    assert route.waypoints[0].lat == 4.598
    assert route.distance == 9.5
    assert route.rating == 0
    assert route.created_at == NOW.isoformat()


def test_create_route_validation():
    ctx = _context()
    assert ctx.places.create_route("Corta", "u1", _SEPTIMA[:1]).error == ErrorKind.validation
    assert ctx.places.create_route("", "u1", _SEPTIMA).error == ErrorKind.validation
    assert ctx.places.create_route("X", "u1", _SEPTIMA, difficulty="extreme").error == ErrorKind.validation
    assert ctx.places.create_route("X", "u1", _SEPTIMA, type="offroad").error == ErrorKind.validation
    bad_point = [{"lat": 95, "lng": 0}, {"lat": 4.6, "lng": -74.0}]
    assert ctx.places.create_route("X", "u1", bad_point).error == ErrorKind.validation
    assert ctx.places.create_route("X", "u1", [{"lat": 4.6}, {"lng": -74.0}]).error == ErrorKind.validation
    assert ctx.places.get_route("missing") is None


def test_list_routes_filters_and_privacy():
    ctx = _context()
    public = ctx.places.create_route("Ciclovía dominical", "u1", _SEPTIMA, type="urban").data
    private = ctx.places.create_route("Mi ruta al trabajo", "u1", _SEPTIMA, is_public=False).data
    other = ctx.places.create_route("La Calera", "u2", _SEPTIMA, difficulty="hard", type="suburban").data

    assert [r.id for r in ctx.places.list_routes()] == [public.id, other.id]
    assert [r.id for r in ctx.places.list_routes(created_by="u1")] == [public.id, private.id]
    assert [r.id for r in ctx.places.list_routes(is_public=False)] == [private.id]
    assert [r.id for r in ctx.places.list_routes(difficulty="hard")] == [other.id]
    assert [r.id for r in ctx.places.list_routes(type="suburban")] == [other.id]
    assert ctx.places.list_routes(min_rating=1) == []


def test_route_ratings_are_summarised_on_demand():
    ctx = _context()
    route = ctx.places.create_route("Ciclovía dominical", "u1", _SEPTIMA).data
    assert ctx.ratings.create_rating("u2", route.id, "route", 4).success
    assert ctx.ratings.get_average_rating(route.id, "route").count == 1
    assert ctx.places.get_route(route.id).review_count == 0
