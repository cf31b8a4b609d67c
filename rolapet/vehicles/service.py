"""Vehicle registration and linking to user accounts."""

from __future__ import annotations

import logging
from dataclasses import asdict, fields
from typing import Any, Optional

from rolapet.results import ErrorKind, OperationResult
from rolapet.storage import BaseStore
from rolapet.utils import Clock, new_id, utc_now
from rolapet.vehicles.models import Vehicle, VehicleType

log = logging.getLogger(__name__)

_VEHICLE_FIELDS = {f.name for f in fields(Vehicle)}
_LOCKED = {"id", "user_id", "registration_date", "is_active"}
MIN_YEAR = 1900


class VehicleService:
    def __init__(self, store: BaseStore, clock: Optional[Clock] = None) -> None:
        self._store = store
        self._clock = clock or utc_now

    @staticmethod
    def _from_dict(d: dict) -> Vehicle:
        return Vehicle(**{k: v for k, v in d.items() if k in _VEHICLE_FIELDS})

    @staticmethod
    def _to_dict(v: Vehicle) -> dict:
        d = asdict(v)
        d["type"] = v.type.value
        return d

    def _validate_year(self, year: Any) -> bool:
        return isinstance(year, int) and MIN_YEAR <= year <= self._clock().year + 1

    def register_vehicle(
        self,
        user_id: str,
        type: str,
        brand: str,
        model: str,
        year: int,
        **extra: Any,
    ) -> OperationResult:
        """Register a vehicle owned by *user_id*. *extra* carries optional details (color, plate...)."""
        if not user_id:
            return OperationResult.fail(ErrorKind.validation, "Usuario no identificado")
        if not type or not brand or not model or not year:
            return OperationResult.fail(
                ErrorKind.validation,
                "Todos los campos obligatorios deben ser completados",
            )
        try:
            vehicle_type = VehicleType(type)
        except ValueError:
            return OperationResult.fail(ErrorKind.validation, f"Tipo de vehículo inválido: {type}")
        if not self._validate_year(year):
            return OperationResult.fail(ErrorKind.validation, "Año inválido")

        details = {k: v for k, v in extra.items() if k in _VEHICLE_FIELDS and k not in _LOCKED}
        vehicle = Vehicle(
            id=new_id("veh"),
            user_id=user_id,
            type=vehicle_type,
            brand=brand,
            model=model,
            year=year,
            registration_date=self._clock().isoformat(),
            **details,
        )
        with self._store.collection("vehicles") as vehicles:
            vehicles.append(self._to_dict(vehicle))

        log.info("User %s registered vehicle %s", user_id, vehicle.id)
        return OperationResult.ok("Vehículo registrado exitosamente", vehicle)

    def link_vehicle(self, user_id: str, vehicle_id: str) -> OperationResult:
        """Add *vehicle_id* to the owner's account."""
        vehicle = self.get_vehicle(vehicle_id)
        if vehicle is None:
            return OperationResult.fail(ErrorKind.not_found, "Vehículo no encontrado")
        if vehicle.user_id != user_id:
            return OperationResult.fail(
                ErrorKind.permission,
                "No tienes permiso para vincular este vehículo",
            )

        with self._store.collection("users") as users:
            user = next((u for u in users if u["id"] == user_id), None)
            if user is None:
                return OperationResult.fail(ErrorKind.not_found, "Usuario no encontrado")
            linked = user.setdefault("vehicles", [])
            if vehicle_id not in linked:
                linked.append(vehicle_id)

        return OperationResult.ok("Vehículo vinculado exitosamente")

    def get_vehicle(self, vehicle_id: str) -> Optional[Vehicle]:
        for d in self._store.get("vehicles") or []:
            if d["id"] == vehicle_id:
                return self._from_dict(d)
        return None

    def get_user_vehicles(self, user_id: str) -> list[Vehicle]:
        return [
            self._from_dict(d)
            for d in self._store.get("vehicles") or []
            if d["user_id"] == user_id and d.get("is_active", True)
        ]

    def update_vehicle(self, vehicle_id: str, user_id: str, /, **updates: Any) -> OperationResult:
        if "type" in updates:
            try:
                updates["type"] = VehicleType(updates["type"]).value
            except ValueError:
                return OperationResult.fail(ErrorKind.validation, f"Tipo de vehículo inválido: {updates['type']}")
        if "year" in updates and not self._validate_year(updates["year"]):
            return OperationResult.fail(ErrorKind.validation, "Año inválido")

        with self._store.collection("vehicles") as vehicles:
            record = next((d for d in vehicles if d["id"] == vehicle_id), None)
            if record is None:
                return OperationResult.fail(ErrorKind.not_found, "Vehículo no encontrado")
            if record["user_id"] != user_id:
                return OperationResult.fail(
                    ErrorKind.permission,
                    "No tienes permiso para actualizar este vehículo",
                )
            for key, value in updates.items():
                if key in _VEHICLE_FIELDS and key not in _LOCKED:
                    record[key] = value
            vehicle = self._from_dict(record)

        return OperationResult.ok("Vehículo actualizado exitosamente", vehicle)

    def delete_vehicle(self, vehicle_id: str, user_id: str) -> OperationResult:
        """Soft-delete the vehicle and unlink it from its owner."""
        with self._store.collection("vehicles") as vehicles:
            record = next((d for d in vehicles if d["id"] == vehicle_id), None)
            if record is None:
                return OperationResult.fail(ErrorKind.not_found, "Vehículo no encontrado")
            if record["user_id"] != user_id:
                return OperationResult.fail(
                    ErrorKind.permission,
                    "No tienes permiso para eliminar este vehículo",
                )
            record["is_active"] = False

        with self._store.collection("users") as users:
            for user in users:
                if user["id"] == user_id:
                    user["vehicles"] = [v for v in user.get("vehicles", []) if v != vehicle_id]

        return OperationResult.ok("Vehículo eliminado exitosamente")
