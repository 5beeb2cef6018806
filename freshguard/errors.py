"""Typed failures returned by inventory operations.

Every operation computes its result before touching the store, so raising one
of these always leaves the inventory unchanged.
"""

from __future__ import annotations


class InventoryError(Exception):
    kind = "inventory_error"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(InventoryError):
    kind = "not_found"
    status_code = 404


class InvalidQuantity(InventoryError):
    kind = "invalid_quantity"
    status_code = 400


class InvalidField(InventoryError):
    kind = "invalid_field"
    status_code = 422


class IncompatibleBatches(InventoryError):
    kind = "incompatible_batches"
    status_code = 409


class LocationInUse(InventoryError):
    kind = "location_in_use"
    status_code = 409
