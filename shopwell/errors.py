"""Exception types raised by the shopwell package."""

from __future__ import annotations


class ShopWellError(Exception):
    """Base class for shopwell errors."""


class DuplicateIdError(ShopWellError):
    """An entity with the same id already exists in its catalog."""

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"{kind} with id {entity_id!r} already exists")
        self.kind = kind
        self.entity_id = entity_id


class BackupFormatError(ShopWellError):
    """A backup file could not be recognised as a ShopWell CSV backup."""


class InvalidPriceError(ShopWellError):
    """A price record carries a negative price."""

    def __init__(self, record_id: str, price: float) -> None:
        super().__init__(
            f"Price for record {record_id!r} must not be negative, got {price}"
        )
        self.record_id = record_id
        self.price = price
