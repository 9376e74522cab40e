"""Single-assignment slots for lazily derived, freeze-once values."""

from __future__ import annotations

from typing import Generic, TypeVar

T = TypeVar("T")


class SlotAlreadySetError(RuntimeError):
    """Raised when a frozen slot is assigned a second time."""


class FrozenSlot(Generic[T]):
    """A value holder with exactly one legal transition: unset -> set(value).

    The held object itself may still be mutable (a header table can gain
    headers after it was frozen); only the slot cannot be re-assigned.
    """

    __slots__ = ("_name", "_value", "_is_set")

    def __init__(self, name: str) -> None:
        self._name = name
        self._value: T | None = None
        self._is_set = False

    @property
    def is_set(self) -> bool:
        """Return True once a value has been stored."""
        return self._is_set

    def get(self) -> T:
        """Return the stored value.

        Raises:
            LookupError: If the slot has not been set yet.
        """
        if not self._is_set:
            raise LookupError(f"{self._name} has not been computed")
        return self._value  # type: ignore[return-value]

    def set(self, value: T) -> T:
        """Store the value and freeze the slot.

        Args:
            value: Value to freeze.

        Returns:
            The stored value.

        Raises:
            SlotAlreadySetError: If the slot was already set.
        """
        if self._is_set:
            raise SlotAlreadySetError(f"{self._name} is locked and cannot be reassigned")
        self._value = value
        self._is_set = True
        return value

    def __repr__(self) -> str:
        state = f"set({self._value!r})" if self._is_set else "unset"
        return f"FrozenSlot({self._name}={state})"
