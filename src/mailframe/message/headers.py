"""Case-insensitive, ordered, multi-value header mapping."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, MutableMapping

HeaderValue = str | list[str]

# Trace fields that are always held as a list, even when absent or singular.
LIST_FIELDS: frozenset[str] = frozenset({"received"})


def normalize_field_name(name: str) -> str:
    """Return the lookup key for a header field name.

    Field names compare case-insensitively and treat ``_`` like ``-`` so
    ``message_id`` addresses ``Message-ID``.
    """
    return name.strip().lower().replace("_", "-")


class HeaderTable(MutableMapping[str, HeaderValue]):
    """Header fields keyed case-insensitively, iterated in first-seen order.

    A field seen once maps to its value string; a field seen more than once
    maps to the list of its values in order of appearance. Iteration yields
    the field name with the casing it was first stored under.
    """

    def __init__(self, items: Iterable[tuple[str, str]] | None = None) -> None:
        self._names: dict[str, str] = {}
        self._values: dict[str, HeaderValue] = {}
        for name, value in items or ():
            self.add(name, value)

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> HeaderTable:
        """Build a table from unfolded ``name: value`` lines.

        Lines without a colon are not headers and are skipped. Values are
        left-trimmed; field names are kept verbatim.

        Args:
            lines: Logical header lines.

        Returns:
            A table with every list field present as a list.
        """
        table = cls()
        for line in lines:
            name, sep, value = line.partition(":")
            if not sep:
                continue
            table.add(name, value.lstrip())
        for field in LIST_FIELDS:
            key = normalize_field_name(field)
            current = table._values.get(key)
            if current is None:
                table[field] = []
            elif isinstance(current, str):
                table._values[key] = [current]
        return table

    def __getitem__(self, name: str) -> HeaderValue:
        return self._values[normalize_field_name(name)]

    def __setitem__(self, name: str, value: HeaderValue) -> None:
        key = normalize_field_name(name)
        self._names.setdefault(key, name)
        self._values[key] = value

    def __delitem__(self, name: str) -> None:
        key = normalize_field_name(name)
        del self._values[key]
        del self._names[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._names.values())

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_field_name(name) in self._values

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self.items())!r})"

    def add(self, name: str, value: str) -> None:
        """Append a value for ``name`` without replacing existing ones.

        Creates the field if absent, turns a single value into a two-element
        list on the first duplicate, and appends to an existing list.
        """
        key = normalize_field_name(name)
        current = self._values.get(key)
        if current is None:
            self[name] = value
        elif isinstance(current, list):
            current.append(value)
        else:
            self._values[key] = [current, value]

    def get_all(self, name: str) -> list[str]:
        """Return every value for ``name`` as a new list (empty if absent)."""
        value = self._values.get(normalize_field_name(name))
        if value is None:
            return []
        if isinstance(value, list):
            return list(value)
        return [value]

    def first(self, name: str) -> str | None:
        """Return the first value for ``name``, or None if absent or empty."""
        values = self.get_all(name)
        return values[0] if values else None

    def to_lines(self) -> list[str]:
        """Flatten the table into ``name: value`` lines.

        Multi-value fields produce one line per value, in stored order.
        """
        lines: list[str] = []
        for name in self:
            for value in self.get_all(name):
                lines.append(f"{name}: {value}")
        return lines

    def size_bytes(self) -> int:
        """Return the UTF-8 byte length of all values.

        Multi-value fields are counted as their values joined by newlines.
        """
        total = 0
        for value in self._values.values():
            text = "\n".join(value) if isinstance(value, list) else value
            total += len(text.encode("utf-8", errors="surrogateescape"))
        return total
