"""
Object inventory - where every documented object is rendered.

Cross-reference roles (``:func:``, ``:class:``, ...), the general index and
the search index all look objects up here.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from quilldoc.models import Member, ModuleDoc


@dataclass(frozen=True)
class InventoryEntry:
    """A documented object and its location in the output."""

    fullname: str
    kind: str
    module: str
    uri: str
    anchor: str
    summary: str = ""

    @property
    def name(self) -> str:
        """Name relative to the module (``Greeter.greet``)."""
        if self.kind == "module":
            return self.fullname
        return self.fullname[len(self.module) + 1 :]

    @property
    def url(self) -> str:
        return f"{self.uri}#{self.anchor}"


class Inventory:
    """Insertion-ordered registry of documented objects.

    The first registration of a name wins; later ones are reported back to
    the caller as duplicates.
    """

    def __init__(self):
        self._entries: dict[str, InventoryEntry] = {}

    def __contains__(self, fullname: str) -> bool:
        return fullname in self._entries

    def __iter__(self) -> Iterator[InventoryEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, entry: InventoryEntry) -> bool:
        """Register an entry; return False if the name was already taken."""
        if entry.fullname in self._entries:
            return False
        self._entries[entry.fullname] = entry
        return True

    def add_module(self, module: ModuleDoc, uri: str) -> list[str]:
        """Register a module and all of its members at ``uri``.

        Returns:
            Full names that were already registered elsewhere
        """
        duplicates = []
        entry = InventoryEntry(
            fullname=module.name,
            kind="module",
            module=module.name,
            uri=uri,
            anchor=module.anchor,
            summary=module.docstring.summary,
        )
        if not self.add(entry):
            duplicates.append(module.name)
        for member in module.members:
            duplicates.extend(self.add_member(member, uri))
        return duplicates

    def add_member(self, member: Member, uri: str) -> list[str]:
        """Register a member (and its nested members) at ``uri``."""
        duplicates = []
        for item in member.walk():
            entry = InventoryEntry(
                fullname=item.fullname,
                kind=item.kind,
                module=item.module,
                uri=uri,
                anchor=item.anchor,
                summary=item.docstring.summary,
            )
            if not self.add(entry):
                duplicates.append(item.fullname)
        return duplicates

    def get(self, fullname: str) -> InventoryEntry | None:
        return self._entries.get(fullname)

    def lookup(self, name: str, current_module: str | None = None) -> InventoryEntry | None:
        """Resolve a possibly abbreviated name.

        Tries, in order: the exact name, the name inside ``current_module``,
        then a unique entry whose full name ends with ``.name``.
        """
        name = name.strip().lstrip(".")
        if name.endswith("()"):
            name = name[:-2]
        if not name:
            return None

        if name in self._entries:
            return self._entries[name]
        if current_module and f"{current_module}.{name}" in self._entries:
            return self._entries[f"{current_module}.{name}"]

        suffix = "." + name
        matches = [entry for key, entry in self._entries.items() if key.endswith(suffix)]
        if len(matches) == 1:
            return matches[0]
        return None

    def modules(self) -> list[InventoryEntry]:
        return sorted((e for e in self if e.kind == "module"), key=lambda e: e.fullname.lower())

    def sorted_entries(self) -> list[InventoryEntry]:
        """All entries sorted the way the general index lists them."""
        return sorted(self, key=lambda e: (e.name.rsplit(".", 1)[-1].lower(), e.fullname))
