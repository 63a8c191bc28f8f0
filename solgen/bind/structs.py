"""
Struct resolution for tuple-typed ABI arguments.

A `StructRegistry` is created per compilation and passed by reference to the
parser. `resolve` walks a type in declaration order, registering one `Struct`
per canonical tuple signature; nested tuples (and arrays of tuples) are
registered before the tuple that contains them. Re-encountering a signature
reuses the existing entry.

Display names are provisional until `apply_renames` runs; host type tokens for
fields are only filled by `bind_fields`, after renames, so a renamed struct is
referenced by its final name everywhere.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, Mapping, Optional, Set

from ..errors import DuplicateMember, StructDepthExceeded, UnsupportedType
from .language import LanguageStrategy
from .model import Struct, StructField, TypeRef

__all__ = ["StructRegistry", "DEFAULT_MAX_DEPTH"]

DEFAULT_MAX_DEPTH = 32


class StructRegistry(Mapping[str, Struct]):
    """Signature → Struct mapping scoped to one compilation."""

    def __init__(
        self,
        strategy: LanguageStrategy,
        *,
        reserved_names: Iterable[str] = (),
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self._strategy = strategy
        self._structs: Dict[str, Struct] = {}
        # Rename targets; generated names must not take them.
        self._reserved: Set[str] = set(reserved_names)
        self._max_depth = int(max_depth)

    # Mapping protocol

    def __getitem__(self, signature: str) -> Struct:
        return self._structs[signature]

    def __iter__(self) -> Iterator[str]:
        return iter(self._structs)

    def __len__(self) -> int:
        return len(self._structs)

    # Resolution

    def resolve(self, kind: TypeRef, *, member: Optional[str] = None) -> Optional[str]:
        """
        Register every tuple reachable from `kind`. Returns the signature of the
        outermost tuple (after unwrapping arrays), or None for primitives.
        """
        return self._resolve(kind, 0, member)

    def _resolve(self, kind: TypeRef, depth: int, member: Optional[str]) -> Optional[str]:
        if kind.kind not in ("array", "tuple"):
            return None
        if depth > self._max_depth:
            raise StructDepthExceeded(
                f"type nesting exceeds {self._max_depth} levels",
                member=member,
                depth=depth,
            )
        if kind.kind == "array":
            if kind.array_item is None:
                return None
            return self._resolve(kind.array_item, depth + 1, member)

        sig = kind.canonical_str()
        if sig in self._structs:
            return sig

        elems = kind.tuple_elems or []
        names = list(kind.tuple_names or [])
        fields = []
        for i, elem in enumerate(elems):
            self._resolve(elem, depth + 1, member)
            raw = names[i] if i < len(names) else ""
            field_name = self._field_name(raw, i)
            if any(f.name == field_name for f in fields):
                raise DuplicateMember(
                    f"tuple {sig} has two fields named {field_name!r}",
                    kind="field",
                    name=field_name,
                )
            fields.append(StructField(name=field_name, kind=elem))

        name = self._default_name(kind.tuple_raw_name)
        self._structs[sig] = Struct(signature=sig, name=name, fields=fields)
        return sig

    def _field_name(self, raw: str, index: int) -> str:
        if not raw:
            raw = f"field{index}"
        return self._strategy.normalize_field(raw)

    def _taken(self) -> Set[str]:
        return {s.name for s in self._structs.values()} | self._reserved

    def _default_name(self, raw_name: str) -> str:
        taken = self._taken()
        if raw_name:
            name, n = raw_name, 0
            while name in taken:
                n += 1
                name = f"{raw_name}{n}"
            return name
        n = len(self._structs)
        while f"Struct{n}" in taken:
            n += 1
        return f"Struct{n}"

    # Final passes

    def covers(self, kind: TypeRef) -> bool:
        """True iff every tuple reachable from `kind` is registered."""
        if kind.kind == "array":
            return kind.array_item is None or self.covers(kind.array_item)
        if kind.kind != "tuple":
            return True
        if kind.canonical_str() not in self._structs:
            return False
        return all(self.covers(e) for e in (kind.tuple_elems or []))

    def apply_renames(self, renames: Mapping[str, str]) -> None:
        for sig, struct in self._structs.items():
            if sig in renames:
                struct.name = renames[sig]

        seen: Dict[str, str] = {}
        for sig, struct in self._structs.items():
            if struct.name in seen:
                raise DuplicateMember(
                    f"structs {seen[struct.name]} and {sig} share a name",
                    kind="struct",
                    name=struct.name,
                )
            seen[struct.name] = sig

    def bind_fields(self) -> None:
        for struct in self._structs.values():
            for f in struct.fields:
                try:
                    f.type = self._strategy.bind_type(f.kind, self._structs)
                except UnsupportedType as e:
                    e.member = e.member or f"{struct.name}.{f.name}"
                    raise

    def snapshot(self) -> Dict[str, Struct]:
        return dict(self._structs)
