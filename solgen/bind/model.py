from __future__ import annotations

"""
Binding IR (Intermediate Representation)
========================================

These dataclasses model both sides of a compilation:

- the parsed ABI document (`AbiDocument`, `Method`, `Event`, `Argument`,
  `TypeRef`) produced by `solgen.bind.abi.parse_abi`, and
- the contract descriptor (`Contract`, `BoundMethod`, `BoundEvent`, `Struct`,
  `StructField`) produced by `solgen.bind.parser.parse_contract` and consumed
  by template/emission layers.

`Customs` is the caller-supplied allow-list that selects exposed methods and
renames generated structs.

Instances are built fresh per compilation. Serialization helpers (`to_dict`)
are provided for JSON output and caching.
"""

import copy
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional


# -----------------
# Core type system
# -----------------

@dataclass
class TypeRef:
    """
    Canonical ABI type descriptor.

    Kinds:
      - "uint" | "int": `bits` (8..256, multiple of 8).
      - "bytes": `bits` None ⇒ dynamic bytes; else fixed bytesN with bits = N*8.
      - "fixed" | "ufixed": `bits` + `decimals`.
      - "bool" | "address" | "string" | "function"
      - "array": `array_item` + `array_len` (None ⇒ dynamic slice)
      - "tuple": `tuple_elems`, component names in `tuple_names`, and the
        struct name from `internalType` (if any) in `tuple_raw_name`.
    """
    kind: str
    bits: Optional[int] = None
    decimals: Optional[int] = None
    array_item: Optional["TypeRef"] = None
    array_len: Optional[int] = None
    tuple_elems: Optional[List["TypeRef"]] = None
    tuple_names: Optional[List[str]] = None
    tuple_raw_name: str = ""

    def canonical_str(self) -> str:
        """Canonical signature fragment for this type."""
        if self.kind in ("uint", "int"):
            return f"{self.kind}{self.bits or 256}"
        if self.kind == "bytes":
            if self.bits:
                return f"bytes{self.bits // 8}"
            return "bytes"
        if self.kind in ("fixed", "ufixed"):
            return f"{self.kind}{self.bits or 128}x{self.decimals if self.decimals is not None else 18}"
        if self.kind in ("bool", "address", "string", "function"):
            return self.kind
        if self.kind == "array":
            if self.array_item is None:
                raise ValueError("array_item is required for array types")
            inner = self.array_item.canonical_str()
            suffix = f"[{self.array_len}]" if self.array_len is not None else "[]"
            return f"{inner}{suffix}"
        if self.kind == "tuple":
            elems = ",".join((e.canonical_str() for e in (self.tuple_elems or [])))
            return f"({elems})"
        raise ValueError(f"Unsupported TypeRef kind: {self.kind}")

    def is_dynamic(self) -> bool:
        """Whether values of this type are encoded out-of-line."""
        if self.kind in ("bool", "address", "uint", "int", "fixed", "ufixed", "function"):
            return False
        if self.kind == "bytes":
            return self.bits is None
        if self.kind == "string":
            return True
        if self.kind == "array":
            return self.array_len is None or bool(self.array_item and self.array_item.is_dynamic())
        if self.kind == "tuple":
            return any(e.is_dynamic() for e in (self.tuple_elems or []))
        return True

    def is_reference(self) -> bool:
        """Reference types are hashed when used as indexed event topics."""
        if self.kind in ("string", "array", "tuple"):
            return True
        return self.kind == "bytes" and self.bits is None

    def base(self) -> "TypeRef":
        """Strip array/slice wrappers and return the element type."""
        t = self
        while t.kind == "array" and t.array_item is not None:
            t = t.array_item
        return t

    def has_tuple(self) -> bool:
        return self.base().kind == "tuple"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Argument:
    """Named, typed parameter. Events may set `indexed=True`."""
    name: str
    type: TypeRef
    indexed: bool = False
    # Filled on normalized copies once struct names are final.
    host_type: Optional[str] = None
    # Name as a target-language identifier (reserved words escaped).
    ident: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.canonical_str(),
            "indexed": self.indexed,
            "hostType": self.host_type,
            "ident": self.ident,
        }


def _inputs_signature(args: List[Argument]) -> str:
    return "(" + ",".join(a.type.canonical_str() for a in args) + ")"


# ---------------
# ABI components
# ---------------

@dataclass
class Method:
    name: str                             # unique within the document (overloads suffixed)
    raw_name: str = ""                    # name as written in the ABI
    inputs: List[Argument] = field(default_factory=list)
    outputs: List[Argument] = field(default_factory=list)
    state_mutability: str = "nonpayable"  # "pure" | "view" | "nonpayable" | "payable"
    constant: bool = False
    payable: bool = False

    @property
    def signature(self) -> str:
        return f"{self.raw_name or self.name}{_inputs_signature(self.inputs)}"

    def clone(self) -> "Method":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "rawName": self.raw_name,
            "inputs": [a.to_dict() for a in self.inputs],
            "outputs": [a.to_dict() for a in self.outputs],
            "stateMutability": self.state_mutability,
            "constant": self.constant,
            "payable": self.payable,
            "signature": self.signature,
        }


@dataclass
class Event:
    name: str
    raw_name: str = ""
    inputs: List[Argument] = field(default_factory=list)
    anonymous: bool = False

    @property
    def signature(self) -> str:
        return f"{self.raw_name or self.name}{_inputs_signature(self.inputs)}"

    def clone(self) -> "Event":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "rawName": self.raw_name,
            "inputs": [a.to_dict() for a in self.inputs],
            "anonymous": self.anonymous,
            "signature": self.signature,
        }


@dataclass
class AbiDocument:
    constructor: Optional[Method] = None
    methods: Dict[str, Method] = field(default_factory=dict)
    events: Dict[str, Event] = field(default_factory=dict)
    has_fallback: bool = False
    has_receive: bool = False


# ------------------------
# Caller policy (allow-list)
# ------------------------

@dataclass
class Customs:
    """
    Per-contract binding policy.

    `methods` maps method name → exposed?; anything missing is hidden.
    `structs` maps canonical struct signature → display name override.
    """
    methods: Dict[str, bool] = field(default_factory=dict)
    structs: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> "Customs":
        """Accept the wire form {"Methods": {...}, "Structs": {...}} (any key case)."""
        if not raw:
            return cls()
        if not isinstance(raw, Mapping):
            raise TypeError(f"customs must be an object, got {type(raw).__name__}")
        lowered = {str(k).lower(): v for k, v in raw.items()}
        methods = lowered.get("methods") or {}
        structs = lowered.get("structs") or {}
        if not isinstance(methods, Mapping) or not isinstance(structs, Mapping):
            raise TypeError("customs Methods/Structs must be objects")
        return cls(
            methods={str(k): bool(v) for k, v in methods.items()},
            structs={str(k): str(v) for k, v in structs.items()},
        )

    @classmethod
    def expose_all(cls, names: List[str], structs: Optional[Mapping[str, str]] = None) -> "Customs":
        return cls(methods={n: True for n in names}, structs=dict(structs or {}))

    def exposes(self, name: str) -> bool:
        return self.methods.get(name, False) is True

    def to_dict(self) -> Dict[str, Any]:
        return {"Methods": dict(self.methods), "Structs": dict(self.structs)}


# ---------------------
# Contract descriptor
# ---------------------

@dataclass
class StructField:
    name: str
    kind: TypeRef
    type: Optional[str] = None  # host type token, bound after renames

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type, "kind": self.kind.canonical_str()}


@dataclass
class Struct:
    signature: str
    name: str
    fields: List[StructField] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signature": self.signature,
            "name": self.name,
            "fields": [f.to_dict() for f in self.fields],
        }


@dataclass
class BoundMethod:
    original: Method
    normalized: Method
    # Outputs can be returned as one named record (see parser.structured).
    structured: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original": self.original.to_dict(),
            "normalized": self.normalized.to_dict(),
            "structured": self.structured,
        }


@dataclass
class BoundEvent:
    original: Event
    normalized: Event

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original": self.original.to_dict(),
            "normalized": self.normalized.to_dict(),
        }


@dataclass
class Contract:
    language: str
    constructor: Optional[Method] = None
    calls: Dict[str, BoundMethod] = field(default_factory=dict)
    transacts: Dict[str, BoundMethod] = field(default_factory=dict)
    events: Dict[str, BoundEvent] = field(default_factory=dict)
    structs: Dict[str, Struct] = field(default_factory=dict)
    input_abi: str = ""
    has_fallback: bool = False
    has_receive: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "language": self.language,
            "constructor": self.constructor.to_dict() if self.constructor else None,
            "calls": {k: v.to_dict() for k, v in self.calls.items()},
            "transacts": {k: v.to_dict() for k, v in self.transacts.items()},
            "events": {k: v.to_dict() for k, v in self.events.items()},
            "structs": {k: v.to_dict() for k, v in self.structs.items()},
            "inputAbi": self.input_abi,
            "hasFallback": self.has_fallback,
            "hasReceive": self.has_receive,
        }


__all__ = [
    "TypeRef",
    "Argument",
    "Method",
    "Event",
    "AbiDocument",
    "Customs",
    "StructField",
    "Struct",
    "BoundMethod",
    "BoundEvent",
    "Contract",
]
