from __future__ import annotations

"""
ABI document loading & validation

Turns raw contract-ABI JSON text into an `AbiDocument`:

- JSON decoding
- Schema validation (jsonschema, Draft 2020-12, bundled abi.schema.json)
- Type string parsing (strings + `components` → TypeRef), arrays peeled
  from the outermost suffix inwards
- Constant/payable classification (legacy `constant`/`payable` flags and
  `stateMutability`)
- Overload resolution: repeated names become name0, name1, ...

It also produces the canonical embedded form of the ABI text (`strip_abi`):
all whitespace removed and double quotes escaped, ready to be pasted into a
string literal by generated code.
"""

import json
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Union

from jsonschema import Draft202012Validator
from jsonschema.exceptions import best_match

from ..errors import DuplicateMember, MalformedABI, StructDepthExceeded
from .model import AbiDocument, Argument, Event, Method, TypeRef
from .structs import DEFAULT_MAX_DEPTH

__all__ = ["parse_abi", "parse_type", "strip_abi", "load_abi_json"]

_SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "abi.schema.json"

RawAbi = Union[str, bytes, List[Any]]


# ----------------------------
# Public API
# ----------------------------

def parse_abi(raw: RawAbi, *, max_depth: int = DEFAULT_MAX_DEPTH) -> AbiDocument:
    """
    Parse raw ABI JSON (text or already-decoded list) into an AbiDocument.

    `max_depth` bounds array/tuple nesting of every parameter type.

    Raises:
        MalformedABI: invalid JSON, schema violations, unknown types.
        StructDepthExceeded: a parameter type nests deeper than `max_depth`.
        DuplicateMember: two entries with the same name and input signature.
    """
    entries = load_abi_json(raw)
    _check_components_depth(entries, max_depth)
    try:
        _validate_schema(entries)
        return _build_document(entries, max_depth)
    except RecursionError:
        raise MalformedABI("ABI nesting exceeds the interpreter recursion limit") from None


def _build_document(entries: List[Dict[str, Any]], max_depth: int) -> AbiDocument:
    doc = AbiDocument()
    method_sigs: Set[str] = set()
    event_sigs: Set[str] = set()

    for entry in entries:
        typ = entry.get("type") or "function"
        if typ == "constructor":
            if doc.constructor is not None:
                raise DuplicateMember("ABI declares more than one constructor", kind="constructor")
            doc.constructor = _parse_method(entry, name="", max_depth=max_depth)
        elif typ == "function":
            method = _parse_method(entry, name=entry["name"], max_depth=max_depth)
            if method.signature in method_sigs:
                raise DuplicateMember(
                    f"function {method.signature} declared twice", kind="function", name=method.raw_name
                )
            method_sigs.add(method.signature)
            method.name = _resolve_name_conflict(method.raw_name, doc.methods)
            doc.methods[method.name] = method
        elif typ == "event":
            event = _parse_event(entry, max_depth=max_depth)
            if event.signature in event_sigs:
                raise DuplicateMember(
                    f"event {event.signature} declared twice", kind="event", name=event.raw_name
                )
            event_sigs.add(event.signature)
            event.name = _resolve_name_conflict(event.raw_name, doc.events)
            doc.events[event.name] = event
        elif typ == "fallback":
            doc.has_fallback = True
        elif typ == "receive":
            doc.has_receive = True
        # "error" entries are not bound

    return doc


def strip_abi(raw: RawAbi) -> str:
    """Remove every whitespace character and escape double quotes."""
    if not isinstance(raw, (str, bytes)):
        raw = json.dumps(raw, separators=(",", ":"))
    text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
    stripped = "".join(ch for ch in text if not ch.isspace())
    return stripped.replace('"', '\\"')


def load_abi_json(raw: RawAbi) -> List[Dict[str, Any]]:
    if isinstance(raw, list):
        try:
            return json.loads(json.dumps(raw))  # deep copy
        except (TypeError, ValueError) as e:
            raise MalformedABI(f"ABI is not JSON-serializable: {e}") from e
        except RecursionError:
            raise MalformedABI("ABI nesting exceeds the interpreter recursion limit") from None
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedABI(f"ABI is not valid UTF-8: {e}") from e
    if not isinstance(raw, str):
        raise MalformedABI(f"Unsupported ABI input type: {type(raw).__name__}")
    try:
        val = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedABI(f"ABI JSON parse error: {e}") from e
    except RecursionError:
        raise MalformedABI("ABI nesting exceeds the interpreter recursion limit") from None
    if not isinstance(val, list):
        raise MalformedABI("ABI top-level must be an array")
    return val


def _check_components_depth(entries: List[Any], max_depth: int) -> None:
    """Reject over-deep `components` chains before any recursive pass runs."""
    stack: List[Any] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        member = entry.get("name") if isinstance(entry.get("name"), str) else None
        for key in ("inputs", "outputs"):
            params = entry.get(key)
            if isinstance(params, list):
                stack.extend((p, 0, member) for p in params)
    while stack:
        param, depth, member = stack.pop()
        if not isinstance(param, dict):
            continue
        comps = param.get("components")
        if not isinstance(comps, list):
            continue
        # components nesting is a lower bound on the parsed type depth
        if depth > max_depth:
            raise StructDepthExceeded(
                f"type nesting exceeds {max_depth} levels", member=member, depth=depth
            )
        stack.extend((c, depth + 1, member) for c in comps)


# ----------------------------
# Schema validation
# ----------------------------

@lru_cache(maxsize=1)
def _validator() -> Draft202012Validator:
    with _SCHEMA_PATH.open("r", encoding="utf-8") as f:
        schema = json.load(f)
    return Draft202012Validator(schema)


def _validate_schema(entries: List[Any]) -> None:
    err = best_match(_validator().iter_errors(entries))
    if err is None:
        return
    where = "/".join(str(p) for p in err.absolute_path)
    member = None
    if err.absolute_path:
        idx = err.absolute_path[0]
        if isinstance(idx, int) and idx < len(entries) and isinstance(entries[idx], dict):
            member = entries[idx].get("name") or f"#{idx}"
    raise MalformedABI(f"ABI schema validation failed at /{where}: {err.message}", member=member)


# ----------------------------
# Entries
# ----------------------------

def _parse_params(
    params: Optional[List[Dict[str, Any]]], *, member: str, allow_indexed: bool, max_depth: int
) -> List[Argument]:
    out: List[Argument] = []
    for p in params or []:
        typ = parse_type(
            p["type"],
            components=p.get("components"),
            internal_type=p.get("internalType"),
            member=member,
            max_depth=max_depth,
        )
        indexed = bool(p.get("indexed")) if allow_indexed else False
        out.append(Argument(name=p.get("name") or "", type=typ, indexed=indexed))
    return out


def _parse_method(entry: Dict[str, Any], *, name: str, max_depth: int) -> Method:
    member = name or "constructor"
    mut = entry.get("stateMutability")
    constant = bool(entry.get("constant")) or mut in ("view", "pure")
    payable = bool(entry.get("payable")) or mut == "payable"
    if not mut:
        mut = "view" if constant else ("payable" if payable else "nonpayable")

    return Method(
        name=name,
        raw_name=name,
        inputs=_parse_params(entry.get("inputs"), member=member, allow_indexed=False, max_depth=max_depth),
        outputs=_parse_params(entry.get("outputs"), member=member, allow_indexed=False, max_depth=max_depth),
        state_mutability=mut,
        constant=constant,
        payable=payable,
    )


def _parse_event(entry: Dict[str, Any], *, max_depth: int) -> Event:
    name = entry["name"]
    return Event(
        name=name,
        raw_name=name,
        inputs=_parse_params(entry.get("inputs"), member=name, allow_indexed=True, max_depth=max_depth),
        anonymous=bool(entry.get("anonymous", False)),
    )


def _resolve_name_conflict(raw_name: str, used: Dict[str, Any]) -> str:
    name = raw_name
    idx = 0
    while name in used:
        name = f"{raw_name}{idx}"
        idx += 1
    return name


# ----------------------------
# Types
# ----------------------------

_ARRAY_SUFFIX = re.compile(r"\[(\d*)\]$")
_INT_RE = re.compile(r"^(u?int)(\d*)$")
_BYTES_RE = re.compile(r"^bytes(\d*)$")
_FIXED_RE = re.compile(r"^(u?fixed)(?:(\d+)x(\d+))?$")
_STRUCT_PREFIX = "struct "


def parse_type(
    s: str,
    *,
    components: Optional[List[Dict[str, Any]]] = None,
    internal_type: Optional[str] = None,
    member: Optional[str] = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> TypeRef:
    """
    Parse an ABI type string such as "uint256", "bytes32", "tuple[2][]".

    `components` is required for tuples; `internal_type` ("struct Lib.Order[]")
    supplies the struct's source name. Array and tuple levels nested deeper
    than `max_depth` raise `StructDepthExceeded`.
    """
    return _parse_type(s, components, internal_type, member, max_depth, 0)


def _parse_type(
    s: str,
    components: Optional[List[Dict[str, Any]]],
    internal_type: Optional[str],
    member: Optional[str],
    max_depth: int,
    depth: int,
) -> TypeRef:
    s = (s or "").strip()
    m = _ARRAY_SUFFIX.search(s)
    if (m or s == "tuple") and depth > max_depth:
        raise StructDepthExceeded(
            f"type nesting exceeds {max_depth} levels", member=member, depth=depth
        )

    if m:
        length: Optional[int] = None
        if m.group(1):
            length = int(m.group(1))
            if length <= 0:
                raise MalformedABI(f"Invalid array length in {s!r}", member=member)
        elem = _parse_type(
            s[: m.start()],
            components,
            _strip_array_suffix(internal_type),
            member,
            max_depth,
            depth + 1,
        )
        return TypeRef(kind="array", array_item=elem, array_len=length)

    if s == "tuple":
        if not isinstance(components, list):
            raise MalformedABI("tuple type requires components", member=member)
        elems: List[TypeRef] = []
        names: List[str] = []
        for c in components:
            elems.append(
                _parse_type(
                    c.get("type", ""),
                    c.get("components"),
                    c.get("internalType"),
                    member,
                    max_depth,
                    depth + 1,
                )
            )
            names.append(c.get("name") or "")
        return TypeRef(
            kind="tuple",
            tuple_elems=elems,
            tuple_names=names,
            tuple_raw_name=_struct_raw_name(internal_type),
        )

    um = _INT_RE.match(s)
    if um:
        bits = int(um.group(2)) if um.group(2) else 256
        if bits <= 0 or bits > 256 or bits % 8 != 0:
            raise MalformedABI(f"Invalid integer width in {s!r}", member=member)
        return TypeRef(kind=um.group(1), bits=bits)

    bm = _BYTES_RE.match(s)
    if bm:
        if not bm.group(1):
            return TypeRef(kind="bytes")
        n = int(bm.group(1))
        if n <= 0 or n > 32:
            raise MalformedABI(f"Invalid bytesN width in {s!r}", member=member)
        return TypeRef(kind="bytes", bits=n * 8)

    fm = _FIXED_RE.match(s)
    if fm:
        bits = int(fm.group(2)) if fm.group(2) else 128
        decimals = int(fm.group(3)) if fm.group(3) else 18
        if bits <= 0 or bits > 256 or bits % 8 != 0 or decimals > 80:
            raise MalformedABI(f"Invalid fixed-point type {s!r}", member=member)
        return TypeRef(kind=fm.group(1), bits=bits, decimals=decimals)

    if s in ("bool", "address", "string", "function"):
        return TypeRef(kind=s)

    raise MalformedABI(f"Unknown type: {s!r}", member=member)


def _strip_array_suffix(internal_type: Optional[str]) -> Optional[str]:
    if not internal_type:
        return internal_type
    return _ARRAY_SUFFIX.sub("", internal_type.strip())


def _struct_raw_name(internal_type: Optional[str]) -> str:
    if not internal_type or not internal_type.startswith(_STRUCT_PREFIX):
        return ""
    # Lib.Order is not a valid identifier; flatten to LibOrder.
    return internal_type[len(_STRUCT_PREFIX):].strip().replace(".", "")
