"""
solgen.bind.parser
==================

The ABI → contract descriptor compiler.

`parse_contract` runs over an already-parsed `AbiDocument` in two phases:

1. methods: keep only those the customs expose, normalize names, give
   anonymous inputs positional names `arg<i>`, capitalise named outputs,
   register tuple types, split into calls (constant) and transacts
   (state-mutating);
2. events: skip anonymous events, normalize names; only *indexed* inputs are
   renamed and walked for tuples (non-indexed ones belong to the log body).

Then it rejects structs for targets that cannot express them, applies the
customs struct renames, binds every argument to its host type token and
returns a `Contract`. Reserved words keep their ABI name; the escaped
identifier goes to `Argument.ident`. Nothing here logs or retries: every
failure is raised to the caller with the offending member attached.

`load_contract` is the text entry point: parse the document, keep the
whitespace-stripped/escaped ABI text for embedding, then `parse_contract`.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Union

from ..errors import DuplicateMember, UnsupportedLanguageFeature, UnsupportedType
from .abi import RawAbi, parse_abi, strip_abi
from .language import Lang, LanguageStrategy, capitalise, strategy_for
from .model import (
    AbiDocument,
    Argument,
    BoundEvent,
    BoundMethod,
    Contract,
    Customs,
    Event,
    Method,
)
from .structs import DEFAULT_MAX_DEPTH, StructRegistry

__all__ = ["parse_contract", "load_contract", "structured"]

CustomsLike = Union[Customs, Mapping[str, Any], None]


def structured(args: List[Argument]) -> bool:
    """
    True when outputs can be returned as one record: at least two, all named,
    and still distinct once capitalised (var/Var/_var collide).
    """
    if len(args) < 2:
        return False
    seen = set()
    for a in args:
        if not a.name:
            return False
        f = capitalise(a.name)
        if not f or f in seen:
            return False
        seen.add(f)
    return True


def parse_contract(
    document: AbiDocument,
    customs: CustomsLike,
    lang: Union[Lang, str],
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Contract:
    lang = Lang.parse(lang)
    customs = _coerce_customs(customs)
    strategy = strategy_for(lang)
    registry = StructRegistry(
        strategy, reserved_names=customs.structs.values(), max_depth=max_depth
    )

    calls: Dict[str, BoundMethod] = {}
    transacts: Dict[str, BoundMethod] = {}
    events: Dict[str, BoundEvent] = {}

    for method_name, original in document.methods.items():
        if not customs.exposes(method_name):
            continue

        normalized = original.clone()
        normalized.name = strategy.normalize_method(original.name)
        for j, arg in enumerate(normalized.inputs):
            if not arg.name:
                arg.name = f"arg{j}"
            if arg.type.has_tuple():
                registry.resolve(arg.type, member=original.name)
        for arg in normalized.outputs:
            if arg.name:
                arg.name = capitalise(arg.name)
            if arg.type.has_tuple():
                registry.resolve(arg.type, member=original.name)

        if original.name in calls or original.name in transacts:
            raise DuplicateMember(
                f"method {original.name!r} bound twice", kind="method", name=original.name
            )
        bound = BoundMethod(
            original=original,
            normalized=normalized,
            structured=structured(original.outputs),
        )
        if original.constant:
            calls[original.name] = bound
        else:
            transacts[original.name] = bound

    for original in document.events.values():
        # Anonymous events cannot be filtered by topic
        if original.anonymous:
            continue

        normalized = original.clone()
        normalized.name = strategy.normalize_method(original.name)
        for j, arg in enumerate(normalized.inputs):
            # Indexed fields are filter inputs; the rest is decoded log body
            if not arg.indexed:
                continue
            if not arg.name:
                arg.name = f"arg{j}"
            if arg.type.has_tuple():
                registry.resolve(arg.type, member=original.name)

        if original.name in events:
            raise DuplicateMember(
                f"event {original.name!r} bound twice", kind="event", name=original.name
            )
        events[original.name] = BoundEvent(original=original, normalized=normalized)

    if len(registry) > 0 and not strategy.supports_structs:
        raise UnsupportedLanguageFeature(
            f"{lang.value} binding for tuple arguments is not supported",
            language=lang.value,
            feature="structs",
        )

    registry.apply_renames(customs.structs)
    registry.bind_fields()
    for bound in list(calls.values()) + list(transacts.values()):
        _bind_method(bound.normalized, strategy, registry)
    for ev in events.values():
        _bind_event(ev.normalized, strategy, registry)

    constructor = _constructor(document.constructor, strategy, registry)

    return Contract(
        language=lang.value,
        constructor=constructor,
        calls=calls,
        transacts=transacts,
        events=events,
        structs=registry.snapshot(),
        has_fallback=document.has_fallback,
        has_receive=document.has_receive,
    )


def load_contract(
    raw_abi: RawAbi,
    customs: CustomsLike,
    lang: Union[Lang, str],
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Contract:
    """
    Compile raw ABI text into a Contract descriptor.

    The structural parse works on the decoded document; `input_abi` keeps the
    original text with whitespace removed and quotes escaped.
    """
    document = parse_abi(raw_abi, max_depth=max_depth)
    stripped = strip_abi(raw_abi)
    contract = parse_contract(document, customs, lang, max_depth=max_depth)
    contract.input_abi = stripped
    return contract


# ---- host type binding ----


def _name(arg: Argument, strategy: LanguageStrategy) -> None:
    arg.ident = strategy.escape(arg.name) if arg.name else None


def _bind(arg: Argument, member: str, bind) -> None:
    try:
        arg.host_type = bind(arg.type)
    except UnsupportedType as e:
        e.member = e.member or f"{member}.{arg.name or '?'}"
        raise


def _bind_method(m: Method, strategy: LanguageStrategy, registry: StructRegistry) -> None:
    for arg in m.inputs + m.outputs:
        _name(arg, strategy)
        _bind(arg, m.raw_name, lambda t: strategy.bind_type(t, registry))


def _bind_event(ev: Event, strategy: LanguageStrategy, registry: StructRegistry) -> None:
    for arg in ev.inputs:
        _name(arg, strategy)
        if arg.indexed:
            _bind(arg, ev.raw_name, lambda t: strategy.bind_topic_type(t, registry))
        elif registry.covers(arg.type):
            _bind(arg, ev.raw_name, lambda t: strategy.bind_type(t, registry))
        # else: unregistered tuple in the log body, left to runtime decoding


def _constructor(
    original: Optional[Method], strategy: LanguageStrategy, registry: StructRegistry
) -> Optional[Method]:
    if original is None:
        return None
    ctor = original.clone()
    for j, arg in enumerate(ctor.inputs):
        if not arg.name:
            arg.name = f"arg{j}"
        _name(arg, strategy)
        if registry.covers(arg.type):
            _bind(arg, "constructor", lambda t: strategy.bind_type(t, registry))
    return ctor


def _coerce_customs(customs: CustomsLike) -> Customs:
    if isinstance(customs, Customs):
        return customs
    return Customs.from_dict(customs)
