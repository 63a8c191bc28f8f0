"""
solgen.bind: ABI → binding IR
=============================

Public surface:
- Loader: ``parse_abi``, ``parse_type``, ``strip_abi``.
- Compiler: ``parse_contract`` (document → descriptor), ``load_contract``
  (raw text → descriptor), ``compile_all`` (many contracts).
- Normalization: ``Lang``, ``strategy_for``, ``bind_type``, ``bind_topic_type``.
- Structs: ``StructRegistry``.
- IR dataclasses: see ``model.py``.
"""

from .model import (
    AbiDocument,
    Argument,
    BoundEvent,
    BoundMethod,
    Contract,
    Customs,
    Event,
    Method,
    Struct,
    StructField,
    TypeRef,
)
from .language import (
    Lang,
    bind_topic_type,
    bind_type,
    capitalise,
    decapitalise,
    strategy_for,
)
from .structs import DEFAULT_MAX_DEPTH, StructRegistry
from .abi import parse_abi, parse_type, strip_abi
from .parser import load_contract, parse_contract
from .batch import BatchResult, compile_all

__all__ = [
    # IR
    "AbiDocument",
    "Argument",
    "BoundEvent",
    "BoundMethod",
    "Contract",
    "Customs",
    "Event",
    "Method",
    "Struct",
    "StructField",
    "TypeRef",
    # Normalization
    "Lang",
    "bind_type",
    "bind_topic_type",
    "capitalise",
    "decapitalise",
    "strategy_for",
    # Structs
    "DEFAULT_MAX_DEPTH",
    "StructRegistry",
    # Loader & compiler
    "parse_abi",
    "parse_type",
    "strip_abi",
    "parse_contract",
    "load_contract",
    "BatchResult",
    "compile_all",
]
