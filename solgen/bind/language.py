"""
solgen.bind.language
====================

Per-target-language normalization: identifier casing, reserved-word
avoidance, and ABI type → host type token mapping.

Supported targets form a closed set (`Lang`). Each variant has exactly one
strategy instance, returned by `strategy_for`:

    s = strategy_for(Lang.GO)
    s.normalize_method("get_value")           # "GetValue"
    s.bind_type(TypeRef("uint", bits=64), {}) # "uint64"
    s.bind_topic_type(TypeRef("string"), {})  # "common.Hash"

Every function here is pure; unsupported mappings raise `UnsupportedType`.
"""

from __future__ import annotations

import keyword
import re
from enum import Enum
from typing import Dict, FrozenSet, Mapping, Optional

from ..errors import UnsupportedType
from .model import Struct, TypeRef

__all__ = [
    "Lang",
    "LanguageStrategy",
    "GoStrategy",
    "JavaStrategy",
    "PythonStrategy",
    "strategy_for",
    "to_camel_case",
    "to_snake_case",
    "capitalise",
    "decapitalise",
    "bind_type",
    "bind_topic_type",
]


class Lang(str, Enum):
    GO = "go"
    JAVA = "java"
    PYTHON = "python"

    @classmethod
    def parse(cls, value: "str | Lang") -> "Lang":
        if isinstance(value, Lang):
            return value
        s = str(value).strip().lower()
        s = _LANG_ALIASES.get(s, s)
        try:
            return cls(s)
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ValueError(f"unknown target language {value!r} (expected one of: {choices})") from None


_LANG_ALIASES = {"golang": "go", "py": "python"}


# --- Identifier helpers -------------------------------------------------------

def to_camel_case(name: str) -> str:
    """Split on '_' and upper-case the first letter of every part."""
    parts = name.split("_")
    return "".join(p[:1].upper() + p[1:] for p in parts)


def capitalise(name: str) -> str:
    return to_camel_case(name)


def decapitalise(name: str) -> str:
    if not name:
        return name
    camel = to_camel_case(name)
    return camel[:1].lower() + camel[1:]


_CAMEL_1 = re.compile("(.)([A-Z][a-z]+)")
_CAMEL_2 = re.compile("([a-z0-9])([A-Z])")
_NON_ID = re.compile(r"[^A-Za-z0-9_]")


def to_snake_case(name: str) -> str:
    s1 = _CAMEL_1.sub(r"\1_\2", name)
    snake = _CAMEL_2.sub(r"\1_\2", s1).lower()
    return _NON_ID.sub("_", snake)


_GO_KEYWORDS = frozenset({
    "break", "case", "chan", "const", "continue", "default", "defer", "else",
    "fallthrough", "for", "func", "go", "goto", "if", "import", "interface",
    "map", "package", "range", "return", "select", "struct", "switch", "type",
    "var",
})
_JAVA_KEYWORDS = frozenset({
    "abstract", "assert", "boolean", "break", "byte", "case", "catch", "char",
    "class", "const", "continue", "default", "do", "double", "else", "enum",
    "extends", "final", "finally", "float", "for", "goto", "if", "implements",
    "import", "instanceof", "int", "interface", "long", "native", "new",
    "package", "private", "protected", "public", "return", "short", "static",
    "strictfp", "super", "switch", "synchronized", "this", "throw", "throws",
    "transient", "try", "void", "volatile", "while", "true", "false", "null",
})
_PY_KEYWORDS = frozenset(keyword.kwlist) | frozenset(keyword.softkwlist)

_INT_RE = re.compile(r"^(u)?int([0-9]*)$")


# --- Strategies -----------------------------------------------------------------

class LanguageStrategy:
    """Base strategy; subclasses fill in naming and the primitive type table."""

    lang: Lang
    keywords: FrozenSet[str] = frozenset()
    hash_type: str = ""
    supports_structs: bool = True

    # names

    def is_reserved(self, name: str) -> bool:
        return name in self.keywords

    def escape(self, name: str) -> str:
        return f"{name}_" if self.is_reserved(name) else name

    def normalize_method(self, name: str) -> str:
        raise NotImplementedError

    def normalize_field(self, name: str) -> str:
        raise NotImplementedError

    # types

    def bind_basic(self, kind: TypeRef) -> str:
        raise NotImplementedError

    def bind_array(self, elem: str, length: Optional[int]) -> str:
        raise NotImplementedError

    def bind_type(self, kind: TypeRef, structs: Mapping[str, Struct]) -> str:
        if kind.kind == "array":
            if kind.array_item is None:
                raise UnsupportedType("array without element type", type_name="array", language=self.lang.value)
            return self.bind_array(self.bind_type(kind.array_item, structs), kind.array_len)
        if kind.kind == "tuple":
            sig = kind.canonical_str()
            s = structs.get(sig)
            if s is None:
                raise UnsupportedType(
                    "tuple has no bound struct", type_name=sig, language=self.lang.value
                )
            return s.name
        return self.bind_basic(kind)

    def bind_topic_type(self, kind: TypeRef, structs: Mapping[str, Struct]) -> str:
        # Indexed reference values are stored as their 32-byte hash.
        if kind.is_reference():
            return self.hash_type
        return self.bind_type(kind, structs)

    def _unsupported(self, kind: TypeRef) -> UnsupportedType:
        return UnsupportedType(
            f"no {self.lang.value} mapping for ABI type",
            type_name=kind.canonical_str(),
            language=self.lang.value,
        )


class GoStrategy(LanguageStrategy):
    lang = Lang.GO
    keywords = _GO_KEYWORDS
    hash_type = "common.Hash"

    def normalize_method(self, name: str) -> str:
        return to_camel_case(name)

    def normalize_field(self, name: str) -> str:
        return capitalise(name)

    def bind_basic(self, kind: TypeRef) -> str:
        k = kind.kind
        if k == "address":
            return "common.Address"
        if k in ("uint", "int"):
            bits = kind.bits or 256
            if bits in (8, 16, 32, 64):
                return f"{k}{bits}"
            return "*big.Int"
        if k == "bytes":
            if kind.bits is None:
                return "[]byte"
            return f"[{kind.bits // 8}]byte"
        if k == "function":
            return "[24]byte"
        if k in ("bool", "string"):
            return k
        raise self._unsupported(kind)

    def bind_array(self, elem: str, length: Optional[int]) -> str:
        return f"[{length}]{elem}" if length is not None else f"[]{elem}"


class JavaStrategy(LanguageStrategy):
    lang = Lang.JAVA
    keywords = _JAVA_KEYWORDS
    hash_type = "Hash"
    # No way to pass arbitrary objects across the mobile binding boundary.
    supports_structs = False

    _NAMED_SIZE = {8: "byte", 16: "short", 32: "int", 64: "long"}

    def normalize_method(self, name: str) -> str:
        return self.escape(decapitalise(name))

    def normalize_field(self, name: str) -> str:
        return self.escape(decapitalise(name))

    def bind_basic(self, kind: TypeRef) -> str:
        k = kind.kind
        if k == "address":
            return "Address"
        if k == "uint":
            # gomobile has no unsigned integers
            return "BigInt"
        if k == "int":
            return self._NAMED_SIZE.get(kind.bits or 256, "BigInt")
        if k in ("bytes", "function"):
            return "byte[]"
        if k == "bool":
            return "boolean"
        if k == "string":
            return "String"
        raise self._unsupported(kind)

    def bind_array(self, elem: str, length: Optional[int]) -> str:
        return f"{elem}[]"


class PythonStrategy(LanguageStrategy):
    lang = Lang.PYTHON
    keywords = _PY_KEYWORDS
    hash_type = "bytes"

    def normalize_method(self, name: str) -> str:
        return self.escape(to_snake_case(name))

    def normalize_field(self, name: str) -> str:
        return self.escape(to_snake_case(name))

    def bind_basic(self, kind: TypeRef) -> str:
        k = kind.kind
        if k in ("uint", "int"):
            return "int"
        if k == "bool":
            return "bool"
        if k in ("string", "address"):
            return "str"
        if k in ("bytes", "function"):
            return "bytes"
        raise self._unsupported(kind)

    def bind_array(self, elem: str, length: Optional[int]) -> str:
        return f"list[{elem}]"


_STRATEGIES: Dict[Lang, LanguageStrategy] = {
    Lang.GO: GoStrategy(),
    Lang.JAVA: JavaStrategy(),
    Lang.PYTHON: PythonStrategy(),
}


def strategy_for(lang: "Lang | str") -> LanguageStrategy:
    return _STRATEGIES[Lang.parse(lang)]


def bind_type(kind: TypeRef, structs: Mapping[str, Struct], lang: "Lang | str") -> str:
    return strategy_for(lang).bind_type(kind, structs)


def bind_topic_type(kind: TypeRef, structs: Mapping[str, Struct], lang: "Lang | str") -> str:
    return strategy_for(lang).bind_topic_type(kind, structs)
