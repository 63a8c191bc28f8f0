"""
Typed error classes for solgen.

Every compiler entry point either returns a populated descriptor or raises one
of these. Callers that only care about "did this contract compile" can catch
the base `SolgenError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

__all__ = [
    "SolgenError",
    "MalformedABI",
    "StructDepthExceeded",
    "UnsupportedLanguageFeature",
    "UnsupportedType",
    "DuplicateMember",
    "ConfigError",
]


class SolgenError(Exception):
    """Base class for all solgen errors."""


@dataclass(slots=True)
class MalformedABI(SolgenError):
    """
    Raised when ABI text does not parse as a valid contract ABI.

    Typical causes: invalid JSON, schema violations, unknown entry kinds,
    unparseable type strings.
    """

    message: str
    member: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        where = f" [member={self.member}]" if self.member else ""
        return f"MalformedABI{where}: {self.message}"


@dataclass(slots=True)
class StructDepthExceeded(MalformedABI):
    """Raised when tuple nesting exceeds the resolver's depth limit."""

    depth: int = 0

    def __str__(self) -> str:  # pragma: no cover - trivial
        where = f" [member={self.member}]" if self.member else ""
        return f"StructDepthExceeded{where} depth={self.depth}: {self.message}"


@dataclass(slots=True)
class UnsupportedLanguageFeature(SolgenError):
    """
    Raised when the ABI needs something the target language binding cannot
    express (e.g. tuple arguments for Java).
    """

    message: str
    language: Optional[str] = None
    feature: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        bits = []
        if self.language:
            bits.append(f"lang={self.language}")
        if self.feature:
            bits.append(f"feature={self.feature}")
        where = (" [" + ", ".join(bits) + "]") if bits else ""
        return f"UnsupportedLanguageFeature{where}: {self.message}"


@dataclass(slots=True)
class UnsupportedType(SolgenError):
    """Raised when an ABI type has no host-language mapping."""

    message: str
    type_name: Optional[str] = None
    language: Optional[str] = None
    member: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        bits = []
        if self.type_name:
            bits.append(f"type={self.type_name}")
        if self.language:
            bits.append(f"lang={self.language}")
        if self.member:
            bits.append(f"member={self.member}")
        where = (" [" + ", ".join(bits) + "]") if bits else ""
        return f"UnsupportedType{where}: {self.message}"


@dataclass(slots=True)
class DuplicateMember(SolgenError):
    """
    Raised when two ABI members (or two generated structs) would end up under
    the same key or name.
    """

    message: str
    kind: Optional[str] = None
    name: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        bits = []
        if self.kind:
            bits.append(f"kind={self.kind}")
        if self.name:
            bits.append(f"name={self.name}")
        where = (" [" + ", ".join(bits) + "]") if bits else ""
        return f"DuplicateMember{where}: {self.message}"


@dataclass(slots=True)
class ConfigError(SolgenError):
    """Raised for missing or unreadable configuration, option or deployment files."""

    message: str
    key: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        where = f" [{self.key}]" if self.key else ""
        return f"ConfigError{where}: {self.message}"
