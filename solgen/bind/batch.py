"""
Compile many contracts in one go.

Each contract is compiled independently: a failure aborts that contract only
and is recorded in `BatchResult.failures`, while the rest carry on. With
`max_workers > 1` compilations run on a thread pool; they share no state.
"""

from __future__ import annotations

import concurrent.futures
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple, Union

from .. import logging as slog
from ..errors import SolgenError
from .abi import RawAbi
from .language import Lang
from .model import Contract, Customs
from .parser import load_contract
from .structs import DEFAULT_MAX_DEPTH

__all__ = ["BatchResult", "compile_all"]

log = slog.get_logger("solgen.bind.batch")


@dataclass
class BatchResult:
    contracts: Dict[str, Contract] = field(default_factory=dict)
    failures: Dict[str, SolgenError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


def compile_all(
    abis: Mapping[str, RawAbi],
    customs: Optional[Mapping[str, Customs]] = None,
    lang: Union[Lang, str] = Lang.GO,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_workers: int = 1,
) -> BatchResult:
    """
    Compile every `name → raw ABI` entry. Contracts with no customs entry get
    empty customs (no method exposed), matching single-contract behaviour.
    """
    lang = Lang.parse(lang)
    customs = customs or {}
    names = list(abis)

    def work(name: str) -> Tuple[str, Union[Contract, SolgenError]]:
        try:
            return name, load_contract(
                abis[name], customs.get(name), lang, max_depth=max_depth
            )
        except SolgenError as e:
            return name, e

    results: List[Tuple[str, Union[Contract, SolgenError]]] = []
    if max_workers > 1 and len(names) > 1:
        with concurrent.futures.ThreadPoolExecutor(
            max_workers=min(max_workers, len(names))
        ) as pool:
            for entry in pool.map(work, names):
                results.append(entry)
    else:
        results = [work(n) for n in names]

    out = BatchResult()
    for name, res in results:
        if isinstance(res, Contract):
            out.contracts[name] = res
            log.debug(
                "compiled contract",
                extra={
                    "contract": name,
                    "calls": len(res.calls),
                    "transacts": len(res.transacts),
                    "events": len(res.events),
                    "structs": len(res.structs),
                },
            )
        else:
            out.failures[name] = res
            log.error("skipping contract: %s", res, extra={"contract": name})
    return out
