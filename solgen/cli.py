"""
solgen.cli
==========

`solgen`: compile contract ABIs into binding IR (JSON) for a target language.

Usage
-----
    $ solgen compile Token.abi.json --customs options.json --contract Token --lang go
    $ solgen compile Token.abi.json --expose-all --out token.json
    $ solgen run --deployment deployments.json --opt options.json --out ./build
    $ solgen version

`compile` handles one ABI file ("-" reads stdin) and prints the contract
descriptor. `run` compiles every contract of a deployment file into
`<out>/<lang>/<snake_name>.json`; a contract that fails is logged and skipped,
and the command exits 1 once all others are written.

Configuration
-------------
Flags win over environment variables (see `solgen.config.SolgenConfig`):
SOLGEN_DEPLOYMENT, SOLGEN_OPTIONS, SOLGEN_OUT, SOLGEN_LANG, SOLGEN_MAX_DEPTH,
SOLGEN_WORKERS, SOLGEN_LOG_LEVEL, SOLGEN_LOG_FORMAT.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Optional

import typer

from . import logging as slog
from .bind import Customs, compile_all, load_contract, parse_abi
from .bind.language import to_snake_case
from .config import SolgenConfig, load_customs, load_deployments, load_options
from .errors import ConfigError, SolgenError
from .version import __version__

app = typer.Typer(
    name="solgen",
    help="Compile contract ABIs into typed binding IR.",
    no_args_is_help=True,
    add_completion=False,
)

__all__ = ["app", "main", "run_cli"]

log = slog.get_logger("solgen.cli")


def _print_json(obj: Any, indent: Optional[int] = 2) -> None:
    typer.echo(json.dumps(obj, indent=indent, ensure_ascii=False))


def _fail(e: Exception) -> None:
    typer.echo(f"error: {e}", err=True)
    raise typer.Exit(code=1)


def _read_abi(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    p = Path(path).expanduser()
    try:
        return p.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"cannot read ABI file {p}: {e}", key="abi") from e


def _read_customs(path: Optional[str], contract: Optional[str]) -> Customs:
    if not path:
        return Customs()
    if contract:
        return load_options(path).get(contract, Customs())
    return load_customs(path)


@app.callback()
def _root(
    ctx: typer.Context,
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Minimum log level.", envvar="SOLGEN_LOG_LEVEL"
    ),
    log_format: Optional[str] = typer.Option(
        None, "--log-format", help="json | text (default: auto).", envvar="SOLGEN_LOG_FORMAT"
    ),
) -> None:
    """Resolve the effective configuration and set up logging."""
    try:
        cfg = SolgenConfig.with_overrides(
            SolgenConfig.from_env(), log_level=log_level, log_format=log_format
        )
    except ConfigError as e:
        _fail(e)
    fmt = (cfg.log_format or "").lower()
    slog.configure(json={"json": True, "text": False}.get(fmt), level=cfg.log_level)
    ctx.obj = cfg


@app.command("version")
def version() -> None:
    """Print the solgen version."""
    typer.echo(f"solgen {__version__}")


@app.command("compile")
def compile_cmd(
    ctx: typer.Context,
    abi_path: str = typer.Argument(..., help="ABI JSON file ('-' for stdin)."),
    customs_path: Optional[str] = typer.Option(
        None, "--customs", help="Customs file (JSON or YAML), or an option file when --contract is given."
    ),
    contract: Optional[str] = typer.Option(
        None, "--contract", help="Contract name to select from an option file."
    ),
    lang: Optional[str] = typer.Option(None, "--lang", help="Target language: go | java | python."),
    max_depth: Optional[int] = typer.Option(None, "--max-depth", help="Tuple nesting limit."),
    out: Optional[str] = typer.Option(None, "--out", help="Write the descriptor here instead of stdout."),
    expose_all: bool = typer.Option(
        False, "--expose-all", help="Expose every method regardless of customs."
    ),
) -> None:
    """Compile one ABI into a contract descriptor (JSON)."""
    try:
        cfg = SolgenConfig.with_overrides(ctx.obj, language=lang, max_struct_depth=max_depth)
        raw = _read_abi(abi_path)
        customs = _read_customs(customs_path, contract)
        if expose_all:
            methods = parse_abi(raw, max_depth=cfg.max_struct_depth).methods
            customs = Customs.expose_all(list(methods), structs=customs.structs)
        descriptor = load_contract(raw, customs, cfg.lang, max_depth=cfg.max_struct_depth)
    except SolgenError as e:
        _fail(e)

    if out:
        p = Path(out).expanduser()
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(descriptor.to_dict(), indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        typer.echo(f"wrote {p}")
    else:
        _print_json(descriptor.to_dict())


@app.command("run")
def run_cmd(
    ctx: typer.Context,
    deployment: Optional[str] = typer.Option(None, "--deployment", help="Deployment file (contract → ABI)."),
    opt: Optional[str] = typer.Option(None, "--opt", help="Option file (contract → customs)."),
    out: Optional[str] = typer.Option(None, "--out", help="Output directory (default ./build)."),
    lang: Optional[str] = typer.Option(None, "--lang", help="Target language: go | java | python."),
    workers: Optional[int] = typer.Option(None, "--workers", help="Compile contracts in parallel."),
) -> None:
    """Compile every contract of a deployment file, skipping failures."""
    try:
        cfg = SolgenConfig.with_overrides(
            ctx.obj,
            deployment_path=deployment,
            option_path=opt,
            output_path=out,
            language=lang,
            workers=workers,
        )
        deployments = load_deployments(cfg.require_deployment())
        options = load_options(cfg.option_path)
    except ConfigError as e:
        _fail(e)

    out_dir = Path(cfg.output_path).expanduser() / cfg.lang.value
    out_dir.mkdir(parents=True, exist_ok=True)

    with slog.context_scope(lang=cfg.lang.value):
        result = compile_all(
            deployments,
            options,
            cfg.lang,
            max_depth=cfg.max_struct_depth,
            max_workers=cfg.workers,
        )
        failed = sorted(result.failures)
        written = 0
        for name, descriptor in result.contracts.items():
            path = out_dir / f"{to_snake_case(name)}.json"
            try:
                path.write_text(
                    json.dumps(descriptor.to_dict(), indent=2, ensure_ascii=False) + "\n",
                    encoding="utf-8",
                )
            except OSError as e:
                log.error("write failed: %s", e, extra={"contract": name, "path": str(path)})
                failed.append(name)
                continue
            written += 1
            log.info("wrote binding IR", extra={"contract": name, "path": str(path)})

    _print_json(
        {"compiled": written, "failed": failed},
        indent=None,
    )
    if failed:
        raise typer.Exit(code=1)


# --- Entrypoints --------------------------------------------------------------


def main(argv: Optional[list[str]] = None) -> int:
    """
    Run the CLI. Returns an integer exit code.
    """
    try:
        rv = app(prog_name="solgen", standalone_mode=False, args=argv)
        return rv if isinstance(rv, int) else 0
    except typer.Exit as e:
        return int(e.exit_code)
    except Exception as e:
        typer.echo(f"error: {e}", err=True)
        return 1


def run_cli() -> None:
    """Console-script entrypoint."""
    sys.exit(main())


if __name__ == "__main__":  # pragma: no cover
    run_cli()
