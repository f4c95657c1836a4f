import logging
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import click
import typer
from rich.console import Console
from rich.markup import escape

from ..collaborators import RemainDetailsLookup, StaticDictionary
from ..comms import make_codec, make_dictionary, make_encryption, make_global_info, make_validator
from ..config import AppConfig
from ..envelope.codec import PLAIN_TEXT
from ..errors import EfrisError, ValidationError
from ..schemas.registry import default_registry
from ..schemas.rules import Direction
from ..utils import dumps, load_json_file
from ..validation.validator import Validator
from .batch import (
    GOODS_BATCH,
    INVOICE_BATCH,
    STOCK_MAINTAIN,
    process_goods_batch,
    process_invoice_batch,
    process_stock_batch,
)
from .report import render_batch, render_violations

app = typer.Typer()

logger = logging.getLogger(__name__)
console = Console()


def _fail(message: str) -> NoReturn:
    console.print(f"[bold red]Error: {escape(message)}[/bold red]")
    raise typer.Exit(code=1)


def _config() -> AppConfig:
    return click.get_current_context().obj


def _read_json(path: Path):
    try:
        return load_json_file(path)
    except (OSError, ValueError) as exc:
        _fail(f"cannot read {path}: {exc}")


@app.command(name="validate")
def messages_validate(
    payload: Annotated[Path, typer.Argument(help="JSON file holding the message content")],
    interface_code: Annotated[str, typer.Option("--interface", "-i", help="Interface code, e.g. T109")],
    direction: Annotated[Direction, typer.Option("--direction", "-d", help="Message direction")] = Direction.REQUEST,
    dictionary: Annotated[
        Optional[Path], typer.Option("--dictionary", help="T115 system dictionary response (JSON)")
    ] = None,
    commodity_categories: Annotated[
        Optional[Path], typer.Option("--commodity-categories", help="T123 commodity category response (JSON)")
    ] = None,
    excise_duties: Annotated[
        Optional[Path], typer.Option("--excise-duties", help="T125 excise duty response (JSON)")
    ] = None,
    remain_details: Annotated[
        Optional[Path], typer.Option("--remain-details", help="T186 invoice remain details response (JSON)")
    ] = None,
) -> None:
    """Validate a message content against its interface schema."""
    config = _config()
    logger.debug(f"validate {payload} as {interface_code} {direction.value}")
    document = _read_json(payload)

    try:
        descriptor = default_registry().lookup(interface_code, direction)
        tables = make_dictionary(config)
        extra = []
        if dictionary is not None:
            extra.append(StaticDictionary.from_system_dictionary(_read_json(dictionary)))
        if commodity_categories is not None:
            extra.append(StaticDictionary.from_commodity_categories(_read_json(commodity_categories)))
        if excise_duties is not None:
            extra.append(StaticDictionary.from_excise_duties(_read_json(excise_duties)))
        if extra:
            tables = (tables or StaticDictionary()).merged(*extra)
        originals = None
        if remain_details is not None:
            originals = RemainDetailsLookup.from_remain_details(_read_json(remain_details))
    except (EfrisError, OSError, ValueError) as exc:
        _fail(str(exc))

    validator = Validator(dictionary=tables, originals=originals)
    context = make_global_info(config, interface_code).as_context()
    result = validator.validate(document, descriptor, context)
    if not result.ok:
        render_violations(result.violations, title=f"{interface_code} {direction.value}", console=console)
        raise typer.Exit(code=1)

    console.print(f"[green]{interface_code} {direction.value} is valid.[/green]")


@app.command(name="encode")
def messages_encode(
    payload: Annotated[Path, typer.Argument(help="JSON file holding the message content")],
    interface_code: Annotated[str, typer.Option("--interface", "-i", help="Interface code, e.g. T109")],
    plain: Annotated[bool, typer.Option("--plain", help="Do not encrypt or compress the content")] = False,
) -> None:
    """Wrap a message content into an envelope and print it."""
    config = _config()
    document = _read_json(payload)
    encryption = PLAIN_TEXT if plain else make_encryption(config)

    try:
        envelope = make_codec(config).encode(make_global_info(config, interface_code), document, encryption)
    except EfrisError as exc:
        _fail(exc.message)

    typer.echo(envelope)


@app.command(name="decode")
def messages_decode(
    envelope: Annotated[Path, typer.Argument(help="File holding the envelope JSON")],
) -> None:
    """Decode an envelope and print its globalInfo, returnStateInfo and content."""
    config = _config()
    try:
        decoded = make_codec(config).decode(envelope.read_bytes())
    except OSError as exc:
        _fail(f"cannot read {envelope}: {exc}")
    except EfrisError as exc:
        _fail(exc.message)

    console.print_json(dumps(decoded.global_info.to_wire()))
    console.print_json(dumps(decoded.return_state.to_wire()))
    if decoded.content is None:
        console.print("[yellow]Empty content.[/yellow]")
    else:
        console.print_json(dumps(decoded.content))


@app.command(name="batch")
def messages_batch(
    items: Annotated[Path, typer.Argument(help="T129 or T130 JSON array, or a T131 request object")],
    interface_code: Annotated[str, typer.Option("--interface", "-i", help="T129, T130 or T131")],
    failures_only: Annotated[
        bool, typer.Option("--failures-only", help="T130/T131: report only the items that failed")
    ] = False,
) -> None:
    """Run a batch through per-item validation and report each item."""
    config = _config()
    if interface_code not in (INVOICE_BATCH, GOODS_BATCH, STOCK_MAINTAIN):
        _fail(f"{interface_code} is not a batch interface, use {INVOICE_BATCH}, {GOODS_BATCH} or {STOCK_MAINTAIN}")

    document = _read_json(items)
    if interface_code == STOCK_MAINTAIN and not isinstance(document, dict):
        _fail(f"{items} must hold a JSON object")
    if interface_code != STOCK_MAINTAIN and not isinstance(document, list):
        _fail(f"{items} must hold a JSON array")

    context = make_global_info(config, interface_code).as_context()
    try:
        validator = make_validator(config)
    except (OSError, ValueError) as exc:
        _fail(f"cannot load the system dictionary: {exc}")

    if interface_code == INVOICE_BATCH:
        results = process_invoice_batch(document, validator=validator, context=context)
    elif interface_code == GOODS_BATCH:
        results = process_goods_batch(document, failures_only=failures_only, validator=validator, context=context)
    else:
        try:
            results = process_stock_batch(document, failures_only=failures_only, validator=validator, context=context)
        except ValidationError as exc:
            render_violations(exc.violations, title=f"{interface_code} request", console=console)
            raise typer.Exit(code=1)

    render_batch(results, title=f"{interface_code} results", console=console)
    if not all(result.ok for result in results):
        raise typer.Exit(code=1)
