"""
CLI interface for LLM Pricing.

Lists model prices and calculates request costs from the OpenRouter catalog.
"""

import logging
import sys
from typing import List, Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from typer.core import TyperGroup

from llm_pricing.config.loader import Settings, load_settings
from llm_pricing.core.catalog import Model, format_price_per_million
from llm_pricing.core.errors import PricingError
from llm_pricing.core.pipeline import (
    CalculationResult,
    ListingResult,
    RunConfig,
    run,
    validate_config,
)
from llm_pricing.core.pricing import UsageScenario
from llm_pricing.core.sorting import SortKey, SortSpec, VALID_SORT_TOKENS, parse_sort
from llm_pricing.sdk.openrouter_client import OpenRouterClient

logger = logging.getLogger(__name__)

DEFAULT_COMMAND = "list"


class DefaultListGroup(TyperGroup):
    """Command group that hands unknown leading arguments to ``list``.

    ``llm-pricing sonnet`` and ``llm-pricing -v anthropic/`` behave like
    ``llm-pricing list sonnet`` and ``llm-pricing list -v anthropic/``.
    """

    def resolve_command(self, ctx, args):
        if args and self.get_command(ctx, args[0]) is None:
            args = [DEFAULT_COMMAND, *args]
        return super().resolve_command(ctx, args)


app = typer.Typer(
    cls=DefaultListGroup,
    help="Visualize OpenRouter model pricing and calculate request costs."
)
console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1
EXIT_CODE_NO_MATCH = 3  # calc matched no models

TTL_LABELS = {5: "5m", 60: "1h"}

FILTERS_HELP = "Filter models by id or name (e.g. 'anthropic/', 'sonnet')"
SORT_HELP = (
    f"Sort by {', '.join(VALID_SORT_TOKENS)} ('total' with calc only); "
    "a trailing '-' sorts descending"
)

# Failures reported as a one-line error with EXIT_CODE_FAIL
CLI_ERRORS = (PricingError, ValueError, FileNotFoundError, yaml.YAMLError)


def _configure_logging(level_name: str) -> None:
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        raise typer.BadParameter(f"Unknown log level: {level_name}", param_hint="--log-level")
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback(
    invoke_without_command=True,
    context_settings={"ignore_unknown_options": True}
)
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to a YAML settings file"
    ),
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
):
    """LLM Pricing CLI. Without a command, arguments and options go to 'list'."""
    _configure_logging(log_level)
    ctx.obj = {"config": config}
    if ctx.invoked_subcommand is None:
        _run_listing(ctx, filters=[], verbose=False, sort=None, descending=False)


@app.command("list")
def list_models(
    ctx: typer.Context,
    filters: Optional[List[str]] = typer.Argument(None, help=FILTERS_HELP),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show all model information grouped by provider"
    ),
    sort: Optional[str] = typer.Option(None, "--sort", "-s", help=SORT_HELP),
    descending: bool = typer.Option(
        False,
        "--desc",
        "-d",
        help="Sort in descending order"
    )
):
    """List models with pricing per 1M tokens (the default command)."""
    _run_listing(ctx, filters=filters or [], verbose=verbose, sort=sort, descending=descending)


@app.command()
def calc(
    ctx: typer.Context,
    input_tokens: int = typer.Argument(..., min=0, metavar="INPUT", help="Number of input tokens"),
    output_tokens: int = typer.Argument(..., min=0, metavar="OUTPUT", help="Number of output tokens"),
    filters: Optional[List[str]] = typer.Argument(None, help=FILTERS_HELP),
    cached: Optional[int] = typer.Option(
        None,
        "--cached",
        "-c",
        min=0,
        help="Number of cached input tokens (enables cache pricing)"
    ),
    ttl: Optional[int] = typer.Option(
        None,
        "--ttl",
        "-t",
        help="Cache TTL in minutes: 5 or 60 [default: 5]"
    ),
    sort: Optional[str] = typer.Option(None, "--sort", "-s", help=SORT_HELP),
    descending: bool = typer.Option(
        False,
        "--desc",
        "-d",
        help="Sort in descending order"
    )
):
    """Calculate the cost of a request against every matching model."""
    try:
        settings = _load_settings(ctx)
        scenario = UsageScenario(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cached_tokens=cached,
            ttl_minutes=settings.ttl if ttl is None else ttl,
        )
        run_config = RunConfig(
            filters=filters or [],
            sort=_resolve_sort(sort, descending, settings, calculating=True),
            scenario=scenario,
        )
    except CLI_ERRORS as e:
        _fail(e)

    _execute(settings, run_config)


def _run_listing(
    ctx: typer.Context,
    filters: List[str],
    verbose: bool,
    sort: Optional[str],
    descending: bool
) -> None:
    try:
        settings = _load_settings(ctx)
        run_config = RunConfig(
            filters=filters,
            verbose=verbose,
            sort=_resolve_sort(sort, descending, settings, calculating=False),
        )
    except CLI_ERRORS as e:
        _fail(e)

    _execute(settings, run_config)


def _execute(settings: Settings, run_config: RunConfig) -> None:
    """Validate, fetch, run the selected flow and display its result."""
    try:
        validate_config(run_config)
        models = _fetch_catalog(settings)
        result = run(models, run_config)
    except CLI_ERRORS as e:
        _fail(e)

    if isinstance(result, CalculationResult):
        if result.is_empty:
            err_console.print("No models found matching the filter", soft_wrap=True)
            err_console.print("Use 'llm-pricing list' to see available models", soft_wrap=True)
            sys.exit(EXIT_CODE_NO_MATCH)
        _display_calculation(result)
    elif run_config.verbose:
        _display_verbose_listing(result)
    else:
        _display_listing(result)
    sys.exit(EXIT_CODE_PASS)


def _fail(error: Exception) -> None:
    err_console.print(f"[red]Error:[/] {escape(str(error))}", soft_wrap=True)
    sys.exit(EXIT_CODE_FAIL)


def _load_settings(ctx: typer.Context) -> Settings:
    config_path = (ctx.obj or {}).get("config")
    return load_settings(config_path)


def _resolve_sort(
    token: Optional[str],
    descending: bool,
    settings: Settings,
    calculating: bool
) -> Optional[SortSpec]:
    """Combine the sort option with the configured default sort."""
    if token is not None:
        return parse_sort(token, descending or settings.descending)
    if settings.sort is None:
        return None

    spec = parse_sort(settings.sort, descending or settings.descending)
    if spec.key is SortKey.TOTAL and not calculating:
        logger.debug("Ignoring configured sort 'total' outside of calc")
        return None
    return spec


def _fetch_catalog(settings: Settings) -> List[Model]:
    client = OpenRouterClient(
        api_url=settings.api_url,
        timeout=settings.timeout,
        exclude=settings.exclude
    )
    return client.fetch_models()


def _format_cost(amount) -> str:
    """Format a currency amount with six decimals."""
    return f"${amount:.6f}"


def _display_listing(result: ListingResult) -> None:
    """Display prices per 1M tokens as a table."""
    if result.is_empty:
        return

    rows = []
    for model in result.models:
        pricing = model.pricing
        rows.append([
            model.id,
            format_price_per_million(pricing.prompt),
            format_price_per_million(pricing.completion),
            format_price_per_million(pricing.input_cache_read),
            format_price_per_million(pricing.input_cache_write),
        ])

    _print_table(["Model", "Input", "Output", "Cache Read", "Cache Write"], rows)


def _display_verbose_listing(result: ListingResult) -> None:
    """Display every model's details, grouped by provider."""
    for provider, models in result.groups.items():
        _print(f"\n=== {provider.upper()} ===")
        for model in models:
            _display_model_details(model)


def _display_model_details(model: Model) -> None:
    pricing = model.pricing
    _print(f"\nModel: {model.id}")
    if model.name is not None:
        _print(f"  Name: {model.name}")
    if model.description is not None:
        _print(f"  Description: {model.description}")

    _print("  Pricing:")
    _print(f"    Input: ${format_price_per_million(pricing.prompt)} per 1M tokens")
    _print(f"    Output: ${format_price_per_million(pricing.completion)} per 1M tokens")
    if pricing.input_cache_read is not None:
        _print(f"    Cache Read: ${format_price_per_million(pricing.input_cache_read)} per 1M tokens")
    if pricing.input_cache_write is not None:
        _print(f"    Cache Write: ${format_price_per_million(pricing.input_cache_write)} per 1M tokens")
    if pricing.request is not None:
        _print(f"    Per Request: ${pricing.request}")
    if pricing.image is not None:
        _print(f"    Image: ${pricing.image}")
    if pricing.web_search is not None:
        _print(f"    Web Search: ${pricing.web_search}")
    if pricing.internal_reasoning is not None:
        _print(f"    Reasoning: ${format_price_per_million(pricing.internal_reasoning)} per 1M tokens")

    if model.context_length is not None:
        _print(f"  Context Length: {model.context_length} tokens")

    arch = model.architecture
    if arch is not None:
        if arch.modality is not None:
            _print(f"  Modality: {arch.modality}")
        if arch.tokenizer is not None:
            _print(f"  Tokenizer: {arch.tokenizer}")
        if arch.instruct_type is not None:
            _print(f"  Instruct Type: {arch.instruct_type}")

    top_provider = model.top_provider
    if top_provider is not None:
        if top_provider.max_completion_tokens is not None:
            _print(f"  Max Completion Tokens: {top_provider.max_completion_tokens}")
        if top_provider.is_moderated is not None:
            _print(f"  Moderated: {str(top_provider.is_moderated).lower()}")


def _display_calculation(result: CalculationResult) -> None:
    """Display the cost breakdown of every priced model."""
    scenario = result.scenario
    cache_desc = ""
    if result.caching_requested:
        ttl_label = TTL_LABELS.get(scenario.ttl_minutes, f"{scenario.ttl_minutes}m")
        cache_desc = f" ({scenario.cached_tokens} cached, {ttl_label} TTL)"

    _print(f"Cost calculation: {scenario.input_tokens} input + {scenario.output_tokens} output{cache_desc}")
    _print("")

    headers = ["Model", "Input", "Output"]
    if result.caching_requested:
        headers += ["Cache Read", "Cache Write"]
    headers.append("Total")

    rows = []
    for row in result.rows:
        costs = row.breakdown
        cells = [row.model.id, _format_cost(costs.input_cost), _format_cost(costs.output_cost)]
        if result.caching_requested:
            cells += [_format_cost(costs.cache_read_cost), _format_cost(costs.cache_write_cost)]
        cells.append(_format_cost(costs.total_cost))
        rows.append(cells)

    _print_table(headers, rows)


def _print_table(headers: List[str], rows: List[List[str]]) -> None:
    """Print rows under headers, keeping every figure intact at any width.

    The model column folds onto extra lines when space runs out. Figure
    columns never shrink below their widest cell.
    """
    table = Table(show_edge=False, pad_edge=False)
    table.add_column(headers[0], overflow="fold")
    for index, header in enumerate(headers[1:], start=1):
        widest = max([len(header)] + [len(cells[index]) for cells in rows])
        table.add_column(header, no_wrap=True, min_width=widest)

    for cells in rows:
        table.add_row(escape(cells[0]), *cells[1:])

    # Lines wider than the console stay whole instead of being cut off
    console.print(table, crop=False)


def _print(text: str) -> None:
    console.print(text, markup=False, soft_wrap=True)


if __name__ == "__main__":
    app()
