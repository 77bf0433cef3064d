"""CLI entrypoint for vault-scout."""

import logging
from collections.abc import Callable
from pathlib import Path

import rich_click as click

from vault_scout import __version__
from vault_scout.analyze.controllers import AnalyzeCliController, AnalyzeCommand
from vault_scout.orchestrator.controllers import LlmSeedDemoCommand, OrchestratorCliController
from vault_scout.search.controllers import SearchCliController, SearchCommand
from vault_scout.summarize.controllers import SummarizeCliController, SummarizeCommand

click.rich_click.USE_MARKDOWN = True
SEARCH_CONTROLLER = SearchCliController()
SUMMARIZE_CONTROLLER = SummarizeCliController()
ANALYZE_CONTROLLER = AnalyzeCliController()
ORCHESTRATOR_CONTROLLER = OrchestratorCliController()

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

dry_run_option = click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Use the offline echo backend instead of calling the inference endpoint.",
)


@click.group()
@click.version_option(version=__version__, prog_name="vault-scout")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging level for diagnostic output on stderr.",
)
def vault_scout(log_level: str) -> None:
    """Vault summarization, relevance search and block analysis on a priority LLM queue."""

    logging.basicConfig(level=log_level.upper(), format=LOG_FORMAT)


@vault_scout.command("search")
@click.argument("query")
@click.argument("vault_root", type=click.Path(path_type=Path))
@click.argument("max_depth", type=click.IntRange(min=0), required=False)
@click.argument("max_results", type=click.IntRange(min=1), required=False)
@click.argument("model", required=False)
@dry_run_option
def search(
    query: str,
    vault_root: Path,
    max_depth: int | None,
    max_results: int | None,
    model: str | None,
    dry_run: bool,
) -> None:
    """Search a vault for notes relevant to QUERY, letting the model prune folders.

    MAX_DEPTH defaults to 6, MAX_RESULTS to 10.
    """

    _run_command(
        lambda: SEARCH_CONTROLLER.search(
            SearchCommand(
                query=query,
                vault_root=vault_root,
                max_depth=max_depth,
                max_results=max_results,
                model=model,
                dry_run=dry_run,
            ),
            on_progress=click.echo,
        ),
    )


@vault_scout.command("summarize")
@click.argument("vault_path", type=click.Path(path_type=Path))
@click.argument("output_path", type=click.Path(path_type=Path))
@click.argument("note_sentences", type=click.IntRange(min=1), required=False)
@click.argument("folder_sentences", type=click.IntRange(min=1), required=False)
@click.argument("root_sentences", type=click.IntRange(min=1), required=False)
@click.argument("model", required=False)
@dry_run_option
def summarize(  # noqa: PLR0913
    vault_path: Path,
    output_path: Path,
    note_sentences: int | None,
    folder_sentences: int | None,
    root_sentences: int | None,
    model: str | None,
    dry_run: bool,
) -> None:
    """Summarize every note and folder bottom-up and write the vault copy to OUTPUT_PATH."""

    _run_command(
        lambda: SUMMARIZE_CONTROLLER.summarize(
            SummarizeCommand(
                vault_path=vault_path,
                output_path=output_path,
                note_sentences=note_sentences,
                folder_sentences=folder_sentences,
                root_sentences=root_sentences,
                model=model,
                dry_run=dry_run,
            ),
            on_progress=click.echo,
        ),
    )


@vault_scout.command("analyze")
@click.argument("markdown_file", type=click.Path(path_type=Path))
@click.argument("output_csv", type=click.Path(path_type=Path))
@click.argument("model", required=False)
@dry_run_option
def analyze(markdown_file: Path, output_csv: Path, model: str | None, dry_run: bool) -> None:
    """Split MARKDOWN_FILE into blocks, analyze each and write OUTPUT_CSV."""

    _run_command(
        lambda: ANALYZE_CONTROLLER.analyze(
            AnalyzeCommand(
                markdown_file=markdown_file,
                output_csv=output_csv,
                model=model,
                dry_run=dry_run,
            ),
            on_progress=click.echo,
        ),
    )


@vault_scout.group()
def llm() -> None:
    """Job queue commands."""


@llm.command("seed-demo")
@click.option("--model", default=None, help="Model id; defaults to VAULT_SCOUT_MODEL.")
@click.option(
    "--timeout-seconds",
    type=click.FloatRange(min=0, min_open=True),
    default=60.0,
    show_default=True,
    help="Hard timeout per demo job.",
)
@dry_run_option
def llm_seed_demo(model: str | None, timeout_seconds: float, dry_run: bool) -> None:
    """Enqueue the demo priority mix and drain it with the embedded worker."""

    _run_command(
        lambda: ORCHESTRATOR_CONTROLLER.seed_demo(
            LlmSeedDemoCommand(
                model=model,
                timeout_seconds=timeout_seconds,
                dry_run=dry_run,
            ),
        ),
    )


def _run_command(action: Callable[[], list[str]]) -> None:
    try:
        lines = action()
    except (OSError, ValueError) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    vault_scout()
