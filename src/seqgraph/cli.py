"""CLI entry point for seqgraph."""

from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from seqgraph.config.loader import load_config
from seqgraph.graph import GraphPaths
from seqgraph.models.config import Configuration
from seqgraph.models.snapshot import PageSnapshot
from seqgraph.outline.block import Block
from seqgraph.outline.todo import TodoState, filter_blocks_by_todo_state, get_todo_blocks
from seqgraph.outline.tree import parse_document
from seqgraph.services.batch import GraphResult, parse_directory
from seqgraph.services.cache import PageCache, graph_cache_name
from seqgraph.services.editor import GraphSession
from seqgraph.services.exceptions import PageNotFoundError
from seqgraph.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)
console = Console()

TASK_STATES = [state.name for state in TodoState if state is not TodoState.NONE]


def load_configuration(config_path: Optional[Path]) -> Configuration:
    """
    Load configuration, converting failures into click errors.

    Raises:
        click.ClickException: If config is missing or validation fails
    """
    try:
        config = load_config(config_path)
        logger.info("config_loaded", path=str(config_path) if config_path else None)
        return config
    except FileNotFoundError as e:
        logger.error("config_not_found", path=str(config_path) if config_path else None)
        raise click.ClickException(str(e))
    except ValueError as e:
        # pydantic.ValidationError is a ValueError
        logger.error("config_validation_error", error=str(e))
        raise click.ClickException(f"Configuration validation failed:\n{e}")


def open_graph(ctx: click.Context, graph_path: Optional[Path]) -> GraphSession:
    """
    Parse the graph named on the command line, or the configured one.

    An explicit ``--graph`` is parsed single-threaded without the page cache;
    the configured graph uses the configured worker count and cache.
    """
    workers = 1
    cache = None

    if graph_path is None:
        config = load_configuration(ctx.obj.get("config_path"))
        graph_path = Path(config.graph.path)
        workers = config.parsing.workers
        if config.cache.enabled:
            cache_file = config.cache.cache_dir() / "pages" / graph_cache_name(graph_path)
            cache = PageCache(cache_file, graph_path=graph_path)

    try:
        graph = GraphPaths(graph_path)
    except ValueError as e:
        raise click.ClickException(str(e))

    result: GraphResult = parse_directory(graph, workers=workers, cache=cache)
    for error in result.errors:
        click.echo(f"Warning: {error}", err=True)

    return GraphSession.from_result(result, graph=graph)


def build_tree(label: Text, blocks: list[Block]) -> Tree:
    """Render a block forest as a rich Tree."""
    tree = Tree(label)

    def add(node: Tree, block: Block) -> None:
        branch = node.add(Text(block.content.replace("\n", " / ") or "(empty)"))
        for child in block.children:
            add(branch, child)

    for block in blocks:
        add(tree, block)
    return tree


graph_option = click.option(
    "--graph",
    "graph_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Graph directory (default: graph.path from the config file)",
)


@click.group()
@click.version_option(version="0.1.0", prog_name="seqgraph")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Config file (default: ~/.config/seqgraph/config.yaml)",
)
@click.option("--verbose", "-v", is_flag=True, help="Log at DEBUG level")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool):
    """seqgraph: Parse outline notes, follow page references and list tasks."""
    configure_logging(level="DEBUG" if verbose else None)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Print the parsed page as JSON")
def parse(file: Path, as_json: bool):
    """
    Parse a single outline document and show its block tree.

    Examples:
        seqgraph parse pages/project-x.md
        seqgraph parse pages/project-x.md --json
    """
    logger.info("parse_command_started", path=str(file))

    try:
        text = file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise click.ClickException(f"error reading file ({e}): {file}")

    parsed = parse_document(text, name=file.stem)
    page = parsed.page

    if as_json:
        click.echo(PageSnapshot.from_page(page).model_dump_json(indent=2))
    else:
        label = Text(page.page_name, style="bold")
        console.print(build_tree(label, page.blocks))
        click.echo(f"{len(page.all_blocks)} block(s)")

    for issue in parsed.errors:
        click.echo(f"Warning: {issue}", err=True)

    logger.info("parse_command_completed", blocks=len(page.all_blocks), issues=len(parsed.errors))


@cli.command()
@click.argument("page")
@graph_option
@click.pass_context
def backlinks(ctx: click.Context, page: str, graph_path: Optional[Path]):
    """
    List the blocks that reference PAGE.

    Examples:
        seqgraph backlinks "Project X"
        seqgraph backlinks "Project X" --graph ~/notes
    """
    session = open_graph(ctx, graph_path)
    references = session.backlinks.get_backlinks(page)

    if not references:
        click.echo(f"No backlinks to {page}")
        return

    for source in sorted(references):
        try:
            source_page = session.get_page(source)
        except PageNotFoundError:
            source_page = None

        click.echo(f"{source}:")
        for ref in references[source]:
            block = source_page.find_block(ref.block_id) if source_page else None
            content = block.content.replace("\n", " / ") if block else ref.block_id
            click.echo(f"  - {content}")

    logger.info("backlinks_listed", page=page, sources=len(references))


@cli.command()
@graph_option
@click.pass_context
def orphans(ctx: click.Context, graph_path: Optional[Path]):
    """List pages that neither reference nor are referenced by another page."""
    session = open_graph(ctx, graph_path)

    found = [name for name in sorted(session.pages) if session.backlinks.is_orphan(name)]
    for name in found:
        click.echo(name)

    if not found:
        click.echo("No orphan pages")

    logger.info("orphans_listed", count=len(found))


@cli.command()
@click.option(
    "--state",
    type=click.Choice(TASK_STATES, case_sensitive=False),
    default=None,
    help="Only list tasks in this state",
)
@graph_option
@click.pass_context
def tasks(ctx: click.Context, state: Optional[str], graph_path: Optional[Path]):
    """
    List task blocks (TODO/DOING/... keywords and checkboxes) across the graph.

    Examples:
        seqgraph tasks
        seqgraph tasks --state DOING
    """
    session = open_graph(ctx, graph_path)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Page")
    table.add_column("State")
    table.add_column("Task")

    count = 0
    for name in sorted(session.pages):
        page = session.pages[name]
        if state is None:
            blocks = get_todo_blocks(page.blocks)
        else:
            blocks = filter_blocks_by_todo_state(page.blocks, TodoState[state.upper()])

        for block in blocks:
            marker = block.todo.state.value or block.todo.checkbox.value
            table.add_row(Text(name), Text(marker), Text(block.content.split("\n")[0]))
            count += 1

    if count == 0:
        click.echo("No tasks found")
        return

    console.print(table)
    logger.info("tasks_listed", count=count, state=state)


if __name__ == "__main__":
    cli()
