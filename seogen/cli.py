"""CLI entry-point: create projects and run the pipelines in the foreground."""

from decimal import Decimal

import typer
from rich.console import Console
from rich.table import Table

from seogen.models import (
    Article,
    Competitor,
    GenerationTarget,
    Keyword,
    KeywordResearch,
    Project,
    User,
)
from seogen.pipelines import article as article_pipeline
from seogen.pipelines import keyword_research as research_pipeline
from seogen.pipelines import state
from seogen.pipelines.queue import JobQueue
from seogen.progress import format_cost, get_registry, topic_for
from seogen.stages.competitors import normalize_domain
from seogen.store import EntityNotFoundError, get_store, require

app = typer.Typer(help="SEO keyword research and article generation")


class _ForegroundQueue:
    """Collects what the retry operations enqueue so the CLI can run it itself."""

    def __init__(self) -> None:
        self.jobs: list[tuple[str, str]] = []

    def enqueue(self, name: str, entity_id: str) -> None:
        self.jobs.append((name, entity_id))


def _local_queue() -> JobQueue:
    queue = JobQueue(max_workers=1)
    queue.register(article_pipeline.PIPELINE_NAME, article_pipeline.run_article_generation)
    queue.register(research_pipeline.PIPELINE_NAME, research_pipeline.run_keyword_research)
    return queue


def _run_with_progress(console: Console, pipeline_name: str, target: GenerationTarget) -> bool:
    """Run one pipeline while printing its progress events. True if it completed."""
    registry = get_registry()
    sub = registry.subscribe(topic_for(target))
    queue = _local_queue()
    try:
        future = queue.enqueue(pipeline_name, target.id)
        while True:
            event = sub.get(timeout=0.2)
            if event is not None:
                indent = "  " * int(event.get("indent") or 0)
                console.print(f"{indent}{event.get('progress_message') or ''}")
                continue
            if future.done():
                break
    finally:
        registry.unsubscribe(sub)
        queue.shutdown()

    if future.exception() is not None:
        console.print(f"[red]Error: {future.exception()}[/red]")
        return False
    final = get_store().get(type(target), target.id)
    return final is not None and final.status_value == "completed"


@app.command("create-project")
def create_project(
    domain: str = typer.Argument(..., help="Site domain, e.g. example.com"),
    name: str = typer.Option(None, help="Project name (default: the domain)"),
    user_id: str = typer.Option(None, "--user-id", help="Existing user id (default: create a user)"),
    email: str = typer.Option("", help="Email for a newly created user"),
    niche: str = typer.Option(None, help="Niche or industry"),
    description: str = typer.Option(None, help="What the site is about"),
    seed: list[str] = typer.Option(default=[], help="Seed keyword (repeatable)"),
    competitor: list[str] = typer.Option(default=[], help="Competitor domain (repeatable)"),
):
    """Create a project (and its owner when no --user-id is given)."""
    console = Console()
    store = get_store()
    if user_id:
        try:
            user = require(store, User, user_id)
        except EntityNotFoundError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)
    else:
        user = store.save(User(email=email))
        console.print(f"Created user {user.id}")

    competitors = []
    for c in competitor:
        normalized = normalize_domain(c)
        if normalized is None:
            console.print(f"[yellow]Skipping invalid competitor domain: {c}[/yellow]")
            continue
        competitors.append(Competitor(domain=normalized))

    project = store.save(Project(
        user_id=user.id,
        name=name or domain,
        domain=domain,
        niche=niche,
        description=description,
        seed_keywords=[s.strip() for s in seed if s.strip()],
        competitors=competitors,
    ))
    console.print(f"[green]Created project {project.id}[/green]")


@app.command()
def research(
    project_id: str = typer.Argument(..., help="Project id"),
):
    """Run keyword research for a project and print its progress."""
    console = Console()
    store = get_store()
    try:
        project = require(store, Project, project_id)
    except EntityNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    target = store.save(KeywordResearch(project_id=project.id))
    console.print(f"Keyword research {target.id}")
    if not _run_with_progress(console, research_pipeline.PIPELINE_NAME, target):
        raise typer.Exit(1)
    _print_keywords(console, store.list_children(Keyword, target.id))


@app.command("generate-article")
def generate_article(
    keyword_id: str = typer.Argument(..., help="Keyword id from a completed research"),
    words: int = typer.Option(2000, help="Target word count"),
):
    """Generate an article for a saved keyword and print its progress."""
    console = Console()
    store = get_store()
    try:
        keyword = require(store, Keyword, keyword_id)
        target = article_pipeline.create_article(store, keyword.id, target_word_count=words)
    except (EntityNotFoundError, article_pipeline.DuplicateArticleError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    console.print(f"Article {target.id} for '{keyword.keyword}'")
    if not _run_with_progress(console, article_pipeline.PIPELINE_NAME, target):
        raise typer.Exit(1)


@app.command()
def retry(
    entity_id: str = typer.Argument(..., help="Article or keyword research id"),
    regenerate: bool = typer.Option(False, "--regenerate", help="Articles: discard all previous output"),
):
    """Reset a finished article or keyword research and run it again."""
    console = Console()
    store = get_store()
    pending = _ForegroundQueue()
    try:
        if entity_id.startswith(f"{Article.id_prefix}_"):
            op = state.regenerate_article if regenerate else state.retry_article
            target = op(entity_id, store=store, job_queue=pending)
        elif entity_id.startswith(f"{KeywordResearch.id_prefix}_"):
            target = state.retry_keyword_research(entity_id, store=store, job_queue=pending)
        else:
            console.print(f"[red]Error: not an article or keyword research id: {entity_id}[/red]")
            raise typer.Exit(1)
    except (EntityNotFoundError, state.InvalidTransitionError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    for name, _ in pending.jobs:
        if not _run_with_progress(console, name, target):
            raise typer.Exit(1)


@app.command()
def show(
    entity_id: str = typer.Argument(..., help="Project, keyword research or article id"),
    content: bool = typer.Option(False, "--content", help="Articles: print the markdown body"),
):
    """Print the current state of an entity."""
    console = Console()
    store = get_store()
    for model in (Project, KeywordResearch, Article):
        if entity_id.startswith(f"{model.id_prefix}_"):
            entity = store.get(model, entity_id)
            break
    else:
        entity = None
    if entity is None:
        console.print(f"[red]Error: not found: {entity_id}[/red]")
        raise typer.Exit(1)

    if isinstance(entity, Project):
        console.print_json(entity.model_dump_json(exclude={"domain_analysis"}))
    elif isinstance(entity, KeywordResearch):
        _print_status(console, entity)
        for entry in entity.progress_log:
            console.print(f"{'  ' * entry.indent}{entry.message}")
        _print_keywords(console, store.list_children(Keyword, entity.id))
    else:
        _print_status(console, entity)
        if entity.title:
            console.print(f"[bold]{entity.title}[/bold]")
        if entity.word_count is not None:
            console.print(f"{entity.word_count} words")
        if entity.generation_cost is not None:
            console.print(f"Cost: {format_cost(Decimal(entity.generation_cost))}")
        if content and entity.content:
            console.print(entity.content)


def _print_status(console: Console, target: GenerationTarget) -> None:
    colour = {"completed": "green", "failed": "red"}.get(target.status_value, "yellow")
    console.print(f"[{colour}]{target.id}: {target.status_value}[/{colour}]")
    if target.error_message:
        console.print(f"[red]{target.error_message}[/red]")


def _print_keywords(console: Console, keywords: list[Keyword], limit: int = 25) -> None:
    if not keywords:
        return
    table = Table(title=f"Top keywords ({len(keywords)} saved)")
    table.add_column("Keyword")
    table.add_column("Volume", justify="right")
    table.add_column("Difficulty")
    table.add_column("Opportunity", justify="right")
    table.add_column("Intent")
    table.add_column("Id")
    for kw in sorted(keywords, key=lambda k: -(k.opportunity or 0))[:limit]:
        table.add_row(
            kw.keyword + (" ★" if kw.easy_win else ""),
            str(kw.volume or ""),
            f"{kw.difficulty_level} ({kw.difficulty})" if kw.difficulty is not None else "",
            str(kw.opportunity or ""),
            kw.intent or "",
            kw.id,
        )
    console.print(table)


if __name__ == "__main__":
    app()
