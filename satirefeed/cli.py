"""
SatireFeed command line interface.

Usage:
    satirefeed --help                             # Show all commands
    satirefeed check-config                       # Validate configuration
    satirefeed test-provider --provider groq      # Test AI provider connectivity
    satirefeed process-feeds URL [URL ...]        # Generate posts for new feed items
    satirefeed process-url URL                    # Generate posts for one article
    satirefeed clear-history                      # Forget processed links
"""

import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .ai.ai_manager import AIManager
from .config.settings import SatireFeedSettings, get_settings
from .models import GROQ_MODELS, AIProviderType, ProcessedArticle, ProviderConfig
from .processing.pipeline import PipelineResult, ProcessingPipeline
from .storage.history import ProcessedLinkStore
from .utils.exceptions import (
    ConfigurationError,
    SatireFeedError,
    get_user_friendly_message,
    is_retryable_error,
)
from .utils.logging import configure_application_logging

console = Console()

PROVIDER_CHOICE = click.Choice([p.value for p in AIProviderType], case_sensitive=False)

STEP_LABELS = {
    "fetch": "Fetching and parsing RSS feed(s)",
    "scrape": "Scraping article",
    "search": "Searching the web",
    "detect_language": "Detecting language",
    "summarize": "Summarizing",
    "generate_posts": "Crafting posts",
}


def _setup_logging(settings: SatireFeedSettings, debug: bool) -> None:
    configure_application_logging(
        log_level="DEBUG" if debug else settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
        max_file_size_mb=settings.logging.max_file_size_mb,
        backup_count=settings.logging.backup_count,
    )


def _provider_options(func):
    """Shared provider selection options."""
    options = [
        click.option('--provider', '-p', type=PROVIDER_CHOICE, default=None,
                     help='AI provider (default from config)'),
        click.option('--language', '-l', default=None,
                     help='Output language (default from config)'),
        click.option('--groq-model', type=click.Choice(list(GROQ_MODELS)), default=None,
                     help='Groq model id'),
        click.option('--ollama-model', default=None, help='Local Ollama model name'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_provider_config(settings: SatireFeedSettings, groq_model: Optional[str],
                           ollama_model: Optional[str]) -> ProviderConfig:
    return ProviderConfig.from_settings(settings, groq_model=groq_model, ollama_model=ollama_model)


def _progress_printer(step: str, index: int, total: int) -> None:
    label = STEP_LABELS.get(step, step)
    if step in ("fetch", "scrape"):
        console.print(f"[dim]{label}...[/dim]")
    else:
        console.print(f"[dim]{label} (article {index}/{total})...[/dim]")


def _print_article(article: ProcessedArticle) -> None:
    posts = "\n\n".join(f"{i}. {escape(post.text)}" for i, post in enumerate(article.posts, start=1))
    if not posts:
        posts = "[yellow]No posts were generated for this article.[/yellow]"

    body = f"[bold]Summary[/bold]\n{escape(article.summary)}\n\n[bold]Posts[/bold]\n{posts}"
    if article.link:
        body += f"\n\n[dim]{article.link}[/dim]"

    console.print(Panel(body, title=escape(article.title), border_style="blue"))


def _print_failure(error: SatireFeedError) -> None:
    console.print(f"[bold red]❌ {escape(get_user_friendly_message(error))}[/bold red]")
    console.print(f"[dim]{escape(str(error))}[/dim]")
    if is_retryable_error(error):
        console.print("[yellow]This looks temporary, try again in a moment.[/yellow]")


def _print_run_summary(result: PipelineResult) -> None:
    table = Table(title="Processing Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row(
        "Feeds fetched",
        f"{result.successful_feed_fetches}/{result.total_feeds_processed} ({result.feed_success_rate:.0f}%)",
    )
    table.add_row("Items found", str(result.total_items_fetched))
    table.add_row("Already processed", str(result.items_skipped_processed))
    table.add_row("Articles processed", f"{result.articles_processed}/{result.items_to_process}")
    table.add_row("Degraded (fewer posts)", str(result.degraded_articles))
    table.add_row("Errors", str(len(result.errors)))
    table.add_row("Processing time", f"{result.processing_time_seconds:.2f}s")
    console.print(table)

    for error in result.errors:
        console.print(f"[red]• {escape(error)}[/red]")


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx, debug):
    """SatireFeed - satirical posts from the news."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
def check_config():
    """Validate configuration and environment variables."""
    console.print("[bold blue]🔧 Checking SatireFeed Configuration[/bold blue]")

    try:
        settings = get_settings()
    except ConfigurationError as e:
        console.print(f"[bold red]❌ Configuration error: {escape(str(e))}[/bold red]")
        sys.exit(1)

    table = Table(title="Configuration Status")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Details")

    checks = [
        ("Logging", _check_logging_config),
        ("AI Provider", _check_ai_config),
        ("Rate Budget", _check_rate_limit_config),
        ("Web Search", _check_search_config),
        ("History", _check_history_config),
    ]

    all_passed = True
    for name, check_func in checks:
        status, details = check_func(settings)
        table.add_row(name, "✅ Valid" if status else "❌ Invalid", details)
        if not status:
            all_passed = False

    console.print(table)

    if all_passed:
        console.print("[bold green]✅ All configuration checks passed![/bold green]")
    else:
        console.print("[bold red]❌ Configuration validation failed[/bold red]")
        sys.exit(1)


@cli.command()
@_provider_options
@click.pass_context
def test_provider(ctx, provider, language, groq_model, ollama_model):
    """Test connectivity of an AI provider."""
    settings = get_settings()
    _setup_logging(settings, ctx.obj['debug'])
    provider = AIProviderType(provider) if provider else settings.processing.ai_provider
    config = _build_provider_config(settings, groq_model, ollama_model)

    async def run_test() -> bool:
        manager = AIManager(settings=settings)
        try:
            return await manager.test_provider(provider, config)
        finally:
            await manager.close()

    console.print(f"[bold blue]🔌 Testing {provider.value} provider[/bold blue]")
    try:
        ok = asyncio.run(run_test())
    except SatireFeedError as e:
        _print_failure(e)
        sys.exit(1)

    if ok:
        console.print(f"[bold green]✅ {provider.value} is reachable[/bold green]")
    else:
        console.print(f"[bold red]❌ {provider.value} connection test failed[/bold red]")
        sys.exit(1)


@cli.command()
@click.argument('feed_urls', nargs=-1, required=True)
@_provider_options
@click.pass_context
def process_feeds(ctx, feed_urls: List[str], provider, language, groq_model, ollama_model):
    """Generate satirical posts for new items of RSS feeds."""
    settings = get_settings()
    _setup_logging(settings, ctx.obj['debug'])
    provider = AIProviderType(provider) if provider else settings.processing.ai_provider
    config = _build_provider_config(settings, groq_model, ollama_model)

    manager = AIManager(settings=settings)
    pipeline = ProcessingPipeline(
        settings=settings, ai_manager=manager, progress_callback=_progress_printer
    )

    async def run_processing() -> PipelineResult:
        try:
            return await pipeline.process_feeds(list(feed_urls), provider, config, language)
        finally:
            await manager.close()

    console.print(f"[bold blue]🔄 Processing {len(feed_urls)} feed(s) with {provider.value}[/bold blue]")
    try:
        result = asyncio.run(run_processing())
    except SatireFeedError as e:
        # Articles finished before the abort are already in history; show them now
        partial = pipeline.last_result
        if partial is not None:
            for article in partial.articles:
                _print_article(article)
            _print_run_summary(partial)
        _print_failure(e)
        sys.exit(1)

    for article in result.articles:
        _print_article(article)

    if result.items_to_process == 0:
        console.print(
            "[yellow]No new articles found in the provided feed(s). "
            "Clear history to re-process existing articles.[/yellow]"
        )

    _print_run_summary(result)

    if result.errors and not result.articles:
        sys.exit(1)


@cli.command()
@click.argument('url')
@_provider_options
@click.pass_context
def process_url(ctx, url, provider, language, groq_model, ollama_model):
    """Generate satirical posts for a single article URL."""
    settings = get_settings()
    _setup_logging(settings, ctx.obj['debug'])
    provider = AIProviderType(provider) if provider else settings.processing.ai_provider
    config = _build_provider_config(settings, groq_model, ollama_model)

    async def run_processing() -> ProcessedArticle:
        manager = AIManager(settings=settings)
        pipeline = ProcessingPipeline(
            settings=settings, ai_manager=manager, progress_callback=_progress_printer
        )
        try:
            return await pipeline.process_url(url, provider, config, language)
        finally:
            await manager.close()

    try:
        article = asyncio.run(run_processing())
    except SatireFeedError as e:
        _print_failure(e)
        sys.exit(1)

    _print_article(article)


@cli.command()
@click.confirmation_option(prompt='Forget all processed article links?')
def clear_history():
    """Clear the processed article history."""
    settings = get_settings()
    removed = ProcessedLinkStore(settings.history.file_path).clear()
    console.print(f"[bold green]✅ Processing history cleared ({removed} links)[/bold green]")


def _check_logging_config(settings) -> tuple[bool, str]:
    """Check logging configuration."""
    try:
        if settings.logging.file_path:
            log_path = Path(settings.logging.file_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)
        return True, f"Level: {settings.logging.level.value}, Console: {settings.logging.console_logging}"
    except OSError as e:
        return False, str(e)


def _check_ai_config(settings) -> tuple[bool, str]:
    """Check the default provider has its credentials."""
    provider = settings.processing.ai_provider
    try:
        AIManager(settings=settings).validate_config(provider, ProviderConfig.from_settings(settings))
    except ConfigurationError as e:
        return False, e.message
    return True, f"Provider: {provider.value}, Language: {settings.processing.default_language}"


def _check_rate_limit_config(settings) -> tuple[bool, str]:
    limits = settings.rate_limits
    return True, (
        f"{limits.requests_per_minute} req / {limits.tokens_per_minute} tokens "
        f"per {limits.window_seconds:g}s"
    )


def _check_search_config(settings) -> tuple[bool, str]:
    """Search is optional; a missing key only drops the extra context."""
    service = settings.search.provider.value
    if not settings.search.get_api_key():
        return True, f"{service}: no API key, articles are summarized without web context"
    return True, f"{service}: API key configured"


def _check_history_config(settings) -> tuple[bool, str]:
    if not settings.history.file_path:
        return True, "In memory only"
    return True, f"Path: {settings.history.file_path}"


def main() -> None:
    """Console script entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]👋 SatireFeed interrupted by user[/yellow]")
        sys.exit(130)
