"""
Command-line interface for keyword-notifier.

Provides commands to run the per-source schedulers and the listing server,
initialize the database, and run diagnostic checks.

Usage:
    keyword-notifier run       # Run schedulers and listing server
    keyword-notifier run-once  # Run one fetch cycle per source
    keyword-notifier serve     # Run listing server only
    keyword-notifier init-db   # Initialize database
    keyword-notifier stats     # Item counts per source
    keyword-notifier health    # Check service health
"""

import asyncio
import signal
import sys
from typing import NoReturn

import click
from pydantic import ValidationError

from keyword_notifier.config.settings import get_settings
from keyword_notifier.observability.logging import setup_logging
from keyword_notifier.observability.metrics import get_metrics


def _fail(message: str) -> NoReturn:
    click.echo(click.style(message, fg="red"), err=True)
    sys.exit(1)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """Keyword Notifier - collect keyword mentions from Twitter and Stack Overflow."""
    if debug:
        import os
        os.environ["LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()

    try:
        settings = get_settings()
    except ValidationError as e:
        _fail(f"Invalid configuration:\n{e}")

    setup_logging(settings)

    # Initialize tracing if enabled
    if settings.tracing_enabled:
        from keyword_notifier.observability.tracing import setup_tracing

        setup_tracing(
            service_name=settings.otel_service_name,
            otlp_endpoint=settings.otel_exporter_otlp_endpoint,
        )


@main.command()
@click.option("--web/--no-web", default=True, help="Serve the listing page in the same process")
@click.option("--metrics/--no-metrics", default=True, help="Enable metrics server")
def run(web: bool, metrics: bool) -> None:
    """Run every source's scheduler until interrupted."""
    from keyword_notifier.services.factory import build_scheduler, open_store

    settings = get_settings()

    async def run_all():
        try:
            store, database = await open_store(settings)
        except Exception as e:
            _fail(f"Failed to open item store: {e}")

        try:
            try:
                scheduler = build_scheduler(store, settings)
            except ValueError as e:
                _fail(str(e))

            if metrics:
                get_metrics().start_server(port=settings.metrics_port)

            server = None
            if web:
                import uvicorn

                from keyword_notifier.api.app import create_app

                app = create_app(store=store, scheduler=scheduler)
                server = uvicorn.Server(
                    uvicorn.Config(app, host=settings.api_host, port=settings.api_port, log_level="info")
                )
                click.echo(f"Listing page on http://{settings.api_host}:{settings.api_port}/")

            async def shutdown():
                if server is not None:
                    server.should_exit = True
                await scheduler.stop()

            # Handle shutdown signals
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.add_signal_handler(sig, lambda: asyncio.create_task(shutdown()))

            if server is None:
                await scheduler.start()
            else:
                async def serve_api():
                    await server.serve()
                    # The server only returns on shutdown; take the sources down with it
                    await scheduler.stop()

                await asyncio.gather(scheduler.start(), serve_api())
        finally:
            if database is not None:
                await database.close()

    asyncio.run(run_all())


@main.command("run-once")
def run_once() -> None:
    """Run one fetch cycle for every source and report the results."""
    from keyword_notifier.services.factory import build_scheduler, open_store

    settings = get_settings()

    async def run():
        try:
            store, database = await open_store(settings)
        except Exception as e:
            _fail(f"Failed to open item store: {e}")

        try:
            try:
                scheduler = build_scheduler(store, settings)
            except ValueError as e:
                _fail(str(e))

            try:
                results = await scheduler.run_once()
            finally:
                await scheduler.aclose()
        finally:
            if database is not None:
                await database.close()

        click.echo("\nFetch Results:")
        exit_code = 0
        for source, result in results.items():
            if result.ok:
                click.echo(click.style(
                    f"  ✓ {source}: {result.stored} new / {result.fetched} fetched "
                    f"({result.excluded} excluded, {result.pages} pages)",
                    fg="green",
                ))
            else:
                exit_code = 1
                click.echo(click.style(f"  ✗ {source}: {result.status}: {result.error}", fg="red"))

        sys.exit(exit_code)

    asyncio.run(run())


@main.command()
@click.option("--host", default=None, help="API server host")
@click.option("--port", default=None, type=int, help="API server port")
@click.option("--reload", is_flag=True, help="Enable auto-reload (dev only)")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the listing server without any schedulers."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    click.echo(f"Starting listing server on {host}:{port}")
    click.echo(f"API docs available on http://localhost:{port}/docs")

    uvicorn.run(
        "keyword_notifier.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


@main.command("init-db")
def init_db() -> None:
    """Initialize the database schema."""
    from keyword_notifier.services.factory import open_store

    settings = get_settings()
    if not settings.uses_database:
        click.echo("In-memory store selected, nothing to initialize")
        return

    async def run():
        try:
            _, database = await open_store(settings)
        except Exception as e:
            _fail(f"Failed to initialize database: {e}")

        await database.close()
        click.echo(click.style("Database initialized successfully", fg="green"))

    asyncio.run(run())


@main.command()
def stats() -> None:
    """Show stored item counts per source."""
    from keyword_notifier.services.factory import open_store
    from keyword_notifier.storage.base import StoreError

    settings = get_settings()

    async def run():
        try:
            store, database = await open_store(settings)
        except Exception as e:
            _fail(f"Failed to open item store: {e}")

        try:
            counts = await store.count_by_source()
        except StoreError as e:
            _fail(str(e))
        finally:
            if database is not None:
                await database.close()

        click.echo("\nStored Items:")
        click.echo("-" * 40)
        for source, count in counts.items():
            click.echo(f"  {source}: {count}")
        click.echo("-" * 40)
        click.echo(f"  total: {sum(counts.values())}")

    asyncio.run(run())


@main.command()
def health() -> None:
    """Check health of all dependencies."""
    import structlog
    logger = structlog.get_logger()

    from keyword_notifier.config.sources import build_source_configs
    from keyword_notifier.services.factory import open_store

    settings = get_settings()

    async def check():
        results: dict[str, bool] = {}

        # Check store
        try:
            store, database = await open_store(settings)
            results[settings.storage_backend] = await store.health_check()
            if database is not None:
                await database.close()
        except Exception as e:
            results[settings.storage_backend] = False
            logger.error("Store health check failed", error=str(e))

        # Check sources
        configured = {config.name.value for config in build_source_configs(settings)}
        results["twitter_configured"] = "twitter" in configured
        results["stackoverflow_enabled"] = "stackoverflow" in configured

        click.echo("\nHealth Check Results:")
        click.echo("-" * 40)

        all_healthy = True
        for name, status in results.items():
            icon = "✓" if status else "✗"
            color = "green" if status else "red"
            click.echo(click.style(f"  {icon} {name}: {status}", fg=color))
            if name == settings.storage_backend and not status:
                all_healthy = False

        if not configured:
            all_healthy = False

        click.echo("-" * 40)

        if all_healthy:
            click.echo(click.style("All core services healthy!", fg="green"))
            sys.exit(0)
        else:
            click.echo(click.style("Some services unhealthy!", fg="red"))
            sys.exit(1)

    asyncio.run(check())


if __name__ == "__main__":
    main()
