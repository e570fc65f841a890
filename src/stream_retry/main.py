"""
Command-line entry point for Stream Retry.

Streams one chat completion from Ollama through the retry wrapper and prints
the text as it arrives:

    stream-retry "Summarise this ticket" --system "Be terse." --max-attempts 5
"""

import asyncio
from typing import Optional

import click
import structlog
from prometheus_client import start_http_server

from stream_retry.config import settings
from stream_retry.llm.exceptions import LLMClientError
from stream_retry.llm.ollama_client import OllamaClient
from stream_retry.logging_config import configure_logging
from stream_retry.models.llm_models import ChatMessage, ReasoningChunk, TextChunk, UsageChunk
from stream_retry.retry.options import RetryConfig

logger = structlog.get_logger(__name__)


async def run_chat(
    client: OllamaClient,
    prompt: str,
    system_prompt: str = "",
    retry_config: Optional[RetryConfig] = None,
    show_reasoning: bool = False,
) -> Optional[UsageChunk]:
    """Stream a completion to stdout. Returns the final usage chunk, if any.

    A retried stream starts over from its first chunk, so the interrupted
    line is closed and a restart marker printed before the new attempt.
    """
    usage = None
    line_open = False
    messages = [ChatMessage(role="user", content=prompt)]

    def restart(attempt: int, delay_ms: float, error: Exception) -> None:
        nonlocal line_open
        if line_open:
            click.echo()
            line_open = False
        click.secho(
            f"[{type(error).__name__}: restarting, attempt {attempt} in {delay_ms / 1000:.1f}s]",
            fg="yellow",
        )

    stream = client.stream_message(system_prompt, messages, retry_config=retry_config, on_retry=restart)
    async for chunk in stream:
        if isinstance(chunk, TextChunk):
            click.echo(chunk.text, nl=False)
            line_open = True
        elif isinstance(chunk, ReasoningChunk):
            if show_reasoning:
                click.secho(chunk.reasoning, nl=False, dim=True)
                line_open = True
        elif isinstance(chunk, UsageChunk):
            usage = chunk

    click.echo()
    return usage


@click.command()
@click.argument("prompt")
@click.option("--system", "system_prompt", default="", help="System prompt")
@click.option("--model", default=None, help="Ollama model (default: OLLAMA_MODEL)")
@click.option("--max-attempts", type=click.IntRange(min=1), default=None, help="Total attempts including the first")
@click.option("--retry-all-errors", is_flag=True, help="Retry every error, not only rate limits")
@click.option("--show-reasoning", is_flag=True, help="Print reasoning fragments")
def cli(
    prompt: str,
    system_prompt: str,
    model: Optional[str],
    max_attempts: Optional[int],
    retry_all_errors: bool,
    show_reasoning: bool,
):
    """Stream a chat completion, retrying rate-limited attempts."""
    app_settings = settings
    configure_logging(app_settings.LOG_LEVEL, app_settings.ENVIRONMENT)

    if app_settings.PROMETHEUS_ENABLED:
        start_http_server(app_settings.METRICS_PORT)
        logger.info("Metrics endpoint started", port=app_settings.METRICS_PORT)

    retry_config = RetryConfig.from_settings(app_settings).with_overrides(
        max_attempts=max_attempts,
        retry_all_errors=retry_all_errors or None,
    )
    overrides = {"model": model} if model else {}
    client = OllamaClient.from_settings(app_settings, retry_config=retry_config, **overrides)

    logger.info(
        "Starting chat stream",
        app_name=app_settings.APP_NAME,
        version=app_settings.APP_VERSION,
        model=client.model,
        max_attempts=retry_config.max_attempts,
    )

    async def _main() -> Optional[UsageChunk]:
        async with client:
            return await run_chat(client, prompt, system_prompt, show_reasoning=show_reasoning)

    try:
        usage = asyncio.run(_main())
    except LLMClientError as e:
        logger.error("Chat stream failed", error_type=type(e).__name__, status_code=e.status_code)
        raise click.ClickException(e.message)

    if usage is not None:
        logger.info(
            "Chat stream completed",
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
        )


def main():
    """Console script entry point."""
    cli(prog_name="stream-retry")


if __name__ == "__main__":
    main()
