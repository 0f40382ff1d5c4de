"""Application entrypoint."""

from __future__ import annotations

import asyncio
import logging

from pagepilot.chat import ChatService
from pagepilot.classifier import ClassifierGateway
from pagepilot.commands import CommandDispatcher, format_response
from pagepilot.config import Settings, load_settings
from pagepilot.content import ContentGenerator
from pagepilot.history import UniquenessOracle
from pagepilot.llm.gemini import GeminiProvider
from pagepilot.media import CloudinaryImageStore
from pagepilot.models import ChatTurn
from pagepilot.publisher import Publisher
from pagepilot.publishing.facebook import FacebookGraphClient
from pagepilot.router import IntentRouter
from pagepilot.scheduler import DeferredPublishScheduler
from pagepilot.session_store import SessionStore

LOGGER = logging.getLogger(__name__)

CONSOLE_SESSION_ID = "console"


def build_service(settings: Settings) -> tuple[ChatService, DeferredPublishScheduler]:
    """Wire collaborators into a chat service and its scheduler."""

    sessions = SessionStore(settings.database_path)
    sessions.initialize()

    classifier = ClassifierGateway(GeminiProvider(settings), settings.request_timeout_seconds)
    backend = FacebookGraphClient(settings)
    generator = ContentGenerator(
        UniquenessOracle(backend),
        classifier,
        business=settings.business_description,
    )
    publisher = Publisher(backend, generator, CloudinaryImageStore(settings))
    scheduler = DeferredPublishScheduler(
        action=publisher.publish_now,
        poll_interval_seconds=settings.scheduler_poll_interval_seconds,
    )
    router = IntentRouter(classifier, publisher, scheduler)
    return ChatService(router, publisher, sessions), scheduler


async def run() -> None:
    """Initialize app layers and start the console chat loop."""

    settings = load_settings()
    logging.basicConfig(level=settings.log_level)

    service, scheduler = build_service(settings)
    if settings.facebook_page_id and settings.facebook_page_access_token:
        service.register_page(
            CONSOLE_SESSION_ID,
            settings.facebook_page_id,
            settings.facebook_page_access_token,
        )
    dispatcher = CommandDispatcher(service, scheduler)

    scheduler_task = asyncio.create_task(scheduler.run_forever(), name="publish-scheduler")
    turns: list[ChatTurn] = []

    try:
        while True:
            try:
                text = (await asyncio.to_thread(input, "> ")).strip()
            except EOFError:
                break
            if not text:
                continue

            cmd_reply = await dispatcher.dispatch(text, CONSOLE_SESSION_ID, turns)
            if cmd_reply is not None:
                print(cmd_reply)
                continue

            turns.append(ChatTurn(role="user", text=text))
            response = await service.handle_chat(
                {"messages": [{"role": t.role, "text": t.text} for t in turns]},
                CONSOLE_SESSION_ID,
            )
            print(format_response(response))
            if response.reply:
                turns.append(ChatTurn(role="assistant", text=response.reply))
    except asyncio.CancelledError:
        raise
    finally:
        scheduler.stop()
        scheduler_task.cancel()
        LOGGER.info("Pagepilot shutdown complete")


def main() -> None:
    """Synchronous wrapper for asyncio entrypoint."""

    asyncio.run(run())


if __name__ == "__main__":
    main()
