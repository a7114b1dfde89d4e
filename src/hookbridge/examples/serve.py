"""
Example host serving OAuth redirects and webhooks for a few adapters.

Configure client credentials per adapter, e.g. in a .env file:

    HOOKBRIDGE_BASE_URL=http://localhost:8000
    HOOKBRIDGE_GITHUB_CLIENT_ID=...
    HOOKBRIDGE_GITHUB_CLIENT_SECRET=...
    HOOKBRIDGE_JIRA_CLIENT_ID=...
    HOOKBRIDGE_JIRA_CLIENT_SECRET=...

Then open http://localhost:8000/oauth/github/authorize in a browser.
"""

import asyncio
import logging

from dotenv import load_dotenv

from hookbridge.callbacks.models import (
    CallbackEvent,
    CallbackResult,
    PollRequest,
    PollResult,
)
from hookbridge.host.app import HostApp
from hookbridge.host.registry import AdapterRegistry
from hookbridge.host.settings import HostSettings
from hookbridge.providers.catalog import build_provider


class GitHubEvents:
    """Turns GitHub push webhooks into ``commit`` results."""

    def handle(self, event: CallbackEvent) -> CallbackResult | None:
        commits = (event.payload or {}).get("commits") or []
        if not commits:
            return None
        return CallbackResult(
            type="commit",
            result={"count": len(commits), "head": commits[-1].get("id")},
        )


class CounterFeed:
    """Polled feed that emits one item per poll and remembers its cursor."""

    def handle(self, event: CallbackEvent) -> None:
        return None

    async def poll(self, request: PollRequest) -> PollResult:
        cursor = request.state.get("cursor", 0) + 1
        logging.info(f"Polling {request.callback_id} at cursor {cursor}")
        return PollResult(items=[{"cursor": cursor}], next_state={"cursor": cursor})


async def main():
    settings = HostSettings.from_env()

    registry = AdapterRegistry()
    registry.register("github", oauth=build_provider("github"), callbacks=GitHubEvents())
    registry.register("jira", oauth=build_provider("jira"))
    registry.register("counter", callbacks=CounterFeed())

    host = HostApp(registry, settings)
    await host.start()

    # Keep serving until interrupted.
    try:
        while True:
            await asyncio.sleep(1)
    except (KeyboardInterrupt, asyncio.CancelledError):
        await host.stop()


if __name__ == "__main__":
    load_dotenv()
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
