#!/usr/bin/env python3
"""Extract structured stories from text with DeepSeek.

Set DEEPSEEK_API_KEY to call the real API; without it the demo runs against
the mock transport.
"""

import asyncio
import json
import os

from pydantic import BaseModel, Field

from shuttle import ChatMessage, CompletionClient, CompletionRequest, ResponseModel
from shuttle.cache import InMemoryCache
from shuttle.log import configure_logging
from shuttle.models import MockTransport, chat_completion

PAGE_TEXT = """
1. Show HN: A tiny SQLite replication tool (github.com/example/litestream) 312 points
2. The unreasonable effectiveness of plain text (example.org/plain) 254 points
3. Why we moved our build to Nix (example.com/nix) 198 points
4. Ask HN: What are you working on? 120 points
"""


class Story(BaseModel):
    title: str
    url: str
    points: int


class Headlines(BaseModel):
    stories: list[Story] = Field(min_length=3, max_length=3)


def mock_transport() -> MockTransport:
    stories = {
        "stories": [
            {"title": "Show HN: A tiny SQLite replication tool", "url": "github.com/example/litestream", "points": 312},
            {"title": "The unreasonable effectiveness of plain text", "url": "example.org/plain", "points": 254},
            {"title": "Why we moved our build to Nix", "url": "example.com/nix", "points": 198},
        ]
    }
    return MockTransport([chat_completion(json.dumps(stories))])


async def main():
    configure_logging("INFO")

    transport = None if os.getenv("DEEPSEEK_API_KEY") else mock_transport()
    client = CompletionClient(
        "deepseek",
        "deepseek-chat",
        transport=transport,
        cache=InMemoryCache(),
        enable_caching=True,
    )

    request = CompletionRequest(
        messages=[
            ChatMessage(
                role="user",
                content=f"Extract only 3 stories from this page:\n{PAGE_TEXT}",
            )
        ],
        response_model=ResponseModel.from_type(Headlines),
        request_id="example-1",
    )

    try:
        headlines = await client.complete(request)
        for story in headlines.stories:
            print(f"{story.points:>4}  {story.title} ({story.url})")

        # Second call is served from the cache
        await client.complete(request)
    finally:
        await client.aclose()


if __name__ == "__main__":
    asyncio.run(main())
