"""Terminal client for the chat backend.

    python -m ragchat.client "What are the main themes of Pride and Prejudice?"
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import Any, Dict, Optional

import httpx

from ragchat.services.retry import RetryPolicy

log = logging.getLogger("client")

DEFAULT_URL = os.getenv("CHATBOT_API_URL", "http://localhost:5000/generate")
EMPTY_ANSWER = "I apologize, I lost my place in the book and cannot generate a response right now."
NETWORK_ERROR = "Network error or API failure. Please check the server URL and status."
CLIENT_POLICY = RetryPolicy(max_attempts=3, base_delay_s=1.0, max_delay_s=8.0)


def render_reply(result: Dict[str, Any]) -> str:
    """Answer text followed by a numbered list of cited source ids."""
    text = result.get("text") or EMPTY_ANSWER
    citations = result.get("citations") or []
    if not citations:
        return text
    lines = [text, "", "---", "", "**Citations from Documents:**"]
    for i, c in enumerate(citations, 1):
        ids = (c.get("document_ids") if isinstance(c, dict) else None) or []
        lines.append(f"{i}. Source: {ids[0] if ids else 'unknown'}")
    return "\n".join(lines) + "\n"


async def _post(client: httpx.AsyncClient, url: str, prompt: str) -> Dict[str, Any]:
    resp = await client.post(url, json={"prompt": prompt})
    resp.raise_for_status()
    data = resp.json()
    if not isinstance(data, dict):
        raise ValueError(f"unexpected response body from {url}: {type(data).__name__}")
    return data


async def ask(
    prompt: str,
    url: str = DEFAULT_URL,
    *,
    policy: RetryPolicy = CLIENT_POLICY,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timeout: float = 120.0,
) -> Dict[str, Any]:
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        outcome = await policy.run(_post, client, url, prompt)
    if not outcome.ok:
        log.warning("request to %s failed after %d attempt(s): %s", url, outcome.attempts, outcome.error)
    return outcome.unwrap()


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Ask the Bookworm RAG chat backend a question.")
    parser.add_argument("prompt", help="question to send")
    parser.add_argument("--url", default=DEFAULT_URL, help="backend /generate endpoint (default: %(default)s)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING)
    prompt = args.prompt.strip()
    if not prompt:
        parser.error("prompt must not be empty")
    try:
        result = asyncio.run(ask(prompt, args.url))
    except (httpx.HTTPError, ValueError):
        print(NETWORK_ERROR, file=sys.stderr)
        return 1
    print(render_reply(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
