# scripts/smoke.py
"""
Smoke Test Script for the Livecast server.

Starts a real listener, drives a fake page through a few `serve()` calls and
prints what happened: admitted captures, throttled calls, retained
screenshots.

Usage
-----
1. Default run (ephemeral port, screenshots on, temp artifact dir):
    $ uv run python scripts/smoke.py

2. Keep it up so a browser can connect to /ws:
    $ uv run python scripts/smoke.py --port 4321 --hold 30
"""

import argparse
import asyncio
import logging
import sys
import tempfile
from pathlib import Path

from dotenv import load_dotenv

from livecast.core.settings import Settings
from livecast.live.server import LivecastServer

# --------------------------------------------------------------------------- #
# Environment Setup
# --------------------------------------------------------------------------- #
env_path = Path(".env")
if env_path.exists():
    load_dotenv(env_path)
    print("✅ Loaded .env file")

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

# A 1x1 JPEG is enough for the artifact store; nothing decodes it here.
FAKE_JPEG = bytes.fromhex("ffd8ffe000104a46494600010100000100010000ffd9")


class FakePage:
    """Stand-in for a browser page that navigates on every capture."""

    def __init__(self) -> None:
        self.visits = 0

    async def current_url(self) -> str:
        self.visits += 1
        return f"https://example.com/page/{self.visits}"

    async def current_markup(self) -> str:
        await asyncio.sleep(0.05)
        return f"<html><body><h1>Visit {self.visits}</h1></body></html>"

    async def capture_screenshot(self, quality: int) -> bytes:
        await asyncio.sleep(0.05)
        return FAKE_JPEG


async def run(port: int, hold: float, calls: int) -> None:
    """Execute the smoke workflow."""
    artifact_dir = Path(tempfile.mkdtemp(prefix="livecast-smoke-"))
    cfg = Settings(
        port=port,
        artifact_dir=artifact_dir,
        use_screenshots=True,
        min_capture_interval_secs=0.2,
        max_retained_artifacts=3,
    )
    live = LivecastServer(cfg)

    # 1. Start
    result = await live.start()
    if result.is_err():
        print(f"❌ Could not start: {result.unwrap_err()}")
        return
    print(f"\n🌐 Listening at {result.unwrap()}")

    # 2. Drive captures
    page = FakePage()
    for i in range(calls):
        snapshot = await live.serve(page)
        if snapshot is None:
            print(f"  {i + 1:02d}. skipped")
        else:
            print(f"  {i + 1:02d}. {snapshot.page_url} (screenshot {snapshot.screenshot_index})")
        await asyncio.sleep(0.1)

    await live.guard.drain()
    print(f"\n💾 Retained screenshots in {artifact_dir}: {live.store.indices()}")

    # 3. Optionally hold the server open for manual inspection
    if hold > 0:
        print(f"\n⏳ Holding for {hold:g}s, connect to {live.public_url}/ws")
        await asyncio.sleep(hold)

    await live.close()
    print("\n✅ Smoke run finished")


def main() -> None:
    parser = argparse.ArgumentParser(description="Run Livecast Smoke Test")
    parser.add_argument("--port", "-p", type=int, default=0, help="Port to bind (0 = any free port)")
    parser.add_argument("--hold", type=float, default=0.0, help="Seconds to keep serving afterwards")
    parser.add_argument("--calls", type=int, default=12, help="Number of serve() calls")
    args = parser.parse_args()
    asyncio.run(run(args.port, args.hold, args.calls))


if __name__ == "__main__":
    main()
