"""
One-shot catalog build.

``python -m cadence_worker`` rebuilds the snapshot once and exits, for use
as a build step before deploying the site.
"""

import asyncio
import sys

from .main import shutdown, startup
from .tasks.catalog import build_catalog_task


async def run_once() -> int:
    ctx: dict = {}
    await startup(ctx)
    try:
        result = await build_catalog_task(ctx)
    finally:
        await shutdown(ctx)
    return 0 if result["status"] in ("success", "skipped") else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(run_once()))
