"""CLI entrypoint: hold a quorum lock on a resource while simulated work runs."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from redquorum.core.manager import LockManager
from redquorum.core.settings import ManagerSettings
from redquorum.utils.logging import get_logger


logger = get_logger("LockCLI")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Acquire a quorum lock, hold it, then release it.")
    parser.add_argument("--config", type=Path, default=None, help="Path to manager YAML (defaults to REDQUORUM_* env)")
    parser.add_argument("--resource", required=True, help="Resource name to lock")
    parser.add_argument("--ttl-ms", type=int, default=10000, help="Lock TTL in ms")
    parser.add_argument("--work-ms", type=int, default=3000, help="Simulated work time in ms")
    return parser.parse_args()


async def main() -> int:
    args = parse_args()
    settings = ManagerSettings.from_file(args.config) if args.config else ManagerSettings.from_env()
    manager = LockManager.from_settings(settings)
    try:
        if not await manager.connect():
            logger.error("Not every endpoint is reachable; continuing with quorum %d", manager.quorum)

        async with manager.locked(args.resource, args.ttl_ms) as lock:
            if lock is None:
                logger.error("Could not lock %s", args.resource)
                return 1
            logger.info("Holding %s for up to %dms", lock.resource, lock.validity)
            if args.work_ms > lock.validity:
                logger.warning("Work (%dms) outlasts the lock validity (%dms)", args.work_ms, lock.validity)
            await asyncio.sleep(args.work_ms / 1000)
        logger.info("Released %s", args.resource)
        return 0
    finally:
        await manager.close()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
