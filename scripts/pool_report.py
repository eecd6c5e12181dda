#!/usr/bin/env python3
"""Print utilization of every IP pool in the netpool database."""

import asyncio

from sqlalchemy import select

from netpool.database import async_engine, async_session_maker
from netpool.models import IpPool
from netpool.services.ippool_service import IPPoolService
from netpool.utils.context import operation_context
from netpool.utils.logger import get_logger, log_timer, setup_logging

logger = get_logger("netpool.scripts.pool_report")


def format_row(stats: dict) -> str:
    """Render one pool's statistics as a report line."""
    total = stats["total"] if stats["total"] is not None else "n/a"
    usage = f"{stats['usage'] * 100:.1f}%" if stats["usage"] is not None else "n/a"
    return (
        f"{stats['pool_name']:<24} {stats['subnet']:<20} "
        f"{stats['assigned']:>8} {str(total):>8} {usage:>7}  "
        f"{stats['next_free_ip'] or '-'}"
    )


async def main():
    """Print one line per pool with its usage."""
    setup_logging()
    service = IPPoolService()

    with log_timer("pool_report", logger=logger):
        async with async_session_maker() as session:
            result = await session.execute(select(IpPool.id).order_by(IpPool.name))
            pool_ids = [row[0] for row in result.all()]

            print(
                f"{'Pool':<24} {'Subnet':<20} {'Assigned':>8} {'Total':>8} "
                f"{'Usage':>7}  Next free"
            )
            print("-" * 90)
            for pool_id in pool_ids:
                with operation_context("pool.report", pool_id=pool_id):
                    stats = await service.get_pool_stats(session, pool_id)
                print(format_row(stats))

    await async_engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
