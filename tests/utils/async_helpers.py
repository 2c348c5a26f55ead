"""
Async testing helpers.
"""

import asyncio
from typing import Callable


async def wait_for_condition(
    condition: Callable[[], bool],
    timeout: float = 5.0,
    interval: float = 0.01
) -> bool:
    """Poll ``condition`` until it holds or ``timeout`` seconds pass."""
    loop = asyncio.get_running_loop()
    start = loop.time()

    while loop.time() - start < timeout:
        if condition():
            return True
        await asyncio.sleep(interval)

    return condition()
