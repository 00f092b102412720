"""
Run-scoped record of which target names have been claimed for download.
"""

import asyncio


class ClaimSet:
    """
    Names claimed during one run, either downloaded or in flight.

    A name is claimed before its fetch is scheduled, so two concurrent
    attempts can never both fetch it. Claims are never released.
    """

    def __init__(self) -> None:
        self._names: set[str] = set()
        self._lock = asyncio.Lock()

    async def claim(self, name: str) -> bool:
        """Inserts ``name`` if absent. Returns False if it was already claimed."""
        async with self._lock:
            if name in self._names:
                return False
            self._names.add(name)
            return True

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __len__(self) -> int:
        return len(self._names)
