"""Per-account upstream session locks.

An account's upstream session is a serialized resource: calls for one
account never overlap, calls for different accounts always may. Process-wide
registry, one asyncio.Lock per account id, created on first use.
"""

import asyncio
from collections import defaultdict


class AccountSessionLocks:
    def __init__(self) -> None:
        self._locks: defaultdict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    def for_account(self, account_id: int) -> asyncio.Lock:
        return self._locks[account_id]


session_locks = AccountSessionLocks()
