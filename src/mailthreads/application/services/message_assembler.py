from __future__ import annotations

from typing import Mapping

from loguru import logger

from mailthreads.application.ports.repositories import UserRepository
from mailthreads.domain.entities import NormalizedMessage, RawMessage, Thread
from mailthreads.domain.errors import MissingThreadForMessage


class MessageAssembler:
    """Turn a raw message into a NormalizedMessage.

    Calls are independent of each other and only read the completed
    identity map, so a whole batch can be assembled concurrently.
    """

    def __init__(self, users: UserRepository) -> None:
        self.users = users

    async def assemble(self, message: RawMessage, threads: Mapping[str, Thread]) -> NormalizedMessage:
        user = await self.users.find_by_address(message.sender_address)
        sender_id = user.id if user is not None else None
        if sender_id is None:
            logger.debug(f"No user for sender {message.sender_address} of {message.universal_id}")

        # Keyed by the message's own id: roots and replies are both in the map
        thread = threads.get(message.universal_id)
        if thread is None or thread.id is None:
            raise MissingThreadForMessage(message.universal_id)

        return NormalizedMessage.from_raw(message, thread_id=thread.id, sender_id=sender_id)
