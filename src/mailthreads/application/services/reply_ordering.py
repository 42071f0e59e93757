"""Batch preparation ahead of thread resolution."""

from __future__ import annotations

from collections import defaultdict
from enum import Enum
from typing import Sequence

from loguru import logger

from mailthreads.domain.entities import RawMessage


class ReplyOrdering(str, Enum):
    """How a fetched batch is ordered before threads are resolved."""

    # Source order is trusted; a reply ahead of its target fails the run
    STRICT = "strict"
    # Replies are moved after their in-batch target
    TOPOLOGICAL = "topological"


def drop_duplicates(messages: Sequence[RawMessage]) -> list[RawMessage]:
    """Keep the first occurrence of each universal_id."""
    seen: set[str] = set()
    unique: list[RawMessage] = []
    for message in messages:
        if message.universal_id in seen:
            logger.warning(f"Dropping duplicate message {message.universal_id}")
            continue
        seen.add(message.universal_id)
        unique.append(message)
    return unique


def order_replies_after_targets(messages: Sequence[RawMessage]) -> list[RawMessage]:
    """Stable reorder so every reply follows the message it replies to.

    Messages that are already in a valid position keep their relative order.
    A reply whose target is not part of the batch is left where it is, and
    replies caught in a cycle are appended at the end in source order; both
    still fail thread resolution.
    """
    present = {m.universal_id for m in messages}
    position = {id(m): i for i, m in enumerate(messages)}
    emitted: set[str] = set()
    waiting: dict[str, list[RawMessage]] = defaultdict(list)
    ordered: list[RawMessage] = []

    def emit(message: RawMessage) -> None:
        stack = [message]
        while stack:
            current = stack.pop()
            ordered.append(current)
            emitted.add(current.universal_id)
            stack.extend(reversed(waiting.pop(current.universal_id, [])))

    for message in messages:
        target = message.in_reply_to
        if target is None or target in emitted or target not in present:
            emit(message)
        else:
            waiting[target].append(message)

    if waiting:
        stranded = sorted(
            (m for pending in waiting.values() for m in pending),
            key=lambda m: position[id(m)],
        )
        logger.warning(f"{len(stranded)} replies could not be placed after their target")
        ordered.extend(stranded)

    moved = sum(1 for a, b in zip(messages, ordered) if a is not b)
    if moved:
        logger.info(f"Reordered batch: {moved} messages moved after their reply target")
    return ordered


def prepare_batch(messages: Sequence[RawMessage], ordering: ReplyOrdering) -> list[RawMessage]:
    unique = drop_duplicates(messages)
    if ordering is ReplyOrdering.TOPOLOGICAL:
        return order_replies_after_targets(unique)
    return unique
