"""
FIFO playback of synthesized speech with barge-in.

Chunks arrive faster than they can be spoken, so they wait in a queue and are
handed to the player strictly one at a time, in arrival order. The head item
stays in the queue while it plays and is removed only once playback completes
or fails; a failing chunk is dropped without replay so it cannot stall the
queue. ``stop_and_clear`` is the barge-in operation: it silences the current
chunk and discards everything pending, so the agent's voice never overlaps
the user's.
"""

import asyncio
import logging
from collections import deque
from typing import Deque, List, Optional

from call_client.audio.players import AudioPlayer
from call_client.config.constants import LOGGER_NAME
from call_client.models.messages import AudioQueueItem

logger = logging.getLogger(LOGGER_NAME)


class AudioPlaybackQueue:
    def __init__(self, player: AudioPlayer):
        self.player = player
        self._items: Deque[AudioQueueItem] = deque()
        self._current_task: Optional[asyncio.Task] = None
        self.played_count = 0
        self.failed_count = 0

    @property
    def is_playing(self) -> bool:
        """True while exactly one item is in flight."""
        return self._current_task is not None

    @property
    def pending(self) -> List[AudioQueueItem]:
        """Items not yet finished, head (possibly in flight) first."""
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def enqueue(self, item: AudioQueueItem) -> None:
        """Append item to the tail and start playback if the queue is idle."""
        self._items.append(item)
        logger.debug(f"Queued {len(item.payload)} bytes of {item.format}, queue size: {len(self._items)}")
        self._start_next()

    def stop_and_clear(self) -> int:
        """
        Halt in-flight playback and discard all pending items.

        Returns:
            Number of items discarded, including the one in flight
        """
        discarded = len(self._items)
        self._items.clear()

        task, self._current_task = self._current_task, None
        if task is not None:
            try:
                self.player.stop()
            except Exception as e:
                logger.warning(f"Error stopping audio player: {e}")
            if not task.done():
                task.cancel()

        if discarded:
            logger.info(f"Barge-in: discarded {discarded} queued audio chunk(s)")
        return discarded

    async def wait_idle(self) -> None:
        """Wait until the queue has drained or been cleared."""
        while self._current_task is not None:
            task = self._current_task
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError:
                if task is self._current_task:
                    raise

    def _start_next(self) -> None:
        if self._current_task is not None or not self._items:
            return
        self._current_task = asyncio.get_running_loop().create_task(
            self._play_head(self._items[0])
        )

    async def _play_head(self, item: AudioQueueItem) -> None:
        try:
            await self.player.play(item.payload, item.format)
            self.played_count += 1
        except asyncio.CancelledError:
            # stop_and_clear already reset the queue
            raise
        except Exception as e:
            self.failed_count += 1
            logger.warning(f"Dropping audio chunk after playback failure: {e}")

        if self._current_task is not asyncio.current_task():
            return
        if self._items and self._items[0] is item:
            self._items.popleft()
        self._current_task = None
        self._start_next()
