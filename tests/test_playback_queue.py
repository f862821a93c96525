import pytest

from call_client.audio.playback_queue import AudioPlaybackQueue
from call_client.audio.players import NullAudioPlayer
from call_client.models.messages import AudioQueueItem


def item(payload, fmt="audio/wav"):
    return AudioQueueItem(payload=payload, format=fmt)


@pytest.mark.asyncio
async def test_plays_one_item_at_a_time_in_order(player, drain):
    queue = AudioPlaybackQueue(player)

    queue.enqueue(item(b"first"))
    queue.enqueue(item(b"second"))
    queue.enqueue(item(b"third"))
    await drain()

    assert player.started == [b"first"]
    assert queue.is_playing
    assert len(queue) == 3

    player.release(b"first")
    await drain()
    assert player.started == [b"first", b"second"]
    assert len(queue) == 2

    player.release(b"second")
    await drain()
    player.release(b"third")
    await drain()

    assert player.finished == [b"first", b"second", b"third"]
    assert queue.played_count == 3
    assert not queue.is_playing
    assert len(queue) == 0


@pytest.mark.asyncio
async def test_head_stays_queued_while_playing(player, drain):
    queue = AudioPlaybackQueue(player)

    queue.enqueue(item(b"only"))
    await drain()

    assert [i.payload for i in queue.pending] == [b"only"]


@pytest.mark.asyncio
async def test_failed_chunk_is_dropped_and_queue_continues(make_player, drain):
    player = make_player(fail_on={b"broken"})
    queue = AudioPlaybackQueue(player)

    queue.enqueue(item(b"broken"))
    queue.enqueue(item(b"good"))
    await drain()

    assert player.started == [b"broken", b"good"]
    assert queue.failed_count == 1

    player.release(b"good")
    await drain()

    assert player.started.count(b"broken") == 1
    assert queue.played_count == 1
    assert len(queue) == 0


@pytest.mark.asyncio
async def test_stop_and_clear_discards_everything(player, drain):
    queue = AudioPlaybackQueue(player)
    for payload in (b"a", b"b", b"c"):
        queue.enqueue(item(payload))
    await drain()

    discarded = queue.stop_and_clear()
    await drain()

    assert discarded == 3
    assert player.stop_calls == 1
    assert player.finished == []
    assert player.started == [b"a"]
    assert not queue.is_playing
    assert len(queue) == 0


@pytest.mark.asyncio
async def test_stop_and_clear_on_idle_queue(player):
    queue = AudioPlaybackQueue(player)

    assert queue.stop_and_clear() == 0
    assert player.stop_calls == 0


@pytest.mark.asyncio
async def test_enqueue_after_barge_in_plays_new_audio(player, drain):
    queue = AudioPlaybackQueue(player)
    queue.enqueue(item(b"old"))
    await drain()
    queue.stop_and_clear()

    queue.enqueue(item(b"new"))
    await drain()

    assert player.started == [b"old", b"new"]
    player.release(b"new")
    await drain()
    assert player.finished == [b"new"]
    assert queue.played_count == 1


@pytest.mark.asyncio
async def test_wait_idle_with_headless_player():
    player = NullAudioPlayer()
    queue = AudioPlaybackQueue(player)

    queue.enqueue(item(b"\x00\x00" * 160, "audio/pcm"))
    queue.enqueue(item(b"\xff\xfb\x90", "audio/mp3"))
    queue.enqueue(item(b"\x01\x00" * 160, "audio/pcm"))
    await queue.wait_idle()

    assert player.played == 2
    assert queue.played_count == 2
    assert queue.failed_count == 1
    assert len(queue) == 0
