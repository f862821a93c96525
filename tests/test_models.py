import pytest
from pydantic import ValidationError

from call_client.models.messages import AudioQueueItem, Message, MessageKind
from call_client.models.session import (
    BulkDeleteResult,
    Session,
    StartCallResult,
    registration_payload,
)


def test_message_is_immutable():
    message = Message.agent_text("hello", "abc123")

    with pytest.raises(ValidationError):
        message.content = "changed"


def test_tts_audio_message_defaults():
    message = Message.tts_audio(b"\x00" * 10, "abc123")

    assert message.kind == MessageKind.TTS_AUDIO
    assert message.audio_format == "audio/wav"
    assert message.content == "TTS audio: 10 bytes"
    assert message.timestamp.tzinfo is not None


def test_queue_item_from_message():
    item = AudioQueueItem.from_message(Message.tts_audio(b"\x01\x02", "abc123", "audio/pcm"))

    assert item.payload == b"\x01\x02"
    assert item.format == "audio/pcm"


def test_session_id_is_fixed():
    session = Session(id="conv-1", active=True)

    with pytest.raises(ValidationError):
        session.id = "conv-2"

    session.active = False
    assert not session.active


def test_socket_key_prefers_meeting_id():
    assert Session(id="conv-1").socket_key == "conv-1"
    assert Session(id="conv-1", meeting_id="meet-1").socket_key == "meet-1"


def test_meeting_ui_url_falls_back_to_meeting_url():
    result = StartCallResult(conversation_id="conv-1", meeting_url="https://meet.test/1")

    assert result.meeting_ui_url == "https://meet.test/1"


def test_bulk_delete_all_failed():
    result = BulkDeleteResult.all_failed(["a", "b"], "backend down")

    assert result.deleted_count == 0
    assert result.total_requested == 2
    assert result.failed_ids() == ["a", "b"]
    assert result.failed_deletions[0].error == "backend down"


def test_registration_payload():
    payload = registration_payload("meet-1", "Web Client", "clerk")

    assert payload == {
        "type": "bot_registration",
        "sessionId": "meet-1",
        "meetingId": "meet-1",
        "botName": "Web Client",
        "platform": "clerk",
        "audioConfig": {"sampleRate": 16000, "channels": 1},
    }
