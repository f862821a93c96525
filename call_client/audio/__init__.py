"""
Audio module for synthesized-speech output and capture helpers.

Key components:
- playback_queue: FIFO playback of TTS chunks, one at a time, with barge-in
  (stop_and_clear) when the user starts speaking or sends input.
- players: The AudioPlayer protocol and the headless NullAudioPlayer.
- pyaudio_player: Speaker output through PyAudio (optional "audio" extra;
  import it explicitly).
- codec: WAV / raw PCM16 decoding and float-to-PCM16 conversion.
"""

from call_client.audio.codec import PcmClip, decode_clip, float_to_pcm16
from call_client.audio.playback_queue import AudioPlaybackQueue
from call_client.audio.players import AudioPlayer, NullAudioPlayer
