"""Host, text-to-speech, and playback collaborator integrations."""

from .elevenlabs import ElevenLabsSynthesizer
from .interfaces import AudioPlayer, MessageSource, Notifier, PlayerResult, SpeechSynthesizer, SynthesisRequest
from .opencode import OpencodeMessageSource, OpencodeToastNotifier
from .player import SubprocessAudioPlayer, run_player_process

__all__ = [
    "AudioPlayer",
    "ElevenLabsSynthesizer",
    "MessageSource",
    "Notifier",
    "OpencodeMessageSource",
    "OpencodeToastNotifier",
    "PlayerResult",
    "SpeechSynthesizer",
    "SubprocessAudioPlayer",
    "SynthesisRequest",
    "run_player_process",
]
