"""Exception types raised along the speak pipeline."""


class VoiceError(RuntimeError):
    """Base class for reportable voice bridge failures."""


class VoiceConfigError(VoiceError):
    """Missing credential, missing voice id, or an unreadable voice.json."""


class SynthesisError(VoiceError):
    """The text-to-speech service rejected or failed a request."""


class PlaybackError(VoiceError):
    """The local audio player could not play the synthesized audio."""
