"""Long-lived handler object registered with the host."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from voice_bridge.adapters.elevenlabs import ElevenLabsSynthesizer
from voice_bridge.adapters.interfaces import AudioPlayer, MessageSource, Notifier, SpeechSynthesizer
from voice_bridge.adapters.player import SubprocessAudioPlayer
from voice_bridge.arbitrator import SpeakArbitrator
from voice_bridge.config import Settings
from voice_bridge.notifications import Notifications
from voice_bridge.router import VoiceEventRouter
from voice_bridge.session import SessionPolicyStore
from voice_bridge.voice_config import ConfigSnapshotManager


class VoiceBridge:
    """Wires config, session policy, arbitration, and routing for one host."""

    def __init__(
        self,
        *,
        config: ConfigSnapshotManager,
        policy: SessionPolicyStore,
        arbitrator: SpeakArbitrator,
        router: VoiceEventRouter,
    ) -> None:
        self.config = config
        self.policy = policy
        self.arbitrator = arbitrator
        self.router = router

    @classmethod
    async def create(
        cls,
        project_root: str | Path,
        *,
        message_source: MessageSource,
        notifier: Notifier,
        synthesizer: SpeechSynthesizer | None = None,
        player: AudioPlayer | None = None,
        settings: Settings | None = None,
        logger: logging.Logger | None = None,
    ) -> VoiceBridge:
        """Build every component and load the initial config with an announcement."""
        runtime_settings = settings or Settings()
        logger = logger or logging.getLogger("voice_bridge.bridge")

        notifications = Notifications(notifier)
        config = ConfigSnapshotManager(project_root, notifications=notifications, home=runtime_settings.home)
        policy = SessionPolicyStore(config)
        arbitrator = SpeakArbitrator(
            policy=policy,
            config=config,
            message_source=message_source,
            synthesizer=synthesizer or ElevenLabsSynthesizer(base_url=runtime_settings.elevenlabs_base_url),
            player=player or SubprocessAudioPlayer(runtime_settings.temp_dir),
            notifications=notifications,
            api_key_provider=lambda: runtime_settings.elevenlabs_api_key,
            message_limit=runtime_settings.message_limit,
        )
        router = VoiceEventRouter(policy=policy, arbitrator=arbitrator, config=config, notifications=notifications)

        bridge = cls(config=config, policy=policy, arbitrator=arbitrator, router=router)
        await config.reload(announce=True)
        logger.info("voice_bridge_started", extra={"project_root": str(config.project_root)})
        return bridge

    async def handle_event(self, event: Mapping[str, Any]) -> None:
        await self.router.handle(event)
