"""Wire settings, persistence, backend and telemetry around a GameManager."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .audio.assets import asset_url
from .audio.interfaces import AudioPlaybackService
from .audio.null import NullAudioService
from .backend.account import AccountService
from .backend.client import AuthSession, SupabaseClient
from .backend.social import SocialAPI, SocialService
from .backend.stats_api import StatsAPI
from .game.events import EventBus
from .game.manager import GameManager
from .game.scheduler import Scheduler
from .logging_config import configure_logging
from .paths import get_telemetry_dir, get_user_data_root
from .persistence.recorder import SessionRecorder
from .persistence.store import ProfileStore
from .settings import Settings
from .telemetry import TelemetryClient

logger = logging.getLogger(__name__)


@dataclass
class ChordCrackApp:
    settings: Settings
    manager: GameManager
    recorder: SessionRecorder
    telemetry: TelemetryClient
    audio: AudioPlaybackService
    client: Optional[SupabaseClient] = None
    stats: Optional[StatsAPI] = None
    social: Optional[SocialAPI] = None
    account: Optional[AccountService] = None

    def sign_in(self, session: AuthSession) -> int:
        """Attach a signed-in user and push any sessions queued while offline."""
        if self.client is None:
            logger.warning("Sign-in ignored: backend is not configured")
            return 0
        self.client.set_session(session)
        if session.username:
            self.recorder.profile.username = session.username
        return self.recorder.sync_pending()

    def asset_url(self, asset_key: str) -> str:
        """Download URL of an audio sample under the configured asset base URL."""
        return asset_url(asset_key, self.settings.asset_base_url)

    def sign_out(self) -> None:
        if self.client is not None:
            self.client.clear_session()

    def close(self) -> None:
        self.telemetry.close()


def build_app(
    settings: Optional[Settings] = None,
    *,
    audio: Optional[AudioPlaybackService] = None,
    scheduler: Optional[Scheduler] = None,
    session: Optional[AuthSession] = None,
    profile_id: str = "default",
) -> ChordCrackApp:
    """Build the application graph. The backend is wired only when configured."""
    settings = settings or Settings.from_sources()
    configure_logging(settings.log_level)
    data_root = get_user_data_root(settings.data_dir or None)

    client: Optional[SupabaseClient] = None
    stats: Optional[StatsAPI] = None
    social: Optional[SocialAPI] = None
    account: Optional[AccountService] = None
    if settings.backend_configured:
        client = SupabaseClient.from_settings(settings, session=session)
        stats = StatsAPI(client)
        social = SocialAPI(client)
    else:
        logger.info("Supabase is not configured; running offline")

    recorder = SessionRecorder(
        ProfileStore(data_root, profile_id=profile_id),
        stats_api=stats,
        username=session.username if session else "",
    )
    if client is not None:
        account = AccountService(client, recorder=recorder, data_dir=data_root)

    bus = EventBus()
    telemetry = TelemetryClient(
        enabled=settings.telemetry_enabled,
        out_dir=get_telemetry_dir(data_root, create=settings.telemetry_enabled),
    )
    telemetry.attach(bus)
    audio = audio or NullAudioService(base_url=settings.asset_base_url)

    manager = GameManager(
        audio=audio,
        persistence=recorder,
        challenge_service=SocialService(social) if social is not None else None,
        scheduler=scheduler,
        bus=bus,
        correct_delay=settings.correct_advance_delay,
        incorrect_delay=settings.incorrect_advance_delay,
    )
    return ChordCrackApp(
        settings=settings,
        manager=manager,
        recorder=recorder,
        telemetry=telemetry,
        audio=audio,
        client=client,
        stats=stats,
        social=social,
        account=account,
    )
