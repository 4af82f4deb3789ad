from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from telemetry_app.core.config.yaml_config import AppConfig, WebhookConfigData, load_app_config
from telemetry_app.core.engine import TelemetryEngine
from telemetry_app.core.scheduling import Scheduler
from telemetry_app.domain.models import PlaybackMode
from telemetry_app.notification.notification_thread import NotificationWorkerThread
from telemetry_app.notification.webhook_notifier import WebhookConfig, WebhookNotifier
from telemetry_app.runtime.app_runtime import AppRuntime, AppRuntimeConfig
from telemetry_app.runtime.event_bus import EventBus
from telemetry_app.runtime.timer_scheduler import TimerScheduler
from telemetry_app.transport.jsonl_reader import read_samples
from telemetry_app.utils.logger import get_logger, set_level

logger = get_logger(__name__)


@dataclass(frozen=True)
class AppWiring:
    """Everything the UI layer needs to run the system."""
    config: AppConfig
    engine: TelemetryEngine
    bus: EventBus
    notifier: Optional[NotificationWorkerThread]
    runtime: AppRuntime


def build_engine(cfg: AppConfig, scheduler: Scheduler, bus: EventBus) -> TelemetryEngine:
    e = cfg.engine
    mode = PlaybackMode.REPLAY if cfg.source.mode == "replay" else PlaybackMode.LIVE
    return TelemetryEngine(
        scheduler=scheduler,
        window_size=e.window_size,
        allowed_speeds=e.allowed_speeds,
        default_speed=e.default_speed,
        staleness_threshold_ms=e.staleness_threshold_ms,
        staleness_poll_ms=e.staleness_poll_ms,
        overview_max_points=e.overview_max_points,
        on_staleness=bus.publish_staleness,
        mode=mode,
    )


def build_notifier(webhook: WebhookConfigData) -> NotificationWorkerThread:
    auth_header = webhook.auth_header

    if auth_header and not auth_header.startswith("Bearer "):
        auth_header = f"Bearer {auth_header}"

    return NotificationWorkerThread(
        notifiers=[
            WebhookNotifier(
                WebhookConfig(
                    url=webhook.url,
                    auth_header=auth_header,
                    timeout_s=webhook.timeout_s,
                    verify_tls=webhook.verify_tls,
                )
            )
        ]
    )


def build_app_system(
    config_path: Optional[str] = None,
    scheduler: Optional[Scheduler] = None,
    cfg: Optional[AppConfig] = None,
) -> AppWiring:
    """
    Compose engine, notifier and runtime threads from configuration.

    In replay mode the configured JSONL file is loaded into the engine here,
    so a bad file fails before any window is shown.
    """
    cfg = cfg or load_app_config(config_path)
    set_level(cfg.log_level)

    # --- EVENT BUS ---
    bus = EventBus()

    # --- ENGINE ---
    engine = build_engine(cfg, scheduler or TimerScheduler(), bus)
    if cfg.source.mode == "replay":
        engine.load_replay(read_samples(cfg.source.replay_path))

    # --- NOTIFICATIONS ---
    notifier = None
    if cfg.webhook is not None:
        notifier = build_notifier(cfg.webhook)
        notifier.start()

    # --- RUNTIME ---
    runtime = AppRuntime(
        cfg=AppRuntimeConfig(
            live=cfg.source.mode == "live",
            feed_host=cfg.transport.host,
            feed_port=cfg.transport.port,
            connect_timeout_s=cfg.transport.timeout_s,
            reconnect_delay_s=cfg.transport.reconnect_delay_s,
        ),
        engine=engine,
        bus=bus,
        notifier=notifier,
    )

    logger.info("App system built (source=%s)", cfg.source.mode)
    return AppWiring(config=cfg, engine=engine, bus=bus, notifier=notifier, runtime=runtime)
