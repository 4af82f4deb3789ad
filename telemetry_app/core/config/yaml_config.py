from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


@dataclass(frozen=True)
class EngineConfig:
    """Replay/analytics engine parameters."""
    window_size: int = 60
    allowed_speeds: List[float] = field(default_factory=lambda: [0.5, 1.0, 2.0, 10.0])
    default_speed: float = 1.0
    staleness_threshold_ms: float = 10_000.0
    staleness_poll_ms: float = 1_000.0
    overview_max_points: int = 500
    temp_high_c: float = 60.0
    temp_normal_c: float = 45.0


@dataclass(frozen=True)
class SourceConfig:
    """Where samples come from: a live TCP feed or a JSONL replay file."""
    mode: str = "live"
    replay_path: Optional[str] = None


@dataclass(frozen=True)
class TcpClientConfig:
    """TCP client connection settings used by the sample receiver."""
    host: str = "127.0.0.1"
    port: int = 9010
    timeout_s: float = 5.0
    reconnect_delay_s: float = 0.5


@dataclass(frozen=True)
class WebhookConfigData:
    """Webhook notifier configuration (URL + auth)."""
    url: str
    auth_header: Optional[str] = None
    timeout_s: float = 3.0
    verify_tls: bool = True


@dataclass(frozen=True)
class ExportConfig:
    """Export table formatting."""
    delimiter: str = ","


@dataclass(frozen=True)
class AppConfig:
    """
    Root application configuration loaded from YAML.

    This is the single source of truth for runtime-tunable values so the EXE
    can be configured without rebuilding.
    """
    engine: EngineConfig
    source: SourceConfig
    transport: TcpClientConfig
    webhook: Optional[WebhookConfigData]
    export: ExportConfig
    log_level: str = "INFO"


def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("config.yaml must contain a YAML mapping at the root")
    return data


def _resolve_default_config_path() -> Path:
    """
    Resolve config.yaml location.

    Priority:
    1) APP_CONFIG env var if provided
    2) config.yaml next to the executable (or this module when running from source)
    3) ./config.yaml in current working directory
    """
    env = os.getenv("APP_CONFIG")
    if env:
        return Path(env).expanduser().resolve()

    # PyInstaller-friendly: executable directory
    exe_dir = Path(sys.executable).resolve().parent
    candidate = exe_dir / "config.yaml"
    if candidate.exists():
        return candidate

    # source/dev fallback
    return Path("config.yaml").resolve()


def parse_engine_config(raw: Dict[str, Any]) -> EngineConfig:
    """
    Build and validate the engine section.

    Raises
    ------
    ValueError
        If a value is out of range or the default speed is not allowed.
    """
    d = EngineConfig()
    speeds = [float(x) for x in raw.get("allowed_speeds", d.allowed_speeds)]
    cfg = EngineConfig(
        window_size=int(raw.get("window_size", d.window_size)),
        allowed_speeds=speeds,
        default_speed=float(raw.get("default_speed", d.default_speed)),
        staleness_threshold_ms=float(raw.get("staleness_threshold_ms", d.staleness_threshold_ms)),
        staleness_poll_ms=float(raw.get("staleness_poll_ms", d.staleness_poll_ms)),
        overview_max_points=int(raw.get("overview_max_points", d.overview_max_points)),
        temp_high_c=float(raw.get("temp_high_c", d.temp_high_c)),
        temp_normal_c=float(raw.get("temp_normal_c", d.temp_normal_c)),
    )

    if cfg.window_size < 1:
        raise ValueError(f"engine.window_size must be >= 1, got {cfg.window_size}")
    if not speeds or any(s <= 0 for s in speeds):
        raise ValueError("engine.allowed_speeds must be a non-empty list of positive numbers")
    if cfg.default_speed not in speeds:
        raise ValueError(f"engine.default_speed {cfg.default_speed} not in allowed_speeds {speeds}")
    if cfg.staleness_threshold_ms <= 0 or cfg.staleness_poll_ms <= 0:
        raise ValueError("engine staleness timings must be positive")
    if cfg.overview_max_points < 1:
        raise ValueError(f"engine.overview_max_points must be >= 1, got {cfg.overview_max_points}")
    return cfg


def load_app_config(path: Optional[str] = None) -> AppConfig:
    """
    Load application configuration from YAML and convert into typed config objects.

    Parameters
    ----------
    path
        Explicit path to config.yaml. If None, uses default resolution.

    Returns
    -------
    AppConfig
        Parsed and validated configuration.

    Raises
    ------
    FileNotFoundError
        If config file does not exist.
    ValueError
        If required fields are missing or invalid.
    """
    cfg_path = Path(path).expanduser().resolve() if path else _resolve_default_config_path()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config not found: {cfg_path}")

    return parse_app_config(_read_yaml(cfg_path))


def parse_app_config(raw: Dict[str, Any]) -> AppConfig:
    """Convert an already-parsed YAML mapping into :class:`AppConfig`."""
    # ---- engine ----
    engine = parse_engine_config(raw.get("engine") or {})

    # ---- source ----
    s = raw.get("source") or {}
    mode = str(s.get("mode", "live")).lower()
    if mode not in ("live", "replay"):
        raise ValueError(f"source.mode must be 'live' or 'replay', got {mode!r}")
    replay_path = s.get("replay_path")
    if mode == "replay" and not replay_path:
        raise ValueError("source.replay_path is required when source.mode is 'replay'")
    source = SourceConfig(mode=mode, replay_path=str(replay_path) if replay_path else None)

    # ---- transport ----
    t = (raw.get("transport") or {}).get("tcp_client", {}) or {}
    transport = TcpClientConfig(
        host=str(t.get("host", "127.0.0.1")),
        port=int(t.get("port", 9010)),
        timeout_s=float(t.get("timeout_s", 5.0)),
        reconnect_delay_s=float(t.get("reconnect_delay_s", 0.5)),
    )

    # ---- webhook (optional) ----
    webhook = None
    w = raw.get("webhook")
    if w:
        webhook = WebhookConfigData(
            url=str(w["url"]),
            auth_header=w.get("auth_header"),
            timeout_s=float(w.get("timeout_s", 3.0)),
            verify_tls=bool(w.get("verify_tls", True)),
        )

    # ---- export ----
    e = raw.get("export") or {}
    delimiter = str(e.get("delimiter", ","))
    if len(delimiter) != 1:
        raise ValueError(f"export.delimiter must be a single character, got {delimiter!r}")

    # ---- logging ----
    log_level = str((raw.get("logging") or {}).get("level", "INFO")).upper()

    return AppConfig(
        engine=engine,
        source=source,
        transport=transport,
        webhook=webhook,
        export=ExportConfig(delimiter=delimiter),
        log_level=log_level,
    )
