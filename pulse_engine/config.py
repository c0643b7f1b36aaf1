"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "pulse-engine"
    debug: bool = False
    log_level: str = "INFO"

    # Event window
    event_window_size: int = 20
    recent_events_limit: int = 10
    time_saved_per_auto_resolved_seconds: int = 180

    # Tension thresholds (strictly greater-than)
    tension_elevated_urgent: int = 2
    tension_elevated_pending: int = 10
    tension_high_urgent: int = 1
    tension_high_pending: int = 10
    tension_active_urgent: int = 0
    tension_active_pending: int = 5
    tension_pending_only: bool = False

    # Classification
    classification_low_confidence: float = 60.0
    classification_high_risk_amount: float = 250.0
    classification_medium_risk_amount: float = 100.0
    classification_manager_approval_amount: float = 100.0
    classification_exception_layer_confidence: float = 70.0

    model_config = {"env_prefix": "PULSE_"}


settings = Settings()
