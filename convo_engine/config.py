"""
Centralized configuration with environment variable overrides.

Pacing defaults, chunking thresholds, scheduling limits, model settings and
AWS resource names all live here. Per-tenant overrides (e.g. agent timing
stored next to company info) are merged on top of these at runtime.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from convo_engine.logging_context import build_trace_handler

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class TimingConfig:
    """Default human-pacing parameters (speeds in chars/sec, times in seconds)."""

    reading_speed: float = _safe_float("READING_SPEED", "50")
    typing_speed: float = _safe_float("TYPING_SPEED", "8")
    min_busy_time: float = _safe_float("MIN_BUSY_TIME", "0.5")
    max_busy_time: float = _safe_float("MAX_BUSY_TIME", "2.0")
    min_thinking_time: float = _safe_float("MIN_THINKING_TIME", "1.0")
    max_thinking_time: float = _safe_float("MAX_THINKING_TIME", "2.5")


@dataclass(frozen=True)
class ChunkingConfig:
    """Defaults used when a persona has no explicit chunking rules."""

    chat_max_length: int = _safe_int("CHAT_CHUNK_MAX_LENGTH", "120")
    chat_delay_ms: int = _safe_int("CHAT_CHUNK_DELAY_MS", "1000")
    low_verbosity_threshold: int = _safe_int("LOW_VERBOSITY_THRESHOLD", "2")
    default_verbosity: int = _safe_int("DEFAULT_VERBOSITY", "5")


@dataclass(frozen=True)
class SchedulingConfig:
    """Limits for slot offers built from business hours."""

    max_times_per_day: int = _safe_int("MAX_TIMES_PER_DAY", "3")
    max_day_sample_times: int = _safe_int("MAX_DAY_SAMPLE_TIMES", "5")
    day_sample_step_hours: int = _safe_int("DAY_SAMPLE_STEP_HOURS", "2")
    default_renegotiation_hour: int = _safe_int("DEFAULT_RENEGOTIATION_HOUR", "18")


@dataclass(frozen=True)
class ModelConfig:
    """LLM settings for reply generation."""

    llm_model: str = os.getenv("LLM_MODEL", "gpt-4o-mini")
    llm_temperature: float = _safe_float("LLM_TEMPERATURE", "0.7")
    llm_max_tokens: int = _safe_int("LLM_MAX_TOKENS", "400")


@dataclass(frozen=True)
class AwsConfig:
    """AWS resource names for the Lambda deployment."""

    region: str = os.getenv("AWS_REGION", "us-east-1")
    event_bus_name: str = os.getenv("EVENT_BUS_NAME", "default")
    channels_table: str = os.getenv("CHANNELS_TABLE", "channels")
    personas_table: str = os.getenv("PERSONAS_TABLE", "personas")
    company_info_table: str = os.getenv("COMPANY_INFO_TABLE", "company-info")
    channel_state_table: str = os.getenv("CHANNEL_STATE_TABLE", "channel-state")
    leads_table: str = os.getenv("LEADS_TABLE", "leads")
    leads_phone_index: str = os.getenv("LEADS_PHONE_INDEX", "PhoneIndex")


@dataclass(frozen=True)
class RouterConfig:
    """Event names and fallbacks used by the origin router."""

    default_persona_name: str = os.getenv("DEFAULT_PERSONA_NAME", "AI Assistant")
    external_detail_type: str = os.getenv("EXTERNAL_DETAIL_TYPE", "chat.message.available")
    native_chat_detail_type: str = os.getenv("NATIVE_CHAT_DETAIL_TYPE", "chat.message")
    agent_event_source: str = os.getenv("AGENT_EVENT_SOURCE", "convo-engine.agent")
    outbound_event_source: str = os.getenv("OUTBOUND_EVENT_SOURCE", "convo-engine.messaging")
    outbound_detail_type: str = os.getenv("OUTBOUND_DETAIL_TYPE", "chat.message")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    timing: TimingConfig = field(default_factory=TimingConfig)
    chunking: ChunkingConfig = field(default_factory=ChunkingConfig)
    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    aws: AwsConfig = field(default_factory=AwsConfig)
    router: RouterConfig = field(default_factory=RouterConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    service_name: str = os.getenv("SERVICE_NAME", "convo-engine")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    timing = config.timing
    if timing.reading_speed <= 0:
        raise ValueError(f"READING_SPEED must be > 0, got {timing.reading_speed}")
    if timing.typing_speed <= 0:
        raise ValueError(f"TYPING_SPEED must be > 0, got {timing.typing_speed}")

    for min_name, min_value, max_name, max_value in [
        ("MIN_BUSY_TIME", timing.min_busy_time, "MAX_BUSY_TIME", timing.max_busy_time),
        (
            "MIN_THINKING_TIME", timing.min_thinking_time,
            "MAX_THINKING_TIME", timing.max_thinking_time,
        ),
    ]:
        if min_value < 0:
            raise ValueError(f"{min_name} must be >= 0, got {min_value}")
        if max_value < min_value:
            raise ValueError(
                f"{max_name} ({max_value}) must be >= {min_name} ({min_value})"
            )

    if config.chunking.chat_max_length < 1:
        raise ValueError(
            f"CHAT_CHUNK_MAX_LENGTH must be >= 1, got {config.chunking.chat_max_length}"
        )
    if config.chunking.chat_delay_ms < 0:
        raise ValueError(
            f"CHAT_CHUNK_DELAY_MS must be >= 0, got {config.chunking.chat_delay_ms}"
        )

    scheduling = config.scheduling
    if scheduling.max_times_per_day < 1:
        raise ValueError(
            f"MAX_TIMES_PER_DAY must be >= 1, got {scheduling.max_times_per_day}"
        )
    if scheduling.max_day_sample_times < 1:
        raise ValueError(
            f"MAX_DAY_SAMPLE_TIMES must be >= 1, got {scheduling.max_day_sample_times}"
        )
    if scheduling.day_sample_step_hours < 1:
        raise ValueError(
            f"DAY_SAMPLE_STEP_HOURS must be >= 1, got {scheduling.day_sample_step_hours}"
        )
    if not 0 <= scheduling.default_renegotiation_hour <= 23:
        raise ValueError(
            "DEFAULT_RENEGOTIATION_HOUR must be between 0 and 23, "
            f"got {scheduling.default_renegotiation_hour}"
        )

    if not 0.0 <= config.model.llm_temperature <= 2.0:
        raise ValueError(
            f"LLM_TEMPERATURE must be between 0.0 and 2.0, got {config.model.llm_temperature}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        handlers=[build_trace_handler()],
    )
    logger.info("Configuration loaded for '%s'", config.service_name)
    return config


# Singleton instance
settings = load_config()
