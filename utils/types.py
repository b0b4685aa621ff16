"""
Type definitions and common data structures for the practice room bot.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from utils.logging import get_logger

logger = get_logger(__name__)

# Field names accepted by the guild store's add/remove operations
PERMITTED_CHANNELS_FIELD = "permitted_channels"
OVERFLOW_CHANNELS_FIELD = "overflow_channels"


@dataclass
class GuildConfig:
    """Guild-specific practice room configuration.

    ``permitted_channel_ids`` keeps insertion order and never holds duplicates.
    ``overflow_channel_ids`` marks the permitted rooms the bot created itself
    and is therefore allowed to delete.
    """

    guild_id: int
    permitted_channel_ids: list[int] = field(default_factory=list)
    overflow_channel_ids: set[int] = field(default_factory=set)

    def is_permitted(self, channel_id: int | None) -> bool:
        return channel_id is not None and channel_id in self.permitted_channel_ids

    def is_overflow(self, channel_id: int | None) -> bool:
        return channel_id is not None and channel_id in self.overflow_channel_ids


class RoomTier(Enum):
    """Capacity tier of a voice room, derived from its bitrate."""

    PRIMARY = "primary"
    OVERFLOW = "overflow"


class SessionPhase(Enum):
    """Phase of a member's practice session."""

    NEVER_STARTED = "never_started"
    ACTIVE = "active"
    COMMITTED = "committed"


@dataclass(frozen=True)
class SessionStart:
    """Three-state session start marker.

    Only an ACTIVE session carries a start timestamp, and ``elapsed`` refuses
    to compute a duration for anything else.
    """

    phase: SessionPhase = SessionPhase.NEVER_STARTED
    started_at: int | None = None

    def __post_init__(self) -> None:
        if self.phase is SessionPhase.ACTIVE and self.started_at is None:
            raise ValueError("An active session requires a start timestamp")
        if self.phase is not SessionPhase.ACTIVE and self.started_at is not None:
            raise ValueError(f"A {self.phase.value} session cannot carry a start timestamp")

    @classmethod
    def never_started(cls) -> "SessionStart":
        return cls(SessionPhase.NEVER_STARTED)

    @classmethod
    def active(cls, started_at: int) -> "SessionStart":
        return cls(SessionPhase.ACTIVE, int(started_at))

    @classmethod
    def committed(cls) -> "SessionStart":
        return cls(SessionPhase.COMMITTED)

    @property
    def is_active(self) -> bool:
        return self.phase is SessionPhase.ACTIVE

    def elapsed(self, now: int) -> int:
        """Seconds between the session start and ``now``."""
        if self.started_at is None:
            raise ValueError(f"Cannot compute elapsed time for a {self.phase.value} session")
        return int(now) - self.started_at


@dataclass(frozen=True)
class MemberSnapshot:
    """Voice presence of one member at one point in time."""

    member_id: int
    guild_id: int
    channel_id: int | None = None
    is_bot: bool = False
    is_muted: bool = False
    is_self_deafened: bool = False
    is_server_muted: bool = False
    is_server_deafened: bool = False
    role_names: frozenset[str] = frozenset()
    session: SessionStart = SessionStart()

    @classmethod
    def from_voice_state(
        cls,
        member: Any,
        voice_state: Any,
        session: SessionStart | None = None,
    ) -> "MemberSnapshot":
        """Build a snapshot from a discord.Member and one of its VoiceStates."""
        channel = getattr(voice_state, "channel", None)
        self_mute = bool(getattr(voice_state, "self_mute", False))
        server_mute = bool(getattr(voice_state, "mute", False))
        return cls(
            member_id=member.id,
            guild_id=member.guild.id,
            channel_id=channel.id if channel is not None else None,
            is_bot=bool(getattr(member, "bot", False)),
            is_muted=self_mute or server_mute,
            is_self_deafened=bool(getattr(voice_state, "self_deaf", False)),
            is_server_muted=server_mute,
            is_server_deafened=bool(getattr(voice_state, "deaf", False)),
            role_names=frozenset(role.name for role in getattr(member, "roles", [])),
            session=session or SessionStart.never_started(),
        )

    def with_session(self, session: SessionStart) -> "MemberSnapshot":
        return replace(self, session=session)


class TransitionKind(Enum):
    """Outcome of one Session Accountant step."""

    STARTED = "started"
    CARRIED = "carried"
    COMMITTED = "committed"
    NOOP = "noop"


@dataclass(frozen=True)
class SessionTransition:
    """Result of advancing a member's session by one presence event."""

    kind: TransitionKind
    session: SessionStart
    elapsed_seconds: int | None = None


@dataclass(frozen=True)
class PracticeSettings:
    """Typed view of the ``practice`` section of config.yaml."""

    chat_channel_name: str = "practice-room-chat"
    temp_muted_role: str = "Temp Muted"
    verification_required_role: str = "Verification Required"
    overflow_room_name: str = "Extra Practice Room"
    overflow_bitrate: int = 256000
    low_bitrate: int = 64000

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None) -> "PracticeSettings":
        data = data or {}
        defaults = cls()
        settings = cls(
            chat_channel_name=str(data.get("chat_channel_name", defaults.chat_channel_name)),
            temp_muted_role=str(data.get("temp_muted_role", defaults.temp_muted_role)),
            verification_required_role=str(
                data.get("verification_required_role", defaults.verification_required_role)
            ),
            overflow_room_name=str(data.get("overflow_room_name", defaults.overflow_room_name)),
            overflow_bitrate=int(data.get("overflow_bitrate", defaults.overflow_bitrate)),
            low_bitrate=int(data.get("low_bitrate", defaults.low_bitrate)),
        )
        if settings.low_bitrate >= settings.overflow_bitrate:
            # Every new overflow room would count as full the moment it exists
            logger.warning(
                "practice.low_bitrate (%d) is not below practice.overflow_bitrate (%d); "
                "overflow rooms will be treated as full",
                settings.low_bitrate,
                settings.overflow_bitrate,
            )
        return settings


class ServiceStatus(Enum):
    """Service initialization status."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    ERROR = "error"


# Type aliases
GuildId = int
UserId = int
ChannelId = int
RoleId = int
