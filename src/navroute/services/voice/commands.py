"""Interpretation of transcribed voice commands into navigation intents."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..routing.ranker import RoutePreference

logger = logging.getLogger(__name__)


class CommandKind(str, Enum):
    NAVIGATE = "navigate"
    REROUTE = "reroute"
    REPORT = "report"
    CLOSE_ROAD = "close_road"
    OPEN_ROAD = "open_road"
    CHECK_TRAFFIC = "check_traffic"
    ALTERNATIVE_TO = "alternative_to"
    UNKNOWN = "unknown"


REROUTE_PHRASES: tuple[str, ...] = (
    "find alternative route",
    "reroute",
    "show me another way",
    "find different route",
    "get alternative route",
    "show alternatives",
    "other route",
    "different way",
)

PREFERENCE_KEYWORDS: dict[RoutePreference, tuple[str, ...]] = {
    RoutePreference.FASTEST: ("fastest", "quickest", "speed", "quick"),
    RoutePreference.SHORTEST: ("shortest", "short", "nearest", "closest"),
    RoutePreference.SCENIC: ("scenic", "beautiful", "nice", "pretty"),
}


@dataclass(slots=True)
class VoiceCommand:
    kind: CommandKind
    feedback: str
    preference: Optional[RoutePreference] = None
    arguments: dict[str, str] = field(default_factory=dict)


def _strip_prefix(command: str, prefix: str) -> str:
    return re.sub(rf"^{re.escape(prefix)}\s*", "", command, flags=re.IGNORECASE).strip()


def _match_reroute(lowered: str) -> Optional[VoiceCommand]:
    for preference, keywords in PREFERENCE_KEYWORDS.items():
        for keyword in keywords:
            for phrase in REROUTE_PHRASES:
                if lowered.startswith(f"{phrase} {keyword}"):
                    return VoiceCommand(
                        kind=CommandKind.REROUTE,
                        preference=preference,
                        feedback=f"Finding {preference.value} alternative route to your destination",
                    )
    if any(lowered.startswith(phrase) for phrase in REROUTE_PHRASES):
        return VoiceCommand(
            kind=CommandKind.REROUTE,
            feedback="Finding alternative routes to your destination",
        )
    return None


def _match_admin(command: str, lowered: str) -> Optional[VoiceCommand]:
    if lowered.startswith("close road"):
        parts = re.split(r"\s+from\s+", _strip_prefix(command, "close road"), maxsplit=1, flags=re.IGNORECASE)
        if len(parts) == 2:
            road, span = parts
            bounds = re.split(r"\s+to\s+", span, maxsplit=1, flags=re.IGNORECASE)
            if len(bounds) == 2:
                start, end = (bound.strip() for bound in bounds)
                return VoiceCommand(
                    kind=CommandKind.CLOSE_ROAD,
                    arguments={"road": road.strip(), "start": start, "end": end},
                    feedback=f"Closing road {road.strip()} from {start} to {end}",
                )
    if lowered.startswith("open road"):
        road = _strip_prefix(command, "open road")
        return VoiceCommand(
            kind=CommandKind.OPEN_ROAD,
            arguments={"road": road},
            feedback=f"Opening road {road}",
        )
    if lowered.startswith("check traffic at"):
        location = _strip_prefix(command, "check traffic at")
        return VoiceCommand(
            kind=CommandKind.CHECK_TRAFFIC,
            arguments={"location": location},
            feedback=f"Checking traffic at {location}",
        )
    return None


def parse_command(transcript: str, *, is_admin: bool = False) -> VoiceCommand:
    """Map a transcript to a command; matching is case-insensitive, arguments keep casing."""
    command = transcript.strip()
    lowered = command.lower()

    if lowered.startswith("navigate to"):
        destination = _strip_prefix(command, "navigate to")
        return VoiceCommand(
            kind=CommandKind.NAVIGATE,
            arguments={"destination": destination},
            feedback=f"Navigating to {destination}",
        )

    reroute = _match_reroute(lowered)
    if reroute is not None:
        return reroute

    if lowered.startswith("report"):
        parts = _strip_prefix(command, "report").split()
        if len(parts) >= 2:
            incident_type, severity = parts[0], parts[1]
            return VoiceCommand(
                kind=CommandKind.REPORT,
                arguments={"type": incident_type, "severity": severity, "location": "current_location"},
                feedback=f"Reporting {incident_type} with {severity} severity at your current location",
            )

    if is_admin:
        admin_command = _match_admin(command, lowered)
        if admin_command is not None:
            return admin_command

    if lowered.startswith("find alternative to"):
        location = _strip_prefix(command, "find alternative to")
        return VoiceCommand(
            kind=CommandKind.ALTERNATIVE_TO,
            arguments={"location": location},
            feedback=f"Finding alternative route to {location}",
        )

    logger.info(f"Unrecognized voice command: {transcript!r}")
    return VoiceCommand(kind=CommandKind.UNKNOWN, feedback="Command not recognized. Please try again.")
