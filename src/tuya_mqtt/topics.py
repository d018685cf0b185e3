"""Topic grammar shared by inbound commands and outbound state.

Inbound topics (segment 0 is the configured root)::

    {root}/{id}/{key}/{address}/{action}/{token}
    {root}/{id}/{key}/{address}/command/dps/{index}/{token}

Outbound topics::

    {root}[{type}/]{id}/{key}/{address}/{suffix}

Decoding never raises: missing segments decode to None.
"""

from __future__ import annotations

from tuya_mqtt.const import TOPIC_SEPARATOR
from tuya_mqtt.structs import ActionKind, DecodedTopic, DeviceReference

__all__ = [
    "DPS_SEGMENT",
    "STATE_SUFFIX",
    "decode",
    "encode",
    "normalize_root",
    "subscription_pattern",
]

DPS_SEGMENT = "dps"
STATE_SUFFIX = "state"

_ID, _KEY, _ADDRESS, _ACTION, _TOKEN, _DPS_INDEX, _DPS_TOKEN = range(1, 8)


def _segment(parts: list[str], index: int) -> str | None:
    return parts[index] if index < len(parts) else None


def decode(topic: str) -> DecodedTopic:
    """Decode a command topic into a device reference and action fields."""
    parts = topic.split(TOPIC_SEPARATOR)
    device = DeviceReference(
        id=_segment(parts, _ID),
        key=_segment(parts, _KEY),
        address=_segment(parts, _ADDRESS),
    )
    action_segment = _segment(parts, _ACTION)
    token = _segment(parts, _TOKEN)

    dps_index: str | None = None
    dps_token: str | None = None
    # "dps" only switches grammar when the token segment after the index exists
    if token is not None and token.lower() == DPS_SEGMENT and _segment(parts, _DPS_TOKEN) is not None:
        dps_index = _segment(parts, _DPS_INDEX)
        dps_token = _segment(parts, _DPS_TOKEN)

    return DecodedTopic(
        device=device,
        action=ActionKind.from_segment(action_segment),
        action_segment=token,
        dps_index=dps_index,
        dps_token=dps_token,
    )


def normalize_root(root: str) -> str:
    """Return the root prefix with exactly one trailing separator."""
    stripped = root.rstrip(TOPIC_SEPARATOR)
    return f"{stripped}{TOPIC_SEPARATOR}" if stripped else ""


def subscription_pattern(root: str) -> str:
    """Wildcard covering every topic below the root."""
    return f"{normalize_root(root)}#"


def encode(root: str, type_prefix: str | None, device: DeviceReference, suffix: str) -> str:
    """Build an outbound topic for a device."""
    topic = normalize_root(root)
    if type_prefix:
        topic += type_prefix + TOPIC_SEPARATOR
    return TOPIC_SEPARATOR.join((topic + str(device.id), str(device.key), str(device.address), suffix))
