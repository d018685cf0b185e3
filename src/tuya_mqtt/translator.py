"""Translate command tokens into normalized device commands.

Shorthand tokens (``on``, ``off``, ``1``, ``0``, ``toggle``) become set/toggle
commands, JSON tokens are passed through, and DPS-indexed commands get their value
rewritten through :mod:`tuya_mqtt.value_maps`.
"""

from __future__ import annotations

import json
from typing import Any

from tuya_mqtt.const import TOGGLE_DIRECTIVE
from tuya_mqtt.exceptions import CommandParseError
from tuya_mqtt.logging_abstraction import get_logger
from tuya_mqtt.structs import BooleanSet, DecodedTopic, NormalizedCommand, PassThroughJson, RawSet, Toggle
from tuya_mqtt.value_maps import MappingKind, map_value, property_mapping

__all__ = [
    "is_json",
    "parse_json",
    "translate",
    "translate_topic",
]

logger = get_logger(__name__)

_BOOLEAN_LITERALS = ("1", "0")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def parse_json(token: str) -> Any:
    """Parse ``token`` as strict JSON (``NaN`` and ``Infinity`` are rejected).

    Raises:
        ValueError: the token is not valid JSON

    """
    return json.loads(token, parse_constant=_reject_constant)


def is_json(token: str) -> bool:
    try:
        _ = parse_json(token)
    except ValueError:
        return False
    return True


def _effective_token(
    action_segment: str | None,
    dps_index: str | None,
    dps_token: str | None,
    payload: str,
) -> str:
    token = dps_token if dps_index else action_segment
    if token is None:
        return payload
    return token


def translate(
    action_segment: str | None,
    dps_index: str | None,
    dps_token: str | None,
    payload: str,
) -> NormalizedCommand:
    """Build the command for a ``command`` action.

    Args:
        action_segment: Token from segment 5 of the topic
        dps_index: Property index from a ``.../command/dps/{index}/{token}`` topic
        dps_token: Token from segment 7 of a DPS topic
        payload: Message payload, used as the token when the topic carries none

    Raises:
        CommandParseError: the token is empty, or JSON-like but could not be parsed

    """
    lp = "translator:"
    token = _effective_token(action_segment, dps_index, dps_token, payload)
    if not token:
        raise CommandParseError(token, "empty command")

    if token not in _BOOLEAN_LITERALS:
        try:
            parsed = parse_json(token)
        except ValueError:
            pass
        except RecursionError as exc:
            raise CommandParseError(token, str(exc)) from exc
        else:
            if not dps_index or isinstance(parsed, (dict, list)):
                logger.debug("%s command is JSON: %s", lp, token)
                return PassThroughJson(parsed)
            if isinstance(parsed, bool):
                return BooleanSet(parsed, str(dps_index))
            # numbers and strings on a DPS topic go through the value mapper

    if token.lower() == TOGGLE_DIRECTIVE:
        return Toggle()

    value = token.lower() == "on" or token == "1"
    if not dps_index:
        return BooleanSet(value)

    dps = str(dps_index)
    mapping = property_mapping(dps)
    if mapping is None:
        return BooleanSet(value, dps)

    match mapping.kind:
        case MappingKind.BOOLEAN:
            mapped = mapping.table.get(token)
            return BooleanSet(value if mapped is None else bool(mapped), dps)
        case MappingKind.VERBATIM | MappingKind.TABLE:
            return RawSet(map_value(dps, token), dps)


def translate_topic(decoded: DecodedTopic, payload: str) -> NormalizedCommand:
    return translate(decoded.action_segment, decoded.dps_index, decoded.dps_token, payload)
