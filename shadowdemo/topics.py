"""Device shadow MQTT topics: building them and recognising incoming ones."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from shadowdemo.config import SHADOW_NAME_CLASSIC

TOPIC_PREFIX = "$aws/things/"
SHADOW_SEGMENT = "shadow"
NAMED_SHADOW_SEGMENT = "name"


class ShadowMessageType(enum.Enum):
    """Shadow operations and their responses, valued by their topic suffix."""

    GET = "get"
    UPDATE = "update"
    DELETE = "delete"
    GET_ACCEPTED = "get/accepted"
    GET_REJECTED = "get/rejected"
    DELETE_ACCEPTED = "delete/accepted"
    DELETE_REJECTED = "delete/rejected"
    UPDATE_ACCEPTED = "update/accepted"
    UPDATE_REJECTED = "update/rejected"
    UPDATE_DOCUMENTS = "update/documents"
    UPDATE_DELTA = "update/delta"

    @property
    def is_response(self) -> bool:
        """True for topics the broker publishes to the device."""
        return "/" in self.value


_RESPONSES = {member.value: member for member in ShadowMessageType if member.is_response}


@dataclass(frozen=True)
class ShadowTopicMatch:
    """What an incoming shadow topic says about the message it carries."""

    message_type: ShadowMessageType
    thing_name: str
    shadow_name: str = SHADOW_NAME_CLASSIC

    @property
    def is_classic(self) -> bool:
        return self.shadow_name == SHADOW_NAME_CLASSIC


def _check_name(value: str, what: str, allow_empty: bool) -> None:
    if not value and not allow_empty:
        raise ValueError(f"{what} must not be empty")
    if "/" in value:
        raise ValueError(f"{what} must not contain '/': {value!r}")
    if "+" in value or "#" in value:
        raise ValueError(f"{what} must not contain MQTT wildcards: {value!r}")


def shadow_topic(
    thing_name: str,
    shadow_name: str = SHADOW_NAME_CLASSIC,
    message_type: ShadowMessageType = ShadowMessageType.UPDATE,
) -> str:
    """Assemble the topic for a thing's classic or named shadow."""
    _check_name(thing_name, "thing name", allow_empty=False)
    _check_name(shadow_name, "shadow name", allow_empty=True)
    message_type = ShadowMessageType(message_type)
    base = f"{TOPIC_PREFIX}{thing_name}/{SHADOW_SEGMENT}/"
    if shadow_name != SHADOW_NAME_CLASSIC:
        base += f"{NAMED_SHADOW_SEGMENT}/{shadow_name}/"
    return base + message_type.value


def match_topic(topic: str) -> ShadowTopicMatch:
    """Recognise a shadow response topic; raise ValueError for any other topic."""
    if not topic.startswith(TOPIC_PREFIX):
        raise ValueError(f"not a shadow topic: {topic!r}")
    thing_name, sep, rest = topic[len(TOPIC_PREFIX):].partition("/")
    if not thing_name or not sep:
        raise ValueError(f"no thing name in topic: {topic!r}")
    segment, sep, rest = rest.partition("/")
    if segment != SHADOW_SEGMENT or not sep:
        raise ValueError(f"not a shadow topic: {topic!r}")

    shadow_name = SHADOW_NAME_CLASSIC
    if rest.startswith(NAMED_SHADOW_SEGMENT + "/"):
        shadow_name, sep, rest = rest[len(NAMED_SHADOW_SEGMENT) + 1:].partition("/")
        if not shadow_name or not sep:
            raise ValueError(f"no shadow name in topic: {topic!r}")

    message_type = _RESPONSES.get(rest)
    if message_type is None:
        raise ValueError(f"unknown shadow message type in topic: {topic!r}")
    return ShadowTopicMatch(message_type, thing_name, shadow_name)