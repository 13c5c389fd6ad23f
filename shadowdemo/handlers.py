"""Shadow demo state and the handlers for incoming shadow messages."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from shadowdemo.topics import ShadowMessageType, match_topic

logger = logging.getLogger(__name__)

DELETE_REJECTED_ERROR_CODE_KEY = "code"
SHADOW_NOT_FOUND_CODE = 404
CLIENT_TOKEN_MODULUS = 1_000_000

_UINT32_MODULUS = 1 << 32
_LEADING_INTEGER = re.compile(r"\s*([+-]?)(\d+)")
_MISSING = object()


def _document(section: str, power_on: int, client_token: int) -> str:
    if not 0 <= power_on <= 9:
        raise ValueError(f"power state must be a single digit, got {power_on}")
    if not 0 <= client_token < CLIENT_TOKEN_MODULUS:
        raise ValueError(f"client token must be below {CLIENT_TOKEN_MODULUS}, got {client_token}")
    return (
        f'{{"state":{{"{section}":{{"powerOn":{power_on:01d}}}}},'
        f'"clientToken":"{client_token:06d}"}}'
    )


def desired_document(power_on: int, client_token: int) -> str:
    """A shadow update document carrying a desired powerOn state."""
    return _document("desired", power_on, client_token)


def reported_document(power_on: int, client_token: int) -> str:
    """A shadow update document carrying a reported powerOn state."""
    return _document("reported", power_on, client_token)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


def _parse(payload: bytes | str) -> Any:
    """Parse a JSON payload, or return _MISSING if it is not valid JSON."""
    try:
        text = payload.decode("utf-8") if isinstance(payload, (bytes, bytearray)) else payload
        return json.loads(text, parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError):
        return _MISSING


def _search(document: Any, query: str) -> Any:
    """Follow a dotted key path through nested objects; _MISSING if absent."""
    node = document
    for key in query.split("."):
        if not isinstance(node, dict) or key not in node:
            return _MISSING
        node = node[key]
    return node


def _to_unsigned(value: Any) -> int:
    """Read a value as an unsigned 32-bit integer, from its leading digits."""
    text = value if isinstance(value, str) else json.dumps(value)
    found = _LEADING_INTEGER.match(text)
    if found is None:
        return 0
    number = int(found.group(2))
    if found.group(1) == "-":
        number = -number
    return number % _UINT32_MODULUS


def _payload_text(payload: bytes | str) -> str:
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload).decode("utf-8", errors="replace")
    return payload


@dataclass
class ShadowDemoState:
    """What the demo has learned from the shadow service so far."""

    current_power_on: int = 0
    current_version: int = 0
    state_changed: bool = False
    client_token: int = 0
    event_callback_error: bool = False
    delete_response_received: bool = False
    shadow_deleted: bool = False

    def reset_delete_flags(self) -> None:
        """Forget any earlier response to a delete request."""
        self.delete_response_received = False
        self.shadow_deleted = False

    def on_update_delta(self, payload: bytes | str) -> None:
        """Take a newer powerOn state from an /update/delta document."""
        logger.info("/update/delta json payload:%s.", _payload_text(payload))
        document = _parse(payload)
        version = 0
        if document is _MISSING:
            logger.error("The json document is invalid!!")
            self.event_callback_error = True
        else:
            found = _search(document, "version")
            if found is _MISSING:
                logger.error("No version in json document!!")
                self.event_callback_error = True
            else:
                logger.info("version: %s", found)
                version = _to_unsigned(found)

        logger.info("version:%d, currentVersion:%d", version, self.current_version)
        if version <= self.current_version:
            logger.warning("The received version is smaller than current one!!")
            return
        self.current_version = version

        power_on = _search(document, "state.powerOn")
        if power_on is _MISSING:
            logger.error("No powerOn in json document!!")
            self.event_callback_error = True
            return
        new_state = _to_unsigned(power_on)
        logger.info(
            "The new power on state newState:%d, currentPowerOnState:%d",
            new_state,
            self.current_power_on,
        )
        if new_state != self.current_power_on:
            self.current_power_on = new_state
            self.state_changed = True

    def on_update_accepted(self, payload: bytes | str) -> bool:
        """Check an /update/accepted document; True if it carries our client token."""
        logger.info("/update/accepted json payload:%s.", _payload_text(payload))
        document = _parse(payload)
        if document is _MISSING:
            logger.error("Invalid json documents !!")
            self.event_callback_error = True
            return False
        found = _search(document, "clientToken")
        if found is _MISSING:
            logger.error("No clientToken in json document!!")
            self.event_callback_error = True
            return False
        received = _to_unsigned(found)
        logger.info("receivedToken:%d, clientToken:%d", received, self.client_token)
        if received == self.client_token:
            logger.info(
                "Received response from the device shadow. Previously published "
                "update with clientToken=%d has been accepted.",
                self.client_token,
            )
            return True
        logger.warning(
            "The received clientToken=%d is not identical with the one=%d we sent",
            received,
            self.client_token,
        )
        return False

    def on_delete_rejected(self, payload: bytes | str) -> int:
        """Read the error code of a /delete/rejected document and return it.

        A missing shadow (code 404) counts as a successful delete.
        """
        logger.info("/delete/rejected json payload:%s.", _payload_text(payload))
        error_code = 0
        document = _parse(payload)
        if document is _MISSING:
            logger.error("The json document is invalid!!")
        else:
            found = _search(document, DELETE_REJECTED_ERROR_CODE_KEY)
            if found is _MISSING:
                logger.error("No error code in json document!!")
            else:
                error_code = _to_unsigned(found)
        logger.info("Error code:%d.", error_code)
        if error_code == SHADOW_NOT_FOUND_CODE:
            self.shadow_deleted = True
        return error_code

    def handle_publish(self, topic: str, payload: bytes | str) -> ShadowMessageType | None:
        """Dispatch an incoming publish by its shadow topic; return its message type.

        A topic that is not a shadow response is recorded as an error and
        yields None.
        """
        try:
            matched = match_topic(topic)
        except ValueError:
            logger.error("Shadow topic match failed:%s !!", topic)
            self.event_callback_error = True
            return None

        message_type = matched.message_type
        if message_type is ShadowMessageType.UPDATE_DELTA:
            self.on_update_delta(payload)
        elif message_type is ShadowMessageType.UPDATE_ACCEPTED:
            self.on_update_accepted(payload)
        elif message_type is ShadowMessageType.UPDATE_DOCUMENTS:
            logger.info("/update/documents json payload:%s.", _payload_text(payload))
        elif message_type is ShadowMessageType.UPDATE_REJECTED:
            logger.info("/update/rejected json payload:%s.", _payload_text(payload))
        elif message_type is ShadowMessageType.DELETE_ACCEPTED:
            logger.info("Received an MQTT incoming publish on /delete/accepted topic.")
            self.shadow_deleted = True
            self.delete_response_received = True
        elif message_type is ShadowMessageType.DELETE_REJECTED:
            self.on_delete_rejected(payload)
            self.delete_response_received = True
        else:
            logger.info("Other message type:%s !!", message_type.value)
        return message_type