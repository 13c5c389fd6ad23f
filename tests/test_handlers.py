import json

import pytest

from shadowdemo.handlers import ShadowDemoState, desired_document, reported_document
from shadowdemo.topics import ShadowMessageType, shadow_topic

THING = "demo-thing"


def delta(version, power_on):
    return json.dumps({"version": version, "state": {"powerOn": power_on}}).encode()


def test_desired_document_matches_source_example():
    assert desired_document(1, 21909) == (
        '{"state":{"desired":{"powerOn":1}},"clientToken":"021909"}'
    )


def test_reported_document_round_trip():
    document = json.loads(reported_document(1, 22485))
    assert document == {"state": {"reported": {"powerOn": 1}}, "clientToken": "022485"}


@pytest.mark.parametrize("token", [0, 7, 123456, 999999])
def test_document_length_is_fixed(token):
    assert len(desired_document(0, token)) == len(desired_document(1, 999999))
    assert len(reported_document(1, token)) == len(reported_document(0, 0))


@pytest.mark.parametrize("power_on, token", [(10, 1), (-1, 1), (1, 1_000_000), (1, -5)])
def test_document_rejects_out_of_range_values(power_on, token):
    with pytest.raises(ValueError):
        desired_document(power_on, token)


def test_delta_with_newer_version_changes_state():
    state = ShadowDemoState()
    state.on_update_delta(delta(12, 1))
    assert state.current_version == 12
    assert state.current_power_on == 1
    assert state.state_changed is True
    assert state.event_callback_error is False


def test_delta_with_same_power_state_does_not_flag_change():
    state = ShadowDemoState()
    state.on_update_delta(delta(3, 0))
    assert state.current_version == 3
    assert state.state_changed is False


def test_delta_with_older_version_is_discarded():
    state = ShadowDemoState(current_version=20)
    state.on_update_delta(delta(12, 1))
    assert state.current_version == 20
    assert state.current_power_on == 0
    assert state.state_changed is False
    assert state.event_callback_error is False


def test_delta_without_version_is_an_error():
    state = ShadowDemoState()
    state.on_update_delta(b'{"state":{"powerOn":1}}')
    assert state.event_callback_error is True
    assert state.state_changed is False


def test_delta_invalid_json_is_an_error():
    state = ShadowDemoState()
    state.on_update_delta(b'{"version": 1,')
    assert state.event_callback_error is True


def test_delta_without_power_on_is_an_error():
    state = ShadowDemoState()
    state.on_update_delta(b'{"version": 5, "state": {}}')
    assert state.current_version == 5
    assert state.event_callback_error is True


def test_update_accepted_matching_token():
    state = ShadowDemoState(client_token=22485)
    payload = json.dumps({"version": 14698, "clientToken": "022485"})
    assert state.on_update_accepted(payload) is True
    assert state.event_callback_error is False


def test_update_accepted_other_token():
    state = ShadowDemoState(client_token=22485)
    assert state.on_update_accepted(b'{"clientToken":"021909"}') is False
    assert state.event_callback_error is False


def test_update_accepted_without_token_is_an_error():
    state = ShadowDemoState()
    assert state.on_update_accepted(b'{"version": 1}') is False
    assert state.event_callback_error is True


def test_update_accepted_round_trip_with_reported_document():
    state = ShadowDemoState(client_token=4321)
    assert state.on_update_accepted(reported_document(1, 4321)) is True


def test_delete_rejected_not_found_counts_as_deleted():
    state = ShadowDemoState()
    assert state.on_delete_rejected(b'{"code": 404, "message": "No shadow exists"}') == 404
    assert state.shadow_deleted is True


def test_delete_rejected_other_code_is_not_deleted():
    state = ShadowDemoState()
    assert state.on_delete_rejected(b'{"code": 500}') == 500
    assert state.shadow_deleted is False
    assert state.event_callback_error is False


def test_delete_rejected_invalid_json():
    state = ShadowDemoState()
    assert state.on_delete_rejected(b"not json") == 0
    assert state.shadow_deleted is False


def test_handle_publish_delete_accepted():
    state = ShadowDemoState()
    topic = shadow_topic(THING, message_type=ShadowMessageType.DELETE_ACCEPTED)
    assert state.handle_publish(topic, b"{}") is ShadowMessageType.DELETE_ACCEPTED
    assert state.shadow_deleted is True
    assert state.delete_response_received is True


def test_handle_publish_delete_rejected_named_shadow():
    state = ShadowDemoState()
    topic = shadow_topic(THING, "lamp", ShadowMessageType.DELETE_REJECTED)
    assert state.handle_publish(topic, b'{"code": 404}') is ShadowMessageType.DELETE_REJECTED
    assert state.shadow_deleted is True
    assert state.delete_response_received is True


def test_handle_publish_dispatches_delta():
    state = ShadowDemoState()
    topic = shadow_topic(THING, message_type=ShadowMessageType.UPDATE_DELTA)
    assert state.handle_publish(topic, delta(2, 1)) is ShadowMessageType.UPDATE_DELTA
    assert state.state_changed is True


def test_handle_publish_rejected_update_changes_nothing():
    state = ShadowDemoState()
    topic = shadow_topic(THING, message_type=ShadowMessageType.UPDATE_REJECTED)
    assert state.handle_publish(topic, b'{"code": 400}') is ShadowMessageType.UPDATE_REJECTED
    assert state == ShadowDemoState()


def test_handle_publish_unknown_topic_is_an_error():
    state = ShadowDemoState()
    assert state.handle_publish("sensors/temperature", b"{}") is None
    assert state.event_callback_error is True


def test_reset_delete_flags():
    state = ShadowDemoState(delete_response_received=True, shadow_deleted=True)
    state.reset_delete_flags()
    assert (state.delete_response_received, state.shadow_deleted) == (False, False)