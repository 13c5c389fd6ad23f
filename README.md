# shadowdemo

Building blocks for a device shadow client: shadow topic names, the
`powerOn` update documents, handlers for the messages the shadow service
sends back, a store for QoS 1 publishes awaiting acknowledgement, and
exponential backoff with jitter for connection retries. It has no
third-party dependencies.

## Installing

```
pip install .
```

To run the test suite as well:

```
pip install ".[test]"
pytest
```

## Modules

### `shadowdemo.config`

`DemoConfig` is a frozen dataclass holding the broker endpoint and port
(default 8883), client identifier, thing name (defaults to the client
identifier), shadow name (empty for the classic shadow), certificate paths
and timing settings. It raises `ValueError` for an empty endpoint or client
identifier, a port outside 1–65535 or a non-positive buffer size.

- `metrics_string()` returns
  `?SDK=<os>&Version=<version>&Platform=<platform>&MQTTLib=<lib>`.
- `alpn_protocols()` returns `["x-amzn-mqtt-ca"]` when the port is 443 and
  `None` otherwise.

`load_config(environ=None)` builds a `DemoConfig` from `SHADOW_DEMO_*`
variables (`os.environ` by default): `ENDPOINT` and `CLIENT_IDENTIFIER` are
required; `PORT`, `THING_NAME`, `SHADOW_NAME`, `NETWORK_BUFFER_SIZE`,
`ROOT_CA_PATH`, `CLIENT_CERT_PATH`, `CLIENT_KEY_PATH`, `OS_NAME`,
`OS_VERSION`, `HARDWARE_PLATFORM_NAME` and `MQTT_LIB` are optional.

### `shadowdemo.backoff`

`BackoffPolicy(base_ms=500, max_delay_ms=5000, max_attempts=5)` yields retry
delays from `delays(rng=None)`: each delay is a random value between 0 and a
ceiling that starts at `base_ms` and doubles up to `max_delay_ms`. A
`max_attempts` of 0 retries forever.

`retry_with_backoff(operation, policy=None, sleep=time.sleep, rng=None)`
calls `operation`, retrying after each `OSError`, and returns its result.
When no retries remain it raises `RetriesExhaustedError`, chained to the
last failure.

### `shadowdemo.publishes`

`OutgoingPublishStore(capacity=5)` keeps `PendingPublish` entries until they
are acknowledged. `add(topic, payload, packet_id)` takes the first free
slot and raises `StoreFullError` when none is left; `remove(packet_id)`,
`clear()`, `pending()`, `mark_duplicates()` and `len()` manage the rest.
Packet identifiers must be in 1–65535.

### `shadowdemo.topics`

`shadow_topic(thing_name, shadow_name="", message_type=ShadowMessageType.UPDATE)`
builds a classic or named shadow topic. `match_topic(topic)` recognises a
response topic and returns a `ShadowTopicMatch`, raising `ValueError` for
anything else.

```python
from shadowdemo.topics import ShadowMessageType, match_topic, shadow_topic

topic = shadow_topic("my-thing", message_type=ShadowMessageType.UPDATE_DELTA)
print(topic)                         # $aws/things/my-thing/shadow/update/delta
print(match_topic(topic).thing_name) # my-thing
```

### `shadowdemo.handlers`

`desired_document(power_on, client_token)` and
`reported_document(power_on, client_token)` build update documents, for
example `desired_document(1, 21909)` gives
`{"state":{"desired":{"powerOn":1}},"clientToken":"021909"}`.

`ShadowDemoState` tracks the power-on state, the last shadow version, the
client token and the delete outcome. `handle_publish(topic, payload)`
dispatches an incoming publish to `on_update_delta`, `on_update_accepted`
or `on_delete_rejected` (where error code 404 counts as a successful
delete), and records an error for topics that are not shadow responses.
`reset_delete_flags()` clears the delete outcome.

## What it does not do

The package opens no network connections: it has no MQTT client, no TLS
session handling and no command to run. An application supplies its own
MQTT connection and feeds incoming publishes to `ShadowDemoState`.