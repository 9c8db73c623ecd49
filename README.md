# zmux

zmux manages media relay channels. Each channel describes one input stream
(RTSP, UDP, HTTP and so on) and one UDP MPEG-TS output. Channels are stored
in Redis, and an enabled channel runs as its own systemd unit,
`zmux-channel-<id>.service`, which starts the `remux` binary with flags built
from the channel's settings.

## Modules

- `zmux.hostutil` – `validate_host` checks an IPv4 address, IPv6 address or
  DNS host name and raises `ValueError` if it is malformed.
- `zmux.avurl` – splits media URLs the way FFmpeg does: `parse` (checks host
  and port), `raw_parse` (no checks), `is_port`, and the `AVURL` result.
- `zmux.channel` – the channel model (`ZmuxChannel`, `ZmuxChannelInput`,
  `ZmuxChannelOutput`), its `validate` rules, `validate_input_url`,
  `validate_output_url` and `ChannelValidationError`.
- `zmux.models` – `RemuxStatus` and `ChannelSummary`, the monitoring data
  served by the summary endpoint.
- `zmux.fields` – `Field`, a request property that is omitted, explicitly
  `null`, or carries a value; `reject_unknown`; `RequestError`.
- `zmux.dto_create`, `zmux.dto_modify`, `zmux.dto_replace` – request bodies
  for create (defaults filled in), patch (merge-patch) and replace (every
  field required).
- `zmux.redis_client` – `new_client` and `ping`.
- `zmux.channel_repo` – `ChannelRepository` and `ChannelNotFoundError`.
- `zmux.remux_repo` – `RemuxRepository` reading `remux:<id>:status`,
  `remux:<id>:ifmt` and `remux:<id>:metrics`.
- `zmux.systemd` – `SystemdService` writes unit files and runs `systemctl`;
  `SystemdError`, `SystemdServiceConfig`, `template_file_path`.
- `zmux.remux_command` – `RemuxCommandBuilder`, `sh_quote`,
  `build_remux_exec_args` and `build_remux_exec_start`.
- `zmux.channel_service` – `ChannelService`: create, update, delete, enable
  and disable channels.
- `zmux.summary` – `SummaryService`, a cached dashboard view of every channel
  with its live status.
- `zmux.localaddr` – `LocalAddrLister`, the host's bindable IPv4 addresses.
- `zmux.api` – Flask handlers and `create_blueprint`.

## Parsing media URLs

```python
from zmux.avurl import parse, raw_parse

url = parse("udp://239.0.0.1:1234")
url.to_dict()
# {"schema": "udp", "userinfo": "", "host": "239.0.0.1", "port": "1234", "path": ""}

parse("udp://239.0.0.1:99999")      # ValueError: bad port: '99999'
raw_parse("udp://239.0.0.1:99999")  # splits without checking host or port
```

A port must be 0–65535 without leading zeros. Text left over between a
closing `]` and the path makes `parse` raise `ValueError("invalid URL")`.

## Validating a channel

```python
from zmux.channel import ZmuxChannel

channel = ZmuxChannel.from_dict({
    "id": 1,
    "name": "lobby camera",
    "input": {
        "url": "rtsp://192.0.2.10:554/stream",
        "avioflags": None,
        "probesize": 5000000,
        "analyzeduration": 0,
        "fflags": "nobuffer",
        "max_delay": -1,
        "localaddr": None,
        "timeout": 3000000,
        "rtsp_transport": "tcp",
    },
    "output": {
        "url": "udp://239.0.0.1:1234",
        "localaddr": None,
        "pkt_size": 1316,
        "map_video": True,
        "map_audio": True,
        "map_data": True,
    },
    "enabled": True,
    "restart_sec": 3,
})
channel.validate()
```

`validate` raises `ChannelValidationError` when:

- the channel is enabled but has no name or no input URL;
- it has an input URL but no name;
- the input URL does not parse or has no protocol;
- the output URL does not parse, does not use `udp`, or lacks a host or port.

## Request bodies

```python
from zmux.dto_create import CreateChannel
from zmux.dto_modify import ModifyChannel

channel = CreateChannel.from_json({"name": "lobby camera"}).to_channel()
channel.input.probesize   # 5000000
channel.input.fflags      # "nobuffer"
channel.output.pkt_size   # 1316
channel.restart_sec       # 3

ModifyChannel.from_json({"input": {"timeout": 1000000}}).merge_patch(channel)
```

Unknown keys, values of the wrong JSON type, and an explicit `null` for a
field that may not be null all raise `RequestError`. `ReplaceChannel`
additionally raises when any field is missing.

## Building the remux command

```python
from zmux.remux_command import build_remux_exec_args, build_remux_exec_start

build_remux_exec_args(channel)
# ["remux", "--id", "1", "--input-url", "rtsp://192.0.2.10:554/stream", ...]

build_remux_exec_start(channel)
# every argument single-quoted, ready for a systemd ExecStart line
```

String flags are left out when unset or blank. The stream-mapping flags
default to on and are only emitted, as `--map-video=false` and the like, when
turned off.

## Channel lifecycle

`ChannelService` applies the systemd change first and writes to Redis only
after it succeeded. If the Redis write then fails on create, enable, disable
or delete, the systemd change is undone on a best-effort basis; on update it
is left in place. Changes to the same channel ID are serialized.

`SystemdService` renders the Jinja2 template at `templates/service.j2`, or at
the path in `ZMUX_REMUX_TEMPLATE_UNIT_FILE`, with the variables
`ServiceName`, `ExecStart` (with `%` doubled) and `RestartSec`, writes it to
`/etc/systemd/system`, and runs `systemctl daemon-reload`. Every `systemctl`
call has a 10-second timeout.

## HTTP API

```python
from flask import Flask
from zmux.api import ChannelsHandler, LocalAddrHandler, URLParseHandler, create_blueprint

app = Flask(__name__)
app.register_blueprint(
    create_blueprint(ChannelsHandler(), LocalAddrHandler(), URLParseHandler())
)
app.run(host="127.0.0.1", port=8080)
```

Constructed without arguments, `ChannelsHandler` connects to Redis and loads
the unit template, so both must be available. Any of the three handlers may be
passed as `None` to leave its routes out.

| Method | Path | Result |
| ------ | ---- | ------ |
| GET | `/api/channels` | all channels, `X-Total-Count` header |
| POST | `/api/channels` | 201 with the created channel and `Location` |
| GET | `/api/channels/<id>` | one channel, 404 if missing |
| PUT | `/api/channels/<id>` | full replacement, 200 with the channel |
| PATCH | `/api/channels/<id>` | merge-patch, 204 |
| DELETE | `/api/channels/<id>` | 200 with `{"id": <id>}` |
| GET | `/api/channels/summary` | dashboard view; `?force=1` skips the cache |
| GET | `/api/system/net/localaddrs` | bindable IPv4 addresses |
| POST | `/api/url/parse` | checked URL split |
| POST | `/api/url/parse/raw` | unchecked URL split |

An ID that is not a positive integer gives 400. Malformed bodies and unknown
fields give 400, failed validation gives 422, and storage or systemd failures
give 500, each with a `{"message": ...}` body. The summary response carries
`X-Cache` (`HIT` or `MISS`) and `X-Summary-Generated-At` in milliseconds; the
handler's snapshot lives one second. The address list leaves out loopback and
link-local addresses and is cached for 15 seconds.

## What this package does not do

- It has no command to start a server; you mount the blueprint in your own
  Flask application, as above.
- The routes carry no authentication, sessions or CSRF protection, and no
  CORS or security headers. Put them behind whatever your application uses.
- Enabling and disabling a channel on its own (`ChannelService.enable_channel`
  and `disable_channel`) is available in Python but has no HTTP route.

## Runtime requirements

- Redis on `localhost:6379`, database 0.
- systemd, with write access to `/etc/systemd/system` and permission to run
  `systemctl`.
- The unit template described above.