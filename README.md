# zumble

The core pieces of a lightweight Mumble voice server, written for asyncio.

## Modules

- `zumble.varint`: Mumble's variable-length integer format.
  - `read_varint(stream)` reads one value from a binary stream. It raises `EOFError` if the stream ends early.
  - `encode_varint(value)` encodes an unsigned 64-bit value. It raises `ValueError` for a value out of range.
- `zumble.framing`: framing of control messages on the TCP connection.
  - `MessageKind` is an `IntEnum` of the 26 control message kinds. Converting an unknown number raises `UnexpectedMessageKind`.
  - `message_to_bytes(kind, payload)` prefixes a payload with a 2-byte kind and a 4-byte length, both big endian.
  - `read_message(reader)` reads one frame from an `asyncio.StreamReader`.
  - `expected_message(kind, reader, retry=0)` reads a frame of a given kind. It drops up to 10 tunnelled voice frames that arrive first.
  - `send_message(kind, payload, writer)` writes a frame and drains the writer.
- `zumble.voice`: voice packets.
  - There are two packet types: `Ping` and `Audio`.
  - An `Audio` packet's payload is one of `CeltAlpha`, `CeltBeta`, `Speex` or `Opus`.
  - `decode_voice_packet(data, clientbound=False)` decodes a packet. `encode_voice_packet(packet, clientbound=True)` encodes one.
  - Client-bound packets carry the speaker's session id. `into_client_bound(session_id)` turns a server-bound packet into a client-bound one.
- `zumble.crypt`: `CryptState`, the OCB-AES128 encryption of UDP voice packets.
  - It tracks nonces and replays.
  - It keeps `good`, `late`, `lost` and `resync` counters.
  - Decryption failures raise `DecryptEof`, `DecryptRepeat`, `DecryptLate` or `DecryptMac`.
- `zumble.sync`: `RwLock`, a fair asyncio reader/writer lock.
  - `async with lock.read()` and `async with lock.write()` give access to the guarded value.
  - Acquisition times out after 0.25 s by default. A timeout raises `ReadLockTimeout` or `WriteLockTimeout`.
- `zumble.client`: the `Client`, `Channel` and `VoiceTarget` records.
  - The number of voice targets per client is taken from the `CLIENT_CAPACITY` environment variable. The default is 2048.
- `zumble.state`: `ServerState` and `CodecState`.
  - They register clients and channels under the lowest free id.
  - They bind clients to UDP addresses.
  - They collect a channel's listeners.
  - They decide when an emptied channel should be removed, and choose the CELT version most clients support.
- `zumble.errors`: the exception hierarchy, rooted at `MumbleError`, with `DecryptError` for voice packet failures.

## Installation

```
pip install .
```

## Example

Encrypting a voice packet for a peer that shares the key:

```python
from zumble.crypt import CryptState
from zumble.voice import Audio, Opus

server = CryptState()
peer = CryptState(server.key)
peer.set_decrypt_nonce(server.encrypt_nonce)

packet = Audio(target=0, session_id=7, seq_num=1, payload=Opus(b"\x01\x02", False))
datagram = server.encrypt(packet, clientbound=True)
assert peer.decrypt(datagram, clientbound=True) == packet
```

Framing a control message:

```python
from zumble.framing import MessageKind, message_to_bytes

frame = message_to_bytes(MessageKind.Ping, b"")
assert frame == b"\x00\x03\x00\x00\x00\x00"
```

Keeping track of clients and channels:

```python
from zumble.state import ServerState

state = ServerState()
alice = state.add_client("alice", codecs=[-2147483637])
lobby = state.add_channel(parent_id=0, name="Lobby")
left = alice.join_channel(lobby.id)     # 0, the root channel
assert state.get_listeners(lobby.id) == {alice.session_id: alice}
```

## What it does not do

This package holds the protocol and state logic only. It does not provide:

- a TCP or UDP server, or a TLS listener;
- an HTTP admin interface or metrics;
- a command to run.

Control message payloads are handled as raw bytes. The package does not serialize or parse the protobuf message bodies.

## Running the tests

```
pip install .[test]
pytest
```