# lagrangeqq

Building blocks for a client of the NT QQ protocol.

## Modules

- `lagrangeqq.tea` – `TeaCipher`, the chained 16-round TEA cipher used throughout the protocol. `encrypt` adds random padding; `decrypt` strips it and raises `ValueError` on input that is shorter than 16 bytes or not a whole number of 8-byte blocks. A key that is not 16 bytes long is treated as all zeros.
- `lagrangeqq.entity` – dataclasses and enums for users (`User`), groups (`Group`), group members (`GroupMember`, with `display_name()`), group files and folders, notices, honors, AI voice characters and rkeys (`RKeyInfo`), plus `user_avatar` and `group_avatar` URL helpers.
- `lagrangeqq.auth` – `AppInfo` client profiles (`APP_LIST`, `AppInfo.marshal`, `unmarshal_app_info`), `DeviceInfo` (`new_device_info`, `load_or_save_device`, `DeviceInfo.save`) and `SigInfo`, the login session state, with MD5-checked serialisation (`SigInfo.marshal`, `unmarshal_sig_info`, which raises `DataHashMismatchError` when verification fails).
- `lagrangeqq.errors` – `AlreadyOnlineError`, `NotOnlineError`, `MemberNotFoundError`, `NotExistsError`, the `LoginError` enum, `LoginResponse` and `DisconnectedEvent`.
- `lagrangeqq.events` – friend and group event dataclasses. Events that carry uids have `resolve_uin(resolver)`, which fills in uins through a callable taking `(uid, *group_uin)`. Poke events implement `NotifyEvent` (`from_uin()`, `content()`). Helpers: `parse_poke_event`, `parse_group_poke_event`, `parse_member_special_title_updated_event`, `parse_self_rename_event`.
- `lagrangeqq.cache` – `Cache`, a thread-safe store of friends, group info, per-group member lists and rkeys. A kind of data counts as empty until it has been refreshed as a whole.
- `lagrangeqq.eventhandle` – `EventHandle`, to which handlers are subscribed and which calls them with `(client, event)` in order. A handler that raises is logged and stops the remaining handlers.
- `lagrangeqq.network` – `TCPClient` (a TCP connection with planned/unexpected disconnect callbacks), `Transport.read_response` for decoding incoming SSO packets (TEA decryption, return codes, zlib), `RequestParams`, `Packet`, `Request`, `Response`, the error classes `ResponseError`, `SessionExpiredError`, `AuthenticationFailedError`, `PacketDroppedError`, `InvalidPacketTypeError`, `ConnectionClosedError`, and `quality_test`, which times a TCP connect.
- `lagrangeqq.highway` – `frame` for highway packet framing, `Addr`, `PersistConn`, `Session` (server address book, round-robin `next_addr`, sequence counter and an idle connection pool kept sorted by delay) and `Transaction` with optional TEA encryption of its extension data.
- `lagrangeqq.oicq` – `Codec` for wtlogin packets (`marshal` / `unmarshal`, ECDH or ST encryption), `EcdhSession` for P-256 key agreement with the login server, `new_codec`, and `TLV`.

## Installation

```
pip install lagrangeqq
```

## Example

```python
from lagrangeqq.tea import TeaCipher
from lagrangeqq.auth import new_device_info, SigInfo, unmarshal_sig_info

cipher = TeaCipher(bytes(16))
assert cipher.decrypt(cipher.encrypt(b"hello")) == b"hello"

device = new_device_info(10000)
print(device.guid, device.device_name)

sig = SigInfo(uin=10000, nickname="someone")
restored = unmarshal_sig_info(sig.marshal(), True)
assert restored.nickname == "someone"
```

```python
from lagrangeqq.cache import Cache
from lagrangeqq.entity import User

cache = Cache()
cache.refresh_all_friend({10000: User(uin=10000, uid="u_abc")})
assert cache.get_uid(10000) == "u_abc"
assert cache.get_uin("u_abc") == 10000
```

## What the package does not do

This package is a set of pieces, not a working client. It does not log in, keep a session alive, send or receive messages, or upload media. There is no client object that ties the pieces together, no packing of outgoing SSO packets, no protobuf message definitions or decoders for pushed events, and no transfer over highway connections: `highway.Session` manages addresses and pooled connections but does not open them or send blocks. There is no command-line program.

## Tests

```
pip install -e .[test]
pytest
```