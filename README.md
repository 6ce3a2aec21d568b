# rosenpass

Parts of a post-quantum key exchange daemon whose output keys go to
WireGuard as pre-shared keys. The package uses only the standard library.

## Modules

- `rosenpass.lenses`: fixed-layout views over byte buffers. `make_lense`
  builds a `Lense` subclass from ordered `(name, length)` fields. A lense
  gives `field(name)`, `until(name)` and `all_bytes()` as `memoryview`
  slices, so writes go into the wrapped buffer. `from_buffer` requires an
  exact size and `truncating` accepts a larger buffer. A size that does not
  fit raises `LenseError`. The same checks are available as
  `ensure_exact_buffer_size` and `ensure_sufficient_buffer_size`.
- `rosenpass.kem`: the abstract `Kem` interface of a key encapsulation
  mechanism, with `keygen()`, `encaps(pk)` and `decaps(sk, ct)`.
  Subclasses set `SK_LEN`, `PK_LEN`, `CT_LEN` and `SHK_LEN` and implement
  `_keygen`, `_encaps` and `_decaps`. The public methods raise
  `ValueError` when a key, ciphertext or shared secret has the wrong length.
- `rosenpass.errors`: `RosenpassError`, `BufferSizeMismatchError`,
  `InvalidMessageTypeError` (which keeps the offending byte in `.value`) and
  `from_lense_error`.
- `rosenpass.endpoints`: UDP networking. `SocketSet.bind(addrs)` opens one
  non-blocking socket per address. Given no addresses, it opens an IPv6
  wildcard socket and adds an IPv4 one unless the IPv6 socket is dual-stack.
  `try_recv(bufsize, timeout)` returns `(data, SocketBoundAddress)` or
  `None`. There are two kinds of endpoint. `SocketBoundAddress` is an
  address bound to one socket. `HostPathDiscoveryEndpoint` tries each
  combination of address and socket in turn and raises `ConnectionError`
  when all of them fail. `HostPathDiscoveryEndpoint.lookup("host:port")`
  resolves a host name. `discovery_from_multiple_sources(a, b)` merges the
  addresses of two endpoints, dropping duplicates.
- `rosenpass.key_output`: `AppPeer` holds the state of one peer and
  `output_key(peer, peer_id, why, key, verbose=False)` delivers a key.
  If the peer has an `outfile`, the key is written there base64 encoded.
  A line `output-key peer <id> key-file "<path>" exchanged|stale` is then
  printed to stdout. If the peer has a `WireguardOut`, the key is piped to
  `wg set <dev> peer <pk> preshared-key /dev/stdin ...`. In that case
  `output_key` returns the thread that waits for `wg` to exit.
  `KeyOutputReason` is either `EXCHANGED` or `STALE`.
- `rosenpass.manpage`: `render_man(compiler, man)` runs `compiler -Tascii`
  on a troff page. `generate_man(man)` tries `mandoc` and then `groff`. If
  neither works, it returns `"Cannot render manual page\n"`.

## Examples

A lense over an 8-byte header:

```python
from rosenpass.lenses import LenseError, make_lense

UdpHeader = make_lense(
    "UdpHeader",
    [("source_port", 2), ("dest_port", 2), ("length", 2), ("checksum", 2)],
)
buf = bytearray(8)
header = UdpHeader.from_buffer(buf)
header.field("source_port")[:] = (53).to_bytes(2, "big")
assert bytes(buf) == b"\x00\x35" + bytes(6)

try:
    UdpHeader.from_buffer(bytearray(7))
except LenseError as err:
    print(err)  # buffer size mismatch
```

Restarting discovery from known addresses:

```python
from rosenpass.endpoints import SocketBoundAddress, discovery_from_multiple_sources

last = SocketBoundAddress(0, ("127.0.0.1", 9999))
restarted = discovery_from_multiple_sources(last, None)
assert restarted.addresses() == [("127.0.0.1", 9999)]
```

## What the package does not do

The package contains no hash or key-derivation functions, no concrete KEM
(only the `Kem` interface), and no definitions of the handshake messages or
their type bytes. Because of this it cannot run a handshake. It also has
no command-line program or daemon: no configuration file handling, key
generation command or event loop. What it provides are the pieces listed
above.

## Tests

The tests use pytest, which comes with the `test` extra.