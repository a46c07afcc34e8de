# remotelist

A small service that keeps named lists of integers and serves them over
XML-RPC. The server writes each operation to an operation log. It also saves
the whole state every few seconds as a gzip-compressed JSON snapshot. When the
server starts, it loads the latest snapshot and then replays the log entries
written after it, so its state survives a restart.

The package uses only the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Operations

Each list is identified by a string id. A list is created the first time a
value is appended to it.

| Operation | Effect |
|-----------|--------|
| `append(list_id, value)` | adds `value` to the end of the list, creating the list if needed; returns `True` |
| `get(list_id, index)` | returns the element at `index` |
| `remove(list_id)` | removes the last element and returns it |
| `size(list_id)` | returns the number of elements |

These operations are available on `remotelist.structures.RemoteList`. Failures
raise a subclass of `RemoteListError`:

- `ListNotFoundError` means the list id is unknown. It is raised by `get`, `remove` and `size`.
- `IndexOutOfRangeError` means the index is negative or past the end. It is also an `IndexError`.
- `EmptyListError` means `remove` was called on an empty list. It is also an `IndexError`.

The server offers the same operations as the XML-RPC methods
`RemoteList.Append`, `RemoteList.Get`, `RemoteList.Remove` and
`RemoteList.Size`. A `RemoteListError` reaches the caller as an XML-RPC
`Fault` with code 1 and the error message as its text.

## Running the server

```
remotelist-server [--host HOST] [--port PORT] [--data-dir DIR] [--snapshot-interval SECONDS]
```

By default the server listens on `localhost:1234`. It handles requests on
separate threads. It keeps its files under `--data-dir`, which defaults to the
current directory:

- `logs/operations.log` holds one line per operation. Each line is an RFC 3339 timestamp followed by `Append`, `Remove` or `Get/Size`, the list id and, where relevant, the value or index.
- `snapshots/remote_list_snapshot.json.gz` holds the latest snapshot. By default it is rewritten every 10 seconds. It also records the timestamp of the newest log entry it covers.

At startup the server creates both directories if they are missing. It then
loads the snapshot, or starts with no lists if there is none. Next it replays
the `Append` and `Remove` entries logged after the snapshot's timestamp. Log
lines that are malformed are skipped with a warning.

## Interactive client

```
remotelist-client [--host HOST] [--port PORT]
```

The client connects to `localhost:1234` by default and reads commands from
standard input:

```
APPEND <list_id> <value>
GET <list_id> <index>
REMOVE <list_id>
SIZE <list_id>
EXIT
```

Commands are case-insensitive. End of input also ends the session.

If the connection is lost, the client tries to reconnect. It keeps trying for
up to 30 seconds and waits 2 seconds between attempts. After it reconnects, it
retries the failed call once. Errors that the server reports, such as an
unknown list or a bad index, are printed and are not retried.

`remotelist.client.ReconnectingClient` provides this reconnecting behaviour for
use in your own code. `execute_command` runs a single command line against it.

## Exercising a running server

```
remotelist-exerciser [--host HOST] [--port PORT] [--clients N] [--operations N]
```

This command needs a server that is already running. It works in three steps:

1. It runs a fixed sequence of appends, sizes, reads and a removal on the lists `minha_lista_1` and `outra_lista`. It then checks that asking for the size of an unknown list fails.
2. It starts several concurrent clients, 3 by default, each running 10 operations by default. Each client performs a random mix of appends, reads and removals on the list `lista_concorrente_simples`.
3. It reports the final size of that list and its first element.

The same steps are available as the functions `run_basic_checks` and
`run_concurrency_check` in `remotelist.exerciser`.

## Using the library directly

You can use the list store without the network:

```python
from remotelist.structures import RemoteList, ListNotFoundError

store = RemoteList({})
store.append("numbers", 10)
store.append("numbers", 20)
assert store.size("numbers") == 2
assert store.get("numbers", 1) == 20
assert store.remove("numbers") == 20

try:
    store.size("missing")
except ListNotFoundError as exc:
    print(exc)
```

Other modules in the package provide persistence and the server pieces:

- `remotelist.snapshots.save_snapshot` and `load_snapshot` write and read the snapshot format.
- `remotelist.oplog.OperationLog` appends entries to the operation log and reads them back with `read_since`.
- `remotelist.server.recover_state` replays a log onto a `RemoteList`.
- `remotelist.server.build_server` creates the XML-RPC server for a `RemoteListService`.

## Limits

- The operation log only grows. It is never truncated or rotated, including after a snapshot.
- The server does not write a final snapshot when it stops. Operations since the last periodic snapshot are recovered from the log at the next start.
- There is no authentication or encryption. The server is meant for a trusted network.