"""RPC server exposing the remote lists, with operation logging, recovery and snapshots."""

from __future__ import annotations

import argparse
import functools
import logging
import threading
from datetime import datetime
from pathlib import Path
from socketserver import ThreadingMixIn
from typing import Callable, Optional, Sequence
from xmlrpc.client import Fault
from xmlrpc.server import SimpleXMLRPCServer

from .oplog import DEFAULT_LOG_PATH, LogEntry, Operation, OperationLog, _format_timestamp
from .snapshots import DEFAULT_SNAPSHOT_PATH, load_snapshot, save_snapshot
from .structures import RemoteList, RemoteListError

logger = logging.getLogger(__name__)

SERVICE_NAME = "RemoteList"
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 1234
SNAPSHOT_INTERVAL = 10.0
BUSINESS_FAULT = 1


def _aware(ts: Optional[datetime]) -> Optional[datetime]:
    if ts is not None and ts.tzinfo is None:
        return ts.astimezone()
    return ts


class RemoteListService:
    """Serves list operations, logging each one before applying it."""

    def __init__(
        self,
        remote_list: RemoteList,
        oplog: OperationLog,
        last_logged: Optional[datetime] = None,
    ) -> None:
        self.remote_list = remote_list
        self.oplog = oplog
        self._last_logged = _aware(last_logged)
        self._lock = threading.Lock()

    def last_logged(self) -> Optional[datetime]:
        """Timestamp of the newest operation known to be in the log."""
        with self._lock:
            return self._last_logged

    def _track(self, record: Callable[..., LogEntry], *args: object) -> None:
        try:
            entry = record(*args)
        except OSError as exc:
            logger.error("Erro ao logar operação para ListaID %s: %s", args[0], exc)
            return
        with self._lock:
            if self._last_logged is None or entry.timestamp > self._last_logged:
                self._last_logged = entry.timestamp

    def append(self, list_id: str, value: int) -> bool:
        """Log and append a value to a list."""
        self._track(self.oplog.record_append, list_id, value)
        return self.remote_list.append(list_id, value)

    def get(self, list_id: str, index: int) -> int:
        """Log and read the value at a position of a list."""
        self._track(self.oplog.record_read, list_id, index)
        return self.remote_list.get(list_id, index)

    def remove(self, list_id: str) -> int:
        """Log and remove the last value of a list."""
        self._track(self.oplog.record_remove, list_id)
        return self.remote_list.remove(list_id)

    def size(self, list_id: str) -> int:
        """Log and return the size of a list."""
        self._track(self.oplog.record_read, list_id, 0)
        return self.remote_list.size(list_id)


def recover_state(
    remote_list: RemoteList,
    oplog: OperationLog,
    since: Optional[datetime] = None,
) -> tuple[int, Optional[datetime]]:
    """Replay logged changes newer than ``since`` onto ``remote_list``.

    Returns how many entries were read and the newest timestamp seen.
    """
    since = _aware(since)
    entries = oplog.read_since(since)
    latest = since
    for entry in entries:
        try:
            if entry.operation is Operation.APPEND:
                remote_list.append(entry.list_id, entry.value)
            elif entry.operation is Operation.REMOVE:
                remote_list.remove(entry.list_id)
        except RemoteListError:
            pass
        if latest is None or entry.timestamp > latest:
            latest = entry.timestamp
    return len(entries), latest


class _ThreadingXMLRPCServer(ThreadingMixIn, SimpleXMLRPCServer):
    daemon_threads = True
    allow_reuse_address = True


def _as_rpc(method: Callable[..., object]) -> Callable[..., object]:
    @functools.wraps(method)
    def handler(*args: object) -> object:
        try:
            return method(*args)
        except RemoteListError as exc:
            raise Fault(BUSINESS_FAULT, str(exc)) from exc

    return handler


def build_server(
    service: RemoteListService,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> SimpleXMLRPCServer:
    """Create a threaded XML-RPC server bound to ``host:port`` serving ``service``."""
    server = _ThreadingXMLRPCServer((host, port), logRequests=False, allow_none=True)
    for name, method in (
        ("Append", service.append),
        ("Get", service.get),
        ("Remove", service.remove),
        ("Size", service.size),
    ):
        server.register_function(_as_rpc(method), f"{SERVICE_NAME}.{name}")
    return server


def _snapshot_loop(
    service: RemoteListService, path: Path, interval: float, stop: threading.Event
) -> None:
    while not stop.wait(interval):
        print("Tentando salvar snapshot...")
        try:
            save_snapshot(service.remote_list, service.last_logged(), path)
        except OSError as exc:
            logger.error("Erro ao salvar snapshot: %s", exc)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Start the list server; returns a process exit status."""
    parser = argparse.ArgumentParser(description="Servidor RPC de listas remotas.")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--data-dir", default=".", help="directory holding logs/ and snapshots/")
    parser.add_argument("--snapshot-interval", type=float, default=SNAPSHOT_INTERVAL)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    data_dir = Path(args.data_dir)
    logs_dir = data_dir / DEFAULT_LOG_PATH.parent
    snapshots_dir = data_dir / DEFAULT_SNAPSHOT_PATH.parent
    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
        snapshots_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error("Falha ao criar diretórios: %s", exc)
        return 1

    snapshot_path = snapshots_dir / DEFAULT_SNAPSHOT_PATH.name
    oplog = OperationLog(logs_dir / DEFAULT_LOG_PATH.name)

    print("Tentando carregar snapshot...")
    try:
        remote_list, since = load_snapshot(snapshot_path)
    except (OSError, EOFError, ValueError) as exc:
        logger.error("Erro ao carregar snapshot: %s", exc)
        return 1
    print("Snapshot carregado ou nova lista criada.")

    if since is None:
        print("Nenhum timestamp de snapshot válido. Aplicando todos os logs disponíveis.")
    else:
        print(f"Aplicando logs a partir de {_format_timestamp(since)}...")

    try:
        count, latest = recover_state(remote_list, oplog, since)
    except OSError as exc:
        logger.error("Erro ao ler logs para recuperação: %s", exc)
        latest = since
    else:
        print(f"{count} logs relevantes aplicados.")

    service = RemoteListService(remote_list, oplog, latest)
    try:
        server = build_server(service, args.host, args.port)
    except OSError as exc:
        logger.error("Falha ao escutar na porta %s: %s", args.port, exc)
        return 1
    print(f"Servidor online na porta {args.port}...")

    stop = threading.Event()
    saver = threading.Thread(
        target=_snapshot_loop,
        args=(service, snapshot_path, args.snapshot_interval, stop),
        daemon=True,
    )
    saver.start()
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        stop.set()
        server.server_close()
    return 0