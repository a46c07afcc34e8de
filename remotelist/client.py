"""Interactive client for the list server, reconnecting when the link drops."""

from __future__ import annotations

import argparse
import contextlib
import http.client
import math
import re
import socket
import time
import xmlrpc.client
from typing import Any, Callable, Optional, Sequence

DEFAULT_ADDRESS = ("localhost", 1234)
RECONNECT_TIMEOUT = 30.0
RETRY_DELAY = 2.0
PING_LIST_ID = "lista_dummy_ping"

_CONNECTION_PHRASES = (
    "connection reset by peer",
    "connection refused",
    "broken pipe",
    "connection is shut down",
    "i/o timeout",
)
_INT_RE = re.compile(r"[+-]?\d+\Z")


def is_connection_error(exc: Optional[BaseException]) -> bool:
    """Tell whether an error means the link to the server failed."""
    if exc is None or isinstance(exc, xmlrpc.client.Fault):
        return False
    if isinstance(exc, (OSError, EOFError, http.client.HTTPException)):
        return True
    text = str(exc)
    return any(phrase in text for phrase in _CONNECTION_PHRASES)


def _connect(address: tuple[str, int]) -> xmlrpc.client.ServerProxy:
    host, port = address
    with socket.create_connection((host, port), timeout=5):
        pass
    return xmlrpc.client.ServerProxy(f"http://{host}:{port}/", allow_none=True)


def _close_proxy(proxy: Any) -> None:
    with contextlib.suppress(OSError):
        if isinstance(proxy, xmlrpc.client.ServerProxy):
            proxy("close")()
        else:
            close = getattr(proxy, "close", None)
            if callable(close):
                close()


class ReconnectingClient:
    """RPC client that re-establishes its connection and retries once."""

    def __init__(
        self,
        address: tuple[str, int] = DEFAULT_ADDRESS,
        reconnect_timeout: float = RECONNECT_TIMEOUT,
        retry_delay: float = RETRY_DELAY,
        connector: Optional[Callable[[tuple[str, int]], Any]] = None,
    ) -> None:
        self.address = tuple(address)
        self.reconnect_timeout = reconnect_timeout
        self.retry_delay = retry_delay
        self._connector = connector or _connect
        self._proxy: Any = None

    def _invoke(self, method: str, args: Sequence[Any]) -> Any:
        return getattr(self._proxy, method)(*args)

    def _drop(self) -> None:
        if self._proxy is not None:
            _close_proxy(self._proxy)
            self._proxy = None

    def ensure_connected(self, initial: bool = False) -> bool:
        """Make sure a live connection exists, retrying until the timeout."""
        if self._proxy is not None:
            try:
                self._invoke("RemoteList.Get", (PING_LIST_ID, 0))
            except Exception as exc:
                if not is_connection_error(exc):
                    return True
                print("Conexão RPC inativa. Tentando reconectar...")
                self._drop()
            else:
                return True

        start = time.monotonic()
        attempt = 0
        while (elapsed := time.monotonic() - start) < self.reconnect_timeout:
            attempt += 1
            if not initial or attempt > 1:
                remaining = self.reconnect_timeout - math.floor(elapsed)
                print(f"Tentando conectar... Tempo restante: {remaining:g}s")
            try:
                proxy = self._connector(self.address)
            except OSError as exc:
                if time.monotonic() - start + self.retry_delay < self.reconnect_timeout:
                    print(
                        f"Erro na conexão: {exc}. "
                        f"Tentando novamente em {self.retry_delay:g}s..."
                    )
                    time.sleep(self.retry_delay)
                    continue
                print(f"Erro na conexão: {exc}. Tempo limite de reconexão atingido.")
                break
            print("Conexão estabelecida!")
            self._proxy = proxy
            return True

        print(
            f"Não foi possível conectar/reconectar após {self.reconnect_timeout:g}s. "
            "Verifique se o servidor está em execução."
        )
        return False

    def call(self, method: str, *args: Any) -> Any:
        """Call a remote method, reconnecting and retrying once if the link fails.

        Errors reported by the server propagate unchanged; a lost link that
        cannot be restored raises ConnectionError.
        """
        if not self.ensure_connected():
            raise ConnectionError("não foi possível estabelecer conexão RPC")
        try:
            return self._invoke(method, args)
        except Exception as exc:
            if not is_connection_error(exc):
                raise
            first = exc
        print(
            f"Erro na chamada RPC ({method}), conexão perdida: {first}. "
            "Tentando reconectar e refazer..."
        )
        self._drop()
        if not self.ensure_connected():
            raise ConnectionError(
                f"falha ao refazer chamada RPC após reconexão: {first}"
            ) from first
        try:
            return self._invoke(method, args)
        except Exception as exc:
            if not is_connection_error(exc):
                raise
            raise ConnectionError(f"falha na segunda tentativa de chamada RPC: {exc}") from exc

    def close(self) -> None:
        """Close the current connection, if any."""
        self._drop()


_USAGE = {
    "APPEND": "Uso: APPEND <list_id> <valor>",
    "GET": "Uso: GET <list_id> <indice>",
    "REMOVE": "Uso: REMOVE <list_id>",
    "SIZE": "Uso: SIZE <list_id>",
}
_ARITY = {"APPEND": 3, "GET": 3, "REMOVE": 2, "SIZE": 2}


def _parse_int(text: str) -> int:
    if not _INT_RE.match(text):
        raise ValueError(f"invalid syntax: {text!r}")
    return int(text)


def _describe(exc: BaseException) -> str:
    if isinstance(exc, xmlrpc.client.Fault):
        return f"erro RPC de negócio: {exc.faultString}"
    return str(exc)


def execute_command(client: ReconnectingClient, line: str) -> tuple[Optional[str], bool]:
    """Run one command line; return the message to show and whether to quit."""
    parts = line.split()
    if not parts:
        return None, False
    command = parts[0].upper()
    if command == "EXIT":
        return "Saindo do cliente.", True
    if command not in _ARITY:
        return "Comando desconhecido. Use APPEND, GET, REMOVE, SIZE ou EXIT.", False
    if len(parts) != _ARITY[command]:
        return _USAGE[command], False

    list_id = parts[1]
    number = 0
    if len(parts) == 3:
        try:
            number = _parse_int(parts[2])
        except ValueError as exc:
            what = "Valor" if command == "APPEND" else "Índice"
            return f"Erro: {what} deve ser um número inteiro. {exc}", False

    try:
        if command == "APPEND":
            client.call("RemoteList.Append", list_id, number)
            return f"Sucesso: Valor {number} adicionado à lista {list_id}", False
        if command == "GET":
            value = client.call("RemoteList.Get", list_id, number)
            return f"Sucesso: Lista {list_id}, Índice {number} -> Valor: {value}", False
        if command == "REMOVE":
            removed = client.call("RemoteList.Remove", list_id)
            return f"Sucesso: Valor {removed} removido da lista {list_id}", False
        size = client.call("RemoteList.Size", list_id)
        return f"Sucesso: Lista {list_id} -> Tamanho: {size}", False
    except (xmlrpc.client.Error, OSError, OverflowError) as exc:
        return f"Erro no {command}: {_describe(exc)}", False


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the interactive client; returns a process exit status."""
    parser = argparse.ArgumentParser(description="Cliente RPC de listas remotas.")
    parser.add_argument("--host", default=DEFAULT_ADDRESS[0])
    parser.add_argument("--port", type=int, default=DEFAULT_ADDRESS[1])
    args = parser.parse_args(argv)

    print("Bem-vindo ao Cliente RemoteList RPC!")
    print("Comandos disponíveis:")
    for usage in _USAGE.values():
        print("  " + usage.removeprefix("Uso: "))
    print("  EXIT (para sair)")
    print("---------------------------------")

    client = ReconnectingClient((args.host, args.port))
    if not client.ensure_connected(initial=True):
        return 1
    try:
        while True:
            try:
                line = input("> ")
            except EOFError:
                break
            message, done = execute_command(client, line)
            if message:
                print(message)
            if done:
                break
    finally:
        client.close()
    return 0