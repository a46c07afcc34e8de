"""Scripted exercise of a running list server: basic operations and concurrent load."""

from __future__ import annotations

import argparse
import logging
import random
import socket
import sys
import time
import xmlrpc.client
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, TextIO

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS = ("localhost", 1234)
FIRST_LIST_ID = "minha_lista_1"
SECOND_LIST_ID = "outra_lista"
MISSING_LIST_ID = "nao_existe"
CONCURRENT_LIST_ID = "lista_concorrente_simples"
DEFAULT_CLIENTS = 3
DEFAULT_OPERATIONS_PER_CLIENT = 10


@dataclass(frozen=True)
class BasicReport:
    """What the basic operation checks observed."""

    sizes: dict[str, int] = field(default_factory=dict)
    values: dict[int, int] = field(default_factory=dict)
    removed: int = 0
    size_after_remove: int = 0
    missing_list_error: Optional[str] = None


@dataclass(frozen=True)
class ConcurrencyReport:
    """Outcome of the concurrent load on the shared list."""

    final_size: int
    first_element: Optional[int]
    failed_clients: int


def _dial(address: tuple[str, int]) -> xmlrpc.client.ServerProxy:
    host, port = address
    with socket.create_connection((host, port), timeout=5):
        pass
    return xmlrpc.client.ServerProxy(f"http://{host}:{port}/", allow_none=True)


def _call(proxy: Any, method: str, *args: Any) -> Any:
    return getattr(proxy, method)(*args)


def run_basic_checks(proxy: Any, out: TextIO) -> BasicReport:
    """Run append, size, get and remove checks, writing a line per step to ``out``.

    Server errors propagate, except for the expected failure on a missing list.
    """

    def emit(line: str) -> None:
        out.write(line + "\n")

    emit("\n--- Teste: Operações Básicas ---")
    for list_id, value in ((FIRST_LIST_ID, 10), (FIRST_LIST_ID, 20), (SECOND_LIST_ID, 5)):
        reply = _call(proxy, "RemoteList.Append", list_id, value)
        emit(f"Append {value} em {list_id}: {str(bool(reply)).lower()}")

    sizes: dict[str, int] = {}
    for list_id in (FIRST_LIST_ID, SECOND_LIST_ID):
        sizes[list_id] = _call(proxy, "RemoteList.Size", list_id)
        emit(f"Tamanho de {list_id}: {sizes[list_id]}")

    values: dict[int, int] = {}
    for index in (0, 1):
        values[index] = _call(proxy, "RemoteList.Get", FIRST_LIST_ID, index)
        emit(f"Get de {FIRST_LIST_ID} no índice {index}: {values[index]}")

    removed = _call(proxy, "RemoteList.Remove", FIRST_LIST_ID)
    emit(f"Removido de {FIRST_LIST_ID}: {removed}")
    size_after = _call(proxy, "RemoteList.Size", FIRST_LIST_ID)
    emit(f"Tamanho de {FIRST_LIST_ID} após Remove: {size_after}")

    emit("\n--- Teste: Erros Esperados ---")
    missing_error: Optional[str] = None
    try:
        _call(proxy, "RemoteList.Size", MISSING_LIST_ID)
    except xmlrpc.client.Fault as exc:
        missing_error = exc.faultString
        emit(f"Erro esperado para lista inexistente: {missing_error}")
    else:
        emit("Sucesso inesperado para lista inexistente.")

    return BasicReport(
        sizes=sizes,
        values=values,
        removed=removed,
        size_after_remove=size_after,
        missing_list_error=missing_error,
    )


def _client_worker(
    client_id: int,
    address: tuple[str, int],
    operations: int,
    rng: Any,
) -> bool:
    try:
        proxy = _dial(address)
    except OSError as exc:
        logger.warning("Cliente %d: Falha ao conectar ao servidor: %s", client_id, exc)
        return False
    with proxy:
        for step in range(operations):
            op_type = rng.randrange(100)
            try:
                if op_type < 50:
                    _call(proxy, "RemoteList.Append", CONCURRENT_LIST_ID, client_id * 1000 + step)
                elif op_type < 75:
                    size = _call(proxy, "RemoteList.Size", CONCURRENT_LIST_ID)
                    if size > 0:
                        _call(proxy, "RemoteList.Get", CONCURRENT_LIST_ID, rng.randrange(size))
                else:
                    _call(proxy, "RemoteList.Remove", CONCURRENT_LIST_ID)
            except (xmlrpc.client.Error, OSError):
                pass
            time.sleep(rng.randrange(5) / 1000)
    return True


def run_concurrency_check(
    address: tuple[str, int] = DEFAULT_ADDRESS,
    clients: int = DEFAULT_CLIENTS,
    operations_per_client: int = DEFAULT_OPERATIONS_PER_CLIENT,
    rng: Any = None,
) -> ConcurrencyReport:
    """Hammer the shared list from several connections at once and inspect the result.

    Raises OSError if the server cannot be reached and RuntimeError if the
    final state is inconsistent.
    """
    address = (address[0], address[1])
    rng = rng if rng is not None else random.Random()
    with _dial(address) as proxy:
        try:
            _call(proxy, "RemoteList.Append", CONCURRENT_LIST_ID, 0)
        except (xmlrpc.client.Error, OSError):
            pass

        with ThreadPoolExecutor(max_workers=max(clients, 1)) as pool:
            futures = [
                pool.submit(_client_worker, client_id, address, operations_per_client, rng)
                for client_id in range(clients)
            ]
            results = [future.result() for future in futures]

        try:
            final_size = _call(proxy, "RemoteList.Size", CONCURRENT_LIST_ID)
        except xmlrpc.client.Error as exc:
            raise RuntimeError(
                f"Falha ao obter tamanho final de {CONCURRENT_LIST_ID}: {exc}"
            ) from exc
        if final_size < 0:
            raise RuntimeError("Tamanho da lista negativo! Indicação de corrupção.")

        first: Optional[int] = None
        if final_size > 0:
            try:
                first = _call(proxy, "RemoteList.Get", CONCURRENT_LIST_ID, 0)
            except xmlrpc.client.Error as exc:
                raise RuntimeError(
                    f"Não foi possível obter o primeiro elemento da lista concorrente: {exc}"
                ) from exc

    return ConcurrencyReport(
        final_size=final_size,
        first_element=first,
        failed_clients=results.count(False),
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the full exercise against a server; returns a process exit status."""
    parser = argparse.ArgumentParser(description="Exercita um servidor de listas remotas.")
    parser.add_argument("--host", default=DEFAULT_ADDRESS[0])
    parser.add_argument("--port", type=int, default=DEFAULT_ADDRESS[1])
    parser.add_argument("--clients", type=int, default=DEFAULT_CLIENTS)
    parser.add_argument("--operations", type=int, default=DEFAULT_OPERATIONS_PER_CLIENT)
    args = parser.parse_args(argv)
    address = (args.host, args.port)

    try:
        with _dial(address) as proxy:
            run_basic_checks(proxy, sys.stdout)
        print("\n--- Teste: Concorrência Simplificada ---")
        print(
            f"Iniciando {args.clients} clientes concorrentes "
            f"({args.operations} operações/cliente)..."
        )
        report = run_concurrency_check(address, args.clients, args.operations)
    except OSError as exc:
        print(f"Erro ao conectar ao servidor: {exc}", file=sys.stderr)
        return 1
    except (xmlrpc.client.Error, RuntimeError) as exc:
        print(f"Erro: {exc}", file=sys.stderr)
        return 1

    print("\n--- Verificações Pós-Concorrência ---")
    print(
        f"Tamanho final da lista '{CONCURRENT_LIST_ID}' após operações concorrentes: "
        f"{report.final_size}"
    )
    if report.first_element is not None:
        print(f"Primeiro elemento da lista '{CONCURRENT_LIST_ID}': {report.first_element}")
    else:
        print(f"A lista '{CONCURRENT_LIST_ID}' está vazia após operações concorrentes.")
    print("Teste de concorrência concluído.")
    print("\n--- Teste Geral Concluído ---")
    return 0