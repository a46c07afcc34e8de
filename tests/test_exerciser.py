import io
import random
import socket
import threading
import xmlrpc.client

import pytest

from remotelist.exerciser import (
    CONCURRENT_LIST_ID,
    main,
    run_basic_checks,
    run_concurrency_check,
)
from remotelist.oplog import OperationLog
from remotelist.server import RemoteListService, build_server
from remotelist.structures import RemoteList


class _FixedRng:
    def __init__(self, value):
        self.value = value

    def randrange(self, n):
        return min(self.value, n - 1)


@pytest.fixture
def running(tmp_path):
    service = RemoteListService(RemoteList(), OperationLog(tmp_path / "ops.log"))
    server = build_server(service, "127.0.0.1", 0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield service, ("127.0.0.1", server.server_address[1])
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)


def _proxy(address):
    return xmlrpc.client.ServerProxy(f"http://{address[0]}:{address[1]}/", allow_none=True)


def _free_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_basic_checks_report(running):
    service, address = running
    out = io.StringIO()
    with _proxy(address) as proxy:
        report = run_basic_checks(proxy, out)
    assert report.sizes == {"minha_lista_1": 2, "outra_lista": 1}
    assert report.values == {0: 10, 1: 20}
    assert report.removed == 20
    assert report.size_after_remove == 1
    assert "nao_existe" in report.missing_list_error
    assert service.remote_list.size("minha_lista_1") == report.size_after_remove


def test_basic_checks_output(running):
    _, address = running
    out = io.StringIO()
    with _proxy(address) as proxy:
        run_basic_checks(proxy, out)
    text = out.getvalue()
    assert "Append 10 em minha_lista_1: true" in text
    assert "Removido de minha_lista_1: 20" in text
    assert "Erro esperado para lista inexistente" in text


def test_basic_checks_unexpected_success(running):
    service, address = running
    service.remote_list.append("nao_existe", 1)
    out = io.StringIO()
    with _proxy(address) as proxy:
        report = run_basic_checks(proxy, out)
    assert report.missing_list_error is None
    assert "Sucesso inesperado para lista inexistente." in out.getvalue()


def test_concurrency_all_appends(running):
    service, address = running
    report = run_concurrency_check(address, 3, 4, _FixedRng(0))
    assert report.failed_clients == 0
    assert report.final_size == 1 + 3 * 4
    assert report.first_element == 0
    assert sorted(service.remote_list.get(CONCURRENT_LIST_ID, i) for i in range(1, 13)) == sorted(
        c * 1000 + j for c in range(3) for j in range(4)
    )


def test_concurrency_all_removes_empties_list(running):
    service, address = running
    report = run_concurrency_check(address, 2, 3, _FixedRng(99))
    assert report.final_size == 0
    assert report.first_element is None
    assert service.remote_list.size(CONCURRENT_LIST_ID) == 0


def test_concurrency_random_matches_server_state(running):
    service, address = running
    report = run_concurrency_check(address, 3, 10, random.Random(7))
    assert report.failed_clients == 0
    assert report.final_size == service.remote_list.size(CONCURRENT_LIST_ID)
    if report.final_size:
        assert report.first_element == service.remote_list.get(CONCURRENT_LIST_ID, 0)
    else:
        assert report.first_element is None


def test_concurrency_unreachable_server():
    with pytest.raises(OSError):
        run_concurrency_check(("127.0.0.1", _free_port()), 1, 1, random.Random(1))


def test_main_unreachable_returns_one(capsys):
    assert main(["--host", "127.0.0.1", "--port", str(_free_port())]) == 1
    assert "Erro ao conectar ao servidor" in capsys.readouterr().err


def test_main_success(running, capsys):
    _, address = running
    code = main(["--host", address[0], "--port", str(address[1]), "--operations", "3"])
    assert code == 0
    text = capsys.readouterr().out
    assert "Teste de concorrência concluído." in text
    assert "--- Teste Geral Concluído ---" in text