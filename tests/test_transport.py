"""Tests for the HTTP fetcher, with the requests session mocked out."""
import os
import threading
from unittest.mock import MagicMock, patch

import pytest
import requests

from symbol_locator.errors import ResolutionCancelled
from symbol_locator.monitor import TaskMonitor
from symbol_locator.transport import HttpFetcher

URL = "https://symbols.example.org/game.pdb/ABC1/game.pdb"


def mock_session(status=200, chunks=(b"abc", b"def"), error=None):
    session = MagicMock()
    if error is not None:
        session.get.side_effect = error
        return session
    response = MagicMock()
    response.status_code = status
    response.headers = {"Content-Length": str(sum(len(c) for c in chunks))}
    response.iter_content.return_value = iter(chunks)
    session.get.return_value = response
    return session


def test_successful_download(tmp_path):
    dest = tmp_path / "store" / "game.pdb"
    session = mock_session()

    assert HttpFetcher(session=session).fetch(URL, dest) is True
    assert dest.read_bytes() == b"abcdef"
    assert not os.path.exists(str(dest) + ".part")
    session.get.assert_called_once_with(URL, stream=True, timeout=30)


def test_not_found_is_false(tmp_path):
    dest = tmp_path / "game.pdb"
    assert HttpFetcher(session=mock_session(status=404)).fetch(URL, dest) is False
    assert not dest.exists()


def test_connection_error_is_false(tmp_path):
    session = mock_session(error=requests.ConnectionError("refused"))
    assert HttpFetcher(session=session).fetch(URL, tmp_path / "game.pdb") is False


def test_timeout_is_false(tmp_path):
    session = mock_session(error=requests.Timeout("slow"))
    assert HttpFetcher(session=session).fetch(URL, tmp_path / "game.pdb") is False


def test_cancel_mid_download_leaves_no_file(tmp_path):
    monitor = TaskMonitor()

    def chunks():
        yield b"first"
        monitor.cancel()
        yield b"second"

    session = mock_session(chunks=())
    session.get.return_value.iter_content.return_value = chunks()
    dest = tmp_path / "game.pdb"

    with pytest.raises(ResolutionCancelled):
        HttpFetcher(session=session).fetch(URL, dest, monitor)

    assert os.listdir(tmp_path) == []


def test_concurrent_downloads_of_same_entry_both_succeed(tmp_path):
    dest = tmp_path / "store" / "game.pdb"
    barrier = threading.Barrier(2, timeout=5)
    results = {}

    def body(byte):
        def chunks():
            yield byte * 4
            barrier.wait()
            yield byte * 4
        return chunks()

    def download(key, byte):
        session = mock_session(chunks=())
        session.get.return_value.iter_content.return_value = body(byte)
        results[key] = HttpFetcher(session=session).fetch(URL, dest)

    threads = [threading.Thread(target=download, args=("a", b"A")),
               threading.Thread(target=download, args=("b", b"B"))]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results == {"a": True, "b": True}
    assert dest.read_bytes() in (b"A" * 8, b"B" * 8)
    assert os.listdir(dest.parent) == ["game.pdb"]


def test_rename_failure_after_other_writer_counts_as_success(tmp_path):
    dest = tmp_path / "game.pdb"

    def other_writer_wins(src, dst):
        dest.write_bytes(b"abcdef")
        raise PermissionError("file in use")

    with patch("symbol_locator.transport.os.replace", side_effect=other_writer_wins):
        assert HttpFetcher(session=mock_session()).fetch(URL, dest) is True

    assert os.listdir(tmp_path) == ["game.pdb"]


def test_rename_failure_without_destination_is_false(tmp_path):
    dest = tmp_path / "game.pdb"
    with patch("symbol_locator.transport.os.replace", side_effect=PermissionError("denied")):
        assert HttpFetcher(session=mock_session()).fetch(URL, dest) is False
    assert os.listdir(tmp_path) == []


def test_progress_reported(tmp_path):
    seen = []
    monitor = TaskMonitor(lambda msg, cur, total: seen.append((cur, total)))
    HttpFetcher(session=mock_session()).fetch(URL, tmp_path / "game.pdb", monitor)
    assert seen == [(3, 6), (6, 6)]


def test_default_session_has_retries():
    session = HttpFetcher()._get_session()
    adapter = session.get_adapter("https://msdl.microsoft.com")
    assert adapter.max_retries.total == 3
    assert "SymbolLocator" in session.headers["User-Agent"]
