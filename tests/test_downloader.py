import io
from unittest.mock import MagicMock

import pytest
import requests

from webarchive.downloader import download_url, read_source
from webarchive.errors import SourceError


def make_session(content=b"", status_error=None):
    response = MagicMock()
    response.content = content
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    session = MagicMock()
    session.get.return_value = response
    return session


class TestReadSource:
    def test_stdin_text_stream(self):
        assert read_source("-", stdin=io.StringIO("see http://example.com/a\n")) == (
            "see http://example.com/a\n"
        )

    def test_stdin_keeps_line_endings(self):
        stdin = io.TextIOWrapper(io.BytesIO(b"a\r\nb\rc\n"))
        assert read_source("", stdin=stdin) == "a\r\nb\rc\n"

    def test_file(self, tmp_path):
        path = tmp_path / "notes.md"
        path.write_bytes(b"line one\r\nhttp://example.com/a\n")
        assert read_source(str(path)) == "line one\r\nhttp://example.com/a\n"

    def test_file_with_invalid_utf8_round_trips(self, tmp_path):
        path = tmp_path / "latin1.txt"
        path.write_bytes(b"caf\xe9 http://example.com/a")
        text = read_source(str(path))
        assert text.encode("utf-8", "surrogateescape") == b"caf\xe9 http://example.com/a"

    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceError):
            read_source(str(tmp_path / "nope.txt"))

    def test_remote(self):
        session = make_session(b"<a href='http://example.com/a'>a</a>")
        text = read_source("https://example.com/post", session=session, timeout=7)
        assert text == "<a href='http://example.com/a'>a</a>"
        args, kwargs = session.get.call_args
        assert args == ("https://example.com/post",)
        assert kwargs["timeout"] == 7

    def test_remote_http_error(self):
        session = make_session(status_error=requests.exceptions.HTTPError("404 Client Error"))
        with pytest.raises(SourceError) as exc_info:
            read_source("https://example.com/missing", session=session)
        assert "https://example.com/missing" in str(exc_info.value)
        # HTTP errors are not retried
        assert session.get.call_count == 1


class TestDownloadUrl:
    def test_returns_response(self):
        session = make_session(b"ok")
        assert download_url("http://example.com/", session=session).content == b"ok"
