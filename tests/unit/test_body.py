"""
Unit tests for body descriptors and the stream length probe.
"""

import asyncio
import gzip
import io
import threading
import zipfile
from pathlib import Path

import pytest

from httpclient.http import body as body_module
from httpclient.http.body import (
    ABSENT,
    InlineBytes,
    Multipart,
    Stream,
    describe_body,
    probe_length,
)
from httpclient.http.errors import BodyInspectionError, InvalidOption
from httpclient.http.multipart import FormData


class TestDescribeBody:
    """Tests for describe_body()."""

    def test_none_is_absent(self):
        assert describe_body(None) is ABSENT
        assert ABSENT.length is None
        assert ABSENT.content_type is None

    def test_string_measured_in_bytes(self):
        """'ü' is one character but two bytes."""
        body = describe_body("üñí")

        assert isinstance(body, InlineBytes)
        assert body.length == 6

    def test_buffer(self):
        assert describe_body(b"unicorn").length == 7
        assert describe_body(bytearray(b"ab")).length == 2

    def test_form_data(self, form: FormData):
        body = describe_body(form)

        assert isinstance(body, Multipart)
        assert body.length == 157
        assert body.content_type == f"multipart/form-data; boundary={form.get_boundary()}"

    def test_file_object_is_stream(self, sized_file: Path):
        with open(sized_file, "rb") as handle:
            body = describe_body(handle)

            assert isinstance(body, Stream)
            assert body.needs_probe
            assert body.length is None

    def test_generator_is_stream(self):
        assert isinstance(describe_body(chunk for chunk in [b"a"]), Stream)

    def test_dict_rejected(self):
        with pytest.raises(InvalidOption) as exc_info:
            describe_body({"a": 1})

        assert exc_info.value.option == "body"

    def test_number_rejected(self):
        with pytest.raises(InvalidOption):
            describe_body(42)


class TestProbeLength:
    """Tests for probe_length()."""

    @pytest.mark.asyncio
    async def test_regular_file(self, sized_file: Path):
        with open(sized_file, "rb") as handle:
            body = await probe_length(Stream(handle))

        assert body.probed
        assert body.length == sized_file.stat().st_size

    @pytest.mark.asyncio
    async def test_partially_read_file(self, sized_file: Path):
        with open(sized_file, "rb") as handle:
            handle.read(10)
            body = await probe_length(Stream(handle))

        assert body.length == sized_file.stat().st_size - 10

    @pytest.mark.asyncio
    async def test_unbuffered_file(self, sized_file: Path):
        with open(sized_file, "rb", buffering=0) as handle:
            body = await probe_length(Stream(handle))

        assert body.length == sized_file.stat().st_size

    @pytest.mark.asyncio
    async def test_zip_member_has_unknown_length(self, tmp_path: Path, monkeypatch):
        """A zip member's name must not be stat'ed as a path."""
        monkeypatch.chdir(tmp_path)
        (tmp_path / "data.csv").write_bytes(b"x" * 1000)
        archive = tmp_path / "bundle.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("data.csv", b"abc")

        with zipfile.ZipFile(archive) as zf, zf.open("data.csv") as member:
            body = await probe_length(Stream(member))

            assert body.probed
            assert body.length is None
            assert not member.closed

    @pytest.mark.asyncio
    async def test_gzip_file_has_unknown_length(self, tmp_path: Path):
        """The compressed size on disk is not the number of bytes read."""
        path = tmp_path / "payload.gz"
        with gzip.open(path, "wb") as handle:
            handle.write(b"a" * 10000)

        with gzip.open(path, "rb") as handle:
            body = await probe_length(Stream(handle))

        assert body.length is None

    @pytest.mark.asyncio
    async def test_text_mode_file_has_unknown_length(self, sized_file: Path):
        with open(sized_file, encoding="utf-8") as handle:
            body = await probe_length(Stream(handle))

        assert body.length is None

    @pytest.mark.asyncio
    async def test_bytes_io(self):
        body = await probe_length(Stream(io.BytesIO(b"unicorn")))

        assert body.length == 7

    @pytest.mark.asyncio
    async def test_iterator_has_unknown_length(self):
        body = await probe_length(Stream(iter([b"a", b"b"])))

        assert body.probed
        assert body.length is None

    @pytest.mark.asyncio
    async def test_already_probed_returned_as_is(self):
        body = Stream(io.BytesIO(b"x"), known_length=99, probed=True)

        assert await probe_length(body) is body

    @pytest.mark.asyncio
    async def test_vanished_file(self, sized_file: Path):
        """File removed between construction and probing."""
        handle = open(sized_file, "rb")
        sized_file.unlink()

        with pytest.raises(BodyInspectionError) as exc_info:
            await probe_length(Stream(handle))

        assert exc_info.value.stream is handle
        assert handle.closed

    @pytest.mark.asyncio
    async def test_closed_file(self, sized_file: Path):
        handle = open(sized_file, "rb")
        handle.close()

        with pytest.raises(BodyInspectionError):
            await probe_length(Stream(handle))

    @pytest.mark.asyncio
    async def test_cancel_closes_handle(self, sized_file: Path, monkeypatch):
        """Cancelling a pending probe releases the stream handle."""
        started = threading.Event()
        release = threading.Event()

        def slow_measure(handle):
            started.set()
            release.wait(5)
            return 0

        monkeypatch.setattr(body_module, "_measure", slow_measure)
        handle = open(sized_file, "rb")
        task = asyncio.ensure_future(probe_length(Stream(handle)))

        await asyncio.get_running_loop().run_in_executor(None, started.wait, 5)
        task.cancel()
        try:
            with pytest.raises(asyncio.CancelledError):
                await task
        finally:
            release.set()

        assert handle.closed


class TestStreamChunks:
    """Tests for reading stream bodies."""

    def test_file_chunks(self):
        body = Stream(io.BytesIO(b"abcdef"))

        assert list(body.iter_chunks(chunk_size=4)) == [b"abcd", b"ef"]

    def test_iterable_chunks(self):
        assert list(Stream([b"a", b"b"]).iter_chunks()) == [b"a", b"b"]

    @pytest.mark.asyncio
    async def test_async_iterable_chunks(self):
        async def produce():
            yield b"a"
            yield b"b"

        body = Stream(produce())

        with pytest.raises(TypeError):
            list(body.iter_chunks())
        assert [chunk async for chunk in body.aiter_chunks()] == [b"a", b"b"]
