"""Tests for parley.registry — the content type to codec tables."""

import threading

import pytest

from parley import content_type as ct
from parley._internal.rwlock import RWLock
from parley.codecs.encoders import encode_plain_text
from parley.codecs.result import OK
from parley.registry import Registry, default_registry, register_encoder


async def encode_csv(writer, request, value):
    writer.set_header("Content-Type", "text/csv")
    await writer.write(b"a,b\n")
    return OK


class TestDefaults:
    def test_encode_types_sorted(self) -> None:
        supported = Registry.with_defaults().supported_encode_types()
        assert supported.types() == sorted(
            [ct.DATA, ct.JSON, ct.XML, ct.HTML, ct.PLAIN_TEXT, ct.TEXT_XML, ct.EVENT_STREAM]
        )

    def test_decode_types(self) -> None:
        supported = Registry.with_defaults().supported_decode_types()
        assert set(supported) == {ct.JSON, ct.XML, ct.TEXT_XML, ct.FORM, ct.MULTIPART_FORM}
        assert supported.types() == sorted(supported.types())

    def test_lookup_is_case_insensitive(self) -> None:
        registry = Registry.with_defaults()
        assert registry.encoder_for("Application/JSON") is registry.encoder_for(ct.JSON)
        assert registry.encoder_for("application/pdf") is None
        assert registry.decoder_for("text/csv") is None


class TestRegistration:
    def test_register_and_replace(self) -> None:
        registry = Registry()
        registry.register_encoder("text/csv", encode_plain_text)
        registry.register_encoder("text/csv", encode_csv)
        assert registry.encoder_for("text/csv") is encode_csv
        assert registry.supported_encode_types().types() == ["text/csv"]

    def test_register_twice_is_idempotent(self) -> None:
        registry = Registry()
        registry.register_encoder("text/csv", encode_csv)
        registry.register_encoder("text/csv", encode_csv)
        assert len(registry.supported_encode_types()) == 1

    def test_none_removes(self) -> None:
        registry = Registry.with_defaults()
        registry.register_encoder(ct.XML, None)
        registry.register_decoder(ct.FORM, None)
        assert registry.encoder_for(ct.XML) is None
        assert ct.XML not in registry.supported_encode_types()
        assert ct.FORM not in registry.supported_decode_types()

    def test_removing_unknown_is_noop(self) -> None:
        registry = Registry()
        registry.register_encoder("text/csv", None)
        assert len(registry.supported_encode_types()) == 0

    def test_copy_is_independent(self) -> None:
        registry = Registry.with_defaults()
        other = registry.copy()
        other.register_encoder("text/csv", encode_csv)
        assert registry.encoder_for("text/csv") is None
        assert other.encoder_for(ct.JSON) is registry.encoder_for(ct.JSON)


class TestDefaultRegistry:
    def test_singleton(self) -> None:
        assert default_registry() is default_registry()

    def test_module_level_registration(self) -> None:
        register_encoder("text/csv", encode_csv)
        try:
            assert default_registry().encoder_for("text/csv") is encode_csv
        finally:
            register_encoder("text/csv", None)
        assert default_registry().encoder_for("text/csv") is None


class TestConcurrency:
    def test_concurrent_registration_and_lookup(self) -> None:
        registry = Registry.with_defaults()
        errors: list[BaseException] = []

        def worker(n: int) -> None:
            try:
                for i in range(200):
                    name = f"application/x-{n}-{i % 5}"
                    registry.register_encoder(name, encode_csv)
                    assert registry.encoder_for(ct.JSON) is not None
                    registry.supported_encode_types()
                    registry.register_encoder(name, None)
            except BaseException as exc:  # noqa: BLE001
                errors.append(exc)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        expected = Registry.with_defaults().supported_encode_types()
        assert registry.supported_encode_types() == expected


class TestRWLock:
    def test_readers_share(self) -> None:
        lock = RWLock()
        with lock.read(), lock.read():
            pass

    def test_writer_waits_for_reader(self) -> None:
        lock = RWLock()
        acquired = threading.Event()

        def write() -> None:
            with lock.write():
                acquired.set()

        with lock.read():
            thread = threading.Thread(target=write)
            thread.start()
            assert not acquired.wait(0.05)
        assert acquired.wait(2)
        thread.join()

    @pytest.mark.parametrize("first", ["read", "write"])
    def test_released_after_error(self, first: str) -> None:
        lock = RWLock()
        with pytest.raises(RuntimeError), getattr(lock, first)():
            raise RuntimeError("boom")
        with lock.write():
            pass
