"""Tests for the Bypass coordinator and the intercepting provider."""

import io

import pytest

from bypassfs import (
    LOCK_SH,
    Bypass,
    BypassConfig,
    InterceptingProvider,
    NativeProvider,
    NotActivatedError,
    ProviderRegistry,
    cache_key,
)

SOURCE = b"<?php\nfinal class Entity {}\n"
EXPECTED = b"<?php\n class Entity {}\n"


class MemoryProvider:
    """Minimal in-memory provider: open, read, eof, seek, tell and close only."""

    files: dict[str, bytes] = {}
    instances: list["MemoryProvider"] = []

    def __init__(self) -> None:
        self.context = None
        self.closed = False
        self._buffer: io.BytesIO | None = None
        self._eof = False
        MemoryProvider.instances.append(self)

    def open(self, path, mode="rb", options=0):
        if str(path) not in self.files:
            return False
        self._buffer = io.BytesIO(self.files[str(path)])
        return True

    def read(self, size=8192):
        data = self._buffer.read(size)
        if len(data) < size:
            self._eof = True
        return data

    def eof(self):
        return self._eof

    def seek(self, offset, whence=0):
        self._buffer.seek(offset, whence)
        self._eof = False
        return True

    def tell(self):
        return self._buffer.tell()

    def close(self):
        self.closed = True


@pytest.fixture
def memory_files():
    MemoryProvider.files = {}
    MemoryProvider.instances = []
    yield MemoryProvider.files
    MemoryProvider.files = {}
    MemoryProvider.instances = []


@pytest.fixture
def bypass():
    b = Bypass()
    b.activate()
    return b


def read_all(provider):
    chunks = []
    while not provider.eof():
        chunk = provider.read(4)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


class TestActivation:
    def test_not_activated(self):
        b = Bypass()
        assert not b.active
        with pytest.raises(NotActivatedError, match="activate"):
            b.create_delegate()

    def test_provider_before_activation(self):
        provider = InterceptingProvider(Bypass())
        with pytest.raises(NotActivatedError):
            provider.read()

    def test_defaults_to_native_provider(self):
        b = Bypass()
        b.activate()
        assert b.active
        assert b.delegate_factory is NativeProvider
        assert isinstance(b.registry.create("file"), InterceptingProvider)

    def test_wraps_registered_provider(self, memory_files):
        registry = ProviderRegistry({"file": MemoryProvider})
        b = Bypass(registry)
        b.activate()
        assert b.delegate_factory is MemoryProvider
        assert isinstance(b.create_delegate(), MemoryProvider)

    def test_activate_is_idempotent(self):
        b = Bypass()
        b.activate()
        installed = b.registry.get("file")
        b.activate()
        assert b.registry.get("file") is installed
        assert b.delegate_factory is NativeProvider

    def test_second_coordinator_layers_on_first(self, tmp_path):
        registry = ProviderRegistry()
        first = Bypass(registry)
        first.activate()
        second = Bypass(registry)
        second.activate()
        delegate = second.create_delegate()
        assert isinstance(delegate, InterceptingProvider)
        assert delegate.bypass is first

        path = tmp_path / "a.php"
        path.write_bytes(SOURCE)
        provider = registry.create("file")
        assert provider.open(path)
        assert read_all(provider) == EXPECTED
        provider.close()

    def test_reactivating_lower_coordinator_is_a_no_op(self, tmp_path):
        registry = ProviderRegistry()
        first = Bypass(registry)
        second = Bypass(registry)
        first.activate()
        second.activate()
        installed = registry.get("file")
        first.activate()
        assert registry.get("file") is installed
        assert first.delegate_factory is NativeProvider

        path = tmp_path / "a.php"
        path.write_bytes(SOURCE)
        provider = registry.create("file")
        assert provider.open(path)
        assert read_all(provider) == EXPECTED
        provider.close()

    def test_deactivating_lower_coordinator_keeps_upper(self, tmp_path):
        registry = ProviderRegistry()
        first = Bypass(registry)
        second = Bypass(registry)
        first.activate()
        second.activate()
        installed = registry.get("file")
        first.deactivate()
        assert not first.active
        assert registry.get("file") is installed
        assert second.delegate_factory is NativeProvider

        path = tmp_path / "a.php"
        path.write_bytes(SOURCE)
        provider = registry.create("file")
        assert provider.open(path)
        assert read_all(provider) == EXPECTED
        provider.close()

    def test_deactivate_restores_delegate(self):
        registry = ProviderRegistry({"file": NativeProvider})
        b = Bypass(registry)
        b.activate()
        b.deactivate()
        assert registry.get("file") is NativeProvider
        assert not b.active
        b.deactivate()

    def test_custom_scheme(self):
        registry = ProviderRegistry()
        b = Bypass(registry, scheme="src")
        b.activate()
        assert registry.schemes() == ["src"]
        assert "file" not in registry

    def test_registry_create_unknown_scheme(self):
        with pytest.raises(KeyError):
            ProviderRegistry().create("file")

    def test_set_configuration(self, tmp_path):
        b = Bypass(config=BypassConfig(extension="inc"))
        b.set_whitelist(["src\\*"])
        b.set_cache_directory(tmp_path)
        assert b.config == BypassConfig(
            whitelist=("src/*",), cache_dir=str(tmp_path), extension="inc"
        )
        b.set_cache_directory(None)
        assert b.config.cache_dir is None


class TestOpen:
    def test_rewrites_eligible_file(self, bypass, tmp_path):
        path = tmp_path / "Entity.php"
        path.write_bytes(SOURCE)
        provider = bypass.registry.create("file")
        assert provider.open(path, "rb")
        assert provider.substituted
        assert read_all(provider) == EXPECTED
        provider.close()
        # The file on disk is untouched
        assert path.read_bytes() == SOURCE

    def test_unchanged_file_reuses_delegate(self, memory_files):
        memory_files["a.php"] = b"<?php class Plain {}"
        b = Bypass(ProviderRegistry({"file": MemoryProvider}))
        b.activate()
        provider = b.registry.create("file")
        assert provider.open("a.php")
        assert not provider.substituted
        assert isinstance(provider.handle, MemoryProvider)
        assert provider.tell() == 0
        assert read_all(provider) == b"<?php class Plain {}"

    def test_rewritten_file_closes_delegate(self, memory_files):
        memory_files["a.php"] = SOURCE
        b = Bypass(ProviderRegistry({"file": MemoryProvider}))
        b.activate()
        provider = b.registry.create("file")
        assert provider.open("a.php")
        delegate = MemoryProvider.instances[-1]
        assert delegate.closed
        assert isinstance(provider.handle, NativeProvider)
        assert read_all(provider) == EXPECTED
        provider.close()

    def test_large_file_read_in_chunks(self, bypass, tmp_path):
        body = b"// " + b"x" * 20000 + b"\n"
        path = tmp_path / "big.php"
        path.write_bytes(b"<?php\n" + body + b"final class A {}\n")
        provider = bypass.registry.create("file")
        provider.open(path)
        assert read_all(provider) == b"<?php\n" + body + b" class A {}\n"
        provider.close()

    def test_context_passed_to_handles(self, bypass, tmp_path):
        path = tmp_path / "a.php"
        path.write_bytes(SOURCE)
        provider = InterceptingProvider(bypass, context={"timeout": 1})
        provider.open(path)
        assert provider.handle.context == {"timeout": 1}
        provider.close()

    @pytest.mark.parametrize("mode", ["r", "r+b", "ab"])
    def test_other_modes_see_original(self, bypass, tmp_path, mode):
        path = tmp_path / "a.php"
        path.write_bytes(SOURCE)
        provider = bypass.registry.create("file")
        assert provider.open(path, mode)
        assert not provider.substituted
        provider.close()

    def test_non_source_extension(self, bypass, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_bytes(b"<?php final class A {}")
        provider = bypass.registry.create("file")
        provider.open(path)
        assert read_all(provider) == b"<?php final class A {}"
        provider.close()

    def test_whitelist_excludes(self, bypass, tmp_path):
        (tmp_path / "src").mkdir()
        (tmp_path / "vendor").mkdir()
        (tmp_path / "src" / "a.php").write_bytes(SOURCE)
        (tmp_path / "vendor" / "b.php").write_bytes(SOURCE)
        bypass.set_whitelist(["*/src/*"])

        provider = bypass.registry.create("file")
        provider.open(tmp_path / "src" / "a.php")
        assert read_all(provider) == EXPECTED
        provider.close()

        provider = bypass.registry.create("file")
        provider.open(tmp_path / "vendor" / "b.php")
        assert read_all(provider) == SOURCE
        provider.close()

    def test_uses_cache_directory(self, bypass, tmp_path):
        cache_dir = tmp_path / "cache"
        cache_dir.mkdir()
        path = tmp_path / "a.php"
        path.write_bytes(SOURCE)
        bypass.set_cache_directory(cache_dir)
        provider = bypass.registry.create("file")
        provider.open(path)
        provider.close()
        assert (cache_dir / cache_key(SOURCE)).read_bytes() == EXPECTED

    def test_missing_file_returns_false(self, bypass, tmp_path):
        provider = bypass.registry.create("file")
        assert provider.open(tmp_path / "missing.php") is False

    def test_malformed_source_served_unchanged(self, bypass, tmp_path):
        path = tmp_path / "broken.php"
        path.write_bytes(b"<?php final class Broken {")
        provider = bypass.registry.create("file")
        assert provider.open(path)
        assert not provider.substituted
        assert read_all(provider) == b"<?php final class Broken {"
        provider.close()


class TestForwarding:
    def test_opendir_delegates(self, bypass, tmp_path):
        (tmp_path / "a.php").write_bytes(SOURCE)
        provider = bypass.registry.create("file")
        assert provider.opendir(tmp_path)
        assert provider.readdir() == "a.php"
        assert provider.readdir() is False
        assert provider.rewinddir()
        assert provider.closedir()

    def test_unsupported_operations_return_false(self, memory_files):
        memory_files["a.php"] = b"<?php class Plain {}"
        b = Bypass(ProviderRegistry({"file": MemoryProvider}))
        b.activate()
        provider = b.registry.create("file")
        provider.open("a.php")
        assert provider.lock(LOCK_SH) is False
        assert provider.stat() is False
        assert provider.write(b"x") is False
        assert provider.opendir("anywhere") is False

    def test_path_operations_use_fresh_delegate(self, bypass, tmp_path):
        provider = bypass.registry.create("file")
        assert provider.mkdir(tmp_path / "d")
        assert provider.url_stat(tmp_path / "d")
        assert provider.rmdir(tmp_path / "d")
        assert provider.url_stat(tmp_path / "d") is False

    def test_stat_and_lock_on_substituted_handle(self, bypass, tmp_path):
        path = tmp_path / "a.php"
        path.write_bytes(SOURCE)
        provider = bypass.registry.create("file")
        provider.open(path)
        assert provider.stat().st_size == len(EXPECTED)
        provider.close()

    def test_close_before_open(self, bypass):
        InterceptingProvider(bypass).close()
