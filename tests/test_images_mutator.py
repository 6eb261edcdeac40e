"""Tests for images/mutator.py module."""

from unittest.mock import patch

import pytest

from kernel_imagegen.errors import FilesystemError, ProcessError
from kernel_imagegen.images.builder import ensure_base
from kernel_imagegen.images.definition import ImageDefinition
from kernel_imagegen.images.mutator import add_kernel

KERNEL = "linux-image-4.15.0-20-generic"
HEADERS = "linux-headers-4.15.0-20-generic"


@pytest.fixture
def base(settings, engine, ubuntu) -> ImageDefinition:
    """Generate the base definition and reset recorded calls."""
    ensure_base(ubuntu, settings=settings, engine=engine)
    engine.calls.clear()
    return ImageDefinition.for_target(ubuntu, settings.root_dir)


class TestAddKernel:
    """Tests for add_kernel function."""

    def test_appends_image_and_headers(self, settings, engine, ubuntu, base):
        """Should append one install line and rebuild."""
        before = base.instructions()

        assert add_kernel(ubuntu, KERNEL, settings=settings, engine=engine) is True

        after = base.instructions()
        assert after[: len(before)] == before
        assert after[len(before) :] == [f"RUN apt-get install -y {KERNEL} {HEADERS}"]
        assert engine.calls == [("build", "ubuntu-18.04", base.context_dir)]

    def test_dedup(self, settings, engine, ubuntu, base):
        """Adding the same kernel twice should keep one instruction."""
        add_kernel(ubuntu, KERNEL, settings=settings, engine=engine)

        assert add_kernel(ubuntu, KERNEL, settings=settings, engine=engine) is False

        lines = [line for line in base.instructions() if KERNEL in line]
        assert len(lines) == 1
        assert engine.count("build") == 1

    def test_multiple_kernels(self, settings, engine, ubuntu, base):
        """Each kernel should get its own instruction in call order."""
        other = "linux-image-4.15.0-22-generic"
        add_kernel(ubuntu, KERNEL, settings=settings, engine=engine)
        add_kernel(ubuntu, other, settings=settings, engine=engine)

        installs = [line for line in base.instructions() if "linux-image" in line]
        assert installs == [
            f"RUN apt-get install -y {KERNEL} {HEADERS}",
            f"RUN apt-get install -y {other} linux-headers-4.15.0-22-generic",
        ]

    def test_rollback_on_build_failure(self, settings, engine, ubuntu, base):
        """Failed rebuild should restore the definition byte-for-byte."""
        add_kernel(ubuntu, KERNEL, settings=settings, engine=engine)
        before = base.read_bytes()
        engine.fail_build = lambda dockerfile: "broken" in dockerfile

        with pytest.raises(ProcessError) as exc_info:
            add_kernel(ubuntu, "linux-image-broken", settings=settings, engine=engine)

        assert exc_info.value.exit_code == 100
        assert base.read_bytes() == before

    def test_rollback_on_unexpected_build_error(self, settings, engine, ubuntu, base):
        """Any error escaping the rebuild should restore the definition."""
        before = base.read_bytes()

        def broken_build(tag, context_dir):
            raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")

        engine.build = broken_build

        with pytest.raises(UnicodeDecodeError):
            add_kernel(ubuntu, KERNEL, settings=settings, engine=engine)

        assert base.read_bytes() == before
        assert not base.has_install_for(KERNEL)

    def test_retry_after_rollback(self, settings, engine, ubuntu, base):
        """A rolled back kernel is not considered installed."""
        engine.fail_build = lambda dockerfile: True
        with pytest.raises(ProcessError):
            add_kernel(ubuntu, KERNEL, settings=settings, engine=engine)

        engine.fail_build = lambda dockerfile: False
        assert add_kernel(ubuntu, KERNEL, settings=settings, engine=engine) is True

    def test_rollback_failure_is_fatal(self, settings, engine, ubuntu, base):
        """A failing restore should raise FilesystemError, not ProcessError."""
        engine.fail_build = lambda dockerfile: True
        original_write = ImageDefinition.write_bytes
        writes = []

        def write_once(self, data):
            writes.append(data)
            if len(writes) > 1:
                raise FilesystemError("read-only file system", path=self.path)
            original_write(self, data)

        with patch.object(ImageDefinition, "write_bytes", write_once):
            with pytest.raises(FilesystemError) as exc_info:
                add_kernel(ubuntu, KERNEL, settings=settings, engine=engine)

        assert exc_info.value.code == "rollback_failed"
        assert isinstance(exc_info.value.__cause__, FilesystemError)

    def test_missing_definition(self, settings, engine, ubuntu):
        """Should fail when the base image was never generated."""
        with pytest.raises(FilesystemError):
            add_kernel(ubuntu, KERNEL, settings=settings, engine=engine)
        assert engine.calls == []
