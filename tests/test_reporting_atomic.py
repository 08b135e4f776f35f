import pytest

from dermdir.reporting import atomic_write_text, atomic_writer


def test_atomic_write_text(tmp_path):
    path = tmp_path / "atomic.txt"

    atomic_write_text(str(path), "first")
    assert path.read_text(encoding="utf-8") == "first"

    atomic_write_text(str(path), "second")
    assert path.read_text(encoding="utf-8") == "second"

    leftovers = [p for p in tmp_path.iterdir() if p.name != "atomic.txt"]
    assert not leftovers


def test_failed_write_keeps_previous_file(tmp_path):
    path = tmp_path / "atomic.txt"
    atomic_write_text(str(path), "kept")

    with pytest.raises(RuntimeError):
        with atomic_writer(str(path)) as f:
            f.write("half")
            raise RuntimeError("interrupted")

    assert path.read_text(encoding="utf-8") == "kept"
    assert [p.name for p in tmp_path.iterdir()] == ["atomic.txt"]
