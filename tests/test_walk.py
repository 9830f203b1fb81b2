import pytest

from fta import walk
from fta.config import FtaConfig
from fta.errors import PathError
from fta.walk import (
    _translate_ignore_line,
    discover_files,
    is_excluded_directory_path,
    is_excluded_filename,
    is_valid_file,
    read_sources,
)


@pytest.mark.parametrize(
    "file_name, patterns, expected",
    [
        ("types.d.ts", (".d.ts",), True),
        ("app.ts", (".d.ts",), False),
        ("app.spec.ts", ("*.spec.ts",), True),
        ("app.ts", ("*.spec.ts",), False),
        ("vendor.min.js", (".min.js",), True),
        ("setup.ts", ("setup.ts",), True),
    ],
)
def test_is_excluded_filename(file_name, patterns, expected):
    assert is_excluded_filename(file_name, patterns) is expected


@pytest.mark.parametrize(
    "relative_path, patterns, expected",
    [
        ("node_modules/lib.js", ("node_modules",), True),
        ("src/node_modules/lib.js", ("node_modules",), True),
        ("my-node_modules/lib.js", ("node_modules",), False),
        ("dist/file.js", ("/dist",), True),
        ("packages/dist/file.js", ("dist",), True),
        ("packages/dist/file.js", ("packages/dist",), True),
        ("dist/file.js", ("packages/dist",), False),
        ("src/file.js", ("/",), False),
    ],
)
def test_is_excluded_directory_path(relative_path, patterns, expected):
    assert is_excluded_directory_path(relative_path, patterns) is expected


def test_is_valid_file_uses_config():
    config = FtaConfig()
    assert is_valid_file("src/app.tsx", config)
    assert not is_valid_file("src/app.py", config)
    assert not is_valid_file("src/index.d.ts", config)
    assert not is_valid_file("build/app.js", config)


@pytest.mark.parametrize(
    "line, base, expected",
    [
        ("*.log", "", "*.log"),
        ("*.log", "sub", "sub/*.log"),
        ("/build", "sub", "/sub/build"),
        ("!keep.js", "sub", "!sub/keep.js"),
        ("# comment", "sub", "# comment"),
        ("", "sub", ""),
    ],
)
def test_translate_ignore_line(line, base, expected):
    assert _translate_ignore_line(line=line, base=base) == expected


def _write(root, relative, content="const a = 1;\n"):
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


def test_discover_files_honours_ignore_files(tmp_path):
    _write(tmp_path, "a.ts")
    _write(tmp_path, "z/b.js")
    _write(tmp_path, "sub/generated.ts")
    _write(tmp_path, "other/generated.ts")
    _write(tmp_path, "logs/debug.ts")
    _write(tmp_path, ".cache/c.ts")
    _write(tmp_path, ".gitignore", "logs/\n")
    _write(tmp_path, "sub/.ignore", "generated.ts\n")

    assert discover_files(tmp_path, FtaConfig()) == ["a.ts", "other/generated.ts", "z/b.js"]


def test_discover_files_reads_ignore_files_only_in_walked_directories(tmp_path, monkeypatch):
    _write(tmp_path, "a.ts")
    _write(tmp_path, "sub/keep.ts")
    _write(tmp_path, "sub/drop.ts")
    _write(tmp_path, ".gitignore", "logs/\n")
    _write(tmp_path, "sub/.gitignore", "drop.ts\n")
    _write(tmp_path, "logs/.gitignore", "*.ts\n")
    _write(tmp_path, ".cache/.ignore", "*.ts\n")

    read = []
    real_read = walk._read_ignore_lines

    def recording_read(path):
        read.append(path.relative_to(tmp_path).as_posix())
        return real_read(path)

    monkeypatch.setattr(walk, "_read_ignore_lines", recording_read)

    assert discover_files(tmp_path, FtaConfig()) == ["a.ts", "sub/keep.ts"]
    assert sorted(read) == [".gitignore", "sub/.gitignore"]


def test_discover_files_requires_directory(tmp_path):
    _write(tmp_path, "a.ts")
    with pytest.raises(PathError):
        discover_files(tmp_path / "a.ts", FtaConfig())


def test_read_sources_keeps_order_and_skips_unreadable(tmp_path):
    _write(tmp_path, "one.ts", "one")
    _write(tmp_path, "two.ts", "two")

    units, skipped = read_sources(tmp_path, ["two.ts", "missing.ts", "one.ts"], max_open_files=2)

    assert [(u.path, u.text) for u in units] == [("two.ts", "two"), ("one.ts", "one")]
    assert [s.file_name for s in skipped] == ["missing.ts"]
