import asyncio

import pytest

from utils.errors import FileAccessError, RepositoryAccessError
from utils.fs import FileSystem
from utils.git import git_output, is_git_repository, run_git


def test_file_system_reads_utf8_and_keeps_newlines(tmp_path):
    path = tmp_path / "a.ts"
    path.write_bytes("const s = 'é';\r\n".encode("utf-8"))
    fs = FileSystem()

    assert asyncio.run(fs.exists(str(path)))
    stats = asyncio.run(fs.stat(str(path)))
    assert stats.is_file and not stats.is_directory
    assert stats.size == len("const s = 'é';\r\n".encode("utf-8"))
    assert asyncio.run(fs.read(str(path))) == "const s = 'é';\r\n"


def test_file_system_errors_are_generic(tmp_path):
    fs = FileSystem()
    missing = str(tmp_path / "missing.ts")

    assert not asyncio.run(fs.exists(missing))
    with pytest.raises(FileAccessError, match="^File cannot be accessed$"):
        asyncio.run(fs.stat(missing))
    with pytest.raises(FileAccessError, match="^File could not be read$"):
        asyncio.run(fs.read(missing))

    binary = tmp_path / "image.ts"
    binary.write_bytes(b"\xff\xfe\x00")
    with pytest.raises(FileAccessError, match="not valid UTF-8"):
        asyncio.run(fs.read(str(binary)))


def test_run_git_missing_binary(mocker, tmp_path):
    mocker.patch("utils.git.subprocess.run", side_effect=FileNotFoundError("git"))
    with pytest.raises(RepositoryAccessError, match="Git is not installed"):
        run_git(["status"], str(tmp_path))


def test_git_output_hides_stderr(mocker, tmp_path):
    completed = mocker.MagicMock(returncode=128, stdout="", stderr="fatal: /secret/path is broken")
    mocker.patch("utils.git.subprocess.run", return_value=completed)
    with pytest.raises(RepositoryAccessError) as excinfo:
        git_output(["status"], str(tmp_path))
    assert "/secret/path" not in str(excinfo.value)


def test_is_git_repository_false_for_missing_dir(tmp_path):
    assert not is_git_repository(str(tmp_path / "missing"))
