import subprocess
from unittest import mock

import pytest

from rosenpass.manpage import FALLBACK_TEXT, generate_man, render_man


def _completed(returncode, stdout=b""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=b"")


@mock.patch("rosenpass.manpage.subprocess.run")
def test_render_man_success(run):
    run.return_value = _completed(0, b"manual text")
    assert render_man("mandoc", "page.1") == "manual text"
    args = run.call_args[0][0]
    assert args == ["mandoc", "-Tascii", "page.1"]


@mock.patch("rosenpass.manpage.subprocess.run")
def test_render_man_failure(run):
    run.return_value = _completed(1)
    with pytest.raises(RuntimeError, match="groff returned an error"):
        render_man("groff", "page.1")


@mock.patch("rosenpass.manpage.subprocess.run")
def test_render_man_invalid_utf8(run):
    run.return_value = _completed(0, b"\xff\xfe")
    with pytest.raises(UnicodeDecodeError):
        render_man("mandoc", "page.1")


@mock.patch("rosenpass.manpage.subprocess.run")
def test_render_man_missing_compiler(run):
    run.side_effect = FileNotFoundError("mandoc")
    with pytest.raises(OSError):
        render_man("mandoc", "page.1")


@mock.patch("rosenpass.manpage.subprocess.run")
def test_generate_man_prefers_mandoc(run):
    run.return_value = _completed(0, b"from mandoc")
    assert generate_man("page.1") == "from mandoc"
    assert run.call_count == 1


@mock.patch("rosenpass.manpage.subprocess.run")
def test_generate_man_falls_back_to_groff(run):
    run.side_effect = [FileNotFoundError("mandoc"), _completed(0, b"from groff")]
    assert generate_man("page.1") == "from groff"
    assert run.call_args_list[1][0][0][0] == "groff"


@mock.patch("rosenpass.manpage.subprocess.run")
def test_generate_man_fallback_text(run):
    run.side_effect = [_completed(2), FileNotFoundError("groff")]
    assert generate_man("page.1") == FALLBACK_TEXT
    assert FALLBACK_TEXT == "Cannot render manual page\n"