import io
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from laxhtml.__main__ import main


class TestCli(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmpdir.cleanup)

    def _write(self, html):
        path = Path(self._tmpdir.name) / "page.html"
        path.write_text(html, encoding="utf-8")
        return str(path)

    def _run(self, argv, stdin=""):
        stdout = io.StringIO()
        stderr = io.StringIO()
        code = 0
        with (
            mock.patch("sys.stdin", io.StringIO(stdin)),
            mock.patch("sys.stdout", stdout),
            mock.patch("sys.stderr", stderr),
        ):
            try:
                main(argv)
            except SystemExit as e:
                code = e.code
        return code, stdout.getvalue(), stderr.getvalue()

    def test_outputs_document_markup(self):
        path = self._write("<p>A</p><p>B")
        assert self._run([path]) == (0, "<p>A</p><p>B\n", "")

    def test_selector_text(self):
        path = self._write("<p>A</p><p>B</p>")
        code, out, _ = self._run([path, "--selector", "p", "--format", "text"])
        assert code == 0
        assert out == "A\nB\n"

    def test_document_text_uses_newlines(self):
        path = self._write("<p>A<br>B</p><p>C</p>")
        _, out, _ = self._run([path, "--format", "text"])
        assert out == "A\nB\n\nC\n"

    def test_index(self):
        path = self._write("<p>A</p><p>B</p>")
        assert self._run([path, "--selector", "p", "--index", "1"])[1] == "<p>B</p>\n"
        assert self._run([path, "--selector", "p", "--index", "-2"])[1] == "<p>A</p>\n"

    def test_inner_format(self):
        path = self._write("<div><b>x</b></div>")
        assert self._run([path, "--selector", "div", "--format", "inner"])[1] == "<b>x</b>\n"

    def test_no_match_exits_1(self):
        path = self._write("<p>A</p>")
        assert self._run([path, "--selector", "table"]) == (1, "", "")
        assert self._run([path, "--selector", "p", "--index", "5"])[0] == 1

    def test_invalid_selector_exits_2(self):
        path = self._write("<p>A</p>")
        code, out, err = self._run([path, "--selector", "p["])
        assert code == 2
        assert out == ""
        assert err

    def test_keep_newlines(self):
        path = self._write("<p>a\nb</p>")
        assert self._run([path])[1] == "<p>a b</p>\n"
        assert self._run([path, "--keep-newlines"])[1] == "<p>a\nb</p>\n"

    def test_ignore_blocks(self):
        path = self._write("<p>a{if x}b</p>")
        assert self._run([path, "--ignore-blocks", "strip", "--format", "text"])[1] == "ab\n"

    def test_reads_stdin(self):
        assert self._run(["-", "--format", "text"], stdin="<p>hi</p>")[1] == "hi\n"

    def test_missing_path_prints_help(self):
        code, out, err = self._run([])
        assert code == 1
        assert out == ""
        assert "usage:" in err


if __name__ == "__main__":
    unittest.main()
