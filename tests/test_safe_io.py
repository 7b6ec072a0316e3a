import unittest
from pathlib import Path
import tempfile


from tools.io import read_text, remove_file, write_text


class TestSafeIO(unittest.TestCase):
    def test_write_text_creates_parents_and_keeps_newlines(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            out_path = Path(td) / "nested" / "dir" / "file.txt"

            write_text(out_path, "a\nb\r\nc\n")

            self.assertTrue(out_path.exists())
            # No newline translation on write
            self.assertEqual(b"a\nb\r\nc\n", out_path.read_bytes())

    def test_read_text_missing_returns_none(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            self.assertIsNone(read_text(Path(td) / "missing.txt"))

    def test_remove_file_reports_whether_anything_was_removed(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "x.txt"
            p.write_text("x", encoding="utf-8")

            self.assertTrue(remove_file(p))
            self.assertFalse(p.exists())
            # Second removal is a no-op
            self.assertFalse(remove_file(p))


if __name__ == "__main__":
    unittest.main()
