import os
import sqlite3
import tempfile
import unittest
from pathlib import Path

from file_indexer import utils
from file_indexer.errors import FilesystemError

class TestUtils(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp_dir.name).resolve()

    def tearDown(self):
        self.tmp_dir.cleanup()

    def test_canonicalize(self):
        target = self.root / "target.txt"
        target.write_text("x")
        link = self.root / "link.txt"
        link.symlink_to(target)

        self.assertEqual(utils.canonicalize(link), target)
        self.assertEqual(utils.canonicalize(str(self.root / "." / "target.txt")), target)

        with self.assertRaises(FilesystemError) as ctx:
            utils.canonicalize(self.root / "nonexistent")
        self.assertEqual(ctx.exception.path, str(self.root / "nonexistent"))

    def test_canonicalize_non_utf8(self):
        bad_name = os.path.join(os.fsencode(self.root), b"bad\xff.txt")
        try:
            with open(bad_name, "wb"):
                pass
        except OSError:
            self.skipTest("Filesystem doesn't allow non UTF-8 names.")

        with self.assertRaises(FilesystemError) as ctx:
            # The catalog only stores UTF-8 paths.
            utils.canonicalize(os.fsdecode(bad_name))
        self.assertIn("UTF-8", str(ctx.exception))

    def test_to_unix_seconds(self):
        self.assertEqual(utils.to_unix_seconds(1645312127.999), 1645312127)
        self.assertEqual(utils.to_unix_seconds(1645312127.0), 1645312127)
        self.assertIsInstance(utils.to_unix_seconds(1.5), int)

    def test_is_sqlite_db(self):
        with self.assertRaises(FileNotFoundError):
            utils.is_sqlite_db(self.root / "nonexistant") # Doesn't exist

        with self.assertRaises(FileNotFoundError):
            utils.is_sqlite_db(self.root) # Shouldn't accept a directory

        valid_db_path = self.root / "valid.db"
        conn = sqlite3.connect(valid_db_path)
        conn.execute("CREATE TABLE t (x int)")
        conn.commit()
        conn.close()
        self.assertTrue(utils.is_sqlite_db(valid_db_path))

        empty_path = self.root / "empty.db"
        empty_path.touch()
        self.assertTrue(utils.is_sqlite_db(empty_path))

        invalid_db_path = self.root / "not_a_sqlite3_db"
        invalid_db_path.write_bytes(b"not a database" * 20)
        self.assertFalse(utils.is_sqlite_db(invalid_db_path))

        short_path = self.root / "short"
        short_path.write_bytes(b"SQLite format 3\0")
        self.assertFalse(utils.is_sqlite_db(short_path))

    def test_child_path(self):
        self.assertEqual(utils.child_path(Path("/data"), "a.txt"), "/data/a.txt")
        self.assertEqual(utils.child_path(Path("/"), "a.txt"), "/a.txt")

if __name__ == "__main__":
    unittest.main()
