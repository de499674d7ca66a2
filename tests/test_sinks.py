import io
import os
import shutil
import tempfile
import unittest

from tsbench.errors import LoadError
from tsbench.sinks import DatabaseSink, StdoutSink, UsqlSink


class TestDatabaseSink(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.sink = DatabaseSink(url="sqlite:///" + os.path.join(self.tmp.name, "bench.db"))

    def tearDown(self):
        self.sink.close()
        self.tmp.cleanup()

    def test_execute_and_count(self):
        self.sink.execute("CREATE TABLE t (a TEXT, b INTEGER);")
        # literal percent signs and doubled quotes pass through untouched
        self.sink.execute("INSERT INTO t(a,b) VALUES ('50%',1), ('it''s',2);")
        self.assertEqual(self.sink.count_rows("t"), 2)
        self.assertEqual(self.sink.affected_rows, 2)

    def test_error_wrapped(self):
        with self.assertRaises(LoadError) as ctx:
            self.sink.execute("INSERT INTO missing(a) VALUES (1);")
        self.assertIn("INSERT INTO missing", str(ctx.exception))

    def test_needs_url_or_engine(self):
        with self.assertRaises(ValueError):
            DatabaseSink()


class TestStdoutSink(unittest.TestCase):
    def test_one_statement_per_line(self):
        buf = io.StringIO()
        with StdoutSink(buf) as sink:
            sink.execute("SELECT 1;")
            sink.execute("SELECT 2;")
        self.assertEqual(buf.getvalue(), "SELECT 1;\nSELECT 2;\n")


class TestUsqlSink(unittest.TestCase):
    def test_missing_client(self):
        sink = UsqlSink("mysql://127.0.0.1:4002", command="tsbench-no-such-client")
        with self.assertRaises(LoadError):
            sink.execute("SELECT 1;")

    @unittest.skipUnless(shutil.which("true") and shutil.which("false"), "needs true/false")
    def test_exit_status(self):
        UsqlSink("mysql://127.0.0.1:4002", command="true").execute("SELECT 1;")
        with self.assertRaises(LoadError):
            UsqlSink("mysql://127.0.0.1:4002", command="false").execute("SELECT 1;")


if __name__ == "__main__":
    unittest.main()
