import gzip
import io
import os
import subprocess
import tempfile
import unittest
from contextlib import redirect_stdout
from unittest import mock

from tsbench.cli import build_parser, main


class TestCli(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmp.cleanup()

    def run_cli(self, *argv):
        buf = io.StringIO()
        with redirect_stdout(buf):
            code = main(list(argv))
        return code, buf.getvalue()

    def test_usage_without_command(self):
        code, out = self.run_cli()
        self.assertEqual(code, 0)
        for command in ("generate_data", "load", "generate_queries"):
            self.assertIn(command, out)

    def test_unknown_command(self):
        with self.assertRaises(SystemExit) as ctx:
            build_parser().parse_args(["benchmark"])
        self.assertEqual(ctx.exception.code, 2)

    def test_generate_data_to_stdout(self):
        code, out = self.run_cli("generate_data", "--interval", "600")
        self.assertEqual(code, 0)
        lines = out.splitlines()
        self.assertEqual(lines[0], "ts,tag,value")
        self.assertEqual(len(lines), 1 + 6)

    def test_generate_then_load_to_stdout(self):
        path = os.path.join(self.tmp.name, "data.gz")
        code, _ = self.run_cli("generate_data", "--output", path, "--scale", "2")
        self.assertEqual(code, 0)
        with gzip.open(path, "rt") as f:
            self.assertEqual(f.readline().strip(), "ts,tag,value")

        code, out = self.run_cli("load", "--input", path, "--sink", "stdout", "--chunk-size", "60")
        self.assertEqual(code, 0)
        statements = out.splitlines()
        self.assertEqual(len(statements), 3)
        self.assertTrue(statements[0].startswith("CREATE TABLE IF NOT EXISTS measurement"))
        self.assertTrue(statements[1].startswith("INSERT INTO measurement(ts,tag,value) VALUES"))

    def test_log_use_case(self):
        out_dir = os.path.join(self.tmp.name, "log")
        code, _ = self.run_cli(
            "generate_data", "--use-case", "log", "--output-dir", out_dir,
            "--time-start", "2023-01-01T00:00:00Z", "--time-end", "2023-01-01T02:00:00Z",
        )
        self.assertEqual(code, 0)
        self.assertEqual(len([f for f in os.listdir(out_dir) if f.endswith(".parquet")]), 7)

        code, out = self.run_cli("load", "--use-case", "log", "--input", out_dir, "--sink", "stdout", "--drop-existing")
        self.assertEqual(code, 0)
        self.assertEqual(len([s for s in out.splitlines() if s.startswith("DROP TABLE")]), 7)

    def test_errors_exit_nonzero(self):
        code, _ = self.run_cli("generate_data", "--interval", "0")
        self.assertEqual(code, 1)
        code, _ = self.run_cli("load", "--input", os.path.join(self.tmp.name, "missing.gz"), "--sink", "stdout")
        self.assertEqual(code, 1)

    def test_generate_queries_not_implemented(self):
        code, out = self.run_cli("generate_queries")
        self.assertEqual(code, 1)
        self.assertEqual(out, "")

    def test_bad_environment_exits_nonzero(self):
        with mock.patch.dict(os.environ, {"TSBENCH_WORKERS": "many"}):
            code, _ = self.run_cli("load", "--input", "data.gz", "--sink", "stdout")
            self.assertEqual(code, 1)
            # generate_data never reads the worker count
            code, _ = self.run_cli("generate_data", "--interval", "600")
            self.assertEqual(code, 0)
        with mock.patch.dict(os.environ, {"TSBENCH_SEED": "abc"}):
            code, out = self.run_cli("generate_data")
        self.assertEqual(code, 1)
        self.assertEqual(out, "")

    def test_flag_overrides_environment(self):
        path = os.path.join(self.tmp.name, "data.csv")
        self.run_cli("generate_data", "--output", path, "--interval", "600")
        with mock.patch.dict(os.environ, {"TSBENCH_CHUNK_SIZE": "many"}):
            code, out = self.run_cli("load", "--input", path, "--sink", "stdout", "--chunk-size", "2")
        self.assertEqual(code, 0)
        self.assertEqual(len(out.splitlines()), 1 + 3)

    def test_log_level_from_environment(self):
        with mock.patch.dict(os.environ, {"TSBENCH_LOG_LEVEL": "info"}):
            code, out = self.run_cli()
        self.assertEqual(code, 0)
        self.assertIn("generate_data", out)

        with mock.patch.dict(os.environ, {"TSBENCH_LOG_LEVEL": "verbose"}):
            code, out = self.run_cli()
        self.assertEqual(code, 1)
        self.assertEqual(out, "")

        code, _ = self.run_cli("--log-level", "debug")
        self.assertEqual(code, 0)

    def test_verify_needs_database_sink(self):
        path = os.path.join(self.tmp.name, "data.csv")
        self.run_cli("generate_data", "--output", path, "--interval", "600")
        with self.assertLogs("tsbench", level="WARNING") as logs:
            code, _ = self.run_cli("load", "--input", path, "--sink", "stdout", "--verify")
        self.assertEqual(code, 0)
        self.assertTrue(any("--verify needs the database sink" in line for line in logs.output))

    def test_usql_sink(self):
        path = os.path.join(self.tmp.name, "data.csv")
        self.run_cli("generate_data", "--output", path, "--interval", "600")
        done = subprocess.CompletedProcess(args=[], returncode=0, stdout="", stderr="")
        with mock.patch("tsbench.sinks.subprocess.run", return_value=done) as run:
            code, out = self.run_cli(
                "load", "--input", path, "--sink", "usql", "--usql-url", "mysql://db:4002", "--chunk-size", "4",
            )
        self.assertEqual(code, 0)
        self.assertEqual(out, "")
        # CREATE plus two INSERTs for six rows
        self.assertEqual(run.call_count, 3)
        self.assertEqual(run.call_args_list[0].args[0], ["usql", "mysql://db:4002"])
        self.assertTrue(run.call_args_list[0].kwargs["input"].startswith("CREATE TABLE"))

    def test_usql_failure_exits_nonzero(self):
        path = os.path.join(self.tmp.name, "data.csv")
        self.run_cli("generate_data", "--output", path, "--interval", "600")
        failed = subprocess.CompletedProcess(args=[], returncode=1, stdout="", stderr="connection refused")
        with mock.patch("tsbench.sinks.subprocess.run", return_value=failed) as run:
            code, _ = self.run_cli("load", "--input", path, "--sink", "usql")
        self.assertEqual(code, 1)
        self.assertEqual(run.call_count, 1)


if __name__ == "__main__":
    unittest.main()
