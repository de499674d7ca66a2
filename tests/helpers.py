import threading

from tsbench.sinks import SqlSink


class RecordingSink(SqlSink):
    name = "recording"

    def __init__(self, fail_on=None):
        self.statements = []
        self.closed = False
        self.fail_on = fail_on
        self._lock = threading.Lock()

    def execute(self, sql):
        if self.fail_on and sql.startswith(self.fail_on):
            raise RuntimeError("boom")
        with self._lock:
            self.statements.append(sql)

    def close(self):
        self.closed = True

    def starting_with(self, prefix):
        return [s for s in self.statements if s.startswith(prefix)]
