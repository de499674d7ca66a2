import unittest

import numpy as np
import pandas as pd

from tsbench.schema import LOG_SCHEMAS, measurement_schema
from tsbench.statements import (
    create_table_stmt,
    drop_table_stmt,
    format_value,
    insert_frame_stmt,
    insert_stmt,
)


class TestFormatValue(unittest.TestCase):
    def test_scalars(self):
        self.assertEqual(format_value(None), "NULL")
        self.assertEqual(format_value(np.int64(3)), "3")
        self.assertEqual(format_value(2.5), "2.5")
        self.assertEqual(format_value(float("nan")), "NULL")
        self.assertEqual(format_value(True), "'true'")
        self.assertEqual(format_value("it's"), "'it''s'")

    def test_timestamp(self):
        ts = pd.Timestamp("2023-01-01T00:00:00.5", tz="UTC")
        self.assertEqual(format_value(ts), "'2023-01-01T00:00:00.500000+00:00'")
        self.assertEqual(format_value(pd.NaT), "NULL")


class TestCreateTable(unittest.TestCase):
    def test_measurement(self):
        schema = measurement_schema("measurement", ["ts", "tag", "value"])
        self.assertEqual(
            create_table_stmt(schema),
            "CREATE TABLE IF NOT EXISTS measurement ("
            "ts TIMESTAMP DEFAULT CURRENT_TIMESTAMP() TIME INDEX, tag STRING, value STRING, "
            "PRIMARY KEY (tag));",
        )

    def test_inferred_field_types(self):
        frame = pd.DataFrame({"ts": ["x"], "tag": ["a"], "value": [1], "load": [0.5]})
        schema = measurement_schema("cpu", list(frame.columns), frame)
        stmt = create_table_stmt(schema, if_not_exists=False)
        self.assertTrue(stmt.startswith("CREATE TABLE cpu ("))
        self.assertIn("value BIGINT", stmt)
        self.assertIn("load DOUBLE", stmt)

    def test_no_tags_no_primary_key(self):
        schema = measurement_schema("m", ["ts", "value"])
        self.assertNotIn("PRIMARY KEY", create_table_stmt(schema))

    def test_table_without_timestamp_gets_time_index(self):
        self.assertEqual(
            create_table_stmt(LOG_SCHEMAS["devices"]),
            "CREATE TABLE IF NOT EXISTS devices ("
            "device_id INT, browser STRING, ts TIMESTAMP DEFAULT CURRENT_TIMESTAMP() TIME INDEX, "
            "PRIMARY KEY (device_id));",
        )

    def test_log_time_index_microseconds(self):
        stmt = create_table_stmt(LOG_SCHEMAS["web_logs"])
        self.assertIn("timestamp TIMESTAMP(6) DEFAULT CURRENT_TIMESTAMP() TIME INDEX", stmt)
        self.assertEqual(stmt.count("TIME INDEX"), 1)

    def test_drop(self):
        self.assertEqual(drop_table_stmt("users"), "DROP TABLE IF EXISTS users;")


class TestInsert(unittest.TestCase):
    def test_multi_row(self):
        stmt = insert_stmt("m", ["a", "b"], [("x'y", 1), (None, 2.5)])
        self.assertEqual(stmt, "INSERT INTO m(a,b) VALUES ('x''y',1), (NULL,2.5);")

    def test_empty_rejected(self):
        with self.assertRaises(ValueError):
            insert_stmt("m", ["a"], [])

    def test_frame(self):
        frame = pd.DataFrame({"ts": ["2021-01-01T00:00:00+00:00"], "tag": ["host_0"], "value": [4]})
        self.assertEqual(
            insert_frame_stmt("measurement", frame),
            "INSERT INTO measurement(ts,tag,value) VALUES ('2021-01-01T00:00:00+00:00','host_0',4);",
        )


if __name__ == "__main__":
    unittest.main()
