from __future__ import annotations

from src.payroll_system.payroll_system.database.bootstrap import split_sql


def test_split_respects_quotes_and_comments():
    sql = """
    -- person's settings; not a statement
    CREATE TABLE a (id INT);
    INSERT INTO a VALUES (1); # trailing; comment
    INSERT INTO notes (body) VALUES ('semi; colon'), ("it's");
    SELECT 1
    """

    assert split_sql(sql) == [
        "CREATE TABLE a (id INT)",
        "INSERT INTO a VALUES (1)",
        "INSERT INTO notes (body) VALUES ('semi; colon'), (\"it's\")",
        "SELECT 1",
    ]


def test_split_ignores_empty_statements():
    assert split_sql(";;\n  ;") == []
