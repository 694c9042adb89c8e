import sqlalchemy as sa
from collections import abc


def add_columns_if_missing(stmt: sa.sql.Select, columns: abc.Mapping[str, sa.sql.ColumnElement]) -> sa.sql.Select:
    """ Add columns to an SQL Select statement, but only if they're not already added

    Args:
        stmt: The statement
        columns: Column expressions by the key they should appear under in result rows.
            A column that is missing gets labeled with this key.
    """
    selected_keys = set(stmt.selected_columns.keys())

    columns_to_add = [
        column.label(key)
        for key, column in columns.items()
        if key not in selected_keys
    ]

    if not columns_to_add:
        return stmt

    return stmt.add_columns(*columns_to_add)
