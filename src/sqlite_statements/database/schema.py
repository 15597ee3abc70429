"""Table and statement declarations applied at connection setup."""

from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class TableBlueprint:
    """Schema declaration for a table.

    Columns are raw, dialect-specific fragments such as
    ``"id integer primary key"`` and are emitted in the given order.
    """

    name: str
    columns: Tuple[str, ...] = field(default_factory=tuple)
    if_not_exists: bool = True

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Table name cannot be empty")
        if not self.columns:
            raise ValueError(f"Table {self.name} needs at least one column")
        object.__setattr__(self, "columns", tuple(self.columns))

    def create_table_sql(self) -> str:
        """Generate SQL for creating the table."""
        prefix = "create table if not exists " if self.if_not_exists else "create table "
        return f"{prefix}{self.name}({','.join(self.columns)});"


@dataclass(frozen=True)
class StatementBlueprint:
    """A named query to prepare once the tables exist."""

    name: str
    query: str
    returns_generated_keys: bool = False

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Statement name cannot be empty")
        if not self.query or not self.query.strip():
            raise ValueError(f"Statement {self.name} has no query text")
