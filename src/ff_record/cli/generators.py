"""Render model modules and CREATE TABLE migrations from Jinja2 templates."""

import keyword
import re
import time
from dataclasses import dataclass
from pathlib import Path

from jinja2 import Template

from ..db.query_builder import QueryBuilder
from ..config import get_logger
from ..exceptions import InvalidIdentifierError, UsageError
from ..schema import PRIMARY_KEY

logger = get_logger("generators")

# field type -> (SQL column type, Python annotation)
FIELD_TYPES = {
    "string": ("TEXT", "str"),
    "integer": ("INTEGER", "int"),
    "boolean": ("INTEGER", "bool"),
    "float": ("REAL", "float"),
}
DEFAULT_FIELD_TYPE = ("TEXT", "str")

MODEL_TEMPLATE = '''"""{{ name }} model."""

from ff_record import Record, TableModel


class {{ name }}(Record):
    __table_name__ = "{{ table }}"
{% for field in fields %}
    {{ field.name }}: {{ field.python_type }}
{% endfor %}


class {{ name }}Model(TableModel[{{ name }}]):
    table_name = "{{ table }}"
    row_model = {{ name }}
'''

MIGRATION_TEMPLATE = """CREATE TABLE IF NOT EXISTS {{ table }} (
{% for column in columns %}
  {{ column }}{{ "," if not loop.last }}
{% endfor %}
);
"""


@dataclass(frozen=True)
class FieldSpec:
    """One `name:type` field argument."""

    name: str
    type: str
    sql_type: str
    python_type: str


@dataclass(frozen=True)
class GeneratedFiles:
    model_path: Path
    migration_path: Path


def check_name(name: str) -> str:
    """
    Check that name can be both an SQL column and a public pydantic field.

    Raises:
        InvalidIdentifierError: For dotted, non-ASCII, underscore-prefixed or
            keyword names
    """
    if not name or name.startswith("_") or "." in name or keyword.iskeyword(name):
        raise InvalidIdentifierError(name)
    return QueryBuilder().validate_identifier(name)


def parse_field(arg: str) -> FieldSpec:
    """
    Parse a `name:type` argument.

    Missing or unknown types fall back to TEXT/str.

    Raises:
        InvalidIdentifierError: If the name is not usable as a column and field
        UsageError: If the field redeclares the primary key
    """
    name, _, field_type = arg.partition(":")
    if name == PRIMARY_KEY:
        raise UsageError(f"'{PRIMARY_KEY}' is added automatically; do not declare it")
    check_name(name)

    sql_type, python_type = FIELD_TYPES.get(field_type, DEFAULT_FIELD_TYPE)
    return FieldSpec(name=name, type=field_type, sql_type=sql_type, python_type=python_type)


def table_name_for(name: str) -> str:
    return name.lower() + "s"


def module_name_for(name: str) -> str:
    """UserProfile -> user_profile"""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def _template(source: str) -> Template:
    return Template(source, trim_blocks=True, lstrip_blocks=True, keep_trailing_newline=True)


def render_model(name: str, table: str, fields: list[FieldSpec]) -> str:
    return _template(MODEL_TEMPLATE).render(name=name, table=table, fields=fields)


def render_migration(table: str, fields: list[FieldSpec]) -> str:
    columns = [f"{PRIMARY_KEY} INTEGER PRIMARY KEY AUTOINCREMENT"]
    columns.extend(f"{field.name} {field.sql_type}" for field in fields)
    return _template(MIGRATION_TEMPLATE).render(table=table, columns=columns)


def generate_model(
    name: str,
    field_args: list[str],
    models_dir: Path,
    migrations_dir: Path,
    timestamp_ms: int | None = None,
    force: bool = False,
) -> GeneratedFiles:
    """
    Write a model module and its migration.

    Args:
        name: Model class name, e.g. "User"
        field_args: Field arguments like "name:string"
        models_dir: Directory for the model module (created if missing)
        migrations_dir: Directory for the migration (created if missing)
        timestamp_ms: Migration prefix (default: current epoch milliseconds)
        force: Overwrite an existing model module

    Returns:
        Paths of the written files

    Raises:
        UsageError: On invalid names or an existing model module without force
    """
    check_name(name)

    fields = [parse_field(arg) for arg in field_args]
    table = QueryBuilder().validate_identifier(table_name_for(name))
    timestamp_ms = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)

    model_path = Path(models_dir) / f"{module_name_for(name)}.py"
    migration_path = Path(migrations_dir) / f"{timestamp_ms}_create_{table}.sql"

    if model_path.exists() and not force:
        raise UsageError(f"{model_path} already exists (use --force to overwrite)")

    model_path.parent.mkdir(parents=True, exist_ok=True)
    migration_path.parent.mkdir(parents=True, exist_ok=True)

    model_path.write_text(render_model(name, table, fields))
    migration_path.write_text(render_migration(table, fields))

    logger.debug(f"Generated model {name} for table {table} ({len(fields)} fields)")
    return GeneratedFiles(model_path=model_path, migration_path=migration_path)
