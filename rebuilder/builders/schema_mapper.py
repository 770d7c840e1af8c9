"""
Entity to storage-table mapping.

Each ``EntityDefinition`` becomes one ``TableSchema``. Types collapse onto six
storage types, ``id`` becomes the primary key and ``...Id`` fields become
foreign keys by naming convention only; the relationships extracted from
field types are carried alongside unchanged.
"""
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from rebuilder.analyzers.entities import EntityDefinition, FieldDefinition
from rebuilder.builders.utils import to_snake_case, to_table_name

INTEGER = "integer"
REAL = "real"
TEXT = "text"
BOOLEAN = "boolean"
DATE_TIME = "dateTime"
BLOB = "blob"

# Keys are lower-cased type names without nullability
TYPE_MAP = {
    "int": INTEGER,
    "integer": INTEGER,
    "bigint": INTEGER,
    "double": REAL,
    "num": REAL,
    "float": REAL,
    "bool": BOOLEAN,
    "boolean": BOOLEAN,
    "datetime": DATE_TIME,
    "uint8list": BLOB,
    "string": TEXT,
}

FOREIGN_KEY_SUFFIX = "Id"


@dataclass(frozen=True)
class ForeignKey:
    table: str
    column: str = "id"
    on_delete: str = "cascade"


@dataclass(frozen=True)
class Column:
    name: str
    source_name: str
    storage_type: str
    nullable: bool = False
    unique: bool = False
    is_primary_key: bool = False
    is_auto_increment: bool = False
    default_value: Optional[str] = None
    foreign_key: Optional[ForeignKey] = None


@dataclass(frozen=True)
class TableRelationship:
    kind: str
    related_table: str
    foreign_key: str


@dataclass(frozen=True)
class TableSchema:
    name: str
    source_entity_name: str
    columns: tuple = ()
    relationships: tuple = ()
    has_timestamps: bool = False
    has_soft_delete: bool = False

    @property
    def primary_key(self) -> Column:
        return next(c for c in self.columns if c.is_primary_key)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "sourceEntityName": self.source_entity_name,
            "columns": [
                {
                    "name": c.name,
                    "sourceName": c.source_name,
                    "storageType": c.storage_type,
                    "nullable": c.nullable,
                    "unique": c.unique,
                    "isPrimaryKey": c.is_primary_key,
                    "isAutoIncrement": c.is_auto_increment,
                    "foreignKey": (
                        {"table": c.foreign_key.table, "column": c.foreign_key.column}
                        if c.foreign_key else None
                    ),
                }
                for c in self.columns
            ],
            "relationships": [
                {"kind": r.kind, "relatedTable": r.related_table, "foreignKey": r.foreign_key}
                for r in self.relationships
            ],
            "hasTimestamps": self.has_timestamps,
            "hasSoftDelete": self.has_soft_delete,
        }


def map_storage_type(type_text: str) -> str:
    """Collapse a source type onto a storage type; unknown types are text."""
    normalized = type_text.replace("?", "").strip()
    if re.match(r"^(List|Set|Iterable)\s*<", normalized):
        return BLOB
    return TYPE_MAP.get(normalized.lower(), TEXT)


def _has_annotation(f: FieldDefinition, name: str) -> bool:
    return any(a.lstrip("@").lower() == name.lower() for a in f.annotations)


def _primary_key_field(fields: Iterable[FieldDefinition]) -> Optional[FieldDefinition]:
    fields = list(fields)
    named = next((f for f in fields if f.name == "id"), None)
    if named is not None:
        return named
    return next((f for f in fields if _has_annotation(f, "primaryKey")), None)


def _foreign_key(f: FieldDefinition) -> Optional[ForeignKey]:
    if not f.name.endswith(FOREIGN_KEY_SUFFIX):
        return None
    stem = f.name[: -len(FOREIGN_KEY_SUFFIX)]
    if not stem:
        return None
    return ForeignKey(table=to_table_name(stem[:1].upper() + stem[1:]))


def map_field(f: FieldDefinition, is_primary_key: bool) -> Column:
    storage_type = map_storage_type(f.type)
    return Column(
        name=to_snake_case(f.name),
        source_name=f.name,
        storage_type=storage_type,
        nullable=f.nullable and not is_primary_key,
        unique=_has_annotation(f, "unique"),
        is_primary_key=is_primary_key,
        is_auto_increment=is_primary_key and storage_type == INTEGER,
        default_value=f.default_value,
        foreign_key=None if is_primary_key else _foreign_key(f),
    )


def synthesized_primary_key() -> Column:
    return Column(
        name="id",
        source_name="id",
        storage_type=INTEGER,
        nullable=False,
        unique=True,
        is_primary_key=True,
        is_auto_increment=True,
    )


def entity_to_table_schema(entity: EntityDefinition) -> TableSchema:
    pk_field = _primary_key_field(entity.fields)
    columns: List[Column] = [map_field(f, f is pk_field) for f in entity.fields]
    if pk_field is None:
        columns.insert(0, synthesized_primary_key())

    relationships = tuple(
        TableRelationship(
            kind=r.kind,
            related_table=to_table_name(r.target),
            foreign_key=to_snake_case(r.field_name) + "_id",
        )
        for r in entity.relationships
    )

    names = set(entity.field_names())
    return TableSchema(
        name=to_table_name(entity.name),
        source_entity_name=entity.name,
        columns=tuple(columns),
        relationships=relationships,
        has_timestamps="createdAt" in names and "updatedAt" in names,
        has_soft_delete="deletedAt" in names,
    )


def entities_to_table_schemas(entities: Iterable[EntityDefinition]) -> List[TableSchema]:
    return [entity_to_table_schema(e) for e in entities]
