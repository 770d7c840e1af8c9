"""Drift storage rendering: tables, DAOs, the database class and web config."""
from typing import List

from rebuilder.builders.schema_mapper import Column, TableSchema
from rebuilder.builders.utils import to_camel_case, to_pascal_case
from rebuilder.generators.types import GeneratedFile

COLUMN_TYPES = {
    "integer": ("IntColumn", "integer"),
    "text": ("TextColumn", "text"),
    "real": ("RealColumn", "real"),
    "boolean": ("BoolColumn", "boolean"),
    "dateTime": ("DateTimeColumn", "dateTime"),
    "blob": ("BlobColumn", "blob"),
}

DATABASE_PATH = "lib/database/app_database.dart"


def table_class_name(schema: TableSchema) -> str:
    return f"{to_pascal_case(schema.name)}Table"


def render_column(column: Column) -> str:
    column_type, builder = COLUMN_TYPES.get(column.storage_type, COLUMN_TYPES["text"])
    chain = [f"{builder}()"]
    if column.is_auto_increment:
        chain.append("autoIncrement()")
    if column.nullable and not column.is_primary_key:
        chain.append("nullable()")
    if column.unique and not column.is_primary_key:
        chain.append("unique()")
    if column.foreign_key:
        target = f"{to_pascal_case(column.foreign_key.table)}Table"
        chain.append(f"references({target}, #{column.foreign_key.column})")
    getter = to_camel_case(column.name)
    return f"  {column_type} get {getter} => {'.'.join(chain)}();"


def render_table(schema: TableSchema) -> str:
    lines = [f"class {table_class_name(schema)} extends Table {{"]
    lines += [render_column(c) for c in schema.columns]
    if schema.has_timestamps:
        lines.append("  // createdAt/updatedAt maintained by the DAO")
    pk = schema.primary_key
    if not pk.is_auto_increment:
        lines += ["", "  @override", f"  Set<Column> get primaryKey => {{{to_camel_case(pk.name)}}};"]
    lines += ["", "  @override", f"  String get tableName => '{schema.name}';", "}"]
    return "\n".join(lines)


def render_dao(schema: TableSchema) -> str:
    entity = to_pascal_case(schema.name)
    table = table_class_name(schema)
    accessor = to_camel_case(table)
    pk = to_camel_case(schema.primary_key.name)
    key_type = "int" if schema.primary_key.storage_type == "integer" else "String"
    return f"""@DriftAccessor(tables: [{table}])
class {entity}Dao extends DatabaseAccessor<AppDatabase> with _${entity}DaoMixin {{
  {entity}Dao(AppDatabase db) : super(db);

  Future<List<{table}Data>> getAll() => select({accessor}).get();

  Future<{table}Data?> getById({key_type} id) =>
      (select({accessor})..where((t) => t.{pk}.equals(id))).getSingleOrNull();

  Future<int> insertOne({table}Companion entry) => into({accessor}).insert(entry);

  Future<bool> updateOne({table}Data entry) => update({accessor}).replace(entry);

  Future<int> deleteById({key_type} id) =>
      (delete({accessor})..where((t) => t.{pk}.equals(id))).go();
}}"""


def render_database(schemas: List[TableSchema], encryption: bool = False) -> str:
    tables = ", ".join(table_class_name(s) for s in schemas)
    daos = ", ".join(f"{to_pascal_case(s.name)}Dao" for s in schemas)
    body = "\n\n".join(render_table(s) for s in schemas)
    dao_classes = "\n\n".join(render_dao(s) for s in schemas)
    setup = ""
    if encryption:
        setup = "\n      setup: (db) => db.execute(\"PRAGMA key = '${const String.fromEnvironment('DB_KEY')}'\"),"
    return f"""// GENERATED CODE - DO NOT MODIFY BY HAND
import 'package:drift/drift.dart';
import 'package:drift_flutter/drift_flutter.dart';

part 'app_database.g.dart';

{body}

@DriftDatabase(tables: [{tables}], daos: [{daos}])
class AppDatabase extends _$AppDatabase {{
  AppDatabase() : super(_openConnection());

  @override
  int get schemaVersion => 1;

  static QueryExecutor _openConnection() {{
    return driftDatabase(
      name: 'app_db',
      web: DriftWebOptions(
        sqlite3Wasm: Uri.parse('sqlite3.wasm'),
        driftWorker: Uri.parse('drift_worker.js'),
      ),{setup}
    );
  }}
}}

{dao_classes}
"""


def render_wasm_readme() -> str:
    return """# SQLite WASM Files

The `sqlite3.wasm` and `drift_worker.js` files are provided by the Drift package.
Copy them into this directory before running on the web.
"""


def render_web_headers() -> str:
    return """/*
  Cross-Origin-Opener-Policy: same-origin
  Cross-Origin-Embedder-Policy: require-corp
"""


def render_index_html(app_name: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <meta http-equiv="Cross-Origin-Opener-Policy" content="same-origin">
  <meta http-equiv="Cross-Origin-Embedder-Policy" content="require-corp">
  <link rel="manifest" href="manifest.json">
  <title>{app_name}</title>
</head>
<body>
  <script src="flutter_bootstrap.js" async></script>
</body>
</html>
"""


def storage_files(schemas: List[TableSchema], app_name: str, encryption: bool = False) -> List[GeneratedFile]:
    """Database source plus the web files WASM/OPFS storage needs."""
    return [
        GeneratedFile(DATABASE_PATH, render_database(schemas, encryption)),
        GeneratedFile("web/WASM_README.md", render_wasm_readme()),
        GeneratedFile("web/_headers", render_web_headers()),
        GeneratedFile("web/index.html", render_index_html(app_name)),
    ]
