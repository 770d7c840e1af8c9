"""Unit tests for entity extraction."""
from rebuilder.analyzers.entities import (
    detect_relationships,
    discover_entities,
    extract_entities,
    parse_entities_from_content,
    parse_fields,
)

from conftest import USER_ENTITY


class TestParseFields:
    """Field declarations read from class bodies."""

    def test_single_line_class(self):
        fields = parse_fields("{ final int id; final String name; }")
        assert [(f.name, f.type, f.nullable) for f in fields] == [
            ("id", "int", False),
            ("name", "String", False),
        ]

    def test_nullable_default_and_annotations(self):
        body = """{
  @JsonKey(name: 'email_address')
  final String? email;
  int count = 0;
  static const table = 'users';
  String get label => email ?? '';
  void reset() { int local = 1; }
}"""
        fields = parse_fields(body)
        by_name = {f.name: f for f in fields}

        assert set(by_name) == {"email", "count"}
        assert by_name["email"].nullable is True
        assert by_name["email"].annotations == ("JsonKey",)
        assert by_name["count"].default_value == "0"

    def test_collection_literal_defaults_are_kept_verbatim(self):
        fields = parse_fields(
            "class Settings { final int id; final Map<String, dynamic> extra = {}; "
            "final Set<String> tags = const {'a'}; final String name; "
            "final Map<String, int> limits = {'max': 10, 'min': 1}; }"
        )
        assert [(f.name, f.type, f.default_value) for f in fields] == [
            ("id", "int", None),
            ("extra", "Map<String, dynamic>", "{}"),
            ("tags", "Set<String>", "const {'a'}"),
            ("name", "String", None),
            ("limits", "Map<String, int>", "{'max': 10, 'min': 1}"),
        ]

    def test_default_with_semicolon_in_string(self):
        (f,) = parse_fields("{ final String sep = 'a;b'; }")
        assert f.default_value == "'a;b'"

    def test_inferred_type_becomes_dynamic(self):
        (f,) = parse_fields("{ final createdBy; }")
        assert f.type == "dynamic"


class TestRelationships:
    def test_model_types_become_relationships(self):
        fields = parse_fields(
            "{ final int id; final User author; final List<Comment> comments; "
            "final List<String> tags; final DateTime createdAt; }"
        )
        relationships = detect_relationships(fields)
        assert [(r.kind, r.target, r.field_name) for r in relationships] == [
            ("hasOne", "User", "author"),
            ("hasMany", "Comment", "comments"),
        ]

    def test_nullable_reference_is_still_has_one(self):
        (rel,) = detect_relationships(parse_fields("{ final Profile? profile; }"))
        assert rel.kind == "hasOne"
        assert rel.target == "Profile"


class TestParseEntitiesFromContent:
    def test_skips_ui_and_abstract_classes(self):
        content = (
            "abstract class BaseModel { final int id; }\n"
            "class UserCard extends StatelessWidget { final String title; }\n"
            "class _CardState extends State<UserCard> {}\n"
            + USER_ENTITY
        )
        entities = parse_entities_from_content(content, "models/user.dart")
        assert [e.name for e in entities] == ["User"]

        with_abstract = parse_entities_from_content(content, "models/user.dart", include_abstract=True)
        assert [e.name for e in with_abstract] == ["BaseModel", "User"]

    def test_generic_entity_is_extracted(self):
        content = "class Page<T> {\n  final int total;\n  final List<T> items;\n}\n"
        (entity,) = parse_entities_from_content(content, "models/page.dart")
        assert entity.name == "Page"
        assert entity.field_names() == ["total", "items"]

    def test_markers(self):
        content = (
            "@freezed\n"
            "class Note with _$Note {\n"
            "  final int id;\n"
            "  factory Note.fromJson(Map<String, dynamic> json) => _$NoteFromJson(json);\n"
            "}\n"
        )
        (note,) = parse_entities_from_content(content, "models/note.dart")
        assert note.is_immutable is True
        assert note.has_serialization_markers is True
        assert note.field_names() == ["id"]

    def test_unbalanced_class_uses_rest_of_file(self):
        content = "class Draft {\n  final int id;\n  final String body;\n  void f() {\n"
        (draft,) = parse_entities_from_content(content, "models/draft.dart")
        assert draft.field_names() == ["id", "body"]


class TestDiscoverEntities:
    """File selection and failure accounting."""

    def test_conventional_locations_and_exclusions(self, make_tree):
        root = make_tree({
            "models/user.dart": USER_ENTITY,
            "models/user.g.dart": "class _$UserGenerated { final int id; }\n",
            "features/todo/todo_model.dart": "class Todo { final int id; final bool done; }\n",
            "screens/home.dart": "class NotAnEntity { final int id; }\n",
            "build/models/stale.dart": "class Stale { final int id; }\n",
        })
        result = discover_entities(root)

        names = sorted(e.name for e in result.entities)
        assert names == ["Todo", "User"]
        assert result.files_parsed == 2
        assert result.files_failed == []

        user = next(e for e in result.entities if e.name == "User")
        assert user.source_path == "models/user.dart"

    def test_undecodable_file_is_reported_and_skipped(self, make_tree):
        root = make_tree({"models/user.dart": USER_ENTITY})
        (root / "models" / "broken.dart").write_bytes(b"class Broken { \xff\xfe }")

        result = discover_entities(root)

        assert [e.name for e in result.entities] == ["User"]
        assert len(result.files_failed) == 1
        assert result.files_failed[0]["path"] == "models/broken.dart"

    def test_custom_patterns(self, make_tree):
        root = make_tree({"schema/order.dart": "class Order { final int id; }\n"})
        assert extract_entities(root) == []
        (order,) = extract_entities(root, ["schema/*.dart"])
        assert order.name == "Order"

    def test_empty_tree(self, tmp_path):
        result = discover_entities(tmp_path)
        assert result.entities == []
        assert result.files_parsed == 0
