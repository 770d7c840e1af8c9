"""Unit tests for the brace-depth class scanner."""
from rebuilder.analyzers.class_scanner import (
    default_scanner,
    find_block_end,
    find_statement_end,
    parse_annotations,
    top_level_members,
)


def test_find_block_end_skips_nested_braces():
    content = "class A { void f() { if (x) { y(); } } }"
    assert find_block_end(content, 0) == len(content)


def test_find_block_end_ignores_braces_in_strings_and_comments():
    content = (
        "class A {\n"
        "  final String open = '{';\n"
        '  final String close = "}}";\n'
        "  // }\n"
        "  /* { */\n"
        "}\n"
        "class B {}\n"
    )
    end = find_block_end(content, 0)
    assert content[:end].rstrip().endswith("}")
    assert "class B" not in content[:end]


def test_find_block_end_unbalanced_returns_none():
    assert find_block_end("class A { void f() {", 0) is None


def test_top_level_members_drops_method_bodies_and_comments():
    body = "{\n  final int id; // the key\n  void f() { final int local = 1; }\n}"
    members = top_level_members(body)
    assert "final int id;" in members
    assert "local" not in members
    assert "the key" not in members


def test_iter_classes_reads_header_parts():
    content = (
        "@freezed\n"
        "class User with _$User implements Comparable<User> {\n"
        "  final int id;\n"
        "}\n"
        "abstract class Repo extends Base<User> {}\n"
    )
    classes = list(default_scanner.iter_classes(content))

    assert [c.name for c in classes] == ["User", "Repo"]
    user, repo = classes
    assert user.annotations == ["freezed"]
    assert user.mixins == ["_$User"]
    assert user.implements == ["Comparable<User>"]
    assert user.balanced is True
    assert repo.is_abstract is True
    assert repo.extends == "Base"


def test_iter_classes_unbalanced_body_runs_to_end_of_file():
    content = "class Broken {\n  final int id;\n  void f() {\n"
    (decl,) = list(default_scanner.iter_classes(content))
    assert decl.balanced is False
    assert decl.body.endswith("void f() {\n")


def test_parse_annotations():
    assert parse_annotations("@JsonSerializable(explicitToJson: true) @immutable") == [
        "JsonSerializable",
        "immutable",
    ]


def test_iter_classes_matches_generic_class_names():
    content = (
        "class Page<T> {\n"
        "  final List<T> items;\n"
        "}\n"
        "class Cache<K extends Object, V> extends Store<K> {}\n"
    )
    classes = list(default_scanner.iter_classes(content))

    assert [c.name for c in classes] == ["Page", "Cache"]
    assert "final List<T> items;" in classes[0].body
    assert classes[1].extends == "Store"


def test_find_statement_end_skips_nested_semicolons():
    content = "= {'a': 1, 'b;': f(x); }; next;"
    assert content[:find_statement_end(content, 0)] == "= {'a': 1, 'b;': f(x); }"
