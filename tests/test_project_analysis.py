"""Tests for pubspec parsing and whole-project analysis."""
import pytest
import yaml

from rebuilder.analyzers.project import analyze_project, collect_stats
from rebuilder.analyzers.pubspec import build_inventory, parse_pubspec

from conftest import CLEAN_TREE, USER_ENTITY

PUBSPEC = """
name: shop_app
description: A small shop
version: 2.1.0+5
environment:
  sdk: ">=3.2.0 <4.0.0"
  flutter: ">=3.16.0"
dependencies:
  flutter:
    sdk: flutter
  flutter_riverpod: ^2.4.0
  drift: ^2.14.0
  dio: ^5.0.0
  go_router: ^13.0.0
  freezed_annotation: ^2.4.0
dev_dependencies:
  build_runner: ^2.4.0
  freezed: ^2.4.0
flutter:
  assets:
    - assets/images/
  fonts:
    - family: Inter
      fonts:
        - asset: fonts/Inter.ttf
"""


class TestPubspec:
    def test_parse_full_pubspec(self, make_tree):
        root = make_tree({"pubspec.yaml": PUBSPEC})
        info = parse_pubspec(root)

        assert info.name == "shop_app"
        assert info.version == "2.1.0+5"
        assert info.flutter_version == "3.16.0"
        assert info.dart_min_version == "3.2.0"
        assert info.dart_max_version == "4.0.0"
        assert info.assets == ["assets/images/"]
        assert info.fonts == ["Inter"]

        deps = info.dependencies
        assert deps.state_management == "riverpod"
        assert deps.state_packages == ["flutter_riverpod"]
        assert deps.database == "drift"
        assert deps.networking == "dio"
        assert deps.navigation == "go_router"
        assert deps.uses_freezed is True
        assert deps.uses_build_runner is True
        assert deps.uses_json_serializable is False

    def test_missing_pubspec_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            parse_pubspec(tmp_path)

    def test_empty_pubspec_uses_defaults(self, make_tree):
        root = make_tree({"pubspec.yaml": ""})
        info = parse_pubspec(root)
        assert info.name == "unknown"
        assert info.dependencies.state_management == "none"

    def test_malformed_yaml_raises(self, make_tree):
        root = make_tree({"pubspec.yaml": "name: [unclosed\n"})
        with pytest.raises(yaml.YAMLError):
            parse_pubspec(root)

    def test_non_mapping_section_raises(self, make_tree):
        root = make_tree({"pubspec.yaml": "name: app\nenvironment: '>=3.0.0'\n"})
        with pytest.raises(ValueError, match="environment"):
            parse_pubspec(root)

    def test_first_matching_category_wins(self):
        inventory = build_inventory({"provider": "^6.0.0", "flutter_bloc": "^8.0.0"}, {})
        assert inventory.state_management == "bloc"
        assert inventory.state_packages == ["flutter_bloc", "provider"]


class TestAnalyzeProject:
    """Depth gating, lib/ scanning and tolerated gaps."""

    def test_deep_analysis_of_lib_tree(self, make_tree):
        files = {"pubspec.yaml": PUBSPEC, "test/widget_test.dart": "void main() {}\n"}
        files.update({f"lib/{path}": content for path, content in CLEAN_TREE.items()})
        files["lib/presentation/home_screen.dart"] = (
            "class HomeScreen extends StatelessWidget {\n"
            "  Widget build(BuildContext context) { return Scaffold(body: Text('hi')); }\n"
            "}\n"
        )
        root = make_tree(files)

        analysis = analyze_project(root)

        assert analysis.name == "shop_app"
        assert analysis.architecture.detected == "clean"
        assert analysis.dart_version == "3.2.0 <4.0.0"
        assert [e.name for e in analysis.entities] == ["User"]
        assert analysis.entities[0].source_path == "domain/user.dart"
        assert [s.name for s in analysis.screens] == ["HomeScreen"]
        assert analysis.scan_root == str(root / "lib")
        assert analysis.stats["testFiles"] == 1
        assert analysis.notes == []

        summary = analysis.summary()
        assert summary["architecture"]["detected"] == "clean"
        assert summary["entities"][0]["fields"][0] == {"name": "id", "type": "int", "nullable": False}

    def test_shallow_skips_screens_and_widgets(self, make_tree):
        root = make_tree({
            "models/user.dart": USER_ENTITY,
            "screens/home_screen.dart": "class HomeScreen extends StatelessWidget { x() => Scaffold(); }\n",
        })
        analysis = analyze_project(root, "shallow")
        assert [e.name for e in analysis.entities] == ["User"]
        assert analysis.screens == []
        assert analysis.widgets == []

    def test_missing_pubspec_is_noted(self, make_tree):
        root = make_tree({"models/user.dart": USER_ENTITY}, name="no_pubspec")
        analysis = analyze_project(root)
        assert analysis.name == "no_pubspec"
        assert analysis.dependencies.state_management == "none"
        assert any("pubspec.yaml" in note for note in analysis.notes)
        # No lib/ directory: the project root is scanned
        assert analysis.scan_root == str(root)

    @pytest.mark.parametrize("content", [
        "name: [unclosed\n",
        "name: app\ndependencies:\n  - flutter_riverpod\n",
        "- just\n- a list\n",
    ])
    def test_malformed_pubspec_is_noted(self, make_tree, content):
        root = make_tree({"pubspec.yaml": content, "models/user.dart": USER_ENTITY}, name="broken_pubspec")
        analysis = analyze_project(root)
        assert analysis.name == "broken_pubspec"
        assert analysis.dependencies.state_management == "none"
        assert [e.name for e in analysis.entities] == ["User"]
        assert any("could not be parsed" in note for note in analysis.notes)

    def test_theme_is_extracted_at_deep_depth_only(self, make_tree):
        root = make_tree({
            "pubspec.yaml": PUBSPEC,
            "lib/models/user.dart": USER_ENTITY,
            "lib/theme/app_theme.dart": "class AppColors { static const Color primary = Color(0xFF0F766E); }\n",
        })

        deep = analyze_project(root)
        assert deep.theme.theme_files == ["theme/app_theme.dart"]
        assert deep.theme.primary_color == "#0F766E"
        assert deep.summary()["theme"]["hasCustomTheme"] is True

        medium = analyze_project(root, "medium")
        assert medium.theme is None
        assert medium.summary()["theme"] is None

    def test_missing_root(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            analyze_project(tmp_path / "missing")

    def test_unknown_depth(self, tmp_path):
        with pytest.raises(ValueError):
            analyze_project(tmp_path, "exhaustive")


def test_collect_stats_skips_build_output(make_tree):
    root = make_tree({
        "lib/main.dart": "void main() {}\n// end\n",
        "test/app_test.dart": "void main() {}\n",
        "build/generated.dart": "x\n" * 50,
        "README.md": "# app\n",
    })
    assert collect_stats(root) == {"totalDartFiles": 2, "testFiles": 1, "linesOfCode": 3}
