"""Unit tests for theme detection."""
from rebuilder.analyzers.theme import ThemeInfo, analyze_theme_content, extract_theme, to_css_hex

MAIN = """
void main() => runApp(const App());

class App extends StatelessWidget {
  Widget build(BuildContext context) {
    return MaterialApp(
      theme: ThemeData(colorScheme: ColorScheme.fromSeed(seedColor: const Color(0xFF2196F3))),
    );
  }
}
"""

APP_THEME = """
class AppColors {
  static const Color primary = Color(0xFF0F766E);
  static const Color surface = Color(0xFFF8FAFC);
}

class AppTheme {
  static ThemeData get light => ThemeData(fontFamily: 'Inter');
}
"""


class TestExtractTheme:
    def test_theme_files_and_signals(self, make_tree):
        root = make_tree({
            "main.dart": MAIN,
            "theme/app_theme.dart": APP_THEME,
            "models/user.dart": "class User { final int id; }\n",
        })

        theme = extract_theme(root)

        assert theme.theme_files == ["theme/app_theme.dart"]
        assert theme.has_custom_theme is True
        assert theme.use_material is True
        assert theme.use_cupertino is False
        assert theme.font_family == "Inter"
        assert theme.colors == {"primary": "#0F766E", "surface": "#F8FAFC"}
        # seedColor in main.dart is read first and kept
        assert theme.primary_color == "#2196F3"
        assert theme.to_dict()["themeFiles"] == ["theme/app_theme.dart"]

    def test_named_primary_colour_is_a_fallback(self, make_tree):
        root = make_tree({"core/theme_data.dart": APP_THEME})
        theme = extract_theme(root)
        assert theme.theme_files == ["core/theme_data.dart"]
        assert theme.primary_color == "#0F766E"

    def test_project_without_theme(self, make_tree):
        root = make_tree({"models/user.dart": "class User { final int id; }\n"})
        theme = extract_theme(root)
        assert theme.has_custom_theme is False
        assert theme.primary_color is None
        assert theme.colors == {}


def test_cupertino_detection():
    theme = ThemeInfo()
    analyze_theme_content("CupertinoApp(theme: CupertinoThemeData(primaryColor: Color(0x336699)))", theme)
    assert theme.use_cupertino is True
    assert theme.use_material is False
    assert theme.primary_color == "#336699"


def test_to_css_hex_drops_alpha():
    assert to_css_hex("ff6366f1") == "#6366F1"
    assert to_css_hex("6366F1") == "#6366F1"
