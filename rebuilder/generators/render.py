"""Simple string templates for the regenerated Flutter project (Jinja2-free)."""
from typing import Dict, List

import yaml

from rebuilder.builders.utils import to_snake_case

DEFAULT_DESCRIPTION = "A Flutter web app rebuilt from an existing project"
WELCOME_TEXT = "Welcome to your rebuilt Flutter app!"


def render_dependencies(state_approach: str, module_ids: List[str]) -> Dict[str, str]:
    deps = {
        "go_router": "^14.0.0",
        "equatable": "^2.0.5",
        "json_annotation": "^4.9.0",
    }
    if state_approach == "riverpod":
        deps["flutter_riverpod"] = "^2.4.0"
        deps["riverpod_annotation"] = "^2.3.0"
    elif state_approach == "bloc":
        deps["flutter_bloc"] = "^8.1.3"
        deps["bloc"] = "^8.1.2"
    if "drift" in module_ids:
        deps["drift"] = "^2.14.0"
        deps["sqlite3_flutter_libs"] = "^0.5.0"
        deps["sqlite3"] = "^2.4.0"
        deps["path_provider"] = "^2.1.1"
        deps["path"] = "^1.8.3"
    return deps


def render_pubspec(name: str, description: str, state_approach: str, module_ids: List[str]) -> str:
    """Generate pubspec.yaml content."""
    dev_dependencies = {
        "flutter_test": {"sdk": "flutter"},
        "flutter_lints": "^3.0.0",
        "json_serializable": "^6.8.0",
        "build_runner": "^2.4.6",
    }
    if "drift" in module_ids:
        dev_dependencies["drift_dev"] = "^2.14.0"

    pubspec = {
        "name": to_snake_case(name).replace("-", "_"),
        "description": description or DEFAULT_DESCRIPTION,
        "publish_to": "none",
        "version": "1.0.0+1",
        "environment": {"sdk": ">=3.0.0 <4.0.0"},
        "dependencies": {
            "flutter": {"sdk": "flutter"},
            **render_dependencies(state_approach, module_ids),
        },
        "dev_dependencies": dev_dependencies,
        "flutter": {
            "uses-material-design": True,
            "assets": ["assets/images/", "assets/fonts/"],
        },
    }
    return yaml.safe_dump(pubspec, sort_keys=False, default_flow_style=False)


def render_analysis_options() -> str:
    """Generate analysis_options.yaml content."""
    return """include: package:flutter_lints/flutter.yaml

linter:
  rules:
    - prefer_const_constructors
    - prefer_const_literals_to_create_immutables
    - prefer_final_fields
    - avoid_print
    - prefer_single_quotes
"""


def render_readme(
    name: str,
    description: str,
    architecture: str,
    state_approach: str,
    module_ids: List[str],
    warnings: List[str],
) -> str:
    """Generate README.md content."""
    offline = "Yes (Drift + WASM + OPFS)" if "drift" in module_ids else "No"
    modules = "\n".join(f"- {m}" for m in module_ids) or "- None"
    warning_lines = "\n".join(f"- {w}" for w in warnings) or "- None"
    return f"""# {name}

{description or DEFAULT_DESCRIPTION}

## Architecture

- **Pattern**: {architecture}
- **State Management**: {state_approach}
- **Offline Support**: {offline}

## Getting Started

1. Install dependencies:
   ```bash
   flutter pub get
   ```

2. Run the app:
   ```bash
   flutter run -d chrome
   ```

## Modules Installed

{modules}

## Warnings

{warning_lines}
"""


def render_main_dart(app_name: str, state_approach: str, has_database: bool) -> str:
    """Generate lib/main.dart content."""
    use_riverpod = state_approach == "riverpod"
    imports = ["import 'package:flutter/material.dart';"]
    if use_riverpod:
        imports.append("import 'package:flutter_riverpod/flutter_riverpod.dart';")
    if has_database:
        imports.append("import 'database/app_database.dart';")

    app = "const MyApp()"
    if use_riverpod:
        app = "const ProviderScope(child: MyApp())"

    lines = imports + ["", ""]
    if has_database:
        lines += [
            "late final AppDatabase database;",
            "",
            "void main() {",
            "  WidgetsFlutterBinding.ensureInitialized();",
            "  database = AppDatabase();",
            f"  runApp({app});",
            "}",
        ]
    else:
        lines += [
            "void main() {",
            f"  runApp({app});",
            "}",
        ]

    base = "ConsumerWidget" if use_riverpod else "StatelessWidget"
    ref_param = ", WidgetRef ref" if use_riverpod else ""
    lines += [
        "",
        f"class MyApp extends {base} {{",
        "  const MyApp({super.key});",
        "",
        "  @override",
        f"  Widget build(BuildContext context{ref_param}) {{",
        "    return MaterialApp(",
        f"      title: '{app_name}',",
        "      theme: ThemeData(",
        "        colorScheme: ColorScheme.fromSeed(seedColor: Colors.deepPurple),",
        "        useMaterial3: true,",
        "      ),",
        "      home: const HomePage(),",
        "    );",
        "  }",
        "}",
        "",
        "class HomePage extends StatelessWidget {",
        "  const HomePage({super.key});",
        "",
        "  @override",
        "  Widget build(BuildContext context) {",
        "    return Scaffold(",
        f"      appBar: AppBar(title: const Text('{app_name}')),",
        f"      body: const Center(child: Text('{WELCOME_TEXT}')),",
        "    );",
        "  }",
        "}",
        "",
    ]
    return "\n".join(lines)


def render_app_theme(primary_color: str) -> str:
    """Generate lib/theme/app_theme.dart content."""
    hex_value = primary_color.lstrip("#").upper()
    return f"""import 'package:flutter/material.dart';

class AppTheme {{
  static const Color seed = Color(0xFF{hex_value});

  static ThemeData get lightTheme => ThemeData(
    colorScheme: ColorScheme.fromSeed(seedColor: seed),
    useMaterial3: true,
  );

  static ThemeData get darkTheme => ThemeData(
    colorScheme: ColorScheme.fromSeed(seedColor: seed, brightness: Brightness.dark),
    useMaterial3: true,
  );
}}
"""


def render_design_tokens(primary_color: str) -> str:
    hex_value = primary_color.lstrip("#").upper()
    return f"""import 'package:flutter/material.dart';

class DesignTokens {{
  static const Color primary = Color(0xFF{hex_value});
  static const Color surface = Color(0xFFFFFFFF);
  static const double blur = 12;
  static const double opacity = 0.18;
}}
"""


def render_gradients() -> str:
    return """import 'package:flutter/material.dart';

import 'design_tokens.dart';

class AppGradients {
  static const LinearGradient primary = LinearGradient(
    colors: [DesignTokens.primary, Color(0xFF8B5CF6)],
    begin: Alignment.topLeft,
    end: Alignment.bottomRight,
  );
}
"""


def render_glass_components() -> str:
    return """import 'dart:ui';

import 'package:flutter/material.dart';

import 'design_tokens.dart';

class GlassCard extends StatelessWidget {
  const GlassCard({super.key, required this.child});

  final Widget child;

  @override
  Widget build(BuildContext context) {
    return ClipRRect(
      borderRadius: BorderRadius.circular(16),
      child: BackdropFilter(
        filter: ImageFilter.blur(sigmaX: DesignTokens.blur, sigmaY: DesignTokens.blur),
        child: Container(
          color: DesignTokens.surface.withOpacity(DesignTokens.opacity),
          child: child,
        ),
      ),
    );
  }
}
"""


THEME_RENDERERS = {
    "app_theme.dart": render_app_theme,
    "design_tokens.dart": render_design_tokens,
    "gradients.dart": lambda _color: render_gradients(),
    "glass_components.dart": lambda _color: render_glass_components(),
}


def render_riverpod_providers(name: str) -> str:
    return f"""import 'package:flutter_riverpod/flutter_riverpod.dart';

// Application state for {name}
final appStateProvider = StateProvider.autoDispose<Map<String, dynamic>>((ref) => {{}});
"""


def render_bloc_providers(name: str) -> str:
    return f"""import 'package:bloc/bloc.dart';

// Application state for {name}
sealed class AppEvent {{}}

class LoadData extends AppEvent {{}}

class AppBloc extends Bloc<AppEvent, Map<String, dynamic>> {{
  AppBloc() : super(const {{}}) {{
    on<LoadData>((event, emit) => emit(state));
  }}
}}
"""


def render_entity_placeholder(name: str, source_path: str, fields: List[Dict[str, str]]) -> str:
    lines = [
        f"// Migrated from {source_path}",
        f"class {name} {{",
    ]
    for f in fields:
        lines.append(f"  final {f['type']} {f['name']};")
    if fields:
        params = ", ".join(
            f"{'required ' if not f['type'].endswith('?') else ''}this.{f['name']}" for f in fields
        )
        lines += ["", f"  const {name}({{{params}}});"]
    lines += ["}", ""]
    return "\n".join(lines)


def render_screen_placeholder(name: str, source_path: str) -> str:
    return f"""import 'package:flutter/material.dart';

// Regenerated from {source_path}
class {name} extends StatelessWidget {{
  const {name}({{super.key}});

  @override
  Widget build(BuildContext context) {{
    return Scaffold(
      appBar: AppBar(title: const Text('{name}')),
      body: const Center(child: Text('{name}')),
    );
  }}
}}
"""


def render_widget_test(package_name: str, state_approach: str) -> str:
    """Generate test/widget_test.dart content."""
    app = "const ProviderScope(child: MyApp())" if state_approach == "riverpod" else "const MyApp()"
    riverpod_import = (
        "import 'package:flutter_riverpod/flutter_riverpod.dart';\n"
        if state_approach == "riverpod" else ""
    )
    return f"""import 'package:flutter_test/flutter_test.dart';
{riverpod_import}import 'package:{package_name}/main.dart';

void main() {{
  testWidgets('App smoke test', (WidgetTester tester) async {{
    await tester.pumpWidget({app});
    expect(find.text('{WELCOME_TEXT}'), findsOneWidget);
  }});
}}
"""
