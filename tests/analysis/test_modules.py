"""Tests for import and export analyzers."""

from semchange.analysis.changes import ChangeKind, Severity
from semchange.analysis.modules import analyze_exports, analyze_imports
from semchange.config.models import AnalyzerConfig


class TestImports:
    def test_given_new_import_when_analyzed_then_low_addition(self, run_analyzer) -> None:
        # Given
        base = "import a from 'a';\n"
        head = "import a from 'a';\nimport { b } from 'lib/b';\n"

        # When
        changes = run_analyzer(analyze_imports, base, head)

        # Then
        assert [(c.kind, c.severity, c.detail) for c in changes] == [
            (ChangeKind.IMPORT_ADDED, Severity.LOW, "Import added: lib/b"),
        ]
        assert changes[0].line == 2

    def test_side_effect_module_is_high(self, run_analyzer) -> None:
        config = AnalyzerConfig(side_effect_modules=["./polyfills*"])

        changes = run_analyzer(analyze_imports, "", "import './polyfills/intl';\n", config=config)

        assert [(c.kind, c.severity, c.detail) for c in changes] == [
            (
                ChangeKind.SIDE_EFFECT_IMPORT_ADDED,
                Severity.HIGH,
                "Side-effect import added: ./polyfills/intl",
            ),
        ]

    def test_import_removed_is_medium(self, run_analyzer) -> None:
        changes = run_analyzer(analyze_imports, "import x from 'x';\n", "")

        assert [(c.kind, c.severity, c.detail) for c in changes] == [
            (ChangeKind.IMPORT_REMOVED, Severity.MEDIUM, "Import removed: x"),
        ]

    def test_new_specifiers(self, run_analyzer) -> None:
        changes = run_analyzer(
            analyze_imports,
            "import { a } from 'm';\n",
            "import { a, b, c } from 'm';\n",
        )

        assert [(c.kind, c.detail) for c in changes] == [
            (ChangeKind.IMPORT_STRUCTURE_CHANGED, "Import specifiers added: b, c"),
        ]

    def test_dropped_specifier_is_silent(self, run_analyzer) -> None:
        assert run_analyzer(
            analyze_imports, "import { a, b } from 'm';\n", "import { a } from 'm';\n"
        ) == []


class TestExports:
    def test_export_added(self, run_analyzer) -> None:
        changes = run_analyzer(analyze_exports, "", "export function go() {}\n")

        assert [(c.kind, c.severity, c.detail) for c in changes] == [
            (ChangeKind.EXPORT_ADDED, Severity.MEDIUM, "Export added: go (function)"),
        ]

    def test_given_removed_export_when_analyzed_then_high(self, run_analyzer) -> None:
        # Given
        base = "export const LIMIT = 5;\nexport function go() {}\n"
        head = "export function go() {}\n"

        # When
        changes = run_analyzer(analyze_exports, base, head)

        # Then
        assert [(c.kind, c.severity, c.detail, c.line) for c in changes] == [
            (ChangeKind.EXPORT_REMOVED, Severity.HIGH, "Export removed: LIMIT", 1),
        ]

    def test_export_kind_change_is_high(self, run_analyzer) -> None:
        changes = run_analyzer(
            analyze_exports, "export function Thing() {}\n", "export class Thing {}\n"
        )

        assert [(c.kind, c.severity, c.context) for c in changes] == [
            (ChangeKind.EXPORT_SIGNATURE_CHANGED, Severity.HIGH, "function -> class"),
        ]

    def test_exported_variable_type_change_is_medium(self, run_analyzer) -> None:
        changes = run_analyzer(
            analyze_exports,
            "export const limit: number = 5;\n",
            "export const limit: string = '5';\n",
        )

        assert [(c.severity, c.detail) for c in changes] == [
            (Severity.MEDIUM, "Export signature changed: limit (number -> string)"),
        ]
