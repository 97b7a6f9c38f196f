"""Tests for the aggregator and the policy layer."""

import pytest

from semchange.analysis.changes import (
    CHANGE_KIND_GROUPS,
    ChangeKind,
    ChangeKindGroup,
    SemanticChange,
    Severity,
    group_of,
)
from semchange.analysis.detector import (
    ANALYZERS,
    apply_policy,
    change_requires_tests,
    deduplicate,
    detect,
    detect_with_config,
    requires_tests,
)
from semchange.analysis.scoping import DiffHunk
from semchange.config.models import (
    AnalyzerConfig,
    ChangeKindGroupsConfig,
    JsxConfig,
    TestRequirementsConfig,
)

SAMPLE_BASE = """\
import { api } from './api';

export interface Order {
  id: string;
}

export function total(items: number[]): number {
  let sum = 0;
  for (const item of items) {
    if (item > 0) { sum += item; }
  }
  return sum;
}
"""

SAMPLE_HEAD = """\
import { api, audit } from './api';
import { z } from 'zod';

export interface Order {
  id: string;
  note?: string;
}

export async function total(items: number[], tax: number): Promise<number> {
  let sum = 0;
  for (const item of items) {
    if (item >= 0) { sum += item; }
  }
  try { audit(sum); } catch (e) { throw new Error('audit failed'); }
  return sum * tax;
}
"""


def make_change(
    kind: ChangeKind, severity: Severity = Severity.LOW, line: int = 1
) -> SemanticChange:
    return SemanticChange(
        kind=kind, severity=severity, line=line, column=1, detail=f"{kind} at {line}", ast_node="X"
    )


@pytest.fixture
def pair(make_context):
    def _pair(base: str, head: str, path: str = "example.ts", config=None):
        return make_context(base, path, config), make_context(head, path, config)

    return _pair


class TestScenarios:
    def test_added_parameter_is_one_signature_change(self, pair) -> None:
        base, head = pair(
            "function add(a: number, b: number) {}\n",
            "function add(a: number, b: number, c: number) {}\n",
        )

        changes = detect(base, head)

        assert [(c.kind, c.severity) for c in changes] == [
            (ChangeKind.FUNCTION_SIGNATURE_CHANGED, Severity.HIGH),
        ]

    def test_conditional_moved_ten_lines_is_silent(self, pair) -> None:
        base, head = pair("if (a) { x() }\n", "\n" * 10 + "if (a) { x() }\n")

        assert detect(base, head) == []

    def test_loose_to_strict_equality(self, pair) -> None:
        base, head = pair("const r = a == b;\n", "const r = a === b;\n")

        changes = detect(base, head)

        assert [(c.kind, c.severity) for c in changes] == [
            (ChangeKind.COMPARISON_OPERATOR_CHANGED, Severity.MEDIUM),
        ]

    def test_removed_import(self, pair) -> None:
        base, head = pair("import x from 'mod';\n", "")

        changes = detect(base, head)

        assert [(c.kind, c.severity) for c in changes] == [
            (ChangeKind.IMPORT_REMOVED, Severity.MEDIUM),
        ]

    def test_side_effect_module_added(self, pair) -> None:
        config = AnalyzerConfig(side_effect_modules=["mod"])
        base, head = pair("", "import 'mod';\n", config=config)

        changes = detect(base, head, config)

        assert [(c.kind, c.severity) for c in changes] == [
            (ChangeKind.SIDE_EFFECT_IMPORT_ADDED, Severity.HIGH),
        ]


class TestDetectInvariants:
    def test_identical_versions_produce_nothing(self, pair) -> None:
        base, head = pair(SAMPLE_HEAD, SAMPLE_HEAD)

        assert detect(base, head) == []

    def test_formatting_and_comments_are_invisible(self, pair) -> None:
        reformatted = (
            "// header comment\n"
            "if(ready&&ok){go();}\n"
            "for(const x of xs){use(x);}\n"
        )
        original = "if (ready && ok) {\n  go();\n}\nfor (const x of xs) {\n  /* c */ use(x);\n}\n"
        base, head = pair(original, reformatted)

        assert detect(base, head) == []

    def test_given_realistic_edit_when_detected_then_categories_in_order(self, pair) -> None:
        # Given
        base, head = pair(SAMPLE_BASE, SAMPLE_HEAD)

        # When
        changes = detect(base, head)

        # Then
        kinds = [c.kind for c in changes]
        assert ChangeKind.FUNCTION_SIGNATURE_CHANGED in kinds
        assert ChangeKind.ASYNC_AWAIT_ADDED in kinds
        assert ChangeKind.CONDITIONAL_MODIFIED in kinds
        assert ChangeKind.IMPORT_ADDED in kinds
        assert ChangeKind.IMPORT_STRUCTURE_CHANGED in kinds
        assert ChangeKind.INTERFACE_MODIFIED in kinds
        assert ChangeKind.TRY_CATCH_ADDED in kinds
        assert ChangeKind.THROW_ADDED in kinds
        # The guard moved two lines down, so only the conditional analyzer sees it.
        assert ChangeKind.COMPARISON_OPERATOR_CHANGED not in kinds
        assert (
            kinds.index(ChangeKind.CONDITIONAL_MODIFIED)
            < kinds.index(ChangeKind.FUNCTION_SIGNATURE_CHANGED)
            < kinds.index(ChangeKind.IMPORT_ADDED)
            < kinds.index(ChangeKind.TRY_CATCH_ADDED)
        )

    def test_duplicate_conditionals_conserve_counts(self, pair) -> None:
        block = "if (a) { go(); }\n"
        base, head = pair(block * 3, block * 5)

        changes = detect(base, head)

        assert [c.kind for c in changes].count(ChangeKind.CONDITIONAL_ADDED) == 2
        assert ChangeKind.CONDITIONAL_REMOVED not in [c.kind for c in changes]

    def test_renamed_parameters_are_not_a_signature_change(self, pair) -> None:
        base, head = pair(
            "function f(a: string, b?: number): void {}\n",
            "function f(x: string, y?: number): void {}\n",
        )

        assert detect(base, head) == []

    def test_failing_analyzer_is_isolated(self, pair) -> None:
        def broken(base, head, config):
            raise RuntimeError("boom")

        base, head = pair("import x from 'mod';\n", "")
        analyzers = (("broken", broken), *ANALYZERS)

        changes = detect(base, head, analyzers=analyzers)

        assert [c.kind for c in changes] == [ChangeKind.IMPORT_REMOVED]


class TestPolicy:
    def test_disabled_change_kind_dropped(self) -> None:
        config = AnalyzerConfig(disabled_change_kinds=[ChangeKind.LOOP_ADDED])
        changes = [make_change(ChangeKind.LOOP_ADDED), make_change(ChangeKind.LOOP_REMOVED)]

        assert [c.kind for c in apply_policy(changes, config)] == [ChangeKind.LOOP_REMOVED]

    def test_disabled_group_wins_over_enabled(self) -> None:
        config = AnalyzerConfig(
            change_kind_groups=ChangeKindGroupsConfig(
                enabled=[ChangeKindGroup.CONTROL_FLOW, ChangeKindGroup.COMPLEXITY],
                disabled=[ChangeKindGroup.COMPLEXITY],
            )
        )
        changes = [
            make_change(ChangeKind.LOOP_ADDED),
            make_change(ChangeKind.SPREAD_OPERATOR_ADDED),
            make_change(ChangeKind.IMPORT_ADDED),
        ]

        assert [c.kind for c in apply_policy(changes, config)] == [ChangeKind.LOOP_ADDED]

    def test_severity_override(self) -> None:
        config = AnalyzerConfig(severity_overrides={ChangeKind.IMPORT_ADDED: Severity.HIGH})

        result = apply_policy([make_change(ChangeKind.IMPORT_ADDED)], config)

        assert result[0].severity == Severity.HIGH

    def test_jsx_treated_as_low(self) -> None:
        config = AnalyzerConfig(jsx=JsxConfig(treat_as_low_severity=True))

        result = apply_policy(
            [make_change(ChangeKind.COMPONENT_REFERENCE_CHANGED, Severity.MEDIUM)], config
        )

        assert result[0].severity == Severity.LOW

    def test_deduplicate_keeps_first(self) -> None:
        first = make_change(ChangeKind.LOOP_ADDED, Severity.LOW)
        repeat = make_change(ChangeKind.LOOP_ADDED, Severity.HIGH)

        assert deduplicate([first, repeat]) == [first]

    def test_detect_with_config_scopes_to_hunks(self, pair) -> None:
        base, head = pair("let a = 1;\n", "let a = 1;\nlet b = 2;\n\n\n\nlet c = 3;\n")

        hunks = [DiffHunk.from_counts(1, 1, 2, 1)]
        changes = detect_with_config(base, head, AnalyzerConfig(), hunks)

        assert [c.detail for c in changes] == ["Variable added: b"]


class TestTestRequirements:
    @pytest.mark.parametrize(
        ("kind", "severity", "policy", "expected"),
        [
            (ChangeKind.LOOP_ADDED, Severity.HIGH, TestRequirementsConfig(), True),
            (ChangeKind.LOOP_ADDED, Severity.MEDIUM, TestRequirementsConfig(), False),
            (ChangeKind.FUNCTION_SIGNATURE_CHANGED, Severity.LOW, TestRequirementsConfig(), True),
            (
                ChangeKind.THROW_ADDED,
                Severity.HIGH,
                TestRequirementsConfig(never_require_tests=[ChangeKind.THROW_ADDED]),
                False,
            ),
            (
                ChangeKind.LOOP_ADDED,
                Severity.MEDIUM,
                TestRequirementsConfig(minimum_severity_for_tests=Severity.MEDIUM),
                True,
            ),
        ],
    )
    def test_change_requires_tests(self, kind, severity, policy, expected) -> None:
        assert change_requires_tests(kind, severity, policy) is expected

    def test_requires_tests_any(self) -> None:
        config = AnalyzerConfig()

        assert requires_tests([make_change(ChangeKind.LOOP_ADDED, Severity.HIGH)], config)
        assert not requires_tests([make_change(ChangeKind.LOOP_ADDED)], config)
        assert not requires_tests([], config)


def test_every_kind_belongs_to_one_group() -> None:
    for kind in ChangeKind:
        assert group_of(kind) in CHANGE_KIND_GROUPS
    assert sum(len(kinds) for kinds in CHANGE_KIND_GROUPS.values()) == len(ChangeKind)


@pytest.mark.parametrize(
    ("kind", "group"),
    [
        (ChangeKind.ARRAY_MUTATION, ChangeKindGroup.DATA_FLOW),
        (ChangeKind.OBJECT_MUTATION, ChangeKindGroup.DATA_FLOW),
        (ChangeKind.VARIABLE_ASSIGNMENT_CHANGED, ChangeKindGroup.DATA_FLOW),
        (ChangeKind.PROMISE_ADDED, ChangeKindGroup.ASYNC_PATTERNS),
        (ChangeKind.PROMISE_REMOVED, ChangeKindGroup.ASYNC_PATTERNS),
        (ChangeKind.FUNCTION_CALL_CHANGED, ChangeKindGroup.SIDE_EFFECTS),
        (ChangeKind.FUNCTION_CALL_MODIFIED, ChangeKindGroup.SIDE_EFFECTS),
        (ChangeKind.FUNCTION_CALL_REMOVED, ChangeKindGroup.SIDE_EFFECTS),
    ],
)
def test_call_and_mutation_kinds_grouped(kind: ChangeKind, group: ChangeKindGroup) -> None:
    assert group_of(kind) is group


def test_side_effect_group_switch_covers_every_call_kind() -> None:
    config = AnalyzerConfig(
        change_kind_groups=ChangeKindGroupsConfig(disabled=[ChangeKindGroup.SIDE_EFFECTS])
    )
    changes = [
        make_change(ChangeKind.FUNCTION_CALL_CHANGED),
        make_change(ChangeKind.FUNCTION_CALL_REMOVED),
        make_change(ChangeKind.PROMISE_ADDED),
    ]

    assert [c.kind for c in apply_policy(changes, config)] == [ChangeKind.PROMISE_ADDED]


def test_call_and_mutation_analyzers_run_in_report_order(pair) -> None:
    base, head = pair(
        "let n = 0;\nn = 1;\nsend(n);\nfunction f() {\n  return n;\n}\n",
        "let n = 0;\nn = 2;\nsend(n, 1);\nfunction f() {\n  return Promise.resolve(n);\n}\n"
        "n.items.push(1);\nn.ready = true;\n",
    )

    kinds = [c.kind for c in detect(base, head)]

    assert kinds == [
        ChangeKind.ARRAY_MUTATION,
        ChangeKind.FUNCTION_CALL_MODIFIED,
        ChangeKind.OBJECT_MUTATION,
        ChangeKind.PROMISE_ADDED,
        ChangeKind.VARIABLE_ASSIGNMENT_CHANGED,
    ]
