from semchange.analysis.changes import ChangeKind, Severity
from semchange.analysis.side_effects import analyze_function_calls, analyze_side_effects
from semchange.config.models import AnalyzerConfig


class TestSideEffects:
    def test_given_new_console_call_when_analyzed_then_high(self, run_analyzer) -> None:
        # Given
        base = "function f() {\n  return 1;\n}\n"
        head = "function f() {\n  console.log('hit');\n  return 1;\n}\n"

        # When
        changes = run_analyzer(analyze_side_effects, base, head)

        # Then
        assert len(changes) == 1
        assert changes[0].kind == ChangeKind.FUNCTION_CALL_ADDED
        assert changes[0].severity == Severity.HIGH
        assert changes[0].detail == "Side effect call added: console.log"
        assert (changes[0].line, changes[0].column) == (2, 3)

    def test_call_shifted_within_two_lines_is_same_site(self, run_analyzer) -> None:
        base = "fetch('/a');\n"
        head = "\n\nfetch('/a');\n"

        assert run_analyzer(analyze_side_effects, base, head) == []

    def test_call_shifted_three_lines_is_new(self, run_analyzer) -> None:
        base = "fetch('/a');\n"
        head = "\n\n\nfetch('/a');\n"

        assert len(run_analyzer(analyze_side_effects, base, head)) == 1

    def test_reflowed_block_above_pushes_unchanged_call_out_of_range(self, run_analyzer) -> None:
        # Given
        base = "if (a) { b(); }\nfetch('/a');\n"
        head = "if (a) {\n  b();\n}\n\nfetch('/a');\n"

        # When
        changes = run_analyzer(analyze_side_effects, base, head)

        # Then
        assert [(c.detail, c.line) for c in changes] == [("Side effect call added: fetch", 5)]

    def test_unlisted_callee_ignored(self, run_analyzer) -> None:
        assert run_analyzer(analyze_side_effects, "", "compute(1);\n") == []

    def test_custom_callee_globs(self, run_analyzer) -> None:
        config = AnalyzerConfig(side_effect_callees=["audit.record"])

        changes = run_analyzer(
            analyze_side_effects, "", "audit.record(e);\nconsole.log(e);\n", config=config
        )

        assert [c.detail for c in changes] == ["Side effect call added: audit.record"]


class TestFunctionCalls:
    def test_given_swapped_arguments_when_analyzed_then_modified(self, run_analyzer) -> None:
        # Given
        base = "render(a, b);\n"
        head = "render(b, a);\n"

        # When
        changes = run_analyzer(analyze_function_calls, base, head)

        # Then
        assert len(changes) == 1
        assert changes[0].kind == ChangeKind.FUNCTION_CALL_MODIFIED
        assert changes[0].severity == Severity.MEDIUM
        assert changes[0].detail == "Call to render arguments changed: [a, b] -> [b, a]"
        assert changes[0].ast_node == "CallExpression"

    def test_empty_argument_list_is_named(self, run_analyzer) -> None:
        changes = run_analyzer(analyze_function_calls, "init();\n", "init(true);\n")

        assert [c.detail for c in changes] == ["Call to init arguments changed: [empty] -> [true]"]

    def test_hooks_and_renamed_callees_ignored(self, run_analyzer) -> None:
        base = "useEffect(run, [a]);\nsave(a);\n"
        head = "useEffect(run, [b]);\nstore(b);\n"

        assert run_analyzer(analyze_function_calls, base, head) == []

    def test_reformatted_arguments_are_silent(self, run_analyzer) -> None:
        base = "send({ id: 1, name: 'x' });\n"
        head = "send({id:1,name:'x'}); // same payload\n"

        assert run_analyzer(analyze_function_calls, base, head) == []
