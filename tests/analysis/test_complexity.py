from semchange.analysis.changes import ChangeKind
from semchange.analysis.complexity import analyze_complexity


def _branches(n: int) -> str:
    return "".join(f"if (x{i}) {{ go(); }}\n" for i in range(n))


def test_increase_above_threshold_is_reported(run_analyzer) -> None:
    changes = run_analyzer(analyze_complexity, "go();\n", _branches(6))

    assert len(changes) == 1
    change = changes[0]
    assert change.kind == ChangeKind.COMPLEXITY_INCREASED
    assert change.detail == "Overall complexity increased significantly (+6)"
    assert (change.line, change.column) == (1, 1)
    assert change.ast_node == "SourceFile"


def test_increase_of_five_is_silent(run_analyzer) -> None:
    assert run_analyzer(analyze_complexity, "go();\n", _branches(5)) == []


def test_decrease_is_silent(run_analyzer) -> None:
    assert run_analyzer(analyze_complexity, _branches(10), "go();\n") == []
