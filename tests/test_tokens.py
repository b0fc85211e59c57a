from __future__ import annotations

import pytest
from jinja2.sandbox import SecurityError

from description_setter.tokens import ExpansionError, TokenExpander, expand_template

from conftest import make_ctx


def test_build_number_token() -> None:
    ctx = make_ctx(None, build_number=42)
    assert TokenExpander().expand(ctx, "Build #${BUILD_NUMBER}") == "Build #42"


def test_job_name_environment_and_variables() -> None:
    ctx = make_ctx(None, variables={"BRANCH": "main"})
    out = TokenExpander().expand(ctx, "${JOB_NAME} on ${BRANCH} (${env.HOME})")
    assert out == "demo-job on main (/home/ci)"


def test_extra_values_are_available() -> None:
    ctx = make_ctx(None)
    assert TokenExpander({"OWNER": "ci-team"}).expand(ctx, "by ${OWNER}") == "by ci-team"


def test_text_without_markers_is_unchanged() -> None:
    text = "<p>{% not a tag %} {# nor a comment #} $HOME</p>\n"
    assert expand_template(text, {}) == text


def test_braces_survive_next_to_tokens() -> None:
    out = expand_template("{% raw %} ${N} {{ x }}\n", {"N": 3})
    assert out == "{% raw %} 3 {{ x }}\n"


def test_trailing_newline_is_kept() -> None:
    assert expand_template("${N}\n", {"N": 1}) == "1\n"


def test_unknown_token_fails() -> None:
    with pytest.raises(ExpansionError):
        expand_template("${MISSING}", {})


def test_malformed_marker_fails() -> None:
    with pytest.raises(ExpansionError):
        expand_template("Build ${BUILD_NUMBER", {"BUILD_NUMBER": "1"})


def test_callable_token_is_evaluated_lazily() -> None:
    def boom() -> str:
        raise RuntimeError("evaluator broke")

    values = {"REV": lambda: "abc123", "BROKEN": boom}
    assert expand_template("rev ${REV}", values) == "rev abc123"
    with pytest.raises(ExpansionError, match="evaluator broke"):
        expand_template("rev ${BROKEN}", values)


def test_python_internals_are_not_reachable() -> None:
    template = "${ cycler.__init__.__globals__.os.popen('echo hacked').read() }"
    with pytest.raises(ExpansionError):
        expand_template(template, {})


def test_unsafe_attribute_on_a_token_value_fails() -> None:
    with pytest.raises(ExpansionError, match="Unsafe") as excinfo:
        expand_template("${ NAME.__class__.__mro__ }", {"NAME": "job"})
    assert isinstance(excinfo.value.__cause__, SecurityError)


def test_no_template_globals_are_exposed() -> None:
    for name in ("range", "dict", "lipsum", "cycler", "joiner", "namespace"):
        with pytest.raises(ExpansionError):
            expand_template("${ %s }" % name, {})


@pytest.mark.parametrize("newline", ["\r\n", "\r", "\n"])
def test_line_endings_are_preserved(newline: str) -> None:
    template = f"line1 ${{BUILD_NUMBER}}{newline}line2{newline}"
    assert expand_template(template, {"BUILD_NUMBER": "42"}) == f"line1 42{newline}line2{newline}"


def test_interrupt_is_not_wrapped() -> None:
    def abort() -> str:
        raise KeyboardInterrupt

    with pytest.raises(KeyboardInterrupt):
        expand_template("${STOP}", {"STOP": abort})
