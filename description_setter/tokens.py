"""
tokens.py

Responsibility: Expand `${TOKEN}` markers using values bound to a build.

Rules:
- Markers use `${ ... }`; text without markers is returned unchanged.
- Unknown tokens and malformed markers are errors, never silently left in place.
- A token value may be a zero-argument callable; it is evaluated only when the
  token is actually referenced.
- Workspace files are untrusted: rendering is sandboxed and exposes no globals.
- Line endings of the input are preserved.

This module intentionally does NOT know about workspaces or description sinks.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, Mapping

from jinja2 import StrictUndefined
from jinja2.sandbox import SandboxedEnvironment, SecurityError

if TYPE_CHECKING:
    from description_setter.host import BuildContext

logger = logging.getLogger(__name__)

_NEWLINE = re.compile(r"\r\n|\r|\n")


class ExpansionError(RuntimeError):
    pass


class _Lazy:
    """A token evaluator supplied by the build, called on first output."""

    def __init__(self, func: Any) -> None:
        self.func = func


def _evaluate(value: Any) -> Any:
    return value.func() if isinstance(value, _Lazy) else value


def _newline_of(text: str) -> str:
    match = _NEWLINE.search(text)
    return match.group(0) if match else "\n"


def _environment(newline: str) -> SandboxedEnvironment:
    # Block and comment markers are moved under `$` so that plain `{%`/`{#`
    # in description files (HTML, wiki markup) pass through untouched.
    env = SandboxedEnvironment(
        variable_start_string="${",
        variable_end_string="}",
        block_start_string="${%",
        block_end_string="%}",
        comment_start_string="${#",
        comment_end_string="#}",
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        newline_sequence=newline,
        finalize=_evaluate,
    )
    env.globals.clear()
    return env


def expand_template(template: str, values: Mapping[str, Any]) -> str:
    """
    Expand every marker in `template` against `values`.

    Raises ExpansionError for syntax errors, unknown tokens, unsafe attribute
    access, or failing token evaluators. Interrupts are not wrapped.
    """
    if "${" not in template:
        return template
    bound = {key: _Lazy(value) if callable(value) else value for key, value in values.items()}
    try:
        return _environment(_newline_of(template)).from_string(template).render(**bound)
    except SecurityError as e:
        raise ExpansionError(f"Unsafe token expression: {e}") from e
    except Exception as e:  # noqa: BLE001 - surface as ExpansionError
        raise ExpansionError(f"Failed expanding tokens: {e}") from e


class TokenExpander:
    """Token-expansion service bound to the values a build context exposes."""

    def __init__(self, extra: Mapping[str, Any] | None = None) -> None:
        self._extra = dict(extra or {})

    def expand(self, ctx: "BuildContext", template: str) -> str:
        values = {**ctx.token_values(), **self._extra}
        logger.debug("Expanding template for %s #%s", ctx.job_name, ctx.build_number)
        return expand_template(template, values)
