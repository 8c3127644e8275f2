"""
L1 Domain — Template rendering (pure).

Recipes write URLs, checksums and action arguments in the familiar
``{{ ... }}`` action syntax::

    https://x/{{.Name}}-{{.Version}}-{{ .OS | lower }}.tar.gz
    {{ replace "amd64" "x86_64" .Arch }}
    {{ get "Distro" }}

Supported:
    - ``.Key`` lookups (missing keys render empty)
    - function calls ``lower s``, ``upper s``, ``replace old new s``,
      ``get key``
    - pipelines ``a | f x`` (the piped value becomes the LAST argument)
    - ``"double"`` and ```raw``` string literals
    - ``{{- ... -}}`` whitespace trimming and ``{{/* comments */}}``

Anything else (control structures, unknown functions, wrong arity,
unterminated actions) raises ``TemplateError``.  No I/O.
"""

from __future__ import annotations

import re
from typing import Callable, Mapping

from sth.core.errors import TemplateError

_OPEN = "{{"

_TOKEN_RE = re.compile(
    r"""
      (?P<close_trim>\s+-\}\})
    | (?P<close>\}\})
    | (?P<ws>\s+)
    | (?P<string>"(?:[^"\\\n]|\\.)*")
    | (?P<raw>`[^`]*`)
    | (?P<field>\.[A-Za-z_][A-Za-z0-9_]*|\.)
    | (?P<pipe>\|)
    | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    """,
    re.VERBOSE,
)

_COMMENT_RE = re.compile(r"/\*.*?\*/(?P<trim>\s+-)?\}\}", re.DOTALL)

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\"}


def _unquote(literal: str) -> str:
    body = literal[1:-1]
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), body)


def _functions(ctx: Mapping[str, str]) -> dict[str, tuple[int, Callable[..., str]]]:
    """Function table: name → (arity, implementation)."""
    return {
        "lower": (1, lambda s: s.lower()),
        "upper": (1, lambda s: s.upper()),
        "replace": (3, lambda old, new, s: s.replace(old, new)),
        "get": (1, lambda key: _lookup(ctx, key)),
    }


def _lookup(ctx: Mapping[str, object], key: str) -> str:
    value = ctx.get(key)
    return "" if value is None else str(value)


# ── Lexing ──────────────────────────────────────────────────────


def _lex_action(template: str, pos: int) -> tuple[list[tuple[str, str]], int, bool]:
    """Tokenize one action body starting at ``pos`` (just past ``{{``).

    Returns:
        ``(tokens, end, trim_right)`` where ``end`` is the index just
        past the closing ``}}``.
    """
    tokens: list[tuple[str, str]] = []
    while pos < len(template):
        m = _TOKEN_RE.match(template, pos)
        if m is None:
            snippet = template[pos:pos + 10]
            raise TemplateError(f"unexpected {snippet!r} in action")
        kind = m.lastgroup or ""
        pos = m.end()
        if kind == "close_trim":
            return tokens, pos, True
        if kind == "close":
            return tokens, pos, False
        if kind != "ws":
            tokens.append((kind, m.group()))
    raise TemplateError("unclosed action")


def _parse(template: str) -> list[str | list[tuple[str, str]]]:
    """Split a template into literal text and token lists."""
    nodes: list[str | list[tuple[str, str]]] = []
    pos = 0
    trim_next = False
    while True:
        start = template.find(_OPEN, pos)
        text = template[pos:] if start < 0 else template[pos:start]
        if trim_next:
            text = text.lstrip()
        if start < 0:
            if text:
                nodes.append(text)
            return nodes

        body = start + len(_OPEN)
        if template.startswith("-", body) and body + 1 < len(template) and template[body + 1].isspace():
            text = text.rstrip()
            body += 1
        if text:
            nodes.append(text)

        stripped = len(template[body:]) - len(template[body:].lstrip())
        if template.startswith("/*", body + stripped):
            m = _COMMENT_RE.match(template, body + stripped)
            if m is None:
                raise TemplateError("unclosed comment")
            pos, trim_next = m.end(), bool(m.group("trim"))
            continue

        tokens, pos, trim_next = _lex_action(template, body)
        nodes.append(tokens)


# ── Evaluation ──────────────────────────────────────────────────


def _operand(kind: str, value: str, ctx: Mapping[str, str]) -> str:
    if kind == "string":
        return _unquote(value)
    if kind == "raw":
        return value[1:-1]
    if kind == "field":
        return _lookup(ctx, value[1:]) if len(value) > 1 else ""
    raise TemplateError(f"unexpected {value!r} as argument")


def _eval_pipeline(tokens: list[tuple[str, str]], ctx: Mapping[str, str]) -> str:
    if not tokens:
        raise TemplateError("missing value for command")

    commands: list[list[tuple[str, str]]] = [[]]
    for tok in tokens:
        if tok[0] == "pipe":
            commands.append([])
        else:
            commands[-1].append(tok)
    if any(not cmd for cmd in commands):
        raise TemplateError("missing command in pipeline")

    funcs = _functions(ctx)
    piped: str | None = None
    for cmd in commands:
        head_kind, head = cmd[0]
        if head_kind == "ident":
            if head not in funcs:
                raise TemplateError(f"function {head!r} not defined")
            arity, fn = funcs[head]
            args = [_operand(k, v, ctx) for k, v in cmd[1:]]
            if piped is not None:
                args.append(piped)
            if len(args) != arity:
                raise TemplateError(
                    f"wrong number of args for {head}: want {arity} got {len(args)}"
                )
            piped = fn(*args)
        else:
            if len(cmd) > 1 or piped is not None:
                raise TemplateError(f"can't give argument to non-function {head}")
            piped = _operand(head_kind, head, ctx)
    return piped or ""


def render(template: str, context: Mapping[str, str]) -> str:
    """Render ``template`` against ``context``.

    Empty or whitespace-only templates render to ``""``.  The result
    is stripped of leading/trailing whitespace.

    Raises:
        TemplateError: On malformed template syntax.
    """
    if not template or not template.strip():
        return ""
    out: list[str] = []
    for node in _parse(template):
        if isinstance(node, str):
            out.append(node)
        else:
            out.append(_eval_pipeline(node, context))
    return "".join(out).strip()
