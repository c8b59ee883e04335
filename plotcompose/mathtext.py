"""Typed math-expression content.

Expressions are trees of five node kinds. They are measured and drawn by a
text shaper, which supplies per-string metrics; this module only decides
where each glyph run goes relative to the expression's baseline.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Callable, Union

from plotcompose.errors import ContentRenderError


SCRIPT_SCALE = 0.7
SUPERSCRIPT_RISE = 0.45
SUBSCRIPT_DROP = 0.25

SYMBOLS = {
    "alpha": "α",
    "beta": "β",
    "gamma": "γ",
    "delta": "δ",
    "epsilon": "ε",
    "zeta": "ζ",
    "eta": "η",
    "theta": "θ",
    "kappa": "κ",
    "lambda": "λ",
    "mu": "μ",
    "nu": "ν",
    "xi": "ξ",
    "pi": "π",
    "rho": "ρ",
    "sigma": "σ",
    "tau": "τ",
    "phi": "φ",
    "chi": "χ",
    "psi": "ψ",
    "omega": "ω",
    "Gamma": "Γ",
    "Delta": "Δ",
    "Theta": "Θ",
    "Lambda": "Λ",
    "Pi": "Π",
    "Sigma": "Σ",
    "Phi": "Φ",
    "Psi": "Ψ",
    "Omega": "Ω",
    "infinity": "∞",
    "degree": "°",
    "partialdiff": "∂",
    "nabla": "∇",
    "cdot": "·",
    "times": "×",
    "pm": "±",
}

# Glyph and spacing per operator; `*` is juxtaposition.
OPERATORS = {
    "*": ("", ""),
    "~": (" ", ""),
    ",": (",", " "),
    "==": ("=", " "),
    "!=": ("≠", " "),
    "<=": ("≤", " "),
    ">=": ("≥", " "),
    "%~~%": ("≈", " "),
    "%+-%": ("±", " "),
    "%*%": ("×", " "),
    "<": ("<", " "),
    ">": (">", " "),
    "+": ("+", " "),
    "-": ("−", " "),
    "/": ("/", ""),
}


@dataclass(frozen=True)
class Literal:
    text: str


@dataclass(frozen=True)
class Symbol:
    name: str

    @property
    def glyph(self) -> str:
        try:
            return SYMBOLS[self.name]
        except KeyError:
            raise ContentRenderError(f"unknown math symbol: {self.name!r}") from None


@dataclass(frozen=True)
class Superscript:
    base: "MathNode"
    exponent: "MathNode"


@dataclass(frozen=True)
class Subscript:
    base: "MathNode"
    index: "MathNode"


@dataclass(frozen=True)
class Operator:
    op: str
    left: "MathNode"
    right: "MathNode"

    def __post_init__(self) -> None:
        if self.op not in OPERATORS:
            raise ContentRenderError(f"unknown math operator: {self.op!r}")


MathNode = Union[Literal, Symbol, Superscript, Subscript, Operator]
MATH_NODE_TYPES = (Literal, Symbol, Superscript, Subscript, Operator)


def is_math(content: object) -> bool:
    return isinstance(content, MATH_NODE_TYPES)


def is_blank(node: MathNode) -> bool:
    if isinstance(node, Literal):
        return not node.text.strip()
    if isinstance(node, Symbol):
        return False
    if isinstance(node, Superscript):
        return is_blank(node.base) and is_blank(node.exponent)
    if isinstance(node, Subscript):
        return is_blank(node.base) and is_blank(node.index)
    return is_blank(node.left) and is_blank(node.right) and not OPERATORS[node.op][0].strip()


def to_plain_text(node: MathNode) -> str:
    if isinstance(node, Literal):
        return node.text
    if isinstance(node, Symbol):
        return node.glyph
    if isinstance(node, Superscript):
        return f"{to_plain_text(node.base)}^{to_plain_text(node.exponent)}"
    if isinstance(node, Subscript):
        return f"{to_plain_text(node.base)}_{to_plain_text(node.index)}"
    glyph, pad = OPERATORS[node.op]
    lead = "" if node.op == "," else pad
    return f"{to_plain_text(node.left)}{lead}{glyph}{pad}{to_plain_text(node.right)}"


# -- layout -----------------------------------------------------------------

StringMetrics = Callable[[str, float], tuple[float, float, float]]


@dataclass(frozen=True)
class GlyphRun:
    text: str
    x: float
    dy: float
    size: float


@dataclass(frozen=True)
class ExpressionLayout:
    width: float
    ascent: float
    descent: float
    runs: tuple[GlyphRun, ...]

    @property
    def height(self) -> float:
        return self.ascent + self.descent

    def shifted(self, dx: float, dy: float = 0.0) -> "ExpressionLayout":
        runs = tuple(GlyphRun(r.text, r.x + dx, r.dy + dy, r.size) for r in self.runs)
        return ExpressionLayout(self.width, self.ascent, self.descent, runs)


def layout_expression(node: MathNode, size: float, metrics: StringMetrics) -> ExpressionLayout:
    """Lay out `node` at font `size`; `metrics(text, size)` returns (advance, ascent, descent).

    Run offsets are relative to the expression origin: x to the right, dy
    downward from the baseline.
    """
    if isinstance(node, (Literal, Symbol)):
        text = node.text if isinstance(node, Literal) else node.glyph
        return _text_layout(text, size, metrics)
    if isinstance(node, Superscript):
        base = layout_expression(node.base, size, metrics)
        script = layout_expression(node.exponent, size * SCRIPT_SCALE, metrics)
        rise = max(base.ascent * SUPERSCRIPT_RISE, size * SUPERSCRIPT_RISE)
        return _attach_script(base, script, -rise)
    if isinstance(node, Subscript):
        base = layout_expression(node.base, size, metrics)
        script = layout_expression(node.index, size * SCRIPT_SCALE, metrics)
        return _attach_script(base, script, size * SUBSCRIPT_DROP)
    if isinstance(node, Operator):
        glyph, pad = OPERATORS[node.op]
        lead = "" if node.op == "," else pad
        parts = [layout_expression(node.left, size, metrics)]
        if glyph or pad:
            parts.append(_text_layout(f"{lead}{glyph}{pad}", size, metrics))
        parts.append(layout_expression(node.right, size, metrics))
        return _concat(parts)
    raise ContentRenderError(f"unsupported math node: {type(node).__name__}")


def _text_layout(text: str, size: float, metrics: StringMetrics) -> ExpressionLayout:
    advance, ascent, descent = metrics(text, size)
    return ExpressionLayout(advance, ascent, descent, (GlyphRun(text, 0.0, 0.0, size),))


def _attach_script(base: ExpressionLayout, script: ExpressionLayout, dy: float) -> ExpressionLayout:
    moved = script.shifted(base.width, dy)
    return ExpressionLayout(
        width=base.width + script.width,
        ascent=max(base.ascent, script.ascent - dy),
        descent=max(base.descent, script.descent + dy),
        runs=base.runs + moved.runs,
    )


def _concat(parts: list[ExpressionLayout]) -> ExpressionLayout:
    x = 0.0
    runs: list[GlyphRun] = []
    for part in parts:
        runs.extend(part.shifted(x).runs)
        x += part.width
    return ExpressionLayout(
        width=x,
        ascent=max(p.ascent for p in parts),
        descent=max(p.descent for p in parts),
        runs=tuple(runs),
    )


# -- parsing ----------------------------------------------------------------

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
    |(?P<number>\d+(?:\.\d*)?(?:[eE][-+]?\d+)?|\.\d+(?:[eE][-+]?\d+)?)
    |(?P<name>[A-Za-z_][A-Za-z0-9_.]*)
    |(?P<string>"[^"]*"|'[^']*')
    |(?P<op>%~~%|%\+-%|%\*%|==|!=|<=|>=|[-+*/<>,~])
    |(?P<punct>[\^\[\](){}])
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class _Token:
    kind: str
    text: str
    pos: int


def _tokenize(source: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    while pos < len(source):
        match = _TOKEN_RE.match(source, pos)
        if match is None:
            raise ContentRenderError(f"unexpected character {source[pos]!r} at position {pos}")
        kind = match.lastgroup or ""
        if kind != "ws":
            tokens.append(_Token(kind, match.group(), pos))
        pos = match.end()
    return tokens


class _Parser:
    def __init__(self, source: str) -> None:
        self._source = source
        self._tokens = _tokenize(source)
        self._i = 0

    def parse(self) -> MathNode:
        if not self._tokens:
            raise ContentRenderError("empty math expression")
        node = self._expression()
        if self._i < len(self._tokens):
            tok = self._tokens[self._i]
            raise ContentRenderError(f"unexpected {tok.text!r} at position {tok.pos}")
        return node

    def _peek(self) -> _Token | None:
        return self._tokens[self._i] if self._i < len(self._tokens) else None

    def _take(self, text: str | None = None) -> _Token:
        tok = self._peek()
        if tok is None:
            raise ContentRenderError(f"unexpected end of expression {self._source!r}")
        if text is not None and tok.text != text:
            raise ContentRenderError(f"expected {text!r} at position {tok.pos}, got {tok.text!r}")
        self._i += 1
        return tok

    def _expression(self) -> MathNode:
        node = self._power()
        while (tok := self._peek()) is not None and tok.kind == "op":
            self._i += 1
            node = Operator(tok.text, node, self._power())
        return node

    def _power(self) -> MathNode:
        # right-associative: a^b^c is a^(b^c)
        node = self._postfix()
        tok = self._peek()
        if tok is not None and tok.text == "^":
            self._i += 1
            return Superscript(node, self._power())
        return node

    def _postfix(self) -> MathNode:
        node = self._atom()
        while (tok := self._peek()) is not None and tok.text == "[":
            self._i += 1
            node = Subscript(node, self._expression())
            self._take("]")
        return node

    def _atom(self) -> MathNode:
        tok = self._take()
        if tok.kind == "number":
            return Literal(tok.text)
        if tok.kind == "string":
            return Literal(tok.text[1:-1])
        if tok.kind == "name":
            return Symbol(tok.text) if tok.text in SYMBOLS else Literal(tok.text)
        if tok.text == "-":
            return Operator("*", Literal("−"), self._power())
        if tok.text == "{":
            inner = self._expression()
            self._take("}")
            return inner
        if tok.text == "(":
            inner = self._expression()
            self._take(")")
            return Operator("*", Operator("*", Literal("("), inner), Literal(")"))
        raise ContentRenderError(f"unexpected {tok.text!r} at position {tok.pos}")


def parse_expression(source: str) -> MathNode:
    """Parse plotmath-style source such as ``R^2 == 0.87`` or ``x[i] + alpha``."""
    return _Parser(source).parse()
