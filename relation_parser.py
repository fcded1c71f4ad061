"""
Parsing of relation words and group presentations.

A relation is written with single-letter generators, exponents and
parentheses:

    r^4         r r r r
    rbr'b       r b r^-1 b
    (ab)^-2c    b' a' b' a' c
    g^-3^-1     chained exponents multiply, so this is g^3

`parse_relation` turns such text into a canonical `Word`: a flat list of
signed generator applications with no exponents or parentheses left.
"""

import re
from typing import List, Optional, Tuple

from word import Word, exponentiate

_TOKEN_RE = re.compile(
    r"(?P<space>\s+)"
    r"|(?P<gen>[A-Za-z])"
    r"|(?P<prime>')"
    r"|(?P<exp>\^[+-]?\d+)"
    r"|(?P<paren>[()])"
    r"|(?P<bad>.)",
    re.DOTALL,
)

_IDENTITY = "1"


class RelationSyntaxError(ValueError):
    def __init__(self, message: str, text: str, position: Optional[int] = None):
        self.text = text
        self.position = position
        where = "" if position is None else f" at position {position}"
        super().__init__(f"Syntax error: {message}{where} in {text!r}")


def tokenize(text: str) -> List[str]:
    # Exponents are folded into the token they apply to, so the result only
    # holds generators and parentheses, each possibly followed by exponents.
    # A prime is spelled out as ^-1.
    tokens: List[str] = []
    previous: Optional[str] = None
    for match in _TOKEN_RE.finditer(text):
        kind = match.lastgroup
        value = match.group()
        if kind == "space":
            continue
        if kind == "bad":
            raise RelationSyntaxError(
                f"bad token {value!r}", text, position=match.start()
            )
        if kind in ("prime", "exp"):
            if previous is None:
                raise RelationSyntaxError(
                    "expression begins with exponent", text, position=match.start()
                )
            if previous == "(":
                raise RelationSyntaxError(
                    "exponent follows open parenthesis", text, position=match.start()
                )
            tokens[-1] += "^-1" if kind == "prime" else value
        else:
            tokens.append(value)
        previous = value
    return tokens


def split_exponent(token: str) -> Tuple[str, int]:
    base, *exponents = token.split("^")
    exponent = 1
    for exp in exponents:
        exponent *= int(exp)
    return base, exponent


def parse_relation(text: str) -> Word:
    # The innermost open parenthesis is always on top of the stack.
    stack: List[Word] = [Word()]
    for token in tokenize(text):
        base, exponent = split_exponent(token)
        if base == "(":
            stack.append(Word())
        elif base == ")":
            if len(stack) == 1:
                raise RelationSyntaxError("mismatched parentheses", text)
            parenthetical = stack.pop()
            stack[-1] *= exponentiate(parenthetical, exponent)
        else:
            stack[-1] *= exponentiate([(base, False)], exponent)

    if len(stack) > 1:
        raise RelationSyntaxError("unclosed parenthesis", text)
    return stack[0]


def _relator(text: str, presentation: str) -> str:
    # `lhs = rhs` becomes the relator lhs (rhs)^-1.
    sides = [side.strip() for side in text.split("=")]
    if len(sides) > 2:
        raise RelationSyntaxError(f"chained equation {text!r}", presentation)
    if any(not side for side in sides):
        raise RelationSyntaxError(f"empty side in {text!r}", presentation)
    sides = ["" if side == _IDENTITY else side for side in sides]
    if len(sides) == 1 or not sides[1]:
        return sides[0]
    if not sides[0]:
        return f"({sides[1]})^-1"
    return f"{sides[0]}({sides[1]})^-1"


def parse_presentation(text: str) -> Tuple[List[str], List[str]]:
    """
    Splits a presentation such as `<a, b | a^2, b^3, (ab)^5>` into its
    generators and relation strings. Relations may also be given as
    equations, `<r, b | r^4 = 1, r^2 = b^2, b r b' = r'>`.

    The relations are returned as text; they are parsed when the group is
    constructed.
    """
    body = text.strip()
    if not (body.startswith("<") and body.endswith(">")):
        raise RelationSyntaxError("presentation must be enclosed in < >", text)
    body = body[1:-1]

    gens_part, bar, rels_part = body.partition("|")
    if "|" in rels_part:
        raise RelationSyntaxError("more than one '|'", text)

    generators = [gen.strip() for gen in gens_part.split(",")]
    if generators == [""]:
        raise RelationSyntaxError("presentation has no generators", text)
    for gen in generators:
        if not re.fullmatch(r"[A-Za-z]", gen):
            raise RelationSyntaxError(f"bad generator {gen!r}", text)

    relations: List[str] = []
    if bar:
        for rel in rels_part.split(","):
            rel = rel.strip()
            if not rel:
                continue
            relations.append(_relator(rel, text))

    return generators, relations
