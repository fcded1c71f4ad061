from typing import Any, Iterable, Iterator, List, NamedTuple, Optional, overload

from utils import sign


class Action(NamedTuple):
    # Applying `gen`, or its inverse if `inverted` is set.
    gen: str
    inverted: bool = False

    def __invert__(self) -> "Action":
        return Action(self.gen, not self.inverted)

    def __repr__(self) -> str:
        return self.gen + ("'" if self.inverted else "")


class Word:
    # Words are never reduced: g * g' stays a word of length two.
    # Relation tracing in the coset table depends on that.

    def __init__(self, actions: Iterable[Any] = ()):
        self.word: List[Action] = [Action(gen, bool(inv)) for gen, inv in actions]

    def identity(self) -> "Word":
        return Word()

    def add(self, gen: str, inverted: bool = False):
        self.word.append(Action(gen, inverted))

    def __imul__(self, other: Iterable[Action]):
        self.word.extend(other)
        return self

    def __mul__(self, other: Iterable[Action]) -> "Word":
        res = self.copy()
        res *= other
        return res

    def __pow__(self, n: int) -> "Word":
        if n == 0:
            return self.identity()
        elif n < 0:
            return ~(self**-n)
        else:
            half_power = self ** (n // 2)
            if n % 2 == 0:
                return half_power * half_power
            else:
                return half_power * half_power * self

    def __invert__(self) -> "Word":
        return Word(~action for action in self.word[::-1])

    def __iter__(self) -> Iterator[Action]:
        return iter(self.word)

    def __len__(self) -> int:
        return len(self.word)

    @overload
    def __getitem__(self, i: int) -> Action: ...
    @overload
    def __getitem__(self, i: slice) -> "Word": ...
    def __getitem__(self, i: int | slice) -> "Action | Word":
        if isinstance(i, slice):
            return Word(self.word[i])
        return self.word[i]

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Word):
            return self.word == other.word
        if isinstance(other, (list, tuple)):
            return self.word == [tuple(a) for a in other]
        return False

    def __hash__(self) -> int:
        return hash(tuple(self.word))

    def copy(self) -> "Word":
        return Word(self.word)

    def __repr__(self) -> str:
        if self.is_identity():
            return "identity"
        # Runs of the same signed generator are shown as a power.
        parts: List[str] = []
        run_gen: Optional[str] = None
        run_pow = 0
        for gen, inverted in self.word:
            step = -1 if inverted else 1
            if gen == run_gen and sign(run_pow) == step:
                run_pow += step
                continue
            if run_gen is not None:
                parts.append(run_gen + ("^" + str(run_pow) if run_pow != 1 else ""))
            run_gen, run_pow = gen, step
        assert run_gen is not None
        parts.append(run_gen + ("^" + str(run_pow) if run_pow != 1 else ""))
        return "".join(parts)

    def is_identity(self) -> bool:
        return not self.word

    def length(self) -> int:
        return len(self.word)

    def generators(self) -> List[str]:
        # In order of first appearance.
        seen: List[str] = []
        for gen, _inverted in self.word:
            if gen not in seen:
                seen.append(gen)
        return seen

    def last_action(self) -> Optional[Action]:
        if self.is_identity():
            return None
        return self.word[-1]


def exponentiate(base: Iterable[Any], exponent: int) -> Word:
    if not isinstance(base, Word):
        base = Word(base)
    return base**exponent
