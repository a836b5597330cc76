"""
Ordered command-line argument lists.

`Arguments` is a list of tokens with flag-aware helpers: a flag is the part of a
token before ``=``, so ``--size=1g`` and ``--size`` name the same flag when
replacing or removing. Anything with an ``apply_to_args`` method is an
`Argument` and can append itself.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Protocol, runtime_checkable


@runtime_checkable
class Argument(Protocol):
    def apply_to_args(self, args: "Arguments") -> None: ...


def _flag_of(token: str) -> str:
    return token.partition("=")[0]


class Arguments:
    """
    Ordered command line tokens built up by successive `Argument` applications.

    Valued flags are rendered as single ``--flag=value`` tokens so that
    `add_or_replace` can drop every earlier occurrence of the same flag before
    appending, letting later, more specific options override defaults.
    """

    def __init__(self, tokens: Iterable[str] = ()) -> None:
        self._tokens: List[str] = list(tokens)

    def add(self, *tokens: str) -> None:
        self._tokens.extend(tokens)

    def add_or_replace(self, token: str) -> None:
        self.remove(_flag_of(token))
        self._tokens.append(token)

    def remove(self, flag: str) -> None:
        self._tokens = [t for t in self._tokens if _flag_of(t) != flag]

    def raw(self) -> List[str]:
        return list(self._tokens)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._tokens))

    def __len__(self) -> int:
        return len(self._tokens)

    def __contains__(self, token: object) -> bool:
        return token in self._tokens

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Arguments):
            return self._tokens == other._tokens
        if isinstance(other, list):
            return self._tokens == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"Arguments({self._tokens!r})"
