from __future__ import annotations

import functools
import html
import re
from typing import Any, Callable, Generic, Iterator, Sequence, TypeVar, cast

_T = TypeVar("_T")

_DIGITS_RE = re.compile(r"(\d+)")


def exactly_one(**kwargs: Any) -> None:
    """Verify arguments; exactly one of all keyword arguments must not be None.

    Example:
        >>> exactly_one(filename=filename, file=file)
    """
    if sum([(arg is not None and arg != "") for arg in kwargs.values()]) != 1:
        names = list(kwargs.keys())
        if len(names) > 1:
            message = f"Exactly one of {', '.join(names[:-1])} and {names[-1]} must be specified."
        else:
            message = f"{names[0]} must be specified."
        raise ValueError(message)


def htmlify_matrix_of_cell_texts(matrix: Sequence[Sequence[str]]) -> str:
    """Form an HTML table from "rows" and "columns" of `matrix`.

    No whitespace padding, newlines, or `<thead>`/`<tbody>` elements are added. Row-header
    information is not available at this level so every cell is a `<td>`.
    """

    def iter_trs(rows_of_cell_strs: Sequence[Sequence[str]]) -> Iterator[str]:
        for row_cell_strs in rows_of_cell_strs:
            # -- suppress emission of rows with no cells --
            if not row_cell_strs:
                continue
            yield f"<tr>{''.join(iter_tds(row_cell_strs))}</tr>"

    def iter_tds(row_cell_strs: Sequence[str]) -> Iterator[str]:
        for s in row_cell_strs:
            # -- take care of things like '<' and '>' in the text --
            s = html.escape(s)
            # -- substitute <br/> elements for line-feeds in the text --
            s = "<br/>".join(s.split("\n"))
            yield f"<td>{s.strip()}</td>"

    return f"<table>{''.join(iter_trs(matrix))}</table>" if matrix else ""


def natural_sort_key(name: str) -> tuple[Any, ...]:
    """Sort key that orders embedded integers numerically, like "header2.xml" < "header10.xml"."""
    return tuple(
        (0, int(piece), "") if piece.isdigit() else (1, 0, piece.lower())
        for piece in _DIGITS_RE.split(name)
        if piece
    )


class lazyproperty(Generic[_T]):
    """Decorator like @property, but evaluated only on first access.

    The decorated method may only take `self`. Its return value is computed on first access,
    cached in the instance `__dict__` under the method's name, and returned unchanged on every
    later access. Use it to construct collaborator objects (the opened container, the parsed part
    tree) without doing that work in the constructor.

    A lazyproperty is read-only; assigning to it raises `AttributeError`. Note that a `None`
    return value is not cached, so such a method is re-evaluated on each access.
    """

    def __init__(self, fget: Callable[..., _T]) -> None:
        self._fget = fget
        self._name = fget.__name__
        # --- adopt fget's __name__, __doc__, and other attributes
        functools.update_wrapper(self, fget)  # pyright: ignore

    def __get__(self, obj: Any, type: Any = None) -> _T:
        # --- when accessed on class, e.g. Obj.fget, just return this descriptor
        if obj is None:
            return self  # type: ignore

        value = obj.__dict__.get(self._name)
        if value is None:
            value = self._fget(obj)
            obj.__dict__[self._name] = value
        return cast(_T, value)

    def __set__(self, obj: Any, value: Any) -> None:
        """Raises unconditionally, to preserve read-only behavior."""
        raise AttributeError("can't set attribute")
