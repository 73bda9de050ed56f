from __future__ import annotations

import json
from typing import Any, Iterable, Optional, Sequence, Union

from docx_stream.documents.elements import TYPE_TO_ELEMENT_CLASS_MAP, Element
from docx_stream.utils import exactly_one

ElementTypeSpec = Union[type[Element], str]


def elements_to_dicts(elements: Iterable[Element]) -> list[dict[str, Any]]:
    """Convert document elements to element-dicts."""
    return [e.to_dict() for e in elements]


def elements_to_json(
    elements: Iterable[Element],
    filename: Optional[str] = None,
    indent: int = 4,
    encoding: str = "utf-8",
) -> Optional[str]:
    """Saves a list of elements to a JSON file if filename is specified.

    Otherwise, return the list of elements as a string. Image bytes are base64-encoded and
    timestamps are ISO-8601 strings.
    """
    # -- serialize `elements` as a JSON array (str) --
    json_str = json.dumps(elements_to_dicts(elements), indent=indent, sort_keys=True)

    if filename is not None:
        with open(filename, "w", encoding=encoding) as f:
            f.write(json_str)
        return None

    return json_str


def filter_element_types(
    elements: Iterable[Element],
    include_element_types: Optional[Sequence[ElementTypeSpec]] = None,
    exclude_element_types: Optional[Sequence[ElementTypeSpec]] = None,
) -> list[Element]:
    """Filters document elements by element type.

    A type is given either as an element class (`Table`) or as its category (`"table"`). An
    unknown category raises `ValueError`.
    """
    exactly_one(
        include_element_types=include_element_types,
        exclude_element_types=exclude_element_types,
    )

    if include_element_types:
        include_classes = _element_classes(include_element_types)
        return [e for e in elements if type(e) in include_classes]

    if exclude_element_types:
        exclude_classes = _element_classes(exclude_element_types)
        return [e for e in elements if type(e) not in exclude_classes]

    return list(elements)


def _element_classes(element_types: Sequence[ElementTypeSpec]) -> set[type[Element]]:
    classes: set[type[Element]] = set()
    for t in element_types:
        if not isinstance(t, str):
            classes.add(t)
        elif t in TYPE_TO_ELEMENT_CLASS_MAP:
            classes.add(TYPE_TO_ELEMENT_CLASS_MAP[t])
        else:
            raise ValueError(f"unknown element type {repr(t)}")
    return classes
