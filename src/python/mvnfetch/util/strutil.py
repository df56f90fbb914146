# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

from __future__ import annotations

import re
import textwrap
from typing import Iterable


def pluralize(count: int, item_type: str, include_count: bool = True) -> str:
    """Pluralizes the item_type if the count does not equal one.

    For example `pluralize(1, 'artifact')` returns '1 artifact',
    while `pluralize(0, 'artifact') returns '0 artifacts'.

    When `include_count=False` does not add the count in front of the pluralized `item_type`.
    """

    def pluralize_string(x: str) -> str:
        if x.endswith("s"):
            return x + "es"
        elif x.endswith("y"):
            return x[:-1] + "ies"
        else:
            return x + "s"

    pluralized_item = item_type if count == 1 else pluralize_string(item_type)
    if not include_count:
        return pluralized_item
    return f"{count} {pluralized_item}"


def bullet_list(elements: Iterable[str], max_elements: int = -1) -> str:
    """Format a bullet list with padding.

    Callers should normally use `\n\n` before and (if relevant) after this so that the bullets
    appear as a distinct section.

    The `max_elements` may be used to limit the number of bullet rows to output, and instead leave a
    last bullet item with "* ... and N more".
    """
    elements = tuple(elements)
    if not elements:
        return ""

    if max_elements > 0 and len(elements) > max_elements:
        elements = elements[: max_elements - 1] + (
            f"... and {len(elements)-max_elements+1} more",
        )

    sep = "\n  * "
    return f"  * {sep.join(elements)}"


_super_space_re = re.compile(r"(\S)  +(\S)")
_more_than_2_newlines = re.compile(r"\n{2}\n+")


def softwrap(text: str) -> str:
    """Turns a multiline-ish string into a softwrapped string.

    Dedents the text, squashes runs of spaces inside sentences, and joins single newlines into
    spaces while preserving paragraph breaks (double newlines).
    """
    if not text:
        return text
    if text[0] == "\n":
        text = text[1:]

    text = textwrap.dedent(text).strip()
    text = _more_than_2_newlines.sub("\n\n", text)
    paragraphs = [" ".join(line.strip() for line in p.splitlines()) for p in text.split("\n\n")]
    return "\n\n".join(_super_space_re.sub(r"\1 \2", p) for p in paragraphs)
