# Copyright 2026 Pants project contributors (see CONTRIBUTORS.md).
# Licensed under the Apache License, Version 2.0 (see LICENSE).

from mvnfetch.util.strutil import bullet_list, pluralize, softwrap


def test_pluralize() -> None:
    assert "1 artifact" == pluralize(1, "artifact")
    assert "2 artifacts" == pluralize(2, "artifact")
    assert "0 artifacts" == pluralize(0, "artifact")
    assert "2 classes" == pluralize(2, "class")
    assert "1 dependency" == pluralize(1, "dependency")
    assert "2 dependencies" == pluralize(2, "dependency")
    assert "dependencies" == pluralize(3, "dependency", include_count=False)


def test_bullet_list() -> None:
    assert bullet_list(["a", "b", "c"]) == (
        """\
  * a
  * b
  * c"""
    )
    assert bullet_list(["a"]) == "  * a"
    assert bullet_list([]) == ""


def test_bullet_list_max_elements() -> None:
    assert bullet_list(list("abcdefg"), 3) == (
        """\
  * a
  * b
  * ... and 5 more"""
    )


def test_softwrap_multiline() -> None:
    assert softwrap("Cannot resolve org.x:core:1.0.") == "Cannot resolve org.x:core:1.0."
    assert (
        softwrap(
            """
            Cannot have a dependency depth higher than 0 and an
            output file name.

            Every artifact
            would be written to the same file.
            """
        )
        == (
            "Cannot have a dependency depth higher than 0 and an output file name."
            + "\n\n"
            + "Every artifact would be written to the same file."
        )
    )
