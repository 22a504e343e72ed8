"""Tests for web-safe name sanitization."""

from __future__ import annotations

import re

import pytest

from assetprep.naming.models import SanitizationOptions, SpaceReplacement
from assetprep.naming.sanitizer import sanitize_filename, sanitize_name, split_extension

DEFAULTS = SanitizationOptions()


def test_metadata_removal_matches_worked_example() -> None:
    options = SanitizationOptions(remove_metadata=True)

    result = sanitize_filename("Player's Guide (2nd Edition) [v2].PDF", False, options)

    assert result == "players_guide.pdf"


def test_metadata_is_converted_when_not_removed() -> None:
    result = sanitize_filename("Player's Guide (2nd Edition) [v2].PDF", False, DEFAULTS)

    assert result == "players_guide_-2nd_edition-_-v2.pdf"


def test_expand_ampersand_for_directories() -> None:
    options = SanitizationOptions(expand_ampersand=True)

    assert sanitize_filename("Maps & Tokens", True, options) == "maps_and_tokens"
    assert sanitize_filename("Maps && Tokens", True, options) == "maps_and_tokens"


def test_ampersand_defaults_to_underscore() -> None:
    assert sanitize_filename("Maps & Tokens", True, DEFAULTS) == "maps_tokens"


def test_problem_characters_are_deleted() -> None:
    assert sanitize_filename("Token!.png", False, DEFAULTS) == "token.png"
    assert sanitize_filename("Token?.png", False, DEFAULTS) == "token.png"
    assert sanitize_filename('a*b"c:d;e|f,g=h+i$j.txt', False, DEFAULTS) == "abcdefghij.txt"


@pytest.mark.parametrize(
    ("replacement", "expected"),
    [
        (SpaceReplacement.UNDERSCORE, "my_big_file.txt"),
        (SpaceReplacement.DASH, "my-big-file.txt"),
        (SpaceReplacement.REMOVE, "mybigfile.txt"),
    ],
)
def test_space_replacement_strategies(replacement: SpaceReplacement, expected: str) -> None:
    options = SanitizationOptions(space_replacement=replacement)

    assert sanitize_filename("My  Big\tFile.txt", False, options) == expected


def test_case_options_are_independent() -> None:
    keep_base = SanitizationOptions(preserve_case=True)
    keep_extension = SanitizationOptions(lowercase_extensions=False)

    assert sanitize_filename("My File.TXT", False, keep_base) == "My_File.txt"
    assert sanitize_filename("My File.TXT", False, keep_extension) == "my_file.TXT"


def test_dimension_suffix_removed_with_metadata() -> None:
    options = SanitizationOptions(remove_metadata=True)

    assert sanitize_filename("Banner_1920x1080.png", False, options) == "banner.png"
    assert sanitize_filename("Hero-800x600_2x3.jpg", False, options) == "hero.jpg"
    assert sanitize_filename("Banner_1920x1080.png", False, DEFAULTS) == "banner_1920x1080.png"


def test_nested_groups_removed_innermost_first() -> None:
    options = SanitizationOptions(remove_metadata=True)

    result = sanitize_filename("Film ((Extended) Cut) [HD [1080p]]", True, options)

    assert result == "film"


def test_directories_keep_dots_in_name() -> None:
    assert sanitize_filename("Version 1.2", True, DEFAULTS) == "version_1.2"


def test_separators_are_collapsed_and_trimmed() -> None:
    assert sanitize_filename("__Hello__World--.txt", False, DEFAULTS) == "hello_world.txt"
    assert sanitize_name("a...b", "", DEFAULTS) == "a.b"


def test_empty_result_falls_back_to_unnamed() -> None:
    file_name = sanitize_filename("!!!.png", False, DEFAULTS)
    directory_name = sanitize_filename("###", True, DEFAULTS)

    assert re.fullmatch(r"unnamed_\d{1,4}\.png", file_name)
    assert re.fullmatch(r"unnamed_\d{1,4}", directory_name)


def test_empty_base_name_keeps_extension_on_fallback() -> None:
    assert re.fullmatch(r"unnamed_\d{1,4}\.png", sanitize_name("", ".PNG", DEFAULTS))


def test_dotfile_name_is_treated_as_base_name() -> None:
    assert sanitize_filename(".PNG", False, DEFAULTS) == "png"
    assert sanitize_filename(".gitignore", False, DEFAULTS) == "gitignore"


@pytest.mark.parametrize(
    ("name", "expand", "expected"),
    [
        ("A&!B", False, "a_b"),
        ("A&!B", True, "a_and_b"),
        ("Q &? A", False, "q_a"),
        ("Q &? A", True, "q_and_a"),
        ("&#&", True, "and_and"),
    ],
)
def test_ampersand_next_to_deleted_characters(name: str, expand: bool, expected: str) -> None:
    options = SanitizationOptions(expand_ampersand=expand)

    result = sanitize_filename(name, True, options)

    assert result == expected
    assert sanitize_filename(result, True, options) == result


def test_ampersands_around_deleted_character_fall_back() -> None:
    assert re.fullmatch(r"unnamed_\d{1,4}", sanitize_filename("&#&", True, DEFAULTS))


@pytest.mark.parametrize(
    "name",
    [
        "Player's Guide (2nd Edition) [v2]",
        "Maps & Tokens",
        "a_1x2!",
        "  Spaced   Out  ",
        "Mixed-_-Separators__Here",
        "Café Menu",
        "Film ((Extended) Cut) [HD [1080p]]",
        "x(y)z",
    ],
)
@pytest.mark.parametrize(
    "options",
    [
        DEFAULTS,
        SanitizationOptions(remove_metadata=True),
        SanitizationOptions(expand_ampersand=True, space_replacement=SpaceReplacement.DASH),
        SanitizationOptions(preserve_case=True, space_replacement=SpaceReplacement.REMOVE),
    ],
)
def test_sanitizing_twice_changes_nothing(name: str, options: SanitizationOptions) -> None:
    once = sanitize_filename(name, True, options)

    assert sanitize_filename(once, True, options) == once


def test_exposed_dimension_suffix_is_removed() -> None:
    options = SanitizationOptions(remove_metadata=True)

    assert sanitize_filename("a_1x2!", True, options) == "a"


def test_file_names_are_idempotent_with_extensions() -> None:
    for filename in ["Archive Set.TAR.GZ", "Photo (1).JPG", "notes"]:
        once = sanitize_filename(filename, False, DEFAULTS)
        assert sanitize_filename(once, False, DEFAULTS) == once


def test_sanitize_is_deterministic() -> None:
    results = {sanitize_filename("Some (Odd) Name!.Mp4", False, DEFAULTS) for _ in range(5)}

    assert results == {"some_-odd-_name.mp4"}


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("photo.JPG", ("photo", ".JPG")),
        ("archive.tar.gz", ("archive.tar", ".gz")),
        ("noext", ("noext", "")),
        (".gitignore", (".gitignore", "")),
        ("..weird.txt", ("..weird", ".txt")),
    ],
)
def test_split_extension(filename: str, expected: tuple[str, str]) -> None:
    assert split_extension(filename) == expected
