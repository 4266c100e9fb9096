from __future__ import annotations

import pytest

from parbot.errors import ProfanityFilterNoDatabaseError
from parbot.profanity import WordListProfanityFilter, load_profanity_filter


@pytest.fixture(scope="module")
def default_filter() -> WordListProfanityFilter:
    return load_profanity_filter()


@pytest.mark.parametrize(
    "text",
    ["Fuck off", "you are a SH1T player", "so ein $chei$$e", "Scheiße!", "please piss off now", "b1tch"],
)
def test_default_list_flags_profanity(default_filter, text) -> None:
    assert default_filter.is_profane(text)


@pytest.mark.parametrize(
    "text",
    ["hello there", "Scunthorpe is a town", "class assessment", "piss", "off we go", ""],
)
def test_default_list_passes_clean_text(default_filter, text) -> None:
    assert not default_filter.is_profane(text)


def test_default_list_is_not_empty(default_filter) -> None:
    assert default_filter.size > 10


def test_custom_word_list(tmp_path) -> None:
    path = tmp_path / "words.txt"
    path.write_text("# custom\nnoob\n\ngo away\n", encoding="utf-8")

    profanity_filter = load_profanity_filter(path)

    assert profanity_filter.size == 2
    assert profanity_filter.is_profane("what a N00B")
    assert profanity_filter.is_profane("just go away")
    assert not profanity_filter.is_profane("go on, stay")


def test_missing_word_list_raises(tmp_path) -> None:
    with pytest.raises(ProfanityFilterNoDatabaseError):
        WordListProfanityFilter.from_file(tmp_path / "missing.txt")
