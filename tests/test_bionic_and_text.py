from reading_companion.reader.bionic import BionicTransformer, split_token, transform
from reading_companion.reader.text import (
    count_words,
    document_key,
    estimate_reading_minutes,
    local_file_path,
    normalize_page_text,
    split_lines,
)


def test_transform_emphasizes_long_words_only():
    # Three-letter words reach min_chars and get ceil(1.5) == 2 emphasized letters.
    assert transform("cat dog elephant", 0.5, 3) == "**ca**t **do**g **elep**hant"


def test_transform_respects_min_chars():
    assert transform("cat dog elephant", 0.5, 4) == "cat dog **elep**hant"
    assert transform("a an the", 0.5, 3) == "a an **th**e"


def test_transform_empty_text():
    assert transform("") == ""
    assert transform("", 0.9, 1) == ""


def test_transform_keeps_newlines_inside_tokens_and_spacing():
    assert transform("reading\nnow  fast") == "**readin**g\nnow  **fa**st"


def test_transform_does_not_clamp_ratio():
    # A ratio above 1 simply emphasizes the whole token.
    assert transform("focus", 2.0) == "**focus**"
    assert transform("focus", 0.0) == "**f**ocus"


def test_split_token_minimum_length():
    assert split_token("abc", 0.5, 3) == ("ab", "c")
    assert split_token("ab", 0.5, 3) == ("", "ab")


def test_bionic_transformer_uses_configured_values():
    bionic = BionicTransformer(bold_ratio=0.25, min_chars=5)
    assert bionic("tiny elephant") == "tiny **el**ephant"


def test_text_helpers():
    raw = "  First   line\n\n\nSecond\tline  "
    assert normalize_page_text(raw) == "First line\nSecond line"
    assert count_words("the quick  brown\nfox") == 4
    assert estimate_reading_minutes("word " * 201) == 2
    assert split_lines("a\n\n b \nc") == ["a", " b ", "c"]


def test_document_key_is_stable_and_uri_aware():
    path_key = document_key("/books/My Novel.pdf")
    assert path_key == document_key("file:///books/My%20Novel.pdf")
    assert path_key.startswith("my-novel-")
    assert path_key != document_key("/other/My Novel.pdf")
    assert local_file_path("content://provider/doc") == "content://provider/doc"
