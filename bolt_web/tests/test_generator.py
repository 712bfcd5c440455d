"""Tests for the canned reply and mock file generator."""
import pytest

from bolt_web.generator import CANNED_RESPONSES, ResponseGenerator, generate, generate_files

MESSAGES = [
    "Build a simple landing page",
    "Create a React todo app",
    'He said "hi"\nand left',
    "<script>alert('x')</script>",
    "100% done {braces} %(message)s",
    "üñíçødé ⚡",
]


@pytest.mark.parametrize("message", MESSAGES)
def test_every_file_embeds_the_message_verbatim(message):
    files = generate_files(message)

    assert files
    for content in files.values():
        assert message in content


@pytest.mark.parametrize("message", ["react", "React", "REACT", "make a ReAcT widget"])
def test_react_keyword_is_case_insensitive(message):
    assert set(generate_files(message)) == {"App.js", "package.json"}


def test_other_messages_get_a_single_html_file():
    files = generate_files("a calculator")

    assert list(files) == ["index.html"]
    assert files["index.html"].startswith("<!DOCTYPE html>")


def test_empty_message_still_produces_a_file():
    files = generate_files("")

    assert list(files) == ["index.html"]


def test_default_generator_picks_a_canned_response():
    generation = generate("Create a React todo app")

    assert generation.response in CANNED_RESPONSES
    assert "App.js" in generation.files


def test_selector_is_injectable():
    seen = []

    def pick_last(responses):
        seen.append(responses)
        return responses[-1]

    generation = ResponseGenerator(pick_last).generate("landing page")

    assert generation.response == CANNED_RESPONSES[-1]
    assert seen == [CANNED_RESPONSES]


def test_generator_requires_responses():
    with pytest.raises(ValueError):
        ResponseGenerator(responses=())
