"""
Unit tests for the PromptGenerator facade.
"""
from pathlib import Path

import pytest

from promptgen.builder import TTS_DIRECTIVE
from promptgen.generator import PromptGenerator
from promptgen.schema import PromptSpec


PERSONA = """\
persona: "You are Kai."
tts_friendly: no
facts:
  - "Kai likes tea."
stop:
  - "END"
few_shots:
  - user: "hey"
    assistant: "hi!"
"""


@pytest.fixture
def persona_file(tmp_path):
    """Write a persona file to a temporary directory."""
    path = tmp_path / "Memory.yaml"
    path.write_text(PERSONA, encoding="utf-8")
    return path


def test_new_generator_is_empty():
    """Test the default state of a new generator."""
    generator = PromptGenerator()

    assert generator.spec == PromptSpec()
    assert generator.loaded is False
    assert generator.build_system_prompt() == TTS_DIRECTIVE


def test_load_from_yaml(persona_file):
    """Test loading and rendering a persona file."""
    generator = PromptGenerator()

    assert generator.load_from_yaml(persona_file) is True
    assert generator.loaded is True
    assert generator.build_system_prompt() == "You are Kai.\n=== Memory Context ===\n1) Kai likes tea."

    messages = generator.build_messages(["user"], ["how are you?"])
    assert [m.role for m in messages] == ["system", "user", "assistant", "user"]


def test_load_failure_resets_spec(persona_file, tmp_path):
    """Test that a failed load leaves the spec at defaults."""
    generator = PromptGenerator()
    generator.load_from_yaml(persona_file)

    assert generator.load_from_yaml(tmp_path / "nope.yaml") is False
    assert generator.loaded is False
    assert generator.spec == PromptSpec()


def test_repeated_loads_do_not_accumulate(persona_file):
    """Test that loading twice yields the same spec, not doubled lists."""
    generator = PromptGenerator()
    generator.load_from_yaml(persona_file)
    first = generator.spec

    generator.load_from_yaml(persona_file)

    assert generator.spec == first
    assert generator.spec.facts == ["Kai likes tea."]
    assert len(generator.spec.few_shots) == 1


def test_parse_yaml_replaces_spec():
    """Test that parsing new text fully replaces the previous spec."""
    generator = PromptGenerator()
    generator.parse_yaml(PERSONA)

    assert generator.parse_yaml("style: brisk") is True
    assert generator.spec.persona == ""
    assert generator.spec.facts == []
    assert generator.spec.style == "brisk"


def test_maybe_attach_stop():
    """Test stop attachment through the facade."""
    generator = PromptGenerator()
    generator.parse_yaml(PERSONA)

    assert generator.attach_stop() == ["END"]
    assert generator.maybe_attach_stop({}) == {"stop": ["END"]}

    generator.parse_yaml("persona: P")
    assert generator.maybe_attach_stop({}) == {}


def test_generator_from_existing_spec():
    """Test wrapping an already-built spec."""
    generator = PromptGenerator(PromptSpec(persona="P", tts_friendly=False))

    assert generator.loaded is True
    assert generator.build_system_prompt() == "P"


def test_bundled_sample_persona():
    """Test that the sample persona shipped with the repo loads cleanly."""
    sample = Path(__file__).resolve().parents[3] / "Persona" / "Memory.yaml"
    generator = PromptGenerator()

    assert generator.load_from_yaml(sample) is True
    assert generator.spec.persona.startswith("You are Mei")
    assert len(generator.spec.facts) == 3
    assert generator.attach_stop() == ["User:"]
    assert len(generator.spec.few_shots) == 2
