"""
Tests for slug and ticket code generation.
"""

import re

import pytest

from community_events.services.identifiers import generate_ticket_code, slugify

TICKET_PATTERN = re.compile(r"^PV-[A-Z0-9-]{1,3}-[0-9A-Z]{6}$")


@pytest.mark.parametrize(
    "title, expected",
    [
        ("Pride Walk 2024!!", "pride-walk-2024"),
        ("  Queer Film Night  ", "queer-film-night"),
        ("Art & Craft -- Workshop", "art-craft-workshop"),
        ("---Already-Slugged---", "already-slugged"),
        ("Café Meetup", "caf-meetup"),
    ],
)
def test_slugify(title, expected):
    assert slugify(title) == expected


def test_slugify_without_alphanumerics_is_empty():
    assert slugify("!!! ???") == ""


def test_ticket_code_uses_event_prefix():
    code = generate_ticket_code("pride-walk-2024")
    assert code.startswith("PV-PRI-")
    assert TICKET_PATTERN.match(code)


def test_ticket_code_falls_back_without_event():
    assert generate_ticket_code(None).startswith("PV-EVT-")
    assert generate_ticket_code("").startswith("PV-EVT-")


def test_ticket_code_short_slug_keeps_what_it_has():
    assert generate_ticket_code("ab").startswith("PV-AB-")


def test_ticket_codes_vary():
    codes = {generate_ticket_code("pride-walk") for _ in range(50)}
    assert len(codes) > 1
