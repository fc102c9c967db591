"""Tests for the shared data models and uid generation."""

from __future__ import annotations

import pytest

from gdassist.models import (
    ConversationTurn,
    DependencyEntry,
    DependencyTable,
    EntryKind,
    MaterializationReport,
    WriteOutcome,
)
from gdassist.uid import UID_LENGTH, UID_SCHEME, UidGenerator


def test_table_overwrites_in_place_and_iterates_a_snapshot() -> None:
    table = DependencyTable()
    table.add(DependencyEntry(path="res://a.gd", kind=EntryKind.SCRIPT))
    table.add(DependencyEntry(path="res://b.tscn", kind=EntryKind.SCENE))
    table.add(DependencyEntry(path="res://a.gd", content="extends Node\n", kind=EntryKind.SCRIPT))

    assert table.paths() == ["res://a.gd", "res://b.tscn"]
    assert table["res://a.gd"].content == "extends Node\n"

    for path in table:
        table.add_if_absent(DependencyEntry(path=path + ".import"))
    assert len(table) == 4
    assert not table.add_if_absent(DependencyEntry(path="res://a.gd"))
    assert table.get("res://missing.gd") is None


def test_materialized_flag_only_moves_forward() -> None:
    entry = DependencyEntry(path="res://a.gd")

    entry.mark_materialized()
    entry.mark_materialized()

    assert entry.materialized is True


def test_report_descriptions() -> None:
    assert MaterializationReport("res://a.gd", WriteOutcome.UPDATED).describe() == "Successfully updated res://a.gd"
    error = MaterializationReport("res://a.gd", WriteOutcome.ERROR, "disk full")
    assert error.describe() == "Error: res://a.gd: disk full"
    assert not error.ok


def test_conversation_turn_validates_role() -> None:
    assert ConversationTurn("user", "hi").as_message() == {"role": "user", "content": "hi"}
    with pytest.raises(ValueError):
        ConversationTurn("system", "nope")


def test_seeded_uids_are_reproducible() -> None:
    first = UidGenerator.seeded(11)
    second = UidGenerator.seeded(11)

    uids = [first.generate() for _ in range(3)]

    assert uids == [second.generate() for _ in range(3)]
    assert len(set(uids)) == 3
    for uid in uids:
        assert uid.startswith(UID_SCHEME)
        assert len(uid) == len(UID_SCHEME) + UID_LENGTH
        assert uid[len(UID_SCHEME):].isalnum()
