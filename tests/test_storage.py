"""Tests for storage backends and the materializer."""

from __future__ import annotations

from pathlib import Path

import pytest

from gdassist.materializer import Materializer
from gdassist.models import WriteOutcome
from gdassist.storage import FileSystemStorage, MemoryStorage


def test_filesystem_round_trip_is_byte_exact(tmp_path: Path) -> None:
    storage = FileSystemStorage(tmp_path)
    content = "extends Node\r\n\r\nfunc _ready():\r\n\tpass\r\n"

    storage.make_dirs("res://scripts")
    storage.write("res://scripts/main.gd", content)

    assert storage.exists("scripts/main.gd")
    assert storage.read("res://scripts/main.gd") == content
    assert (tmp_path / "scripts" / "main.gd").read_bytes() == content.encode("utf-8")


def test_filesystem_storage_refuses_paths_outside_the_root(tmp_path: Path) -> None:
    storage = FileSystemStorage(tmp_path / "game")

    with pytest.raises(PermissionError):
        storage.resolve("res://../outside.gd")


def test_filesystem_storage_rebases_absolute_paths(tmp_path: Path) -> None:
    storage = FileSystemStorage(tmp_path)
    target = storage.project_root / "a" / "b.gd"

    assert storage.resolve(str(target)) == target


def test_memory_storage_requires_parent_directories() -> None:
    storage = MemoryStorage()

    with pytest.raises(FileNotFoundError):
        storage.write("res://deep/dir/file.gd", "x")
    with pytest.raises(FileNotFoundError):
        storage.read("res://missing.gd")

    storage.make_dirs("res://deep/dir")
    storage.write("res://deep/dir/file.gd", "x")
    assert storage.exists("res://deep")
    assert storage.read("deep/dir/file.gd") == "x"


def test_materializer_reports_created_then_updated(storage: MemoryStorage) -> None:
    materializer = Materializer(storage)

    first = materializer.write("levels/One.tscn", "[gd_scene format=3]\n")
    second = materializer.write("res://levels/One.tscn", "[gd_scene format=3]\n[node name=\"One\" type=\"Node2D\"]\n")

    assert (first.path, first.outcome) == ("res://levels/One.tscn", WriteOutcome.CREATED)
    assert second.outcome is WriteOutcome.UPDATED
    assert first.describe() == "Successfully created res://levels/One.tscn"
    assert storage.files["res://levels/One.tscn"].endswith('type="Node2D"]\n')


def test_materializer_turns_os_errors_into_reports(tmp_path: Path) -> None:
    materializer = Materializer(FileSystemStorage(tmp_path / "game"))

    report = materializer.write("res://../escape.gd", "extends Node\n")

    assert report.outcome is WriteOutcome.ERROR
    assert not report.ok
    assert report.describe().startswith("Error: res://../escape.gd: ")
    assert not (tmp_path / "escape.gd").exists()
