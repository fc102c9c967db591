"""CLI behaviour tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from gdassist.cli import _build_parser, main

HUD_RESPONSE = "File: res://ui/Hud.gd\n```gdscript\nextends Control\n```\n"
LEGACY_SCENE = '[gd_scene format=2]\n\n[node name="Enemy" type="KinematicBody2D"]\n'


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "apply"])
    assert args.verbose is True
    assert args.command == "apply"
    assert args.response == "-"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["extract", "--verbose", "--variant", "fast"])
    assert args.verbose is True
    assert args.variant == "fast"


def test_cli_rejects_unknown_variant() -> None:
    parser = _build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["extract", "--variant", "regex"])


def test_apply_writes_into_project(tmp_path: Path, capsys) -> None:
    response = tmp_path / "reply.md"
    response.write_text(HUD_RESPONSE, encoding="utf-8")
    project = tmp_path / "game"
    project.mkdir()

    main(["apply", str(response), "--project", str(project)])

    out = capsys.readouterr().out
    assert "Successfully created res://ui/Hud.gd" in out
    assert "Code applied successfully." in out
    assert (project / "ui" / "Hud.gd").read_text(encoding="utf-8") == "extends Control\n"


def test_apply_dry_run_leaves_project_untouched(tmp_path: Path, capsys) -> None:
    response = tmp_path / "reply.md"
    response.write_text(HUD_RESPONSE, encoding="utf-8")
    project = tmp_path / "game"
    project.mkdir()

    main(["apply", str(response), "--project", str(project), "--dry-run"])

    out = capsys.readouterr().out
    assert out.rstrip().endswith("(dry-run)")
    assert not (project / "ui").exists()


def test_apply_fast_exits_non_zero_on_invalid_scene(tmp_path: Path, capsys) -> None:
    response = tmp_path / "reply.md"
    response.write_text(f"File: res://Enemy.tscn\n```tscn\n{LEGACY_SCENE}```\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["apply", str(response), "--project", str(tmp_path), "--fast"])

    assert excinfo.value.code == 1
    assert "Error: res://Enemy.tscn" in capsys.readouterr().out
    assert not (tmp_path / "Enemy.tscn").exists()


def test_apply_reports_missing_response_file(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["apply", str(tmp_path / "missing.md"), "--project", str(tmp_path)])

    assert excinfo.value.code == 1


def test_extract_lists_blocks(tmp_path: Path, capsys) -> None:
    response = tmp_path / "reply.md"
    response.write_text(HUD_RESPONSE, encoding="utf-8")

    main(["extract", str(response)])

    assert capsys.readouterr().out == "res://ui/Hud.gd\tscript\tgdscript\t1 lines\n"


def test_upgrade_prints_upgraded_scene(tmp_path: Path, capsys) -> None:
    scene = tmp_path / "Enemy.tscn"
    scene.write_text(LEGACY_SCENE, encoding="utf-8")

    main(["upgrade", str(scene), "--seed", "7"])
    first = capsys.readouterr().out
    main(["upgrade", str(scene), "--seed", "7"])
    second = capsys.readouterr().out

    assert "format=3" in first
    assert 'type="CharacterBody2D"' in first
    assert first == second
    assert scene.read_text(encoding="utf-8") == LEGACY_SCENE


def test_upgrade_in_place(tmp_path: Path, capsys) -> None:
    scene = tmp_path / "Enemy.tscn"
    scene.write_text(LEGACY_SCENE, encoding="utf-8")

    main(["upgrade", str(scene), "--in-place"])

    assert "Upgraded" in capsys.readouterr().out
    assert "format=3" in scene.read_text(encoding="utf-8")


def test_chat_prints_model_reply(tmp_path: Path, capsys, monkeypatch) -> None:
    requests = []

    def fake_http_runner(request):
        requests.append(request)
        return "Use an AnimationPlayer."

    monkeypatch.setattr("gdassist.llm.runner.ChatRunner._http_runner", staticmethod(fake_http_runner))
    attachment = tmp_path / "Player.gd"
    attachment.write_text("extends CharacterBody2D\n", encoding="utf-8")

    main(["chat", "How do I animate?", "--project", str(tmp_path), "--attach", str(attachment)])

    assert capsys.readouterr().out.strip() == "Use an AnimationPlayer."
    assert "Attached file:" in requests[0].messages[-1]["content"]


def test_chat_composer_applies_reply(tmp_path: Path, capsys, monkeypatch) -> None:
    monkeypatch.setattr(
        "gdassist.llm.runner.ChatRunner._http_runner",
        staticmethod(lambda request: HUD_RESPONSE),
    )

    main(["chat", "Make a HUD", "--mode", "composer", "--project", str(tmp_path)])

    out = capsys.readouterr().out
    assert "Successfully created res://ui/Hud.gd" in out
    assert (tmp_path / "ui" / "Hud.gd").exists()


def test_chat_failure_exits_with_message(tmp_path: Path, capsys, monkeypatch) -> None:
    def failing(request):
        raise RuntimeError("Chat request failed: connection refused")

    monkeypatch.setattr("gdassist.llm.runner.ChatRunner._http_runner", staticmethod(failing))

    with pytest.raises(SystemExit) as excinfo:
        main(["chat", "hello", "--project", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "gdassist chat failed: Chat request failed" in capsys.readouterr().err
