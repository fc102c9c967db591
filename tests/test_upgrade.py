"""Tests for the Godot 3 to 4 format upgrader."""

from __future__ import annotations

import re

from gdassist.uid import UID_LENGTH, UidGenerator
from gdassist.upgrade import LegacyFormatUpgrader, is_legacy

LEGACY_PLAYER = """[gd_scene load_steps=3 format=2]

[ext_resource path="res://Player" type="Script" id=1]

[sub_resource type="RectangleShape2D" id=2]

[node name="Player" type="KinematicBody2D"]
script = ExtResource( 1 )
transform/pos = Vector2( 10, 20 )

[node name="Sprite" type="Sprite" parent="."]

[node name="Shape" type="CollisionShape2D" parent="."]
shape = SubResource( 2 )
points = PoolVector2Array( 0, 0, 1, 1 )
"""


def test_enemy_scene_is_upgraded_to_format_three() -> None:
    content = '[gd_scene format=2]\n\n[node name="Enemy" type="KinematicBody2D"]\n'
    expected_uid = UidGenerator.seeded(7).generate()

    upgraded = LegacyFormatUpgrader(UidGenerator.seeded(7)).upgrade(content)

    assert upgraded.splitlines()[0] == f'[gd_scene format=3 uid="{expected_uid}"]'
    assert 'type="CharacterBody2D"' in upgraded
    assert re.search(r'uid="uid://[A-Za-z0-9]{%d}"' % UID_LENGTH, upgraded)


def test_legacy_scene_rules_apply_in_order(uid_generator) -> None:
    upgraded = LegacyFormatUpgrader(uid_generator).upgrade(LEGACY_PLAYER)

    assert upgraded.startswith("[gd_scene load_steps=3 format=3 uid=")
    assert '[ext_resource path="res://Player.gd" type="Script" id="1"]' in upgraded
    assert '[sub_resource type="RectangleShape2D" id="2"]' in upgraded
    assert 'script = ExtResource("1")' in upgraded
    assert 'shape = SubResource("2")' in upgraded
    assert "position = Vector2( 10, 20 )" in upgraded
    assert "points = PackedVector2Array( 0, 0, 1, 1 )" in upgraded
    assert '[node name="Player" type="CharacterBody2D"]' in upgraded
    # The node keeps its name; only the type changes.
    assert '[node name="Sprite" type="Sprite2D" parent="."]' in upgraded
    assert 'type="CollisionShape2D"' in upgraded


def test_upgrade_is_idempotent(uid_generator) -> None:
    upgrader = LegacyFormatUpgrader(uid_generator)
    once = upgrader.upgrade(LEGACY_PLAYER)

    assert upgrader.upgrade(once) == once


def test_current_format_scene_is_left_alone() -> None:
    modern = (
        '[gd_scene load_steps=2 format=3 uid="uid://c4x8k2m1p0q9r7s6t5u3v2"]\n\n'
        '[ext_resource type="Script" uid="uid://b1a2c3d4e5f6g7h8i9j0k1" path="res://Player.gd" id="1_abcd"]\n\n'
        '[node name="Player" type="Sprite2D"]\n'
        'script = ExtResource("1_abcd")\n'
    )

    assert not is_legacy(modern)
    assert LegacyFormatUpgrader(UidGenerator.seeded(1)).upgrade(modern) == modern


def test_upgrade_without_sub_resources_is_idempotent(uid_generator) -> None:
    legacy = '[gd_scene load_steps=1 format=2]\n\n[node name="Root" type="Spatial"]\n'
    upgrader = LegacyFormatUpgrader(uid_generator)

    once = upgrader.upgrade(legacy)

    assert once.startswith("[gd_scene load_steps=1 format=3 uid=")
    assert '[node name="Root" type="Node3D"]' in once
    assert upgrader.upgrade(once) == once


def test_script_paths_gain_extension_but_ids_do_not() -> None:
    content = (
        '[gd_scene format=3 uid="uid://existing"]\n\n'
        '[node name="E" type="Node2D"]\n'
        'script = ExtResource("res://Enemy")\n\n'
        '[node name="F" type="Node2D"]\n'
        'script = ExtResource("1_abcd")\n'
    )

    upgraded = LegacyFormatUpgrader().upgrade(content)

    assert 'script = ExtResource("res://Enemy.gd")' in upgraded
    assert 'script = ExtResource("1_abcd")' in upgraded
    assert upgraded.count("uid=") == 1


def test_doubled_quotes_collapse_only_inside_resource_calls() -> None:
    content = '[gd_resource type="Theme" format=2]\n\n[resource]\ntexture = ExtResource(""1_tex"")\ndescription = ""\n'

    upgraded = LegacyFormatUpgrader(UidGenerator.seeded(1)).upgrade(content)

    assert 'texture = ExtResource("1_tex")' in upgraded
    assert 'description = ""' in upgraded
    assert upgraded.startswith('[gd_resource type="Theme" format=3 uid="uid://')


def test_bare_type_names_are_renamed_outside_strings_only() -> None:
    content = (
        '[gd_scene format=2]\n\n[node name="Root" type="Spatial"]\n'
        'metadata/note = "Spatial stays in text"\n'
        "types = [ Spatial, KinematicBody ]\n"
    )

    upgraded = LegacyFormatUpgrader(UidGenerator.seeded(2)).upgrade(content)

    assert 'type="Node3D"' in upgraded
    assert '"Spatial stays in text"' in upgraded
    assert "types = [ Node3D, CharacterBody3D ]" in upgraded


def test_is_legacy() -> None:
    assert is_legacy("[gd_scene load_steps=2 format=2]\n")
    assert is_legacy('[gd_resource type="Theme" format=1]\n')
    assert not is_legacy('[gd_scene format=3 uid="uid://abc"]\n')
    assert not is_legacy("extends Node\n")
