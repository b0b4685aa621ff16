"""Tests for practice chat write access."""

import discord
import pytest

from helpers.practice_chat import should_have_chat_access, update_practice_chat_permissions
from tests.factories import FakeRole, join_voice, make_member, make_voice_channel
from utils.types import MemberSnapshot, PracticeSettings

SETTINGS = PracticeSettings()


def _snapshot(**kwargs):
    defaults = {"member_id": 1, "guild_id": 10, "channel_id": 100}
    defaults.update(kwargs)
    return MemberSnapshot(**defaults)


class TestShouldHaveChatAccess:
    def test_in_permitted_room(self):
        assert should_have_chat_access(_snapshot(), [100], SETTINGS) is True

    def test_muted_only_keeps_access(self):
        assert should_have_chat_access(_snapshot(is_muted=True), [100], SETTINGS) is True

    def test_muted_and_deafened_loses_access(self):
        snapshot = _snapshot(is_muted=True, is_self_deafened=True)
        assert should_have_chat_access(snapshot, [100], SETTINGS) is False

    def test_temp_muted_role_loses_access(self):
        snapshot = _snapshot(role_names=frozenset({"Temp Muted"}))
        assert should_have_chat_access(snapshot, [100], SETTINGS) is False

    def test_outside_permitted_rooms(self):
        assert should_have_chat_access(_snapshot(channel_id=300), [100], SETTINGS) is False
        assert should_have_chat_access(_snapshot(channel_id=None), [100], SETTINGS) is False


class TestUpdatePracticeChatPermissions:
    @pytest.mark.asyncio
    async def test_grant_on_join(self, guild, practice_chat):
        room = make_voice_channel(guild, 100)
        member = make_member(1, guild=guild)
        join_voice(member, room)

        await update_practice_chat_permissions([100], member, SETTINGS)

        assert practice_chat.overwrites[member].send_messages is True

    @pytest.mark.asyncio
    async def test_grant_is_idempotent(self, guild, practice_chat):
        room = make_voice_channel(guild, 100)
        member = make_member(1, guild=guild)
        join_voice(member, room)

        await update_practice_chat_permissions([100], member, SETTINGS)
        await update_practice_chat_permissions([100], member, SETTINGS)

        assert len(practice_chat.permission_calls) == 1

    @pytest.mark.asyncio
    async def test_grant_preserves_other_overwrites(self, guild, practice_chat):
        room = make_voice_channel(guild, 100)
        member = make_member(1, guild=guild)
        practice_chat.overwrites[member] = discord.PermissionOverwrite(attach_files=False)
        join_voice(member, room)

        await update_practice_chat_permissions([100], member, SETTINGS)

        overwrite = practice_chat.overwrites[member]
        assert overwrite.send_messages is True
        assert overwrite.attach_files is False

    @pytest.mark.asyncio
    async def test_revoke_removes_plain_grant(self, guild, practice_chat):
        room = make_voice_channel(guild, 100)
        member = make_member(1, guild=guild)
        join_voice(member, room)
        await update_practice_chat_permissions([100], member, SETTINGS)

        before, after = join_voice(member, None)
        await update_practice_chat_permissions([100], member, SETTINGS, voice_state=after)

        assert member not in practice_chat.overwrites
        assert practice_chat.permission_calls[-1] == (member, None)

    @pytest.mark.asyncio
    async def test_revoke_keeps_unrelated_overwrite_fields(self, guild, practice_chat):
        member = make_member(1, guild=guild)
        practice_chat.overwrites[member] = discord.PermissionOverwrite(
            send_messages=True, attach_files=False
        )

        await update_practice_chat_permissions([100], member, SETTINGS)

        overwrite = practice_chat.overwrites[member]
        assert overwrite.send_messages is None
        assert overwrite.attach_files is False

    @pytest.mark.asyncio
    async def test_revoke_without_overwrite_makes_no_call(self, guild, practice_chat):
        member = make_member(1, guild=guild)

        await update_practice_chat_permissions([100], member, SETTINGS)
        await update_practice_chat_permissions([100], member, SETTINGS)

        assert practice_chat.permission_calls == []

    @pytest.mark.asyncio
    async def test_explicit_deny_is_left_alone(self, guild, practice_chat):
        member = make_member(1, guild=guild)
        practice_chat.overwrites[member] = discord.PermissionOverwrite(send_messages=False)

        await update_practice_chat_permissions([100], member, SETTINGS)

        assert practice_chat.permission_calls == []
        assert practice_chat.overwrites[member].send_messages is False

    @pytest.mark.asyncio
    async def test_temp_muted_member_is_revoked(self, guild, practice_chat):
        room = make_voice_channel(guild, 100)
        member = make_member(1, guild=guild)
        join_voice(member, room)
        await update_practice_chat_permissions([100], member, SETTINGS)

        member.roles.append(FakeRole(2, "Temp Muted"))
        await update_practice_chat_permissions([100], member, SETTINGS)

        assert member not in practice_chat.overwrites

    @pytest.mark.asyncio
    async def test_missing_chat_channel_is_noop(self, guild, practice_chat):
        guild.channels.remove(practice_chat)
        room = make_voice_channel(guild, 100)
        member = make_member(1, guild=guild)
        join_voice(member, room)

        await update_practice_chat_permissions([100], member, SETTINGS)

        assert practice_chat.permission_calls == []
