from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from splitbook.services.formatter import format_simple_list
from splitbook.state import registry
from splitbook.utils.parse import parse_name_and_rest, parse_names, validate_name

participants_router = Router()


@participants_router.message(Command("addparticipants", "ap", ignore_case=True))
async def cmd_add_participants(message: Message, command: CommandObject) -> None:
    names = parse_names(command.args)
    await registry.ledger(message.chat.id).add_participants(names)


@participants_router.message(Command("removeparticipants", "rp", ignore_case=True))
async def cmd_remove_participants(message: Message, command: CommandObject) -> None:
    names = parse_names(command.args)
    await registry.ledger(message.chat.id).remove_participants(names)


@participants_router.message(Command("listparticipants", "lp", ignore_case=True))
async def cmd_list_participants(message: Message) -> None:
    names = await registry.ledger(message.chat.id).list_participants()
    await message.answer(format_simple_list(names))


@participants_router.message(Command("addaliases", "aa", ignore_case=True))
async def cmd_add_aliases(message: Message, command: CommandObject) -> None:
    participant, aliases = parse_name_and_rest(command.args, "participant", "alias", require_rest=True)
    await registry.ledger(message.chat.id).add_aliases(participant, aliases)


@participants_router.message(Command("removealiases", "ra", ignore_case=True))
async def cmd_remove_aliases(message: Message, command: CommandObject) -> None:
    participant, aliases = parse_name_and_rest(command.args, "participant", "alias", require_rest=True)
    await registry.ledger(message.chat.id).remove_aliases(participant, aliases)


@participants_router.message(Command("listaliases", "la", ignore_case=True))
async def cmd_list_aliases(message: Message, command: CommandObject) -> None:
    participant, _ = parse_name_and_rest(command.args, "participant", "alias")
    aliases = await registry.ledger(message.chat.id).list_aliases(participant)
    await message.answer(format_simple_list(aliases))


@participants_router.message(Command("addgroup", "ag", ignore_case=True))
async def cmd_add_group(message: Message, command: CommandObject) -> None:
    group, members = parse_name_and_rest(command.args, "group", "participant")
    await registry.ledger(message.chat.id).add_group(group, members)


@participants_router.message(Command("removegroup", "rg", ignore_case=True))
async def cmd_remove_group(message: Message, command: CommandObject) -> None:
    group = validate_name((command.args or "").strip(), "group")
    await registry.ledger(message.chat.id).remove_group(group)


@participants_router.message(Command("addgroupmembers", "agm", ignore_case=True))
async def cmd_add_group_members(message: Message, command: CommandObject) -> None:
    group, members = parse_name_and_rest(command.args, "group", "participant", require_rest=True)
    await registry.ledger(message.chat.id).add_group_members(group, members)


@participants_router.message(Command("removegroupmembers", "rgm", ignore_case=True))
async def cmd_remove_group_members(message: Message, command: CommandObject) -> None:
    group, members = parse_name_and_rest(command.args, "group", "participant", require_rest=True)
    await registry.ledger(message.chat.id).remove_group_members(group, members)


@participants_router.message(Command("listgroups", "lg", ignore_case=True))
async def cmd_list_groups(message: Message) -> None:
    groups = await registry.ledger(message.chat.id).list_groups()
    await message.answer(format_simple_list(groups))


@participants_router.message(Command("listgroupmembers", "lgm", ignore_case=True))
async def cmd_list_group_members(message: Message, command: CommandObject) -> None:
    group = validate_name((command.args or "").strip(), "group")
    members = await registry.ledger(message.chat.id).list_group_members(group)
    await message.answer(format_simple_list(members))
