"""Shared expense ledger for Telegram group chats."""
