#!/usr/bin/env python3
"""CLI tool for club session administration."""
import asyncio
import sys

from chiply.db.connection import db
from chiply.db.models import init_db
from chiply.ledger.cashout_manager import CashoutManager
from chiply.ledger.errors import LedgerError
from chiply.ledger.reconciliation import cashout_view, relevant_player_ids, summarize_sessions
from chiply.ledger.report import format_cashout_table, format_sessions_table
from chiply.state.redis_client import redis_client
from chiply.state.session_store import session_store


async def _connect():
    await db.connect()
    await redis_client.connect()


async def _disconnect():
    await redis_client.disconnect()
    await db.disconnect()


async def create_schema():
    """Create database tables."""
    await db.connect()
    try:
        await init_db()
        print("Success: schema is up to date.")
    finally:
        await db.disconnect()


async def show_cashouts(session_id: str):
    """Print a session's cash-out view."""
    await _connect()
    try:
        manager = CashoutManager(session_id, session_store)
        try:
            ledger = await manager.load()
        except LedgerError as e:
            print(f"Error: {e}")
            sys.exit(1)

        state = "closed" if ledger.is_closed else "open"
        print(f"\nSession {session_id} ({state})\n")
        print(format_cashout_table(cashout_view(ledger)))
    finally:
        await _disconnect()


async def show_report(email: str):
    """Print the my-sessions report for a player's email."""
    await _connect()
    try:
        players = await session_store.fetch_all_players()
        player_ids = relevant_player_ids(players, email)
        if not player_ids:
            print(f"Error: No player registered with '{email}'.")
            sys.exit(1)

        sessions = await session_store.fetch_all_sessions()
        clubs = await session_store.fetch_all_clubs()
        summaries = summarize_sessions(sessions, player_ids, clubs=clubs)
        print()
        print(format_sessions_table(summaries))
        print(f"\nTotal: {len(summaries)} sessions")
    finally:
        await _disconnect()


async def close_session(session_id: str):
    """Close a session."""
    await _connect()
    try:
        manager = CashoutManager(session_id, session_store, can_edit=True)
        try:
            result = await manager.close_session()
        except LedgerError as e:
            print(f"Error: {e}")
            sys.exit(1)

        if not result.success:
            print(f"Error: {result.message}")
            sys.exit(1)
        print(f"Success: session {session_id} is closed.")
    finally:
        await _disconnect()


def print_usage():
    """Print usage information."""
    print("""
Chiply CLI

Usage:
  python -m chiply.cli <command> [args]

Commands:
  init-db               Create database tables
  cashouts <session>    Show a session's buy-ins and cash-outs
  report <email>        Show every session of the player with this email
  close <session>       Close a session

Examples:
  python -m chiply.cli cashouts -NxY12abc
  python -m chiply.cli report alice@example.com
""")


def main():
    """Main CLI entry point."""
    if len(sys.argv) < 2:
        print_usage()
        sys.exit(1)

    command = sys.argv[1].lower()

    if command == "init-db":
        asyncio.run(create_schema())

    elif command in ("cashouts", "report", "close"):
        if len(sys.argv) < 3:
            argument = "Email" if command == "report" else "Session id"
            print(f"Error: {argument} required.")
            print(f"Usage: python -m chiply.cli {command} <{argument.lower()}>")
            sys.exit(1)
        handler = {"cashouts": show_cashouts, "report": show_report, "close": close_session}[command]
        asyncio.run(handler(sys.argv[2]))

    elif command in ("help", "-h", "--help"):
        print_usage()

    else:
        print(f"Unknown command: {command}")
        print_usage()
        sys.exit(1)


if __name__ == "__main__":
    main()
