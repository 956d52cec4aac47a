"""
Hugoland CLI - Command-line interface for a saved game.

Usage:
    hugoland status [--save-dir DIR]    Show the saved game after offline reconciliation
    hugoland claim [--save-dir DIR]     Claim staged offline earnings
    hugoland daily [--save-dir DIR]     Claim today's login reward
    hugoland reset [--save-dir DIR]     Replace the saved game with a new one
"""

import argparse
import asyncio
import sys

from .config import EngineSettings, configure_logging


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Hugoland - Idle trivia RPG engine",
        prog="hugoland",
    )
    parser.add_argument("--save-dir", help="Directory holding saved games")
    parser.add_argument("--key", help="Storage key of the saved game")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("status", help="Show the saved game")
    subparsers.add_parser("claim", help="Claim staged offline earnings")
    subparsers.add_parser("daily", help="Claim today's login reward")
    reset_parser = subparsers.add_parser("reset", help="Start a new game")
    reset_parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    args = parser.parse_args(argv)

    settings = EngineSettings.from_env()
    configure_logging(settings.log_level)

    if args.command == "status":
        asyncio.run(cmd_status(args, settings))
    elif args.command == "claim":
        asyncio.run(cmd_claim(args, settings))
    elif args.command == "daily":
        asyncio.run(cmd_daily(args, settings))
    elif args.command == "reset":
        asyncio.run(cmd_reset(args, settings))
    else:
        parser.print_help()
        sys.exit(1)


def _open_store(args, settings: EngineSettings):
    from .session import FileBackend, StateStore

    return StateStore(
        FileBackend(args.save_dir or settings.save_dir),
        key=args.key or settings.storage_key,
        debounce_seconds=settings.persist_debounce_seconds,
    )


async def cmd_status(args, settings: EngineSettings):
    """Print a summary of the saved game."""
    store = _open_store(args, settings)
    state = await store.open(poll=False)
    try:
        player = state.player
        print(f"Zone: {state.zone}{' (premium)' if state.is_premium else ''}")
        print(f"Coins: {state.coins}  Gems: {state.gems}  Shiny gems: {state.shiny_gems}")
        print(f"HP: {player.hp}/{player.max_hp}  ATK: {player.atk}  DEF: {player.defense}")
        progression = state.progression
        print(
            f"Level: {progression.level} ({progression.experience}/{progression.experience_to_next} xp, "
            f"{progression.skill_points} skill points)"
        )
        print(f"Knowledge streak: {state.streak.current} (best {state.streak.best})")
        print(f"Fragments: {state.merchant.fragments}")
        print(
            f"Offline earnings: {state.offline.offline_coins} coins, "
            f"{state.offline.offline_gems} gems"
        )
        skill = state.skills.active(store.clock())
        if skill:
            print(f"Menu skill: {skill.skill_type} until {skill.expires_at.isoformat()}")
        if state.garden.is_planted:
            print(
                f"Garden: {state.garden.growth_cm:.1f} cm, "
                f"{state.garden.water_hours_remaining:.1f} h of water"
            )
    finally:
        await store.close()


async def cmd_claim(args, settings: EngineSettings):
    """Claim staged offline earnings."""
    store = _open_store(args, settings)
    await store.open(poll=False)
    try:
        result = store.claim_idle_rewards()
        for change in result.state_changes:
            print(change)
    finally:
        await store.close()


async def cmd_daily(args, settings: EngineSettings):
    """Claim today's login reward."""
    store = _open_store(args, settings)
    await store.open(poll=False)
    try:
        result = store.claim_daily_reward()
        if result.success:
            for change in result.state_changes:
                print(change)
        else:
            print(f"Error: {result.error}")
    finally:
        await store.close()


async def cmd_reset(args, settings: EngineSettings):
    """Replace the saved game with a fresh one."""
    if not args.yes:
        answer = input("This deletes all progress. Continue? [y/N] ")
        if answer.strip().lower() not in {"y", "yes"}:
            print("Aborted")
            return

    store = _open_store(args, settings)
    await store.open(poll=False)
    try:
        result = store.reset_game()
        print("Started a new game" if result.success else f"Error: {result.error}")
    finally:
        await store.close()


if __name__ == "__main__":
    main()
