#!/usr/bin/env python3
"""
Portal Chat Assistant - Main Entry Point
========================================

Command-line interface for running the chat assistant.

Usage:
    python main.py --chat                  # Interactive chat in the terminal
    python main.py --ask "QUESTION"        # Answer one question and exit
    python main.py --web                   # Start the chat API server
    python main.py --validate-rules [PATH] # Check a rule file
    python main.py --list-prompts          # Show suggestion prompts
    python main.py --status                # Show configuration and provider status
    python main.py --init-config [PATH]    # Write the current configuration to YAML
"""

import sys
import argparse
import asyncio
from pathlib import Path
from typing import List, Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from core.config import load_config, save_config, Config
from core.logging import setup_logging, get_logger
from core.exceptions import ChatAssistantError

logger = get_logger("main")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Portal Chat Assistant - canned responses with LLM fallback",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --chat                        Chat in the terminal
  python main.py --ask "I forgot my password"  Answer one question
  python main.py --web --port 9000             Start the API on port 9000
  python main.py --validate-rules rules.yaml   Check a rule file
  python main.py --list-prompts                Show suggestion buttons
  python main.py --status                      Check the completion provider
  python main.py --init-config                 Write config.yaml with defaults
        """
    )

    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        "--chat",
        action="store_true",
        help="Start an interactive chat session"
    )
    mode_group.add_argument(
        "--ask",
        type=str,
        metavar="QUESTION",
        help="Start a new thread with QUESTION and print the conversation"
    )
    mode_group.add_argument(
        "--web",
        action="store_true",
        help="Start the chat API server"
    )
    mode_group.add_argument(
        "--validate-rules",
        nargs="?",
        const="",
        metavar="PATH",
        help="Validate a rule file (default: configured rule file)"
    )
    mode_group.add_argument(
        "--list-prompts",
        action="store_true",
        help="List suggestion prompts"
    )
    mode_group.add_argument(
        "--status",
        action="store_true",
        help="Show configuration and completion provider status"
    )
    mode_group.add_argument(
        "--init-config",
        nargs="?",
        const="",
        metavar="PATH",
        help="Write the current configuration to PATH (default: config dir)"
    )

    parser.add_argument(
        "--config",
        type=str,
        metavar="PATH",
        help="Path to configuration file"
    )
    parser.add_argument(
        "--rules",
        type=str,
        metavar="PATH",
        help="General rule file to use instead of the configured one"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the API server (default: from config)"
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host for the API server (default: from config)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode"
    )

    return parser.parse_args(argv)


def _build_controller(config: Config):
    from llm.factory import create_provider
    from rules.loader import build_rule_store
    from services.dialogue import DialogueController

    store = build_rule_store(
        rules_file=config.chat.rules_file or None,
        use_local_rules=config.chat.use_local_rules,
    )
    return DialogueController(
        rule_store=store,
        provider=create_provider(config),
        welcome_message=config.chat.welcome_message(),
        system_instruction=config.chat.system_instruction,
        session_id="cli",
    )


def _print_turn(turn) -> None:
    label = "You" if turn.role.value == "user" else "Assistant"
    print(f"{label}: {turn.text}\n")


def run_chat(config: Config) -> None:
    """Interactive chat loop on stdin/stdout."""
    controller = _build_controller(config)
    controller.open()

    for turn in controller.history:
        _print_turn(turn)
    print("(type 'quit' to exit)\n")

    while True:
        try:
            text = input("> ")
        except EOFError:
            break

        if text.strip().lower() in ("quit", "exit"):
            break

        before = len(controller.history)
        resolution = asyncio.run(controller.submit(text))
        if resolution is None:
            continue

        # The user turn is already on screen
        for turn in controller.history[before + 1:]:
            _print_turn(turn)
        if resolution.suppressed:
            print("(same answer as above)\n")


def run_ask(config: Config, question: str) -> None:
    """Answer a single question as a new thread."""
    controller = _build_controller(config)
    asyncio.run(controller.start_thread(question))

    for turn in controller.history:
        _print_turn(turn)


def run_validate_rules(config: Config, path: str) -> None:
    """Load a rule file and report the tiers."""
    from rules.loader import build_rule_store

    rules_file = path or config.chat.rules_file or None
    store = build_rule_store(
        rules_file=rules_file,
        use_local_rules=config.chat.use_local_rules,
    )

    print(f"Rule file OK: {rules_file or 'bundled defaults'}")
    for tier in store.tiers:
        print(f"  {tier.name}: {len(tier)} rules")


def run_list_prompts(config: Config) -> None:
    """Print suggestion prompts grouped for display."""
    from rules.loader import build_rule_store
    from rules.prompts import suggestion_groups

    store = build_rule_store(
        rules_file=config.chat.rules_file or None,
        use_local_rules=config.chat.use_local_rules,
    )
    specific, general = suggestion_groups(store)

    print("Your account:")
    for suggestion in specific:
        print(f"  - {suggestion.prompt}")
    print("\nGeneral help:")
    for suggestion in general:
        print(f"  - {suggestion.prompt}")


def run_status(config: Config) -> None:
    """Check and display the rules and completion provider."""
    from llm.factory import create_provider
    from rules.loader import build_rule_store

    print(f"\n{config.app_name} - Status\n")

    print("Rules")
    print("-" * 30)
    store = build_rule_store(
        rules_file=config.chat.rules_file or None,
        use_local_rules=config.chat.use_local_rules,
    )
    for tier in store.tiers:
        print(f"  {tier.name}: {len(tier)} rules")

    print("\nCompletion Provider")
    print("-" * 30)
    print(f"  Provider: {config.llm.provider}")
    print(f"  Model: {config.llm.model}")

    if not config.llm.api_key:
        print("  API Key: Not Set (canned responses only)")
        return

    print("  API Key: Set")
    provider = create_provider(config)
    if provider.is_available():
        print("  Connection: Successful")
    else:
        print("  Connection: Failed")


def run_init_config(config: Config, path: str) -> None:
    """Write the loaded configuration to YAML, without the API key."""
    target = Path(path) if path else Path(config.config_dir) / "config.yaml"
    save_config(config, str(target))
    print(f"Configuration saved to {target}")


def run_web(config: Config, host: Optional[str], port: Optional[int], debug: bool) -> None:
    """Start the chat API server."""
    from ui.web.app import run_app

    run_app(
        host=host or config.ui.web_host,
        port=port or config.ui.web_port,
        debug=debug or config.ui.web_debug,
        config=config,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = load_config(args.config)

        if args.rules:
            config.chat.rules_file = args.rules
        if args.debug:
            config.debug = True

        # Console shows warnings only outside the server; chat output stays clean
        setup_logging(
            log_dir=config.log_dir or None,
            log_level="DEBUG" if args.debug else ("INFO" if args.web else "WARNING"),
            console_output=True
        )

        if args.web:
            run_web(config, args.host, args.port, args.debug)
        elif args.chat:
            run_chat(config)
        elif args.ask:
            run_ask(config, args.ask)
        elif args.validate_rules is not None:
            run_validate_rules(config, args.validate_rules)
        elif args.list_prompts:
            run_list_prompts(config)
        elif args.status:
            run_status(config)
        elif args.init_config is not None:
            run_init_config(config, args.init_config)
        else:
            print("No mode specified. Use --chat, --ask, --web, --status, or --help")
            print("\nQuick start:")
            print("  python main.py --chat    # Chat in the terminal")
            print("  python main.py --web     # Start the chat API")

        return 0

    except ChatAssistantError as e:
        print(f"\nError: {e}")
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 0
    except Exception as e:
        print(f"\nUnexpected error: {e}")
        if args.debug:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
