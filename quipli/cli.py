"""Main entry point for the Quipli CLI."""

from __future__ import annotations

import asyncio
import sys

from pydantic import ValidationError

from quipli import __version__, config
from quipli.catalog import MODELS, models_for, provider_label
from quipli.config import SettingsStore, configure_logging, redact
from quipli.services.ai_provider import GenerationClient

SETTING_KEYS = ("provider", "model", "credential", "tone", "enabled", "system_prompt_override")


def print_help():
    """Print help message."""
    print(f"""
Quipli CLI v{__version__}

Usage:
  quipli [options] <command>

Commands:
  models [PROVIDER]   List models (all providers, or one)
  settings            Show current settings
  set KEY VALUE       Change a setting ({", ".join(SETTING_KEYS)})
  probe               Check the configured API key

Options:
  --settings PATH     Settings file (default: {config.settings.SETTINGS_PATH})
  -h, --help          Show this help
  -v, --version       Show version

Environment:
  QUIPLI_SETTINGS_PATH     Settings file (same as --settings)
  QUIPLI_REQUEST_TIMEOUT   Request timeout in seconds
  QUIPLI_LOG_LEVEL         Logging level

Examples:
  quipli set provider gemini
  quipli set credential sk-...
  quipli probe
""")


def parse_args(args: list[str]) -> dict:
    """
    Parse command line arguments.

    Returns dict with:
        command: str | None (models, settings, set, probe)
        operands: list[str]
        settings_path: str | None
        show_help: bool
        show_version: bool
    """
    result = {
        "command": None,
        "operands": [],
        "settings_path": None,
        "show_help": False,
        "show_version": False,
    }

    i = 0
    while i < len(args):
        arg = args[i]

        if arg == "--settings":
            if i + 1 < len(args):
                result["settings_path"] = args[i + 1]
                i += 1
            else:
                print("Error: --settings requires a path")
                sys.exit(1)
        elif arg in ("--help", "-h"):
            result["show_help"] = True
        elif arg in ("--version", "-v"):
            result["show_version"] = True
        elif arg.startswith("-") and result["command"] != "set":
            print(f"Unknown option: {arg}")
            print("Run 'quipli --help' for usage.")
            sys.exit(1)
        elif result["command"] is None:
            if arg not in ("models", "settings", "set", "probe"):
                print(f"Unknown command: {arg}")
                print("Run 'quipli --help' for usage.")
                sys.exit(1)
            result["command"] = arg
        else:
            result["operands"].append(arg)

        i += 1

    return result


def show_models(provider: str | None) -> int:
    if provider is not None and provider not in MODELS:
        print(f"Unknown provider: {provider}")
        return 1
    for name in [provider] if provider else MODELS:
        print(f"{provider_label(name)} ({name}):")
        for option in models_for(name):
            print(f"  {option.value:<30} {option.label}")
    return 0


def show_settings(store: SettingsStore) -> int:
    values = store.values
    for key in SETTING_KEYS:
        value = getattr(values, key)
        if key == "credential":
            value = redact(value)
        print(f"{key:<24} {value}")
    return 0


def set_setting(store: SettingsStore, operands: list[str]) -> int:
    if len(operands) != 2:
        print("Usage: quipli set KEY VALUE")
        return 1
    key, value = operands
    if key not in SETTING_KEYS:
        print(f"Unknown setting: {key}")
        return 1
    try:
        changed = store.set(key, value)
    except ValidationError as e:
        print(f"Invalid value for {key}: {e.errors()[0]['msg']}")
        return 1
    if not changed:
        print("No change.")
    for name, new in changed.items():
        print(f"{name} = {redact(new) if name == 'credential' else new}")
    return 0


async def _probe(store: SettingsStore) -> int:
    client = GenerationClient()
    try:
        result = await client.probe(store.get("provider"), store.get("model"), store.get("credential"))
    finally:
        await client.aclose()
    if result.valid:
        print("Valid key")
        return 0
    print(result.error or "Invalid key")
    return 1


def main():
    """Main entry point."""
    args = parse_args(sys.argv[1:])

    if args["show_help"]:
        print_help()
        return

    if args["show_version"]:
        print(f"quipli {__version__}")
        return

    configure_logging()
    store = SettingsStore(args["settings_path"] or config.settings.SETTINGS_PATH)

    command = args["command"]
    if command == "models":
        code = show_models(args["operands"][0] if args["operands"] else None)
    elif command == "settings":
        code = show_settings(store)
    elif command == "set":
        code = set_setting(store, args["operands"])
    elif command == "probe":
        code = asyncio.run(_probe(store))
    else:
        print_help()
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
