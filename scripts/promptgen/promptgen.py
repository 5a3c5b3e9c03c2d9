#!/usr/bin/env python3
"""promptgen - persona file → chat messages.

Parses a persona YAML file, renders the system prompt and message list, and
optionally sends them to a chat model.

Usage:
    promptgen [persona.yaml] [--say TEXT ...] [--transcript FILE] [--show-system]
    promptgen persona.yaml --say "hello" --send
    promptgen --batch <dir>
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from .agent import ChatClient
from .builder import build_messages, build_system_prompt
from .config import Settings
from .generator import PromptGenerator
from .parser import load_prompt_yaml
from .utils.errors import PromptGenError, PromptLoadError
from .utils.logging import logger, setup_logger

if TYPE_CHECKING:
    import tiktoken as _tiktoken

__all__ = ["inspect", "inspect_batch", "load_transcript", "main"]

_tiktoken_enc: _tiktoken.Encoding | None = None


def _count_tokens(text: str) -> int:
    """Count tokens with tiktoken's cl100k_base encoding."""
    global _tiktoken_enc
    if _tiktoken_enc is None:
        import tiktoken
        _tiktoken_enc = tiktoken.get_encoding("cl100k_base")
    return len(_tiktoken_enc.encode(text))


def load_transcript(path: Path) -> tuple[list[str], list[str]]:
    """Read a JSON transcript: a list of ``{"role": ..., "content": ...}`` objects."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise PromptGenError(f"Invalid transcript {path}: {e}") from e

    if not isinstance(data, list):
        raise PromptGenError(f"Transcript {path} must be a JSON list")

    roles: list[str] = []
    contents: list[str] = []
    for i, entry in enumerate(data):
        if not isinstance(entry, dict) or "role" not in entry or "content" not in entry:
            raise PromptGenError(f"Transcript entry {i} in {path} needs 'role' and 'content'")
        roles.append(str(entry["role"]))
        contents.append(str(entry["content"]))
    return roles, contents


def inspect(
    path: Path,
    *,
    roles: list[str] | None = None,
    contents: list[str] | None = None,
    benchmark: bool = False,
) -> dict:
    """Parse a persona file and render its prompt.

    Args:
        path: Persona YAML file.
        roles: Transcript roles to append after the few-shot turns.
        contents: Transcript contents, parallel to ``roles``.
        benchmark: Include token counts.

    Returns:
        Dict with spec, system_prompt, messages and stop.

    Raises:
        PromptLoadError: The file could not be read.
    """
    spec, ok = load_prompt_yaml(path)
    if not ok:
        raise PromptLoadError(path)

    system_prompt = build_system_prompt(spec)
    messages = [m.to_dict() for m in build_messages(spec, roles or [], contents or [])]

    result: dict = {
        "input": str(path),
        "spec": spec.model_dump(),
        "system_prompt": system_prompt,
        "messages": messages,
        "stop": list(spec.stop),
    }

    if benchmark:
        messages_json = json.dumps(messages)
        result["benchmark"] = {
            "system_prompt": {"chars": len(system_prompt), "tokens": _count_tokens(system_prompt)},
            "messages": {"chars": len(messages_json), "tokens": _count_tokens(messages_json)},
        }

    return result


def inspect_batch(input_dir: Path) -> dict:
    """Parse every persona file under a directory.

    Args:
        input_dir: Directory searched recursively for ``*.yaml``/``*.yml``.

    Returns:
        Aggregate counts and per-file results.

    Raises:
        PromptGenError: If the directory is missing or holds no persona files.
    """
    if not input_dir.is_dir():
        raise PromptGenError(f"No persona files in {input_dir}: not a directory")
    files = sorted({*input_dir.rglob("*.yaml"), *input_dir.rglob("*.yml")})
    if not files:
        raise PromptGenError(f"No persona files in {input_dir}")

    results: list[dict] = []
    for i, path in enumerate(files, 1):
        logger.info(f"[{i}/{len(files)}] {path.name}")
        try:
            res = inspect(path)
            spec = res["spec"]
            results.append({
                "file": str(path),
                "status": "success",
                "facts": len(spec["facts"]),
                "stop": len(spec["stop"]),
                "few_shots": len(spec["few_shots"]),
                "system_prompt_chars": len(res["system_prompt"]),
            })
        except PromptGenError as e:
            results.append({"file": str(path), "status": "error", "error": str(e)})

    return {
        "processed": len(results),
        "successful": sum(1 for r in results if r["status"] == "success"),
        "failed": sum(1 for r in results if r["status"] == "error"),
        "files": results,
    }


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    p = argparse.ArgumentParser(
        prog="promptgen",
        description="Render persona YAML files into chat messages",
    )
    p.add_argument("input", type=Path, nargs="?", help="Persona YAML file (default: PROMPTGEN_PERSONA_PATH)")
    p.add_argument("--say", action="append", default=[], metavar="TEXT", help="Append a user turn (repeatable)")
    p.add_argument("--transcript", type=Path, help="JSON list of {role, content} turns")
    p.add_argument("--show-system", action="store_true", help="Print the system prompt")
    p.add_argument("--show-messages", action="store_true", help="Print the message list as JSON")
    p.add_argument("--request", action="store_true", help="Print the chat-completion request body")
    p.add_argument("--json", action="store_true", help="Print the parsed persona as JSON")
    p.add_argument("-b", "--benchmark", action="store_true", help="Show token counts")
    p.add_argument("--send", action="store_true", help="Send to the model and print the reply")
    p.add_argument("--stream", action="store_true", help="Like --send, printing the reply as it streams")
    p.add_argument("--provider", choices=["openai", "anthropic"], help="Model provider")
    p.add_argument("--model", help="Model name override")
    p.add_argument("--temperature", type=float, help="Sampling temperature")
    p.add_argument("--batch", type=Path, metavar="DIR", help="Parse every persona file in a directory")
    return p


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = _build_parser().parse_args(argv)
    settings = Settings.from_env()
    if args.provider:
        settings = settings.model_copy(update={"provider": args.provider})
    setup_logger(settings.log_level)

    if args.batch:
        try:
            summary = inspect_batch(args.batch)
        except PromptGenError as e:
            print(f"error: {e}", file=sys.stderr)
            sys.exit(1)
        print(json.dumps(summary, indent=2))
        return

    path = args.input or Path(settings.persona_path)
    roles: list[str] = []
    contents: list[str] = []
    try:
        if args.transcript:
            roles, contents = load_transcript(args.transcript)
        for text in args.say:
            roles.append("user")
            contents.append(text)
        result = inspect(path, roles=roles, contents=contents, benchmark=args.benchmark)
    except PromptGenError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps(result["spec"], indent=2))
    if args.show_system:
        print(result["system_prompt"])
    if args.show_messages:
        print(json.dumps(result["messages"], indent=2))

    if args.request or args.send or args.stream:
        generator = PromptGenerator()
        generator.load_from_yaml(path)
        try:
            client = ChatClient(settings, model=args.model, generator=generator)
            if args.request:
                body = client.request_body(roles, contents, temperature=args.temperature, stream=args.stream)
                print(json.dumps(body, indent=2))
            if args.stream:
                for delta in client.stream(roles, contents, temperature=args.temperature):
                    print(delta, end="", flush=True)
                print()
            elif args.send:
                print(client.send(roles, contents, temperature=args.temperature))
        except PromptGenError as e:
            print(f"error: {e}", file=sys.stderr)
            sys.exit(1)
    elif not (args.json or args.show_system or args.show_messages):
        print(json.dumps(result["messages"], indent=2))

    if args.benchmark and "benchmark" in result:
        bm = result["benchmark"]
        print(
            f"\nTokens: {bm['system_prompt']['tokens']} system prompt, {bm['messages']['tokens']} messages",
            file=sys.stderr,
        )


if __name__ == "__main__":
    main()
