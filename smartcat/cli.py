from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable, Optional, Sequence, TextIO, Tuple

from . import __version__
from .config import (
    DEFAULT_PROMPT_NAME,
    ConfigStore,
    is_interactive,
    report_config_status,
    valid_conversation_name,
)
from .customizer import ParamOverrides, customize_prompt
from .errors import ConfigurationError, SmartcatError, UserDeclined
from .llm_interaction import LLMAdapter
from .pipeline import Orchestrator
from .schemas import Api, ApiConfig, Prompt

logger = logging.getLogger(__name__)

EXAMPLES = """\
Examples:
=========

- sc <my_input>
- sc <my_prompt_template_name> <my_input>

- sc "say hi"  # just ask

- sc test                         # use templated prompts
- sc test "and parametrize them"  # extend them on the fly

- sc "explain how to use this program" -c **/*.md main.py  # use files as context

- git diff | sc "summarize the changes"  # pipe data in

- cat en.md | sc "translate in french" >> fr.md   # write data out
- sc -e "use a more informal tone" -t 2 >> fr.md  # extend the conversation and raise the temperature
"""


def _api(value: str) -> Api:
    try:
        return Api(value)
    except ValueError:
        choices = ", ".join(api.value for api in Api)
        raise argparse.ArgumentTypeError(f"unknown api {value!r} (choose from {choices})")


def _conversation_name(value: str) -> str:
    try:
        return valid_conversation_name(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc))


def _char_limit(value: str) -> int:
    limit = int(value)
    if limit < 0:
        raise argparse.ArgumentTypeError("char limit cannot be negative")
    return limit


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sc",
        description="Putting a brain behind `cat`. CLI interface to bring language models in the Unix ecosystem.",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "input_or_template_ref",
        nargs="?",
        help="ref to a prompt template from config or straight input (will use `default` prompt template if input)",
    )
    parser.add_argument(
        "input_if_template_ref",
        nargs="?",
        help="if the first arg matches a config template, the second will be used as input",
    )
    parser.add_argument(
        "-e",
        "--extend-conversation",
        action="store_true",
        help="whether to extend the previous conversation or start a new one",
    )
    parser.add_argument(
        "-r",
        "--repeat-input",
        action="store_true",
        help="whether to repeat the input before the output, useful to extend instead of replacing",
    )
    parser.add_argument("-n", "--name", type=_conversation_name, help="conversation name")

    params = parser.add_argument_group("prompt params")
    params.add_argument("--api", type=_api, help="overrides which api to hit")
    params.add_argument("-m", "--model", help="overrides which model (of the api) to use")
    params.add_argument(
        "-t",
        "--temperature",
        type=float,
        help="higher temperature means answer further from the average",
    )
    params.add_argument(
        "-l",
        "--char-limit",
        type=_char_limit,
        help="max number of chars to include, ask for user approval if more, 0 = no limit",
    )
    params.add_argument(
        "-c",
        "--context",
        nargs="+",
        default=[],
        help="glob patterns or list of files to use the content as context, make sure it's the last arg",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def overrides_from_args(args: argparse.Namespace) -> ParamOverrides:
    return ParamOverrides(
        api=args.api,
        model=args.model,
        temperature=args.temperature,
        char_limit=args.char_limit,
        context=list(args.context or []),
    )


# -------------------------
# Prompt selection
# -------------------------

def template_and_custom_text(
    args: argparse.Namespace, store: ConfigStore
) -> Tuple[Prompt, Optional[str]]:
    """
    If the first arg names a template, use it and treat the second arg as the
    customization text. Otherwise use the `default` template with the first arg
    as customization text, and a second arg is an error.
    """
    prompts = store.get_prompts()
    ref = args.input_or_template_ref or DEFAULT_PROMPT_NAME

    if ref in prompts:
        return prompts[ref], args.input_if_template_ref

    if args.input_if_template_ref is not None:
        raise ConfigurationError(
            "Invalid parameters, either provide a valid ref to a config prompt then an input, or only an input.\n"
            'Use `sc <config_ref> "<your_prompt>"` or `sc "<your_prompt>"`'
        )
    if DEFAULT_PROMPT_NAME not in prompts:
        raise ConfigurationError(
            f"`{DEFAULT_PROMPT_NAME}` prompt not found, available ones are: {sorted(prompts)}"
        )
    return prompts[DEFAULT_PROMPT_NAME], ref


def select_prompt(
    args: argparse.Namespace, store: ConfigStore
) -> Tuple[Prompt, Optional[str]]:
    if not args.extend_conversation:
        return template_and_custom_text(args, store)

    if args.input_if_template_ref is not None:
        raise ConfigurationError(
            "Invalid parameters, cannot provide a config ref when extending a conversation.\n"
            'Use `sc -e "<your_prompt>."`'
        )

    conversation = store.load_conversation(args.name)
    if conversation is not None:
        return conversation, args.input_or_template_ref
    if args.name:
        raise ConfigurationError(f"Named conversation does not exist: {args.name}")
    prompt, custom_text = template_and_custom_text(args, store)
    # in extend mode the first arg is always customization text
    if custom_text is None:
        custom_text = args.input_or_template_ref
    return prompt, custom_text


def read_input(stdin: TextIO) -> str:
    if stdin.isatty():
        return ""
    return stdin.read()


# -------------------------
# Entry points
# -------------------------

def _report_usability(store: ConfigStore, stderr: TextIO) -> None:
    try:
        report_config_status(store.check_usable(), stderr)
    except SmartcatError as exc:
        logger.debug("Could not check config usability: %s", exc)


def run(
    args: argparse.Namespace,
    *,
    store: Optional[ConfigStore] = None,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
    adapter_factory: Callable[[ApiConfig], LLMAdapter] = LLMAdapter,
) -> int:
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    interactive = is_interactive()

    try:
        store = store or ConfigStore()
        created = store.ensure_config_files(announce=stderr if interactive else None)
        if store.api_configs_path in created and interactive:
            status = store.check_usable()
            report_config_status(status, stderr)
            if not status.usable:
                print(
                    "\nInstall Ollama or set an api key for at least one of the providers to get started, then come back!",
                    file=stderr,
                )
                return 1

        prompt, custom_text = select_prompt(args, store)

        raw_input = read_input(stdin)
        # no piped input: the customization text is the input
        if not raw_input:
            raw_input = custom_text or ""
            custom_text = None

        logger.debug("input: %s", raw_input)
        logger.debug("prompt customization text: %s", custom_text)

        prompt = customize_prompt(prompt, overrides_from_args(args), custom_text)

        orchestrator = Orchestrator(
            store,
            adapter_factory=adapter_factory,
            interactive=interactive,
        )
        new_prompt = orchestrator.run(prompt, raw_input, stdout, repeat_input=args.repeat_input)
        store.save_conversation(new_prompt, args.name)
    except UserDeclined:
        print("exiting...", file=stderr)
        return 0
    except SmartcatError as exc:
        print(f"Error: {exc}", file=stderr)
        if store is not None:
            _report_usability(store, stderr)
        return 1

    return 0


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    logger.debug("args: %s", args)

    sys.exit(run(args))


if __name__ == "__main__":
    main()
