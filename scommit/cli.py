"""Command line interface for scommit."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from .config import load_config, save_config
from .core import ScommitWorkflow
from .exceptions import ConfigError, ScommitError
from .git import find_git_repo_root

RED = "\033[91m"
RESET = "\033[0m"


class CLI:
    """argparse front end that drives :class:`ScommitWorkflow`."""

    def __init__(self) -> None:
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="scommit",
            description="Smart git commit helper",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Preview actions without committing or pushing",
        )
        parser.add_argument(
            "--no-stage",
            action="store_true",
            help="Skip the git add -A step and use existing staged changes",
        )
        parser.add_argument(
            "--no-push",
            action="store_true",
            help="Skip pushing to the upstream remote",
        )
        parser.add_argument(
            "--skip-pull",
            action="store_true",
            help="Skip pulling/rebasing even if branch is behind upstream",
        )
        parser.add_argument(
            "-m",
            "--message",
            help="Custom commit subject (auto body will still be added)",
        )
        parser.add_argument(
            "--no-ai",
            action="store_true",
            help="Disable AI generation even if an API key is present",
        )
        parser.add_argument(
            "--model",
            help="Override the model (default: gpt-4o-mini or env SCOMMIT_MODEL)",
        )
        parser.add_argument("--endpoint", help="OpenAI-compatible API base URL")
        parser.add_argument(
            "--api-key-env",
            help="Environment variable holding the API key",
        )
        parser.add_argument(
            "--timeout",
            type=float,
            dest="request_timeout",
            help="AI request timeout in seconds",
        )
        parser.add_argument(
            "--repo-path",
            default=None,
            help="Path to the Git repository (default: current directory)",
        )
        parser.add_argument(
            "--save-config",
            action="store_true",
            help="Persist the effective configuration to .scommit/config.json",
        )
        parser.add_argument("--debug", action="store_true", help="Verbose output")
        parser.add_argument(
            "--profile",
            action="store_true",
            help="Print timing for each workflow phase",
        )
        return parser

    def run(self, args: Optional[list[str]] = None) -> int:
        try:
            parsed = self.parser.parse_args(args)
        except SystemExit as exc:
            return int(exc.code or 0)

        if parsed.debug:
            logging.basicConfig(
                level=logging.DEBUG, format="DEBUG(%(name)s): %(message)s"
            )

        raw_repo = parsed.repo_path or os.environ.get("SCOMMIT_GIT_REPO_PATH")
        repo_hint = Path(raw_repo).expanduser() if raw_repo else None
        repo_root = find_git_repo_root(repo_hint)
        if repo_root is None:
            self._print_error(f"Not a Git repository: {repo_hint or Path.cwd()}")
            return 1

        overrides = {
            "model": parsed.model,
            "endpoint": parsed.endpoint,
            "api_key_env": parsed.api_key_env,
            "repo_path": str(repo_root),
            "request_timeout": parsed.request_timeout,
        }
        if parsed.no_ai:
            overrides["use_ai"] = False
        try:
            config = load_config(repo_root=repo_root, overrides=overrides)
        except ConfigError as e:
            self._print_error(str(e))
            return 2

        if parsed.save_config:
            path = save_config(config, repo_root)
            print(f"Saved configuration to {path}")

        if parsed.debug:
            ai_state = "enabled" if config.ai_enabled() else "disabled"
            print(f"DEBUG: model={config.model} ai={ai_state} repo={repo_root}")

        try:
            workflow = ScommitWorkflow(
                repo_path=str(repo_root),
                config=config,
                dry_run=parsed.dry_run,
                no_stage=parsed.no_stage,
                no_push=parsed.no_push,
                skip_pull=parsed.skip_pull,
                message=parsed.message,
                debug=parsed.debug,
                profile=parsed.profile,
            )
            workflow.execute_workflow()
        except ScommitError as e:
            self._print_error(str(e))
            return 1
        return 0

    @staticmethod
    def _print_error(message: str) -> None:
        print(f"{RED}Error:{RESET} {message}", file=sys.stderr)


def main(argv: Optional[list[str]] = None) -> int:
    return CLI().run(argv)


if __name__ == "__main__":
    sys.exit(main())
