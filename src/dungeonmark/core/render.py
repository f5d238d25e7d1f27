"""Render stage: hand the finished journal to renderers, in or out of process"""

import logging
import os
import shlex
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel

from dungeonmark.config import Config
from dungeonmark.core.models import Journal
from dungeonmark.errors import RendererError


logger = logging.getLogger(__name__)


class RenderContext(BaseModel):
    """Everything a renderer receives; serialized as the JSON payload of CommandRenderer."""
    root:        Path       # directory holding journal.toml
    destination: Path       # output directory for this renderer; may not exist or be empty
    config:      Config
    journal:     Journal


class Renderer(ABC):
    name: str

    @abstractmethod
    def render(self, ctx: RenderContext) -> None:
        raise NotImplementedError


class CommandRenderer(Renderer):
    """Runs an external program and writes the RenderContext to its stdin as JSON.

    stdout and stderr are inherited. The build waits for the process to exit; there is no
    timeout, so a renderer that never exits blocks the build.
    """

    def __init__(self, name: str, command: str):
        self.name = name
        self.command = command

    def build_command(self, root: Path) -> list[str]:
        """Split the command string; a program containing a path separator is relative to root."""
        try:
            parts = shlex.split(self.command)
        except ValueError as e:
            raise RendererError(f"Renderer {self.name} has an invalid command: {self.command!r}") from e
        if not parts:
            raise RendererError(f"Renderer {self.name} has an empty command")

        program = parts[0]
        if os.sep in program or (os.altsep and os.altsep in program):
            program = str(Path(root) / program)
        return [program, *parts[1:]]

    def render(self, ctx: RenderContext) -> None:
        args = self.build_command(ctx.root)
        payload = ctx.model_dump_json(by_alias=True)
        logger.info("Running renderer %s: %s", self.name, shlex.join(args))
        try:
            process = subprocess.Popen(args, stdin=subprocess.PIPE)
        except OSError as e:
            raise RendererError(f"Renderer {self.name} could not be started: {args[0]}") from e

        # writes the whole payload, closes stdin, then waits for exit
        process.communicate(payload.encode("utf-8"))
        if process.returncode != 0:
            raise RendererError(f"Renderer {self.name} failed (exit status {process.returncode}).")
