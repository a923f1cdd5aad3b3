#!/usr/bin/env python3
"""Example: Quickstart

Writes a small plugin package to a temporary directory, installs it, and
dispatches a command and a source type to it.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install plughost
"""
from __future__ import annotations

import logging
import tempfile
import textwrap
from pathlib import Path

from plughost import HostConfig, PluginHost

MANIFEST = textwrap.dedent(
    """
    from plughost.plugins import api


    @api.command("greet")
    class Greet(api.CommandHandler):
        def exec(self, command, args):
            return "Hello, " + (" ".join(args) or "world") + "!"


    @api.source("mirror")
    class Mirror(api.SourceHandler):
        def options_to_lock(self):
            return {"branch": self.options.get("branch", "main")}
    """
)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    with tempfile.TemporaryDirectory() as tmp:
        package = Path(tmp) / "src" / "greeter"
        package.mkdir(parents=True)
        (package / "plugins.py").write_text(MANIFEST, encoding="utf-8")

        host = PluginHost(HostConfig(user_dir=str(Path(tmp) / "home")))
        host.install(["greeter"], {"path": str(package)})

        print("Installed at:", host.installed("greeter"))
        print("Provides `greet`:", host.has_command("greet"))
        print(host.exec_command("greet", ["plugin", "author"]))

        mirror = host.resolve_source("mirror", {"uri": "https://mirror.example/repo"})
        locked = mirror.to_lock()
        print("Lock entry:", locked)
        print("Round trip equal:", host.source_from_lock({**locked, "type": "mirror"}) == mirror)


if __name__ == "__main__":
    main()
