"""Shared fixtures: isolated ``sys.path``, host configuration, plugin packages."""
from __future__ import annotations

import sys
import textwrap
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from plughost.plugins.host import PluginHost
from plughost.schema.config import HostConfig

MakePlugin = Callable[..., Path]


def _manifest_source(
    name: str,
    commands: Sequence[str],
    sources: Sequence[str],
    extra: str,
) -> str:
    lines = [
        "from pathlib import Path",
        "",
        "from plughost.plugins import api",
        "",
        "with Path(__file__).with_name('runs.log').open('a') as _log:",
        "    _log.write('run\\n')",
        "",
        "",
        "class Command(api.CommandHandler):",
        f"    plugin = {name!r}",
        "",
        "    def exec(self, command, args):",
        "        return {'plugin': self.plugin, 'command': command, 'args': list(args)}",
        "",
        "",
        "class Source(api.SourceHandler):",
        f"    plugin = {name!r}",
        "",
        "",
        f"for _name in {list(commands)!r}:",
        "    api.declare_command(_name, Command)",
        f"for _name in {list(sources)!r}:",
        "    api.declare_source(_name, Source)",
        "",
    ]
    return "\n".join(lines) + textwrap.dedent(extra)


@pytest.fixture(autouse=True)
def _isolated_sys_path(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "path", list(sys.path))


@pytest.fixture
def config(tmp_path: Path) -> HostConfig:
    return HostConfig(user_dir=str(tmp_path / "home"))


@pytest.fixture
def host(config: HostConfig) -> PluginHost:
    return PluginHost(config)


@pytest.fixture
def plugin_src(tmp_path: Path) -> Path:
    """Directory holding plugin packages before they are installed."""
    src = tmp_path / "plugin-src"
    src.mkdir()
    return src


@pytest.fixture
def make_plugin(plugin_src: Path) -> MakePlugin:
    """Factory writing a plugin package under ``plugin_src``.

    ``make_plugin(name, commands=(), sources=(), extra="", manifest=None,
    lib=False)`` — *manifest* replaces the generated manifest entirely;
    ``manifest=False`` leaves the manifest out.  Each execution of a
    generated manifest appends a line to ``runs.log`` next to it.
    """

    def _make(
        name: str,
        commands: Sequence[str] = (),
        sources: Sequence[str] = (),
        extra: str = "",
        manifest: str | bool | None = None,
        lib: bool = False,
    ) -> Path:
        package = plugin_src / name
        package.mkdir(parents=True, exist_ok=True)
        if manifest is None:
            text = _manifest_source(name, commands, sources, extra)
        elif manifest is False:
            text = None
        else:
            text = textwrap.dedent(str(manifest))
        if text is not None:
            (package / "plugins.py").write_text(text, encoding="utf-8")
        if lib:
            (package / "lib").mkdir(exist_ok=True)
        return package

    return _make


def manifest_runs(package_dir: Path) -> int:
    """Number of times the generated manifest in *package_dir* has executed."""
    log = package_dir / "runs.log"
    if not log.exists():
        return 0
    return len(log.read_text(encoding="utf-8").splitlines())


@pytest.fixture
def runs() -> Callable[[Path], int]:
    return manifest_runs
