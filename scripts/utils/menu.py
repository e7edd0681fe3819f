"""
Terminal form built on rich.

A Menu is a vertical list of items:
- labels (unselectable header lines)
- scroll fields (pick one of a fixed list of options)
- string fields (free text, optionally required)
- a button that submits the form

Menu.run() walks the fields in order, shows a summary and asks for
confirmation on the button. Declining starts another pass with the
current values as defaults; Ctrl-C or EOF cancels and exits.
"""
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from rich import get_console
from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.table import Table
from rich.text import Text


@dataclass
class MenuItem:
    kind: str  # "label" | "scroll" | "string" | "button"
    name: str
    options: List[str] = field(default_factory=list)
    value: str = ""
    allow_empty: bool = True
    style: str = ""


class _Lines:
    """Line reader for Prompt: strips newlines, raises EOFError at end of input."""

    def __init__(self, stream):
        self._stream = stream

    def readline(self) -> str:
        line = self._stream.readline()
        if not line:
            raise EOFError
        return line.rstrip("\r\n")


class Menu:
    def __init__(self, items: List[MenuItem], console: Optional[Console] = None):
        self.items = items
        self.console = console or get_console()

    def _item(self, name: str) -> MenuItem:
        for item in self.items:
            if item.name == name and item.kind in ("scroll", "string"):
                return item
        raise KeyError(f"no field named {name!r}")

    def selection_value(self, name: str) -> str:
        """Current value of a scroll or string field."""
        return self._item(name).value

    def run(self, stream=None):
        """Block until the form is submitted; exit the process on cancel."""
        lines = _Lines(stream) if stream is not None else None
        try:
            while True:
                for item in self.items:
                    if item.kind == "label":
                        self.console.print(Text(item.name, style=item.style))
                    elif item.kind == "scroll":
                        self._ask_scroll(item, lines)
                    elif item.kind == "string":
                        self._ask_string(item, lines)
                    elif item.kind == "button":
                        self.console.print(self._summary())
                        if Confirm.ask(Text(item.name, style=item.style), console=self.console,
                                       default=True, stream=lines):
                            return
        except (KeyboardInterrupt, EOFError):
            self.console.print()
            self.console.print("[red]cancelled[/red]")
            raise SystemExit(1)

    def _ask_scroll(self, item: MenuItem, lines):
        current = item.options.index(item.value) + 1
        for i, option in enumerate(item.options, 1):
            marker = ">" if i == current else " "
            self.console.print(Text.assemble(f" {marker} {i}. ", Text.from_ansi(option)))
        while True:
            answer = Prompt.ask(f"[bold]{item.name}[/bold]", console=self.console,
                                default=str(current), stream=lines).strip()
            option = self._match_option(item, answer)
            if option is not None:
                item.value = option
                return
            self.console.print(f"[red]Please pick 1-{len(item.options)} or an option name[/red]")

    @staticmethod
    def _match_option(item: MenuItem, answer: str) -> Optional[str]:
        if answer.isdigit() and 1 <= int(answer) <= len(item.options):
            return item.options[int(answer) - 1]
        for option in item.options:
            if Text.from_ansi(option).plain == answer:
                return option
        return None

    def _ask_string(self, item: MenuItem, lines):
        while True:
            answer = Prompt.ask(f"[bold]{item.name}[/bold]", console=self.console,
                                default=item.value, show_default=bool(item.value), stream=lines)
            if answer or item.allow_empty:
                item.value = answer
                return
            self.console.print(f"[red]{item.name} cannot be empty[/red]")

    def _summary(self) -> Table:
        table = Table(show_header=False, box=None, padding=(0, 1))
        table.add_column(style="cyan")
        table.add_column()
        for item in self.items:
            if item.kind in ("scroll", "string"):
                table.add_row(item.name, Text.from_ansi(item.value))
        return table


class MenuBuilder:
    """Fluent builder: MenuBuilder().add_label(...).add_string(...).build()"""

    def __init__(self):
        self.items: List[MenuItem] = []

    def add_item(self, item: MenuItem) -> "MenuBuilder":
        self.items.append(item)
        return self

    def add_label(self, text: str) -> "MenuBuilder":
        return self.add_item(MenuItem("label", text))

    def add_scroll(self, name: str, values: Iterable[str]) -> "MenuBuilder":
        options = list(values)
        if not options:
            raise ValueError(f"scroll field {name!r} needs at least one option")
        return self.add_item(MenuItem("scroll", name, options=options, value=options[0]))

    def add_string(self, name: str, default: str = "", allow_empty: bool = True) -> "MenuBuilder":
        return self.add_item(MenuItem("string", name, value=default, allow_empty=allow_empty))

    def add_button(self, name: str) -> "MenuBuilder":
        return self.add_item(MenuItem("button", name))

    def colorize_prev(self, style: str) -> "MenuBuilder":
        """Apply a rich style (e.g. "green") to the most recently added item."""
        if self.items:
            self.items[-1].style = style
        return self

    def build(self, console: Optional[Console] = None) -> Menu:
        return Menu(self.items, console=console)
