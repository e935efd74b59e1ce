"""Field rendering engine shared by the tabular and delimited dialects."""

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Context, Decimal
from enum import Enum, IntFlag
from string import Formatter
from typing import TextIO

# Placeholder values for the unused one of the two value arguments.
NOVAL = 0
DNOVAL = 0.0

_CENTS = Decimal("0.01")
# Wide enough to quantize any finite float to two decimals.
_ROUNDING = Context(prec=400, rounding=ROUND_HALF_UP)


class RenderContractError(AssertionError):
    """Raised when a caller passes templates and arguments that do not agree."""


class Dialect(Enum):
    """Output dialects."""

    TABULAR = "tabular"
    DELIMITED = "delimited"

    @property
    def separator(self) -> str:
        """Field separator of the dialect."""
        return "\t" if self is Dialect.TABULAR else ";"

    @property
    def always_terminates(self) -> bool:
        """Whether every rendered field ends its line."""
        return self is Dialect.TABULAR


class Layout(Enum):
    """Line layout: one line per record, or one line per report pass."""

    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


class RenderFlags(IntFlag):
    """Flags for a single render call."""

    NONE = 0
    USE_INT = 1
    NEWLINE = 2


@dataclass(slots=True, frozen=True)
class IntArgs:
    """Two integer template arguments."""

    a: int
    b: int = NOVAL


@dataclass(slots=True, frozen=True)
class TextArgs:
    """Two text template arguments."""

    a: str
    b: str = ""


TemplateArgs = IntArgs | TextArgs


def format_rate(value: float) -> str:
    """
    Format a rate with exactly two decimals.

    Rounds half away from zero on the shortest decimal representation of the
    float, so 12.345 gives "12.35" and 2.675 gives "2.68".
    """
    if not math.isfinite(value):
        return f"{value:.2f}"
    cents = Decimal(repr(float(value))).quantize(_CENTS, context=_ROUNDING)
    return format(cents, "f")


def _has_placeholders(template: str) -> bool:
    """Check if a template has replacement fields."""
    try:
        return any(name is not None for _, name, _, _ in Formatter().parse(template))
    except ValueError:
        # Unbalanced braces
        return True


def fill_template(template: str, args: TemplateArgs | None) -> str:
    """Substitute the argument pair into a template."""
    if args is None:
        if _has_placeholders(template):
            raise RenderContractError(f"template {template!r} expects arguments")
        return template

    if isinstance(args, IntArgs):
        values = (args.a, args.b)
        kind = int
    elif isinstance(args, TextArgs):
        values = (args.a, args.b)
        kind = str
    else:
        raise RenderContractError(f"unsupported template arguments: {args!r}")

    if not all(isinstance(v, kind) and not isinstance(v, bool) for v in values):
        raise RenderContractError(f"{type(args).__name__} holds non-{kind.__name__} values")

    try:
        return template.format(*values)
    except (IndexError, KeyError, ValueError, TypeError) as exc:
        raise RenderContractError(
            f"template {template!r} does not accept {type(args).__name__}: {exc}"
        ) from exc


class FieldRenderer:
    """
    Write labelled metric fields in the active dialect and layout.

    The renderer owns the line state: whether the next field starts a new
    output line. Call ``reset`` (or ``start_pass``) between independent
    report passes.
    """

    def __init__(
        self,
        stream: TextIO,
        dialect: Dialect = Dialect.TABULAR,
        layout: Layout = Layout.VERTICAL,
    ) -> None:
        """
        Initialize the FieldRenderer.

        Args:
            stream: Text stream the fields are written to.
            dialect: Output dialect.
            layout: Line layout.
        """
        self._stream = stream
        self._dialect = dialect
        self._layout = layout
        self._line_start = True

    @property
    def dialect(self) -> Dialect:
        """Get the active dialect."""
        return self._dialect

    @property
    def layout(self) -> Layout:
        """Get the active layout."""
        return self._layout

    @property
    def at_line_start(self) -> bool:
        """Check if the next field starts a new line."""
        return self._line_start

    def reset(self) -> None:
        """Make the next field start a new line."""
        self._line_start = True

    def start_pass(self, prefix: str) -> None:
        """
        Begin a report pass.

        In horizontal layout the prefix is written once here, since
        ``render`` never writes it in that layout. The line it opens is
        left for ``finish_pass`` to terminate, even if no field follows.
        """
        self.reset()
        if self._layout is Layout.HORIZONTAL:
            self._stream.write(prefix)
            self._line_start = False

    def finish_pass(self) -> None:
        """Terminate the current line if a field left it open."""
        if not self._line_start:
            self._stream.write("\n")
        self._line_start = True

    def render(
        self,
        prefix: str,
        flags: RenderFlags,
        tabular: str | None,
        delimited: str | None,
        args: TemplateArgs | None = None,
        int_value: int = NOVAL,
        float_value: float = DNOVAL,
    ) -> None:
        """
        Render one field.

        Writes ``[prefix]([sep template])sep value[newline]``. The template of
        the active dialect may be None, in which case the value is glued to
        the previous field.

        Args:
            prefix: Line leader, written when a vertical line starts.
            flags: USE_INT selects ``int_value``, NEWLINE ends the line.
            tabular: Template for the tabular dialect.
            delimited: Template for the delimited dialect.
            args: Values substituted into the selected template.
            int_value: Value written when USE_INT is set.
            float_value: Value written with two decimals otherwise.
        """
        dialect = self._dialect
        sep = dialect.separator
        parts: list[str] = []

        if self._line_start and self._layout is Layout.VERTICAL:
            parts.append(prefix)

        terminate = bool(flags & RenderFlags.NEWLINE) or dialect.always_terminates

        template = tabular if dialect is Dialect.TABULAR else delimited
        if template is not None:
            parts.append(sep)
            parts.append(fill_template(template, args))

        parts.append(sep)
        if flags & RenderFlags.USE_INT:
            if not isinstance(int_value, int) or isinstance(int_value, bool):
                raise RenderContractError(f"integer field got {int_value!r}")
            parts.append(str(int_value))
        else:
            parts.append(format_rate(float_value))

        if terminate:
            parts.append("\n")

        self._line_start = terminate
        self._stream.write("".join(parts))
