#!/usr/bin/env python3

import argparse
import keyword
import re
import sys
from collections.abc import Iterator
from dataclasses import dataclass, replace
from pathlib import Path

MAX_LINE_LENGTH = 120
INDENT_CHAR = " "
INDENT_SIZE = 4
INDENT_CHARS = {"space": " ", "tab": "\t"}

KEYWORDS = frozenset(keyword.kwlist) - {"False", "None", "True"}
KEYWORD_ALTERNATION = "|".join(sorted(KEYWORDS))

EXTRANEOUS_WHITESPACE_RE = re.compile(r"[\[({][ \t]|[ \t][\]}),;:](?!=)")
KEYWORD_RE = re.compile(rf"(\s*)\b(?:{KEYWORD_ALTERNATION})\b(\s*)")
OPERATOR_RE = re.compile(r"(?:[^,\s])(\s*)(?:[-+*/|!<=>%&^]+|:=)(\s*)")
WHITESPACE_AFTER_SEPARATOR_RE = re.compile(r"[,;:]\s*(?:  |\t)")

SEPARATORS = ",;:"
OPENING_BRACKETS = "([{"
CLOSING_BRACKETS = ")]}"
IMPORT_CALL_INDICATOR = " import("

RULES = {
    "E101": "indentation contains mixed spaces and tabs",
    "E111": "indentation is not a multiple of {indent_size}",
    "E112": "expected an indented block",
    "E113": "unexpected indentation",
    "E114": "indentation is not a multiple of {indent_size} (comment)",
    "E115": "expected an indented block (comment)",
    "E116": "unexpected indentation (comment)",
    "E201": "whitespace after '{char}'",
    "E202": "whitespace before '{char}'",
    "E203": "whitespace before '{char}'",
    "E221": "multiple spaces before operator",
    "E222": "multiple spaces after operator",
    "E223": "tab before operator",
    "E224": "tab after operator",
    "E231": "missing whitespace after '{char}'",
    "E241": "multiple spaces after '{char}'",
    "E242": "tab after '{char}'",
    "E271": "multiple spaces after keyword",
    "E272": "multiple spaces before keyword",
    "E273": "tab after keyword",
    "E274": "tab before keyword",
    "E275": "missing whitespace after keyword",
    "E303": "too many blank lines ({count})",
    "E304": "blank lines found after function decorator ({count})",
    "E401": "multiple imports on one line",
    "E501": "line too long ({length} > {max_length} characters)",
    "W191": "indentation contains tabs",
    "W291": "trailing whitespace",
    "W292": "no newline at end of file",
    "W293": "blank line contains whitespace",
    "W391": "blank line at end of file",
}


@dataclass(frozen=True)
class Config:
    max_line_length: int = MAX_LINE_LENGTH
    indent_char: str = INDENT_CHAR
    indent_size: int = INDENT_SIZE


DEFAULT_CONFIG = Config()


@dataclass(frozen=True)
class Diagnostic:
    code: str
    message: str
    column: int


@dataclass(frozen=True)
class LineContext:
    line_number: int
    total_lines: int
    previous_line: str = ""
    blank_run: int = 0

    @classmethod
    def first(cls, total_lines: int) -> "LineContext":
        return cls(line_number=1, total_lines=total_lines)

    def advance(self, line: str) -> "LineContext":
        # previous_line stays on the line before a blank run.
        if is_blank(line):
            return replace(
                self, line_number=self.line_number + 1, blank_run=self.blank_run + 1
            )
        return replace(
            self, line_number=self.line_number + 1, previous_line=line, blank_run=0
        )


@dataclass
class Violation:
    file: Path
    line: int
    diagnostic: Diagnostic

    def format(self) -> str:
        diagnostic = self.diagnostic
        return (
            f"./{self.file}:{self.line}:{diagnostic.column} "
            f"{diagnostic.code} {diagnostic.message}"
        )


@dataclass(frozen=True)
class PatternMatch:
    start: int
    end: int
    text: str
    groups: tuple[tuple[int, int, str], ...]


def diagnostic(code: str, column: int, **fields: object) -> Diagnostic:
    return Diagnostic(code=code, message=RULES[code].format(**fields), column=column)


def find_matches(
    pattern: re.Pattern[str], text: str, pos: int = 0
) -> Iterator[PatternMatch]:
    for match in pattern.finditer(text, pos):
        groups = tuple(
            (match.start(idx), match.end(idx), match.group(idx) or "")
            for idx in range(1, pattern.groups + 1)
        )
        yield PatternMatch(match.start(), match.end(), match.group(0), groups)


def is_blank(line: str) -> bool:
    return not line.strip()


def leading_whitespace(line: str) -> str:
    return line[: len(line) - len(line.lstrip(" \t"))]


def indent_level(line: str, indent_char: str) -> int:
    return len(line) - len(line.lstrip(indent_char))


def code_portion(line: str) -> str:
    out: list[str] = []
    quote = ""
    escape = False

    for ch in line:
        if quote:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == quote:
                quote = ""
            out.append(ch)
            continue

        if ch == "#":
            break
        if ch in {'"', "'"}:
            quote = ch
        out.append(ch)

    return "".join(out).rstrip()


def check_maximum_line_length(
    line: str, max_line_length: int = MAX_LINE_LENGTH
) -> list[Diagnostic]:
    length = len(line)
    if length <= max_line_length:
        return []
    return [
        diagnostic("E501", max_line_length, length=length, max_length=max_line_length)
    ]


def check_tabs_or_spaces(line: str, indent_char: str = INDENT_CHAR) -> list[Diagnostic]:
    for offset, char in enumerate(leading_whitespace(line)):
        if char != indent_char:
            return [diagnostic("E101", offset)]
    return []


def check_tabs_obsolete(line: str) -> list[Diagnostic]:
    offset = leading_whitespace(line).find("\t")
    if offset == -1:
        return []
    return [diagnostic("W191", offset)]


def check_trailing_whitespace(line: str) -> list[Diagnostic]:
    stripped = line.rstrip()
    if stripped == line:
        return []
    if stripped:
        return [diagnostic("W291", len(stripped))]
    return [diagnostic("W293", 0)]


def check_trailing_blank_lines(
    line: str, line_number: int, total_lines: int
) -> list[Diagnostic]:
    if line_number != total_lines:
        return []

    stripped = line.rstrip()
    if not stripped:
        return [diagnostic("W391", 0)]
    # Lines arrive already newline-split, so this fires on any clean final line.
    if stripped == line:
        return [diagnostic("W292", len(line))]
    return []


def check_extraneous_whitespace(line: str) -> list[Diagnostic]:
    code = code_portion(line)
    diagnostics: list[Diagnostic] = []

    for match in find_matches(
        EXTRANEOUS_WHITESPACE_RE, code, len(leading_whitespace(code))
    ):
        char = match.text.strip()
        # Column is match start + 1: the space for E201, the bracket otherwise.
        if match.text[-1] in " \t":
            diagnostics.append(diagnostic("E201", match.start + 1, char=char))
            continue
        if match.start > 0 and code[match.start - 1] == ",":
            continue
        rule = "E202" if char in CLOSING_BRACKETS else "E203"
        diagnostics.append(diagnostic(rule, match.start + 1, char=char))

    return diagnostics


def check_whitespace_around_keywords(line: str) -> list[Diagnostic]:
    code = code_portion(line)
    diagnostics: list[Diagnostic] = []

    for match in find_matches(KEYWORD_RE, code, len(leading_whitespace(code))):
        (before_start, _, before), (after_start, _, after) = match.groups

        if "\t" in before:
            diagnostics.append(diagnostic("E274", before_start))
        elif len(before) > 1:
            diagnostics.append(diagnostic("E272", before_start))

        if "\t" in after:
            diagnostics.append(diagnostic("E273", after_start))
        elif len(after) > 1:
            diagnostics.append(diagnostic("E271", after_start))

    return diagnostics


def check_missing_whitespace_after_import_keyword(line: str) -> list[Diagnostic]:
    code = code_portion(line)
    start = len(leading_whitespace(code))
    if not code.startswith("from ", start):
        return []

    found = code.find(IMPORT_CALL_INDICATOR, start)
    if found == -1:
        return []
    return [diagnostic("E275", found + len(IMPORT_CALL_INDICATOR) - 1)]


def is_slice_colon(before: str) -> bool:
    open_brackets: list[str] = []
    for ch in before:
        if ch in OPENING_BRACKETS:
            open_brackets.append(ch)
        elif ch in CLOSING_BRACKETS and open_brackets:
            open_brackets.pop()

    for ch in reversed(open_brackets):
        if ch == "[":
            return True
        if ch == "{":
            return False
    return False


def check_missing_whitespace(line: str) -> list[Diagnostic]:
    code = code_portion(line)
    diagnostics: list[Diagnostic] = []

    for index, char in enumerate(code[:-1]):
        if char not in SEPARATORS:
            continue
        next_char = code[index + 1]
        if next_char.isspace():
            continue

        if char == ":" and is_slice_colon(code[:index]):
            continue
        # Single-element tuple: (3,)
        if char == "," and next_char == ")":
            continue
        if char == ":" and next_char == "=":
            continue

        diagnostics.append(diagnostic("E231", index, char=char))

    return diagnostics


def check_whitespace_around_operator(line: str) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []

    for match in find_matches(OPERATOR_RE, code_portion(line)):
        (before_start, _, before), (after_start, _, after) = match.groups

        if "\t" in before:
            diagnostics.append(diagnostic("E223", before_start))
        elif len(before) > 1:
            diagnostics.append(diagnostic("E221", before_start))

        if "\t" in after:
            diagnostics.append(diagnostic("E224", after_start))
        elif len(after) > 1:
            diagnostics.append(diagnostic("E222", after_start))

    return diagnostics


def check_whitespace_after_comma(line: str) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []

    for match in find_matches(WHITESPACE_AFTER_SEPARATOR_RE, code_portion(line)):
        separator = match.text[0]
        rule = "E242" if "\t" in match.text else "E241"
        diagnostics.append(diagnostic(rule, match.start + 1, char=separator))

    return diagnostics


def check_imports_on_separate_lines(line: str) -> list[Diagnostic]:
    code = code_portion(line)
    start = len(leading_whitespace(code))
    if not code.startswith("import ", start):
        return []

    found = code.find(",", start)
    if found == -1 or ";" in code[found:]:
        return []
    return [diagnostic("E401", found)]


def check_blank_lines(line: str, context: LineContext) -> list[Diagnostic]:
    if is_blank(line):
        return []
    # Fires even when no blank line separates the decorator from this line.
    if context.previous_line.startswith("@"):
        return [diagnostic("E304", 0, count=context.blank_run)]
    if context.blank_run > 2:
        return [diagnostic("E303", 0, count=context.blank_run)]
    return []


def check_indentation(
    line: str,
    context: LineContext,
    indent_char: str = INDENT_CHAR,
    indent_size: int = INDENT_SIZE,
) -> list[Diagnostic]:
    if is_blank(line):
        return []

    diagnostics: list[Diagnostic] = []
    level = indent_level(line, indent_char)
    previous_level = indent_level(context.previous_line, indent_char)
    indent_expect = context.previous_line.strip().endswith(":")
    is_comment = line.lstrip().startswith("#")

    if level % indent_size:
        rule = "E114" if is_comment else "E111"
        diagnostics.append(diagnostic(rule, 0, indent_size=indent_size))

    if indent_expect and level <= previous_level:
        diagnostics.append(diagnostic("E115" if is_comment else "E112", 0))
    elif not indent_expect and level > previous_level:
        diagnostics.append(diagnostic("E116" if is_comment else "E113", 0))

    return diagnostics


def check_line(
    line: str, context: LineContext, config: Config = DEFAULT_CONFIG
) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    diagnostics.extend(check_maximum_line_length(line, config.max_line_length))
    diagnostics.extend(check_tabs_or_spaces(line, config.indent_char))
    diagnostics.extend(check_tabs_obsolete(line))
    diagnostics.extend(check_trailing_whitespace(line))
    diagnostics.extend(
        check_trailing_blank_lines(line, context.line_number, context.total_lines)
    )
    diagnostics.extend(check_extraneous_whitespace(line))
    diagnostics.extend(check_whitespace_around_keywords(line))
    diagnostics.extend(check_missing_whitespace_after_import_keyword(line))
    diagnostics.extend(check_missing_whitespace(line))
    diagnostics.extend(check_whitespace_around_operator(line))
    diagnostics.extend(check_whitespace_after_comma(line))
    diagnostics.extend(check_imports_on_separate_lines(line))
    diagnostics.extend(check_blank_lines(line, context))
    diagnostics.extend(
        check_indentation(line, context, config.indent_char, config.indent_size)
    )
    return diagnostics


def iter_line_contexts(lines: list[str]) -> Iterator[tuple[str, LineContext]]:
    context = LineContext.first(len(lines))
    for line in lines:
        yield line, context
        context = context.advance(line)


def check_lines(
    lines: list[str], config: Config = DEFAULT_CONFIG
) -> list[tuple[int, Diagnostic]]:
    results: list[tuple[int, Diagnostic]] = []
    for line, context in iter_line_contexts(lines):
        for found in check_line(line, context, config):
            results.append((context.line_number, found))
    return results


def split_lines(text: str) -> list[str]:
    if not text:
        return []
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def collect_violations(file: Path, config: Config = DEFAULT_CONFIG) -> list[Violation]:
    with file.open(encoding="utf-8", newline="") as handle:
        lines = split_lines(handle.read())
    return [
        Violation(file=file, line=line_number, diagnostic=found)
        for line_number, found in check_lines(lines, config)
    ]


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Line-oriented style checker for Python source files."
    )
    parser.add_argument(
        "--max-line-length",
        type=positive_int,
        default=MAX_LINE_LENGTH,
        help=f"Longest allowed line, in characters (default: {MAX_LINE_LENGTH}).",
    )
    parser.add_argument(
        "--indent-char",
        choices=sorted(INDENT_CHARS),
        default="space",
        help="Canonical indentation character (default: space).",
    )
    parser.add_argument(
        "--list-rules",
        action="store_true",
        help="Print every diagnostic code with its message and exit.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 when any violation is found.",
    )
    parser.add_argument("files", nargs="*", help="Python files to check.")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> Config:
    indent_char = INDENT_CHARS[args.indent_char]
    # One tab is one indentation step.
    indent_size = 1 if indent_char == "\t" else INDENT_SIZE
    return Config(
        max_line_length=args.max_line_length,
        indent_char=indent_char,
        indent_size=indent_size,
    )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if args.list_rules:
        for code in sorted(RULES):
            print(f"{code}\t{RULES[code]}")
        return 0

    if not args.files:
        print("No files given; pass one or more paths to check.", file=sys.stderr)
        return 2

    config = build_config(args)
    found = 0
    for path in args.files:
        file = Path(path)
        try:
            violations = collect_violations(file, config)
        except (OSError, UnicodeDecodeError) as exc:
            print(f"error: cannot read {file}: {exc}", file=sys.stderr)
            return 2

        for violation in violations:
            print(violation.format())
        found += len(violations)

    if args.strict and found:
        print(f"\nFound {found} style violation(s).", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
