"""
Structural extraction of Oracle PACKAGE bodies and specifications.

Routines are located by their header (``PROCEDURE name (...) IS|AS`` or
``FUNCTION name (...) RETURN type IS|AS``); the body runs until the END
that closes the routine's own BEGIN, found by counting BEGIN/CASE/END
keywords outside string literals and comments. Local routines declared
before that BEGIN are skipped as blocks of their own, and an END labelled
with another routine's name never closes the outer one.
"""
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ...utils.sql_preprocessing import find_matching_paren, split_top_level

_FLAGS = re.IGNORECASE | re.DOTALL

PACKAGE_BODY_HEADER = re.compile(
    r'CREATE\s+(?:OR\s+REPLACE\s+)?(?:EDITIONABLE\s+|NONEDITIONABLE\s+)?PACKAGE\s+BODY\s+'
    r'(?:"?\w+"?\.)?"?(\w+)"?\s+(?:IS|AS)\b\s*(.*)\bEND(?:\s+"?\1"?)?\s*;',
    _FLAGS,
)
PACKAGE_SPEC_HEADER = re.compile(
    r'CREATE\s+(?:OR\s+REPLACE\s+)?(?:EDITIONABLE\s+|NONEDITIONABLE\s+)?PACKAGE\s+(?!BODY\b)'
    r'(?:"?\w+"?\.)?"?(\w+)"?',
    _FLAGS,
)
ROUTINE_HEADER = re.compile(r'\b(PROCEDURE|FUNCTION)\s+"?(\w+)"?\s*', re.IGNORECASE)
RETURN_CLAUSE = re.compile(
    r"\s*RETURN\s+([\w.]+(?:%\w+)?(?:\s*\(\s*\d+(?:\s*,\s*\d+)?(?:\s+(?:BYTE|CHAR))?\s*\))?)"
    r"(?:\s+(?:DETERMINISTIC|PIPELINED|PARALLEL_ENABLE|RESULT_CACHE))*",
    re.IGNORECASE,
)
IS_AS = re.compile(r"\s*\b(?:IS|AS)\b\s*", re.IGNORECASE)
BLOCK_TOKEN = re.compile(
    r"'(?:[^']|'')*'|--[^\n]*|/\*.*?\*/"
    r"|\b(?P<routine>PROCEDURE|FUNCTION)\b"
    r"|\b(?P<open>BEGIN|CASE)\b"
    r"|\b(?P<end>END)\b(?:\s+(?P<kind>IF|LOOP|CASE)\b)?",
    _FLAGS,
)
END_TAIL = re.compile(r'(?:\s+"?(?P<label>\w+)"?)?\s*;')
PARAMETER = re.compile(
    r'^"?(\w+)"?\s+(?:(IN\s+OUT|IN|OUT)\s+)?(?:NOCOPY\s+)?(.+?)(?:\s*(?::=|\bDEFAULT\b)\s*(.+))?$',
    _FLAGS,
)
SPEC_MEMBER = re.compile(r'\b(PROCEDURE|FUNCTION|TYPE)\s+"?(\w+)"?', re.IGNORECASE)


@dataclass(frozen=True)
class Parameter:
    name: str
    mode: str = "IN"
    data_type: str = ""
    default: Optional[str] = None


@dataclass(frozen=True)
class ExtractedRoutine:
    kind: str
    name: str
    parameters: str
    body: str
    return_type: Optional[str] = None

    @property
    def is_function(self) -> bool:
        return self.kind == "FUNCTION"

    def parsed_parameters(self) -> List[Parameter]:
        return parse_parameters(self.parameters)


@dataclass
class PackageBody:
    name: str
    body: str
    header_found: bool
    routines: List[ExtractedRoutine] = field(default_factory=list)


@dataclass(frozen=True)
class Signature:
    parameters: str
    return_type: Optional[str]
    body_start: int


@dataclass
class RoutineSections:
    declarations: str
    statements: str
    local_routines: List[ExtractedRoutine] = field(default_factory=list)


def parse_parameters(raw: str) -> List[Parameter]:
    """Parse a raw parameter list (without the outer parentheses)."""
    parameters: List[Parameter] = []
    for part in split_top_level(raw):
        part = " ".join(part.split())
        if not part:
            continue
        match = PARAMETER.match(part)
        if not match:
            parameters.append(Parameter(name=part))
            continue
        name, mode, data_type, default = match.groups()
        mode = " ".join((mode or "IN").upper().split())
        parameters.append(Parameter(name=name, mode=mode, data_type=data_type.strip(),
                                    default=default.strip() if default else None))
    return parameters


def find_block_end(text: str, start: int, name: Optional[str] = None) -> Optional[Tuple[int, int]]:
    """
    Find the END closing the first BEGIN at or after *start*.

    Local PROCEDURE/FUNCTION definitions met before that BEGIN are skipped
    as whole blocks. When *name* is given, an END labelled with a different
    name does not close the block.

    Returns:
        (index of the END keyword, index just past the terminating ``;``),
        or None when the block is not closed.
    """
    depth = 0
    seen_begin = False
    pos = start
    while True:
        token = BLOCK_TOKEN.search(text, pos)
        if not token:
            return None
        pos = token.end()
        if token.group("routine"):
            if depth or seen_begin:
                continue
            header = ROUTINE_HEADER.match(text, token.start())
            signature = read_signature(text, header) if header else None
            if signature is None:
                continue
            nested = find_block_end(text, signature.body_start, header.group(2))
            if nested is None:
                return None
            pos = nested[1]
        elif token.group("open"):
            depth += 1
            if token.group("open").upper() == "BEGIN":
                seen_begin = True
        elif token.group("end"):
            if token.group("kind") and token.group("kind").upper() in ("IF", "LOOP"):
                continue
            depth -= 1
            if depth <= 0 and seen_begin:
                tail = END_TAIL.match(text, token.end())
                label = tail.group("label") if tail else None
                if name and label and label.lower() != name.lower():
                    depth = 0
                    continue
                return token.start(), tail.end() if tail else token.end()


def read_signature(text: str, header: re.Match) -> Optional[Signature]:
    """
    Read the parameter list, RETURN clause and IS|AS after a routine header.

    Returns None for anything that is not a definition: forward
    declarations, calls, and headers with an unclosed parameter list.
    """
    kind = header.group(1).upper()
    cursor = header.end()
    parameters = ""
    if cursor < len(text) and text[cursor] == "(":
        close = find_matching_paren(text, cursor)
        if close == -1:
            return None
        parameters = text[cursor + 1:close].strip()
        cursor = close + 1

    return_type = None
    if kind == "FUNCTION":
        returns = RETURN_CLAUSE.match(text, cursor)
        if not returns:
            return None
        return_type = " ".join(returns.group(1).split())
        cursor = returns.end()

    is_as = IS_AS.match(text, cursor)
    if not is_as:
        return None
    return Signature(parameters=parameters, return_type=return_type, body_start=is_as.end())


def _routine(text: str, header: re.Match, signature: Signature, end_keyword: int) -> ExtractedRoutine:
    return ExtractedRoutine(
        kind=header.group(1).upper(),
        name=header.group(2),
        parameters=signature.parameters,
        body=text[signature.body_start:end_keyword].strip(),
        return_type=signature.return_type,
    )


def extract_routines(body: str) -> List[ExtractedRoutine]:
    """Return every PROCEDURE/FUNCTION definition found in *body*, in order."""
    routines: List[ExtractedRoutine] = []
    pos = 0
    while True:
        header = ROUTINE_HEADER.search(body, pos)
        if not header:
            break
        signature = read_signature(body, header)
        if signature is None:
            # Forward declaration or a call, not a definition
            pos = header.end()
            continue

        bounds = find_block_end(body, signature.body_start, header.group(2))
        if bounds is None:
            break
        end_keyword, after = bounds
        routines.append(_routine(body, header, signature, end_keyword))
        pos = after
    return routines


def split_routine_body(body: str) -> RoutineSections:
    """
    Split a routine body at its own BEGIN.

    Local PROCEDURE/FUNCTION definitions are lifted out of the declaration
    section into ``local_routines``. A body without BEGIN is returned whole
    as statements.
    """
    kept: List[str] = []
    local_routines: List[ExtractedRoutine] = []
    copied = 0
    pos = 0
    while True:
        token = BLOCK_TOKEN.search(body, pos)
        if not token:
            return RoutineSections(declarations="", statements=body.strip())
        pos = token.end()
        if token.group("routine"):
            header = ROUTINE_HEADER.match(body, token.start())
            signature = read_signature(body, header) if header else None
            if signature is None:
                continue
            bounds = find_block_end(body, signature.body_start, header.group(2))
            if bounds is None:
                return RoutineSections(declarations="", statements=body.strip())
            kept.append(body[copied:token.start()])
            local_routines.append(_routine(body, header, signature, bounds[0]))
            copied = pos = bounds[1]
        elif token.group("open") and token.group("open").upper() == "BEGIN":
            kept.append(body[copied:token.start()])
            declarations = "\n".join(part.strip() for part in kept if part.strip())
            return RoutineSections(declarations=declarations, statements=body[token.end():].strip(),
                                   local_routines=local_routines)


def parse_package_body(sql: str) -> PackageBody:
    """
    Split a ``CREATE PACKAGE BODY`` statement into its name and body.

    When the header is not recognised the whole input is treated as the
    body of ``unknown_package``.
    """
    match = PACKAGE_BODY_HEADER.search(sql)
    if match:
        package = PackageBody(name=match.group(1), body=match.group(2), header_found=True)
    else:
        package = PackageBody(name="unknown_package", body=sql, header_found=False)
    package.routines = extract_routines(package.body)
    return package


def parse_package_spec(sql: str) -> Tuple[str, List[Tuple[str, str]]]:
    """Return the package name and its declared (kind, name) members."""
    header = PACKAGE_SPEC_HEADER.search(sql)
    name = header.group(1) if header else "unknown_package"
    start = header.end() if header else 0
    members = [(m.group(1).upper(), m.group(2)) for m in SPEC_MEMBER.finditer(sql, start)]
    return name, members
