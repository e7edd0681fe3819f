"""
Typst syntax tree utilities.

A small recursive-descent parser for Typst source. Markup is scanned for
embedded code (`#...`); show rules and plain embedded expressions are
parsed into a tree of SyntaxNode values, other statements (`#let`,
`#import`, `#set`, ...) are kept as opaque `code` nodes.

Node kinds:
- markup, content-block: markup with embedded expressions as children
- show-rule: [selector,] transform
- func-call: callee, args
- args, group: positional / named / spread items
- named: `name` holds the argument name, child is the value
- field-access: `name` holds the field, child is the target
- ident, string, number, label, code-block, code, closure, unary, binary
- error: a show rule or expression that could not be parsed, or the
  trailing item of a file that ends inside an open construct
"""
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

# Keywords whose statements are kept opaque
OPAQUE_KEYWORDS = {
    "let", "set", "import", "include", "if", "for", "while",
    "return", "break", "continue", "show",
}
UNARY_KEYWORDS = {"not", "context"}
SYMBOL_OPS = ["==", "!=", "<=", ">=", "+=", "-=", "*=", "/=", "+", "-", "*", "/", "<", ">", "="]
WORD_OPS = ["and", "or", "in"]


class TypstSyntaxError(ValueError):
    """Raised when Typst source cannot be parsed."""

    def __init__(self, message: str, pos: int, unterminated: bool = False):
        super().__init__(f"{message} (at offset {pos})")
        self.pos = pos
        self.unterminated = unterminated


@dataclass
class SyntaxNode:
    kind: str
    text: str
    start: int
    end: int
    children: List["SyntaxNode"] = field(default_factory=list)
    name: Optional[str] = None

    def children_of_kind(self, kind: str) -> Iterator["SyntaxNode"]:
        return (child for child in self.children if child.kind == kind)

    def walk(self, kind: Optional[str] = None) -> Iterator["SyntaxNode"]:
        """Pre-order traversal, optionally filtered by node kind."""
        if kind is None or self.kind == kind:
            yield self
        for child in self.children:
            yield from child.walk(kind)


def _is_ident_start(c: str) -> bool:
    return c.isalpha() or c == "_"


def _is_ident_continue(c: str) -> bool:
    return bool(c) and (c.isalnum() or c in "_-")


class _Parser:
    def __init__(self, source: str):
        self.src = source
        self.pos = 0
        self.depth = 0  # open (, [ or { groups inside code

    # -- low level ---------------------------------------------------------

    def peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        return self.src[idx] if idx < len(self.src) else ""

    def startswith(self, s: str) -> bool:
        return self.src.startswith(s, self.pos)

    def at_end(self) -> bool:
        return self.pos >= len(self.src)

    def node(self, kind: str, start: int, children=(), name: Optional[str] = None) -> SyntaxNode:
        return SyntaxNode(kind, self.src[start:self.pos], start, self.pos, list(children), name)

    def read_ident(self) -> str:
        start = self.pos
        while not self.at_end() and _is_ident_continue(self.peek()):
            self.pos += 1
        return self.src[start:self.pos]

    def peek_ident(self) -> str:
        save = self.pos
        word = self.read_ident()
        self.pos = save
        return word

    def skip_line_comment(self):
        end = self.src.find("\n", self.pos)
        self.pos = len(self.src) if end == -1 else end

    def skip_block_comment(self):
        start = self.pos
        self.pos += 2
        nesting = 1
        while nesting:
            if self.at_end():
                raise TypstSyntaxError("unterminated block comment", start, unterminated=True)
            if self.startswith("/*"):
                nesting += 1
                self.pos += 2
            elif self.startswith("*/"):
                nesting -= 1
                self.pos += 2
            else:
                self.pos += 1

    def skip_string(self):
        start = self.pos
        self.pos += 1
        while True:
            if self.at_end():
                raise TypstSyntaxError("unterminated string", start, unterminated=True)
            c = self.peek()
            if c == "\\":
                self.pos += 2
            elif c == '"':
                self.pos += 1
                return
            else:
                self.pos += 1

    def skip_raw(self):
        start = self.pos
        ticks = 0
        while self.peek() == "`":
            ticks += 1
            self.pos += 1
        if ticks == 2:
            return
        fence = "`" * ticks
        end = self.src.find(fence, self.pos)
        if end == -1:
            raise TypstSyntaxError("unterminated raw text", start, unterminated=True)
        self.pos = end + ticks

    def skip_math(self):
        start = self.pos
        self.pos += 1
        while True:
            if self.at_end():
                raise TypstSyntaxError("unterminated equation", start, unterminated=True)
            c = self.peek()
            if c == "\\":
                self.pos += 2
            elif c == '"':
                self.skip_string()
            elif c == "$":
                self.pos += 1
                return
            else:
                self.pos += 1

    def skip_trivia(self, newlines: Optional[bool] = None):
        """Skip whitespace and comments; newlines only inside a group."""
        if newlines is None:
            newlines = self.depth > 0
        while not self.at_end():
            c = self.peek()
            if c in " \t\r" or (newlines and c == "\n"):
                self.pos += 1
            elif self.startswith("//"):
                self.skip_line_comment()
            elif self.startswith("/*"):
                self.skip_block_comment()
            else:
                return

    def skip_code(self, closer: Optional[str] = None):
        """Skip code up to `closer` (consumed) or, without one, to the end of the statement."""
        open_pos = self.pos
        while True:
            if self.at_end():
                if closer:
                    raise TypstSyntaxError(f"unclosed delimiter, expected {closer!r}", open_pos, unterminated=True)
                return
            c = self.peek()
            if closer is None and c == "\n":
                return
            if closer is None and c == ";":
                self.pos += 1
                return
            if c == closer:
                self.pos += 1
                return
            if closer is None and c in ")]}":
                return
            if closer is None and c == "," and self.depth > 0:
                return
            if self.startswith("//"):
                self.skip_line_comment()
            elif self.startswith("/*"):
                self.skip_block_comment()
            elif c == '"':
                self.skip_string()
            elif c == "`":
                self.skip_raw()
            elif c == "(":
                self.pos += 1
                self.skip_code(")")
            elif c == "{":
                self.pos += 1
                self.skip_code("}")
            elif c == "[":
                self.pos += 1
                self.parse_markup_body("]")
            else:
                self.pos += 1

    # -- markup ------------------------------------------------------------

    def parse_markup_body(self, closer: Optional[str] = None) -> List[SyntaxNode]:
        """Scan markup, collecting embedded expressions, until `closer` or EOF.

        At the top level (no closer) a construct left open at EOF becomes an
        `error` node running to the end of the source; nested bodies raise
        so the enclosing top-level item is the one marked as broken.
        """
        open_pos = self.pos
        children: List[SyntaxNode] = []
        brackets = 0
        while True:
            item_start = self.pos
            try:
                if self.step_markup(children, closer, open_pos):
                    return children
            except TypstSyntaxError as e:
                if closer or not e.unterminated:
                    raise
                self.pos = len(self.src)
                children.append(self.node("error", item_start))
                return children
            if self.src[item_start:self.pos] == "[":
                brackets += 1
            elif self.src[item_start:self.pos] == "]":
                if brackets:
                    brackets -= 1
                elif closer == "]":
                    return children

    def step_markup(self, children: List[SyntaxNode], closer: Optional[str], open_pos: int) -> bool:
        """Consume one markup item; True at the end of the body."""
        if self.at_end():
            if closer:
                raise TypstSyntaxError("unclosed content block", open_pos, unterminated=True)
            return True
        c = self.peek()
        if c == "\\":
            self.pos += 2
        elif self.startswith("http://") or self.startswith("https://"):
            while not self.at_end() and not self.peek().isspace() and self.peek() not in "[]":
                self.pos += 1
        elif self.startswith("//"):
            self.skip_line_comment()
        elif self.startswith("/*"):
            self.skip_block_comment()
        elif c == "`":
            self.skip_raw()
        elif c == "$":
            self.skip_math()
        elif c == "#" and self._starts_code(self.peek(1)):
            self.pos += 1
            children.append(self.parse_embedded())
        else:
            self.pos += 1
        return False

    @staticmethod
    def _starts_code(c: str) -> bool:
        return bool(c) and (_is_ident_start(c) or c in "{[(\"")

    def parse_embedded(self) -> SyntaxNode:
        start = self.pos - 1
        word = self.peek_ident() if _is_ident_start(self.peek()) else ""
        if word == "show":
            return self.parse_show(start)
        if word in OPAQUE_KEYWORDS:
            self.skip_code()
            return self.node("code", start)
        depth, self.depth = self.depth, 0
        try:
            if word in UNARY_KEYWORDS:
                # `#context expr` takes one atomic operand in markup
                self.pos += len(word)
                self.skip_trivia()
                operand = self.parse_postfix(embedded=True)
                return self.node("unary", start, [operand], name=word)
            return self.parse_postfix(embedded=True)
        except TypstSyntaxError as e:
            if e.unterminated:
                raise
            self.pos = start + 1
            return self.node("error", start)
        finally:
            self.depth = depth

    def parse_show(self, start: int) -> SyntaxNode:
        self.pos += len("show")
        body = self.pos
        depth, self.depth = self.depth, 0
        try:
            children = []
            self.skip_trivia()
            if self.peek() != ":":
                children.append(self.parse_expr())
                self.skip_trivia()
                if self.peek() != ":":
                    raise TypstSyntaxError("expected colon in show rule", self.pos)
            self.pos += 1
            self.skip_trivia(newlines=True)
            children.append(self.parse_expr())
            return self.node("show-rule", start, children)
        except TypstSyntaxError as e:
            if e.unterminated:
                raise
            self.pos = body
            self.skip_code()
            return self.node("error", start)
        finally:
            self.depth = depth

    # -- code --------------------------------------------------------------

    def parse_expr(self) -> SyntaxNode:
        start = self.pos
        lhs = self.parse_unary()
        while True:
            save = self.pos
            self.skip_trivia()
            if self.startswith("=>"):
                self.pos += 2
                self.skip_trivia(newlines=True)
                body = self.parse_expr()
                return self.node("closure", start, [lhs, body])
            op = self.match_binary_op()
            if op is None:
                self.pos = save
                return lhs
            self.skip_trivia(newlines=True)
            rhs = self.parse_unary()
            lhs = self.node("binary", start, [lhs, rhs], name=op)

    def match_binary_op(self) -> Optional[str]:
        if self.startswith("not") and not _is_ident_continue(self.peek(3)):
            save = self.pos
            self.pos += 3
            self.skip_trivia()
            if self.startswith("in") and not _is_ident_continue(self.peek(2)):
                self.pos += 2
                return "not in"
            self.pos = save
            return None
        for op in WORD_OPS:
            if self.startswith(op) and not _is_ident_continue(self.peek(len(op))):
                self.pos += len(op)
                return op
        for op in SYMBOL_OPS:
            if self.startswith(op) and not self.startswith("=>"):
                self.pos += len(op)
                return op
        return None

    def parse_unary(self) -> SyntaxNode:
        start = self.pos
        c = self.peek()
        if c and c in "+-" and not self.peek(1).isspace():
            self.pos += 1
            operand = self.parse_unary()
            return self.node("unary", start, [operand], name=c)
        word = self.peek_ident() if _is_ident_start(c) else ""
        if word in UNARY_KEYWORDS:
            self.pos += len(word)
            self.skip_trivia()
            operand = self.parse_expr() if word == "context" else self.parse_unary()
            return self.node("unary", start, [operand], name=word)
        if word in OPAQUE_KEYWORDS:
            self.skip_code()
            return self.node("code", start)
        return self.parse_postfix()

    def parse_postfix(self, embedded: bool = False) -> SyntaxNode:
        start = self.pos
        expr = self.parse_primary()
        while True:
            save = self.pos
            if not embedded:
                self.skip_trivia()
            if self.peek() == "." and _is_ident_start(self.peek(1)):
                self.pos += 1
                name = self.read_ident()
                expr = self.node("field-access", start, [expr], name=name)
                continue
            self.pos = save
            if self.peek() == "(" or self.peek() == "[":
                args_start = self.pos
                items = self.parse_items(")") if self.peek() == "(" else []
                while self.peek() == "[":
                    block_start = self.pos
                    block = self.parse_content_block()
                    items.append(self.node("positional", block_start, [block]))
                args = self.node("args", args_start, items)
                expr = self.node("func-call", start, [expr, args])
                continue
            return expr

    def parse_primary(self) -> SyntaxNode:
        start = self.pos
        c = self.peek()
        if _is_ident_start(c):
            self.read_ident()
            return self.node("ident", start)
        if c.isdigit():
            while self.peek().isdigit() or (self.peek() == "." and self.peek(1).isdigit()):
                self.pos += 1
            while self.peek().isalpha() or self.peek() == "%":
                self.pos += 1
            return self.node("number", start)
        if c == '"':
            self.skip_string()
            return self.node("string", start)
        if c == "(":
            items = self.parse_items(")")
            return self.node("group", start, items)
        if c == "{":
            self.pos += 1
            self.skip_code("}")
            return self.node("code-block", start)
        if c == "[":
            return self.parse_content_block()
        if c == "<" and _is_ident_start(self.peek(1)):
            end = self.src.find(">", self.pos)
            label = self.src[self.pos + 1:end] if end != -1 else ""
            if label and all(_is_ident_continue(ch) or ch in ".:" for ch in label):
                self.pos = end + 1
                return self.node("label", start)
        if c == "$":
            self.skip_math()
            return self.node("equation", start)
        if c == "`":
            self.skip_raw()
            return self.node("raw", start)
        if self.at_end():
            raise TypstSyntaxError("expected expression, found end of file", start, unterminated=True)
        raise TypstSyntaxError(f"expected expression, found {c!r}", start)

    def parse_content_block(self) -> SyntaxNode:
        start = self.pos
        self.pos += 1
        children = self.parse_markup_body("]")
        return self.node("content-block", start, children)

    def parse_items(self, closer: str) -> List[SyntaxNode]:
        """Parse `( item, name: value, ..spread )` starting at the open paren."""
        open_pos = self.pos
        self.pos += 1
        self.depth += 1
        items: List[SyntaxNode] = []
        try:
            while True:
                self.skip_trivia(newlines=True)
                if self.at_end():
                    raise TypstSyntaxError(f"unclosed delimiter, expected {closer!r}", open_pos, unterminated=True)
                if self.peek() == closer:
                    self.pos += 1
                    return items
                items.append(self.parse_item())
                self.skip_trivia(newlines=True)
                if self.peek() == ",":
                    self.pos += 1
                elif self.peek() != closer and not self.at_end():
                    raise TypstSyntaxError(f"expected comma, found {self.peek()!r}", self.pos)
        finally:
            self.depth -= 1

    def parse_item(self) -> SyntaxNode:
        start = self.pos
        if self.startswith(".."):
            self.pos += 2
            value = self.parse_expr()
            return self.node("spread", start, [value])
        if _is_ident_start(self.peek()) or self.peek() == '"':
            save = self.pos
            if self.peek() == '"':
                self.skip_string()
                name = self.src[save + 1:self.pos - 1]
            else:
                name = self.read_ident()
            self.skip_trivia(newlines=True)
            if self.peek() == ":":
                self.pos += 1
                self.skip_trivia(newlines=True)
                value = self.parse_expr()
                return self.node("named", start, [value], name=name)
            self.pos = save
        value = self.parse_expr()
        return self.node("positional", start, [value])


def parse(source: str) -> SyntaxNode:
    """Parse Typst markup into a `markup` root node.

    A string, raw block, comment or bracket left open at the end of the
    file does not abort parsing: the item it belongs to becomes an `error`
    node and everything before it is kept.
    """
    parser = _Parser(source)
    children = parser.parse_markup_body()
    return SyntaxNode("markup", source, 0, len(source), children)
