"""
Custom lark lexers for the two grammars.

`SourceLexer` feeds `source.lark`. Bracketed regions reach the parser as one
PAREN, BRACE or BRACKET token, markup as one MARKUP token, and statement-head
keywords are only recognised where a statement starts. Statement ends are
made explicit with `_EOS` tokens following the automatic semicolon
insertion rules of the language.

`MarkupLexer` feeds `markup.lark` with the tokens of a single markup tree.
"""

from typing import Iterator, List, Optional

from lark import Token
from lark.lexer import Lexer

from ..exceptions import ErrorCode
from .scanner import (
    ATTR_NAME_RE,
    NAME,
    PUNCT,
    TAG_NAME_RE,
    Item,
    LineIndex,
    ScanError,
    ScanToken,
    TokenGroup,
    group_tokens,
    skip_attribute_string,
    skip_group,
    skip_space,
    tokenize,
)

GROUP_TYPES = {"(": "PAREN", "{": "BRACE", "[": "BRACKET"}
DECLARATION_KEYWORDS = {"const", "let", "var"}

# A statement keeps going across a line break when the previous line ends in
# one of these, or the next line starts with one of these.
CONTINUATION_END_OPS = {
    ".", "?.", "?", ":", ",", "+", "-", "*", "/", "%", "**", "&&", "||", "??", "&", "|", "^",
    "<", ">", "<=", ">=", "==", "!=", "===", "!==", "<<", ">>", ">>>", "!", "~", "...", "@",
    "+=", "-=", "*=", "/=", "%=", "&&=", "||=", "??=", "&=", "|=", "^=", "**=",
}
CONTINUATION_START_OPS = {
    ".", "?.", "?", ":", ",", "+", "-", "*", "/", "%", "**", "&&", "||", "??", "&", "|", "^",
    "<", ">", "<=", ">=", "==", "!=", "===", "!==", "<<", ">>", ">>>",
    "+=", "-=", "*=", "/=", "%=", "&&=", "||=", "??=",
}
CONTINUATION_END_NAMES = {"new", "typeof", "await", "extends", "implements", "instanceof", "in", "of", "as", "satisfies", "void", "delete", "keyof", "from"}
CONTINUATION_START_NAMES = {"else", "catch", "finally", "as", "satisfies", "instanceof", "in", "of", "extends", "implements", "from"}
OPEN_KEYWORD_TYPES = {"IMPORT", "EXPORT", "DEFAULT", "ASYNC", "FUNCTION", "DECL"}


class SourceLexer(Lexer):
    def __init__(self, lexer_conf):
        pass

    def lex(self, data: str) -> Iterator[Token]:
        index = LineIndex(data)
        items = group_tokens(tokenize(data))
        statement: List[Token] = []
        awaiting_body = False
        seen_parameters = False

        def make(type_: str, start: int, end: int) -> Token:
            line, column = index.line_col(start)
            end_line, end_column = index.line_col(end)
            return Token(type_, data[start:end], start_pos=start, line=line, column=column, end_line=end_line, end_column=end_column, end_pos=end)

        def end_statement() -> Token:
            last = statement[-1]
            statement.clear()
            return make("_EOS", last.end_pos, last.end_pos)

        for i, item in enumerate(items):
            nxt = items[i + 1] if i + 1 < len(items) else None

            if isinstance(item, ScanToken) and item.kind == PUNCT and item.value == ";":
                if statement:
                    yield end_statement()
                awaiting_body = seen_parameters = False
                continue

            if statement and item.newline_before and not awaiting_body and self._breaks_statement(statement[-1], item):
                yield end_statement()

            type_ = self._classify(item, statement, nxt)
            token = make(type_, item.start, item.end)
            statement.append(token)
            yield token

            if type_ == "FUNCTION":
                awaiting_body, seen_parameters = True, False
            elif awaiting_body and type_ == "PAREN":
                seen_parameters = True
            elif awaiting_body and seen_parameters and type_ == "BRACE":
                # A function declaration ends with its body.
                awaiting_body = seen_parameters = False
                yield end_statement()

        if statement:
            yield end_statement()

    @staticmethod
    def _at_head(statement: List[Token]) -> bool:
        return all(t.type in ("EXPORT", "DEFAULT", "ASYNC") for t in statement)

    def _classify(self, item: Item, statement: List[Token], nxt: Optional[Item]) -> str:
        if isinstance(item, TokenGroup):
            return GROUP_TYPES[item.bracket]
        if item.kind == PUNCT:
            if item.value == "=":
                return "EQ"
            if item.value == "=>":
                return "ARROW"
            return "OP"
        if item.kind != NAME or not self._at_head(statement):
            return item.kind

        word = item.value
        previous = statement[-1].type if statement else None
        dynamic_import = (isinstance(nxt, TokenGroup) and nxt.bracket == "(") or (isinstance(nxt, ScanToken) and nxt.value == ".")
        if not statement and word == "import" and not dynamic_import:
            return "IMPORT"
        if not statement and word == "export":
            return "EXPORT"
        if not statement and word == "return":
            return "RETURN"
        if word == "default" and previous == "EXPORT":
            return "DEFAULT"
        if word == "async" and isinstance(nxt, ScanToken) and nxt.value == "function":
            return "ASYNC"
        if word == "function":
            return "FUNCTION"
        if word in DECLARATION_KEYWORDS and previous != "DEFAULT":
            return "DECL"
        return NAME

    @staticmethod
    def _breaks_statement(last: Token, item: Item) -> bool:
        if last.type in OPEN_KEYWORD_TYPES or last.type in ("EQ", "ARROW"):
            return False
        if last.type == "OP" and last.value in CONTINUATION_END_OPS:
            return False
        if last.type == NAME and last.value in CONTINUATION_END_NAMES:
            return False
        if isinstance(item, ScanToken):
            if item.kind == PUNCT and (item.value in CONTINUATION_START_OPS or item.value in ("=", "=>")):
                return False
            if item.kind == NAME and item.value in CONTINUATION_START_NAMES:
                return False
        return True


class MarkupLexer(Lexer):
    """
    Produces LT, LT_SLASH, GT, SLASH_GT, FRAG_OPEN, FRAG_CLOSE, TAG, ATTR,
    EQ, STRING, EXPR, SPREAD and TEXT tokens for one markup tree. Slots that
    hold only comments, like `{/* note */}`, produce no token.
    """

    def __init__(self, lexer_conf):
        pass

    def lex(self, data: str) -> Iterator[Token]:
        index = LineIndex(data)

        def make(type_: str, start: int, end: int, value: Optional[str] = None) -> Token:
            line, column = index.line_col(start)
            end_line, end_column = index.line_col(end)
            text = data[start:end] if value is None else value
            return Token(type_, text, start_pos=start, line=line, column=column, end_line=end_line, end_column=end_column, end_pos=end)

        def expression(start: int) -> Token:
            end = skip_group(data, start)
            # The token spans the text inside the braces.
            return make("EXPR", start + 1, end - 1)

        pos = skip_space(data, 0)
        tags: List[str] = []
        state = "children"
        closed = False

        while pos < len(data) and not closed:
            if state == "children":
                if data.startswith("</>", pos):
                    if not tags or tags[-1] != "":
                        raise ScanError(ErrorCode.PARSE_MISMATCHED_TAG, pos, found="", expected=tags[-1] if tags else "")
                    yield make("FRAG_CLOSE", pos, pos + 3)
                    tags.pop()
                    pos += 3
                    closed = not tags
                elif data.startswith("</", pos):
                    yield make("LT_SLASH", pos, pos + 2)
                    pos = skip_space(data, pos + 2)
                    state = "closing"
                elif data.startswith("<>", pos):
                    yield make("FRAG_OPEN", pos, pos + 2)
                    tags.append("")
                    pos += 2
                elif data[pos] == "<":
                    yield make("LT", pos, pos + 1)
                    pos += 1
                    state = "tag"
                elif not tags:
                    raise ScanError(ErrorCode.PARSE_MALFORMED_MARKUP, pos, details="Expected '<' to start the markup.")
                elif data[pos] == "{":
                    end = skip_group(data, pos)
                    if tokenize(data, pos + 1, end - 1):
                        yield expression(pos)
                    pos = end
                else:
                    end = pos
                    while end < len(data) and data[end] not in "<{":
                        end += 1
                    yield make("TEXT", pos, end)
                    pos = end

            elif state == "tag":
                match = TAG_NAME_RE.match(data, pos)
                if not match:
                    raise ScanError(ErrorCode.PARSE_MALFORMED_MARKUP, pos, details="Expected a tag name after '<'.")
                yield make("TAG", pos, match.end())
                tags.append(match.group())
                pos = match.end()
                state = "attributes"

            elif state == "attributes":
                pos = skip_space(data, pos)
                if data.startswith("/>", pos):
                    yield make("SLASH_GT", pos, pos + 2)
                    tags.pop()
                    pos += 2
                    closed = not tags
                    state = "children"
                elif data.startswith(">", pos):
                    yield make("GT", pos, pos + 1)
                    pos += 1
                    state = "children"
                elif data.startswith("{", pos):
                    end = skip_group(data, pos)
                    inner = data[pos + 1 : end - 1].strip()
                    if not inner.startswith("..."):
                        raise ScanError(ErrorCode.PARSE_MALFORMED_MARKUP, pos, details="Only spread expressions may appear between attributes.")
                    yield make("SPREAD", pos, end, inner[3:].strip())
                    pos = end
                else:
                    match = ATTR_NAME_RE.match(data, pos)
                    if not match:
                        raise ScanError(ErrorCode.PARSE_MALFORMED_MARKUP, pos, details=f"Unexpected character '{data[pos]}' in tag '<{tags[-1]}>'.")
                    yield make("ATTR", pos, match.end())
                    pos = skip_space(data, match.end())
                    if data.startswith("=", pos):
                        yield make("EQ", pos, pos + 1)
                        pos = skip_space(data, pos + 1)
                        if pos < len(data) and data[pos] in "'\"":
                            end = skip_attribute_string(data, pos)
                            yield make("STRING", pos, end, data[pos + 1 : end - 1])
                        elif data.startswith("{", pos):
                            end = skip_group(data, pos)
                            yield expression(pos)
                        else:
                            raise ScanError(ErrorCode.PARSE_MALFORMED_MARKUP, pos, details=f"Expected a value for attribute '{match.group()}'.")
                        pos = end

            elif state == "closing":
                match = TAG_NAME_RE.match(data, pos)
                found = match.group() if match else ""
                if not match or not tags or found != tags[-1]:
                    raise ScanError(ErrorCode.PARSE_MISMATCHED_TAG, pos, found=found, expected=tags[-1] if tags else "")
                yield make("TAG", pos, match.end())
                pos = skip_space(data, match.end())
                if not data.startswith(">", pos):
                    raise ScanError(ErrorCode.PARSE_MALFORMED_MARKUP, pos, details=f"Expected '>' to end '</{found}'.")
                yield make("GT", pos, pos + 1)
                tags.pop()
                pos += 1
                closed = not tags
                state = "children"

        if not closed:
            raise ScanError(ErrorCode.PARSE_MALFORMED_MARKUP, len(data), details="The markup is never closed.")
        if data[pos:].strip():
            raise ScanError(ErrorCode.PARSE_MALFORMED_MARKUP, pos, details="Unexpected content after the markup tree.")
