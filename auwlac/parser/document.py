"""
Builds the `SourceDocument` from parsed statements: collects imports,
recognises components (functions and arrow functions that return markup),
parses component bodies into `component-body` blocks and extracts the
symbols every code block declares and references.
"""

import os
import re
from typing import List, Optional, Tuple

from lark import Token

from ..config.config import REACTIVE_CONSTRUCTORS
from ..data_structures import Span
from ..exceptions import AuwlaCompilerError, ErrorCode
from ..logging import get_logger
from .classes import CodeBlock, ComponentDecl, ImportDeclaration, ImportSpecifier, MarkupNode, PageMetadata, Parameter, SourceDocument
from .directives import parse_directives
from .helpers import pre_parsing_checks
from .parser import FunctionDef, Statement, VariableDef, parse_markup, parse_statements
from .scanner import MARKUP, NAME, PUNCT, LineIndex, ScanToken, TokenGroup, group_tokens, split_items, tokenize
from .symbols import declared_names, free_identifiers, pattern_names

logger = get_logger("parser")


def _blank_prefix(source_text: str, start: int, end: int) -> str:
    """Returns source[start:end] preceded by blanks that keep every offset, line and column."""
    return re.sub(r"[^\n]", " ", source_text[:start]) + source_text[start:end]


def _component_name_from_path(file_path: str) -> str:
    stem = os.path.splitext(os.path.basename(file_path))[0]
    name = "".join(part[:1].upper() + part[1:] for part in re.split(r"[^A-Za-z0-9]+", stem) if part)
    if not name or not name[0].isalpha() or file_path == "<stdin>":
        return "DefaultComponent"
    return name


class DocumentBuilder:
    def __init__(self, source_text: str, file_path: str, metadata: PageMetadata):
        self.source_text = source_text
        self.file_path = file_path
        self.metadata = metadata
        self.index = LineIndex(source_text)

    # --- Helper methods ---
    def _span(self, start: int, end: int) -> Span:
        s_line, s_col = self.index.line_col(start)
        e_line, e_col = self.index.line_col(end)
        return Span(s_line=s_line, s_col=s_col, e_line=e_line, e_col=e_col, s_pos=start, e_pos=end, file_path=self.file_path)

    def _group(self, token: Token) -> TokenGroup:
        return group_tokens(tokenize(self.source_text, token.start_pos, token.end_pos))[0]

    def _markup_at(self, start: int, end: int) -> MarkupNode:
        line, column = self.index.line_col(start)
        return parse_markup(self.source_text[start:end], self.file_path, origin=(line, column, start))

    # --- Build ---
    def build(self, statements: List[Statement]) -> SourceDocument:
        self._check_default_exports(statements)

        imports: List[ImportDeclaration] = []
        top_level_blocks: List[CodeBlock] = []
        components: List[ComponentDecl] = []
        module_statements: List[CodeBlock] = []
        default_references: List[Tuple[Token, Statement]] = []

        for statement in statements:
            if statement.kind == "import":
                imports.append(self._import(statement))
            elif statement.kind == "return":
                raise AuwlaCompilerError(ErrorCode.PARSE_RETURN_OUTSIDE_FUNCTION, span=self._span(statement.start, statement.end))
            elif statement.kind == "passthrough":
                module_statements.append(self._code_block(statement, "top-level"))
            elif statement.kind == "default_expression":
                tokens = statement.payload
                if len(tokens) == 1 and tokens[0].type == NAME:
                    default_references.append((tokens[0], statement))
                    continue
                component = self._component_from_expression(_component_name_from_path(self.file_path), tokens, statement)
                if component:
                    components.append(component)
                else:
                    module_statements.append(self._code_block(statement, "top-level"))
            else:
                component = self._component_from_statement(statement)
                if component:
                    components.append(component)
                else:
                    top_level_blocks.append(self._code_block(statement, "top-level"))

        # `export default Name` promotes a component declared earlier in the file.
        for token, statement in default_references:
            position = next((i for i, c in enumerate(components) if c.name == token.value), None)
            if position is None:
                module_statements.append(self._code_block(statement, "top-level"))
                continue
            components[position] = components[position].model_copy(update={"is_default": True, "is_exported": True})

        self._check_components(components)

        document = SourceDocument(
            file_path=self.file_path,
            metadata=self.metadata,
            imports=imports,
            top_level_blocks=top_level_blocks,
            components=components,
            module_statements=module_statements,
        )
        logger.debug(
            "Parsed %s: %d import(s), %d top-level block(s), %d component(s), page=%s",
            self.file_path,
            len(imports),
            len(top_level_blocks),
            len(components),
            self.metadata.is_page,
        )
        return document

    def _check_default_exports(self, statements: List[Statement]):
        defaults = [s for s in statements if s.is_default]
        if len(defaults) > 1:
            first, second = (self.source_text[s.start : s.end].split("\n", 1)[0] for s in defaults[:2])
            raise AuwlaCompilerError(
                ErrorCode.PARSE_MULTIPLE_DEFAULT_EXPORTS,
                span=self._span(defaults[1].start, defaults[1].end),
                first=first,
                second=second,
            )

    def _check_components(self, components: List[ComponentDecl]):
        if not components:
            raise AuwlaCompilerError(ErrorCode.PARSE_NO_COMPONENT, file_path=self.file_path)
        if self.metadata.is_page and not any(c.is_default for c in components):
            names = ", ".join(c.name for c in components)
            raise AuwlaCompilerError(ErrorCode.PARSE_PAGE_NOT_DEFAULT, span=components[0].span, names=names)

    # --- Imports ---
    def _import(self, statement: Statement) -> ImportDeclaration:
        tokens: List[Token] = statement.payload
        type_only = tokens[0].value == "type" and len(tokens) > 1 and tokens[1].value != "from"
        clause = tokens[1:] if type_only else tokens
        strings = [t for t in tokens if t.type == "STRING"]
        source = strings[-1].value[1:-1] if strings else ""

        specifiers: List[ImportSpecifier] = []
        i = 0
        while i < len(clause) and not (clause[i].type == NAME and clause[i].value == "from"):
            token = clause[i]
            if token.type == NAME:
                specifiers.append(ImportSpecifier(imported="default", local=token.value, is_type=type_only))
            elif token.type == "OP" and token.value == "*" and i + 2 < len(clause):
                specifiers.append(ImportSpecifier(imported="*", local=clause[i + 2].value, is_type=type_only))
                i += 2
            elif token.type == "BRACE":
                specifiers.extend(self._named_specifiers(token, type_only))
            i += 1

        return ImportDeclaration(
            source=source,
            specifiers=specifiers,
            type_only=type_only,
            source_text=self.source_text[statement.start : statement.end],
            span=self._span(statement.start, statement.end),
        )

    def _named_specifiers(self, brace: Token, type_only: bool) -> List[ImportSpecifier]:
        specifiers = []
        for segment in split_items(self._group(brace).items):
            names = [item.value for item in segment if isinstance(item, ScanToken) and item.kind == NAME]
            is_type = type_only
            if len(names) > 1 and names[0] == "type":
                is_type = True
                names = names[1:]
            if not names:
                continue
            local = names[-1] if len(names) >= 3 and names[-2] == "as" else names[0]
            specifiers.append(ImportSpecifier(imported=names[0], local=local, is_type=is_type))
        return specifiers

    # --- Components ---
    def _function_name(self, signature: List[Token]) -> Optional[str]:
        items = [t for t in signature if not (t.type == "OP" and t.value == "*")]
        return items[0].value if items and items[0].type == NAME else None

    def _parameters(self, head: Token) -> List[Parameter]:
        if head.type == NAME:
            return [Parameter(source_text=head.value, names=[head.value], span=self._span(head.start_pos, head.end_pos))]
        group = self._group(head)
        parameters = []
        for segment in split_items(group.items):
            start, end = segment[0].start, segment[-1].end
            names = pattern_names(TokenGroup(group.open, segment, group.close))
            parameters.append(Parameter(source_text=self.source_text[start:end], names=names, span=self._span(start, end)))
        return parameters

    def _component_from_statement(self, statement: Statement) -> Optional[ComponentDecl]:
        if statement.kind == "function":
            fn: FunctionDef = statement.payload
            name = self._function_name(fn.signature)
            if name is None:
                if not statement.is_default:
                    return None
                name = _component_name_from_path(self.file_path)
            parens = [t for t in fn.signature if t.type == "PAREN"]
            body_blocks, markup = self._parse_body(fn.body)
            if markup is None:
                return None
            return self._component(name, statement, self._parameters(parens[0]) if parens else [], body_blocks, markup)

        if statement.kind == "variable":
            var: VariableDef = statement.payload
            if var.binding.type != NAME or not var.initializer:
                return None
            return self._component_from_expression(var.binding.value, var.initializer, statement)

        return None

    def _component_from_expression(self, name: str, tokens: List[Token], statement: Statement) -> Optional[ComponentDecl]:
        i = 1 if len(tokens) > 1 and tokens[0].type == NAME and tokens[0].value == "async" else 0
        head = tokens[i]

        if head.type == NAME and head.value == "function":
            parens = [t for t in tokens[i:] if t.type == "PAREN"]
            if not parens or tokens[-1].type != "BRACE":
                return None
            body_blocks, markup = self._parse_body(tokens[-1])
            parameters = self._parameters(parens[0])
        else:
            arrow = next((k for k in range(i + 1, len(tokens)) if tokens[k].type == "ARROW"), None)
            if arrow is None or head.type not in ("PAREN", NAME):
                return None
            parameters = self._parameters(head)
            body = tokens[arrow + 1 :]
            if len(body) == 1 and body[0].type == "BRACE":
                body_blocks, markup = self._parse_body(body[0])
            else:
                body_blocks, markup = [], self._markup_from_tokens(body)

        if markup is None:
            return None
        return self._component(name, statement, parameters, body_blocks, markup)

    def _component(self, name: str, statement: Statement, parameters: List[Parameter], body_blocks: List[CodeBlock], markup: MarkupNode) -> ComponentDecl:
        return ComponentDecl(
            name=name,
            is_default=statement.is_default,
            is_exported=statement.is_exported,
            parameters=parameters,
            body_blocks=body_blocks,
            returned_markup=markup,
            span=self._span(statement.start, statement.end),
        )

    def _parse_body(self, brace: Token) -> Tuple[List[CodeBlock], Optional[MarkupNode]]:
        """Splits a function body into code blocks and the markup it returns."""
        start, end = brace.start_pos + 1, brace.end_pos - 1
        statements = parse_statements(_blank_prefix(self.source_text, start, end), self.file_path)
        blocks: List[CodeBlock] = []
        for statement in statements:
            if statement.kind == "return":
                # Anything after the return is unreachable.
                return blocks, self._markup_from_tokens(statement.tokens)
            blocks.append(self._code_block(statement, "component-body"))
        return blocks, None

    def _markup_from_tokens(self, tokens: List[Token]) -> Optional[MarkupNode]:
        if len(tokens) != 1:
            return None
        token = tokens[0]
        if token.type == MARKUP:
            return self._markup_at(token.start_pos, token.end_pos)
        if token.type != "PAREN":
            return None
        inner = tokenize(self.source_text, token.start_pos + 1, token.end_pos - 1)
        markup = [t for t in inner if t.kind == MARKUP]
        rest = [t for t in inner if t.kind != MARKUP]
        if len(markup) == 1 and all(t.kind == PUNCT and t.value in "()" for t in rest):
            return self._markup_at(markup[0].start, markup[0].end)
        return None

    # --- Code blocks ---
    def _binding_names(self, binding: Token) -> List[str]:
        if binding.type == NAME:
            return [binding.value]
        return declared_names(self._group(binding))

    def _code_block(self, statement: Statement, origin: str) -> CodeBlock:
        if statement.kind in ("passthrough", "default_expression"):
            start = statement.start
        else:
            start = statement.code_start
        end = statement.end

        kind = "expression"
        declared: List[str] = []
        is_reactive = False
        if statement.kind == "function":
            kind = "function"
            name = self._function_name(statement.payload.signature)
            declared = [name] if name else []
        elif statement.kind == "variable":
            kind = "variable"
            var: VariableDef = statement.payload
            declared = self._binding_names(var.binding)
            init = var.initializer or []
            is_reactive = (
                len(init) > 1
                and init[0].type == NAME
                and init[0].value in REACTIVE_CONSTRUCTORS
                and (init[1].type == "PAREN" or init[1].value == "<")
            )

        scanned = tokenize(self.source_text, start, end)
        return CodeBlock(
            kind=kind,
            source_text=self.source_text[start:end],
            declared_symbol=declared[0] if declared else None,
            declared_symbols=declared,
            referenced_symbols=free_identifiers(self.source_text, start, end, exclude=declared),
            origin=origin,
            is_exported=statement.is_exported and statement.kind in ("function", "variable"),
            is_reactive_container=is_reactive,
            contains_markup=any(t.kind == MARKUP for t in scanned),
            span=self._span(start, end),
        )


def parse_component_source(source_text: str, file_path: str = "<stdin>") -> SourceDocument:
    """Parses a component file into a SourceDocument, raising AuwlaCompilerError on failure."""

    pre_parsing_checks(source_text, file_path)
    metadata = parse_directives(source_text)
    statements = parse_statements(source_text, file_path)
    return DocumentBuilder(source_text, file_path, metadata).build(statements)
