"""
Static configuration data for the auwla compiler.
This includes directive rules, the identifier stoplists used by the
dependency extractor, and the runtime vocabulary the generator may emit.
"""

import re

# --- Directives ---
# Directives are only read from `//` comment lines in the leading comment
# region of a file. `@page` takes an optional route path, the others a value.
PAGE_DIRECTIVE_PATTERN = re.compile(r"//.*@page(?:[/\s]+(.*))?$")

DIRECTIVE_CONFIG = {
    "title": {
        "pattern": re.compile(r"^//\s*@title\s+(.+)$", re.IGNORECASE),
        "field": "title",
    },
    "description": {
        "pattern": re.compile(r"^//\s*@description\s+(.+)$", re.IGNORECASE),
        "field": "description",
    },
    "guard": {
        "pattern": re.compile(r"^//\s*@guard\s+(.+)$", re.IGNORECASE),
        "field": "guard",
    },
}

# Component names (or file stems) that map to the root route.
HOME_COMPONENT_NAMES = {"home", "index", "homepage", "indexpage"}
PAGE_NAME_SUFFIX = "Page"

# --- Identifier classification ---
JS_KEYWORDS = {
    "break", "case", "catch", "class", "const", "continue", "debugger", "default",
    "delete", "do", "else", "export", "extends", "finally", "for", "function",
    "if", "import", "in", "instanceof", "new", "return", "super", "switch",
    "this", "throw", "try", "typeof", "var", "void", "while", "with", "yield",
    "let", "static", "enum", "await", "implements", "package", "protected",
    "interface", "private", "public", "async", "of", "as", "type", "from",
    "get", "set", "null", "true", "false", "undefined", "NaN", "Infinity",
    "readonly", "declare", "namespace", "keyof", "infer", "is", "satisfies",
    "abstract", "arguments",
}

TS_TYPE_NAMES = {"number", "string", "boolean", "any", "unknown", "never", "object", "symbol", "bigint"}

# Well-known globals and runtime entry points never count as data dependencies.
GLOBAL_STOPLIST = {
    "console", "window", "document", "globalThis", "navigator", "location", "history",
    "localStorage", "sessionStorage", "setTimeout", "setInterval", "clearTimeout",
    "clearInterval", "requestAnimationFrame", "cancelAnimationFrame", "queueMicrotask",
    "fetch", "alert", "confirm", "prompt", "parseInt", "parseFloat", "isNaN", "isFinite",
    "encodeURIComponent", "decodeURIComponent", "structuredClone", "require", "module",
    "exports", "process",
    "ref", "watch", "computed", "onMount", "onUnmount",
}

# Keywords that may precede an expression, so a following `<` starts markup
# and a following `/` starts a regular expression.
EXPRESSION_KEYWORDS = {"return", "yield", "await", "default", "case", "else", "do", "typeof", "void", "delete", "in", "of", "new", "throw"}

# --- Reactivity ---
REACTIVE_CONSTRUCTORS = ("ref", "computed", "watch")
REACTIVE_READ_SUFFIX = ".value"

# --- Runtime vocabulary ---
RUNTIME_MODULE = "auwla"
TEMPLATE_HELPER_MODULE = "auwla/template"
RUNTIME_VALUE_IMPORTS = ("Component", "ref", "watch")
RUNTIME_TYPE_IMPORTS = ("LayoutBuilder", "Ref")
LINK_COMPONENT = "Link"
BUILDER_PARAM = "ui"
BUILDER_TYPE = "LayoutBuilder"

TEMPLATE_HELPERS = {
    "if": "$if",
    "elseif": "$elseif",
    "else": "$else",
    "each": "$each",
}

# --- Markup lowering ---
EVENT_PREFIX = "on"
ATTRIBUTE_RENAMES = {"class": "className", "for": "htmlFor"}
ROLE_TYPES = {"text": "string", "attribute": "string", "condition": "boolean"}
