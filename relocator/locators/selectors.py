"""CSS selector building helpers."""

import re

# Framework-generated, state, or hashed class names that drift between builds.
IGNORED_CLASS_PATTERNS = [
    re.compile(p)
    for p in (
        r"^hover:",
        r"^focus:",
        r"^active:",
        r"^disabled$",
        r"^hidden$",
        r"^visible$",
        r"^is-",
        r"^has-",
        r"^js-",
        r"^ng-",
        r"^v-",
        r"^_",
        r"^css-",
        r"^sc-",
        r"^chakra-",
        r"^MuiPaper",
        r"^Mui[A-Z]",
        r"^[a-z0-9]{6,}$",
        r"^[A-Z][a-z0-9]{5,}$",
    )
]

MAX_CLASSES = 3

_SPECIFICITY_ID = re.compile(r"#(?:\\.|[^\s.#\[\]:>+~])+")
_SPECIFICITY_CLASS = re.compile(r"\.(?:\\.|[^\s.#\[\]:>+~])+")
_SPECIFICITY_ATTR = re.compile(r"\[[^\]]*\]")
_LEADING_TAG = re.compile(r"^[a-zA-Z][a-zA-Z0-9-]*")


def css_escape(value: str) -> str:
    """Escape an identifier for use in a CSS selector (``CSS.escape``)."""
    out = []
    length = len(value)
    for i, ch in enumerate(value):
        code = ord(ch)
        if code == 0:
            out.append("\ufffd")
        elif 0x1 <= code <= 0x1F or code == 0x7F:
            out.append(f"\\{code:x} ")
        elif i == 0 and ch.isdigit() and ch.isascii():
            out.append(f"\\{code:x} ")
        elif i == 1 and ch.isdigit() and ch.isascii() and value[0] == "-":
            out.append(f"\\{code:x} ")
        elif i == 0 and ch == "-" and length == 1:
            out.append("\\-")
        elif code >= 0x80 or ch in "-_" or (ch.isascii() and ch.isalnum()):
            out.append(ch)
        else:
            out.append("\\" + ch)
    return "".join(out)


def quote_attribute_value(value: str) -> str:
    """Return ``value`` as a double-quoted CSS attribute value."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    escaped = escaped.replace("\n", "\\a ").replace("\r", "\\d ")
    return f'"{escaped}"'


def attribute_selector(name: str, value: str, tag: str = "") -> str:
    return f"{tag}[{name}={quote_attribute_value(value)}]"


def is_stable_class(name: str) -> bool:
    if not name:
        return False
    return not any(p.search(name) for p in IGNORED_CLASS_PATTERNS)


def stable_classes(classes, limit: int = MAX_CLASSES) -> list[str]:
    """Filter out volatile class tokens, keeping at most ``limit``."""
    result = []
    for name in classes:
        if is_stable_class(name) and name not in result:
            result.append(name)
        if len(result) >= limit:
            break
    return result


def specificity(selector: str) -> int:
    """Rough specificity: ``#id`` 100, ``.class`` and ``[attr]`` 10, leading tag 1."""
    without_attrs = _SPECIFICITY_ATTR.sub("", selector)
    score = 100 * len(_SPECIFICITY_ID.findall(without_attrs))
    score += 10 * len(_SPECIFICITY_CLASS.findall(without_attrs))
    score += 10 * len(_SPECIFICITY_ATTR.findall(selector))
    if _LEADING_TAG.match(selector):
        score += 1
    return score
