import logging
import re
from typing import Dict, Iterable, Optional, Protocol

from webpom_agent.crawler.dom_snapshot import NodeSnapshot
from webpom_agent.errors import SelectorError

SAFE_CLASS_PATTERN = re.compile(r"^[a-zA-Z_-][a-zA-Z0-9_-]*$")
MAX_SELECTOR_CLASSES = 3


class DocumentQuery(Protocol):
    def count(self, selector: str) -> int:
        """Number of nodes in the whole document matching ``selector``.

        May raise for selectors the document rejects.
        """


class SelectorCounts:
    """DocumentQuery answered from one batched in-page count.

    The page reports -1 for selectors it could not parse.
    """

    def __init__(self, counts: Optional[Dict[str, int]] = None):
        self.counts: Dict[str, int] = dict(counts or {})

    def update(self, selectors: Iterable[str], results: Iterable[int]) -> None:
        for selector, result in zip(selectors, results):
            self.counts[selector] = int(result)

    def count(self, selector: str) -> int:
        if selector not in self.counts:
            raise SelectorError(f"selector was never counted: {selector}")
        result = self.counts[selector]
        if result < 0:
            raise SelectorError(f"invalid selector: {selector}")
        return result


def css_escape(value: str) -> str:
    """Python port of the CSSOM ``CSS.escape`` serialization."""
    out = []
    length = len(value)
    for i, ch in enumerate(value):
        code = ord(ch)
        if code == 0:
            out.append("�")
        elif 0x1 <= code <= 0x1F or code == 0x7F:
            out.append(f"\\{code:x} ")
        elif i == 0 and ch.isdigit() and ch.isascii():
            out.append(f"\\{code:x} ")
        elif i == 1 and ch.isdigit() and ch.isascii() and value[0] == "-":
            out.append(f"\\{code:x} ")
        elif i == 0 and ch == "-" and length == 1:
            out.append("\\-")
        elif code >= 0x80 or ch in "-_" or ch.isascii() and ch.isalnum():
            out.append(ch)
        else:
            out.append("\\" + ch)
    return "".join(out)


def quote_attribute_value(value: str) -> str:
    """Escape ``value`` for use inside a double-quoted attribute selector."""
    out = []
    for ch in value:
        code = ord(ch)
        if code == 0:
            out.append("�")
        elif 0x1 <= code <= 0x1F or code == 0x7F:
            out.append(f"\\{code:x} ")
        elif ch in '"\\':
            out.append("\\" + ch)
        else:
            out.append(ch)
    return "".join(out)


def data_testid_selector(value: str) -> str:
    # data-test and data-qa ids are written with the data-testid attribute name
    return f'[data-testid="{quote_attribute_value(value)}"]'


def class_selector(node: NodeSnapshot) -> Optional[str]:
    """``tag.c1.c2.c3`` from the first safe classes, or None if there are none."""
    safe = [c for c in node.classes if SAFE_CLASS_PATTERN.match(c)][:MAX_SELECTOR_CLASSES]
    if not safe:
        return None
    return node.tag + "".join(f".{css_escape(c)}" for c in safe)


def structural_selector(node: NodeSnapshot) -> str:
    """Child-combinator path up to the nearest ancestor with an id, or the root."""
    segments = []
    anchor = None
    for level, info in enumerate(node.ancestry):
        if level > 0 and info.id:
            anchor = f"#{css_escape(info.id)}"
            break
        if info.same_tag_count > 1:
            segments.append(f"{info.tag}:nth-of-type({info.index})")
        else:
            segments.append(info.tag)
    path = " > ".join(reversed(segments))
    if anchor:
        path = f"{anchor} > {path}"
    return path


def synthesize(node: NodeSnapshot, document_query: DocumentQuery) -> str:
    """Pick the most stable selector for ``node``.

    Order: test id, element id, document-unique tag+classes, structural path.
    """
    test_id = node.test_id
    if test_id:
        return data_testid_selector(test_id)

    element_id = node.element_id
    if element_id:
        return f"#{css_escape(element_id)}"

    candidate = class_selector(node)
    if candidate:
        try:
            if document_query.count(candidate) == 1:
                return candidate
        except Exception as e:
            logging.debug(f"Class selector {candidate!r} rejected: {e}")

    return structural_selector(node)
