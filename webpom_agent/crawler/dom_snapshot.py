from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

TEST_ID_ATTRIBUTES = ("data-testid", "data-test", "data-qa")


@dataclass
class AncestorInfo:
    """One level of the path from an element up to the document root."""

    tag: str
    id: Optional[str] = None
    # 1-based position among siblings sharing the tag
    index: int = 1
    same_tag_count: int = 1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AncestorInfo":
        return cls(
            tag=(data.get("tag") or "").lower(),
            id=data.get("id") or None,
            index=int(data.get("index") or 1),
            same_tag_count=int(data.get("sameTagCount") or 1),
        )


@dataclass
class NodeSnapshot:
    """Raw, page-independent description of one DOM element.

    Produced by ``js/element_snapshot.js``; everything the classifier and the
    selector synthesizer need is carried here so neither touches the page.
    """

    key: int
    tag: str
    parent_key: Optional[int] = None
    classes: List[str] = field(default_factory=list)
    attributes: Dict[str, str] = field(default_factory=dict)
    styles: Dict[str, str] = field(default_factory=dict)
    cursor: Optional[str] = None
    text: str = ""
    # ancestry[0] is the element itself, the last entry is the root element
    ancestry: List[AncestorInfo] = field(default_factory=list)

    def __repr__(self):
        return f"<NodeSnapshot key={self.key!r} tag={self.tag!r}>"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NodeSnapshot":
        tag = (data.get("tagName") or "").lower()
        ancestry = [AncestorInfo.from_dict(a) for a in data.get("ancestry") or []]
        if not ancestry:
            ancestry = [AncestorInfo(tag=tag, id=(data.get("attributes") or {}).get("id") or None)]
        return cls(
            key=data.get("key", 0),
            tag=tag,
            parent_key=data.get("parentKey"),
            classes=list(data.get("classes") or []),
            attributes=dict(data.get("attributes") or {}),
            styles=dict(data.get("styles") or {}),
            cursor=data.get("cursor"),
            text=(data.get("text") or "").strip(),
            ancestry=ancestry,
        )

    def get(self, name: str) -> Optional[str]:
        """Attribute value, or None when missing or empty."""
        value = self.attributes.get(name)
        return value if value else None

    @property
    def element_id(self) -> Optional[str]:
        return self.get("id")

    @property
    def role(self) -> Optional[str]:
        return self.get("role")

    @property
    def test_id(self) -> Optional[str]:
        for attr in TEST_ID_ATTRIBUTES:
            value = self.get(attr)
            if value:
                return value
        return None


def build_xpath(ancestry: List[AncestorInfo]) -> str:
    """Absolute XPath for ``ancestry[0]``.

    Elements with an id anchor the path (``//*[@id="..."]``); ``body`` and
    ``html`` have fixed paths; every other level is ``tag[n]`` with n the
    position among same-tag siblings.
    """
    if not ancestry:
        return ""
    node = ancestry[0]
    if node.id:
        return f'//*[@id="{node.id}"]'
    if len(ancestry) == 1:
        return "/html" if node.tag == "html" else f"/{node.tag}[{node.index}]"
    if node.tag == "body" and len(ancestry) == 2 and ancestry[1].tag == "html":
        return "/html/body"
    return f"{build_xpath(ancestry[1:])}/{node.tag}[{node.index}]"
