"""
Minimal HTML element tree

Rapla serves table-heavy, mostly well-formed HTML. This module turns it into a
small tree of ``Element`` nodes that the parser can walk with class and tag
lookups:
- parse_html: Build an element tree from a document string
- Element.find / find_all: Descendant lookup by tag, class and attributes
- Element.text: Concatenated descendant text
- Element.text_segments: Text split at a separator tag such as <br>
"""

from html.parser import HTMLParser
from typing import Dict, Iterator, List, Optional, Union

VOID_TAGS = {
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
}

# Opening the key tag implicitly closes any open tag in the value set
IMPLICIT_CLOSE = {
    "td": {"td", "th"},
    "th": {"td", "th"},
    "tr": {"tr", "td", "th"},
    "option": {"option"},
    "li": {"li"},
}


class Element:
    def __init__(self, tag: str, attrs: Optional[Dict[str, str]] = None):
        self.tag = tag
        self.attrs = attrs or {}
        self.children: List[Union["Element", str]] = []

    def __repr__(self):
        return f"<Element {self.tag} {self.attrs}>"

    @property
    def classes(self) -> List[str]:
        return self.attrs.get("class", "").split()

    @property
    def elements(self) -> List["Element"]:
        return [child for child in self.children if isinstance(child, Element)]

    def iter_descendants(self) -> Iterator["Element"]:
        for child in self.elements:
            yield child
            yield from child.iter_descendants()

    def matches(self, tag: Optional[str] = None, class_: Optional[str] = None, **attrs) -> bool:
        if tag is not None and self.tag != tag:
            return False
        if class_ is not None and class_ not in self.classes:
            return False
        for name, value in attrs.items():
            if name not in self.attrs:
                return False
            if value is not True and self.attrs[name] != value:
                return False
        return True

    def find_all(self, tag: Optional[str] = None, class_: Optional[str] = None, **attrs) -> List["Element"]:
        return [el for el in self.iter_descendants() if el.matches(tag, class_, **attrs)]

    def find(self, tag: Optional[str] = None, class_: Optional[str] = None, **attrs) -> Optional["Element"]:
        for el in self.iter_descendants():
            if el.matches(tag, class_, **attrs):
                return el
        return None

    def children_matching(self, tag: Optional[str] = None, class_: Optional[str] = None) -> List["Element"]:
        return [el for el in self.elements if el.matches(tag, class_)]

    def text(self) -> str:
        parts = []
        for child in self.children:
            parts.append(child if isinstance(child, str) else child.text())
        return "".join(parts)

    def text_segments(self, separator: str = "br") -> List[str]:
        """Split the descendant text wherever a ``separator`` element appears."""
        segments = [""]

        def walk(node: "Element"):
            for child in node.children:
                if isinstance(child, str):
                    segments[-1] += child
                elif child.tag == separator:
                    segments.append("")
                else:
                    walk(child)

        walk(self)
        return segments


class _TreeBuilder(HTMLParser):
    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.root = Element("#document")
        self.stack = [self.root]

    def handle_starttag(self, tag, attrs):
        closes = IMPLICIT_CLOSE.get(tag)
        if closes:
            while len(self.stack) > 1 and self.stack[-1].tag in closes:
                self.stack.pop()

        # Valueless attributes such as `selected` come through as None
        element = Element(tag, {name: value if value is not None else "" for name, value in attrs})
        self.stack[-1].children.append(element)
        if tag not in VOID_TAGS:
            self.stack.append(element)

    def handle_startendtag(self, tag, attrs):
        element = Element(tag, {name: value if value is not None else "" for name, value in attrs})
        self.stack[-1].children.append(element)

    def handle_endtag(self, tag):
        # Unmatched end tags are ignored
        for index in range(len(self.stack) - 1, 0, -1):
            if self.stack[index].tag == tag:
                del self.stack[index:]
                return

    def handle_data(self, data):
        self.stack[-1].children.append(data)


def parse_html(document: str) -> Element:
    builder = _TreeBuilder()
    builder.feed(document)
    builder.close()
    return builder.root
