#!/usr/bin/env python
"""
Small element tree for request bodies.

Elements are composed with ``+`` and only turned into lxml elements
when the body is serialized:

    body = dav.Propfind() + (dav.Prop() + [dav.GetEtag()])
    body.tostring()
"""
import sys
from collections.abc import Iterable
from typing import ClassVar
from typing import Dict
from typing import List
from typing import Optional
from typing import Union

from lxml import etree
from lxml.etree import _Element

from eventdav.lib.namespace import nsmap

if sys.version_info < (3, 11):
    from typing_extensions import Self
else:
    from typing import Self


class BaseElement:
    tag: ClassVar[Optional[str]] = None

    def __init__(
        self, value: Union[str, bytes, None] = None, **attributes: str
    ) -> None:
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        self.value: Optional[str] = value
        self.attributes: Dict[str, str] = attributes
        self.children: List[BaseElement] = []

    def __add__(self, other: Union["BaseElement", Iterable["BaseElement"]]) -> Self:
        return self.append(other)

    def __repr__(self) -> str:
        return "%s(%r, %d children)" % (
            self.__class__.__name__,
            self.value,
            len(self.children),
        )

    def __str__(self) -> str:
        return self.tostring(pretty_print=True).decode("utf-8")

    def append(self, element: Union["BaseElement", Iterable["BaseElement"]]) -> Self:
        if isinstance(element, BaseElement):
            self.children.append(element)
        else:
            self.children.extend(element)
        return self

    def xmlelement(self, parent: Optional[_Element] = None) -> _Element:
        if self.tag is None:
            raise ValueError("%s has no tag" % self.__class__.__name__)
        if parent is None:
            node = etree.Element(self.tag, nsmap=nsmap)
        else:
            node = etree.SubElement(parent, self.tag)
        if self.value is not None:
            node.text = self.value
        for key, value in self.attributes.items():
            node.set(key, value)
        for child in self.children:
            child.xmlelement(node)
        return node

    def tostring(self, pretty_print: bool = False) -> bytes:
        """UTF-8 encoded document with XML declaration, ready as a request body"""
        return etree.tostring(
            self.xmlelement(),
            encoding="utf-8",
            xml_declaration=True,
            pretty_print=pretty_print,
        )


class NamedBaseElement(BaseElement):
    """An element that must carry a ``name`` attribute, like comp-filter"""

    def __init__(self, name: str) -> None:
        if not name:
            raise ValueError("%s needs a name" % self.__class__.__name__)
        super(NamedBaseElement, self).__init__(name=name)


class ValuedBaseElement(BaseElement):
    def __init__(self, value: Union[str, bytes, None] = None) -> None:
        super(ValuedBaseElement, self).__init__(value=value)
