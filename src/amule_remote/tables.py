"""Table extraction engine shared by every page parser.

Cells are returned as their inner markup so callers can tell an embedded
checkbox or link apart from plain text.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Union

from lxml import etree
from lxml import html as LH  # type: ignore

from .profiles import TableSpec

LOGGER = logging.getLogger(__name__)

ROW_PATH = "./tr|./thead/tr|./tbody/tr|./tfoot/tr"
CELL_PATH = "./th|./td"
CELL_WITH_INPUT_PATH = "./th|./td|./input"

Document = Union[str, "etree._Element", None]


def parse_document(html: Optional[str]):
    """Return the lxml root of ``html`` or ``None`` when there is nothing to parse."""
    if html is None or not html.strip():
        LOGGER.warning("Empty page, nothing to parse")
        return None
    try:
        return LH.document_fromstring(html)
    except (etree.ParserError, ValueError) as exc:
        LOGGER.warning("Could not parse page: %s", exc)
        return None


def _root(document: Document):
    if document is None or isinstance(document, str):
        return parse_document(document)
    return document


def select(root, selector: str) -> list:
    try:
        nodes = root.xpath(selector)
    except etree.XPathError as exc:
        LOGGER.warning("Invalid selector %r: %s", selector, exc)
        return []
    # count(), boolean() and string() expressions do not select nodes
    if not isinstance(nodes, list):
        LOGGER.warning("Selector %r does not select elements (got %r)", selector, nodes)
        return []
    return [node for node in nodes if isinstance(node, etree._Element)]


def inner_markup(element) -> str:
    """Text and child markup of ``element``; a bare ``<input>`` yields itself."""
    if element.tag == "input":
        return LH.tostring(element, encoding="unicode", with_tail=False)
    parts = [element.text or ""]
    parts.extend(LH.tostring(child, encoding="unicode") for child in element)
    return "".join(parts)


def inner_text(element) -> str:
    return element.text_content()


def is_blank(cell: Optional[str]) -> bool:
    """True for empty cells, whitespace and ``&nbsp;`` padding."""
    if not cell:
        return True
    return not cell.replace("&nbsp;", "").strip()


def rows_of(table) -> list:
    return table.xpath(ROW_PATH)


def table_cells(
    document: Document,
    spec: TableSpec,
    cell_path: str = CELL_PATH,
    span: bool = False,
) -> List[str]:
    """Inner markup of the data cells of the table selected by ``spec``.

    With ``span`` every table from ``spec.table_index`` onward is scanned,
    each one skipping its own ``spec.row_skip`` header rows.
    """
    root = _root(document)
    if root is None:
        return []

    if spec.table_index < 0 or spec.row_skip < 0:
        LOGGER.warning("Negative table_index/row_skip in %r, nothing selected", spec)
        return []

    tables = select(root, spec.selector)
    if len(tables) <= spec.table_index:
        LOGGER.warning(
            "No table at index %d for selector %r (found %d)",
            spec.table_index,
            spec.selector,
            len(tables),
        )
        return []

    targets = tables[spec.table_index:] if span else [tables[spec.table_index]]
    cells: List[str] = []
    for table in targets:
        rows = rows_of(table)[spec.row_skip:]
        cells.extend(_cells(rows, cell_path))

    if not cells:
        LOGGER.info("Table at index %d has no data rows", spec.table_index)
    return cells


def row_cells(document: Document, row_selector: str, cell_path: str = CELL_PATH) -> List[str]:
    """Inner markup of the cells of every row matched by ``row_selector``."""
    root = _root(document)
    if root is None:
        return []
    return _cells(select(root, row_selector), cell_path)


def text_cells(document: Document, table_selector: str) -> Iterable:
    """Yield the ``td`` elements of every row of every selected table."""
    root = _root(document)
    if root is None:
        return
    for table in select(root, table_selector):
        for row in rows_of(table):
            yield from row.xpath("./td")


def _cells(rows: Iterable, cell_path: str) -> List[str]:
    return [inner_markup(cell) for row in rows for cell in row.xpath(cell_path)]
